"""Coerce wizard form values into the Python types of model columns.

Wizard payloads arrive as JSON/form values: dates as ISO strings,
numbers as strings, booleans as "1"/"on"/"true". Columns need real
types before the ORM writes them.

A value that cannot be coerced is stored as None and logged; the raw
value stays in the merged validation record, so the step validator
still reports the real field error to the user.
"""

import logging
from datetime import date, datetime
from typing import Any

from pydantic import TypeAdapter
from sqlalchemy import Boolean, Date, DateTime, Float, Integer, JSON, String

logger = logging.getLogger(__name__)


_ADAPTERS = (
    (Boolean, TypeAdapter(bool)),
    (DateTime, TypeAdapter(datetime)),
    (Date, TypeAdapter(date)),
    (Integer, TypeAdapter(int)),
    (Float, TypeAdapter(float)),
)


def _coerce(column_type: Any, value: Any) -> Any:
    # pydantic ValidationError is a ValueError
    for sql_type, adapter in _ADAPTERS:
        if isinstance(column_type, sql_type):
            return adapter.validate_python(value)
    if isinstance(column_type, JSON):
        return jsonable(value) if isinstance(value, (list, dict)) else None
    return value if isinstance(value, str) else str(value)


def coerce_column_value(model: type, field: str, value: Any) -> Any:
    """Return `value` converted for `model.<field>`; None if it does not fit."""
    if value is None or value == "":
        return None
    column = model.__table__.columns.get(field)
    if column is None:
        return value
    try:
        result = _coerce(column.type, value)
    except (TypeError, ValueError):
        result = None
    if result is None:
        logger.info(
            "Discarding %s.%s value of type %s: not coercible to %s",
            model.__name__, field, type(value).__name__, column.type,
        )
    return result


def assign_columns(instance: Any, values: dict[str, Any]) -> None:
    """setattr every coerced value in `values` onto `instance`.

    A NOT NULL column never receives None: text columns take "" and the
    others keep their current value.
    """
    model = type(instance)
    for field, value in values.items():
        coerced = coerce_column_value(model, field, value)
        if coerced is None:
            column = model.__table__.columns.get(field)
            if column is not None and not column.nullable:
                if not isinstance(column.type, String):
                    continue
                coerced = ""
        setattr(instance, field, coerced)


def jsonable(value: Any) -> Any:
    """Make dates inside JSON column payloads serialisable."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value
