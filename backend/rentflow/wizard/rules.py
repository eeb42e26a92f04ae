"""Declarative field rules for wizard steps.

A step's rule set is a list of FieldRule objects built by a pure rule
provider. Each FieldRule names a field path, whether the field is
required (always, or only when another field holds a given value), and
the Checks its value must pass.

Checks are pydantic type metadata: a base type (StrictStr, int, float,
date, Literal[...]) plus `Field(...)` constraints and AfterValidators
(email addresses go through EmailStr). The checks of one rule are
combined into a single `Annotated` type and validated through a cached
TypeAdapter; the pydantic error types are mapped back to the name of the
check that owns them so a rule can override the message per check.

Validators that need more than the value (today's date, a sibling field)
read the evaluation Scope from the validation context.

Paths use dotted notation. A `*` segment expands over the items of a
repeatable group, e.g. `pets_details.*.type` yields `pets_details.0.type`,
`pets_details.1.type`, ... Error keys always use the concrete path.

Semantics:
  - An empty value (None, blank string, empty list) only fails the
    required / required_if / implicit checks; other checks are skipped.
  - Implicit checks (accepted) run first, and a failure stops the rest.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BeforeValidator,
    EmailStr,
    Field,
    StrictStr,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
)
from pydantic.fields import FieldInfo
from pydantic_core import PydanticCustomError

from rentflow.schemas import validators
from rentflow.wizard.lookups import DOCUMENT_EXTENSIONS, DOCUMENT_MAX_KB

ErrorMap = dict[str, list[str]]

_BOOL = TypeAdapter(bool)
_FLOAT = TypeAdapter(float)
_DATE = TypeAdapter(date)
_EMAIL = TypeAdapter(EmailStr)


# ── Value helpers ───────────────────────────────────────────

def get_path(data: Mapping[str, Any], path: str) -> Any:
    """Look up a dotted path; literal flat keys win over traversal."""
    if path in data:
        return data[path]
    node: Any = data
    for part in path.split("."):
        if isinstance(node, Mapping):
            if part not in node:
                return None
            node = node[part]
        elif isinstance(node, (list, tuple)) and part.isdigit():
            index = int(part)
            if index >= len(node):
                return None
            node = node[index]
        else:
            return None
    return node


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _parse(adapter: TypeAdapter, value: Any) -> Any:
    if value is None:
        return None
    try:
        return adapter.validate_python(value)
    except ValidationError:
        return None


def to_bool(value: Any) -> bool | None:
    """Interpret form-style booleans; None when the value is not boolean-like."""
    return _parse(_BOOL, value)


def to_number(value: Any) -> float | None:
    return _parse(_FLOAT, value)


def to_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return _parse(_DATE, value)


def years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:  # 29 February
        return day.replace(year=day.year - years, day=28)


def _label(path: str) -> str:
    return path.replace(".", " ").replace("_", " ")


# ── Scope ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Scope:
    """Evaluation scope for one concrete field.

    `indices` holds the item indices the wildcards of the rule path were
    bound to, so cross-field references like `addresses.*.from_date`
    resolve to the sibling of the field being checked.
    """

    data: Mapping[str, Any]
    today: date
    indices: tuple[int, ...] = ()

    def resolve(self, path: str) -> str:
        bound = iter(self.indices)
        return ".".join(
            str(next(bound, "*")) if part == "*" else part
            for part in path.split(".")
        )

    def value(self, path: str) -> Any:
        return get_path(self.data, self.resolve(path))


def _scope(info: ValidationInfo) -> Scope:
    return info.context["scope"]


# ── Checks ──────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class Check:
    """One constraint on a field value, as pydantic type metadata.

    `base` is the type the value must validate as (the first base among a
    rule's checks wins), `metadata` the constraints applied on top, and
    `owns` the pydantic error types reported under this check's name.
    Builders are cached, so equal checks are the same object.
    """

    name: str
    base: Any = None
    metadata: tuple[Any, ...] = ()
    owns: tuple[str, ...] = ()
    implicit: bool = False


def _fail(name: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(name, message)


def _validator(name: str, message: str, test: Callable[[Any, ValidationInfo], bool]) -> AfterValidator:
    def _check(value: Any, info: ValidationInfo) -> Any:
        if not test(value, info):
            raise _fail(name, message)
        return value

    return AfterValidator(_check)


def _format(name: str, message: str, validate: Callable[..., Any], *siblings: str) -> AfterValidator:
    """Wrap a ValueError-raising format validator from schemas.validators."""

    def _test(value: Any, info: ValidationInfo) -> bool:
        scope = _scope(info)
        try:
            validate(str(value), *(scope.value(path) for path in siblings))
        except ValueError:
            return False
        return True

    return _validator(name, message, _test)


@lru_cache(maxsize=None)
def string() -> Check:
    return Check("string", StrictStr, owns=("string_type",))


@lru_cache(maxsize=None)
def max_length(limit: int) -> Check:
    return Check("max", StrictStr, (Field(max_length=limit),), owns=("string_too_long", "too_long"))


@lru_cache(maxsize=None)
def exact_length(size: int) -> Check:
    return Check(
        "size", StrictStr, (Field(min_length=size, max_length=size),),
        owns=("string_too_short", "string_too_long"),
    )


@lru_cache(maxsize=None)
def integer() -> Check:
    return Check("integer", int, owns=("int_type", "int_parsing", "int_from_float", "int_parsing_size"))


@lru_cache(maxsize=None)
def numeric() -> Check:
    return Check(
        "numeric", float, (Field(allow_inf_nan=False),),
        owns=("float_type", "float_parsing", "finite_number"),
    )


@lru_cache(maxsize=None)
def min_value(bound: float) -> Check:
    return Check("min", float, (Field(ge=bound),), owns=("greater_than_equal",))


@lru_cache(maxsize=None)
def max_value(bound: float) -> Check:
    return Check("max", float, (Field(le=bound),), owns=("less_than_equal",))


@lru_cache(maxsize=None)
def boolean() -> Check:
    return Check("boolean", bool, owns=("bool_type", "bool_parsing"))


@lru_cache(maxsize=None)
def accepted() -> Check:
    return Check(
        "accepted",
        metadata=(_validator("accepted", "Must be accepted", lambda v, info: to_bool(v) is True),),
        implicit=True,
    )


def one_of(values: Iterable[Any]) -> Check:
    return _one_of(tuple(values))


@lru_cache(maxsize=None)
def _one_of(values: tuple[Any, ...]) -> Check:
    return Check("in", Literal[values], owns=("literal_error",))


def _valid_email(value: str, info: ValidationInfo) -> str:
    try:
        return _EMAIL.validate_python(value)
    except ValidationError:
        raise _fail("email", "Please enter a valid email address") from None


@lru_cache(maxsize=None)
def email() -> Check:
    # EmailStr runs as a validator so length constraints stay on the plain str schema
    return Check("email", StrictStr, (AfterValidator(_valid_email),), owns=("string_type",))


@lru_cache(maxsize=None)
def is_list() -> Check:
    return Check("array", list, owns=("list_type",))


@lru_cache(maxsize=None)
def max_items(limit: int) -> Check:
    return Check("max", list, (Field(max_length=limit),), owns=("too_long",))


# ── Date checks ─────────────────────────────────────────────

def _date_input(value: Any) -> Any:
    # Plain dates and ISO strings only; pydantic would also take epoch numbers
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, (str, date)):
        return value
    raise _fail("date", "Must be a valid date")


_DATE_OWNS = ("date", "date_type", "date_parsing", "date_from_datetime_parsing", "date_from_datetime_inexact")


@lru_cache(maxsize=None)
def is_date() -> Check:
    return Check("date", date, (BeforeValidator(_date_input),), owns=_DATE_OWNS)


def _compare_today(name: str, message: str, compare: Callable[[date, date], bool]) -> Check:
    return Check(
        name, date,
        (_validator(name, message, lambda d, info: compare(d, _scope(info).today)),),
    )


@lru_cache(maxsize=None)
def after_today() -> Check:
    return _compare_today("after", "Must be a date after today", lambda d, t: d > t)


@lru_cache(maxsize=None)
def after_or_equal_today() -> Check:
    return _compare_today("after_or_equal", "Must be today or a later date", lambda d, t: d >= t)


@lru_cache(maxsize=None)
def before_or_equal_today() -> Check:
    return _compare_today("before_or_equal", "Must be today or an earlier date", lambda d, t: d <= t)


@lru_cache(maxsize=None)
def at_least_years_old(years: int = 18) -> Check:
    return _compare_today(
        "before", f"Must be at least {years} years ago",
        lambda d, t: d < years_before(t, years),
    )


@lru_cache(maxsize=None)
def after_field(other: str) -> Check:
    """Date must be strictly after the date held by `other` (wildcards bound)."""

    def _test(day: date, info: ValidationInfo) -> bool:
        reference = to_date(_scope(info).value(other))
        return reference is None or day > reference

    return Check("after", date, (_validator("after", f"Must be after {_label(other)}", _test),))


# ── Format checks ───────────────────────────────────────────

@lru_cache(maxsize=None)
def phone(dial_code_field: str) -> Check:
    return Check("phone", metadata=(_format(
        "phone", "Please enter a valid phone number", validators.validate_phone, dial_code_field,
    ),))


@lru_cache(maxsize=None)
def postal_code(country_field: str) -> Check:
    return Check("postal_code", metadata=(_format(
        "postal_code", "Invalid postal code format for selected country",
        validators.validate_postal_code, country_field,
    ),))


@lru_cache(maxsize=None)
def country_code() -> Check:
    return Check("country", metadata=(_format(
        "country", "Please select a valid country", validators.validate_country_code,
    ),))


# ── File checks ─────────────────────────────────────────────

def _is_upload(value: Any) -> bool:
    return bool(getattr(value, "filename", None)) and hasattr(value, "size")


def _is_stored(value: Any) -> bool:
    """A document record already persisted by an earlier save."""
    return isinstance(value, Mapping) and bool(value.get("path"))


@lru_cache(maxsize=None)
def is_file() -> Check:
    return Check("file", metadata=(_validator(
        "file", "Must be a file upload", lambda v, info: _is_upload(v) or _is_stored(v),
    ),))


def mimes(extensions: Iterable[str]) -> Check:
    return _mimes(tuple(ext.lower() for ext in extensions))


@lru_cache(maxsize=None)
def _mimes(allowed: tuple[str, ...]) -> Check:
    def _test(value: Any, info: ValidationInfo) -> bool:
        return not _is_upload(value) or value.filename.rsplit(".", 1)[-1].lower() in allowed

    return Check("mimes", metadata=(
        _validator("mimes", f"Must be a file of type: {', '.join(allowed)}", _test),
    ))


@lru_cache(maxsize=None)
def max_kilobytes(limit: int) -> Check:
    def _test(value: Any, info: ValidationInfo) -> bool:
        return not _is_upload(value) or (value.size or 0) <= limit * 1024

    return Check("max", metadata=(
        _validator("max", f"Must not be larger than {limit} kilobytes", _test),
    ))


# ── Adapters ────────────────────────────────────────────────

@lru_cache(maxsize=None)
def _adapter(checks: tuple[Check, ...]) -> TypeAdapter:
    base = next((check.base for check in checks if check.base is not None), Any)
    metadata = [item for check in checks for item in check.metadata]
    # Field constraints go on the base schema, validators wrap it
    metadata.sort(key=lambda item: not isinstance(item, FieldInfo))
    return TypeAdapter(Annotated[(base, *metadata)] if metadata else base)


def _owner(checks: tuple[Check, ...], error_type: str) -> str:
    for check in checks:
        if error_type == check.name or error_type in check.owns:
            return check.name
    return error_type


def run_checks(checks: tuple[Check, ...], value: Any, scope: Scope) -> list[tuple[str, str]]:
    """Validate `value`; returns (check name, pydantic message) per failure."""
    if not checks:
        return []
    try:
        _adapter(checks).validate_python(value, context={"scope": scope})
    except ValidationError as exc:
        return [
            (_owner(checks, error["type"]), error["msg"])
            for error in exc.errors(include_url=False)
        ]
    return []


# ── Field rules ─────────────────────────────────────────────

@dataclass(frozen=True)
class When:
    """Condition on another field: holds when it equals any of `values`."""

    path: str
    values: tuple[Any, ...]

    def holds(self, scope: Scope) -> bool:
        actual = scope.value(self.path)
        if is_empty(actual):
            return False
        for expected in self.values:
            if isinstance(expected, bool):
                if to_bool(actual) is expected:
                    return True
            elif str(actual) == str(expected):
                return True
        return False

    def describe(self) -> str:
        return f"{_label(self.path)} is {', '.join(str(v) for v in self.values)}"


@dataclass(frozen=True)
class FieldRule:
    path: str
    checks: tuple[Check, ...] = ()
    required: bool = False
    required_if: When | None = None
    messages: Mapping[str, str] = field(default_factory=dict)

    def message(self, name: str, default: str) -> str:
        return self.messages.get(name, default)

    def _failures(self, checks: tuple[Check, ...], value: Any, scope: Scope) -> list[str]:
        messages = [self.message(name, default) for name, default in run_checks(checks, value, scope)]
        return list(dict.fromkeys(messages))

    def evaluate(self, value: Any, scope: Scope, attribute: str) -> list[str]:
        implicit = tuple(check for check in self.checks if check.implicit)
        failures = self._failures(implicit, value, scope)
        if failures:
            return failures

        subject = attribute[:1].upper() + attribute[1:]
        if is_empty(value):
            if self.required:
                return [self.message("required", f"{subject} is required")]
            if self.required_if is not None and self.required_if.holds(scope):
                default = f"{subject} is required when {self.required_if.describe()}"
                return [self.message("required_if", default)]
            return []

        explicit = tuple(check for check in self.checks if not check.implicit)
        return self._failures(explicit, value, scope)


def required(path: str, *checks: Check, messages: Mapping[str, str] | None = None) -> FieldRule:
    return FieldRule(path, checks, required=True, messages=messages or {})


def optional(path: str, *checks: Check, messages: Mapping[str, str] | None = None) -> FieldRule:
    return FieldRule(path, checks, messages=messages or {})


def required_if(
    path: str,
    other: str,
    value: Any,
    *checks: Check,
    messages: Mapping[str, str] | None = None,
) -> FieldRule:
    values = tuple(value) if isinstance(value, (list, tuple)) else (value,)
    return FieldRule(path, checks, required_if=When(other, values), messages=messages or {})


def document(path: str, *, needed: bool, messages: Mapping[str, str] | None = None) -> FieldRule:
    """File upload rule; `needed` is False once a document is on file."""
    checks = (is_file(), mimes(DOCUMENT_EXTENSIONS), max_kilobytes(DOCUMENT_MAX_KB))
    return FieldRule(path, checks, required=needed, messages=messages or {})


# ── Evaluation ──────────────────────────────────────────────

def expand_path(
    pattern: str,
    data: Mapping[str, Any],
    indices: tuple[int, ...] = (),
) -> Iterator[tuple[str, tuple[int, ...]]]:
    """Yield (concrete path, bound indices) for every match of `pattern`."""
    head, star, tail = pattern.partition(".*")
    if not star:
        yield pattern, indices
        return
    items = get_path(data, head)
    if not isinstance(items, (list, tuple)):
        return
    for index in range(len(items)):
        yield from expand_path(f"{head}.{index}{tail}", data, indices + (index,))


def evaluate(rules: Iterable[FieldRule], data: Mapping[str, Any], today: date) -> ErrorMap:
    """Run every rule against `data` and return the field → messages map."""
    errors: ErrorMap = {}
    for rule in rules:
        for path, indices in expand_path(rule.path, data):
            scope = Scope(data, today, indices)
            failures = rule.evaluate(get_path(data, path), scope, _label(path))
            if failures:
                errors.setdefault(path, []).extend(failures)
    return errors


def add_error(errors: ErrorMap, path: str, message: str) -> None:
    errors.setdefault(path, []).append(message)
