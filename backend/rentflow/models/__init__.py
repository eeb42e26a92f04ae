"""Aggregate model imports for Alembic auto-detection."""

from rentflow.models.user import User, UserRole  # noqa: F401
from rentflow.models.tenant_profile import TenantProfile  # noqa: F401
from rentflow.models.property import Property, PropertyImage  # noqa: F401
from rentflow.models.application import Application  # noqa: F401
from rentflow.models.lead import Lead  # noqa: F401
