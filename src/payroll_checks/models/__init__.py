"""SQLAlchemy ORM models."""

from payroll_checks.models.base import Base, TimestampMixin
from payroll_checks.models.checks import Bank, Check
from payroll_checks.models.directory import (
    Client,
    Company,
    Employee,
    EmployeeRelationship,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "Bank",
    "Check",
    "Client",
    "Company",
    "Employee",
    "EmployeeRelationship",
]
