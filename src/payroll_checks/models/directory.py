"""Company, client and employee directory models."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_checks.calculators.types import (
    ClientProfile,
    EmployeeProfile,
    PayFrequency,
    PayRelationship,
    PayType,
    PeriodStartDay,
)
from payroll_checks.models.base import Base, TimestampMixin, new_id


class Company(Base, TimestampMixin):
    """Company issuing checks."""

    __tablename__ = "company"

    company_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    employees: Mapped[list[Employee]] = relationship(back_populates="company")


class Client(Base, TimestampMixin):
    """Client (department) with its own pay-period configuration."""

    __tablename__ = "client"

    client_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    pay_period_start_day: Mapped[str] = mapped_column(
        String, nullable=False, default=PeriodStartDay.MONDAY.value
    )
    pay_period_frequency: Mapped[str] = mapped_column(
        String, nullable=False, default=PayFrequency.WEEKLY.value
    )

    __table_args__ = (
        CheckConstraint(
            "pay_period_start_day IN ('monday', 'sunday')",
            name="client_start_day_check",
        ),
        CheckConstraint(
            "pay_period_frequency IN ('weekly', 'biweekly')",
            name="client_frequency_check",
        ),
    )

    def to_profile(self) -> ClientProfile:
        return ClientProfile(
            client_id=self.client_id,
            name=self.name,
            active=self.active,
            period_start_day=PeriodStartDay(self.pay_period_start_day),
            frequency=PayFrequency(self.pay_period_frequency),
        )


class Employee(Base, TimestampMixin):
    """Employee record.

    ``pay_type``/``pay_rate`` are legacy fields, read only when the employee
    has no relationships.
    """

    __tablename__ = "employee"

    employee_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    pay_type: Mapped[str] = mapped_column(String, nullable=False, default=PayType.HOURLY.value)
    pay_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("0"))

    # Relationships
    company: Mapped[Company] = relationship(back_populates="employees")
    relationships: Mapped[list[EmployeeRelationship]] = relationship(
        back_populates="employee",
        order_by="EmployeeRelationship.position",
    )

    def to_profile(self) -> EmployeeProfile:
        return EmployeeProfile(
            employee_id=self.employee_id,
            name=self.name,
            active=self.active,
            relationships=tuple(rel.to_relationship() for rel in self.relationships),
            legacy_pay_type=PayType(self.pay_type),
            legacy_pay_rate=Decimal(self.pay_rate or 0),
        )


class EmployeeRelationship(Base, TimestampMixin):
    """Pay arrangement between an employee and a client."""

    __tablename__ = "employee_relationship"

    relationship_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    employee_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    client_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("client.client_id", ondelete="RESTRICT"),
        nullable=False,
    )
    pay_type: Mapped[str] = mapped_column(String, nullable=False)
    pay_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("0"))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        CheckConstraint(
            "pay_type IN ('hourly', 'perdiem')",
            name="employee_relationship_pay_type_check",
        ),
    )

    employee: Mapped[Employee] = relationship(back_populates="relationships")
    client: Mapped[Client] = relationship()

    def to_relationship(self) -> PayRelationship:
        return PayRelationship(
            relationship_id=self.relationship_id,
            client_id=self.client_id,
            pay_type=PayType(self.pay_type),
            pay_rate=Decimal(self.pay_rate or 0),
            active=self.active,
        )
