"""Bank counter and persisted check models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from payroll_checks.models.base import Base, JsonType, TimestampMixin, new_id


class Bank(Base, TimestampMixin):
    """Bank account a company's checks are drawn on; owns the check counter."""

    __tablename__ = "bank"

    bank_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    bank_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    routing_number: Mapped[str | None] = mapped_column(String, nullable=True)
    account_number: Mapped[str | None] = mapped_column(String, nullable=True)
    next_check_number: Mapped[int] = mapped_column(Integer, nullable=False, default=100)


class Check(Base, TimestampMixin):
    """Persisted check. Never renumbered once written."""

    __tablename__ = "check_record"

    check_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("company.company_id", ondelete="RESTRICT"),
        nullable=False,
    )
    # Empty for expense checks
    employee_id: Mapped[str] = mapped_column(String(36), nullable=False, default="")
    employee_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    is_expense: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    client_id: Mapped[str] = mapped_column(String(36), nullable=False)
    pay_type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    pay_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 4), nullable=True)
    hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    ot_hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    holiday_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    pto_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    relationship_details: Mapped[list[dict[str, Any]]] = mapped_column(
        JsonType, nullable=False, default=list
    )
    check_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    week_key: Mapped[str] = mapped_column(String(10), nullable=False)
    work_week: Mapped[str] = mapped_column(String, nullable=False)
    check_number: Mapped[int] = mapped_column(Integer, nullable=False)
    memo: Mapped[str | None] = mapped_column(String, nullable=True)
    reviewed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "check_number", name="check_company_number_unique"),
        CheckConstraint(
            "pay_type IN ('hourly', 'perdiem', 'mixed', 'expense')",
            name="check_pay_type_check",
        ),
        CheckConstraint("check_number >= 100", name="check_number_floor"),
    )
