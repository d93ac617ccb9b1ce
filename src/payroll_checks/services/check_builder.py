"""Check construction from aggregated results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from payroll_checks.calculators.period_calculator import (
    iso_week_number,
    week_ending_label,
    week_key,
)
from payroll_checks.calculators.types import (
    MIXED,
    MULTIPLE,
    ZERO,
    AggregatedEmployeeResult,
    ClientBreakdown,
    ClientProfile,
    Directory,
    ExpenseEntry,
    OtherPayItem,
    PayType,
    RelationshipAmount,
    Weekday,
)

if TYPE_CHECKING:
    from payroll_checks.models import Check


@dataclass(frozen=True)
class RelationshipDetail:
    """Authoritative per-relationship figures stored on a check."""

    relationship_id: str
    client_id: str
    client_name: str
    pay_type: str
    pay_rate: Decimal
    amount: Decimal
    hours: Decimal = ZERO
    ot_hours: Decimal = ZERO
    holiday_hours: Decimal = ZERO
    perdiem_amount: Decimal = ZERO
    perdiem_breakdown: bool = False
    perdiem_days: tuple[tuple[str, Decimal], ...] = ()
    pto_amount: Decimal = ZERO
    other_pay: tuple[OtherPayItem, ...] = ()

    @classmethod
    def from_contribution(
        cls, contribution: RelationshipAmount, directory: Directory
    ) -> RelationshipDetail:
        rel = contribution.relationship
        pay_input = contribution.pay_input
        return cls(
            relationship_id=rel.relationship_id,
            client_id=rel.client_id,
            client_name=directory.client_name(rel.client_id),
            pay_type=rel.pay_type.value,
            pay_rate=rel.pay_rate,
            amount=contribution.amount,
            hours=pay_input.hours,
            ot_hours=pay_input.ot_hours,
            holiday_hours=pay_input.holiday_hours,
            perdiem_amount=pay_input.perdiem_amount,
            perdiem_breakdown=pay_input.perdiem_breakdown,
            perdiem_days=tuple(
                (day.value, pay_input.perdiem_days[day])
                for day in Weekday
                if day in pay_input.perdiem_days
            ),
            pto_amount=pay_input.pto_amount,
            other_pay=pay_input.other_pay,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelationshipDetail:
        """Inverse of ``to_dict``, for details read back from storage."""
        return cls(
            relationship_id=data["id"],
            client_id=data.get("clientId", ""),
            client_name=data.get("clientName", ""),
            pay_type=data.get("payType", PayType.HOURLY.value),
            pay_rate=Decimal(data.get("payRate", "0")),
            amount=Decimal(data.get("amount", "0")),
            hours=Decimal(data.get("hours", "0")),
            ot_hours=Decimal(data.get("otHours", "0")),
            holiday_hours=Decimal(data.get("holidayHours", "0")),
            perdiem_amount=Decimal(data.get("perdiemAmount", "0")),
            perdiem_breakdown=bool(data.get("perdiemBreakdown", False)),
            perdiem_days=tuple(
                (day, Decimal(amount)) for day, amount in data.get("perdiemDays", {}).items()
            ),
            pto_amount=Decimal(data.get("ptoAmount", "0")),
            other_pay=tuple(
                OtherPayItem(
                    description=item.get("description", ""),
                    amount=Decimal(item["amount"]),
                )
                for item in data.get("otherPay", [])
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation (decimals as strings)."""
        return {
            "id": self.relationship_id,
            "clientId": self.client_id,
            "clientName": self.client_name,
            "payType": self.pay_type,
            "payRate": str(self.pay_rate),
            "amount": str(self.amount),
            "hours": str(self.hours),
            "otHours": str(self.ot_hours),
            "holidayHours": str(self.holiday_hours),
            "perdiemAmount": str(self.perdiem_amount),
            "perdiemBreakdown": self.perdiem_breakdown,
            "perdiemDays": {day: str(amount) for day, amount in self.perdiem_days},
            "ptoAmount": str(self.pto_amount),
            "otherPay": [
                {"description": item.description, "amount": str(item.amount)}
                for item in self.other_pay
            ],
        }


@dataclass(frozen=True)
class IssuedCheck:
    """A numbered check, immutable once written."""

    company_id: str
    employee_id: str
    employee_name: str
    amount: Decimal
    client_id: str
    pay_type: str
    check_date: date
    week_key: str
    work_week: str
    check_number: int
    created_by: str
    hours: Decimal = ZERO
    ot_hours: Decimal = ZERO
    holiday_hours: Decimal = ZERO
    pto_amount: Decimal = ZERO
    pay_rate: Decimal | None = None
    relationship_details: tuple[RelationshipDetail, ...] = ()
    memo: str | None = None
    is_expense: bool = False
    reviewed: bool = False
    paid: bool = False
    check_id: str | None = None

    @classmethod
    def from_record(cls, record: Check) -> IssuedCheck:
        return cls(
            company_id=record.company_id,
            employee_id=record.employee_id,
            employee_name=record.employee_name,
            amount=record.amount,
            client_id=record.client_id,
            pay_type=record.pay_type,
            check_date=record.check_date,
            week_key=record.week_key,
            work_week=record.work_week,
            check_number=record.check_number,
            created_by=record.created_by,
            hours=record.hours,
            ot_hours=record.ot_hours,
            holiday_hours=record.holiday_hours,
            pto_amount=record.pto_amount,
            pay_rate=record.pay_rate,
            relationship_details=tuple(
                RelationshipDetail.from_dict(d) for d in record.relationship_details or ()
            ),
            memo=record.memo,
            is_expense=record.is_expense,
            reviewed=record.reviewed,
            paid=record.paid,
            check_id=record.check_id,
        )


class CheckBuilder:
    """Builds checks from aggregated results.

    Derivation rules:
    - clientId: the single contributing client, else "multiple"
    - payType: the single contributing pay type, else "mixed"
    - primary client: largest contributing sub-total, first encountered on ties;
      its period configuration labels the check's work week
    """

    @staticmethod
    def primary_breakdown(result: AggregatedEmployeeResult) -> ClientBreakdown | None:
        primary: ClientBreakdown | None = None
        for breakdown in result.breakdowns:
            if primary is None or breakdown.amount > primary.amount:
                primary = breakdown
        return primary

    @staticmethod
    def derive_client_id(result: AggregatedEmployeeResult) -> str:
        client_ids = list(dict.fromkeys(b.client_id for b in result.breakdowns))
        if len(client_ids) == 1:
            return client_ids[0]
        return MULTIPLE

    @staticmethod
    def derive_pay_type(result: AggregatedEmployeeResult) -> str:
        pay_types = list(
            dict.fromkeys(
                c.relationship.pay_type.value
                for b in result.breakdowns
                for c in b.contributions
            )
        )
        if len(pay_types) == 1:
            return pay_types[0]
        return MIXED

    @staticmethod
    def work_week_label(check_date: date, client: ClientProfile | None) -> str:
        """Week-ending label from the client's periods, else the ISO week number."""
        if client is not None:
            label = week_ending_label(check_date, client.period_start_day, client.frequency)
            if label:
                return label
        return str(iso_week_number(check_date))

    @classmethod
    def build_employee_check(
        cls,
        result: AggregatedEmployeeResult,
        directory: Directory,
        company_id: str,
        check_number: int,
        created_by: str,
        default_check_date: date,
    ) -> IssuedCheck:
        primary = cls.primary_breakdown(result)
        primary_client = directory.clients.get(primary.client_id) if primary else None
        check_date = (
            (primary.check_date if primary else None)
            or result.check_date
            or default_check_date
        )

        contributions = [c for b in result.breakdowns for c in b.contributions]
        hourly = [c for c in contributions if c.relationship.pay_type is PayType.HOURLY]

        return IssuedCheck(
            company_id=company_id,
            employee_id=result.employee_id,
            employee_name=result.employee.name,
            amount=result.total,
            client_id=cls.derive_client_id(result),
            pay_type=cls.derive_pay_type(result),
            check_date=check_date,
            week_key=week_key(check_date) or "",
            work_week=cls.work_week_label(check_date, primary_client),
            check_number=check_number,
            created_by=created_by,
            hours=sum((c.pay_input.hours for c in hourly), ZERO),
            ot_hours=sum((c.pay_input.ot_hours for c in hourly), ZERO),
            holiday_hours=sum((c.pay_input.holiday_hours for c in hourly), ZERO),
            pto_amount=sum(
                (
                    c.pay_input.pto_amount
                    for c in contributions
                    if c.relationship.pay_type is PayType.PERDIEM
                ),
                ZERO,
            ),
            pay_rate=contributions[0].relationship.pay_rate if len(contributions) == 1 else None,
            relationship_details=tuple(
                RelationshipDetail.from_contribution(c, directory) for c in contributions
            ),
            memo=(primary.memo if primary else None) or result.memo,
        )

    @classmethod
    def build_expense_check(
        cls,
        expense: ExpenseEntry,
        directory: Directory,
        company_id: str,
        check_number: int,
        created_by: str,
        default_check_date: date,
    ) -> IssuedCheck:
        check_date = expense.check_date or default_check_date
        client = directory.clients.get(expense.client_id) if expense.client_id else None
        return IssuedCheck(
            company_id=company_id,
            employee_id="",
            employee_name=expense.payee,
            amount=expense.amount,
            client_id=expense.client_id or "",
            pay_type=PayType.EXPENSE.value,
            check_date=check_date,
            week_key=week_key(check_date) or "",
            work_week=cls.work_week_label(check_date, client),
            check_number=check_number,
            created_by=created_by,
            memo=expense.memo or expense.description,
            is_expense=True,
        )
