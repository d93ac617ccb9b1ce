"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from payroll_checks.calculators.types import (
    AggregatedEmployeeResult,
    ClientBreakdown,
    ExpenseEntry,
    OtherPayItem,
    RelationshipInput,
    Tab,
    TabEntry,
    Weekday,
    frozen_mapping,
)
from payroll_checks.services.batch_service import ReviewResult
from payroll_checks.services.check_builder import IssuedCheck
from payroll_checks.services.summary import ClientSummary


# ============================================================================
# Request schemas
# ============================================================================


class OtherPayItemSchema(BaseModel):
    description: str = ""
    amount: Decimal


class RelationshipInputSchema(BaseModel):
    """Pay facts for one relationship; only fields matching its pay type are read."""

    hours: Decimal = Decimal("0")
    ot_hours: Decimal = Decimal("0")
    holiday_hours: Decimal = Decimal("0")
    perdiem_amount: Decimal = Decimal("0")
    perdiem_breakdown: bool = False
    perdiem_days: dict[Weekday, Decimal] = Field(default_factory=dict)
    pto_amount: Decimal = Decimal("0")
    other_pay: list[OtherPayItemSchema] = Field(default_factory=list)

    def to_input(self) -> RelationshipInput:
        return RelationshipInput(
            hours=self.hours,
            ot_hours=self.ot_hours,
            holiday_hours=self.holiday_hours,
            perdiem_amount=self.perdiem_amount,
            perdiem_breakdown=self.perdiem_breakdown,
            perdiem_days=frozen_mapping(self.perdiem_days),
            pto_amount=self.pto_amount,
            other_pay=tuple(
                OtherPayItem(description=item.description, amount=item.amount)
                for item in self.other_pay
            ),
        )


class TabEntrySchema(BaseModel):
    employee_id: str
    selected: bool = True
    inputs: dict[str, RelationshipInputSchema] = Field(default_factory=dict)
    selected_relationship_ids: list[str] | None = None
    check_date: date | None = None
    memo: str | None = None

    def to_entry(self) -> TabEntry:
        return TabEntry(
            employee_id=self.employee_id,
            selected=self.selected,
            inputs=frozen_mapping({k: v.to_input() for k, v in self.inputs.items()}),
            selected_relationship_ids=(
                frozenset(self.selected_relationship_ids)
                if self.selected_relationship_ids is not None
                else None
            ),
            check_date=self.check_date,
            memo=self.memo,
        )


class TabSchema(BaseModel):
    tab_id: str
    client_id: str
    entries: list[TabEntrySchema] = Field(default_factory=list)

    def to_tab(self) -> Tab:
        return Tab(
            tab_id=self.tab_id,
            client_id=self.client_id,
            entries=tuple(entry.to_entry() for entry in self.entries),
        )


class ExpenseEntrySchema(BaseModel):
    payee: str
    amount: Decimal
    client_id: str | None = None
    check_date: date | None = None
    description: str | None = None
    memo: str | None = None

    def to_expense(self) -> ExpenseEntry:
        return ExpenseEntry(**self.model_dump())


class BatchRequest(BaseModel):
    """Full tab data for one company."""

    tabs: list[TabSchema] = Field(default_factory=list)
    expenses: list[ExpenseEntrySchema] = Field(default_factory=list)
    check_date: date | None = None

    def to_tabs(self) -> list[Tab]:
        return [tab.to_tab() for tab in self.tabs]

    def to_expenses(self) -> list[ExpenseEntry]:
        return [expense.to_expense() for expense in self.expenses]


class CommitRequest(BatchRequest):
    # Employees already paid by an earlier, partially written commit
    exclude_employee_ids: list[str] = Field(default_factory=list)


# ============================================================================
# Review schemas
# ============================================================================


class LineEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    description: str
    amount: Decimal
    quantity: Decimal | None = None
    rate: Decimal | None = None


class ClientBreakdownResponse(BaseModel):
    client_id: str
    client_name: str
    pay_type_label: str
    hourly_amount: Decimal
    perdiem_amount: Decimal
    amount: Decimal
    lines: list[LineEntryResponse]

    @classmethod
    def from_breakdown(cls, breakdown: ClientBreakdown) -> ClientBreakdownResponse:
        return cls(
            client_id=breakdown.client_id,
            client_name=breakdown.client_name,
            pay_type_label=breakdown.pay_type_label,
            hourly_amount=breakdown.hourly_amount,
            perdiem_amount=breakdown.perdiem_amount,
            amount=breakdown.amount,
            lines=[LineEntryResponse.model_validate(line) for line in breakdown.lines],
        )


class MissingRelationshipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    tab_id: str
    client_id: str
    reason: str


class EmployeeReviewResponse(BaseModel):
    employee_id: str
    employee_name: str
    total: Decimal
    client_names: list[str]
    breakdowns: list[ClientBreakdownResponse]

    @classmethod
    def from_result(cls, result: AggregatedEmployeeResult) -> EmployeeReviewResponse:
        return cls(
            employee_id=result.employee_id,
            employee_name=result.employee.name,
            total=result.total,
            client_names=list(result.client_names),
            breakdowns=[ClientBreakdownResponse.from_breakdown(b) for b in result.breakdowns],
        )


class ReviewResponse(BaseModel):
    employees: list[EmployeeReviewResponse]
    missing_relationships: list[MissingRelationshipResponse]
    total: Decimal

    @classmethod
    def from_review(cls, review: ReviewResult) -> ReviewResponse:
        return cls(
            employees=[EmployeeReviewResponse.from_result(r) for r in review.results],
            missing_relationships=[
                MissingRelationshipResponse.model_validate(m) for m in review.missing
            ],
            total=review.total,
        )


# ============================================================================
# Commit schemas
# ============================================================================


class CheckResponse(BaseModel):
    """A created check."""

    check_id: str | None
    check_number: int
    company_id: str
    employee_id: str
    employee_name: str
    amount: Decimal
    client_id: str
    pay_type: str
    check_date: date = Field(serialization_alias="date")
    week_key: str
    work_week: str
    hours: Decimal
    ot_hours: Decimal
    holiday_hours: Decimal
    pto_amount: Decimal
    relationship_details: list[dict[str, Any]]
    memo: str | None = None
    reviewed: bool
    paid: bool
    created_by: str

    @classmethod
    def from_check(cls, check: IssuedCheck) -> CheckResponse:
        return cls(
            check_id=check.check_id,
            check_number=check.check_number,
            company_id=check.company_id,
            employee_id=check.employee_id,
            employee_name=check.employee_name,
            amount=check.amount,
            client_id=check.client_id,
            pay_type=check.pay_type,
            check_date=check.check_date,
            week_key=check.week_key,
            work_week=check.work_week,
            hours=check.hours,
            ot_hours=check.ot_hours,
            holiday_hours=check.holiday_hours,
            pto_amount=check.pto_amount,
            relationship_details=[d.to_dict() for d in check.relationship_details],
            memo=check.memo,
            reviewed=check.reviewed,
            paid=check.paid,
            created_by=check.created_by,
        )


class CommitResponse(BaseModel):
    checks: list[CheckResponse]
    count: int
    first_check_number: int
    last_check_number: int


# ============================================================================
# Report schemas
# ============================================================================


class ClientSummaryResponse(BaseModel):
    client_id: str
    client_name: str
    check_numbers: list[int]
    check_count: int
    hourly_amount: Decimal
    perdiem_amount: Decimal
    expense_amount: Decimal
    total_amount: Decimal

    @classmethod
    def from_summary(cls, summary: ClientSummary) -> ClientSummaryResponse:
        return cls(
            client_id=summary.client_id,
            client_name=summary.client_name,
            check_numbers=sorted(summary.check_numbers),
            check_count=summary.check_count,
            hourly_amount=summary.hourly_amount,
            perdiem_amount=summary.perdiem_amount,
            expense_amount=summary.expense_amount,
            total_amount=summary.total_amount,
        )


class CheckSummaryResponse(BaseModel):
    """Committed checks of a company, totalled per client."""

    company_id: str
    week_key: str | None = None
    clients: list[ClientSummaryResponse]
    total: Decimal


class PeriodResponse(BaseModel):
    """Period information; nulls mean the date could not be read."""

    client_id: str
    check_date: str
    number: int | None = None
    label: str | None = None
    period_end: date | None = None
    week_ending: str | None = None
    week_key: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: str
    written_count: int | None = None
