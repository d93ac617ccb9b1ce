"""Payroll aggregation engine - consolidates tab entries per employee."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from payroll_checks.calculators.relationship_resolver import RelationshipResolver
from payroll_checks.calculators.types import (
    UNKNOWN_EMPLOYEE,
    ZERO,
    AggregatedEmployeeResult,
    BatchInput,
    ClientBreakdown,
    Directory,
    EmployeeProfile,
    LineEntry,
    MissingRelationship,
    PayRelationship,
    PayType,
    RelationshipAmount,
    RelationshipInput,
    Tab,
    TabEntry,
    Weekday,
)

OVERTIME_MULTIPLIER = Decimal("1.5")
CENTS = Decimal("0.01")

EMPTY_INPUT = RelationshipInput()


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


class AggregationEngine:
    """Consolidates every tab an employee is selected in into one total.

    Per relationship (stable order: tab order, then directory order):
    - Hourly: hours*rate + otHours*rate*1.5 + holidayHours*rate + other pay
    - Per-diem: sum of the seven days in breakdown mode, else the flat
      amount; plus the PTO dollar amount and other pay
    - Legacy employees (no relationships) use the same formula with the
      employee's single rate

    All methods are pure: the same ``BatchInput`` always yields equal
    results in the same order.
    """

    @staticmethod
    def compute_relationship_amount(
        relationship: PayRelationship,
        pay_input: RelationshipInput,
        tab_id: str,
    ) -> RelationshipAmount:
        """Sub-amount contributed by one relationship on one tab."""
        lines: list[LineEntry] = []
        hourly = ZERO
        perdiem = ZERO
        rate = relationship.pay_rate

        if relationship.pay_type is PayType.HOURLY:
            ot_rate = rate * OVERTIME_MULTIPLIER
            for description, quantity, line_rate in (
                ("Regular", pay_input.hours, rate),
                ("Overtime", pay_input.ot_hours, ot_rate),
                ("Holiday", pay_input.holiday_hours, rate),
            ):
                if not quantity:
                    continue
                # Subtotal is the sum of the rounded lines
                amount = round_to_cents(quantity * line_rate)
                hourly += amount
                lines.append(
                    LineEntry(
                        description=description,
                        amount=amount,
                        quantity=quantity,
                        rate=line_rate,
                    )
                )
            other_lines, other_total = AggregationEngine._other_pay(pay_input)
            hourly = round_to_cents(hourly + other_total)
            lines.extend(other_lines)

        elif relationship.pay_type is PayType.PERDIEM:
            if pay_input.perdiem_breakdown:
                for day in Weekday:
                    amount = pay_input.perdiem_days.get(day, ZERO)
                    if amount:
                        perdiem += amount
                        lines.append(LineEntry(description=f"Per diem {day.short}", amount=amount))
            elif pay_input.perdiem_amount:
                perdiem = pay_input.perdiem_amount
                lines.append(LineEntry(description="Per diem", amount=perdiem))

            # PTO is a flat dollar figure, added even when the per diem is zero
            if pay_input.pto_amount:
                perdiem += pay_input.pto_amount
                lines.append(LineEntry(description="PTO", amount=pay_input.pto_amount))

            other_lines, other_total = AggregationEngine._other_pay(pay_input)
            perdiem = round_to_cents(perdiem + other_total)
            lines.extend(other_lines)

        return RelationshipAmount(
            relationship=relationship,
            tab_id=tab_id,
            pay_input=pay_input,
            hourly_amount=hourly,
            perdiem_amount=perdiem,
            lines=tuple(lines),
        )

    @staticmethod
    def _other_pay(pay_input: RelationshipInput) -> tuple[list[LineEntry], Decimal]:
        lines = [
            LineEntry(description=item.description or "Other pay", amount=item.amount)
            for item in pay_input.other_pay
            if item.amount
        ]
        return lines, sum((line.amount for line in lines), ZERO)

    @classmethod
    def compute_employee_total(
        cls,
        employee: EmployeeProfile,
        entries: list[tuple[Tab, TabEntry]],
        directory: Directory,
    ) -> AggregatedEmployeeResult:
        """Consolidate all of one employee's selected tab entries."""
        contributions: list[tuple[RelationshipAmount, TabEntry]] = []
        missing: list[MissingRelationship] = []

        for tab, entry in entries:
            if not entry.selected:
                continue
            resolved = RelationshipResolver.resolve_for_tab(employee, tab.client_id)
            if not resolved:
                missing.append(
                    MissingRelationship(
                        employee_id=employee.employee_id,
                        tab_id=tab.tab_id,
                        client_id=tab.client_id,
                    )
                )
                continue

            for rel in RelationshipResolver.selected_for_entry(employee, tab.client_id, entry):
                pay_input = entry.inputs.get(rel.relationship_id, EMPTY_INPUT)
                contribution = cls.compute_relationship_amount(rel, pay_input, tab.tab_id)
                if contribution.amount != ZERO:
                    contributions.append((contribution, entry))

        breakdowns = cls._group_by_client(contributions, directory)
        total = sum((b.amount for b in breakdowns), ZERO)

        check_date = next(
            (entry.check_date for _, entry in entries if entry.selected and entry.check_date),
            None,
        )
        memo = next(
            (entry.memo for _, entry in entries if entry.selected and entry.memo),
            None,
        )

        return AggregatedEmployeeResult(
            employee=employee,
            total=total,
            breakdowns=breakdowns,
            client_names=tuple(b.client_name for b in breakdowns),
            missing=tuple(missing),
            check_date=check_date,
            memo=memo,
        )

    @staticmethod
    def _group_by_client(
        contributions: list[tuple[RelationshipAmount, TabEntry]],
        directory: Directory,
    ) -> tuple[ClientBreakdown, ...]:
        grouped: dict[str, list[tuple[RelationshipAmount, TabEntry]]] = {}
        for contribution, entry in contributions:
            grouped.setdefault(contribution.relationship.client_id, []).append(
                (contribution, entry)
            )

        breakdowns: list[ClientBreakdown] = []
        for client_id, items in grouped.items():
            amounts = [c for c, _ in items]
            pay_types = {c.relationship.pay_type for c in amounts}
            breakdowns.append(
                ClientBreakdown(
                    client_id=client_id,
                    client_name=directory.client_name(client_id),
                    pay_type_label=pay_type_label(pay_types),
                    hourly_amount=sum((c.hourly_amount for c in amounts), ZERO),
                    perdiem_amount=sum((c.perdiem_amount for c in amounts), ZERO),
                    lines=tuple(line for c in amounts for line in c.lines),
                    contributions=tuple(amounts),
                    check_date=next((e.check_date for _, e in items if e.check_date), None),
                    memo=next((e.memo for _, e in items if e.memo), None),
                )
            )
        return tuple(breakdowns)

    @staticmethod
    def entries_by_employee(batch: BatchInput) -> dict[str, list[tuple[Tab, TabEntry]]]:
        """Group every tab entry by employee, in first-encounter order."""
        grouped: dict[str, list[tuple[Tab, TabEntry]]] = {}
        for tab in batch.tabs:
            for entry in tab.entries:
                grouped.setdefault(entry.employee_id, []).append((tab, entry))
        return grouped

    @classmethod
    def aggregate(cls, batch: BatchInput) -> list[AggregatedEmployeeResult]:
        """Results for every employee known to the directory, zero totals included.

        Entries for employees outside the snapshot are reported by
        ``find_missing_relationships``.
        """
        results: list[AggregatedEmployeeResult] = []
        for employee_id, entries in cls.entries_by_employee(batch).items():
            employee = batch.directory.employees.get(employee_id)
            if employee is None:
                continue
            results.append(cls.compute_employee_total(employee, entries, batch.directory))
        return results

    @classmethod
    def build_review(cls, batch: BatchInput) -> list[AggregatedEmployeeResult]:
        """Employees with a nonzero consolidated total, in first-encounter order.

        Employees selected speculatively with nothing entered are dropped.
        """
        return [result for result in cls.aggregate(batch) if result.total != ZERO]

    @classmethod
    def find_missing_relationships(cls, batch: BatchInput) -> list[MissingRelationship]:
        """Every selected tab entry that cannot be paid, in first-encounter order.

        Covers entries whose client the employee has no relationship with and
        entries for employees absent from the directory snapshot.
        """
        missing: list[MissingRelationship] = []
        for employee_id, entries in cls.entries_by_employee(batch).items():
            employee = batch.directory.employees.get(employee_id)
            if employee is None:
                missing.extend(
                    MissingRelationship(
                        employee_id=employee_id,
                        tab_id=tab.tab_id,
                        client_id=tab.client_id,
                        reason=UNKNOWN_EMPLOYEE,
                    )
                    for tab, entry in entries
                    if entry.selected
                )
                continue
            missing.extend(cls.compute_employee_total(employee, entries, batch.directory).missing)
        return missing


def pay_type_label(pay_types: set[PayType]) -> str:
    if pay_types == {PayType.HOURLY}:
        return "Hourly"
    if pay_types == {PayType.PERDIEM}:
        return "Per Diem"
    return "Hourly + Per Diem"


def build_review(batch: BatchInput) -> list[AggregatedEmployeeResult]:
    """Read-only review entry point."""
    return AggregationEngine.build_review(batch)
