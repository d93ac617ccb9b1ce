"""Per-client totals over committed checks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from payroll_checks.calculators.types import ZERO, PayType
from payroll_checks.services.check_builder import IssuedCheck


@dataclass
class ClientSummary:
    """Hourly vs. per-diem split of the checks touching one client."""

    client_id: str
    client_name: str
    check_numbers: set[int] = field(default_factory=set)
    hourly_amount: Decimal = ZERO
    perdiem_amount: Decimal = ZERO
    expense_amount: Decimal = ZERO

    @property
    def check_count(self) -> int:
        return len(self.check_numbers)

    @property
    def total_amount(self) -> Decimal:
        return self.hourly_amount + self.perdiem_amount + self.expense_amount


def summarize_checks(checks: Iterable[IssuedCheck]) -> list[ClientSummary]:
    """Group check amounts by client, in first-encounter order.

    Relationship details are authoritative; checks without them (expense
    checks) are attributed whole to their own client and pay type.
    """
    summaries: dict[str, ClientSummary] = {}

    def summary_for(client_id: str, client_name: str) -> ClientSummary:
        summary = summaries.get(client_id)
        if summary is None:
            summary = ClientSummary(client_id=client_id, client_name=client_name)
            summaries[client_id] = summary
        return summary

    for check in checks:
        if check.relationship_details:
            for detail in check.relationship_details:
                summary = summary_for(detail.client_id, detail.client_name)
                summary.check_numbers.add(check.check_number)
                if detail.pay_type == PayType.HOURLY.value:
                    summary.hourly_amount += detail.amount
                else:
                    summary.perdiem_amount += detail.amount
            continue

        summary = summary_for(check.client_id, check.client_id)
        summary.check_numbers.add(check.check_number)
        if check.pay_type == PayType.HOURLY.value:
            summary.hourly_amount += check.amount
        elif check.pay_type == PayType.PERDIEM.value:
            summary.perdiem_amount += check.amount
        else:
            summary.expense_amount += check.amount

    return list(summaries.values())
