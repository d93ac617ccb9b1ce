"""Type definitions for the review and commit pipeline.

Everything here is an immutable snapshot. The editing surface builds a
``BatchInput`` from its own mutable state and hands it to the calculators;
nothing in the pipeline mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

ZERO = Decimal("0")

# Sentinels: the all-clients tab and check clientId, and the mixed check payType
MULTIPLE = "multiple"
MIXED = "mixed"

# Relationship id used when an employee has no relationships at all
LEGACY_RELATIONSHIP_ID = "legacy"


class PayType(str, Enum):
    """Pay types a relationship (or check) can carry."""

    HOURLY = "hourly"
    PERDIEM = "perdiem"
    MIXED = "mixed"
    EXPENSE = "expense"


class PeriodStartDay(str, Enum):
    """Day a client's pay period starts on."""

    MONDAY = "monday"
    SUNDAY = "sunday"


class PayFrequency(str, Enum):
    """How often a client pays."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"


class Weekday(str, Enum):
    """Per-diem breakdown days, Monday first."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def short(self) -> str:
        return self.value[:3].capitalize()


def frozen_mapping(data: Mapping[Any, Any] | None = None) -> Mapping[Any, Any]:
    """Wrap a mapping in a read-only proxy."""
    return MappingProxyType(dict(data or {}))


# ============================================================================
# Directory snapshot
# ============================================================================


@dataclass(frozen=True)
class ClientProfile:
    """Client (department) with its own pay-period configuration."""

    client_id: str
    name: str
    active: bool = True
    period_start_day: PeriodStartDay = PeriodStartDay.MONDAY
    frequency: PayFrequency = PayFrequency.WEEKLY


@dataclass(frozen=True)
class PayRelationship:
    """Pay arrangement between one employee and one client."""

    relationship_id: str
    client_id: str
    pay_type: PayType
    pay_rate: Decimal = ZERO
    active: bool = True


@dataclass(frozen=True)
class EmployeeProfile:
    """Employee with relationship-scoped pay.

    ``legacy_pay_type`` and ``legacy_pay_rate`` only apply when
    ``relationships`` is empty.
    """

    employee_id: str
    name: str
    active: bool = True
    relationships: tuple[PayRelationship, ...] = ()
    legacy_pay_type: PayType = PayType.HOURLY
    legacy_pay_rate: Decimal = ZERO

    @property
    def first_name_key(self) -> str:
        """First token of the display name, case-folded."""
        tokens = self.name.split()
        return tokens[0].casefold() if tokens else ""


@dataclass(frozen=True)
class Directory:
    """Read-only snapshot of employees and clients for one session."""

    employees: Mapping[str, EmployeeProfile] = field(default_factory=frozen_mapping)
    clients: Mapping[str, ClientProfile] = field(default_factory=frozen_mapping)

    @classmethod
    def build(
        cls,
        employees: list[EmployeeProfile] | tuple[EmployeeProfile, ...],
        clients: list[ClientProfile] | tuple[ClientProfile, ...],
    ) -> Directory:
        return cls(
            employees=frozen_mapping({e.employee_id: e for e in employees}),
            clients=frozen_mapping({c.client_id: c for c in clients}),
        )

    def client_name(self, client_id: str) -> str:
        client = self.clients.get(client_id)
        return client.name if client else client_id


# ============================================================================
# Operator input
# ============================================================================


@dataclass(frozen=True)
class OtherPayItem:
    """Free-form extra pay line (bonus, reimbursement, ...)."""

    description: str
    amount: Decimal


@dataclass(frozen=True)
class RelationshipInput:
    """Pay facts entered for one relationship on one tab.

    Hourly fields and per-diem fields are both optional; only the ones
    matching the relationship's pay type are read.
    """

    hours: Decimal = ZERO
    ot_hours: Decimal = ZERO
    holiday_hours: Decimal = ZERO
    perdiem_amount: Decimal = ZERO
    perdiem_breakdown: bool = False
    perdiem_days: Mapping[Weekday, Decimal] = field(default_factory=frozen_mapping)
    pto_amount: Decimal = ZERO
    other_pay: tuple[OtherPayItem, ...] = ()


@dataclass(frozen=True)
class TabEntry:
    """One employee on one client tab."""

    employee_id: str
    selected: bool = True
    inputs: Mapping[str, RelationshipInput] = field(default_factory=frozen_mapping)
    # None means "use the default selection for this tab"
    selected_relationship_ids: frozenset[str] | None = None
    check_date: date | None = None
    memo: str | None = None


@dataclass(frozen=True)
class Tab:
    """Operator-facing grouping of entries by client."""

    tab_id: str
    client_id: str
    entries: tuple[TabEntry, ...] = ()


@dataclass(frozen=True)
class ExpenseEntry:
    """Non-employee disbursement."""

    payee: str
    amount: Decimal
    client_id: str | None = None
    check_date: date | None = None
    description: str | None = None
    memo: str | None = None


@dataclass(frozen=True)
class BatchInput:
    """Full tab-data structure for one company and one session."""

    company_id: str
    directory: Directory
    tabs: tuple[Tab, ...] = ()
    expenses: tuple[ExpenseEntry, ...] = ()
    check_date: date | None = None


# ============================================================================
# Aggregation results
# ============================================================================


@dataclass(frozen=True)
class LineEntry:
    """Itemized line of a client breakdown."""

    description: str
    amount: Decimal
    quantity: Decimal | None = None
    rate: Decimal | None = None


@dataclass(frozen=True)
class RelationshipAmount:
    """What one relationship contributed on one tab."""

    relationship: PayRelationship
    tab_id: str
    pay_input: RelationshipInput
    hourly_amount: Decimal
    perdiem_amount: Decimal
    lines: tuple[LineEntry, ...]

    @property
    def amount(self) -> Decimal:
        return self.hourly_amount + self.perdiem_amount


@dataclass(frozen=True)
class ClientBreakdown:
    """Per-client slice of one employee's total."""

    client_id: str
    client_name: str
    pay_type_label: str
    hourly_amount: Decimal
    perdiem_amount: Decimal
    lines: tuple[LineEntry, ...]
    contributions: tuple[RelationshipAmount, ...] = ()
    check_date: date | None = None
    memo: str | None = None

    @property
    def amount(self) -> Decimal:
        return self.hourly_amount + self.perdiem_amount


# MissingRelationship reasons
NO_RELATIONSHIP = "no_relationship"
UNKNOWN_EMPLOYEE = "unknown_employee"


@dataclass(frozen=True)
class MissingRelationship:
    """Selected tab entry that contributes nothing because nothing pays it.

    Either the employee has no relationship with the tab's client, or the
    employee is not in the directory snapshot at all (inactive or removed).
    """

    employee_id: str
    tab_id: str
    client_id: str
    reason: str = NO_RELATIONSHIP


@dataclass(frozen=True)
class AggregatedEmployeeResult:
    """One employee's consolidated disbursement across every tab."""

    employee: EmployeeProfile
    total: Decimal
    breakdowns: tuple[ClientBreakdown, ...]
    client_names: tuple[str, ...]
    missing: tuple[MissingRelationship, ...] = ()
    check_date: date | None = None
    memo: str | None = None

    @property
    def employee_id(self) -> str:
        return self.employee.employee_id
