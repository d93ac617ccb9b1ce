"""Protocols for the collaborators the commit pipeline talks to.

The SQLAlchemy adapters in ``payroll_checks.services.persistence`` implement
all three; tests use in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from payroll_checks.calculators.types import ClientProfile, EmployeeProfile

if TYPE_CHECKING:
    from payroll_checks.services.check_builder import IssuedCheck


@dataclass(frozen=True)
class BankInfo:
    """Bank counter snapshot for one company."""

    bank_id: str
    company_id: str
    next_check_number: int
    bank_name: str = ""


@dataclass(frozen=True)
class CompanyInfo:
    company_id: str
    name: str
    active: bool = True


class DirectoryReader(Protocol):
    """Read-only directory snapshots taken at session start."""

    async def get_employees(self, company_id: str) -> list[EmployeeProfile]:
        ...

    async def get_clients(self) -> list[ClientProfile]:
        ...

    async def get_companies(self, role: str, company_ids: list[str]) -> list[CompanyInfo]:
        ...


class BankCounterStore(Protocol):
    """Company check-number counter."""

    async def get_bank(self, company_id: str) -> BankInfo | None:
        ...

    async def increment_bank(self, bank_id: str, delta: int) -> None:
        ...


class CheckSink(Protocol):
    """Append-only check storage, one call per check."""

    async def write_check(self, check: IssuedCheck) -> str:
        ...


class CheckReader(Protocol):
    """Committed checks, read back for reporting."""

    async def list_issued_checks(
        self, company_id: str, week_key: str | None = None
    ) -> list[IssuedCheck]:
        ...
