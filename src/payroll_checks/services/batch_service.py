"""Batch session facade: directory snapshot, review and commit."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_checks.calculators.aggregation import AggregationEngine
from payroll_checks.calculators.types import (
    ZERO,
    AggregatedEmployeeResult,
    BatchInput,
    Directory,
    ExpenseEntry,
    MissingRelationship,
    Tab,
)
from payroll_checks.services.check_builder import IssuedCheck
from payroll_checks.services.commit_service import BatchCommitter
from payroll_checks.services.locking_service import CompanyLockRegistry
from payroll_checks.services.persistence import (
    SqlBankCounterStore,
    SqlCheckSink,
    SqlDirectoryReader,
)
from payroll_checks.services.ports import (
    BankCounterStore,
    CheckReader,
    CheckSink,
    DirectoryReader,
)
from payroll_checks.services.summary import ClientSummary, summarize_checks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewResult:
    """Read-only preview of a batch."""

    results: tuple[AggregatedEmployeeResult, ...]
    missing: tuple[MissingRelationship, ...]

    @property
    def total(self) -> Decimal:
        return sum((r.total for r in self.results), ZERO)


class BatchService:
    """Hosts one operator session against the directory and bank.

    The directory is read once per call and frozen into the ``BatchInput``
    snapshot; the calculators never see live records.
    """

    def __init__(
        self,
        directory: DirectoryReader,
        banks: BankCounterStore,
        sink: CheckSink,
        checks: CheckReader,
        locks: CompanyLockRegistry | None = None,
    ):
        self.directory = directory
        self.checks = checks
        self.committer = BatchCommitter(banks, sink, locks)

    @classmethod
    def from_session(
        cls, session: AsyncSession, locks: CompanyLockRegistry | None = None
    ) -> BatchService:
        sink = SqlCheckSink(session)
        return cls(
            SqlDirectoryReader(session),
            SqlBankCounterStore(session),
            sink,
            sink,
            locks,
        )

    async def load_directory(self, company_id: str) -> Directory:
        employees = await self.directory.get_employees(company_id)
        clients = await self.directory.get_clients()
        return Directory.build(employees, clients)

    async def snapshot(
        self,
        company_id: str,
        tabs: Iterable[Tab],
        expenses: Iterable[ExpenseEntry] = (),
        check_date: date | None = None,
    ) -> BatchInput:
        return BatchInput(
            company_id=company_id,
            directory=await self.load_directory(company_id),
            tabs=tuple(tabs),
            expenses=tuple(expenses),
            check_date=check_date,
        )

    async def review(self, batch: BatchInput) -> ReviewResult:
        return ReviewResult(
            results=tuple(AggregationEngine.build_review(batch)),
            missing=tuple(AggregationEngine.find_missing_relationships(batch)),
        )

    async def commit(
        self,
        batch: BatchInput,
        created_by: str,
        exclude_employee_ids: Iterable[str] = (),
    ) -> list[IssuedCheck]:
        missing = AggregationEngine.find_missing_relationships(batch)
        if missing:
            logger.warning(
                "Committing company %s with %d entries lacking a relationship",
                batch.company_id,
                len(missing),
            )
        return await self.committer.commit(batch, created_by, exclude_employee_ids)

    async def summarize(
        self, company_id: str, week_key: str | None = None
    ) -> list[ClientSummary]:
        """Per-client hourly / per-diem / expense totals of committed checks."""
        return summarize_checks(await self.checks.list_issued_checks(company_id, week_key))
