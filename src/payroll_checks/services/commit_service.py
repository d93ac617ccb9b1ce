"""Batch commit: validate, reserve numbers, build checks, persist."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date

from payroll_checks.calculators.aggregation import AggregationEngine
from payroll_checks.calculators.types import (
    ZERO,
    AggregatedEmployeeResult,
    BatchInput,
    ExpenseEntry,
)
from payroll_checks.services.check_builder import CheckBuilder, IssuedCheck
from payroll_checks.services.exceptions import (
    BatchCommitError,
    CheckWriteError,
    EmptyBatchError,
    NoBankConfiguredError,
    PartialWriteFailureError,
)
from payroll_checks.services.locking_service import (
    CheckNumberAllocator,
    CompanyLockRegistry,
    Reservation,
)
from payroll_checks.services.ports import BankCounterStore, CheckSink
from payroll_checks.services.state_machine import CommitState, CommitStateMachine

logger = logging.getLogger(__name__)


def numbering_order(
    results: Iterable[AggregatedEmployeeResult],
) -> list[AggregatedEmployeeResult]:
    """Deterministic check-number order: first name token, case-insensitive.

    Full name and employee id break ties so the order never depends on
    selection order or tab layout.
    """
    return sorted(
        results,
        key=lambda r: (r.employee.first_name_key, r.employee.name.casefold(), r.employee_id),
    )


class BatchCommitter:
    """Commits a batch of checks for one company.

    Steps:
    1) Aggregate every selected employee across all tabs
    2) Reject an empty batch (no nonzero employee, no expense entry)
    3) Order employees for numbering; expenses follow in input order
    4) Reserve a contiguous range under the company lock (floor 100)
    5) Build one check per employee / expense
    6) Write every check, then advance the counter once by the count

    A write failure leaves the counter untouched and surfaces how many
    checks landed.
    """

    def __init__(
        self,
        banks: BankCounterStore,
        sink: CheckSink,
        locks: CompanyLockRegistry | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.sink = sink
        self.allocator = CheckNumberAllocator(banks, locks)
        self.today = today

    async def commit(
        self,
        batch: BatchInput,
        created_by: str,
        exclude_employee_ids: Iterable[str] = (),
    ) -> list[IssuedCheck]:
        """Commit ``batch`` and return the created checks in number order."""
        company_id = batch.company_id
        machine = CommitStateMachine(company_id)
        machine.advance(CommitState.VALIDATING)

        excluded = set(exclude_employee_ids)
        results = [
            r for r in AggregationEngine.build_review(batch) if r.employee_id not in excluded
        ]
        expenses = [e for e in batch.expenses if e.amount != ZERO]

        if not results and not expenses:
            machine.advance(CommitState.IDLE)
            raise self._tag(EmptyBatchError(company_id), machine)

        ordered = numbering_order(results)
        count = len(ordered) + len(expenses)
        written: list[IssuedCheck] = []

        try:
            async with self.allocator.reserve(company_id, count) as reservation:
                machine.advance(CommitState.NUMBER_RESERVED)
                checks = self._build_checks(batch, ordered, expenses, reservation, created_by)

                machine.advance(CommitState.PERSISTING)
                await self._write_all(company_id, checks, written)
        except NoBankConfiguredError as exc:
            logger.error("Commit rejected: %s", exc)
            machine.advance(CommitState.IDLE)
            raise self._tag(exc, machine)
        except CheckWriteError as exc:
            machine.advance(CommitState.FAILED)
            raise self._tag(exc, machine)
        except Exception as exc:
            if machine.state is not CommitState.PERSISTING:
                raise
            # Every check landed but the counter update did not
            logger.exception("Bank counter update failed for company %s", company_id)
            machine.advance(CommitState.FAILED)
            raise self._tag(
                PartialWriteFailureError(company_id, count, exc, written), machine
            ) from exc

        machine.advance(CommitState.COMMITTED)
        logger.info(
            "Committed %d checks for company %s (%s-%s)",
            len(written),
            company_id,
            reservation.start,
            reservation.next_after - 1,
        )
        return written

    def _build_checks(
        self,
        batch: BatchInput,
        ordered: list[AggregatedEmployeeResult],
        expenses: list[ExpenseEntry],
        reservation: Reservation,
        created_by: str,
    ) -> list[IssuedCheck]:
        default_date = batch.check_date or self.today()
        numbers = iter(reservation.numbers)
        checks = [
            CheckBuilder.build_employee_check(
                result,
                batch.directory,
                batch.company_id,
                next(numbers),
                created_by,
                default_date,
            )
            for result in ordered
        ]
        checks.extend(
            CheckBuilder.build_expense_check(
                expense,
                batch.directory,
                batch.company_id,
                next(numbers),
                created_by,
                default_date,
            )
            for expense in expenses
        )
        return checks

    async def _write_all(
        self, company_id: str, checks: list[IssuedCheck], written: list[IssuedCheck]
    ) -> None:
        """Write checks in order, appending each success to ``written``."""
        for check in checks:
            try:
                check_id = await self.sink.write_check(check)
            except Exception as exc:
                logger.exception(
                    "Writing check %s for company %s failed after %d written",
                    check.check_number,
                    company_id,
                    len(written),
                )
                if written:
                    raise PartialWriteFailureError(
                        company_id, len(checks), exc, list(written)
                    ) from exc
                raise CheckWriteError(company_id, len(checks), exc) from exc
            written.append(replace(check, check_id=check_id))

    @staticmethod
    def _tag(exc: BatchCommitError, machine: CommitStateMachine) -> BatchCommitError:
        exc.state = machine.state
        return exc
