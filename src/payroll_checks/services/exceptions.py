"""Commit error taxonomy.

Pure calculation problems are never raised: they come back as None or as
``MissingRelationship`` records. Everything here halts a commit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payroll_checks.services.check_builder import IssuedCheck
    from payroll_checks.services.state_machine import CommitState


class BatchCommitError(Exception):
    """Base class for commit failures."""

    code = "COMMIT_FAILED"

    def __init__(self, company_id: str, message: str):
        self.company_id = company_id
        self.state: CommitState | None = None
        super().__init__(message)


class EmptyBatchError(BatchCommitError):
    """No employee or expense entry has a nonzero total. Nothing changed."""

    code = "EMPTY_BATCH"

    def __init__(self, company_id: str):
        super().__init__(
            company_id,
            f"Nothing to commit for company {company_id}: "
            "no employee or expense entry has a nonzero amount",
        )


class NoBankConfiguredError(BatchCommitError):
    """Company has no bank record to number checks against. Nothing written."""

    code = "NO_BANK_CONFIGURED"

    def __init__(self, company_id: str):
        super().__init__(company_id, f"No bank configured for company {company_id}")


class CheckWriteError(BatchCommitError):
    """A check write failed before any check of the batch was written."""

    code = "CHECK_WRITE_FAILED"

    def __init__(
        self,
        company_id: str,
        attempted_count: int,
        cause: BaseException,
        written_checks: list[IssuedCheck] | None = None,
        message: str | None = None,
    ):
        self.attempted_count = attempted_count
        self.written_checks = list(written_checks or [])
        self.cause = cause
        super().__init__(
            company_id,
            message
            or (
                f"Check write failed for company {company_id} before any of "
                f"{attempted_count} checks were written"
            ),
        )

    @property
    def written_count(self) -> int:
        return len(self.written_checks)


class PartialWriteFailureError(CheckWriteError):
    """Some checks were written, then a write failed.

    The bank counter was not advanced. The operator must reconcile the
    written checks before retrying, excluding the employees already paid.
    """

    code = "PARTIAL_WRITE_FAILURE"

    def __init__(
        self,
        company_id: str,
        attempted_count: int,
        cause: BaseException,
        written_checks: list[IssuedCheck],
    ):
        super().__init__(
            company_id,
            attempted_count,
            cause,
            written_checks=written_checks,
            message=(
                f"Partial write for company {company_id}: {len(written_checks)} of "
                f"{attempted_count} checks written before failure; "
                "bank counter not advanced, reconcile before retrying"
            ),
        )

    @property
    def written_employee_ids(self) -> list[str]:
        return [c.employee_id for c in self.written_checks if c.employee_id]


class BatchRolledBackError(CheckWriteError):
    """A write failed and the host rolled the whole batch back.

    Nothing the sink accepted survived, so no check was issued and the bank
    counter is unchanged. Retrying does not need any exclusions.
    """

    code = "BATCH_ROLLED_BACK"

    def __init__(self, error: CheckWriteError):
        super().__init__(
            error.company_id,
            error.attempted_count,
            error.cause,
            message=(
                f"Commit for company {error.company_id} rolled back: none of "
                f"{error.attempted_count} checks were issued and the bank counter "
                "is unchanged"
            ),
        )
        self.state = error.state
