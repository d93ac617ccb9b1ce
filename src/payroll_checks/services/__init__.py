"""Check batch services."""

from payroll_checks.services.batch_service import BatchService, ReviewResult
from payroll_checks.services.check_builder import CheckBuilder, IssuedCheck
from payroll_checks.services.commit_service import BatchCommitter
from payroll_checks.services.exceptions import (
    BatchCommitError,
    CheckWriteError,
    EmptyBatchError,
    NoBankConfiguredError,
    PartialWriteFailureError,
)
from payroll_checks.services.state_machine import (
    CommitState,
    CommitStateMachine,
    InvalidTransitionError,
)

__all__ = [
    "BatchService",
    "ReviewResult",
    "CheckBuilder",
    "IssuedCheck",
    "BatchCommitter",
    "BatchCommitError",
    "CheckWriteError",
    "EmptyBatchError",
    "NoBankConfiguredError",
    "PartialWriteFailureError",
    "CommitState",
    "CommitStateMachine",
    "InvalidTransitionError",
]
