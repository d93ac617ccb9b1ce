"""Batch review and commit, check summary and period endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, status

from payroll_checks.api.dependencies import CommitLocks, DbSession, UserId
from payroll_checks.api.schemas import (
    BatchRequest,
    CheckResponse,
    CheckSummaryResponse,
    ClientSummaryResponse,
    CommitRequest,
    CommitResponse,
    ErrorResponse,
    PeriodResponse,
    ReviewResponse,
)
from payroll_checks.calculators.period_calculator import (
    week_ending_label,
    week_key,
    work_period_number,
)
from payroll_checks.calculators.types import ZERO
from payroll_checks.models import Client
from payroll_checks.services.batch_service import BatchService
from payroll_checks.services.exceptions import BatchRolledBackError, CheckWriteError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["batches"])


@router.post(
    "/companies/{company_id}/review",
    response_model=ReviewResponse,
)
async def review_batch(
    db: DbSession,
    company_id: Annotated[str, Path()],
    payload: BatchRequest,
) -> ReviewResponse:
    """Preview consolidated totals. Read-only; safe to call repeatedly."""
    service = BatchService.from_session(db)
    batch = await service.snapshot(
        company_id, payload.to_tabs(), payload.to_expenses(), payload.check_date
    )
    review = await service.review(batch)
    return ReviewResponse.from_review(review)


@router.post(
    "/companies/{company_id}/commit",
    response_model=CommitResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def commit_batch(
    db: DbSession,
    user_id: UserId,
    locks: CommitLocks,
    company_id: Annotated[str, Path()],
    payload: CommitRequest,
) -> CommitResponse:
    """Number and persist checks for every employee with a nonzero total."""
    service = BatchService.from_session(db, locks)
    batch = await service.snapshot(
        company_id, payload.to_tabs(), payload.to_expenses(), payload.check_date
    )

    # Checks and the counter update share this session: a failed write
    # discards every check the sink had accepted
    try:
        checks = await service.commit(
            batch,
            created_by=user_id,
            exclude_employee_ids=payload.exclude_employee_ids,
        )
    except CheckWriteError as exc:
        await db.rollback()
        logger.error(
            "Commit for company %s rolled back after %d of %d writes: %r",
            company_id,
            exc.written_count,
            exc.attempted_count,
            exc.cause,
        )
        raise BatchRolledBackError(exc) from exc
    await db.commit()
    logger.info("Company %s: %d checks committed by %s", company_id, len(checks), user_id)

    return CommitResponse(
        checks=[CheckResponse.from_check(check) for check in checks],
        count=len(checks),
        first_check_number=checks[0].check_number,
        last_check_number=checks[-1].check_number,
    )


@router.get(
    "/companies/{company_id}/checks/summary",
    response_model=CheckSummaryResponse,
)
async def get_check_summary(
    db: DbSession,
    company_id: Annotated[str, Path()],
    week: Annotated[str | None, Query(alias="week_key")] = None,
) -> CheckSummaryResponse:
    """Hourly, per-diem and expense totals per client over committed checks."""
    summaries = await BatchService.from_session(db).summarize(company_id, week)
    return CheckSummaryResponse(
        company_id=company_id,
        week_key=week,
        clients=[ClientSummaryResponse.from_summary(s) for s in summaries],
        total=sum((s.total_amount for s in summaries), ZERO),
    )


@router.get(
    "/clients/{client_id}/period",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_client_period(
    db: DbSession,
    client_id: Annotated[str, Path()],
    check_date: Annotated[str, Query()],
) -> PeriodResponse:
    """Period a check dated ``check_date`` compensates for at this client."""
    client = await db.get(Client, client_id)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Client not found",
        )

    profile = client.to_profile()
    period = work_period_number(check_date, profile.period_start_day, profile.frequency)
    if period is None:
        return PeriodResponse(client_id=client_id, check_date=check_date)

    return PeriodResponse(
        client_id=client_id,
        check_date=check_date,
        number=period.number,
        label=period.label,
        period_end=period.period_end,
        week_ending=week_ending_label(
            check_date, profile.period_start_day, profile.frequency
        ),
        week_key=week_key(check_date),
    )
