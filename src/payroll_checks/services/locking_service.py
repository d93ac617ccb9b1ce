"""Per-company commit serialization and check-number range reservation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from payroll_checks.services.exceptions import NoBankConfiguredError
from payroll_checks.services.ports import BankCounterStore

logger = logging.getLogger(__name__)

# Stored counters below this are corrupt and clamped up before use
MIN_CHECK_NUMBER = 100


@dataclass(frozen=True)
class Reservation:
    """A contiguous block of check numbers held for one commit."""

    bank_id: str
    company_id: str
    stored_next: int
    start: int
    count: int

    @property
    def numbers(self) -> range:
        return range(self.start, self.start + self.count)

    @property
    def next_after(self) -> int:
        return self.start + self.count


class CompanyLockRegistry:
    """One asyncio lock per company: at most one commit in flight per company.

    This serializes commits inside one process. Across processes the SQL
    bank adapter holds a row lock on the bank for the rest of the transaction.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, company_id: str) -> asyncio.Lock:
        lock = self._locks.get(company_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[company_id] = lock
        return lock

    def is_locked(self, company_id: str) -> bool:
        lock = self._locks.get(company_id)
        return lock is not None and lock.locked()


def clamp_check_number(value: int | None) -> int:
    """Apply the check-number floor; never decrements a valid counter."""
    if value is None or value < MIN_CHECK_NUMBER:
        return MIN_CHECK_NUMBER
    return value


class CheckNumberAllocator:
    """Reserves contiguous check-number ranges against a company's bank counter.

    Usage:
        async with allocator.reserve(company_id, count) as reservation:
            ... write checks numbered reservation.numbers ...

    On clean exit the counter is moved exactly once, to
    ``reservation.start + count``. If the block raises, the counter is left
    where it was.
    """

    def __init__(self, banks: BankCounterStore, locks: CompanyLockRegistry | None = None):
        self.banks = banks
        self.locks = locks or CompanyLockRegistry()

    @asynccontextmanager
    async def reserve(self, company_id: str, count: int) -> AsyncIterator[Reservation]:
        if count < 1:
            raise ValueError(f"Cannot reserve {count} check numbers")

        async with self.locks.lock_for(company_id):
            bank = await self.banks.get_bank(company_id)
            if bank is None:
                raise NoBankConfiguredError(company_id)

            start = clamp_check_number(bank.next_check_number)
            if start != bank.next_check_number:
                logger.warning(
                    "Bank %s counter %s below floor, clamped to %s",
                    bank.bank_id,
                    bank.next_check_number,
                    start,
                )

            reservation = Reservation(
                bank_id=bank.bank_id,
                company_id=company_id,
                stored_next=bank.next_check_number,
                start=start,
                count=count,
            )
            logger.info(
                "Reserved check numbers %s-%s for company %s",
                reservation.start,
                reservation.next_after - 1,
                company_id,
            )

            yield reservation

            await self.banks.increment_bank(
                bank.bank_id, reservation.next_after - bank.next_check_number
            )
