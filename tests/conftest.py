"""Pytest fixtures for payroll check tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_checks.calculators.types import (
    BatchInput,
    ClientProfile,
    Directory,
    EmployeeProfile,
    ExpenseEntry,
    PayFrequency,
    PayRelationship,
    PayType,
    PeriodStartDay,
    RelationshipInput,
    Tab,
    TabEntry,
    frozen_mapping,
)
from payroll_checks.models import Bank, Base, Client, Company, Employee, EmployeeRelationship
from payroll_checks.services.check_builder import IssuedCheck
from payroll_checks.services.ports import BankInfo

# In-memory SQLite shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

COMPANY_ID = "co-acme"
NORTH = "c-north"
SOUTH = "c-south"
CHECK_DATE = date(2024, 3, 15)  # Friday


# =============================================================================
# Directory builders
# =============================================================================


def client(
    client_id: str,
    name: str,
    start_day: PeriodStartDay = PeriodStartDay.MONDAY,
    frequency: PayFrequency = PayFrequency.WEEKLY,
) -> ClientProfile:
    return ClientProfile(
        client_id=client_id,
        name=name,
        period_start_day=start_day,
        frequency=frequency,
    )


def hourly(rel_id: str, client_id: str, rate: str, active: bool = True) -> PayRelationship:
    return PayRelationship(
        relationship_id=rel_id,
        client_id=client_id,
        pay_type=PayType.HOURLY,
        pay_rate=Decimal(rate),
        active=active,
    )


def perdiem(rel_id: str, client_id: str, active: bool = True) -> PayRelationship:
    return PayRelationship(
        relationship_id=rel_id,
        client_id=client_id,
        pay_type=PayType.PERDIEM,
        active=active,
    )


def employee(employee_id: str, name: str, *relationships: PayRelationship) -> EmployeeProfile:
    return EmployeeProfile(employee_id=employee_id, name=name, relationships=relationships)


def entry(
    employee_id: str,
    inputs: dict[str, RelationshipInput] | None = None,
    *,
    selected: bool = True,
    check_date: date | None = None,
    memo: str | None = None,
    selected_ids: list[str] | None = None,
) -> TabEntry:
    return TabEntry(
        employee_id=employee_id,
        selected=selected,
        inputs=frozen_mapping(inputs),
        selected_relationship_ids=frozenset(selected_ids) if selected_ids is not None else None,
        check_date=check_date,
        memo=memo,
    )


def tab(client_id: str, *entries: TabEntry, tab_id: str | None = None) -> Tab:
    return Tab(tab_id=tab_id or client_id, client_id=client_id, entries=entries)


def hours(regular: str = "0", ot: str = "0", holiday: str = "0") -> RelationshipInput:
    return RelationshipInput(
        hours=Decimal(regular),
        ot_hours=Decimal(ot),
        holiday_hours=Decimal(holiday),
    )


def flat_perdiem(amount: str, pto: str = "0") -> RelationshipInput:
    return RelationshipInput(perdiem_amount=Decimal(amount), pto_amount=Decimal(pto))


def standard_directory() -> Directory:
    """Two clients with different period configurations and four employees.

    - Ann Kim: hourly 17.00 at North, per diem at North
    - Bob Lee: hourly 20.00 at North
    - Zed Fox: hourly 16.00 at North, hourly 25.00 at South
    - Lou Park: no relationships, legacy hourly 15.00
    """
    return Directory.build(
        employees=[
            employee(
                "emp-ann",
                "Ann Kim",
                hourly("ann-h", NORTH, "17.00"),
                perdiem("ann-p", NORTH),
            ),
            employee("emp-bob", "Bob Lee", hourly("bob-h", NORTH, "20.00")),
            employee(
                "emp-zed",
                "Zed Fox",
                hourly("zed-n", NORTH, "16.00"),
                hourly("zed-s", SOUTH, "25.00"),
            ),
            EmployeeProfile(
                employee_id="emp-lou",
                name="Lou Park",
                legacy_pay_type=PayType.HOURLY,
                legacy_pay_rate=Decimal("15.00"),
            ),
        ],
        clients=[
            client(NORTH, "North Yard"),
            client(SOUTH, "South Dock", PeriodStartDay.SUNDAY, PayFrequency.BIWEEKLY),
        ],
    )


def batch(
    *tabs: Tab,
    expenses: tuple[ExpenseEntry, ...] = (),
    directory: Directory | None = None,
    check_date: date | None = CHECK_DATE,
) -> BatchInput:
    return BatchInput(
        company_id=COMPANY_ID,
        directory=directory or standard_directory(),
        tabs=tabs,
        expenses=expenses,
        check_date=check_date,
    )


# =============================================================================
# In-memory ports
# =============================================================================


class InMemoryBankStore:
    """Bank counters keyed by company, with an increment log."""

    def __init__(self, banks: dict[str, BankInfo] | None = None):
        self.banks = dict(banks or {})
        self.increments: list[tuple[str, int]] = []
        self.fail_increment = False

    async def get_bank(self, company_id: str) -> BankInfo | None:
        return self.banks.get(company_id)

    async def increment_bank(self, bank_id: str, delta: int) -> None:
        if self.fail_increment:
            raise ConnectionError("bank store unavailable")
        for company_id, bank in self.banks.items():
            if bank.bank_id == bank_id:
                self.banks[company_id] = BankInfo(
                    bank_id=bank.bank_id,
                    company_id=bank.company_id,
                    next_check_number=bank.next_check_number + delta,
                    bank_name=bank.bank_name,
                )
        self.increments.append((bank_id, delta))

    def next_number(self, company_id: str) -> int:
        return self.banks[company_id].next_check_number


class InMemoryCheckSink:
    """Append-only check list; ``fail_on`` makes the Nth write (1-based) raise."""

    def __init__(self, fail_on: int | None = None):
        self.checks: list[IssuedCheck] = []
        self.fail_on = fail_on
        self.attempts = 0

    async def write_check(self, check: IssuedCheck) -> str:
        self.attempts += 1
        await asyncio.sleep(0)
        if self.fail_on is not None and self.attempts == self.fail_on:
            raise OSError(f"write {self.attempts} rejected")
        self.checks.append(check)
        return f"chk-{check.check_number}"


@pytest.fixture
def bank_store() -> InMemoryBankStore:
    return InMemoryBankStore(
        {COMPANY_ID: BankInfo(bank_id="bank-acme", company_id=COMPANY_ID, next_check_number=1001)}
    )


@pytest.fixture
def check_sink() -> InMemoryCheckSink:
    return InMemoryCheckSink()


# =============================================================================
# Database
# =============================================================================


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seeded_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Company, two clients, three employees and a bank at 1001, committed."""
    async with session_factory() as session:
        session.add_all(
            [
                Company(company_id=COMPANY_ID, name="Acme Staffing"),
                Company(company_id="co-other", name="Other Staffing"),
                Company(company_id="co-closed", name="Closed Staffing", active=False),
                Client(client_id=NORTH, name="North Yard"),
                Client(
                    client_id=SOUTH,
                    name="South Dock",
                    pay_period_start_day="sunday",
                    pay_period_frequency="biweekly",
                ),
                Employee(employee_id="emp-ann", company_id=COMPANY_ID, name="Ann Kim"),
                Employee(employee_id="emp-zed", company_id=COMPANY_ID, name="Zed Fox"),
                Employee(
                    employee_id="emp-lou",
                    company_id=COMPANY_ID,
                    name="Lou Park",
                    pay_type="hourly",
                    pay_rate=Decimal("15.00"),
                ),
                Employee(
                    employee_id="emp-gone",
                    company_id=COMPANY_ID,
                    name="Gus Gone",
                    active=False,
                ),
                Bank(bank_id="bank-acme", company_id=COMPANY_ID, next_check_number=1001),
            ]
        )
        await session.flush()
        session.add_all(
            [
                EmployeeRelationship(
                    relationship_id="ann-h",
                    employee_id="emp-ann",
                    client_id=NORTH,
                    pay_type="hourly",
                    pay_rate=Decimal("17.00"),
                    position=0,
                ),
                EmployeeRelationship(
                    relationship_id="ann-p",
                    employee_id="emp-ann",
                    client_id=NORTH,
                    pay_type="perdiem",
                    position=1,
                ),
                EmployeeRelationship(
                    relationship_id="zed-s",
                    employee_id="emp-zed",
                    client_id=SOUTH,
                    pay_type="hourly",
                    pay_rate=Decimal("25.00"),
                    position=0,
                ),
            ]
        )
        await session.commit()

    async with session_factory() as session:
        yield session
        await session.rollback()
