"""SQLAlchemy implementations of the directory, bank and check ports.

All three work inside the caller's session; the caller owns the
transaction. Committing once after ``BatchCommitter.commit`` returns makes
the check inserts and the counter update land together, and a rollback on
failure leaves neither.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from payroll_checks.calculators.types import ClientProfile, EmployeeProfile
from payroll_checks.models import Bank, Check, Client, Company, Employee
from payroll_checks.services.check_builder import IssuedCheck
from payroll_checks.services.ports import BankInfo, CompanyInfo

ADMIN_ROLE = "admin"


class SqlDirectoryReader:
    """Directory snapshots read from the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_employees(self, company_id: str) -> list[EmployeeProfile]:
        """Active employees of a company with their relationships."""
        result = await self.session.execute(
            select(Employee)
            .where(Employee.company_id == company_id, Employee.active.is_(True))
            .options(selectinload(Employee.relationships))
            .order_by(Employee.name, Employee.employee_id)
        )
        return [employee.to_profile() for employee in result.scalars().all()]

    async def get_clients(self) -> list[ClientProfile]:
        result = await self.session.execute(
            select(Client).where(Client.active.is_(True)).order_by(Client.name)
        )
        return [client.to_profile() for client in result.scalars().all()]

    async def get_companies(self, role: str, company_ids: list[str]) -> list[CompanyInfo]:
        """Companies visible to a role; admins see every active company."""
        query = select(Company).where(Company.active.is_(True))
        if role != ADMIN_ROLE:
            if not company_ids:
                return []
            query = query.where(Company.company_id.in_(company_ids))

        result = await self.session.execute(query.order_by(Company.name))
        return [
            CompanyInfo(company_id=c.company_id, name=c.name, active=c.active)
            for c in result.scalars().all()
        ]


class SqlBankCounterStore:
    """Bank counter backed by the ``bank`` table.

    The bank row is read ``FOR UPDATE`` so a concurrent commit for the same
    company in another process blocks until this transaction ends.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_bank(self, company_id: str) -> BankInfo | None:
        result = await self.session.execute(
            select(Bank)
            .where(Bank.company_id == company_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        bank = result.scalar_one_or_none()
        if bank is None:
            return None
        return BankInfo(
            bank_id=bank.bank_id,
            company_id=bank.company_id,
            next_check_number=bank.next_check_number,
            bank_name=bank.bank_name,
        )

    async def increment_bank(self, bank_id: str, delta: int) -> None:
        await self.session.execute(
            update(Bank)
            .where(Bank.bank_id == bank_id)
            .values(next_check_number=Bank.next_check_number + delta)
            .execution_options(synchronize_session=False)
        )


class SqlCheckSink:
    """Append-only check writer."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def write_check(self, check: IssuedCheck) -> str:
        record = Check(
            company_id=check.company_id,
            employee_id=check.employee_id,
            employee_name=check.employee_name,
            is_expense=check.is_expense,
            client_id=check.client_id,
            pay_type=check.pay_type,
            amount=check.amount,
            pay_rate=check.pay_rate,
            hours=check.hours,
            ot_hours=check.ot_hours,
            holiday_hours=check.holiday_hours,
            pto_amount=check.pto_amount,
            relationship_details=[d.to_dict() for d in check.relationship_details],
            check_date=check.check_date,
            week_key=check.week_key,
            work_week=check.work_week,
            check_number=check.check_number,
            memo=check.memo,
            reviewed=check.reviewed,
            paid=check.paid,
            created_by=check.created_by,
        )
        self.session.add(record)
        await self.session.flush()
        return record.check_id

    async def list_checks(self, company_id: str, week_key: str | None = None) -> list[Check]:
        """Checks of a company in number order, optionally for one week."""
        query = select(Check).where(Check.company_id == company_id)
        if week_key:
            query = query.where(Check.week_key == week_key)
        result = await self.session.execute(query.order_by(Check.check_number))
        return list(result.scalars().all())

    async def list_issued_checks(
        self, company_id: str, week_key: str | None = None
    ) -> list[IssuedCheck]:
        records = await self.list_checks(company_id, week_key)
        return [IssuedCheck.from_record(record) for record in records]
