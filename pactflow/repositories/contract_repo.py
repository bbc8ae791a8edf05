import uuid
from datetime import datetime, time, timezone

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pactflow.exceptions import ConcurrencyConflictError, ContractNotFoundError, StoreUnavailableError
from pactflow.models import Contract, ContractStatus
from pactflow.repositories.base import ContractFilter, ContractStore


class ContractRepository(ContractStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_contract(self, **fields) -> Contract:
        contract = Contract(**fields)
        try:
            self.session.add(contract)
            await self.session.flush()
            await self.session.refresh(contract)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Could not create contract: {exc}") from exc
        return contract

    async def get_contract(self, contract_id: uuid.UUID) -> Contract | None:
        try:
            result = await self.session.execute(
                select(Contract)
                .where(Contract.id == contract_id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Could not read contract {contract_id}: {exc}") from exc
        return result.scalar_one_or_none()

    async def update_contract_status(
        self, contract_id: uuid.UUID, new_status: str, expected_status: str
    ) -> Contract:
        """Compare-and-swap on the status column.

        Under READ COMMITTED a concurrent writer blocks on the row lock and then
        re-evaluates the WHERE clause, so only one of two racing updates matches.
        """
        try:
            result = await self.session.execute(
                update(Contract)
                .where(Contract.id == contract_id, Contract.status == expected_status)
                .values(status=new_status, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Could not update contract {contract_id}: {exc}") from exc

        if result.rowcount == 0:
            current = await self.get_contract(contract_id)
            if current is None:
                raise ContractNotFoundError(str(contract_id))
            raise ConcurrencyConflictError(str(contract_id), expected_status, current.status)

        contract = await self.get_contract(contract_id)
        return contract

    async def update_risk(self, contract_id: uuid.UUID, risk: str | None) -> Contract:
        contract = await self.get_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        try:
            contract.risk = risk
            await self.session.flush()
            await self.session.refresh(contract)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Could not update risk of {contract_id}: {exc}") from exc
        return contract

    async def scan_contracts(self, contract_filter: ContractFilter | None = None) -> list[Contract]:
        stmt = select(Contract)
        if contract_filter is not None:
            stmt = self._apply_filter(stmt, contract_filter)
        stmt = stmt.order_by(Contract.created_at.desc())
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Could not scan contracts: {exc}") from exc
        return list(result.scalars().all())

    @staticmethod
    def _apply_filter(stmt, f: ContractFilter):
        if f.search:
            pattern = like_pattern(f.search)
            stmt = stmt.where(
                or_(
                    Contract.name.ilike(pattern, escape="\\"),
                    Contract.first_party.ilike(pattern, escape="\\"),
                    Contract.second_party.ilike(pattern, escape="\\"),
                )
            )
        if f.status:
            stmt = stmt.where(func.lower(Contract.status) == ContractStatus.parse(f.status).value.lower())
        if f.risk:
            stmt = stmt.where(func.lower(Contract.risk) == f.risk.strip().lower())
        if f.company_id is not None:
            stmt = stmt.where(Contract.company_id == f.company_id)
        if f.created_from is not None:
            stmt = stmt.where(Contract.created_at >= _start_of_day(f.created_from))
        if f.created_to is not None:
            stmt = stmt.where(Contract.created_at <= _end_of_day(f.created_to))
        if f.ended_before is not None:
            stmt = stmt.where(Contract.end_date < f.ended_before)
        if f.limit is not None:
            stmt = stmt.limit(f.limit)
        return stmt


def like_pattern(search: str) -> str:
    """Substring ILIKE pattern with the caller's ``%`` and ``_`` matched literally."""
    escaped = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _start_of_day(day) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _end_of_day(day) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)
