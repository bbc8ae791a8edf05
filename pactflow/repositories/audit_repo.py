import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pactflow.exceptions import StoreUnavailableError
from pactflow.models import LegalNote, LifecycleEntry
from pactflow.repositories.base import AuditStore


class AuditRepository(AuditStore):
    """Append-only writes for legal notes and lifecycle entries.

    Each append runs inside a SAVEPOINT: a failed insert rolls back only
    itself, never a status change already flushed in the same transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append_lifecycle_entry(
        self,
        contract_id: uuid.UUID,
        stage: str,
        notes: str | None = None,
        created_by: str | None = None,
    ) -> LifecycleEntry:
        entry = LifecycleEntry(contract_id=contract_id, stage=stage, notes=notes, created_by=created_by)
        await self._append(entry)
        return entry

    async def append_note(self, contract_id: uuid.UUID, author: str | None, text: str) -> LegalNote:
        note = LegalNote(contract_id=contract_id, author=author, note=text)
        await self._append(note)
        return note

    async def list_notes(self, contract_id: uuid.UUID) -> list[LegalNote]:
        return await self._list(
            select(LegalNote)
            .where(LegalNote.contract_id == contract_id)
            .order_by(LegalNote.created_at.desc())
        )

    async def list_lifecycle(self, contract_id: uuid.UUID) -> list[LifecycleEntry]:
        return await self._list(
            select(LifecycleEntry)
            .where(LifecycleEntry.contract_id == contract_id)
            .order_by(LifecycleEntry.started_at)
        )

    async def _append(self, row) -> None:
        try:
            async with self.session.begin_nested():
                self.session.add(row)
            await self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Could not write {type(row).__name__}: {exc}") from exc

    async def _list(self, stmt) -> list:
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Could not read audit records: {exc}") from exc
        return list(result.scalars().all())
