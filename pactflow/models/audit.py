from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pactflow.models.base import Base, CreatedAtMixin, UUIDPrimaryKey


class LegalNote(Base, UUIDPrimaryKey, CreatedAtMixin):
    """Reviewer commentary on a contract. Rows are never updated or deleted."""

    __tablename__ = "legal_notes"
    __table_args__ = (Index("ix_legal_notes_contract_created", "contract_id", "created_at"),)

    contract_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False
    )
    author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    note: Mapped[str] = mapped_column(Text, nullable=False)

    contract: Mapped[Contract] = relationship("Contract", back_populates="notes")


class LifecycleEntry(Base, UUIDPrimaryKey):
    """One row per status change. History only; Contract.status is the source of truth."""

    __tablename__ = "contract_lifecycle"
    __table_args__ = (Index("ix_contract_lifecycle_contract_started", "contract_id", "started_at"),)

    contract_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False
    )
    stage: Mapped[str] = mapped_column(String(64), nullable=False)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.clock_timestamp(), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    contract: Mapped[Contract] = relationship("Contract", back_populates="lifecycle_entries")
