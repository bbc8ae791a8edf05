from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pactflow.models.base import Base, TimestampMixin, UUIDPrimaryKey


class Contract(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "contracts"
    __table_args__ = (
        CheckConstraint("value_rp IS NULL OR value_rp >= 0", name="value_non_negative"),
        Index("ix_contracts_status", "status"),
        Index("ix_contracts_end_date", "end_date"),
        Index("ix_contracts_company_id", "company_id"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    first_party: Mapped[str | None] = mapped_column(String(255), nullable=True)
    second_party: Mapped[str | None] = mapped_column(String(255), nullable=True)
    value_rp: Mapped[Decimal | None] = mapped_column(Numeric(20, 2), nullable=True)
    duration_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    risk: Mapped[str | None] = mapped_column(String(10), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="Draft")
    file_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    notes: Mapped[list[LegalNote]] = relationship(
        "LegalNote", back_populates="contract", cascade="all, delete-orphan"
    )
    lifecycle_entries: Mapped[list[LifecycleEntry]] = relationship(
        "LifecycleEntry", back_populates="contract", cascade="all, delete-orphan"
    )
