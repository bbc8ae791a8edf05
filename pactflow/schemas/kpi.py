import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel


class KPISnapshot(BaseModel):
    """Point-in-time figures over one contract slice. Computed per request, never stored."""
    total_contracts: int
    active_contracts: int
    pending_contracts: int
    expired_contracts: int
    high_risk_contracts: int
    expiring_7_days: int
    expiring_30_days: int
    expiring_60_days: int
    expiring_90_days: int
    expiring_by_window: dict[int, int]
    total_contract_value: Decimal
    avg_active_contract_value: Decimal
    low_risk_count: int
    medium_risk_count: int
    high_risk_count: int
    total_risk_assessed: int
    low_risk_percentage: float
    medium_risk_percentage: float
    high_risk_percentage: float
    computed_at: datetime


class KPIResponse(BaseModel):
    """Dashboards must tell "no contracts" apart from "could not load contracts"."""
    state: Literal["ready", "empty", "failed"]
    snapshot: KPISnapshot | None = None
    error: str | None = None


class ExpiringContract(BaseModel):
    id: uuid.UUID
    name: str | None
    second_party: str | None = None
    value_rp: Decimal | None = None
    end_date: date
    risk: str | None = None
    status: str
    days_to_expiry: int
    bucket: str
    temporally_active: bool


class ExpiryClassificationResponse(BaseModel):
    bucket: str
    days_to_expiry: int | None
    temporally_active: bool
    windows: list[int]


class WeeklyExpiryResponse(BaseModel):
    week_counts: list[int]


class LegalKPI(BaseModel):
    contracts_this_week: int
    high_risk: int
    pending_review: int


class ProcurementKPI(BaseModel):
    new_this_month: int
    new_last_month: int
    delta_percentage: int
    pending_legal_review: int
    approved_count: int
    approval_rate_percentage: float


class RiskDistribution(BaseModel):
    high: int
    medium: int
    low: int
    unassessed: int
    total: int
