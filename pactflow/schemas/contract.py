import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from pactflow.schemas.kpi import ExpiryClassificationResponse

StatusLabel = Literal[
    "Draft",
    "Submitted",
    "Reviewed",
    "Revision Requested",
    "Approved",
    "Active",
    "Rejected",
    "Expired",
]
RiskLabel = Literal["Low", "Medium", "High"]


class ContractCreate(BaseModel):
    """Payload for a new contract. Procurement only."""
    name: str = Field(..., min_length=1, max_length=255)
    first_party: str | None = Field(None, max_length=255)
    second_party: str | None = Field(None, max_length=255)
    value_rp: Decimal | None = Field(None, ge=0)
    duration_months: int | None = Field(None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    file_url: str | None = Field(None, max_length=500)
    company_id: uuid.UUID | None = None
    submit: bool = False

    @model_validator(mode="after")
    def check_dates(self) -> "ContractCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ContractResponse(BaseModel):
    id: uuid.UUID
    name: str
    first_party: str | None = None
    second_party: str | None = None
    value_rp: Decimal | None = None
    duration_months: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    risk: str | None = None
    status: str
    file_url: str | None = None
    created_by: str | None = None
    company_id: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ContractDetailResponse(ContractResponse):
    classification: ExpiryClassificationResponse
    allowed_transitions: list[str] = []


class TransitionRequest(BaseModel):
    target_status: str = Field(..., min_length=1)
    note: str | None = Field(None, max_length=5000)
    expected_status: StatusLabel | None = None


class TransitionResponse(BaseModel):
    contract: ContractResponse
    changed: bool
    warnings: list[str] = []


class RiskUpdateRequest(BaseModel):
    risk: RiskLabel | None


class NoteCreate(BaseModel):
    note: str = Field(..., min_length=1, max_length=5000)


class NoteResponse(BaseModel):
    id: uuid.UUID
    contract_id: uuid.UUID
    author: str | None
    note: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class LifecycleEntryResponse(BaseModel):
    id: uuid.UUID
    contract_id: uuid.UUID
    stage: str
    started_at: datetime | None = None
    notes: str | None = None
    created_by: str | None = None

    model_config = {"from_attributes": True}
