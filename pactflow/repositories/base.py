import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from pactflow.models import Contract, LegalNote, LifecycleEntry


@dataclass(frozen=True)
class ContractFilter:
    """Row filter for contract scans. Every field is optional; None means "any"."""

    search: str | None = None
    status: str | None = None
    risk: str | None = None
    company_id: uuid.UUID | None = None
    created_from: date | None = None
    created_to: date | None = None
    ended_before: date | None = None
    limit: int | None = None


def matches_search(contract: Contract, search: str | None) -> bool:
    """Case-insensitive substring match over name and both parties."""
    if not search:
        return True
    needle = search.strip().lower()
    haystack = (contract.name, contract.first_party, contract.second_party)
    return any(needle in (field or "").lower() for field in haystack)


class ContractStore(ABC):
    @abstractmethod
    async def get_contract(self, contract_id: uuid.UUID) -> Contract | None:
        """Return the contract or None when the id does not exist."""
        ...

    @abstractmethod
    async def create_contract(self, **fields) -> Contract:
        ...

    @abstractmethod
    async def update_contract_status(
        self, contract_id: uuid.UUID, new_status: str, expected_status: str
    ) -> Contract:
        """Set the status only if it still equals ``expected_status``.

        Raises ContractNotFoundError when the id does not exist and
        ConcurrencyConflictError when the stored status has moved on.
        """
        ...

    @abstractmethod
    async def update_risk(self, contract_id: uuid.UUID, risk: str | None) -> Contract:
        ...

    @abstractmethod
    async def scan_contracts(self, contract_filter: ContractFilter | None = None) -> list[Contract]:
        ...


class AuditStore(ABC):
    @abstractmethod
    async def append_lifecycle_entry(
        self,
        contract_id: uuid.UUID,
        stage: str,
        notes: str | None = None,
        created_by: str | None = None,
    ) -> LifecycleEntry:
        ...

    @abstractmethod
    async def append_note(self, contract_id: uuid.UUID, author: str | None, text: str) -> LegalNote:
        ...

    @abstractmethod
    async def list_notes(self, contract_id: uuid.UUID) -> list[LegalNote]:
        """Notes for one contract, newest first."""
        ...

    @abstractmethod
    async def list_lifecycle(self, contract_id: uuid.UUID) -> list[LifecycleEntry]:
        """Lifecycle entries for one contract, oldest first."""
        ...
