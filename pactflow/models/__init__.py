from pactflow.models.audit import LegalNote, LifecycleEntry
from pactflow.models.base import Base
from pactflow.models.contract import Contract
from pactflow.models.status import ActorRole, ContractStatus, RiskLevel

__all__ = [
    "Base",
    "Contract",
    "LegalNote",
    "LifecycleEntry",
    "ActorRole",
    "ContractStatus",
    "RiskLevel",
]
