from enum import Enum


class ContractStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    REVIEWED = "Reviewed"
    REVISION_REQUESTED = "Revision Requested"
    APPROVED = "Approved"
    ACTIVE = "Active"
    REJECTED = "Rejected"
    EXPIRED = "Expired"

    @classmethod
    def parse(cls, value: "str | ContractStatus") -> "ContractStatus":
        """Resolve a status label case-insensitively, including legacy labels.

        Raises ValueError for labels that name no status.
        """
        if isinstance(value, cls):
            return value
        key = " ".join(str(value).replace("_", " ").split()).lower()
        for status in cls:
            if status.value.lower() == key:
                return status
        if key in _LEGACY_STATUS_LABELS:
            return _LEGACY_STATUS_LABELS[key]
        raise ValueError(f"Unknown contract status: {value!r}")

    @property
    def is_terminal(self) -> bool:
        return self in (ContractStatus.EXPIRED, ContractStatus.REJECTED)


# Labels written by older clients before "Submitted" became the canonical name
_LEGACY_STATUS_LABELS = {
    "pending": ContractStatus.SUBMITTED,
    "pending review": ContractStatus.SUBMITTED,
}


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: "str | RiskLevel | None") -> "RiskLevel | None":
        """Case-insensitive lookup. Unknown or empty values mean "not assessed"."""
        if value is None or isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for level in cls:
            if level.value.lower() == key:
                return level
        return None


class ActorRole(str, Enum):
    PROCUREMENT = "procurement"
    LEGAL = "legal"
    MANAGEMENT = "management"
    OWNER = "owner"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: "str | ActorRole") -> "ActorRole":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        # Profiles created before the management dashboard still carry "manager"
        if key == "manager":
            return cls.MANAGEMENT
        return cls(key)
