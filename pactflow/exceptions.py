class PactflowError(Exception):
    """Base exception for all Pactflow errors."""

    kind = "error"


class ContractNotFoundError(PactflowError):
    kind = "not_found"

    def __init__(self, contract_id: str):
        self.contract_id = contract_id
        super().__init__(f"Contract {contract_id} not found")


class IllegalTransitionError(PactflowError):
    """The requested edge does not exist in the lifecycle graph."""

    kind = "illegal_transition"

    def __init__(self, current_status: str, target_status: str):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(f"Cannot move contract from {current_status!r} to {target_status!r}")


class UnauthorizedTransitionError(PactflowError):
    """The edge exists but the acting role may not trigger it."""

    kind = "unauthorized"

    def __init__(self, actor_role: str, current_status: str, target_status: str):
        self.actor_role = actor_role
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Role {actor_role!r} may not move a contract from "
            f"{current_status!r} to {target_status!r}"
        )


class ActorNotPermittedError(PactflowError):
    """The acting role may not perform a non-transition action (create, note, risk)."""

    kind = "unauthorized"

    def __init__(self, actor_role: str, action: str):
        self.actor_role = actor_role
        self.action = action
        super().__init__(f"Role {actor_role!r} may not {action}")


class ConcurrencyConflictError(PactflowError):
    """A conditional status update lost a race. Refetch and retry."""

    kind = "concurrency_conflict"

    def __init__(self, contract_id: str, expected_status: str, actual_status: str | None = None):
        self.contract_id = contract_id
        self.expected_status = expected_status
        self.actual_status = actual_status
        super().__init__(
            f"Contract {contract_id} is no longer {expected_status!r}"
            + (f" (now {actual_status!r})" if actual_status else "")
        )


class StoreUnavailableError(PactflowError):
    """Raised when the underlying record or audit store cannot be read or written."""

    kind = "store_unavailable"


class AggregationSourceUnavailable(PactflowError):
    kind = "aggregation_source_unavailable"
