import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from pactflow.exceptions import (
    ActorNotPermittedError,
    ConcurrencyConflictError,
    ContractNotFoundError,
    IllegalTransitionError,
    StoreUnavailableError,
    UnauthorizedTransitionError,
)
from pactflow.models import ActorRole, Contract, ContractStatus, LegalNote, LifecycleEntry, RiskLevel
from pactflow.repositories.base import AuditStore, ContractFilter, ContractStore
from pactflow.services import temporal
from pactflow.services.lifecycle import TransitionRule, authorize_transition, get_rule, system_identity

logger = logging.getLogger(__name__)

CREATE_ROLES = frozenset({ActorRole.PROCUREMENT})
NOTE_ROLES = frozenset({ActorRole.LEGAL, ActorRole.MANAGEMENT})
RISK_ROLES = frozenset({ActorRole.LEGAL, ActorRole.SYSTEM})


@dataclass
class TransitionOutcome:
    contract: Contract
    changed: bool
    warnings: list[str] = field(default_factory=list)


class LifecycleService:
    def __init__(
        self,
        contracts: ContractStore,
        audit: AuditStore,
        identity_domain: str = "pactflow.local",
        max_attempts: int = 2,
    ):
        self.contracts = contracts
        self.audit = audit
        self.identity_domain = identity_domain
        self.max_attempts = max(1, max_attempts)

    async def get_contract(self, contract_id: uuid.UUID, now: datetime | None = None) -> Contract:
        """Load a contract, reclassifying it to Expired first when its end date has passed."""
        contract = await self.contracts.get_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        return await self.reconcile_expiry(contract, now)

    async def list_contracts(
        self, contract_filter: ContractFilter | None = None, now: date | datetime | None = None
    ) -> list[Contract]:
        contracts = await self.contracts.scan_contracts(contract_filter)
        return [await self.reconcile_expiry(c, now) for c in contracts]

    async def create_contract(
        self,
        actor_role: ActorRole,
        actor_id: str | None = None,
        submit: bool = False,
        **fields,
    ) -> TransitionOutcome:
        """Persist a new contract in Draft, optionally submitting it straight away."""
        if actor_role not in CREATE_ROLES:
            raise ActorNotPermittedError(actor_role.value, "create contracts")

        if fields.get("duration_months") is None:
            fields["duration_months"] = _months_between(fields.get("start_date"), fields.get("end_date"))
        if fields.get("risk") is not None:
            level = RiskLevel.parse(fields["risk"])
            fields["risk"] = level.value if level else None

        contract = await self.contracts.create_contract(
            status=ContractStatus.DRAFT.value,
            created_by=actor_id,
            **fields,
        )
        logger.info(f"Contract created: contract_id={contract.id} by role={actor_role.value}")

        warnings: list[str] = []
        await self._write_lifecycle(
            contract.id, ContractStatus.DRAFT.value, "Contract drafted", actor_id or actor_role.value, warnings
        )
        if not submit:
            return TransitionOutcome(contract=contract, changed=True, warnings=warnings)

        outcome = await self.transition_contract(
            contract.id, ContractStatus.SUBMITTED, actor_role, actor_id=actor_id
        )
        outcome.warnings[:0] = warnings
        return outcome

    async def transition_contract(
        self,
        contract_id: uuid.UUID,
        target_status: ContractStatus | str,
        actor_role: ActorRole | str,
        note: str | None = None,
        actor_id: str | None = None,
        expected_status: ContractStatus | str | None = None,
    ) -> TransitionOutcome:
        """Move a contract along one lifecycle edge.

        Raises ContractNotFoundError, IllegalTransitionError,
        UnauthorizedTransitionError or ConcurrencyConflictError. Audit write
        failures after a committed status change come back as warnings.
        """
        try:
            role = ActorRole.parse(actor_role)
        except ValueError:
            # Unknown roles still get the idempotent no-op; any real move is refused
            role = None
        try:
            target = ContractStatus.parse(target_status)
        except ValueError:
            current = await self._require(contract_id)
            raise IllegalTransitionError(current.status, str(target_status))

        observed: dict[str, str] = {}
        if expected_status is not None:
            observed["status"] = ContractStatus.parse(expected_status).value

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception_type(ConcurrencyConflictError),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(f"Retrying transition after conflict: contract_id={contract_id}")
                return await self._attempt_transition(
                    contract_id, target, role, str(actor_role), note, actor_id, observed
                )

    async def _attempt_transition(
        self,
        contract_id: uuid.UUID,
        target: ContractStatus,
        role: ActorRole | None,
        role_label: str,
        note: str | None,
        actor_id: str | None,
        observed: dict[str, str],
    ) -> TransitionOutcome:
        contract = await self._require(contract_id)
        try:
            current = ContractStatus.parse(contract.status)
        except ValueError:
            current = None

        if current is target:
            logger.info(f"Transition no-op: contract_id={contract_id} already {target.value!r}")
            return TransitionOutcome(contract=contract, changed=False)

        # Whatever the caller (or our first attempt) saw is what the write must still match.
        # A refetch that finds another status means another writer won.
        seen = current.value if current else contract.status
        expected = observed.setdefault("status", seen)
        if seen != expected:
            raise ConcurrencyConflictError(str(contract_id), expected, contract.status)

        if current is None:
            raise IllegalTransitionError(contract.status, target.value)

        if role is None:
            if get_rule(current, target) is None:
                raise IllegalTransitionError(current.value, target.value)
            raise UnauthorizedTransitionError(role_label, current.value, target.value)

        rule = authorize_transition(current, target, role)
        if rule.deprecated:
            logger.warning(
                f"Deprecated transition {current.value!r} -> {target.value!r} used "
                f"for contract {contract_id}; use Approved then Active"
            )

        # The stored label may differ in casing from the canonical one; match it as stored
        updated = await self.contracts.update_contract_status(contract_id, target.value, contract.status)
        logger.info(
            f"Contract transitioned: contract_id={contract_id} "
            f"{current.value!r} -> {target.value!r} by role={role.value}"
        )

        warnings: list[str] = []
        await self._write_transition_audit(contract_id, rule, role, note, actor_id, warnings)
        return TransitionOutcome(contract=updated, changed=True, warnings=warnings)

    async def reconcile_expiry(self, contract: Contract, now: date | datetime | None = None) -> Contract:
        """Rewrite the stored status to Expired once the end date has passed.

        Rejected and Expired contracts are left alone. Losing the conditional
        update to another writer is not an error here: the fresh row is returned.
        """
        now = now or datetime.now(timezone.utc)
        if not temporal.is_overdue(contract, now):
            return contract

        previous = contract.status
        try:
            updated = await self.contracts.update_contract_status(
                contract.id, ContractStatus.EXPIRED.value, previous
            )
        except ConcurrencyConflictError:
            logger.info(f"Expiry reconciliation lost a race: contract_id={contract.id}")
            fresh = await self._require(contract.id)
            return fresh

        logger.info(f"Contract expired: contract_id={contract.id} (was {previous!r}, end_date={contract.end_date})")
        warnings: list[str] = []
        await self._write_lifecycle(
            contract.id,
            ContractStatus.EXPIRED.value,
            f"End date {contract.end_date} passed while {previous}",
            ActorRole.SYSTEM.value,
            warnings,
        )
        return updated

    async def add_note(
        self, contract_id: uuid.UUID, text: str, actor_role: ActorRole, author: str | None = None
    ) -> LegalNote:
        if actor_role not in NOTE_ROLES:
            raise ActorNotPermittedError(actor_role.value, "add notes")
        await self._require(contract_id)
        return await self.audit.append_note(
            contract_id, author or system_identity(actor_role, self.identity_domain), text
        )

    async def list_notes(self, contract_id: uuid.UUID) -> list[LegalNote]:
        await self._require(contract_id)
        return await self.audit.list_notes(contract_id)

    async def list_lifecycle(self, contract_id: uuid.UUID) -> list[LifecycleEntry]:
        await self._require(contract_id)
        return await self.audit.list_lifecycle(contract_id)

    async def update_risk(
        self, contract_id: uuid.UUID, risk: RiskLevel | str | None, actor_role: ActorRole
    ) -> Contract:
        if actor_role not in RISK_ROLES:
            raise ActorNotPermittedError(actor_role.value, "assess risk")
        level = RiskLevel.parse(risk)
        contract = await self.contracts.update_risk(contract_id, level.value if level else None)
        logger.info(f"Risk updated: contract_id={contract_id} risk={contract.risk}")
        return contract

    async def _require(self, contract_id: uuid.UUID) -> Contract:
        contract = await self.contracts.get_contract(contract_id)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        return contract

    async def _write_transition_audit(
        self,
        contract_id: uuid.UUID,
        rule: TransitionRule,
        role: ActorRole,
        note: str | None,
        actor_id: str | None,
        warnings: list[str],
    ) -> None:
        commentary = note.strip() if note and note.strip() else None
        await self._write_lifecycle(
            contract_id, rule.stage, commentary or rule.default_note, actor_id or role.value, warnings
        )
        if not (rule.requires_note or commentary):
            return
        try:
            await self.audit.append_note(
                contract_id, system_identity(role, self.identity_domain), commentary or rule.default_note
            )
        except StoreUnavailableError as exc:
            logger.warning(f"Audit note write failed for contract {contract_id}: {exc}")
            warnings.append(f"AuditWriteFailed: legal note not recorded ({exc})")

    async def _write_lifecycle(
        self,
        contract_id: uuid.UUID,
        stage: str,
        notes: str | None,
        created_by: str | None,
        warnings: list[str],
    ) -> None:
        try:
            await self.audit.append_lifecycle_entry(contract_id, stage, notes, created_by)
        except StoreUnavailableError as exc:
            logger.warning(f"Lifecycle entry write failed for contract {contract_id}: {exc}")
            warnings.append(f"AuditWriteFailed: lifecycle entry not recorded ({exc})")


def _months_between(start: date | None, end: date | None) -> int | None:
    if start is None or end is None or end < start:
        return None
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(months, 0)
