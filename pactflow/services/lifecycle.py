"""Contract lifecycle graph and role permissions.

The graph is a plain mapping of ``(from, to) -> TransitionRule``. Nothing
outside :func:`authorize_transition` decides whether a move is allowed, so
the rules can be read and tested without a database or a request.

    Draft -> Submitted -> Reviewed -> Approved -> Active
                 |            |  \\
                 |            |   -> Active            (deprecated shortcut)
                 +------------+-> Revision Requested -> Submitted
                 +------------+-> Rejected

Expired is reached only through expiry reconciliation; Expired and Rejected
have no outbound edges.
"""

from dataclasses import dataclass

from pactflow.exceptions import IllegalTransitionError, UnauthorizedTransitionError
from pactflow.models.status import ActorRole, ContractStatus

S = ContractStatus
R = ActorRole


@dataclass(frozen=True)
class TransitionRule:
    allowed_roles: frozenset[ActorRole]
    stage: str
    default_note: str
    requires_note: bool = False
    deprecated: bool = False


TRANSITIONS: dict[tuple[ContractStatus, ContractStatus], TransitionRule] = {
    (S.DRAFT, S.SUBMITTED): TransitionRule(
        allowed_roles=frozenset({R.PROCUREMENT, R.MANAGEMENT}),
        stage=S.SUBMITTED.value,
        default_note="Contract submitted for legal review",
    ),
    (S.SUBMITTED, S.REVIEWED): TransitionRule(
        allowed_roles=frozenset({R.LEGAL}),
        stage=S.REVIEWED.value,
        default_note="Contract reviewed by legal and forwarded to management",
        requires_note=True,
    ),
    (S.SUBMITTED, S.REVISION_REQUESTED): TransitionRule(
        allowed_roles=frozenset({R.LEGAL}),
        stage=S.REVISION_REQUESTED.value,
        default_note="Contract returned to procurement for revision",
        requires_note=True,
    ),
    (S.REVIEWED, S.REVISION_REQUESTED): TransitionRule(
        allowed_roles=frozenset({R.LEGAL}),
        stage=S.REVISION_REQUESTED.value,
        default_note="Contract returned to procurement for revision",
        requires_note=True,
    ),
    (S.SUBMITTED, S.REJECTED): TransitionRule(
        allowed_roles=frozenset({R.LEGAL}),
        stage=S.REJECTED.value,
        default_note="Contract rejected by legal",
        requires_note=True,
    ),
    (S.REVIEWED, S.REJECTED): TransitionRule(
        allowed_roles=frozenset({R.LEGAL}),
        stage=S.REJECTED.value,
        default_note="Contract rejected by legal",
        requires_note=True,
    ),
    (S.REVIEWED, S.APPROVED): TransitionRule(
        allowed_roles=frozenset({R.MANAGEMENT}),
        stage=S.APPROVED.value,
        default_note="Contract approved by management",
        requires_note=True,
    ),
    (S.APPROVED, S.ACTIVE): TransitionRule(
        allowed_roles=frozenset({R.MANAGEMENT}),
        stage=S.ACTIVE.value,
        default_note="Contract activated by management",
    ),
    # Older management screens activated straight from Reviewed
    (S.REVIEWED, S.ACTIVE): TransitionRule(
        allowed_roles=frozenset({R.MANAGEMENT}),
        stage=S.ACTIVE.value,
        default_note="Contract approved and activated by management",
        requires_note=True,
        deprecated=True,
    ),
    (S.REVISION_REQUESTED, S.SUBMITTED): TransitionRule(
        allowed_roles=frozenset({R.PROCUREMENT}),
        stage=S.SUBMITTED.value,
        default_note="Revised document uploaded and resubmitted for legal review",
    ),
}


def get_rule(current: ContractStatus, target: ContractStatus) -> TransitionRule | None:
    return TRANSITIONS.get((current, target))


def allowed_targets(current: ContractStatus, role: ActorRole | None = None) -> list[ContractStatus]:
    """Statuses reachable from ``current`` in one step, optionally only those ``role`` may trigger."""
    return [
        target
        for (source, target), rule in TRANSITIONS.items()
        if source == current and (role is None or role in rule.allowed_roles)
    ]


def authorize_transition(
    current: ContractStatus, target: ContractStatus, role: ActorRole
) -> TransitionRule:
    """Return the rule for the edge, or raise.

    The edge is checked before the role so a move that can never happen is
    reported as illegal even for a role that holds no permissions at all.
    """
    rule = get_rule(current, target)
    if rule is None:
        raise IllegalTransitionError(current.value, target.value)
    if role not in rule.allowed_roles:
        raise UnauthorizedTransitionError(role.value, current.value, target.value)
    return rule


def system_identity(role: ActorRole, domain: str) -> str:
    """Author recorded on audit notes written on behalf of a role."""
    return f"{role.value}@{domain}"
