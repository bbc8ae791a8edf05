"""
Lifecycle graph and permission table tests.

These run against the pure rule table; no stores are involved.
"""

import itertools

import pytest

from pactflow.exceptions import IllegalTransitionError, UnauthorizedTransitionError
from pactflow.models import ActorRole, ContractStatus
from pactflow.services import lifecycle
from pactflow.services.lifecycle import TRANSITIONS, authorize_transition

S = ContractStatus
R = ActorRole

EXPECTED_EDGES = {
    (S.DRAFT, S.SUBMITTED): {R.PROCUREMENT, R.MANAGEMENT},
    (S.SUBMITTED, S.REVIEWED): {R.LEGAL},
    (S.SUBMITTED, S.REVISION_REQUESTED): {R.LEGAL},
    (S.REVIEWED, S.REVISION_REQUESTED): {R.LEGAL},
    (S.SUBMITTED, S.REJECTED): {R.LEGAL},
    (S.REVIEWED, S.REJECTED): {R.LEGAL},
    (S.REVIEWED, S.APPROVED): {R.MANAGEMENT},
    (S.APPROVED, S.ACTIVE): {R.MANAGEMENT},
    (S.REVIEWED, S.ACTIVE): {R.MANAGEMENT},
    (S.REVISION_REQUESTED, S.SUBMITTED): {R.PROCUREMENT},
}


class TestTransitionTable:
    def test_edges_and_roles(self):
        assert {edge: set(rule.allowed_roles) for edge, rule in TRANSITIONS.items()} == EXPECTED_EDGES

    def test_terminal_states_have_no_outbound_edges(self):
        for status in (S.EXPIRED, S.REJECTED):
            assert status.is_terminal
            assert lifecycle.allowed_targets(status) == []

    def test_expired_is_not_reachable_by_any_actor(self):
        assert all(target is not S.EXPIRED for (_, target) in TRANSITIONS)

    def test_reviewed_to_active_is_the_only_deprecated_edge(self):
        deprecated = [edge for edge, rule in TRANSITIONS.items() if rule.deprecated]
        assert deprecated == [(S.REVIEWED, S.ACTIVE)]

    def test_stage_names_the_target(self):
        for (_, target), rule in TRANSITIONS.items():
            assert rule.stage == target.value

    def test_review_decisions_require_a_note(self):
        for edge in [
            (S.SUBMITTED, S.REVIEWED),
            (S.SUBMITTED, S.REJECTED),
            (S.REVIEWED, S.REVISION_REQUESTED),
            (S.REVIEWED, S.APPROVED),
        ]:
            assert TRANSITIONS[edge].requires_note

    def test_owner_and_system_hold_no_transition_rights(self):
        for rule in TRANSITIONS.values():
            assert R.OWNER not in rule.allowed_roles
            assert R.SYSTEM not in rule.allowed_roles


class TestAuthorizeTransition:
    @pytest.mark.parametrize("edge", sorted(EXPECTED_EDGES, key=lambda e: (e[0].value, e[1].value)))
    def test_allowed_roles_pass(self, edge):
        for role in EXPECTED_EDGES[edge]:
            rule = authorize_transition(edge[0], edge[1], role)
            assert rule is TRANSITIONS[edge]

    def test_every_other_pair_fails_with_the_right_error(self):
        for current, target, role in itertools.product(S, S, R):
            allowed = EXPECTED_EDGES.get((current, target))
            if allowed is None:
                with pytest.raises(IllegalTransitionError) as exc_info:
                    authorize_transition(current, target, role)
                assert exc_info.value.current_status == current.value
                assert exc_info.value.target_status == target.value
            elif role not in allowed:
                with pytest.raises(UnauthorizedTransitionError) as exc_info:
                    authorize_transition(current, target, role)
                assert exc_info.value.actor_role == role.value

    def test_missing_edge_is_illegal_even_for_a_role_without_rights(self):
        with pytest.raises(IllegalTransitionError):
            authorize_transition(S.DRAFT, S.ACTIVE, R.OWNER)


class TestAllowedTargets:
    def test_legal_from_submitted(self):
        assert set(lifecycle.allowed_targets(S.SUBMITTED, R.LEGAL)) == {
            S.REVIEWED,
            S.REVISION_REQUESTED,
            S.REJECTED,
        }

    def test_procurement_cannot_act_on_reviewed(self):
        assert lifecycle.allowed_targets(S.REVIEWED, R.PROCUREMENT) == []


class TestStatusParsing:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("active", S.ACTIVE),
            ("REVISION_REQUESTED", S.REVISION_REQUESTED),
            ("revision   requested", S.REVISION_REQUESTED),
            ("Pending", S.SUBMITTED),
            ("pending review", S.SUBMITTED),
        ],
    )
    def test_labels(self, label, expected):
        assert ContractStatus.parse(label) is expected

    def test_unknown_label(self):
        with pytest.raises(ValueError):
            ContractStatus.parse("Archived")

    def test_manager_is_management(self):
        assert ActorRole.parse("Manager") is R.MANAGEMENT

    def test_system_identity(self):
        assert lifecycle.system_identity(R.LEGAL, "pactflow.test") == "legal@pactflow.test"
