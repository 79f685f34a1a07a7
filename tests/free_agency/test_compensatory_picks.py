"""
Unit Tests for CompensatoryPickCalculator

Tests comp pick awards including:
- Qualifying contracts and comp values
- Offsetting losses with gains
- Per-team and league limits
"""

import pytest

from constants.positions import Position
from free_agency.compensatory_picks import (
    CompPickLikelihood,
    CompPickState,
    CompensatoryPickCalculator,
    calculate_comp_value,
    determine_comp_pick_round,
    estimate_comp_pick,
    is_qualifying_contract,
)


TEAMS = ["team-a", "team-b", "team-c", "team-d"]


@pytest.fixture
def calculator():
    return CompensatoryPickCalculator()


@pytest.fixture
def moves(calculator):
    """team-a loses an edge and a corner but signs a guard from team-d."""
    state = calculator.create_state(2024)
    state = calculator.record_move(state, "p-edge", "Elite Edge", Position.DE, "team-a", "team-b", 20000, 4, 27, 90)
    state = calculator.record_move(state, "p-cb", "Solid Corner", Position.CB, "team-a", "team-c", 10000, 3, 28, 80)
    state = calculator.record_move(state, "p-g", "Road Grader", Position.RG, "team-d", "team-a", 19000, 4, 27, 80)
    return state


class TestValues:
    """Test qualification and comp values."""

    def test_qualifying_contracts(self):
        assert is_qualifying_contract(1500, 27)
        assert not is_qualifying_contract(1499, 27)
        assert not is_qualifying_contract(4000, 36)
        assert is_qualifying_contract(5000, 36)
        assert not is_qualifying_contract(9000, 27, was_on_practice_squad=True)

    def test_comp_value_adjustments(self):
        assert calculate_comp_value(20000, 31, 90) == 20700
        assert calculate_comp_value(10000, 27, 70) == 8500
        assert calculate_comp_value(10000, 33, 60) == 5600

    def test_round_thresholds(self):
        assert determine_comp_pick_round(18000) == 3
        assert determine_comp_pick_round(17999) == 4
        assert determine_comp_pick_round(1500) == 7
        assert determine_comp_pick_round(1499) is None

    def test_estimate(self, moves):
        assert estimate_comp_pick(moves.moves[0]) == (3, CompPickLikelihood.LIKELY)
        assert estimate_comp_pick(moves.moves[1]) == (5, CompPickLikelihood.POSSIBLE)


class TestEntitlements:
    """Test loss and gain pairing."""

    def test_one_move_is_loss_and_gain(self, calculator, moves):
        assert len(calculator.get_team_qualifying_losses(moves, "team-a")) == 2
        assert len(calculator.get_team_qualifying_gains(moves, "team-a")) == 1
        assert len(calculator.get_team_qualifying_gains(moves, "team-b")) == 1

    def test_gain_offsets_most_valuable_loss(self, calculator, moves):
        edge, corner = calculator.calculate_team_entitlements(moves, "team-a")
        assert edge.matched_with_gain
        assert edge.matched_gain_player_id == "p-g"
        assert edge.net_value == 0
        assert not corner.matched_with_gain
        assert corner.projected_round == 5

    def test_small_gain_does_not_offset(self, calculator):
        state = calculator.create_state(2024)
        state = calculator.record_move(state, "p1", "Star", Position.WR, "team-a", "team-b", 20000, 4, 27, 80)
        state = calculator.record_move(state, "p2", "Role", Position.WR, "team-c", "team-a", 15000, 2, 27, 80)
        (entitlement,) = calculator.calculate_team_entitlements(state, "team-a")
        assert not entitlement.matched_with_gain
        assert entitlement.net_value == 20000


class TestAwards:
    """Test league-wide awards."""

    def test_awards_ordered_by_value(self, calculator, moves):
        state = calculator.calculate_all_comp_picks(moves, TEAMS)
        assert state.is_calculated
        assert [(p.team_id, p.round) for p in state.awarded_picks] == [
            ("team-d", 3), ("team-a", 5)
        ]
        assert all(p.year == 2025 for p in state.awarded_picks)
        assert state.awarded_picks[1].reason == "Compensatory: Lost Solid Corner"

    def test_recording_invalidates_results(self, calculator, moves):
        state = calculator.calculate_all_comp_picks(moves, TEAMS)
        state = calculator.record_move(state, "p-x", "Late", Position.SS, "team-b", "team-c", 3000, 1, 26, 70)
        assert not state.is_calculated

    def test_team_limit(self, calculator):
        state = calculator.create_state(2024)
        for i in range(6):
            state = calculator.record_move(
                state, f"p{i}", f"Player {i}", Position.ILB, "team-a", "team-b", 10000 + i, 2, 27, 80
            )
        state = calculator.calculate_all_comp_picks(state, TEAMS)
        assert len(calculator.get_team_awarded_picks(state, "team-a")) == 4
        assert calculator.validate_state(state) == []

    def test_summary(self, calculator, moves):
        state = calculator.calculate_all_comp_picks(moves, TEAMS)
        summary = calculator.get_summary(state)
        assert summary["total_picks_awarded"] == 2
        assert summary["picks_by_round"][3] == 1
        assert summary["top_losses"][0] == {
            "player_name": "Elite Edge", "team_id": "team-a", "aav": "$20.0M", "round": None
        }
        assert len(calculator.get_picks_by_round(state, 5)) == 1


class TestRecordSigning:
    """Test recording from signed contracts."""

    def test_resigning_ignored(self, calculator, sample_contract):
        state = calculator.create_state(2024)
        assert calculator.record_signing(state, sample_contract, "team-a", 28, 88) is state

    def test_unattached_ignored(self, calculator, sample_contract):
        state = calculator.create_state(2024)
        assert calculator.record_signing(state, sample_contract, None, 28, 88) is state

    def test_signing_recorded_as_move(self, calculator, sample_contract):
        state = calculator.record_signing(calculator.create_state(2024), sample_contract, "team-z", 28, 88)
        (move,) = state.moves
        assert move.previous_team_id == "team-z"
        assert move.new_team_id == "team-a"
        assert move.contract_aav == 20000
        assert move.contract_years == 4


class TestSerialization:
    """Test comp pick state persistence."""

    def test_calculated_state_round_trip(self, calculator, moves):
        state = calculator.calculate_all_comp_picks(moves, TEAMS)
        data = state.to_dict()
        assert data["moves"][0]["position"] == "DE"
        assert data["is_calculated"]
        restored = CompPickState.from_dict(data)
        assert restored == state
        assert restored.moves[0].position == Position.DE
        assert [(p.team_id, p.round) for p in restored.awarded_picks] == [
            ("team-d", 3), ("team-a", 5)
        ]
