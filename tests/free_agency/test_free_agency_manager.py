"""
Unit Tests for FreeAgencyManager

Tests the free agent pool and market operations including:
- Free agent classification (UFA, RFA, ERFA)
- Phase progression and phase permissions
- Offers, signings, rejections and withdrawals
- Budgets, interest, retirement and summaries
"""

import pytest

from free_agency.free_agency_manager import (
    FreeAgencyManager,
    classify_free_agent_type,
    create_free_agency_state,
)
from free_agency.models import (
    EventType,
    FreeAgencyState,
    FreeAgentStatus,
    FreeAgentType,
    InterestLevel,
    OfferStatus,
)
from free_agency.phases import FreeAgencyPhase
from salary_cap.contract import ContractOffer


EDGE_ID = "fa-p-edge-2024"


@pytest.fixture
def offer():
    return ContractOffer(years=3, bonus_per_year=8000, salary_per_year=6000)


class TestClassification:
    """Test free agent type rules."""

    def test_drafted_players_by_experience(self):
        assert classify_free_agent_type(2, True) == FreeAgentType.ERFA
        assert classify_free_agent_type(3, True) == FreeAgentType.RFA
        assert classify_free_agent_type(4, True) == FreeAgentType.UFA

    def test_undrafted_players_are_ufas(self):
        assert classify_free_agent_type(1, False) == FreeAgentType.UFA

    def test_pool_classified_on_add(self, fa_manager, fa_state):
        assert [fa.player_id for fa in fa_manager.get_free_agents_by_type(
            fa_state, FreeAgentType.RFA
        )] == ["p-lg"]
        assert [fa.player_id for fa in fa_manager.get_free_agents_by_type(
            fa_state, FreeAgentType.ERFA
        )] == ["p-te"]


class TestPoolQueries:
    """Test pool lookups."""

    def test_free_agent_ids(self, fa_state):
        assert EDGE_ID in fa_state.free_agents
        assert fa_state.free_agents[EDGE_ID].market_value == 18000

    def test_top_free_agents_by_value(self, fa_manager, fa_state):
        top = fa_manager.get_top_free_agents(fa_state, limit=2)
        assert [fa.player_id for fa in top] == ["p-edge", "p-cb"]

    def test_by_position(self, fa_manager, fa_state):
        assert len(fa_manager.get_free_agents_by_position(fa_state, "DE")) == 1

    def test_default_budgets(self, fa_state, team_ids):
        assert set(fa_state.team_budgets) == set(team_ids)
        assert fa_state.team_budgets["team-a"].remaining == 50000


class TestPhases:
    """Test phase progression."""

    def test_starts_pre_free_agency(self, fa_manager, fa_state):
        assert fa_state.phase == FreeAgencyPhase.PRE_FREE_AGENCY
        assert not fa_manager.is_free_agency_active(fa_state)

    def test_advance_records_event_and_resets_day(self, fa_manager, fa_state):
        state = fa_manager.advance_day(fa_state)
        state = fa_manager.advance_phase(state)
        assert state.phase == FreeAgencyPhase.LEGAL_TAMPERING
        assert state.phase_day == 0
        assert state.events[-1].type == EventType.PHASE_CHANGE
        assert state.events[-1].details == {
            "from_phase": "pre_free_agency", "to_phase": "legal_tampering"
        }

    def test_advancing_closed_market_is_noop(self, fa_manager, fa_state):
        state = fa_state
        for _ in range(6):
            state = fa_manager.advance_phase(state)
        assert state.phase == FreeAgencyPhase.CLOSED
        assert fa_manager.advance_phase(state) is state

    def test_days_on_market_accrue(self, fa_manager, fa_state):
        state = fa_manager.advance_day(fa_manager.advance_day(fa_state))
        assert state.phase_day == 2
        assert state.free_agents[EDGE_ID].days_on_market == 2


class TestOffers:
    """Test submitting and closing offers."""

    def test_offer_ignored_before_market(self, fa_manager, fa_state, offer):
        assert fa_manager.submit_offer(fa_state, "team-b", EDGE_ID, offer) is fa_state

    def test_offer_allowed_during_tampering(self, fa_manager, fa_state, offer):
        state = fa_manager.advance_phase(fa_state)
        state = fa_manager.submit_offer(state, "team-b", EDGE_ID, offer)
        assert len(state.offers) == 1

    def test_offer_ids_are_deterministic(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", EDGE_ID, offer)
        state = fa_manager.submit_offer(state, "team-c", EDGE_ID, offer)
        assert list(state.offers) == [
            f"offer-team-b-{EDGE_ID}-1", f"offer-team-c-{EDGE_ID}-2"
        ]
        assert state.free_agents[EDGE_ID].offer_ids == tuple(state.offers)
        assert state.free_agents[EDGE_ID].status == FreeAgentStatus.NEGOTIATING

    def test_place_offer_returns_new_id(self, fa_manager, open_fa_state, offer):
        state, offer_id = fa_manager.place_offer(open_fa_state, "team-b", EDGE_ID, offer)
        assert offer_id == f"offer-team-b-{EDGE_ID}-1"
        assert state.offers[offer_id].team_id == "team-b"

    def test_ignored_offer_has_no_id(self, fa_manager, fa_state, offer):
        assert fa_manager.place_offer(fa_state, "team-b", EDGE_ID, offer) == (fa_state, None)

    def test_offer_to_unknown_player_ignored(self, fa_manager, open_fa_state, offer):
        assert fa_manager.submit_offer(open_fa_state, "team-b", "fa-nobody", offer) is open_fa_state

    def test_reject_last_offer_frees_player(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", EDGE_ID, offer)
        offer_id = next(iter(state.offers))
        state = fa_manager.reject_offer(state, offer_id)
        assert state.offers[offer_id].status == OfferStatus.REJECTED
        assert state.free_agents[EDGE_ID].status == FreeAgentStatus.AVAILABLE

    def test_withdraw_keeps_negotiating_with_other_offer(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", EDGE_ID, offer)
        state = fa_manager.submit_offer(state, "team-c", EDGE_ID, offer)
        first_id = next(iter(state.offers))
        state = fa_manager.withdraw_offer(state, first_id)
        assert state.offers[first_id].status == OfferStatus.WITHDRAWN
        assert state.free_agents[EDGE_ID].status == FreeAgentStatus.NEGOTIATING


class TestSignings:
    """Test accepting offers."""

    def test_signing_blocked_during_tampering(self, fa_manager, fa_state, offer):
        state = fa_manager.advance_phase(fa_state)
        state = fa_manager.submit_offer(state, "team-b", EDGE_ID, offer)
        offer_id = next(iter(state.offers))
        assert fa_manager.accept_offer(state, offer_id) is state

    def test_accept_signs_player(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", EDGE_ID, offer)
        state = fa_manager.submit_offer(state, "team-c", EDGE_ID, offer)
        winning_id, losing_id = list(state.offers)
        state = fa_manager.accept_offer(state, winning_id)

        signed = state.free_agents[EDGE_ID]
        assert signed.status == FreeAgentStatus.SIGNED
        assert signed.signed_team_id == "team-b"
        assert signed.signed_contract_id == "contract-p-edge-2024-team-b"
        assert state.offers[winning_id].status == OfferStatus.ACCEPTED
        assert state.offers[losing_id].status == OfferStatus.EXPIRED

    def test_accept_creates_contract_and_charges_budget(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", EDGE_ID, offer)
        state = fa_manager.accept_offer(state, next(iter(state.offers)))
        assert len(state.signed_contracts) == 1
        contract = state.signed_contracts[0]
        assert contract.total_value == 42000
        assert contract.guaranteed_money == 24000
        assert state.team_budgets["team-b"].spent == 14000
        assert state.events[-1].type == EventType.SIGNING

    def test_signed_player_cannot_sign_twice(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", EDGE_ID, offer)
        state = fa_manager.submit_offer(state, "team-c", EDGE_ID, offer)
        first_id, second_id = list(state.offers)
        state = fa_manager.accept_offer(state, first_id)
        assert fa_manager.accept_offer(state, second_id) is state
        assert fa_manager.get_team_signings(state, "team-b")[0].player_id == "p-edge"

    def test_validate_state_clean(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", EDGE_ID, offer)
        state = fa_manager.accept_offer(state, next(iter(state.offers)))
        assert fa_manager.validate_state(state) == []


class TestRetirementAndInterest:
    """Test retirement, interest and budgets."""

    def test_aged_players_retire(self, fa_manager, open_fa_state):
        state = fa_manager.retire_aged_free_agents(open_fa_state)
        assert state.free_agents["fa-p-k-2024"].status == FreeAgentStatus.RETIRED
        assert state.free_agents[EDGE_ID].status == FreeAgentStatus.AVAILABLE
        assert state.events[-1].type == EventType.RETIREMENT

    def test_retirement_expires_offers(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", "fa-p-k-2024", offer)
        state = fa_manager.retire_aged_free_agents(state)
        assert all(o.status == OfferStatus.EXPIRED for o in state.offers.values())

    def test_interest_replaced_per_team(self, fa_manager, fa_state):
        state = fa_manager.set_team_interest(fa_state, "team-b", EDGE_ID, InterestLevel.LOW, True, True)
        state = fa_manager.set_team_interest(state, "team-b", EDGE_ID, InterestLevel.HIGH, True, False)
        interest = state.free_agents[EDGE_ID].interest
        assert len(interest) == 1
        assert interest[0].interest_level == InterestLevel.HIGH

    def test_budget_team_id_cannot_change(self, fa_manager, fa_state):
        state = fa_manager.update_team_budget(fa_state, "team-b", team_id="team-z", spent=1000)
        assert state.team_budgets["team-b"].team_id == "team-b"
        assert state.team_budgets["team-b"].spent == 1000

    def test_summary(self, fa_manager, fa_state):
        summary = fa_manager.get_free_agency_summary(fa_state)
        assert summary["total_free_agents"] == 6
        assert summary["available_free_agents"] == 6
        assert summary["top_available_players"][0] == {
            "name": "Elite Edge", "position": "DE", "market_value": "$18.0M"
        }

    def test_state_dict_round_trip(self, fa_manager, open_fa_state, offer):
        state = fa_manager.submit_offer(open_fa_state, "team-b", EDGE_ID, offer)
        assert FreeAgencyState.from_dict(state.to_dict()) == state

    def test_empty_state_factory(self):
        state = create_free_agency_state(2025, ["team-x"], total_budget=1000)
        assert state.team_budgets["team-x"].total_budget == 1000
        assert state.free_agents == {}
