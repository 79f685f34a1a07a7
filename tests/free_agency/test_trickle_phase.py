"""
Unit Tests for TricklePhaseManager

Tests the post-frenzy market including:
- Asking-price decay with time on the market
- Bargain detection and ordering
- Player acceptance against adjusted expectations
- AI target selection by sub-phase
"""

import pytest

from constants.positions import Position
from free_agency.models import MarketValue, ProductionTier, TeamFABudget
from free_agency.trickle_phase import (
    BargainReason,
    TrickleOfferType,
    TricklePhaseState,
    TricklePhaseManager,
    TrickleSubPhase,
    calculate_time_adjustment,
    determine_bargain_reason,
    determine_sub_phase,
    generate_bargain_offer,
    generate_minimum_offer,
)
from salary_cap.contract import ContractOffer


def make_value(player_id, aav, tier):
    return MarketValue(
        player_id=player_id,
        base_value=aav,
        age_adjusted_value=aav,
        demand_adjusted_value=aav,
        projected_aav=aav,
        projected_years=2,
        projected_guaranteed=aav,
        guarantee_pct=0.5,
        tier=tier,
    )


@pytest.fixture
def manager():
    return TricklePhaseManager()


@pytest.fixture
def market_values():
    return {
        "p-edge": make_value("p-edge", 18000, ProductionTier.ELITE),
        "p-rb": make_value("p-rb", 3000, ProductionTier.DEPTH),
        "p-k": make_value("p-k", 2000, ProductionTier.STARTER),
    }


class TestTimeline:
    """Test decay and sub-phases."""

    def test_time_adjustment_steps(self):
        assert calculate_time_adjustment(7).value_multiplier == 1.0
        assert calculate_time_adjustment(8).value_multiplier == 0.95
        assert calculate_time_adjustment(30).value_multiplier == 0.85
        assert calculate_time_adjustment(60).value_multiplier == 0.75
        assert calculate_time_adjustment(90).value_multiplier == 0.6

    def test_sub_phase_boundaries(self):
        assert determine_sub_phase(22, 90) == TrickleSubPhase.EARLY
        assert determine_sub_phase(23, 90) == TrickleSubPhase.MID
        assert determine_sub_phase(50, 90) == TrickleSubPhase.LATE
        assert determine_sub_phase(80, 90) == TrickleSubPhase.TRAINING_CAMP

    def test_advance_day(self, manager):
        state = manager.start(manager.create_state(total_days=4))
        state = manager.advance_day(state)
        assert state.day_number == 2
        assert state.sub_phase == TrickleSubPhase.LATE


class TestBargains:
    """Test bargain detection."""

    def test_reasons_first_match_wins(self):
        reason, discount = determine_bargain_reason(34, 70, ProductionTier.DEPTH)
        assert reason == BargainReason.AGE
        assert discount == pytest.approx(0.3)
        assert determine_bargain_reason(28, 61, ProductionTier.ELITE)[0] == BargainReason.LATE_SIGNING
        assert determine_bargain_reason(28, 5, ProductionTier.MINIMUM)[0] == BargainReason.POSITION_DEPTH
        assert determine_bargain_reason(28, 31, ProductionTier.ELITE)[0] == BargainReason.MARKET_SATURATED
        assert determine_bargain_reason(28, 5, ProductionTier.ELITE) is None

    def test_identify_orders_by_discount(self, manager, fa_state, market_values):
        state = manager.start(manager.create_state())
        state = manager.identify_bargain_opportunities(
            state, fa_state.free_agents.values(), market_values
        )
        ids = [b.free_agent_id for b in state.bargain_opportunities]
        assert ids == ["fa-p-k-2024", "fa-p-rb-2024"]
        kicker = state.bargain_opportunities[0]
        assert kicker.current_asking_price == 1000
        assert kicker.discount_percentage == pytest.approx(50.0)

    def test_bargains_by_position(self, manager, fa_state, market_values):
        state = manager.identify_bargain_opportunities(
            manager.start(manager.create_state()), fa_state.free_agents.values(), market_values
        )
        found = manager.get_bargains_by_position(state, fa_state.free_agents, Position.RB)
        assert [b.free_agent_id for b in found] == ["fa-p-rb-2024"]

    def test_remaining_quality_players(self, manager, fa_state, market_values):
        remaining = manager.get_remaining_quality_players(
            fa_state.free_agents.values(), market_values
        )
        assert [fa.player_id for fa in remaining] == ["p-edge", "p-k"]


class TestOffers:
    """Test offer builders and player decisions."""

    def test_minimum_offer_not_guaranteed(self):
        offer = generate_minimum_offer(9)
        assert offer.years == 1
        assert offer.bonus_per_year == 0
        assert offer.guaranteed_money == 0

    def test_bargain_offer_at_asking_price(self, manager, fa_state, market_values):
        state = manager.identify_bargain_opportunities(
            manager.start(manager.create_state()), fa_state.free_agents.values(), market_values
        )
        offer = generate_bargain_offer(state.bargain_opportunities[1])
        assert offer.aav == 2550
        assert offer.bonus_per_year == 1275

    def test_accepts_market_offer(self, manager):
        value = make_value("p", 20000, ProductionTier.STARTER)
        offer = ContractOffer(years=2, bonus_per_year=9000, salary_per_year=10000)
        assert manager.will_player_accept_offer(offer, value, 5, 0)[0]

    def test_holds_out_early(self, manager):
        value = make_value("p", 20000, ProductionTier.STARTER)
        offer = ContractOffer(years=2, bonus_per_year=4000, salary_per_year=10000)
        assert manager.will_player_accept_offer(offer, value, 30, 0) == (
            False, "Holding out for better offer"
        )

    def test_softens_late(self, manager):
        value = make_value("p", 20000, ProductionTier.STARTER)
        offer = ContractOffer(years=2, bonus_per_year=4000, salary_per_year=6000)
        accepted, reason = manager.will_player_accept_offer(offer, value, 85, 0)
        assert accepted
        assert reason == "Accepting after extended time on market"


class TestTeamActivity:
    """Test AI target selection."""

    def test_rich_team_waits_early(self, manager, fa_state):
        budget = TeamFABudget("team-b", priority_positions=(Position.K,))
        assert manager.simulate_team_activity(
            budget, list(fa_state.free_agents.values()), [], TrickleSubPhase.EARLY
        ) is None

    def test_bargain_taken(self, manager, fa_state, market_values):
        state = manager.identify_bargain_opportunities(
            manager.start(manager.create_state()), fa_state.free_agents.values(), market_values
        )
        budget = TeamFABudget("team-b", total_budget=20000, priority_positions=(Position.K,))
        assert manager.simulate_team_activity(
            budget, list(fa_state.free_agents.values()), state.bargain_opportunities,
            TrickleSubPhase.MID
        ) == ("fa-p-k-2024", TrickleOfferType.BARGAIN)

    def test_minimum_offer_late(self, manager, fa_state):
        budget = TeamFABudget("team-b", total_budget=20000, priority_positions=(Position.TE,))
        assert manager.simulate_team_activity(
            budget, list(fa_state.free_agents.values()), [], TrickleSubPhase.LATE
        ) == ("fa-p-te-2024", TrickleOfferType.MINIMUM)

    def test_visits_deduplicated(self, manager):
        state = manager.record_visit(manager.create_state(), "p-k", "team-b")
        state = manager.record_visit(state, "p-k", "team-c")
        assert manager.record_visit(state, "p-k", "team-b") is state
        assert manager.get_player_visitors(state, "p-k") == ["team-b", "team-c"]

    def test_summary(self, manager, fa_state, market_values):
        state = manager.identify_bargain_opportunities(
            manager.start(manager.create_state()), fa_state.free_agents.values(), market_values
        )
        summary = manager.get_summary(state, fa_state.free_agents)
        assert summary["bargain_count"] == 2
        assert summary["days_remaining"] == 89
        assert summary["top_bargains"][0]["discount"] == "50%"
        assert summary["sub_phase"] == "Early Trickle: Quality players still available"


class TestSerialization:
    """Test trickle state persistence."""

    def test_state_dict_round_trip(self, manager, fa_state, market_values):
        state = manager.start(manager.create_state())
        state = manager.advance_day(manager.advance_day(state))
        state = manager.update_market_adjustment(state, "p-k")
        state = manager.identify_bargain_opportunities(
            state, fa_state.free_agents.values(), market_values
        )
        state = manager.record_visit(state, "p-k", "team-b")
        state = manager.record_visit(state, "p-k", "team-c")
        state = manager.record_minimum_signing(state, "fa-p-te-2024")

        data = state.to_dict()
        assert data["visit_history"] == {"p-k": ["team-b", "team-c"]}
        first = state.bargain_opportunities[0]
        assert data["bargain_opportunities"][0]["reason"] == first.reason.value
        restored = TricklePhaseState.from_dict(data)
        assert restored == state
        assert restored.visit_history["p-k"] == ("team-b", "team-c")

    def test_empty_dict_gives_defaults(self):
        assert TricklePhaseState.from_dict({}) == TricklePhaseState()
