"""
Unit Tests for legal tampering

Tests negotiations and verbal agreements including:
- Window open/close by day
- Strictly increasing agreement priority
- Player decision scoring
- Conversion into signings when the market opens (first signing wins)
"""

import pytest

from free_agency.legal_tampering import (
    TamperingStatus,
    advance_tampering_day,
    convert_verbal_agreements,
    create_legal_tampering_state,
    end_negotiation,
    evaluate_tampering_offers,
    get_primary_verbal_agreement,
    get_tampering_summary,
    has_verbal_agreement,
    initiate_negotiation,
    record_verbal_agreement,
    score_tampering_offer,
    start_legal_tampering,
    update_negotiation,
    validate_legal_tampering_state,
)
from free_agency.models import FreeAgentStatus, MarketValue, OfferStatus, ProductionTier
from salary_cap.contract import ContractOffer


EDGE_ID = "fa-p-edge-2024"
CB_ID = "fa-p-cb-2024"


@pytest.fixture
def tampering():
    return start_legal_tampering(create_legal_tampering_state(68, 69))


@pytest.fixture
def market_value():
    """$20.0M x 4 projection."""
    return MarketValue(
        player_id="p-edge",
        base_value=20000,
        age_adjusted_value=20000,
        demand_adjusted_value=20000,
        projected_aav=20000,
        projected_years=4,
        projected_guaranteed=40000,
        guarantee_pct=0.5,
        tier=ProductionTier.PRO_BOWL,
    )


class TestWindow:
    """Test the tampering calendar."""

    def test_start_opens_window(self, tampering):
        assert tampering.is_active
        assert tampering.current_day == 68

    def test_closes_after_end_day(self, tampering):
        state = advance_tampering_day(tampering)
        assert state.is_active
        assert state.current_day == 69
        state = advance_tampering_day(state)
        assert not state.is_active

    def test_summary_days_remaining(self, tampering):
        summary = get_tampering_summary(tampering, {})
        assert summary["is_active"]
        assert summary["days_remaining"] == 1


class TestNegotiations:
    """Test negotiation bookkeeping."""

    def test_initiate_counts_activity(self, tampering, sample_offer):
        state = initiate_negotiation(tampering, EDGE_ID, "team-b", sample_offer)
        state = initiate_negotiation(state, CB_ID, "team-b", sample_offer)
        assert state.team_activity == {"team-b": 2}
        assert len(state.negotiations) == 2

    def test_update_appends_offer(self, tampering, sample_offer):
        better = ContractOffer(years=4, bonus_per_year=13000, salary_per_year=8000)
        state = initiate_negotiation(tampering, EDGE_ID, "team-b", sample_offer)
        state = update_negotiation(state, "team-b", EDGE_ID, better, 0.9)
        negotiation = state.negotiations[f"team-b-{EDGE_ID}"]
        assert negotiation.meeting_count == 2
        assert negotiation.latest_offer == better
        assert negotiation.closeness == 0.9

    def test_end_negotiation(self, tampering, sample_offer):
        state = initiate_negotiation(tampering, EDGE_ID, "team-b", sample_offer)
        state = end_negotiation(state, "team-b", EDGE_ID)
        assert state.negotiations[f"team-b-{EDGE_ID}"].status == TamperingStatus.NO_DEAL


class TestVerbalAgreements:
    """Test agreement priority."""

    def test_priority_strictly_increases(self, tampering, sample_offer):
        state = record_verbal_agreement(tampering, EDGE_ID, "team-b", sample_offer)
        state = record_verbal_agreement(state, CB_ID, "team-c", sample_offer)
        state = record_verbal_agreement(state, EDGE_ID, "team-d", sample_offer)
        assert [va.priority for va in state.verbal_agreements] == [1, 2, 3]
        assert validate_legal_tampering_state(state) == []

    def test_primary_agreement_is_earliest(self, tampering, sample_offer):
        state = record_verbal_agreement(tampering, EDGE_ID, "team-b", sample_offer)
        state = record_verbal_agreement(state, EDGE_ID, "team-c", sample_offer)
        assert has_verbal_agreement(state, EDGE_ID)
        assert get_primary_verbal_agreement(state, EDGE_ID).team_id == "team-b"
        assert get_primary_verbal_agreement(state, CB_ID) is None

    def test_agreement_marks_negotiation(self, tampering, sample_offer):
        state = initiate_negotiation(tampering, EDGE_ID, "team-b", sample_offer)
        state = record_verbal_agreement(state, EDGE_ID, "team-b", sample_offer)
        negotiation = state.negotiations[f"team-b-{EDGE_ID}"]
        assert negotiation.status == TamperingStatus.VERBAL_AGREEMENT
        assert negotiation.closeness == 1.0


class TestPlayerDecision:
    """Test offer scoring."""

    def test_market_offer_scores_high(self, sample_offer, market_value):
        assert score_tampering_offer(sample_offer, market_value) == pytest.approx(1.075)

    def test_low_offer_scores_low(self, market_value):
        offer = ContractOffer(years=2, bonus_per_year=0, salary_per_year=10000)
        assert score_tampering_offer(offer, market_value) == pytest.approx(0.41)

    def test_best_offer_chosen(self, tampering, fa_state, sample_offer, market_value):
        low = ContractOffer(years=2, bonus_per_year=0, salary_per_year=10000)
        state = initiate_negotiation(tampering, EDGE_ID, "team-b", low)
        state = initiate_negotiation(state, EDGE_ID, "team-c", sample_offer)
        choice = evaluate_tampering_offers(
            fa_state.free_agents[EDGE_ID], list(state.negotiations.values()), market_value
        )
        assert choice == ("team-c", sample_offer)

    def test_nothing_above_threshold(self, tampering, fa_state, market_value):
        low = ContractOffer(years=2, bonus_per_year=0, salary_per_year=10000)
        state = initiate_negotiation(tampering, EDGE_ID, "team-b", low)
        assert evaluate_tampering_offers(
            fa_state.free_agents[EDGE_ID], list(state.negotiations.values()), market_value
        ) is None


class TestConversion:
    """Test converting agreements when the market opens."""

    def test_no_conversion_before_market(self, tampering, fa_manager, fa_state, sample_offer):
        state = record_verbal_agreement(tampering, EDGE_ID, "team-b", sample_offer)
        assert convert_verbal_agreements(state, fa_state, fa_manager) is fa_state

    def test_first_signing_wins(self, tampering, fa_manager, open_fa_state, sample_offer):
        state = record_verbal_agreement(tampering, EDGE_ID, "team-c", sample_offer)
        state = record_verbal_agreement(state, CB_ID, "team-b", sample_offer)
        state = record_verbal_agreement(state, EDGE_ID, "team-b", sample_offer)

        fa_state = convert_verbal_agreements(state, open_fa_state, fa_manager)
        edge = fa_state.free_agents[EDGE_ID]
        assert edge.status == FreeAgentStatus.SIGNED
        assert edge.signed_team_id == "team-c"
        assert fa_state.free_agents[CB_ID].signed_team_id == "team-b"
        assert len(fa_state.signed_contracts) == 2

    def test_agreed_offer_is_the_one_accepted(self, tampering, fa_manager, open_fa_state, sample_offer):
        """Earlier market offers shift the counter; the agreed terms still sign."""
        rival = ContractOffer(years=1, bonus_per_year=0, salary_per_year=5000)
        fa_state = fa_manager.submit_offer(open_fa_state, "team-d", EDGE_ID, rival)
        state = record_verbal_agreement(tampering, EDGE_ID, "team-b", sample_offer)

        fa_state = convert_verbal_agreements(state, fa_state, fa_manager)
        edge = fa_state.free_agents[EDGE_ID]
        agreed = fa_state.offers[edge.offer_ids[-1]]
        assert agreed.status == OfferStatus.ACCEPTED
        assert agreed.offer == sample_offer
        assert edge.signed_team_id == "team-b"
