"""
Unit Tests for Offer Evaluation

Tests player-side expectations, offer scoring and improvement hints.
"""

import pytest

from constants.positions import Position
from salary_cap.contract import ContractOffer
from salary_cap.extension_manager import FlexibilityLevel
from salary_cap.offer_evaluation import (
    OfferInterest,
    calculate_player_expectations,
    describe_player_priorities,
    evaluate_contract_offer,
    get_peak_age,
    suggest_offer_improvements,
)


@pytest.fixture
def elite_edge():
    """90 overall, 27-year-old defensive end in 2024."""
    return calculate_player_expectations(Position.DE, 90, 27, 5, 2024)


class TestExpectations:
    """Test tier and age driven asks."""

    def test_elite_player(self, elite_edge):
        assert elite_edge.expected_bonus_per_year == 13110
        assert elite_edge.expected_salary_per_year == 8740
        assert elite_edge.expected_years == 4
        assert elite_edge.minimum_total_per_year == 17480
        assert elite_edge.flexibility == FlexibilityLevel.RIGID

    def test_aging_player_wants_more_guaranteed(self):
        expectations = calculate_player_expectations("QB", 75, 36, 14, 2024)
        assert expectations.expected_bonus_per_year == 6861
        assert expectations.expected_salary_per_year == 5613
        assert expectations.expected_years == 2
        assert expectations.flexibility == FlexibilityLevel.MODERATE

    def test_young_depth_player(self):
        expectations = calculate_player_expectations(Position.RB, 60, 22, 1, 2024)
        assert expectations.expected_bonus_per_year == 1338
        assert expectations.expected_salary_per_year == 2484
        assert expectations.expected_years == 3
        assert expectations.flexibility == FlexibilityLevel.FLEXIBLE

    def test_peak_ages(self):
        assert get_peak_age(Position.K) == 32
        assert get_peak_age(Position.LT) == 30
        assert get_peak_age("RB") == 26

    def test_priorities(self, elite_edge):
        assert describe_player_priorities(elite_edge) == [
            "Heavily prioritizes guaranteed money",
            "Unlikely to negotiate - take it or leave it",
        ]
        depth = calculate_player_expectations(Position.RB, 60, 22, 1, 2024)
        assert describe_player_priorities(depth) == [
            "Balance of guaranteed and total value",
            "Willing to negotiate and find middle ground",
        ]


class TestEvaluation:
    """Test weighted scoring and minimum thresholds."""

    def test_market_offer(self, elite_edge, sample_offer):
        evaluation = evaluate_contract_offer(sample_offer, elite_edge)
        assert evaluation.interest_level == OfferInterest.VERY_INTERESTED
        assert evaluation.acceptance_likelihood == 94
        assert evaluation.perceived_value == 24750
        assert evaluation.market_comparison == 92
        assert evaluation.factors.bonus_score == 95
        assert evaluation.factors.salary_score == 86
        assert evaluation.factors.years_score == 100
        assert evaluation.meets_minimums

    def test_low_bonus_below_minimum(self, elite_edge):
        offer = ContractOffer(years=4, bonus_per_year=5000, salary_per_year=15000)
        evaluation = evaluate_contract_offer(offer, elite_edge)
        assert not evaluation.meets_minimums
        assert evaluation.acceptance_likelihood == 20
        assert evaluation.interest_level == OfferInterest.INSULTED
        assert evaluation.response_hint.startswith("Player wants more guaranteed money")

    def test_same_total_guaranteed_offer_preferred(self, elite_edge, sample_offer):
        salary_heavy = ContractOffer(years=4, bonus_per_year=5000, salary_per_year=15000)
        assert sample_offer.aav == salary_heavy.aav
        assert (
            evaluate_contract_offer(sample_offer, elite_edge).perceived_value
            > evaluate_contract_offer(salary_heavy, elite_edge).perceived_value
        )

    def test_low_total(self, elite_edge):
        offer = ContractOffer(years=2, bonus_per_year=12500, salary_per_year=2000)
        evaluation = evaluate_contract_offer(offer, elite_edge)
        assert not evaluation.meets_minimums
        assert evaluation.response_hint == "Overall value is too low. Increase both bonus and salary."

    def test_flexibility_bonus_capped(self):
        depth = calculate_player_expectations(Position.RB, 60, 22, 1, 2024)
        offer = ContractOffer(years=3, bonus_per_year=1100, salary_per_year=2000)
        evaluation = evaluate_contract_offer(offer, depth)
        assert evaluation.factors.total_score == 85
        assert evaluation.acceptance_likelihood == 100


class TestSuggestions:
    """Test improvement hints."""

    def test_bonus_first(self, elite_edge):
        offer = ContractOffer(years=4, bonus_per_year=5000, salary_per_year=15000)
        evaluation = evaluate_contract_offer(offer, elite_edge)
        assert suggest_offer_improvements(offer, elite_edge, evaluation) == [
            "Increase guaranteed bonus by ~$8.1M/year"
        ]

    def test_short_cheap_offer(self, elite_edge):
        offer = ContractOffer(years=2, bonus_per_year=12500, salary_per_year=2000)
        evaluation = evaluate_contract_offer(offer, elite_edge)
        assert suggest_offer_improvements(offer, elite_edge, evaluation) == [
            "Offer is below market value - increase total compensation",
            "Consider adding 2 more year(s)",
            "Non-guaranteed salary portion could be higher",
        ]

    def test_strong_offer(self, elite_edge, sample_offer):
        evaluation = evaluate_contract_offer(sample_offer, elite_edge)
        assert suggest_offer_improvements(sample_offer, elite_edge, evaluation) == [
            "Offer looks strong - player likely to accept"
        ]
