"""
Unit Tests for ExtensionManager

Tests extension valuation, negotiation and execution.
"""

from dataclasses import replace

import pytest

from salary_cap.contract import ContractOffer, ContractStatus, ContractType, cap_hit_for_year
from salary_cap.extension_manager import (
    ExtensionManager,
    FlexibilityLevel,
    MarketTier,
    PlayerPersonality,
)
from shared.operation_result import ContractErrorCode


@pytest.fixture
def manager():
    return ExtensionManager()


@pytest.fixture
def elite_qb_valuation(manager):
    """90 overall, 27-year-old quarterback valued in 2024."""
    return manager.calculate_extension_value("QB", 90, 27, 5, 2024, player_id="p-qb1")


class TestValuation:
    """Test market tiers and estimated values."""

    def test_premium_position_tiers(self, manager):
        assert manager.determine_market_tier(90, "QB") == MarketTier.ELITE
        assert manager.determine_market_tier(80, "QB") == MarketTier.PREMIUM
        assert manager.determine_market_tier(35, "QB") == MarketTier.MINIMUM

    def test_non_premium_rating_bump(self, manager):
        """Non-premium positions get +3 before the lookup."""
        assert manager.determine_market_tier(88, "LG") == MarketTier.ELITE
        assert manager.determine_market_tier(88, "QB") == MarketTier.PREMIUM

    def test_elite_qb_value(self, elite_qb_valuation):
        """Floor of the elite tier pays exactly the franchise tag."""
        assert elite_qb_valuation.market_tier == MarketTier.ELITE
        assert elite_qb_valuation.estimated_aav == 32400
        assert elite_qb_valuation.estimated_years == 5
        assert elite_qb_valuation.estimated_guaranteed == 97200
        assert elite_qb_valuation.confidence_level == 1.0

    def test_age_discount(self, manager):
        """32+ year olds are valued at 75%."""
        old = manager.calculate_extension_value("QB", 90, 33, 11, 2024)
        assert old.estimated_aav == 24300
        assert old.estimated_years == 2


class TestDemands:
    """Test personality-driven demands."""

    def test_greedy_player_asks_more_and_is_rigid(self, manager, elite_qb_valuation):
        demands = manager.generate_player_demands(elite_qb_valuation, PlayerPersonality(greedy=80))
        assert demands.preferred_aav == 37260
        assert demands.preferred_guaranteed == 116640
        assert demands.minimum_aav == 31671
        assert demands.minimum_years == 4
        assert demands.flexibility_level == FlexibilityLevel.RIGID

    def test_loyal_player_is_flexible(self, manager, elite_qb_valuation):
        demands = manager.generate_player_demands(elite_qb_valuation, PlayerPersonality(loyal=80))
        assert demands.flexibility_level == FlexibilityLevel.FLEXIBLE
        assert demands.preferred_aav == 32400

    def test_elite_tier_asks_for_clauses(self, manager, elite_qb_valuation):
        demands = manager.generate_player_demands(elite_qb_valuation, PlayerPersonality())
        assert demands.no_trade_clause
        assert demands.no_tag_clause


class TestNegotiation:
    """Test offer evaluation."""

    def test_market_offer_accepted(self, manager, elite_qb_valuation):
        demands = manager.generate_player_demands(elite_qb_valuation, PlayerPersonality())
        offer = ContractOffer(years=5, bonus_per_year=19440, salary_per_year=12960)
        result = manager.evaluate_offer(offer, demands)
        assert result.accepted
        assert result.counter_offer is None
        assert result.closeness == pytest.approx(1.0)

    def test_low_guarantee_countered_with_preferred_terms(self, manager, elite_qb_valuation):
        demands = manager.generate_player_demands(elite_qb_valuation, PlayerPersonality())
        offer = ContractOffer(years=5, bonus_per_year=1000, salary_per_year=31400)
        result = manager.evaluate_offer(offer, demands)
        assert not result.accepted
        assert result.player_response == (
            "We need more guaranteed money (bonus) to provide security."
        )
        assert result.counter_offer.years == 5
        assert result.counter_offer.aav == 32400

    def test_recommended_offer_uses_tier_guarantee(self, manager, elite_qb_valuation):
        offer = manager.calculate_recommended_offer(elite_qb_valuation, target_years=4)
        assert offer.years == 4
        assert offer.aav == 32400
        assert offer.bonus_per_year == 19440
        assert offer.no_trade_clause


class TestExtendContract:
    """Test appending years to a contract."""

    def test_new_years_follow_last_season(self, manager, sample_contract):
        result = manager.extend_contract(
            sample_contract, ContractOffer(years=2, bonus_per_year=4000, salary_per_year=15000), 2024
        )
        assert result.success
        extended = result.result.contract
        assert [y.year for y in extended.yearly_breakdown] == [2024, 2025, 2026, 2027, 2028, 2029]
        assert extended.total_years == 6
        assert extended.years_remaining == 6
        assert extended.type == ContractType.EXTENSION
        assert extended.id == "contract-qb1-ext-2024"

    def test_new_bonus_prorated_over_remaining_and_new_years(self, manager, sample_contract):
        """$8.0M of new bonus spread over six seasons."""
        extended = manager.extend_contract(
            sample_contract, ContractOffer(years=2, bonus_per_year=4000, salary_per_year=15000), 2024
        ).result.contract
        assert cap_hit_for_year(extended, 2024) == 20000 + 1333
        assert cap_hit_for_year(extended, 2029) == 15000 + 1333

    def test_new_money_reported(self, manager, sample_contract):
        result = manager.extend_contract(
            sample_contract, ContractOffer(years=2, bonus_per_year=4000, salary_per_year=15000), 2024
        )
        assert result.result.years_added == 2
        assert result.result.new_money_added == 38000

    def test_too_many_years_rejected(self, manager, sample_contract):
        result = manager.extend_contract(
            sample_contract, ContractOffer(years=6, bonus_per_year=0, salary_per_year=1000), 2024
        )
        assert result.error_code == ContractErrorCode.INVALID_YEARS

    def test_inactive_contract_rejected(self, manager, sample_contract):
        expired = replace(sample_contract, status=ContractStatus.EXPIRED, years_remaining=0)
        result = manager.extend_contract(
            expired, ContractOffer(years=2, bonus_per_year=0, salary_per_year=1000), 2024
        )
        assert result.error_code == ContractErrorCode.CONTRACT_NOT_ACTIVE

    def test_no_years_remaining_rejected(self, manager, sample_contract):
        finished = replace(sample_contract, years_remaining=0)
        result = manager.extend_contract(
            finished, ContractOffer(years=2, bonus_per_year=0, salary_per_year=1000), 2024
        )
        assert result.error_code == ContractErrorCode.NO_YEARS_REMAINING

    def test_eligibility_requires_two_or_fewer_years(self, manager, sample_contract):
        late = replace(sample_contract, id="contract-late", years_remaining=2)
        eligible = manager.get_extension_eligible([sample_contract, late])
        assert [c.id for c in eligible] == ["contract-late"]
