"""
Unit Tests for the contract ledger

Tests the canonical offer and contract records including:
- Offer validation and derived values
- Yearly breakdown and cap hits
- Dead money and cap savings
- Year advancement and expiry
- Summary and validation helpers

All amounts in thousands.
"""

from dataclasses import replace

import pytest

from salary_cap.contract import (
    ContractOffer,
    ContractStatus,
    ContractType,
    PlayerContract,
    advance_year,
    cap_hit_for_year,
    cap_savings,
    contract_end_year,
    create_contract,
    create_minimum_contract,
    dead_money,
    get_contract_summary,
    get_minimum_salary,
    is_expiring_contract,
    is_valid_contract,
    post_june_1_dead_money,
    remaining_contract_years,
    validate_contract,
)


class TestContractOffer:
    """Test offer validation and derived values."""

    def test_derived_values(self, sample_offer):
        """AAV, total value and guarantee come from the per-year amounts."""
        assert sample_offer.aav == 20000
        assert sample_offer.total_value == 80000
        assert sample_offer.guaranteed_money == 50000

    def test_zero_years_rejected(self):
        """An offer must cover at least one year."""
        with pytest.raises(ValueError):
            ContractOffer(years=0, bonus_per_year=1000, salary_per_year=1000)

    def test_negative_amounts_rejected(self):
        """Bonus and salary cannot be negative."""
        with pytest.raises(ValueError):
            ContractOffer(years=2, bonus_per_year=-1, salary_per_year=1000)
        with pytest.raises(ValueError):
            ContractOffer(years=2, bonus_per_year=1000, salary_per_year=-1)

    def test_dict_round_trip(self, sample_offer):
        """Offers serialize and deserialize unchanged."""
        assert ContractOffer.from_dict(sample_offer.to_dict()) == sample_offer


class TestCreateContract:
    """Test contract creation from an offer."""

    def test_breakdown_covers_every_year(self, sample_contract):
        """One breakdown entry per offer year starting at the signed year."""
        years = [y.year for y in sample_contract.yearly_breakdown]
        assert years == [2024, 2025, 2026, 2027]
        assert all(y.cap_hit == 20000 for y in sample_contract.yearly_breakdown)

    def test_totals_match_offer(self, sample_contract):
        """Total value and guarantee equal the offer's."""
        assert sample_contract.total_value == 80000
        assert sample_contract.guaranteed_money == 50000
        assert sample_contract.average_annual_value == 20000
        assert sample_contract.status == ContractStatus.ACTIVE
        assert sample_contract.type == ContractType.VETERAN

    def test_explicit_id_is_used(self, sample_contract):
        """Supplied contract ids are kept."""
        assert sample_contract.id == "contract-qb1"

    def test_generated_ids_are_unique(self, sample_offer):
        """Contracts without an explicit id get distinct ids."""
        first = create_contract("p1", "One", "team-a", "QB", sample_offer, 2024)
        second = create_contract("p1", "One", "team-a", "QB", sample_offer, 2024)
        assert first.id != second.id

    def test_years_remaining_out_of_range_rejected(self, sample_contract):
        """years_remaining must lie between 0 and total_years."""
        with pytest.raises(ValueError):
            replace(sample_contract, years_remaining=5)

    def test_dict_round_trip(self, sample_contract):
        """Contracts serialize and deserialize unchanged."""
        assert PlayerContract.from_dict(sample_contract.to_dict()) == sample_contract


class TestMinimumSalary:
    """Test the league minimum table."""

    def test_rookie_minimum(self):
        assert get_minimum_salary(0) == 795

    def test_veteran_minimum_caps_at_seven_years(self):
        """Every player with 7+ seasons earns the same minimum."""
        assert get_minimum_salary(7) == 1215
        assert get_minimum_salary(12) == 1215

    def test_minimum_contract_has_no_guarantee(self):
        """Minimum deals are all salary."""
        contract = create_minimum_contract("p1", "Depth", "team-a", "LG", 4, 2024)
        assert contract.guaranteed_money == 0
        assert cap_hit_for_year(contract, 2024) == get_minimum_salary(4)


class TestLedgerQueries:
    """Test cap hits, dead money and savings."""

    def test_cap_hit_outside_contract_is_zero(self, sample_contract):
        """Seasons the contract does not cover cost nothing."""
        assert cap_hit_for_year(sample_contract, 2023) == 0
        assert cap_hit_for_year(sample_contract, 2028) == 0

    def test_dead_money_is_remaining_bonus(self, sample_contract):
        """Releasing a player accelerates every remaining bonus dollar."""
        assert dead_money(sample_contract, 2024) == 50000
        assert dead_money(sample_contract, 2026) == 25000

    def test_cap_savings_is_current_salary(self, sample_contract):
        assert cap_savings(sample_contract, 2025) == 7500

    def test_post_june_1_split(self, sample_contract):
        """Post-June 1: this year's bonus now, the rest next year."""
        assert post_june_1_dead_money(sample_contract, 2024) == {"year1": 12500, "year2": 37500}

    def test_end_year_and_remaining_years(self, sample_contract):
        assert contract_end_year(sample_contract) == 2027
        remaining = remaining_contract_years(sample_contract, 2026)
        assert [y.year for y in remaining] == [2026, 2027]


class TestAdvanceYear:
    """Test year advancement and expiry."""

    def test_active_contract_loses_a_year(self, sample_contract):
        advanced = advance_year(sample_contract)
        assert advanced.years_remaining == 3
        assert advanced.status == ContractStatus.ACTIVE

    def test_last_year_expires(self, sample_contract):
        """Completing the final season marks the contract expired."""
        last_year = replace(sample_contract, years_remaining=1)
        assert is_expiring_contract(last_year)
        advanced = advance_year(last_year)
        assert advanced.status == ContractStatus.EXPIRED
        assert advanced.years_remaining == 0

    def test_inactive_contract_unchanged(self, sample_contract):
        """Voided contracts come back as-is."""
        voided = replace(sample_contract, status=ContractStatus.VOIDED, years_remaining=0)
        assert advance_year(voided) is voided


class TestSummaryAndValidation:
    """Test display summary and invariant checks."""

    def test_summary_formats_money(self, sample_contract):
        summary = get_contract_summary(sample_contract, 2024)
        assert summary["total_value"] == "$80.0M"
        assert summary["guaranteed"] == "$50.0M"
        assert summary["aav"] == "$20.0M"
        assert summary["current_cap_hit"] == "$20.0M"
        assert summary["status_description"] == "Active"

    def test_expiring_status_description(self, sample_contract):
        summary = get_contract_summary(replace(sample_contract, years_remaining=1), 2027)
        assert summary["status_description"] == "Expiring"

    def test_fresh_contract_is_valid(self, sample_contract):
        assert validate_contract(sample_contract) == []
        assert is_valid_contract(sample_contract)

    def test_guarantee_mismatch_flagged(self, sample_contract):
        """Guaranteed money must equal the prorated bonus total."""
        broken = replace(sample_contract, guaranteed_money=10000)
        assert "Guaranteed money does not match prorated bonus" in validate_contract(broken)
