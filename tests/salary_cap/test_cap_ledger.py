"""
Unit Tests for the team cap ledger

Tests cap usage, dead money, projections, rollover and year
advancement on SalaryCapState.
"""

from dataclasses import replace

import pytest

from salary_cap.cap_ledger import (
    CapPenalty,
    PenaltyReason,
    SalaryCapState,
    add_contract,
    add_penalties,
    add_penalty,
    advance_cap_year,
    calculate_rollover,
    can_afford,
    cap_space,
    cap_usage,
    contracts_by_cap_hit,
    dead_money_for_year,
    effective_cap_space,
    expiring_contracts,
    get_cap_status,
    get_cap_summary,
    project_cap,
    remove_contract,
    validate_cap_state,
)
from salary_cap.contract import ContractStatus
from salary_cap.cut_calculator import CutCalculator, CutType


@pytest.fixture
def ledger(cap_state, sample_contract, salary_only_contract):
    """Ledger holding the QB ($20.0M) and WR ($10.0M) contracts."""
    state = add_contract(cap_state, sample_contract)
    return add_contract(state, salary_only_contract)


class TestCapUsage:
    """Test cap usage and space."""

    def test_empty_ledger(self, cap_state):
        assert cap_usage(cap_state) == 0
        assert cap_space(cap_state) == 255000

    def test_usage_sums_cap_hits(self, ledger):
        assert cap_usage(ledger) == 30000
        assert cap_space(ledger) == 225000

    def test_penalties_count_in_their_year(self, ledger):
        penalty = CapPenalty("pen-1", "p-old", PenaltyReason.CUT, 5000, 2024, 1)
        state = add_penalty(ledger, penalty)
        assert dead_money_for_year(state, 2024) == 5000
        assert cap_usage(state) == 35000
        assert cap_usage(state, 2025) == 30000

    def test_remove_contract(self, ledger):
        state = remove_contract(ledger, "contract-qb1")
        assert cap_usage(state) == 10000

    def test_affordability(self, ledger):
        assert can_afford(ledger, 225000)
        assert not can_afford(ledger, 225001)

    def test_effective_space_reserves_minimums(self, ledger):
        """51 open roster spots are reserved at the rookie minimum."""
        assert effective_cap_space(ledger) == 225000 - 51 * 795

    def test_negative_penalty_rejected(self):
        with pytest.raises(ValueError):
            CapPenalty("pen-1", "p-old", PenaltyReason.CUT, -1, 2024, 1)


class TestCapStatus:
    """Test status, projection and display."""

    def test_status_fields(self, ledger):
        status = get_cap_status(ledger)
        assert status["current_cap_usage"] == 30000
        assert status["cap_space"] == 225000
        assert status["top_51_total"] == 30000
        assert not status["is_over_cap"]
        assert not status["meets_floor"]
        assert status["percent_used"] == pytest.approx(30000 / 255000 * 100)

    def test_projection_grows_cap(self, ledger):
        projections = project_cap(ledger, years_ahead=1)
        assert [p["year"] for p in projections] == [2024, 2025]
        assert projections[0]["projected_cap"] == 255000
        assert projections[1]["projected_cap"] == 275400
        assert projections[1]["committed_spend"] == 30000

    def test_expiring_contracts(self, ledger):
        assert [c.id for c in expiring_contracts(ledger, 2026)] == ["contract-wr1"]
        assert [c.id for c in expiring_contracts(ledger, 2027)] == ["contract-qb1"]

    def test_contracts_by_cap_hit(self, ledger):
        ordered = contracts_by_cap_hit(ledger)
        assert [(c.id, hit) for c, hit in ordered] == [
            ("contract-qb1", 20000), ("contract-wr1", 10000)
        ]

    def test_summary_descriptions(self, ledger):
        summary = get_cap_summary(ledger)
        assert summary["cap_status_description"] == "Significant cap space available"
        assert summary["flexibility_rating"] == "excellent"
        assert summary["space_description"] == "$225M+ available"
        assert summary["dead_money_description"] == "Minimal dead money"

    def test_over_cap(self, ledger):
        tight = replace(ledger, salary_cap=25000, baseline_cap=25000)
        summary = get_cap_summary(tight)
        assert summary["flexibility_rating"] == "critical"
        assert summary["space_description"] == "$5.0M over cap"


class TestCutIntoLedger:
    """Test recording a release in the ledger."""

    def test_post_june_1_cut_charges_two_years(self, ledger, sample_contract):
        outcome = CutCalculator().execute_cut(sample_contract, 2024, CutType.POST_JUNE_1).result
        state = remove_contract(ledger, sample_contract.id)
        state = add_penalties(state, outcome.penalties)
        assert dead_money_for_year(state, 2024) == 12500
        assert dead_money_for_year(state, 2025) == 37500
        assert cap_usage(state) == 10000 + 12500


class TestAdvanceCapYear:
    """Test closing a league year."""

    def test_rollover_added_to_new_cap(self, ledger):
        assert calculate_rollover(ledger) == 225000
        advanced = advance_cap_year(ledger, 275000)
        assert advanced.current_year == 2025
        assert advanced.rollover == 225000
        assert advanced.salary_cap == 500000
        assert validate_cap_state(advanced) == []

    def test_contracts_advance_and_expired_drop(self, ledger, sample_contract):
        last_year = replace(sample_contract, years_remaining=1)
        state = add_contract(ledger, last_year)
        advanced = advance_cap_year(state, 275000)
        assert "contract-qb1" not in advanced.contracts
        assert advanced.contracts["contract-wr1"].years_remaining == 2
        assert advanced.contracts["contract-wr1"].status == ContractStatus.ACTIVE

    def test_penalties_expire(self, ledger):
        penalties = [
            CapPenalty("pen-1", "p-old", PenaltyReason.CUT, 5000, 2024, 1),
            CapPenalty("pen-2", "p-old", PenaltyReason.CUT, 7000, 2025, 2),
        ]
        advanced = advance_cap_year(add_penalties(ledger, penalties), 275000)
        assert [p.id for p in advanced.penalties] == ["pen-2"]
        assert dead_money_for_year(advanced) == 7000

    def test_dict_round_trip(self, ledger):
        state = add_penalty(ledger, CapPenalty("pen-1", "p-old", PenaltyReason.TRADE, 5000, 2024, 1))
        assert SalaryCapState.from_dict(state.to_dict()) == state

    def test_invalid_cap_flagged(self, ledger):
        broken = replace(ledger, salary_cap=1)
        assert "Salary cap must equal baseline plus rollover" in validate_cap_state(broken)
