"""
Unit Tests for TagManager

Tests franchise and transition tags including:
- Tag pricing with annual growth and consecutive-tag escalators
- One franchise and one transition tag per team per year
- One-year fully guaranteed tag contracts
- Tag removal
"""

import pytest

from constants.positions import Position
from salary_cap.contract import ContractType, cap_hit_for_year, dead_money
from salary_cap.tag_manager import (
    FranchiseTagType,
    TagManager,
    get_franchise_tag_value,
    get_transition_tag_value,
)
from shared.operation_result import ContractErrorCode


@pytest.fixture
def tag_manager():
    return TagManager()


@pytest.fixture
def tag_status(tag_manager):
    return tag_manager.create_team_tag_status("team-a", 2024)


class TestTagValues:
    """Test tag pricing."""

    def test_base_year_value(self):
        assert get_franchise_tag_value(Position.QB) == 32400
        assert get_franchise_tag_value("K") == 5700

    def test_consecutive_tag_escalators(self):
        """120% for the second straight tag, 144% for the third."""
        assert get_franchise_tag_value("QB", 2) == 38880
        assert get_franchise_tag_value("QB", 3) == 46656

    def test_values_grow_each_year(self):
        assert get_franchise_tag_value("QB", 1, 2025) == 34992

    def test_years_before_base_do_not_shrink(self):
        assert get_franchise_tag_value("QB", 1, 2020) == 32400

    def test_transition_is_85_percent(self):
        assert get_transition_tag_value("QB") == 27540


class TestApplyTag:
    """Test applying tags."""

    def test_franchise_tag_contract(self, tag_manager, tag_status):
        """Tag contract is one year, fully guaranteed."""
        result = tag_manager.apply_franchise_tag(tag_status, "p-qb1", "Tagged QB", "QB")
        assert result.success
        contract = result.result.contract
        assert contract.type == ContractType.FRANCHISE_TAG
        assert contract.total_years == 1
        assert cap_hit_for_year(contract, 2024) == 32400
        assert dead_money(contract, 2024) == 32400

    def test_franchise_tag_marks_status(self, tag_manager, tag_status):
        updated = tag_manager.apply_franchise_tag(
            tag_status, "p-qb1", "Tagged QB", "QB", exclusive=True
        ).result.updated_status
        assert updated.has_used_franchise_tag
        assert updated.tagged_player_id == "p-qb1"
        assert not updated.has_used_transition_tag

    def test_exclusive_tag_type(self, tag_manager, tag_status):
        tag = tag_manager.apply_franchise_tag(
            tag_status, "p-qb1", "Tagged QB", "QB", exclusive=True
        ).result.tag
        assert tag.type == FranchiseTagType.EXCLUSIVE
        assert tag.deadline == "July 15, 2024"

    def test_second_franchise_tag_rejected(self, tag_manager, tag_status):
        first = tag_manager.apply_franchise_tag(tag_status, "p-qb1", "Tagged QB", "QB")
        second = tag_manager.apply_franchise_tag(
            first.result.updated_status, "p-wr1", "Tagged WR", "WR"
        )
        assert not second.success
        assert second.error_code == ContractErrorCode.TAG_ALREADY_USED
        assert second.error == "Already used franchise tag this year"

    def test_transition_available_after_franchise(self, tag_manager, tag_status):
        first = tag_manager.apply_franchise_tag(tag_status, "p-qb1", "Tagged QB", "QB")
        second = tag_manager.apply_transition_tag(
            first.result.updated_status, "p-wr1", "Tagged WR", "WR"
        )
        assert second.success
        assert second.result.contract.type == ContractType.TRANSITION_TAG
        assert second.result.tag.salary == get_transition_tag_value("WR")

    def test_consecutive_tag_priced_with_escalator(self, tag_manager, tag_status):
        result = tag_manager.apply_franchise_tag(
            tag_status, "p-qb1", "Tagged QB", "QB", consecutive_tag_count=2
        )
        assert result.result.tag.salary == 38880


class TestTagStatus:
    """Test tag removal and year rollover."""

    def test_long_term_deal_frees_tag(self, tag_manager, tag_status):
        used = tag_manager.apply_franchise_tag(tag_status, "p-qb1", "Tagged QB", "QB").result.updated_status
        freed = tag_manager.remove_tag(used, "p-qb1", signed_long_term_deal=True)
        assert not freed.has_used_franchise_tag
        assert freed.tagged_player_id is None

    def test_rescinded_tag_stays_used(self, tag_manager, tag_status):
        used = tag_manager.apply_franchise_tag(tag_status, "p-qb1", "Tagged QB", "QB").result.updated_status
        rescinded = tag_manager.remove_tag(used, "p-qb1", signed_long_term_deal=False)
        assert rescinded.has_used_franchise_tag
        assert rescinded.tagged_player_id is None

    def test_new_year_resets_tags(self, tag_manager, tag_status):
        used = tag_manager.apply_franchise_tag(tag_status, "p-qb1", "Tagged QB", "QB").result.updated_status
        next_year = tag_manager.advance_tag_year(used, 2025)
        assert next_year.year == 2025
        assert tag_manager.can_use_franchise_tag(next_year) is None

    def test_status_summary(self, tag_manager, tag_status):
        summary = tag_manager.get_tag_status_summary(tag_status)
        assert summary["franchise_status"] == "Franchise tag available"
        assert summary["transition_status"] == "Transition tag available"

    def test_position_comparisons_sorted(self, tag_manager):
        comparisons = tag_manager.get_position_tag_comparisons()
        assert comparisons[0]["position"] == Position.QB
        assert comparisons[0]["tier"] == "premium"
        assert comparisons[-1]["position"] == Position.P
