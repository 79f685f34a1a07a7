"""
Tag Manager

Manages franchise and transition tags including:
- Tag salaries by position (2024 baseline grown 8% per year)
- Consecutive tag escalators (120%, 144%)
- One-year fully guaranteed tag contracts
- Per-team, per-year tag availability

All money values are in thousands of dollars.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import logging

from config.economy_settings import EconomySettings
from constants.positions import Position, to_position
from shared.money import format_money
from shared.operation_result import ContractErrorCode, OperationResult
from .contract import ContractOffer, ContractType, PlayerContract, create_contract


class FranchiseTagType(Enum):
    """Tag designations."""
    EXCLUSIVE = "exclusive"
    NON_EXCLUSIVE = "non_exclusive"
    TRANSITION = "transition"


# 2024 franchise tag values by position (thousands)
FRANCHISE_TAG_BASE_VALUES: Dict[Position, int] = {
    Position.QB: 32400,
    Position.RB: 10400,
    Position.WR: 21000,
    Position.TE: 14200,
    Position.LT: 19800,
    Position.LG: 16500,
    Position.C: 14500,
    Position.RG: 16500,
    Position.RT: 18000,
    Position.DE: 23000,
    Position.DT: 18500,
    Position.OLB: 20400,
    Position.ILB: 16800,
    Position.CB: 20000,
    Position.FS: 15200,
    Position.SS: 15200,
    Position.K: 5700,
    Position.P: 5300,
}

# Consecutive tag escalators
SECOND_TAG_MULTIPLIER = 1.20  # 120% for the second straight tag
THIRD_TAG_MULTIPLIER = 1.44  # 144% for the third
TRANSITION_TAG_RATIO = 0.85


def get_franchise_tag_value(
    position: Union[Position, str],
    consecutive_tag_count: int = 1,
    year: int = EconomySettings.TAG_BASE_YEAR,
) -> int:
    """
    Franchise tag salary for a position and season.

    Formula:
        grown = round(base_2024 × 1.08^max(0, year - 2024))
        value = round(grown × {1: 1.0, 2: 1.20, 3+: 1.44})
    """
    base = FRANCHISE_TAG_BASE_VALUES[to_position(position)]
    years_from_base = max(0, year - EconomySettings.TAG_BASE_YEAR)
    grown = round(base * (1 + EconomySettings.TAG_GROWTH_RATE) ** years_from_base)

    if consecutive_tag_count == 2:
        return round(grown * SECOND_TAG_MULTIPLIER)
    if consecutive_tag_count >= 3:
        return round(grown * THIRD_TAG_MULTIPLIER)
    return grown


def get_transition_tag_value(
    position: Union[Position, str],
    year: int = EconomySettings.TAG_BASE_YEAR,
) -> int:
    """Transition tag salary: 85% of the first-time franchise tag."""
    return round(get_franchise_tag_value(position, 1, year) * TRANSITION_TAG_RATIO)


@dataclass(frozen=True)
class TeamTagStatus:
    """
    Which tags a team has used in a league year.

    Attributes:
        team_id: Team identifier
        year: League year
        has_used_franchise_tag: Franchise tag (either kind) applied
        has_used_transition_tag: Transition tag applied
        tagged_player_id: Player holding the franchise tag
        transition_player_id: Player holding the transition tag
    """

    team_id: str
    year: int
    has_used_franchise_tag: bool = False
    has_used_transition_tag: bool = False
    tagged_player_id: Optional[str] = None
    transition_player_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "year": self.year,
            "has_used_franchise_tag": self.has_used_franchise_tag,
            "has_used_transition_tag": self.has_used_transition_tag,
            "tagged_player_id": self.tagged_player_id,
            "transition_player_id": self.transition_player_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamTagStatus":
        return cls(**data)


@dataclass(frozen=True)
class FranchiseTag:
    """A tag placed on a player."""

    player_id: str
    player_name: str
    team_id: str
    position: Position
    type: FranchiseTagType
    year: int
    salary: int
    consecutive_tag_count: int = 1
    has_long_term_deal: bool = False

    @property
    def deadline(self) -> str:
        return f"July 15, {self.year}"


@dataclass(frozen=True)
class TagOutcome:
    """Tag, its one-year contract and the team's updated tag status."""

    tag: FranchiseTag
    contract: PlayerContract
    updated_status: TeamTagStatus


class TagManager:
    """
    Manages franchise and transition tags.

    Key Responsibilities:
    - Price tags by position and season
    - Apply tags and create 1-year fully guaranteed contracts
    - Enforce one franchise tag and one transition tag per team per year
    - Handle consecutive tag escalators (120% for 2nd, 144% for 3rd)
    """

    PREMIUM_TAG_THRESHOLD = 20000
    MID_TAG_THRESHOLD = 14000

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # TAG STATUS
    # ========================================================================

    def create_team_tag_status(self, team_id: str, year: int) -> TeamTagStatus:
        return TeamTagStatus(team_id=team_id, year=year)

    def can_use_franchise_tag(self, status: TeamTagStatus) -> Optional[str]:
        """Return the reason the franchise tag is unavailable, or None."""
        if status.has_used_franchise_tag:
            return "Already used franchise tag this year"
        return None

    def can_use_transition_tag(self, status: TeamTagStatus) -> Optional[str]:
        """Return the reason the transition tag is unavailable, or None."""
        if status.has_used_transition_tag:
            return "Already used transition tag this year"
        return None

    def advance_tag_year(self, status: TeamTagStatus, new_year: int) -> TeamTagStatus:
        """Both tags become available again in a new league year."""
        return self.create_team_tag_status(status.team_id, new_year)

    # ========================================================================
    # TAG OPERATIONS
    # ========================================================================

    def apply_tag(
        self,
        status: TeamTagStatus,
        player_id: str,
        player_name: str,
        position: Union[Position, str],
        tag_type: FranchiseTagType = FranchiseTagType.NON_EXCLUSIVE,
        consecutive_tag_count: int = 1
    ) -> OperationResult[TagOutcome]:
        """
        Tag a player.

        Args:
            status: Team tag status for the league year
            player_id: Player to tag
            player_name: Display name
            position: Player position (prices the tag)
            tag_type: Exclusive, non-exclusive or transition
            consecutive_tag_count: 1, 2 or 3 (drives the escalator)

        Returns:
            OperationResult with the tag, its contract and the updated status

        NFL Rules:
            - One franchise tag and one transition tag per team per year
            - Tag contract is one year, fully guaranteed
        """
        position = to_position(position)
        is_transition = tag_type == FranchiseTagType.TRANSITION

        if is_transition:
            reason = self.can_use_transition_tag(status)
        else:
            reason = self.can_use_franchise_tag(status)
        if reason is not None:
            self.logger.warning("Tag rejected for team %s: %s", status.team_id, reason)
            return OperationResult.fail(ContractErrorCode.TAG_ALREADY_USED, reason)

        if is_transition:
            salary = get_transition_tag_value(position, status.year)
        else:
            salary = get_franchise_tag_value(position, consecutive_tag_count, status.year)

        tag = FranchiseTag(
            player_id=player_id,
            player_name=player_name,
            team_id=status.team_id,
            position=position,
            type=tag_type,
            year=status.year,
            salary=salary,
            consecutive_tag_count=consecutive_tag_count,
        )

        contract = create_contract(
            player_id=player_id,
            player_name=player_name,
            team_id=status.team_id,
            position=position,
            offer=ContractOffer(years=1, bonus_per_year=salary, salary_per_year=0),
            signed_year=status.year,
            contract_type=ContractType.TRANSITION_TAG if is_transition else ContractType.FRANCHISE_TAG,
        )

        if is_transition:
            updated = replace(status, has_used_transition_tag=True, transition_player_id=player_id)
        else:
            updated = replace(status, has_used_franchise_tag=True, tagged_player_id=player_id)

        self.logger.info(
            "Team %s applied %s tag to %s at %s",
            status.team_id, tag_type.value, player_id, format_money(salary)
        )
        return OperationResult.ok(TagOutcome(tag=tag, contract=contract, updated_status=updated))

    def apply_franchise_tag(
        self,
        status: TeamTagStatus,
        player_id: str,
        player_name: str,
        position: Union[Position, str],
        exclusive: bool = False,
        consecutive_tag_count: int = 1
    ) -> OperationResult[TagOutcome]:
        tag_type = FranchiseTagType.EXCLUSIVE if exclusive else FranchiseTagType.NON_EXCLUSIVE
        return self.apply_tag(status, player_id, player_name, position, tag_type, consecutive_tag_count)

    def apply_transition_tag(
        self,
        status: TeamTagStatus,
        player_id: str,
        player_name: str,
        position: Union[Position, str]
    ) -> OperationResult[TagOutcome]:
        return self.apply_tag(status, player_id, player_name, position, FranchiseTagType.TRANSITION)

    def remove_tag(
        self,
        status: TeamTagStatus,
        player_id: str,
        signed_long_term_deal: bool
    ) -> TeamTagStatus:
        """
        Clear a tag from a player.

        The tag becomes available again only when the player signed a
        long-term deal; rescinding keeps it marked as used.
        """
        if status.tagged_player_id == player_id:
            return replace(
                status,
                has_used_franchise_tag=not signed_long_term_deal,
                tagged_player_id=None,
            )
        if status.transition_player_id == player_id:
            return replace(
                status,
                has_used_transition_tag=not signed_long_term_deal,
                transition_player_id=None,
            )
        return status

    # ========================================================================
    # COMPARISONS & DISPLAY
    # ========================================================================

    def get_position_tag_comparisons(
        self,
        year: int = EconomySettings.TAG_BASE_YEAR
    ) -> List[Dict[str, Any]]:
        """Tag values for every position, most expensive first."""
        comparisons = []
        for position in Position:
            franchise_value = get_franchise_tag_value(position, 1, year)
            if franchise_value >= self.PREMIUM_TAG_THRESHOLD:
                tier = "premium"
            elif franchise_value >= self.MID_TAG_THRESHOLD:
                tier = "mid"
            else:
                tier = "value"
            comparisons.append({
                "position": position,
                "franchise_value": franchise_value,
                "transition_value": get_transition_tag_value(position, year),
                "tier": tier,
            })
        return sorted(comparisons, key=lambda c: c["franchise_value"], reverse=True)

    def get_tag_differences(
        self,
        position: Union[Position, str],
        year: int = EconomySettings.TAG_BASE_YEAR
    ) -> List[Dict[str, Any]]:
        """What each tag type means for the player and the team."""
        franchise_value = get_franchise_tag_value(position, 1, year)
        return [
            {
                "type": FranchiseTagType.EXCLUSIVE,
                "description": "Cannot negotiate with other teams",
                "compensation": "N/A - Player cannot sign offer sheet",
                "match_rights": True,
                "value": franchise_value,
            },
            {
                "type": FranchiseTagType.NON_EXCLUSIVE,
                "description": "Can negotiate with other teams",
                "compensation": "Two first-round picks if another team signs player",
                "match_rights": True,
                "value": franchise_value,
            },
            {
                "type": FranchiseTagType.TRANSITION,
                "description": "Can negotiate with other teams",
                "compensation": "No draft pick compensation",
                "match_rights": True,
                "value": get_transition_tag_value(position, year),
            },
        ]

    def get_tag_status_summary(self, status: TeamTagStatus) -> Dict[str, str]:
        if status.has_used_franchise_tag:
            franchise_status = "Franchise tag used on player"
        else:
            franchise_status = "Franchise tag available"

        if status.has_used_transition_tag:
            transition_status = "Transition tag used on player"
        else:
            transition_status = "Transition tag available"

        if not status.has_used_franchise_tag and not status.has_used_transition_tag:
            recommendation = "Both tags available - use strategically on expiring players"
        elif not status.has_used_franchise_tag:
            recommendation = "Franchise tag still available for key player"
        elif not status.has_used_transition_tag:
            recommendation = "Consider transition tag for additional player retention"
        else:
            recommendation = "All tags used this year"

        return {
            "franchise_status": franchise_status,
            "transition_status": transition_status,
            "recommendation": recommendation,
        }
