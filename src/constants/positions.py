"""
Roster Positions for Contract and Free Agency Economics

Positions are the 18 roster slots the contract system prices. Position
groups drive age curves (peak age and decline rate); the premium set
drives rating adjustments in tier lookups.

Usage:
    from constants.positions import Position, get_position_group

    group = get_position_group(Position.LT)  # Returns "OL"
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Union


class Position(Enum):
    """Roster positions used by contracts, tags and market valuation."""

    # Offense
    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    LT = "LT"
    LG = "LG"
    C = "C"
    RG = "RG"
    RT = "RT"

    # Defense
    DE = "DE"
    DT = "DT"
    OLB = "OLB"
    ILB = "ILB"
    CB = "CB"
    FS = "FS"
    SS = "SS"

    # Special teams
    K = "K"
    P = "P"


ALL_POSITIONS: List[Position] = list(Position)

# Position group → member positions
POSITION_GROUPS: Dict[str, List[Position]] = {
    "QB": [Position.QB],
    "RB": [Position.RB],
    "WR": [Position.WR],
    "TE": [Position.TE],
    "OL": [Position.LT, Position.LG, Position.C, Position.RG, Position.RT],
    "DL": [Position.DE, Position.DT],
    "LB": [Position.OLB, Position.ILB],
    "DB": [Position.CB, Position.FS, Position.SS],
    "ST": [Position.K, Position.P],
}

_GROUP_BY_POSITION: Dict[Position, str] = {
    position: group
    for group, members in POSITION_GROUPS.items()
    for position in members
}

# Positions whose ratings are priced without the non-premium bump
PREMIUM_POSITIONS: FrozenSet[Position] = frozenset({
    Position.QB,
    Position.DE,
    Position.CB,
    Position.LT,
    Position.WR,
})


def to_position(value: Union[Position, str]) -> Position:
    """
    Coerce a position or its abbreviation into a Position.

    Raises:
        ValueError: If the abbreviation is not a known position
    """
    if isinstance(value, Position):
        return value
    return Position(str(value).upper())


def get_position_group(position: Union[Position, str]) -> str:
    """Return the position group ("QB", "OL", "DB", ...) for a position."""
    return _GROUP_BY_POSITION.get(to_position(position), "DB")


def is_premium_position(position: Union[Position, str]) -> bool:
    """Premium positions: QB, DE, CB, LT, WR."""
    return to_position(position) in PREMIUM_POSITIONS
