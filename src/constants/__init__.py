"""
Constants package for the league economy

Contains position definitions and position groupings used by contract
pricing, market valuation and AI roster analysis.
"""

from .positions import (
    ALL_POSITIONS,
    POSITION_GROUPS,
    PREMIUM_POSITIONS,
    Position,
    get_position_group,
    is_premium_position,
    to_position,
)

__all__ = [
    'ALL_POSITIONS',
    'POSITION_GROUPS',
    'PREMIUM_POSITIONS',
    'Position',
    'get_position_group',
    'is_premium_position',
    'to_position',
]
