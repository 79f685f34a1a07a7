"""
Market Value Calculator

Calculates player market values for free agency.
Based on position, overall rating, age, durability, trajectory and
league-wide positional demand.

Pipeline:
    franchise tag value × position multiplier × tier percentage → base value
    × age curve × demand × durability × trajectory → projected AAV
    floored at the experience-indexed minimum salary

Projected AAV is monotonic (non-decreasing) in overall rating and
non-increasing in age once a player is past his position group's peak.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from config.economy_settings import EconomySettings
from constants.positions import (
    Position,
    get_position_group,
    is_premium_position,
    to_position,
)
from salary_cap.contract import get_minimum_salary
from salary_cap.contract_generator import RosterPlayer
from salary_cap.tag_manager import get_franchise_tag_value
from shared.money import format_money
from .models import MarketValue, ProductionTier


class MarketDemand(Enum):
    VERY_HIGH = "very_high"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    VERY_LOW = "very_low"


class Trajectory(Enum):
    ASCENDING = "ascending"
    PEAK = "peak"
    DECLINING = "declining"
    UNKNOWN = "unknown"


DEFAULT_POSITION_DEMAND = {
    Position.QB: MarketDemand.VERY_HIGH,
    Position.DE: MarketDemand.HIGH,
    Position.CB: MarketDemand.HIGH,
    Position.LT: MarketDemand.HIGH,
    Position.WR: MarketDemand.MODERATE,
    Position.DT: MarketDemand.MODERATE,
    Position.OLB: MarketDemand.MODERATE,
    Position.FS: MarketDemand.MODERATE,
    Position.SS: MarketDemand.MODERATE,
    Position.TE: MarketDemand.MODERATE,
    Position.RT: MarketDemand.MODERATE,
    Position.ILB: MarketDemand.LOW,
    Position.RB: MarketDemand.LOW,
    Position.LG: MarketDemand.LOW,
    Position.RG: MarketDemand.LOW,
    Position.C: MarketDemand.LOW,
    Position.K: MarketDemand.VERY_LOW,
    Position.P: MarketDemand.VERY_LOW,
}


@dataclass(frozen=True)
class MarketConditions:
    """League-wide market inputs for one offseason."""

    year: int
    salary_cap: int = EconomySettings.DEFAULT_SALARY_CAP
    cap_growth_rate: float = EconomySettings.CAP_GROWTH_RATE
    position_demand: Dict[Position, MarketDemand] = field(
        default_factory=lambda: dict(DEFAULT_POSITION_DEMAND)
    )
    supply_by_position: Dict[Position, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PlayerProduction:
    """
    Player inputs to the valuation (engine use only).

    recent_performance defaults to the overall rating; trajectory is
    derived from age and recent performance when not given.
    """

    player_id: str
    position: Position
    age: int
    experience: int
    overall: int
    durability: int = 100
    recent_performance: Optional[int] = None
    trajectory: Optional[Trajectory] = None

    def __post_init__(self):
        object.__setattr__(self, "position", to_position(self.position))

    @property
    def performance(self) -> int:
        return self.overall if self.recent_performance is None else self.recent_performance


def create_default_market_conditions(
    year: int,
    salary_cap: int = EconomySettings.DEFAULT_SALARY_CAP
) -> MarketConditions:
    return MarketConditions(year=year, salary_cap=salary_cap)


def production_from_player(
    player: RosterPlayer,
    durability: int = 100,
    recent_performance: Optional[int] = None
) -> PlayerProduction:
    return PlayerProduction(
        player_id=player.player_id,
        position=player.position,
        age=player.age,
        experience=player.experience,
        overall=player.overall,
        durability=durability,
        recent_performance=recent_performance,
    )


class MarketValueCalculator:
    """
    Calculates estimated market value for free agent contracts.

    Based on:
    - Position value relative to the franchise tag
    - Production tier (interpolated within the tier)
    - Age curve by position group
    - Positional demand across the league
    - Durability and career trajectory
    """

    # Position value relative to the franchise tag
    POSITION_VALUE_MULTIPLIERS = {
        Position.QB: 1.0,
        Position.DE: 0.95,
        Position.CB: 0.9,
        Position.LT: 0.88,
        Position.WR: 0.85,
        Position.RT: 0.85,
        Position.DT: 0.82,
        Position.OLB: 0.8,
        Position.FS: 0.78,
        Position.SS: 0.78,
        Position.TE: 0.75,
        Position.ILB: 0.72,
        Position.RB: 0.7,
        Position.LG: 0.68,
        Position.RG: 0.68,
        Position.C: 0.65,
        Position.K: 0.4,
        Position.P: 0.35,
    }

    # (peak age, annual decline rate) by position group
    AGE_DECLINE_FACTORS = {
        "QB": (32, 0.03),
        "RB": (26, 0.08),
        "WR": (28, 0.05),
        "TE": (28, 0.05),
        "OL": (30, 0.04),
        "DL": (28, 0.05),
        "LB": (27, 0.06),
        "DB": (27, 0.06),
        "ST": (32, 0.03),
    }

    # (tier, adjusted rating floor, share of tag at floor, share at next floor)
    TIER_TABLE = (
        (ProductionTier.ELITE, 92, 1.0, 1.3),
        (ProductionTier.PRO_BOWL, 85, 0.8, 1.0),
        (ProductionTier.STARTER, 75, 0.55, 0.8),
        (ProductionTier.QUALITY, 65, 0.35, 0.55),
        (ProductionTier.DEPTH, 55, 0.2, 0.35),
        (ProductionTier.MINIMUM, 0, 0.0, 0.2),
    )
    TIER_CEILING = 100
    NON_PREMIUM_RATING_BONUS = 3

    DEMAND_MULTIPLIERS = {
        MarketDemand.VERY_HIGH: 1.2,
        MarketDemand.HIGH: 1.1,
        MarketDemand.MODERATE: 1.0,
        MarketDemand.LOW: 0.9,
        MarketDemand.VERY_LOW: 0.8,
    }

    TRAJECTORY_MULTIPLIERS = {
        Trajectory.ASCENDING: 1.1,
        Trajectory.PEAK: 1.0,
        Trajectory.DECLINING: 0.85,
        Trajectory.UNKNOWN: 1.0,
    }

    BASE_YEARS_BY_TIER = {
        ProductionTier.ELITE: 5,
        ProductionTier.PRO_BOWL: 4,
        ProductionTier.STARTER: 3,
        ProductionTier.QUALITY: 2,
        ProductionTier.DEPTH: 1,
        ProductionTier.MINIMUM: 1,
    }

    GUARANTEE_BY_TIER = {
        ProductionTier.ELITE: 0.65,
        ProductionTier.PRO_BOWL: 0.55,
        ProductionTier.STARTER: 0.45,
        ProductionTier.QUALITY: 0.35,
        ProductionTier.DEPTH: 0.25,
        ProductionTier.MINIMUM: 0.15,
    }

    TIER_DESCRIPTIONS = {
        ProductionTier.ELITE: "Top of the market",
        ProductionTier.PRO_BOWL: "Premium player",
        ProductionTier.STARTER: "Solid starter value",
        ProductionTier.QUALITY: "Quality depth option",
        ProductionTier.DEPTH: "Depth/rotational value",
        ProductionTier.MINIMUM: "Minimum salary range",
    }

    YOUNG_PLAYER_PREMIUM = 1.1
    AGE_FLOOR = 0.5

    def __init__(self, conditions: Optional[MarketConditions] = None, year: int = 2024):
        """
        Initialize market value calculator.

        Args:
            conditions: League market conditions (defaults for `year` when omitted)
            year: League year used when no conditions are supplied
        """
        self.conditions = conditions or create_default_market_conditions(year)

    # ========================================================================
    # MARKET CONDITIONS
    # ========================================================================

    def update_market_conditions(
        self,
        free_agent_counts: Mapping[Position, int],
        team_needs: Mapping[Position, int]
    ) -> MarketConditions:
        """
        Re-derive positional demand from supply and league-wide needs.

        Ratio = free agents available / teams needing the position:
        < 0.3 very high, < 0.5 high, < 1.0 moderate, < 2.0 low, else very low.
        Positions without counts keep their current demand.
        """
        demand = dict(self.conditions.position_demand)
        for position, count in free_agent_counts.items():
            position = to_position(position)
            needs = team_needs.get(position, 0)
            ratio = count / needs if needs > 0 else 1.0

            if ratio < 0.3:
                demand[position] = MarketDemand.VERY_HIGH
            elif ratio < 0.5:
                demand[position] = MarketDemand.HIGH
            elif ratio < 1.0:
                demand[position] = MarketDemand.MODERATE
            elif ratio < 2.0:
                demand[position] = MarketDemand.LOW
            else:
                demand[position] = MarketDemand.VERY_LOW

        self.conditions = replace(
            self.conditions,
            position_demand=demand,
            supply_by_position={to_position(p): c for p, c in free_agent_counts.items()},
        )
        return self.conditions

    # ========================================================================
    # COMPONENTS
    # ========================================================================

    def _age_factors(self, position: Position):
        return self.AGE_DECLINE_FACTORS.get(get_position_group(position), (28, 0.05))

    def determine_production_tier(self, overall: int, position: Position) -> ProductionTier:
        """Tier from rating; non-premium positions get a +3 rating bump."""
        adjusted = self._adjusted_rating(overall, position)
        for tier, floor, _, _ in self.TIER_TABLE:
            if adjusted >= floor:
                return tier
        return ProductionTier.MINIMUM

    def _adjusted_rating(self, overall: int, position: Position) -> int:
        if is_premium_position(position):
            return overall
        return overall + self.NON_PREMIUM_RATING_BONUS

    def calculate_tier_percentage(self, overall: int, position: Position) -> float:
        """
        Share of the franchise tag for a rating.

        Interpolates linearly from the tier floor to the next tier's floor,
        so the percentage is continuous across tier boundaries.
        """
        adjusted = self._adjusted_rating(overall, position)
        ceiling = self.TIER_CEILING
        for tier, floor, pct_min, pct_max in self.TIER_TABLE:
            if adjusted >= floor:
                progress = min(1.0, max(0.0, (adjusted - floor) / (ceiling - floor)))
                return pct_min + (pct_max - pct_min) * progress
            ceiling = floor
        return 0.0

    def calculate_age_adjustment(self, age: int, position: Position) -> float:
        """
        Age multiplier.

        1.1 for players 3+ years before peak, 1.0 up to peak, then
        (1 - decline rate) ^ years past peak, floored at 0.5.
        """
        peak_age, decline_rate = self._age_factors(position)
        if age <= peak_age:
            return self.YOUNG_PLAYER_PREMIUM if age <= peak_age - 3 else 1.0
        return max(self.AGE_FLOOR, (1 - decline_rate) ** (age - peak_age))

    def calculate_demand_adjustment(self, position: Position) -> float:
        demand = self.conditions.position_demand.get(to_position(position), MarketDemand.MODERATE)
        return self.DEMAND_MULTIPLIERS[demand]

    def calculate_prime_years_remaining(self, age: int, position: Position) -> int:
        """Years until the age curve has taken roughly 15% off a player's value."""
        peak_age, decline_rate = self._age_factors(position)
        prime_end = peak_age + 2 + math.ceil(0.15 / decline_rate)
        return max(0, prime_end - age)

    def determine_trajectory(self, age: int, recent_performance: int, position: Position) -> Trajectory:
        peak_age, _ = self._age_factors(position)
        if age < peak_age - 2:
            return Trajectory.ASCENDING if recent_performance >= 75 else Trajectory.UNKNOWN
        if age <= peak_age + 1:
            return Trajectory.PEAK
        if recent_performance >= 80:
            return Trajectory.PEAK
        return Trajectory.DECLINING

    def get_expected_years(self, tier: ProductionTier, age: int, position: Position) -> int:
        """Tier-based length, capped at 4/3/2 once at/2+/4+ years past peak."""
        peak_age, _ = self._age_factors(position)
        years = self.BASE_YEARS_BY_TIER[tier]
        if age >= peak_age + 4:
            years = min(years, 2)
        elif age >= peak_age + 2:
            years = min(years, 3)
        elif age >= peak_age:
            years = min(years, 4)
        return max(1, years)

    # ========================================================================
    # VALUATION
    # ========================================================================

    def calculate_market_value(self, production: PlayerProduction) -> MarketValue:
        """
        Project a free agent's contract.

        Args:
            production: Player valuation inputs

        Returns:
            MarketValue with projected AAV, years and guarantees
        """
        position = production.position
        franchise_value = get_franchise_tag_value(position, 1, self.conditions.year)
        tier = self.determine_production_tier(production.overall, position)
        tier_pct = self.calculate_tier_percentage(production.overall, position)

        position_multiplier = self.POSITION_VALUE_MULTIPLIERS.get(position, 0.7)
        base_value = round(franchise_value * tier_pct * position_multiplier)

        age_adjustment = self.calculate_age_adjustment(production.age, position)
        age_adjusted_value = round(base_value * age_adjustment)

        demand_adjustment = self.calculate_demand_adjustment(position)
        demand_adjusted_value = round(age_adjusted_value * demand_adjustment)

        durability_adjustment = 0.9 + (production.durability / 100) * 0.1
        durability_adjusted_value = round(demand_adjusted_value * durability_adjustment)

        trajectory = production.trajectory or self.determine_trajectory(
            production.age, production.performance, position
        )
        final_value = round(durability_adjusted_value * self.TRAJECTORY_MULTIPLIERS[trajectory])

        projected_aav = max(final_value, get_minimum_salary(production.experience))
        projected_years = self.get_expected_years(tier, production.age, position)
        guarantee_pct = self.GUARANTEE_BY_TIER[tier]

        return MarketValue(
            player_id=production.player_id,
            base_value=base_value,
            age_adjusted_value=age_adjusted_value,
            demand_adjusted_value=demand_adjusted_value,
            projected_aav=projected_aav,
            projected_years=projected_years,
            projected_guaranteed=round(projected_aav * projected_years * guarantee_pct),
            guarantee_pct=guarantee_pct,
            tier=tier,
            reasoning=self._build_reasoning(tier, age_adjustment, demand_adjustment, trajectory),
        )

    def _build_reasoning(
        self,
        tier: ProductionTier,
        age_adjustment: float,
        demand_adjustment: float,
        trajectory: Trajectory
    ) -> str:
        parts = []
        if tier in (ProductionTier.ELITE, ProductionTier.PRO_BOWL):
            parts.append(f"{tier.value} level player")
        if age_adjustment < 0.9:
            parts.append("age discount applied")
        elif age_adjustment > 1.0:
            parts.append("young player premium")
        if demand_adjustment > 1.05:
            parts.append("high position demand")
        elif demand_adjustment < 0.95:
            parts.append("lower position demand")
        if trajectory == Trajectory.ASCENDING:
            parts.append("ascending trajectory")
        elif trajectory == Trajectory.DECLINING:
            parts.append("declining trajectory")
        return ", ".join(parts) if parts else "Standard market valuation"

    def calculate_market_values(
        self,
        productions: Iterable[PlayerProduction]
    ) -> Dict[str, MarketValue]:
        """Player id → market value."""
        return {p.player_id: self.calculate_market_value(p) for p in productions}

    def rank_by_market_value(self, productions: Iterable[PlayerProduction]) -> List[MarketValue]:
        values = self.calculate_market_values(productions)
        return sorted(values.values(), key=lambda mv: mv.projected_aav, reverse=True)

    # ========================================================================
    # DISPLAY & COMPARISON
    # ========================================================================

    def get_market_value_summary(self, market_value: MarketValue) -> Dict[str, str]:
        """Public view: estimated_value, contract_projection, market_description."""
        total = market_value.projected_aav * market_value.projected_years
        return {
            "estimated_value": format_money(market_value.projected_aav),
            "contract_projection": f"{market_value.projected_years}yr / {format_money(total)}",
            "market_description": self.TIER_DESCRIPTIONS[market_value.tier],
        }

    def compare_offer_to_market(
        self,
        offer_total_value: int,
        offer_years: int,
        market_value: MarketValue
    ) -> Dict[str, Any]:
        """
        Compare an offer's AAV to the projection.

        Returns:
            Dict with offer_aav, market_aav, percentage_of_market,
            assessment and description
        """
        offer_aav = round(offer_total_value / max(1, offer_years))
        percentage = offer_aav / market_value.projected_aav * 100

        if percentage >= 110:
            assessment, description = "above_market", "Offer exceeds market expectations"
        elif percentage >= 95:
            assessment, description = "at_market", "Offer is in line with market value"
        elif percentage >= 80:
            assessment, description = "below_market", "Offer is below market expectations"
        else:
            assessment, description = "significantly_below", "Offer is significantly below market value"

        return {
            "offer_aav": offer_aav,
            "market_aav": market_value.projected_aav,
            "percentage_of_market": percentage,
            "assessment": assessment,
            "description": description,
        }

    def validate_production(self, production: PlayerProduction) -> List[str]:
        errors = []
        if not production.player_id:
            errors.append("Missing player id")
        if not 20 <= production.age <= 45:
            errors.append(f"Age {production.age} outside 20-45")
        if production.experience < 0:
            errors.append("Experience cannot be negative")
        if not 0 <= production.overall <= 100:
            errors.append(f"Overall {production.overall} outside 0-100")
        if not 0 <= production.performance <= 100:
            errors.append(f"Recent performance {production.performance} outside 0-100")
        if not 0 <= production.durability <= 100:
            errors.append(f"Durability {production.durability} outside 0-100")
        return errors
