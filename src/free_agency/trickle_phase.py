"""
Trickle Phase Manager

Manages the slower period of free agency after the opening frenzy:
asking prices decay with time on the market, bargains appear for
veterans and depth players, and teams fill out rosters with minimum deals.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from config.economy_settings import EconomySettings
from constants.positions import Position
from salary_cap.contract import ContractOffer, get_minimum_salary
from shared.money import format_money
from .models import FreeAgent, FreeAgentStatus, MarketValue, ProductionTier, TIER_ORDER, TeamFABudget


class TrickleSubPhase(Enum):
    EARLY = "early"
    MID = "mid"
    LATE = "late"
    TRAINING_CAMP = "training_camp"


class BargainReason(Enum):
    AGE = "age"
    LATE_SIGNING = "late_signing"
    POSITION_DEPTH = "position_depth"
    MARKET_SATURATED = "market_saturated"


class TrickleOfferType(Enum):
    BARGAIN = "bargain"
    MINIMUM = "minimum"


SUB_PHASE_DESCRIPTIONS = {
    TrickleSubPhase.EARLY: "Early Trickle: Quality players still available",
    TrickleSubPhase.MID: "Mid Trickle: Bargains emerging",
    TrickleSubPhase.LATE: "Late Trickle: Roster filling time",
    TrickleSubPhase.TRAINING_CAMP: "Training Camp: Final signings",
}


@dataclass(frozen=True)
class MarketAdjustment:
    days_since_frenzy: int
    value_multiplier: float
    patience_level: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days_since_frenzy": self.days_since_frenzy,
            "value_multiplier": self.value_multiplier,
            "patience_level": self.patience_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketAdjustment":
        return cls(data["days_since_frenzy"], data["value_multiplier"], data["patience_level"])


@dataclass(frozen=True)
class BargainOpportunity:
    free_agent_id: str
    original_market_value: int
    current_asking_price: int
    discount_percentage: float
    days_on_market: int
    reason: BargainReason

    def to_dict(self) -> Dict[str, Any]:
        return {
            "free_agent_id": self.free_agent_id,
            "original_market_value": self.original_market_value,
            "current_asking_price": self.current_asking_price,
            "discount_percentage": self.discount_percentage,
            "days_on_market": self.days_on_market,
            "reason": self.reason.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BargainOpportunity":
        return cls(
            free_agent_id=data["free_agent_id"],
            original_market_value=data["original_market_value"],
            current_asking_price=data["current_asking_price"],
            discount_percentage=data["discount_percentage"],
            days_on_market=data["days_on_market"],
            reason=BargainReason(data["reason"]),
        )


@dataclass(frozen=True)
class TricklePhaseState:
    """
    Trickle period state.

    market_adjustments is keyed by player id; visit_history maps a player
    id to the teams that have hosted him, in visit order.
    """

    total_days: int = EconomySettings.TRICKLE_PHASE_DAYS
    is_active: bool = False
    sub_phase: TrickleSubPhase = TrickleSubPhase.EARLY
    day_number: int = 0
    market_adjustments: Dict[str, MarketAdjustment] = field(default_factory=dict)
    bargain_opportunities: Tuple[BargainOpportunity, ...] = field(default_factory=tuple)
    minimum_signings: Tuple[str, ...] = field(default_factory=tuple)
    visit_history: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_days": self.total_days,
            "is_active": self.is_active,
            "sub_phase": self.sub_phase.value,
            "day_number": self.day_number,
            "market_adjustments": {
                player_id: adjustment.to_dict()
                for player_id, adjustment in self.market_adjustments.items()
            },
            "bargain_opportunities": [b.to_dict() for b in self.bargain_opportunities],
            "minimum_signings": list(self.minimum_signings),
            "visit_history": {
                player_id: list(teams) for player_id, teams in self.visit_history.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TricklePhaseState":
        return cls(
            total_days=data.get("total_days", EconomySettings.TRICKLE_PHASE_DAYS),
            is_active=data.get("is_active", False),
            sub_phase=TrickleSubPhase(data.get("sub_phase", "early")),
            day_number=data.get("day_number", 0),
            market_adjustments={
                player_id: MarketAdjustment.from_dict(adjustment)
                for player_id, adjustment in data.get("market_adjustments", {}).items()
            },
            bargain_opportunities=tuple(
                BargainOpportunity.from_dict(b) for b in data.get("bargain_opportunities", [])
            ),
            minimum_signings=tuple(data.get("minimum_signings", [])),
            visit_history={
                player_id: tuple(teams) for player_id, teams in data.get("visit_history", {}).items()
            },
        )


def calculate_time_adjustment(days_since_frenzy: int) -> MarketAdjustment:
    """
    Asking-price multiplier and patience after days on the market.

    ≤7 days 100%, ≤21 95%, ≤45 85%, ≤75 75%, beyond 60%.
    """
    if days_since_frenzy <= 7:
        multiplier, patience = 1.0, 1.0
    elif days_since_frenzy <= 21:
        multiplier, patience = 0.95, 0.85
    elif days_since_frenzy <= 45:
        multiplier, patience = 0.85, 0.7
    elif days_since_frenzy <= 75:
        multiplier, patience = 0.75, 0.5
    else:
        multiplier, patience = 0.6, 0.3
    return MarketAdjustment(days_since_frenzy, multiplier, patience)


def determine_sub_phase(day_number: int, total_days: int) -> TrickleSubPhase:
    progress = day_number / total_days if total_days > 0 else 1.0
    if progress < 0.25:
        return TrickleSubPhase.EARLY
    if progress < 0.5:
        return TrickleSubPhase.MID
    if progress < 0.85:
        return TrickleSubPhase.LATE
    return TrickleSubPhase.TRAINING_CAMP


def determine_bargain_reason(
    age: int,
    days_on_market: int,
    tier: ProductionTier
) -> Optional[Tuple[BargainReason, float]]:
    """
    Discount reason and size; reasons are exclusive, first match wins.

    1. Age 32+: 20% plus 5% per year past 32
    2. More than 60 days unsigned: 25%
    3. Depth or minimum tier: 15%
    4. More than 30 days unsigned: 10%
    """
    if age >= 32:
        return BargainReason.AGE, 0.2 + (age - 32) * 0.05
    if days_on_market > 60:
        return BargainReason.LATE_SIGNING, 0.25
    if tier in (ProductionTier.DEPTH, ProductionTier.MINIMUM):
        return BargainReason.POSITION_DEPTH, 0.15
    if days_on_market > 30:
        return BargainReason.MARKET_SATURATED, 0.1
    return None


def generate_minimum_offer(experience: int) -> ContractOffer:
    """One-year, non-guaranteed league minimum."""
    return ContractOffer(years=1, bonus_per_year=0, salary_per_year=get_minimum_salary(experience))


def generate_bargain_offer(opportunity: BargainOpportunity, years: int = 1) -> ContractOffer:
    """Offer at the asking price with half of one season guaranteed."""
    aav = opportunity.current_asking_price
    bonus = min(aav, round(aav * 0.5 / years))
    return ContractOffer(years=years, bonus_per_year=bonus, salary_per_year=aav - bonus)


class TricklePhaseManager:
    """Runs the trickle period day by day."""

    EARLY_PATIENT_BUDGET = 30000
    MIN_BARGAIN_DISCOUNT = 15

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def create_state(self, total_days: int = EconomySettings.TRICKLE_PHASE_DAYS) -> TricklePhaseState:
        return TricklePhaseState(total_days=total_days)

    def start(self, state: TricklePhaseState) -> TricklePhaseState:
        return replace(state, is_active=True, sub_phase=TrickleSubPhase.EARLY, day_number=1)

    def end(self, state: TricklePhaseState) -> TricklePhaseState:
        return replace(state, is_active=False)

    def advance_day(self, state: TricklePhaseState) -> TricklePhaseState:
        day_number = state.day_number + 1
        sub_phase = determine_sub_phase(day_number, state.total_days)
        if sub_phase != state.sub_phase:
            self.logger.debug("Trickle phase enters %s on day %d", sub_phase.value, day_number)
        return replace(state, day_number=day_number, sub_phase=sub_phase)

    def update_market_adjustment(self, state: TricklePhaseState, player_id: str) -> TricklePhaseState:
        adjustments = dict(state.market_adjustments)
        adjustments[player_id] = calculate_time_adjustment(state.day_number)
        return replace(state, market_adjustments=adjustments)

    # ========================================================================
    # BARGAINS
    # ========================================================================

    def _days_on_market(self, state: TricklePhaseState, free_agent: FreeAgent) -> int:
        adjustment = state.market_adjustments.get(free_agent.player_id)
        if adjustment is not None:
            return adjustment.days_since_frenzy
        return free_agent.days_on_market or state.day_number

    def identify_bargain_opportunities(
        self,
        state: TricklePhaseState,
        free_agents: Iterable[FreeAgent],
        market_values: Mapping[str, MarketValue]
    ) -> TricklePhaseState:
        """
        Rebuild the bargain list from available free agents.

        market_values is keyed by player id; players without a valuation
        are skipped. Bargains are ordered by discount, largest first.
        """
        opportunities = []
        for free_agent in free_agents:
            if free_agent.status != FreeAgentStatus.AVAILABLE:
                continue
            market_value = market_values.get(free_agent.player_id)
            if market_value is None:
                continue

            days_on_market = self._days_on_market(state, free_agent)
            found = determine_bargain_reason(free_agent.age, days_on_market, market_value.tier)
            if found is None:
                continue
            reason, discount = found

            opportunities.append(BargainOpportunity(
                free_agent_id=free_agent.id,
                original_market_value=market_value.projected_aav,
                current_asking_price=round(market_value.projected_aav * (1 - min(discount, 1.0))),
                discount_percentage=discount * 100,
                days_on_market=days_on_market,
                reason=reason,
            ))

        opportunities.sort(key=lambda opp: opp.discount_percentage, reverse=True)
        return replace(state, bargain_opportunities=tuple(opportunities))

    def get_bargains_by_position(
        self,
        state: TricklePhaseState,
        free_agents: Mapping[str, FreeAgent],
        position: Position
    ) -> List[BargainOpportunity]:
        return [
            opp for opp in state.bargain_opportunities
            if opp.free_agent_id in free_agents
            and free_agents[opp.free_agent_id].position == position
        ]

    def get_remaining_quality_players(
        self,
        free_agents: Iterable[FreeAgent],
        market_values: Mapping[str, MarketValue],
        min_tier: ProductionTier = ProductionTier.QUALITY
    ) -> List[FreeAgent]:
        """Available free agents valued at min_tier or better."""
        cutoff = TIER_ORDER.index(min_tier)
        remaining = []
        for free_agent in free_agents:
            if free_agent.status != FreeAgentStatus.AVAILABLE:
                continue
            market_value = market_values.get(free_agent.player_id)
            if market_value is not None and TIER_ORDER.index(market_value.tier) <= cutoff:
                remaining.append(free_agent)
        return remaining

    # ========================================================================
    # VISITS & SIGNINGS
    # ========================================================================

    def record_visit(self, state: TricklePhaseState, player_id: str, team_id: str) -> TricklePhaseState:
        """Record a team visit; repeat visits by the same team are ignored."""
        visits = state.visit_history.get(player_id, ())
        if team_id in visits:
            return state
        visit_history = dict(state.visit_history)
        visit_history[player_id] = visits + (team_id,)
        return replace(state, visit_history=visit_history)

    def get_player_visitors(self, state: TricklePhaseState, player_id: str) -> List[str]:
        return list(state.visit_history.get(player_id, ()))

    def record_minimum_signing(self, state: TricklePhaseState, free_agent_id: str) -> TricklePhaseState:
        return replace(state, minimum_signings=state.minimum_signings + (free_agent_id,))

    def will_player_accept_offer(
        self,
        offer: ContractOffer,
        market_value: MarketValue,
        days_on_market: int,
        existing_offer_count: int
    ) -> Tuple[bool, str]:
        """
        Player decision against time-adjusted expectations.

        Returns:
            (will_accept, reason)
        """
        adjustment = calculate_time_adjustment(days_on_market)
        expectation = market_value.projected_aav * adjustment.value_multiplier
        pct = offer.aav / expectation if expectation else 1.0

        if pct >= 0.95:
            return True, "Offer meets current market expectations"
        if days_on_market > 60 and pct >= 0.8:
            return True, "Accepting after extended time on market"
        if days_on_market > 80 and pct >= 0.7:
            return True, "Training camp approaching, need to sign"
        if existing_offer_count == 0 and pct >= 0.75 and days_on_market > 45:
            return True, "Only offer on the table"
        return False, "Holding out for better offer"

    # ========================================================================
    # AI ACTIVITY
    # ========================================================================

    def simulate_team_activity(
        self,
        team_budget: TeamFABudget,
        available_players: List[FreeAgent],
        bargains: Iterable[BargainOpportunity],
        sub_phase: TrickleSubPhase
    ) -> Optional[Tuple[str, TrickleOfferType]]:
        """
        Pick one target for a team today.

        Teams with a large budget wait out the early trickle. Otherwise a
        15%+ bargain at a priority position is taken first; late in the
        period any available player at a priority position gets a minimum
        offer.
        """
        if sub_phase == TrickleSubPhase.EARLY and team_budget.remaining > self.EARLY_PATIENT_BUDGET:
            return None

        players = {p.id: p for p in available_players}
        bargains = list(bargains)

        for position in team_budget.priority_positions:
            for bargain in bargains:
                player = players.get(bargain.free_agent_id)
                if (player is not None and player.position == position
                        and bargain.discount_percentage >= self.MIN_BARGAIN_DISCOUNT):
                    if bargain.current_asking_price <= team_budget.remaining:
                        return bargain.free_agent_id, TrickleOfferType.BARGAIN
                    break

        if sub_phase in (TrickleSubPhase.LATE, TrickleSubPhase.TRAINING_CAMP):
            if team_budget.remaining >= get_minimum_salary(0):
                for position in team_budget.priority_positions:
                    for player in available_players:
                        if player.position == position and player.status == FreeAgentStatus.AVAILABLE:
                            return player.id, TrickleOfferType.MINIMUM

        return None

    def get_summary(self, state: TricklePhaseState, free_agents: Mapping[str, FreeAgent]) -> Dict[str, Any]:
        bargains = state.bargain_opportunities
        average = sum(b.discount_percentage for b in bargains) / len(bargains) if bargains else 0.0

        top = []
        for bargain in bargains[:5]:
            free_agent = free_agents.get(bargain.free_agent_id)
            top.append({
                "player_name": free_agent.player_name if free_agent else "Unknown",
                "discount": f"{bargain.discount_percentage:.0f}%",
                "asking_price": format_money(bargain.current_asking_price),
            })

        return {
            "is_active": state.is_active,
            "sub_phase": SUB_PHASE_DESCRIPTIONS[state.sub_phase],
            "day_number": state.day_number,
            "days_remaining": state.total_days - state.day_number,
            "average_discount": average,
            "bargain_count": len(bargains),
            "minimum_signings_count": len(state.minimum_signings),
            "top_bargains": top,
        }

    def validate_state(self, state: TricklePhaseState) -> List[str]:
        errors = []
        if state.day_number < 0:
            errors.append("Day number cannot be negative")
        if state.total_days < 0:
            errors.append("Total days cannot be negative")
        return errors
