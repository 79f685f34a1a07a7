"""
AI Free Agency Decision Layer

AI team decision making for free agency:
- Strategy and risk profile from record and cap position
- Roster composition and positional needs
- Free agency budget allocation
- Free agent evaluation and daily targets
- Competition-aware offers

Per-team evaluation for a league day runs in a worker pool; each worker
reads the same free agency snapshot and only proposes actions. The
proposals are then applied sequentially in a fixed order (priority
descending, then submission order) so results do not depend on thread
scheduling.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from enum import Enum
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from config.economy_settings import EconomySettings
from constants.positions import ALL_POSITIONS, Position
from salary_cap.contract import ContractOffer
from salary_cap.contract_generator import RosterPlayer
from .free_agency_manager import FreeAgencyManager
from .models import (
    FreeAgencyState,
    FreeAgent,
    FreeAgentStatus,
    InterestLevel,
    MarketValue,
    NeedLevel,
    ProductionTier,
    TeamFABudget,
)


class FAStrategy(Enum):
    AGGRESSIVE = "aggressive"
    BALANCED = "balanced"
    VALUE = "value"
    REBUILD = "rebuild"
    CONTEND = "contend"


class CapSituation(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    LIMITED = "limited"
    CRITICAL = "critical"


class OfferPriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionType(Enum):
    OFFER = "offer"
    INTEREST = "interest"


MIN_ROSTER_BY_POSITION = {
    Position.QB: 2,
    Position.RB: 3,
    Position.WR: 5,
    Position.TE: 3,
    Position.LT: 2,
    Position.LG: 2,
    Position.C: 2,
    Position.RG: 2,
    Position.RT: 2,
    Position.DE: 4,
    Position.DT: 4,
    Position.OLB: 4,
    Position.ILB: 3,
    Position.CB: 5,
    Position.FS: 2,
    Position.SS: 2,
    Position.K: 1,
    Position.P: 1,
}

IDEAL_STARTER_QUALITY = {
    Position.QB: 85,
    Position.LT: 80,
    Position.DE: 80,
    Position.CB: 78,
    Position.WR: 78,
    Position.RB: 75,
    Position.TE: 75,
}
DEFAULT_IDEAL_STARTER = 70

# Starters counted per position when deriving starter quality from ratings
STARTER_SLOTS = {
    Position.WR: 3,
    Position.DE: 2,
    Position.DT: 2,
    Position.OLB: 2,
    Position.CB: 2,
}

# strategy: (risk tolerance, value premium, max contract years)
STRATEGY_SETTINGS = {
    FAStrategy.AGGRESSIVE: (0.7, 1.15, 5),
    FAStrategy.BALANCED: (0.5, 1.0, 4),
    FAStrategy.VALUE: (0.3, 0.9, 3),
    FAStrategy.REBUILD: (0.6, 0.85, 2),
    FAStrategy.CONTEND: (0.8, 1.25, 4),
}

# Share of cap space held back for in-season moves
BUDGET_RESERVE = {
    FAStrategy.AGGRESSIVE: 0.1,
    FAStrategy.BALANCED: 0.15,
    FAStrategy.VALUE: 0.2,
    FAStrategy.REBUILD: 0.25,
    FAStrategy.CONTEND: 0.1,
}

STRATEGY_DESCRIPTIONS = {
    FAStrategy.AGGRESSIVE: "Aggressively pursuing upgrades",
    FAStrategy.BALANCED: "Taking balanced approach",
    FAStrategy.VALUE: "Seeking value opportunities",
    FAStrategy.REBUILD: "Building for the future",
    FAStrategy.CONTEND: "Making win-now moves",
}

NEED_MULTIPLIERS = {
    NeedLevel.CRITICAL: 1.1,
    NeedLevel.MODERATE: 1.0,
    NeedLevel.DEPTH: 0.9,
}

TARGET_PRIORITY = {
    OfferPriority.HIGH: 10,
    OfferPriority.MEDIUM: 6,
    OfferPriority.LOW: 3,
}

TARGET_WILLINGNESS = {
    OfferPriority.HIGH: 0.9,
    OfferPriority.MEDIUM: 0.6,
    OfferPriority.LOW: 0.3,
}


@dataclass(frozen=True)
class AgeTier:
    min_age: int
    max_age: int
    preference: float

    def to_dict(self) -> Dict[str, Any]:
        return {"min_age": self.min_age, "max_age": self.max_age, "preference": self.preference}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgeTier":
        return cls(data["min_age"], data["max_age"], data["preference"])


AGE_TIERS = {
    FAStrategy.CONTEND: (AgeTier(25, 30, 1.0), AgeTier(30, 33, 0.9), AgeTier(22, 25, 0.7)),
    FAStrategy.REBUILD: (AgeTier(22, 26, 1.0), AgeTier(26, 28, 0.7), AgeTier(28, 32, 0.3)),
    FAStrategy.AGGRESSIVE: (AgeTier(24, 29, 1.0), AgeTier(29, 32, 0.8)),
    FAStrategy.VALUE: (AgeTier(28, 32, 1.0), AgeTier(25, 28, 0.8)),
    FAStrategy.BALANCED: (AgeTier(24, 30, 1.0), AgeTier(30, 33, 0.7)),
}
DEFAULT_AGE_PREFERENCE = 0.5


@dataclass(frozen=True)
class TeamAIProfile:
    team_id: str
    strategy: FAStrategy
    risk_tolerance: float
    value_premium: float
    max_contract_years: int
    preferred_age_tiers: Tuple[AgeTier, ...]
    position_value_multipliers: Dict[Position, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "strategy": self.strategy.value,
            "risk_tolerance": self.risk_tolerance,
            "value_premium": self.value_premium,
            "max_contract_years": self.max_contract_years,
            "preferred_age_tiers": [tier.to_dict() for tier in self.preferred_age_tiers],
            "position_value_multipliers": {
                position.value: multiplier
                for position, multiplier in self.position_value_multipliers.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamAIProfile":
        return cls(
            team_id=data["team_id"],
            strategy=FAStrategy(data["strategy"]),
            risk_tolerance=data["risk_tolerance"],
            value_premium=data["value_premium"],
            max_contract_years=data["max_contract_years"],
            preferred_age_tiers=tuple(
                AgeTier.from_dict(tier) for tier in data.get("preferred_age_tiers", [])
            ),
            position_value_multipliers={
                Position(position): multiplier
                for position, multiplier in data.get("position_value_multipliers", {}).items()
            },
        )

    def age_preference(self, age: int) -> float:
        for tier in self.preferred_age_tiers:
            if tier.min_age <= age <= tier.max_age:
                return tier.preference
        return DEFAULT_AGE_PREFERENCE


@dataclass(frozen=True)
class RosterComposition:
    team_id: str
    position_counts: Dict[Position, int]
    starter_quality: Dict[Position, float]
    depth_quality: Dict[Position, float]
    average_age: Dict[Position, float]


@dataclass(frozen=True)
class TeamNeedsAssessment:
    team_id: str
    needs: Dict[Position, NeedLevel]
    priority_positions: Tuple[Position, ...]
    total_need_score: int
    weakest_positions: Tuple[Position, ...]
    cap_situation: CapSituation


@dataclass(frozen=True)
class AIOfferDecision:
    should_make_offer: bool
    offer: Optional[ContractOffer]
    reasoning: str
    priority: OfferPriority = OfferPriority.LOW
    competition_awareness: bool = False


@dataclass(frozen=True)
class AISigningTarget:
    free_agent_id: str
    priority: int
    max_offer: ContractOffer
    willingness: float
    alternative_players: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AIAction:
    """A proposed action; sequence is its position in the team's list."""

    team_id: str
    type: ActionType
    free_agent_id: str
    priority: int
    sequence: int
    offer: Optional[ContractOffer] = None
    interest_level: InterestLevel = InterestLevel.MEDIUM


def determine_strategy(win_percentage: float, cap_percentage: float) -> FAStrategy:
    """
    Strategy from last season's win% and cap space as a share of the cap.

    contend: .650+ with 15%+ space; aggressive: .500+ with 20%+;
    balanced: .400+; value: .250+; otherwise rebuild.
    """
    if win_percentage >= 0.65 and cap_percentage >= 0.15:
        return FAStrategy.CONTEND
    if win_percentage >= 0.5 and cap_percentage >= 0.2:
        return FAStrategy.AGGRESSIVE
    if win_percentage >= 0.4:
        return FAStrategy.BALANCED
    if win_percentage >= 0.25:
        return FAStrategy.VALUE
    return FAStrategy.REBUILD


def create_ai_profile(
    team_id: str,
    wins: int,
    losses: int,
    cap_space: int,
    salary_cap: int = EconomySettings.DEFAULT_SALARY_CAP
) -> TeamAIProfile:
    games = wins + losses
    win_percentage = wins / games if games else 0.5
    cap_percentage = cap_space / salary_cap if salary_cap else 0.0

    strategy = determine_strategy(win_percentage, cap_percentage)
    risk, premium, max_years = STRATEGY_SETTINGS[strategy]
    return TeamAIProfile(
        team_id=team_id,
        strategy=strategy,
        risk_tolerance=risk,
        value_premium=premium,
        max_contract_years=max_years,
        preferred_age_tiers=AGE_TIERS[strategy],
    )


def analyze_roster_composition(team_id: str, players: Iterable[RosterPlayer]) -> RosterComposition:
    """
    Counts, starter and backup quality, and average age per position.

    Starters are the highest-rated players at each position (one per
    position, more where STARTER_SLOTS says so).
    """
    by_position: Dict[Position, List[RosterPlayer]] = {}
    for player in players:
        by_position.setdefault(player.position, []).append(player)

    counts, starters, depth, ages = {}, {}, {}, {}
    for position, group in by_position.items():
        group = sorted(group, key=lambda p: p.overall, reverse=True)
        slots = STARTER_SLOTS.get(position, 1)
        starter_group, backup_group = group[:slots], group[slots:]

        counts[position] = len(group)
        starters[position] = sum(p.overall for p in starter_group) / len(starter_group)
        if backup_group:
            depth[position] = sum(p.overall for p in backup_group) / len(backup_group)
        ages[position] = sum(p.age for p in group) / len(group)

    return RosterComposition(team_id, counts, starters, depth, ages)


def determine_cap_situation(cap_space: int, salary_cap: int) -> CapSituation:
    pct = cap_space / salary_cap if salary_cap else 0.0
    if pct >= 0.3:
        return CapSituation.EXCELLENT
    if pct >= 0.2:
        return CapSituation.GOOD
    if pct >= 0.1:
        return CapSituation.MODERATE
    if pct >= 0.02:
        return CapSituation.LIMITED
    return CapSituation.CRITICAL


def assess_team_needs(
    composition: RosterComposition,
    cap_space: int,
    salary_cap: int
) -> TeamNeedsAssessment:
    """
    Classify every position's need.

    Roster count below the minimum is critical (10), at the minimum
    moderate (5). A starter more than 15 below the ideal rating is
    critical (8); more than 5 below is moderate (4) when nothing else
    applies. Any position at or below its minimum is at least a depth
    need (2). Priority positions are every critical position plus
    moderate ones while fewer than five are listed.
    """
    needs: Dict[Position, NeedLevel] = {}
    priority: List[Position] = []
    weakest: List[Position] = []
    total_score = 0

    for position in ALL_POSITIONS:
        count = composition.position_counts.get(position, 0)
        minimum = MIN_ROSTER_BY_POSITION.get(position, 2)
        starter_rating = composition.starter_quality.get(position, 0)
        ideal = IDEAL_STARTER_QUALITY.get(position, DEFAULT_IDEAL_STARTER)

        level, score = NeedLevel.NONE, 0
        if count < minimum:
            level, score = NeedLevel.CRITICAL, 10
        elif count == minimum:
            level, score = NeedLevel.MODERATE, 5

        if starter_rating < ideal - 15:
            if level != NeedLevel.CRITICAL:
                level, score = NeedLevel.CRITICAL, 8
        elif starter_rating < ideal - 5 and level == NeedLevel.NONE:
            level, score = NeedLevel.MODERATE, 4

        if count <= minimum and level == NeedLevel.NONE:
            level, score = NeedLevel.DEPTH, 2

        needs[position] = level
        total_score += score

        if level == NeedLevel.CRITICAL:
            priority.append(position)
            weakest.append(position)
        elif level == NeedLevel.MODERATE and len(priority) < 5:
            priority.append(position)

    return TeamNeedsAssessment(
        team_id=composition.team_id,
        needs=needs,
        priority_positions=tuple(priority),
        total_need_score=total_score,
        weakest_positions=tuple(weakest),
        cap_situation=determine_cap_situation(cap_space, salary_cap),
    )


def allocate_fa_budget(
    total_cap_space: int,
    needs: TeamNeedsAssessment,
    strategy: FAStrategy
) -> TeamFABudget:
    """Budget = cap space less the strategy's in-season reserve."""
    total_budget = round(max(0, total_cap_space) * (1 - BUDGET_RESERVE[strategy]))
    return TeamFABudget(
        team_id=needs.team_id,
        total_budget=total_budget,
        priority_positions=needs.priority_positions,
        needs_level=dict(needs.needs),
    )


class FreeAgencyAI:
    """
    AI free agency decisions for every computer-controlled team.

    Offers are built from market value scaled by the team's value premium,
    a per-position multiplier and a need multiplier.
    """

    MAX_DAILY_TARGETS = 3

    def __init__(
        self,
        manager: Optional[FreeAgencyManager] = None,
        max_workers: int = EconomySettings.AI_MAX_WORKERS
    ):
        self.manager = manager or FreeAgencyManager()
        self.max_workers = max_workers
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # EVALUATION
    # ========================================================================

    def evaluate_free_agent(
        self,
        free_agent: FreeAgent,
        market_value: MarketValue,
        needs: TeamNeedsAssessment,
        profile: TeamAIProfile,
        budget: TeamFABudget
    ) -> AIOfferDecision:
        """
        Decide whether to pursue a free agent and with what offer.

        Gates, in order: the position must be a need, the player's age must
        rate at least 0.3 on the team's age preference, and the premium
        AAV must fit the remaining budget.
        """
        need = needs.needs.get(free_agent.position, NeedLevel.NONE)
        if need == NeedLevel.NONE:
            return AIOfferDecision(False, None, "Position not a team need")

        if profile.age_preference(free_agent.age) < 0.3:
            return AIOfferDecision(False, None, "Player age outside preferred range")

        if market_value.projected_aav * profile.value_premium > budget.remaining:
            return AIOfferDecision(False, None, "Insufficient budget")

        position_multiplier = profile.position_value_multipliers.get(free_agent.position, 1.0)
        offer_aav = round(
            market_value.projected_aav * profile.value_premium
            * position_multiplier * NEED_MULTIPLIERS[need]
        )
        years = max(1, min(market_value.projected_years, profile.max_contract_years))
        guaranteed = round(offer_aav * years * (profile.risk_tolerance * 0.4 + 0.2))
        bonus = min(offer_aav, round(guaranteed / years))

        offer = ContractOffer(
            years=years,
            bonus_per_year=bonus,
            salary_per_year=offer_aav - bonus,
            no_trade_clause=(
                market_value.tier == ProductionTier.ELITE and profile.strategy == FAStrategy.CONTEND
            ),
        )

        priority = OfferPriority.MEDIUM
        if ((need == NeedLevel.CRITICAL and market_value.tier == ProductionTier.STARTER)
                or market_value.tier == ProductionTier.PRO_BOWL):
            priority = OfferPriority.HIGH
        elif need == NeedLevel.DEPTH or market_value.tier == ProductionTier.DEPTH:
            priority = OfferPriority.LOW

        return AIOfferDecision(
            should_make_offer=True,
            offer=offer,
            reasoning=f"Position need: {need.value}, Tier: {market_value.tier.value}",
            priority=priority,
            competition_awareness=len(free_agent.interest) > 2,
        )

    def generate_daily_targets(
        self,
        free_agents: Iterable[FreeAgent],
        market_values: Mapping[str, MarketValue],
        needs: TeamNeedsAssessment,
        profile: TeamAIProfile,
        budget: TeamFABudget,
        max_targets: int = 5
    ) -> List[AISigningTarget]:
        """
        Best targets for the day, highest priority first.

        Free agents still on the market (available or negotiating) are
        considered; market_values is keyed by player id.
        """
        on_market = [
            fa for fa in free_agents
            if fa.status in (FreeAgentStatus.AVAILABLE, FreeAgentStatus.NEGOTIATING)
        ]

        targets = []
        for free_agent in on_market:
            market_value = market_values.get(free_agent.player_id)
            if market_value is None:
                continue

            decision = self.evaluate_free_agent(free_agent, market_value, needs, profile, budget)
            if not decision.should_make_offer or decision.offer is None:
                continue

            offer_aav = decision.offer.aav
            alternatives = tuple(
                other.id for other in on_market
                if other.id != free_agent.id
                and other.position == free_agent.position
                and other.player_id in market_values
                and market_values[other.player_id].projected_aav < offer_aav
            )[:3]

            targets.append(AISigningTarget(
                free_agent_id=free_agent.id,
                priority=TARGET_PRIORITY[decision.priority],
                max_offer=decision.offer,
                willingness=TARGET_WILLINGNESS[decision.priority],
                alternative_players=alternatives,
            ))

        targets.sort(key=lambda t: t.priority, reverse=True)
        return targets[:max_targets]

    def adjust_offer_for_competition(
        self,
        base_offer: ContractOffer,
        competing_offer_count: int,
        profile: TeamAIProfile,
        budget: TeamFABudget
    ) -> Optional[ContractOffer]:
        """
        Raise an offer by 5% per competing offer (max 20%).

        Returns None when the raised AAV exceeds the budget or the raise is
        more than the team's risk tolerance allows (risk × 0.3).
        """
        if competing_offer_count == 0:
            return base_offer

        escalation = min(0.2, competing_offer_count * 0.05)
        new_aav = round(base_offer.aav * (1 + escalation))
        if new_aav > budget.remaining:
            return None
        if escalation > profile.risk_tolerance * 0.3:
            return None

        bonus = min(new_aav, round(base_offer.bonus_per_year * (1 + escalation * 0.5)))
        return replace(base_offer, bonus_per_year=bonus, salary_per_year=new_aav - bonus)

    # ========================================================================
    # DAILY SIMULATION
    # ========================================================================

    def simulate_team_fa_day(
        self,
        team_id: str,
        state: FreeAgencyState,
        market_values: Mapping[str, MarketValue],
        profile: TeamAIProfile,
        composition: RosterComposition
    ) -> List[AIAction]:
        """
        Propose one team's actions for the day without touching the state.

        Free agents the team already has a pending offer for are skipped.
        """
        budget = state.team_budgets.get(team_id)
        if budget is None or budget.remaining <= 0:
            return []

        needs = assess_team_needs(composition, budget.remaining, budget.total_budget)
        already_offered = {
            o.free_agent_id for o in state.offers.values() if o.team_id == team_id and o.is_pending
        }
        candidates = [fa for fa in state.free_agents.values() if fa.id not in already_offered]
        targets = self.generate_daily_targets(
            candidates, market_values, needs, profile, budget, self.MAX_DAILY_TARGETS
        )

        actions = []
        for target in targets:
            competing = sum(
                1 for o in state.offers.values()
                if o.free_agent_id == target.free_agent_id and o.is_pending
            )
            offer = self.adjust_offer_for_competition(target.max_offer, competing, profile, budget)
            if offer is not None:
                actions.append(AIAction(
                    team_id=team_id,
                    type=ActionType.OFFER,
                    free_agent_id=target.free_agent_id,
                    priority=target.priority,
                    sequence=len(actions),
                    offer=offer,
                ))
            else:
                actions.append(AIAction(
                    team_id=team_id,
                    type=ActionType.INTEREST,
                    free_agent_id=target.free_agent_id,
                    priority=target.priority,
                    sequence=len(actions),
                ))
        return actions

    def run_league_fa_day(
        self,
        state: FreeAgencyState,
        market_values: Mapping[str, MarketValue],
        profiles: Mapping[str, TeamAIProfile],
        compositions: Mapping[str, RosterComposition],
        user_team_id: Optional[str] = None
    ) -> FreeAgencyState:
        """
        Run every AI team's day and merge the results.

        Teams are evaluated in parallel against the same snapshot. The
        merge applies actions by priority (descending), then by submission
        order: team order (sorted team ids) followed by each team's own
        action order.
        """
        team_ids = sorted(
            team_id for team_id in profiles
            if team_id != user_team_id and team_id in compositions
        )
        if not team_ids:
            return state

        proposals: Dict[str, List[AIAction]] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(
                    self.simulate_team_fa_day,
                    team_id,
                    state,
                    market_values,
                    profiles[team_id],
                    compositions[team_id],
                ): team_id
                for team_id in team_ids
            }
            for future in as_completed(futures):
                proposals[futures[future]] = future.result()

        order = {team_id: index for index, team_id in enumerate(team_ids)}
        merged = sorted(
            (action for actions in proposals.values() for action in actions),
            key=lambda a: (-a.priority, order[a.team_id], a.sequence),
        )

        for action in merged:
            state = self._apply_action(state, action, market_values)

        self.logger.debug(
            "AI free agency day: %d teams, %d actions", len(team_ids), len(merged)
        )
        return state

    def _apply_action(
        self,
        state: FreeAgencyState,
        action: AIAction,
        market_values: Mapping[str, MarketValue]
    ) -> FreeAgencyState:
        free_agent = state.free_agents.get(action.free_agent_id)
        if free_agent is None:
            return state

        if action.type == ActionType.OFFER:
            return self.manager.submit_offer(state, action.team_id, action.free_agent_id, action.offer)

        budget = state.team_budgets.get(action.team_id)
        market_value = market_values.get(free_agent.player_id)
        can_afford = (
            budget is not None and market_value is not None
            and market_value.projected_aav <= budget.remaining
        )
        return self.manager.set_team_interest(
            state,
            action.team_id,
            action.free_agent_id,
            action.interest_level,
            fits_need=True,
            can_afford=can_afford,
        )

    # ========================================================================
    # SUMMARY
    # ========================================================================

    def get_ai_decision_summary(
        self,
        profile: TeamAIProfile,
        budget: TeamFABudget,
        needs: TeamNeedsAssessment
    ) -> Dict[str, Any]:
        used_pct = budget.spent / budget.total_budget * 100 if budget.total_budget else 100.0
        if used_pct < 30:
            budget_status = "Plenty of room to spend"
        elif used_pct < 60:
            budget_status = "Moderate spending capacity"
        elif used_pct < 85:
            budget_status = "Limited remaining budget"
        else:
            budget_status = "Nearly tapped out"

        if profile.strategy in (FAStrategy.AGGRESSIVE, FAStrategy.CONTEND):
            pace = "aggressive"
        elif profile.strategy in (FAStrategy.VALUE, FAStrategy.REBUILD):
            pace = "patient"
        else:
            pace = "measured"

        return {
            "team_id": profile.team_id,
            "strategy": STRATEGY_DESCRIPTIONS[profile.strategy],
            "primary_needs": [p.value for p in needs.priority_positions[:3]],
            "budget_status": budget_status,
            "signing_pace": pace,
        }

    def validate_profile(self, profile: TeamAIProfile) -> List[str]:
        errors = []
        if not profile.team_id:
            errors.append("Missing team id")
        if not 0 <= profile.risk_tolerance <= 1:
            errors.append("Risk tolerance must be between 0 and 1")
        if not 0.5 <= profile.value_premium <= 2:
            errors.append("Value premium must be between 0.5 and 2")
        if not 1 <= profile.max_contract_years <= 7:
            errors.append("Max contract years must be between 1 and 7")
        return errors
