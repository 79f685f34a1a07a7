"""
Day 1 Frenzy and Bidding Wars

Simulates the opening of the market: verbal agreements become official,
top free agents draw competing bids and teams escalate until all but one
drop out or the round limit is reached.

Escalation multiplies every dollar field of the high bid by
(1 + escalation rate), so bonus/salary proportions are preserved.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import logging
import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config.economy_settings import EconomySettings
from constants.positions import Position
from salary_cap.contract import ContractOffer
from shared.money import format_money
from .free_agency_manager import FreeAgencyManager
from .legal_tampering import LegalTamperingState, convert_verbal_agreements
from .models import (
    FreeAgencyState,
    FreeAgent,
    MarketValue,
    NeedLevel,
    ProductionTier,
    TeamFABudget,
)


class FrenzyIntensity(Enum):
    EXTREME = "extreme"
    HIGH = "high"
    MODERATE = "moderate"
    CALM = "calm"


SIGNING_RATES = {
    FrenzyIntensity.EXTREME: 3,
    FrenzyIntensity.HIGH: 2,
    FrenzyIntensity.MODERATE: 1,
    FrenzyIntensity.CALM: 0.5,
}


@dataclass(frozen=True)
class FrenzyConfig:
    """Tunable frenzy parameters."""

    initial_intensity: FrenzyIntensity = FrenzyIntensity.EXTREME
    signings_per_minute: float = EconomySettings.FRENZY_SIGNINGS_PER_MINUTE
    bidding_war_probability: float = EconomySettings.BIDDING_WAR_PROBABILITY
    escalation_rate: float = EconomySettings.BID_ESCALATION_RATE
    max_bidding_rounds: int = EconomySettings.MAX_BIDDING_ROUNDS


@dataclass(frozen=True)
class BiddingWar:
    """
    Competing bids for one free agent.

    Each round replaces the high bid and bidder and increments
    rounds_elapsed; the war closes when rounds_elapsed reaches max_rounds.
    """

    id: str
    free_agent_id: str
    participating_teams: Tuple[str, ...]
    current_high_bid: ContractOffer
    current_high_bidder: str
    rounds_elapsed: int = 0
    max_rounds: int = EconomySettings.MAX_BIDDING_ROUNDS
    is_active: bool = True
    escalation_rate: float = EconomySettings.BID_ESCALATION_RATE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "free_agent_id": self.free_agent_id,
            "participating_teams": list(self.participating_teams),
            "current_high_bid": self.current_high_bid.to_dict(),
            "current_high_bidder": self.current_high_bidder,
            "rounds_elapsed": self.rounds_elapsed,
            "max_rounds": self.max_rounds,
            "is_active": self.is_active,
            "escalation_rate": self.escalation_rate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BiddingWar":
        return cls(
            id=data["id"],
            free_agent_id=data["free_agent_id"],
            participating_teams=tuple(data.get("participating_teams", [])),
            current_high_bid=ContractOffer.from_dict(data["current_high_bid"]),
            current_high_bidder=data["current_high_bidder"],
            rounds_elapsed=data.get("rounds_elapsed", 0),
            max_rounds=data.get("max_rounds", EconomySettings.MAX_BIDDING_ROUNDS),
            is_active=data.get("is_active", True),
            escalation_rate=data.get("escalation_rate", EconomySettings.BID_ESCALATION_RATE),
        )


@dataclass(frozen=True)
class FrenzySigning:
    """One signing recorded during the frenzy."""

    minute: int
    player_id: str
    player_name: str
    position: Position
    team_id: str
    contract_value: int
    contract_years: int
    was_bidding_war: bool
    market_percentage: float

    @property
    def aav(self) -> int:
        return round(self.contract_value / self.contract_years)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minute": self.minute,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "position": self.position.value,
            "team_id": self.team_id,
            "contract_value": self.contract_value,
            "contract_years": self.contract_years,
            "was_bidding_war": self.was_bidding_war,
            "market_percentage": self.market_percentage,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrenzySigning":
        return cls(
            minute=data["minute"],
            player_id=data["player_id"],
            player_name=data["player_name"],
            position=Position(data["position"]),
            team_id=data["team_id"],
            contract_value=data["contract_value"],
            contract_years=data["contract_years"],
            was_bidding_war=data.get("was_bidding_war", False),
            market_percentage=data.get("market_percentage", 1.0),
        )


@dataclass(frozen=True)
class FrenzyState:
    is_active: bool = False
    elapsed_minutes: int = 0
    intensity: FrenzyIntensity = FrenzyIntensity.EXTREME
    bidding_wars: Dict[str, BiddingWar] = field(default_factory=dict)
    signings: Tuple[FrenzySigning, ...] = field(default_factory=tuple)
    team_activity: Dict[str, int] = field(default_factory=dict)
    players_signed: frozenset = field(default_factory=frozenset)
    processed_verbal_agreements: bool = False
    next_war_id: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_active": self.is_active,
            "elapsed_minutes": self.elapsed_minutes,
            "intensity": self.intensity.value,
            "bidding_wars": [war.to_dict() for war in self.bidding_wars.values()],
            "signings": [signing.to_dict() for signing in self.signings],
            "team_activity": dict(self.team_activity),
            "players_signed": sorted(self.players_signed),
            "processed_verbal_agreements": self.processed_verbal_agreements,
            "next_war_id": self.next_war_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FrenzyState":
        wars = [BiddingWar.from_dict(w) for w in data.get("bidding_wars", [])]
        return cls(
            is_active=data.get("is_active", False),
            elapsed_minutes=data.get("elapsed_minutes", 0),
            intensity=FrenzyIntensity(data.get("intensity", "extreme")),
            bidding_wars={war.id: war for war in wars},
            signings=tuple(FrenzySigning.from_dict(s) for s in data.get("signings", [])),
            team_activity=dict(data.get("team_activity", {})),
            players_signed=frozenset(data.get("players_signed", [])),
            processed_verbal_agreements=data.get("processed_verbal_agreements", False),
            next_war_id=data.get("next_war_id", 1),
        )


def escalate_bid(current_bid: ContractOffer, escalation_rate: float) -> ContractOffer:
    """
    Raise a bid by the escalation rate.

    Example (rate 0.05):
        4 years × (12500 bonus + 7500 salary) = 80000
        → 4 years × (13125 + 7875) = 84000
    """
    multiplier = 1 + escalation_rate
    return replace(
        current_bid,
        bonus_per_year=round(current_bid.bonus_per_year * multiplier),
        salary_per_year=round(current_bid.salary_per_year * multiplier),
    )


def get_signing_rate(intensity: FrenzyIntensity) -> float:
    """Signings per simulated minute at a given intensity."""
    return SIGNING_RATES[intensity]


class BiddingWarSimulator:
    """
    Runs the day-1 frenzy.

    Randomized decisions (bid noise, whether a team keeps bidding) draw
    from the injected random source so a seeded generator reproduces a
    frenzy exactly.
    """

    def __init__(
        self,
        config: Optional[FrenzyConfig] = None,
        rng: Optional[random.Random] = None,
        manager: Optional[FreeAgencyManager] = None
    ):
        self.config = config or FrenzyConfig()
        self.rng = rng or random.Random()
        self.manager = manager or FreeAgencyManager()
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # FRENZY LIFECYCLE
    # ========================================================================

    def start_frenzy(self, state: FrenzyState) -> FrenzyState:
        return replace(
            state,
            is_active=True,
            elapsed_minutes=0,
            intensity=self.config.initial_intensity,
        )

    def end_frenzy(self, state: FrenzyState) -> FrenzyState:
        """Stop the frenzy and close any open bidding wars."""
        wars = {war_id: replace(war, is_active=False) for war_id, war in state.bidding_wars.items()}
        return replace(state, is_active=False, bidding_wars=wars)

    def advance_frenzy_time(self, state: FrenzyState, minutes: int) -> FrenzyState:
        return replace(state, elapsed_minutes=state.elapsed_minutes + minutes)

    def update_intensity(self, state: FrenzyState, remaining_top_players: int) -> FrenzyState:
        """Intensity from remaining top free agents: >20 extreme, >10 high, >5 moderate."""
        if remaining_top_players > 20:
            intensity = FrenzyIntensity.EXTREME
        elif remaining_top_players > 10:
            intensity = FrenzyIntensity.HIGH
        elif remaining_top_players > 5:
            intensity = FrenzyIntensity.MODERATE
        else:
            intensity = FrenzyIntensity.CALM
        return replace(state, intensity=intensity)

    def process_verbal_agreements(
        self,
        frenzy_state: FrenzyState,
        fa_state: FreeAgencyState,
        tampering_state: LegalTamperingState
    ) -> Tuple[FrenzyState, FreeAgencyState]:
        """Convert tampering agreements once, when the frenzy starts."""
        if frenzy_state.processed_verbal_agreements:
            return frenzy_state, fa_state

        fa_state = convert_verbal_agreements(tampering_state, fa_state, self.manager)
        return replace(frenzy_state, processed_verbal_agreements=True), fa_state

    # ========================================================================
    # BIDDING WARS
    # ========================================================================

    def initiate_bidding_war(
        self,
        state: FrenzyState,
        free_agent_id: str,
        participating_teams: Sequence[str],
        initial_offer: ContractOffer,
        initial_bidder: str
    ) -> FrenzyState:
        """Open a bidding war; fewer than two teams is a no-op."""
        if len(participating_teams) < 2:
            return state

        war = BiddingWar(
            id=f"war-{free_agent_id}-{state.next_war_id}",
            free_agent_id=free_agent_id,
            participating_teams=tuple(participating_teams),
            current_high_bid=initial_offer,
            current_high_bidder=initial_bidder,
            max_rounds=self.config.max_bidding_rounds,
            escalation_rate=self.config.escalation_rate,
        )
        wars = dict(state.bidding_wars)
        wars[war.id] = war
        return replace(state, bidding_wars=wars, next_war_id=state.next_war_id + 1)

    def process_bidding_war_round(
        self,
        state: FrenzyState,
        war_id: str,
        new_bid: ContractOffer,
        bidder_id: str
    ) -> FrenzyState:
        war = state.bidding_wars.get(war_id)
        if war is None or not war.is_active:
            return state

        rounds = war.rounds_elapsed + 1
        wars = dict(state.bidding_wars)
        wars[war_id] = replace(
            war,
            current_high_bid=new_bid,
            current_high_bidder=bidder_id,
            rounds_elapsed=rounds,
            is_active=rounds < war.max_rounds,
        )
        return replace(state, bidding_wars=wars)

    def end_bidding_war(
        self,
        state: FrenzyState,
        war_id: str
    ) -> Optional[Tuple[FrenzyState, str, ContractOffer]]:
        """Close a war; returns (state, winner, winning bid) or None if unknown."""
        war = state.bidding_wars.get(war_id)
        if war is None:
            return None

        wars = dict(state.bidding_wars)
        wars[war_id] = replace(war, is_active=False)
        return replace(state, bidding_wars=wars), war.current_high_bidder, war.current_high_bid

    def will_continue_bidding(
        self,
        team_budget: TeamFABudget,
        current_bid: ContractOffer,
        escalated_bid: ContractOffer,
        free_agent: FreeAgent
    ) -> bool:
        """
        Whether a team matches the next escalation.

        Teams never bid past their remaining budget. Non-priority positions
        drop out more often, as do steep escalations (> 15%).
        """
        if escalated_bid.aav > team_budget.remaining:
            return False

        if free_agent.position not in team_budget.priority_positions:
            return self.rng.random() > 0.6

        if current_bid.total_value > 0:
            escalation_pct = (
                (escalated_bid.total_value - current_bid.total_value) / current_bid.total_value
            )
            if escalation_pct > 0.15:
                return self.rng.random() > 0.4

        return self.rng.random() > 0.2

    def run_bidding_war(
        self,
        state: FrenzyState,
        war_id: str,
        free_agent: FreeAgent,
        budgets: Dict[str, TeamFABudget]
    ) -> Tuple[FrenzyState, Optional[str], Optional[ContractOffer]]:
        """
        Play a bidding war out to the end.

        Each round the trailing teams, in participation order, get a chance
        to top the high bid; the first that continues takes the lead. The
        war ends when nobody continues or the round limit is hit.
        """
        war = state.bidding_wars.get(war_id)
        if war is None:
            return state, None, None

        while war.is_active:
            escalated = escalate_bid(war.current_high_bid, war.escalation_rate)
            bidder = None
            for team_id in war.participating_teams:
                if team_id == war.current_high_bidder:
                    continue
                budget = budgets.get(team_id)
                if budget is None:
                    continue
                if self.will_continue_bidding(budget, war.current_high_bid, escalated, free_agent):
                    bidder = team_id
                    break

            if bidder is None:
                break
            state = self.process_bidding_war_round(state, war_id, escalated, bidder)
            war = state.bidding_wars[war_id]

        ended = self.end_bidding_war(state, war_id)
        state, winner, winning_bid = ended
        self.logger.debug(
            "Bidding war for %s won by %s after %d rounds (%s AAV)",
            free_agent.player_name, winner, war.rounds_elapsed, format_money(winning_bid.aav)
        )
        return state, winner, winning_bid

    def get_active_bidding_wars(self, state: FrenzyState) -> List[BiddingWar]:
        return [war for war in state.bidding_wars.values() if war.is_active]

    # ========================================================================
    # TEAM BIDS
    # ========================================================================

    def simulate_team_bid(
        self,
        free_agent: FreeAgent,
        market_value: MarketValue,
        team_budget: TeamFABudget,
        competing_offers: int
    ) -> Optional[ContractOffer]:
        """
        AI team's opening bid, or None when it cannot afford or has no need.

        Premium over projected AAV:
            +15% with more than 3 competing offers, +8% with more than 1
            +10% for a critical need, +5% for a moderate need
            ±5% noise
        The AAV is capped at the remaining budget; half of it is guaranteed.
        """
        if team_budget.remaining < market_value.projected_aav:
            return None

        need = team_budget.need_for(free_agent.position)
        if need == NeedLevel.NONE:
            return None

        premium = 1.0
        if competing_offers > 3:
            premium += 0.15
        elif competing_offers > 1:
            premium += 0.08

        if need == NeedLevel.CRITICAL:
            premium += 0.1
        elif need == NeedLevel.MODERATE:
            premium += 0.05

        premium += (self.rng.random() - 0.5) * 0.1

        aav = min(round(market_value.projected_aav * premium), team_budget.remaining)
        bonus = round(aav * 0.5)
        return ContractOffer(
            years=market_value.projected_years,
            bonus_per_year=bonus,
            salary_per_year=aav - bonus,
            no_trade_clause=market_value.tier == ProductionTier.ELITE,
        )

    # ========================================================================
    # SIGNING LOG
    # ========================================================================

    def record_frenzy_signing(
        self,
        state: FrenzyState,
        free_agent: FreeAgent,
        team_id: str,
        offer: ContractOffer,
        market_aav: int,
        was_bidding_war: bool
    ) -> FrenzyState:
        signing = FrenzySigning(
            minute=state.elapsed_minutes,
            player_id=free_agent.player_id,
            player_name=free_agent.player_name,
            position=free_agent.position,
            team_id=team_id,
            contract_value=offer.total_value,
            contract_years=offer.years,
            was_bidding_war=was_bidding_war,
            market_percentage=offer.aav / market_aav * 100 if market_aav else 100.0,
        )

        team_activity = dict(state.team_activity)
        team_activity[team_id] = team_activity.get(team_id, 0) + 1

        return replace(
            state,
            signings=state.signings + (signing,),
            team_activity=team_activity,
            players_signed=state.players_signed | {free_agent.player_id},
        )

    def get_team_frenzy_activity(self, state: FrenzyState, team_id: str) -> Dict[str, int]:
        signings = [s for s in state.signings if s.team_id == team_id]
        active_bidding = [
            war for war in self.get_active_bidding_wars(state) if team_id in war.participating_teams
        ]
        return {
            "signings": len(signings),
            "active_bidding": len(active_bidding),
            "total_spent": sum(s.aav for s in signings),
        }

    def get_frenzy_summary(self, state: FrenzyState) -> Dict[str, Any]:
        """Display summary: ten latest signings and the five busiest teams."""
        hours, minutes = divmod(state.elapsed_minutes, 60)
        elapsed = f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"

        recent = [
            {
                "player_name": s.player_name,
                "position": s.position.value,
                "team_id": s.team_id,
                "value": format_money(s.aav),
                "above_market": s.market_percentage > 105,
            }
            for s in reversed(state.signings[-10:])
        ]

        counts: Dict[str, int] = {}
        for signing in state.signings:
            counts[signing.team_id] = counts.get(signing.team_id, 0) + 1
        most_active = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:5]

        return {
            "is_active": state.is_active,
            "intensity": state.intensity.value,
            "elapsed_time": elapsed,
            "total_signings": len(state.signings),
            "active_bidding_wars": len(self.get_active_bidding_wars(state)),
            "recent_signings": recent,
            "most_active_teams": [
                {"team_id": team_id, "signings": n} for team_id, n in most_active
            ],
        }

    def validate_frenzy_state(self, state: FrenzyState) -> List[str]:
        errors = []
        if state.elapsed_minutes < 0:
            errors.append("Elapsed minutes cannot be negative")
        for war in state.bidding_wars.values():
            if len(war.participating_teams) < 2:
                errors.append(f"Bidding war {war.id} has fewer than two teams")
            if war.rounds_elapsed > war.max_rounds:
                errors.append(f"Bidding war {war.id} exceeded its round limit")
        return errors
