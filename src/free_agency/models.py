"""
Free Agency Data Models

Immutable records held by the free agency state: free agents, offers,
team interest, team budgets, market values and the event log.

Keyed collections are plain dicts (id → record); ordering that matters
(events, signings) lives in tuples. Every record round-trips through
to_dict()/from_dict() with enum members written as their string values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from config.economy_settings import EconomySettings
from constants.positions import Position, to_position
from salary_cap.contract import ContractOffer, PlayerContract
from .phases import FreeAgencyPhase


class FreeAgentType(Enum):
    """Free agent class, determined by accrued seasons and draft status."""
    UFA = "UFA"
    RFA = "RFA"
    ERFA = "ERFA"


class FreeAgentStatus(Enum):
    AVAILABLE = "available"
    NEGOTIATING = "negotiating"
    SIGNED = "signed"
    RETIRED = "retired"


class OfferStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    WITHDRAWN = "withdrawn"


class InterestLevel(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NeedLevel(Enum):
    """How badly a team needs help at a position."""
    CRITICAL = "critical"
    MODERATE = "moderate"
    DEPTH = "depth"
    NONE = "none"


class ProductionTier(Enum):
    """Market tier a player's rating places him in (engine use only)."""
    ELITE = "elite"
    PRO_BOWL = "pro_bowl"
    STARTER = "starter"
    QUALITY = "quality"
    DEPTH = "depth"
    MINIMUM = "minimum"


TIER_ORDER = (
    ProductionTier.ELITE,
    ProductionTier.PRO_BOWL,
    ProductionTier.STARTER,
    ProductionTier.QUALITY,
    ProductionTier.DEPTH,
    ProductionTier.MINIMUM,
)


class EventType(Enum):
    SIGNING = "signing"
    OFFER = "offer"
    INTEREST = "interest"
    PHASE_CHANGE = "phase_change"
    TENDER = "tender"
    MATCH = "match"
    RETIREMENT = "retirement"


# ============================================================================
# MARKET VALUE
# ============================================================================

@dataclass(frozen=True)
class MarketValue:
    """
    Projected contract for a free agent.

    Attributes:
        player_id: Player the projection belongs to
        base_value: Tag value × position multiplier × tier percentage
        age_adjusted_value: Base value after the age curve
        demand_adjusted_value: After position demand
        projected_aav: Final annual value (never below the minimum salary)
        projected_years: Expected contract length
        projected_guaranteed: Expected guaranteed dollars over the contract
        guarantee_pct: Share of total value expected to be guaranteed
        tier: Production tier
        reasoning: Human readable explanation
    """

    player_id: str
    base_value: int
    age_adjusted_value: int
    demand_adjusted_value: int
    projected_aav: int
    projected_years: int
    projected_guaranteed: int
    guarantee_pct: float
    tier: ProductionTier
    reasoning: str = "Standard market valuation"

    def to_offer(self) -> ContractOffer:
        """Market projection expressed as a canonical offer."""
        bonus_per_year = round(self.projected_guaranteed / self.projected_years)
        return ContractOffer(
            years=self.projected_years,
            bonus_per_year=bonus_per_year,
            salary_per_year=max(0, self.projected_aav - bonus_per_year),
            no_trade_clause=self.tier == ProductionTier.ELITE,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "base_value": self.base_value,
            "age_adjusted_value": self.age_adjusted_value,
            "demand_adjusted_value": self.demand_adjusted_value,
            "projected_aav": self.projected_aav,
            "projected_years": self.projected_years,
            "projected_guaranteed": self.projected_guaranteed,
            "guarantee_pct": self.guarantee_pct,
            "tier": self.tier.value,
            "reasoning": self.reasoning,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarketValue":
        return cls(
            player_id=data["player_id"],
            base_value=data["base_value"],
            age_adjusted_value=data["age_adjusted_value"],
            demand_adjusted_value=data["demand_adjusted_value"],
            projected_aav=data["projected_aav"],
            projected_years=data["projected_years"],
            projected_guaranteed=data["projected_guaranteed"],
            guarantee_pct=data["guarantee_pct"],
            tier=ProductionTier(data["tier"]),
            reasoning=data.get("reasoning", "Standard market valuation"),
        )


# ============================================================================
# OFFERS & INTEREST
# ============================================================================

@dataclass(frozen=True)
class FreeAgencyOffer:
    """An offer from a team to a free agent."""

    id: str
    team_id: str
    free_agent_id: str
    offer: ContractOffer
    status: OfferStatus = OfferStatus.PENDING
    submitted_day: int = 0
    phase: FreeAgencyPhase = FreeAgencyPhase.LEGAL_TAMPERING
    is_user_offer: bool = False

    @property
    def years(self) -> int:
        return self.offer.years

    @property
    def aav(self) -> int:
        return self.offer.aav

    @property
    def total_value(self) -> int:
        return self.offer.total_value

    @property
    def guaranteed_money(self) -> int:
        return self.offer.guaranteed_money

    @property
    def is_pending(self) -> bool:
        return self.status == OfferStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "team_id": self.team_id,
            "free_agent_id": self.free_agent_id,
            "offer": self.offer.to_dict(),
            "status": self.status.value,
            "submitted_day": self.submitted_day,
            "phase": self.phase.value,
            "is_user_offer": self.is_user_offer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FreeAgencyOffer":
        return cls(
            id=data["id"],
            team_id=data["team_id"],
            free_agent_id=data["free_agent_id"],
            offer=ContractOffer.from_dict(data["offer"]),
            status=OfferStatus(data["status"]),
            submitted_day=data.get("submitted_day", 0),
            phase=FreeAgencyPhase(data["phase"]),
            is_user_offer=data.get("is_user_offer", False),
        )


@dataclass(frozen=True)
class TeamInterest:
    team_id: str
    interest_level: InterestLevel
    fits_need: bool
    can_afford: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "interest_level": self.interest_level.value,
            "fits_need": self.fits_need,
            "can_afford": self.can_afford,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamInterest":
        return cls(
            team_id=data["team_id"],
            interest_level=InterestLevel(data["interest_level"]),
            fits_need=data["fits_need"],
            can_afford=data["can_afford"],
        )


# ============================================================================
# FREE AGENTS
# ============================================================================

@dataclass(frozen=True)
class FreeAgent:
    """
    A player in the free agent pool.

    offer_ids references entries of FreeAgencyState.offers in submission
    order; the offers themselves live only in the state's offer map.
    """

    id: str
    player_id: str
    player_name: str
    position: Position
    age: int
    experience: int
    overall: int
    type: FreeAgentType
    market_value: int
    previous_team_id: Optional[str] = None
    previous_contract_aav: int = 0
    status: FreeAgentStatus = FreeAgentStatus.AVAILABLE
    offer_ids: Tuple[str, ...] = field(default_factory=tuple)
    interest: Tuple[TeamInterest, ...] = field(default_factory=tuple)
    signed_team_id: Optional[str] = None
    signed_contract_id: Optional[str] = None
    days_on_market: int = 0

    def __post_init__(self):
        object.__setattr__(self, "position", to_position(self.position))
        object.__setattr__(self, "offer_ids", tuple(self.offer_ids))
        object.__setattr__(self, "interest", tuple(self.interest))

    @property
    def is_available(self) -> bool:
        return self.status == FreeAgentStatus.AVAILABLE

    @property
    def is_signed(self) -> bool:
        return self.status == FreeAgentStatus.SIGNED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "position": self.position.value,
            "age": self.age,
            "experience": self.experience,
            "overall": self.overall,
            "type": self.type.value,
            "market_value": self.market_value,
            "previous_team_id": self.previous_team_id,
            "previous_contract_aav": self.previous_contract_aav,
            "status": self.status.value,
            "offer_ids": list(self.offer_ids),
            "interest": [i.to_dict() for i in self.interest],
            "signed_team_id": self.signed_team_id,
            "signed_contract_id": self.signed_contract_id,
            "days_on_market": self.days_on_market,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FreeAgent":
        return cls(
            id=data["id"],
            player_id=data["player_id"],
            player_name=data["player_name"],
            position=Position(data["position"]),
            age=data["age"],
            experience=data["experience"],
            overall=data["overall"],
            type=FreeAgentType(data["type"]),
            market_value=data["market_value"],
            previous_team_id=data.get("previous_team_id"),
            previous_contract_aav=data.get("previous_contract_aav", 0),
            status=FreeAgentStatus(data.get("status", "available")),
            offer_ids=tuple(data.get("offer_ids", [])),
            interest=tuple(TeamInterest.from_dict(i) for i in data.get("interest", [])),
            signed_team_id=data.get("signed_team_id"),
            signed_contract_id=data.get("signed_contract_id"),
            days_on_market=data.get("days_on_market", 0),
        )


# ============================================================================
# TEAM BUDGETS
# ============================================================================

@dataclass(frozen=True)
class TeamFABudget:
    """
    A team's free agency spending plan.

    remaining is derived: total_budget - spent.
    """

    team_id: str
    total_budget: int = EconomySettings.DEFAULT_FA_BUDGET
    spent: int = 0
    priority_positions: Tuple[Position, ...] = field(default_factory=tuple)
    needs_level: Dict[Position, NeedLevel] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(
            self, "priority_positions", tuple(to_position(p) for p in self.priority_positions)
        )
        object.__setattr__(self, "needs_level", dict(self.needs_level))

    @property
    def remaining(self) -> int:
        return self.total_budget - self.spent

    def need_for(self, position: Position) -> NeedLevel:
        return self.needs_level.get(to_position(position), NeedLevel.NONE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "total_budget": self.total_budget,
            "spent": self.spent,
            "remaining": self.remaining,
            "priority_positions": [p.value for p in self.priority_positions],
            "needs_level": {p.value: n.value for p, n in self.needs_level.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamFABudget":
        return cls(
            team_id=data["team_id"],
            total_budget=data["total_budget"],
            spent=data.get("spent", 0),
            priority_positions=tuple(Position(p) for p in data.get("priority_positions", [])),
            needs_level={
                Position(p): NeedLevel(n) for p, n in data.get("needs_level", {}).items()
            },
        )


# ============================================================================
# EVENTS & STATE
# ============================================================================

@dataclass(frozen=True)
class FreeAgencyEvent:
    """Entry in the free agency event log."""

    id: str
    type: EventType
    day: int
    phase: FreeAgencyPhase
    description: str
    player_id: str = ""
    player_name: str = ""
    team_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "day": self.day,
            "phase": self.phase.value,
            "description": self.description,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "team_id": self.team_id,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FreeAgencyEvent":
        return cls(
            id=data["id"],
            type=EventType(data["type"]),
            day=data["day"],
            phase=FreeAgencyPhase(data["phase"]),
            description=data["description"],
            player_id=data.get("player_id", ""),
            player_name=data.get("player_name", ""),
            team_id=data.get("team_id"),
            details=dict(data.get("details", {})),
        )


@dataclass(frozen=True)
class FreeAgencyState:
    """
    League-wide free agency snapshot.

    Owned by the offseason driver; every manager operation returns a new
    state. Event and offer ids come from the next_* counters so identical
    inputs always produce identical ids.
    """

    current_year: int
    phase: FreeAgencyPhase = FreeAgencyPhase.PRE_FREE_AGENCY
    phase_day: int = 0
    free_agents: Dict[str, FreeAgent] = field(default_factory=dict)
    offers: Dict[str, FreeAgencyOffer] = field(default_factory=dict)
    team_budgets: Dict[str, TeamFABudget] = field(default_factory=dict)
    events: Tuple[FreeAgencyEvent, ...] = field(default_factory=tuple)
    signed_contracts: Tuple[PlayerContract, ...] = field(default_factory=tuple)
    deadlines: Dict[str, int] = field(default_factory=lambda: dict(EconomySettings.DEADLINES))
    next_event_id: int = 1
    next_offer_id: int = 1

    def __post_init__(self):
        object.__setattr__(self, "free_agents", dict(self.free_agents))
        object.__setattr__(self, "offers", dict(self.offers))
        object.__setattr__(self, "team_budgets", dict(self.team_budgets))
        object.__setattr__(self, "events", tuple(self.events))
        object.__setattr__(self, "signed_contracts", tuple(self.signed_contracts))
        object.__setattr__(self, "deadlines", dict(self.deadlines))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_year": self.current_year,
            "phase": self.phase.value,
            "phase_day": self.phase_day,
            "free_agents": {fid: fa.to_dict() for fid, fa in self.free_agents.items()},
            "offers": {oid: o.to_dict() for oid, o in self.offers.items()},
            "team_budgets": {tid: b.to_dict() for tid, b in self.team_budgets.items()},
            "events": [e.to_dict() for e in self.events],
            "signed_contracts": [c.to_dict() for c in self.signed_contracts],
            "deadlines": dict(self.deadlines),
            "next_event_id": self.next_event_id,
            "next_offer_id": self.next_offer_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FreeAgencyState":
        return cls(
            current_year=data["current_year"],
            phase=FreeAgencyPhase(data.get("phase", "pre_free_agency")),
            phase_day=data.get("phase_day", 0),
            free_agents={
                fid: FreeAgent.from_dict(fa) for fid, fa in data.get("free_agents", {}).items()
            },
            offers={
                oid: FreeAgencyOffer.from_dict(o) for oid, o in data.get("offers", {}).items()
            },
            team_budgets={
                tid: TeamFABudget.from_dict(b) for tid, b in data.get("team_budgets", {}).items()
            },
            events=tuple(FreeAgencyEvent.from_dict(e) for e in data.get("events", [])),
            signed_contracts=tuple(
                PlayerContract.from_dict(c) for c in data.get("signed_contracts", [])
            ),
            deadlines=dict(data.get("deadlines", EconomySettings.DEADLINES)),
            next_event_id=data.get("next_event_id", 1),
            next_offer_id=data.get("next_offer_id", 1),
        )
