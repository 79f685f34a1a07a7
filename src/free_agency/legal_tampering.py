"""
Legal Tampering

Negotiation window before the market opens. Teams may talk to
unrestricted free agents and reach verbal agreements, but nothing can be
signed until day 1 of free agency.

Verbal agreements carry an explicit priority (1 = first to agree). When
the market opens they are converted into signed contracts in priority
order; the first signing for a player wins and later agreements for the
same player are dropped.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging

from salary_cap.contract import ContractOffer
from .free_agency_manager import FreeAgencyManager
from .models import FreeAgencyState, FreeAgent, FreeAgentStatus, MarketValue


logger = logging.getLogger(__name__)

ACCEPTANCE_THRESHOLD = 0.85
AAV_WEIGHT = 0.5
GUARANTEE_WEIGHT = 0.3
YEARS_WEIGHT = 0.2


class TamperingStatus(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    VERBAL_AGREEMENT = "verbal_agreement"
    NO_DEAL = "no_deal"


@dataclass(frozen=True)
class TamperingNegotiation:
    """Talks between one team and one free agent."""

    free_agent_id: str
    team_id: str
    offer_history: Tuple[ContractOffer, ...] = field(default_factory=tuple)
    status: TamperingStatus = TamperingStatus.IN_PROGRESS
    meeting_count: int = 1
    closeness: float = 0.0
    last_activity_day: int = 0

    @property
    def latest_offer(self) -> Optional[ContractOffer]:
        return self.offer_history[-1] if self.offer_history else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "free_agent_id": self.free_agent_id,
            "team_id": self.team_id,
            "offer_history": [offer.to_dict() for offer in self.offer_history],
            "status": self.status.value,
            "meeting_count": self.meeting_count,
            "closeness": self.closeness,
            "last_activity_day": self.last_activity_day,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TamperingNegotiation":
        return cls(
            free_agent_id=data["free_agent_id"],
            team_id=data["team_id"],
            offer_history=tuple(ContractOffer.from_dict(o) for o in data.get("offer_history", [])),
            status=TamperingStatus(data.get("status", "in_progress")),
            meeting_count=data.get("meeting_count", 1),
            closeness=data.get("closeness", 0.0),
            last_activity_day=data.get("last_activity_day", 0),
        )


@dataclass(frozen=True)
class VerbalAgreement:
    """Non-binding agreement; lower priority agreed first."""

    id: str
    free_agent_id: str
    team_id: str
    offer: ContractOffer
    day: int
    priority: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "free_agent_id": self.free_agent_id,
            "team_id": self.team_id,
            "offer": self.offer.to_dict(),
            "day": self.day,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerbalAgreement":
        return cls(
            id=data["id"],
            free_agent_id=data["free_agent_id"],
            team_id=data["team_id"],
            offer=ContractOffer.from_dict(data["offer"]),
            day=data["day"],
            priority=data["priority"],
        )


@dataclass(frozen=True)
class LegalTamperingState:
    """
    Tampering window state.

    negotiations is keyed "{team_id}-{free_agent_id}".
    """

    start_day: int
    end_day: int
    current_day: int
    is_active: bool = False
    verbal_agreements: Tuple[VerbalAgreement, ...] = field(default_factory=tuple)
    negotiations: Dict[str, TamperingNegotiation] = field(default_factory=dict)
    team_activity: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_day": self.start_day,
            "end_day": self.end_day,
            "current_day": self.current_day,
            "is_active": self.is_active,
            "verbal_agreements": [va.to_dict() for va in self.verbal_agreements],
            "negotiations": {k: n.to_dict() for k, n in self.negotiations.items()},
            "team_activity": dict(self.team_activity),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LegalTamperingState":
        return cls(
            start_day=data["start_day"],
            end_day=data["end_day"],
            current_day=data["current_day"],
            is_active=data.get("is_active", False),
            verbal_agreements=tuple(
                VerbalAgreement.from_dict(va) for va in data.get("verbal_agreements", [])
            ),
            negotiations={
                k: TamperingNegotiation.from_dict(n)
                for k, n in data.get("negotiations", {}).items()
            },
            team_activity=dict(data.get("team_activity", {})),
        )


def negotiation_key(team_id: str, free_agent_id: str) -> str:
    return f"{team_id}-{free_agent_id}"


# ============================================================================
# WINDOW
# ============================================================================

def create_legal_tampering_state(start_day: int, end_day: int) -> LegalTamperingState:
    return LegalTamperingState(start_day=start_day, end_day=end_day, current_day=start_day)


def start_legal_tampering(state: LegalTamperingState) -> LegalTamperingState:
    logger.debug("Legal tampering opens (days %d-%d)", state.start_day, state.end_day)
    return replace(state, is_active=True, current_day=state.start_day)


def end_legal_tampering(state: LegalTamperingState) -> LegalTamperingState:
    return replace(state, is_active=False)


def advance_tampering_day(state: LegalTamperingState) -> LegalTamperingState:
    """Move one day forward; the window closes once past end_day."""
    new_day = state.current_day + 1
    if new_day > state.end_day:
        return end_legal_tampering(state)
    return replace(state, current_day=new_day)


# ============================================================================
# NEGOTIATIONS
# ============================================================================

def initiate_negotiation(
    state: LegalTamperingState,
    free_agent_id: str,
    team_id: str,
    initial_offer: ContractOffer
) -> LegalTamperingState:
    """Open talks (replacing any existing negotiation for the pair)."""
    negotiation = TamperingNegotiation(
        free_agent_id=free_agent_id,
        team_id=team_id,
        offer_history=(initial_offer,),
        last_activity_day=state.current_day,
    )

    negotiations = dict(state.negotiations)
    negotiations[negotiation_key(team_id, free_agent_id)] = negotiation

    team_activity = dict(state.team_activity)
    team_activity[team_id] = team_activity.get(team_id, 0) + 1

    return replace(state, negotiations=negotiations, team_activity=team_activity)


def update_negotiation(
    state: LegalTamperingState,
    team_id: str,
    free_agent_id: str,
    new_offer: ContractOffer,
    closeness: float
) -> LegalTamperingState:
    """Add an offer to existing talks, or start talks if there are none."""
    key = negotiation_key(team_id, free_agent_id)
    existing = state.negotiations.get(key)
    if existing is None:
        return initiate_negotiation(state, free_agent_id, team_id, new_offer)

    negotiations = dict(state.negotiations)
    negotiations[key] = replace(
        existing,
        offer_history=existing.offer_history + (new_offer,),
        meeting_count=existing.meeting_count + 1,
        closeness=closeness,
        last_activity_day=state.current_day,
    )
    return replace(state, negotiations=negotiations)


def end_negotiation(state: LegalTamperingState, team_id: str, free_agent_id: str) -> LegalTamperingState:
    """Mark talks as ended without a deal."""
    key = negotiation_key(team_id, free_agent_id)
    existing = state.negotiations.get(key)
    if existing is None or existing.status == TamperingStatus.VERBAL_AGREEMENT:
        return state

    negotiations = dict(state.negotiations)
    negotiations[key] = replace(existing, status=TamperingStatus.NO_DEAL, closeness=0.0)
    return replace(state, negotiations=negotiations)


def record_verbal_agreement(
    state: LegalTamperingState,
    free_agent_id: str,
    team_id: str,
    offer: ContractOffer
) -> LegalTamperingState:
    """
    Record a verbal agreement.

    Priority is the number of agreements already recorded plus one, so
    it increases strictly with every agreement.
    """
    key = negotiation_key(team_id, free_agent_id)
    negotiations = state.negotiations
    existing = negotiations.get(key)
    if existing is not None:
        negotiations = dict(negotiations)
        negotiations[key] = replace(
            existing, status=TamperingStatus.VERBAL_AGREEMENT, closeness=1.0
        )

    priority = len(state.verbal_agreements) + 1
    agreement = VerbalAgreement(
        id=f"verbal-{team_id}-{free_agent_id}-{priority}",
        free_agent_id=free_agent_id,
        team_id=team_id,
        offer=offer,
        day=state.current_day,
        priority=priority,
    )
    logger.debug("Verbal agreement #%d: %s with %s", priority, free_agent_id, team_id)

    return replace(
        state,
        negotiations=negotiations,
        verbal_agreements=state.verbal_agreements + (agreement,),
    )


# ============================================================================
# QUERIES
# ============================================================================

def get_team_verbal_agreements(state: LegalTamperingState, team_id: str) -> List[VerbalAgreement]:
    return [va for va in state.verbal_agreements if va.team_id == team_id]


def get_free_agent_verbal_agreements(
    state: LegalTamperingState,
    free_agent_id: str
) -> List[VerbalAgreement]:
    return [va for va in state.verbal_agreements if va.free_agent_id == free_agent_id]


def has_verbal_agreement(state: LegalTamperingState, free_agent_id: str) -> bool:
    return any(va.free_agent_id == free_agent_id for va in state.verbal_agreements)


def get_primary_verbal_agreement(
    state: LegalTamperingState,
    free_agent_id: str
) -> Optional[VerbalAgreement]:
    """Earliest agreement (lowest priority) for the player, if any."""
    agreements = get_free_agent_verbal_agreements(state, free_agent_id)
    if not agreements:
        return None
    return min(agreements, key=lambda va: va.priority)


def get_team_negotiations(state: LegalTamperingState, team_id: str) -> List[TamperingNegotiation]:
    return [n for n in state.negotiations.values() if n.team_id == team_id]


def get_free_agent_negotiations(
    state: LegalTamperingState,
    free_agent_id: str
) -> List[TamperingNegotiation]:
    return [n for n in state.negotiations.values() if n.free_agent_id == free_agent_id]


# ============================================================================
# PLAYER DECISION
# ============================================================================

def score_tampering_offer(offer: ContractOffer, market_value: MarketValue) -> float:
    """
    Weighted acceptance score for one offer.

    0.5 × min(1.2, AAV / projected AAV)
    + 0.3 × guaranteed / (half of total value)
    + 0.2 × (1.0 if years ≥ projected years else 0.8)
    """
    aav_score = min(1.2, offer.aav / market_value.projected_aav) if market_value.projected_aav else 1.2
    guarantee_score = (
        offer.guaranteed_money / (offer.total_value * 0.5) if offer.total_value else 0.0
    )
    years_score = 1.0 if offer.years >= market_value.projected_years else 0.8
    return aav_score * AAV_WEIGHT + guarantee_score * GUARANTEE_WEIGHT + years_score * YEARS_WEIGHT


def evaluate_tampering_offers(
    free_agent: FreeAgent,
    negotiations: List[TamperingNegotiation],
    market_value: MarketValue
) -> Optional[Tuple[str, ContractOffer]]:
    """
    The offer the player would agree to, if any.

    Only each negotiation's latest offer is considered. Returns
    (team_id, offer) for the highest score at or above the threshold.
    """
    best: Optional[Tuple[str, ContractOffer]] = None
    best_score = 0.0

    for negotiation in negotiations:
        offer = negotiation.latest_offer
        if offer is None or negotiation.status == TamperingStatus.NO_DEAL:
            continue
        score = score_tampering_offer(offer, market_value)
        if score > best_score:
            best_score = score
            best = (negotiation.team_id, offer)

    if best is None or best_score < ACCEPTANCE_THRESHOLD:
        return None

    logger.debug("%s favors %s (score %.2f)", free_agent.player_name, best[0], best_score)
    return best


# ============================================================================
# MARKET OPENING
# ============================================================================

def convert_verbal_agreements(
    tampering_state: LegalTamperingState,
    fa_state: FreeAgencyState,
    manager: FreeAgencyManager
) -> FreeAgencyState:
    """
    Turn verbal agreements into signings once the market is open.

    Agreements are processed in priority order. Each is submitted as a
    formal offer and accepted immediately; players already signed (or
    otherwise off the market) are skipped, so the first signing wins.
    Nothing happens while the phase does not allow signings.
    """
    if not fa_state.phase.allows_signing:
        return fa_state

    for agreement in sorted(tampering_state.verbal_agreements, key=lambda va: va.priority):
        free_agent = fa_state.free_agents.get(agreement.free_agent_id)
        if free_agent is None or free_agent.status not in (
            FreeAgentStatus.AVAILABLE, FreeAgentStatus.NEGOTIATING
        ):
            continue

        fa_state, offer_id = manager.place_offer(
            fa_state, agreement.team_id, agreement.free_agent_id, agreement.offer
        )
        if offer_id is not None:
            fa_state = manager.accept_offer(fa_state, offer_id)

    return fa_state


def get_tampering_summary(
    state: LegalTamperingState,
    free_agents: Dict[str, FreeAgent]
) -> Dict[str, Any]:
    """Display summary: activity leaders and the five latest agreements."""
    top_activity = sorted(state.team_activity.items(), key=lambda item: item[1], reverse=True)[:5]

    recent = []
    for agreement in reversed(state.verbal_agreements[-5:]):
        free_agent = free_agents.get(agreement.free_agent_id)
        recent.append({
            "player_name": free_agent.player_name if free_agent else "Unknown",
            "team_id": agreement.team_id,
        })

    return {
        "is_active": state.is_active,
        "days_remaining": state.end_day - state.current_day if state.is_active else 0,
        "total_negotiations": len(state.negotiations),
        "total_verbal_agreements": len(state.verbal_agreements),
        "top_team_activity": [
            {"team_id": team_id, "activity_count": count} for team_id, count in top_activity
        ],
        "recent_agreements": recent,
    }


def validate_legal_tampering_state(state: LegalTamperingState) -> List[str]:
    errors = []
    if state.start_day > state.end_day:
        errors.append("Tampering start day is after end day")
    if state.current_day < state.start_day:
        errors.append("Current day is before tampering start")
    priorities = [va.priority for va in state.verbal_agreements]
    if priorities != sorted(set(priorities)):
        errors.append("Verbal agreement priorities must be unique and increasing")
    return errors
