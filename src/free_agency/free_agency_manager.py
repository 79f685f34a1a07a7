"""
Free Agency Manager

Handles free agency operations including:
- Free agent pool management (UFA, RFA, ERFA)
- Phase progression from pre-free agency to close
- Offers, signings, rejections and withdrawals
- Team interest and free agency budgets
- Event log and display summaries

Every operation takes a FreeAgencyState and returns a new one. Actions
the current phase does not allow (offers before the market opens,
signings during legal tampering) are silently ignored: the same state
object comes back unchanged.
"""

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from config.economy_settings import EconomySettings
from constants.positions import Position, to_position
from salary_cap.contract import ContractOffer, ContractType, create_contract
from salary_cap.contract_generator import RosterPlayer
from shared.money import format_money
from .models import (
    EventType,
    FreeAgencyEvent,
    FreeAgencyOffer,
    FreeAgencyState,
    FreeAgent,
    FreeAgentStatus,
    FreeAgentType,
    InterestLevel,
    OfferStatus,
    TeamFABudget,
    TeamInterest,
)
from .phases import FreeAgencyPhase


def classify_free_agent_type(experience: int, was_drafted: bool) -> FreeAgentType:
    """
    Classify a player's free agent type.

    NFL Rules:
        - ERFA: fewer than 3 accrued seasons (drafted players)
        - RFA: exactly 3 accrued seasons (drafted players)
        - UFA: 4+ accrued seasons, or any undrafted player
    """
    if was_drafted and experience < 3:
        return FreeAgentType.ERFA
    if was_drafted and experience == 3:
        return FreeAgentType.RFA
    return FreeAgentType.UFA


def create_default_team_budget(
    team_id: str,
    total_budget: int = EconomySettings.DEFAULT_FA_BUDGET
) -> TeamFABudget:
    return TeamFABudget(team_id=team_id, total_budget=total_budget)


def create_free_agency_state(
    current_year: int,
    team_ids: Iterable[str],
    total_budget: int = EconomySettings.DEFAULT_FA_BUDGET
) -> FreeAgencyState:
    """Empty pool in pre-free agency with a default budget per team."""
    return FreeAgencyState(
        current_year=current_year,
        team_budgets={
            team_id: create_default_team_budget(team_id, total_budget) for team_id in team_ids
        },
    )


class FreeAgencyManager:
    """
    Manages the free agency process.

    Responsibilities:
    - Maintain the free agent pool
    - Enforce phase order and phase permissions
    - Record offers and execute signings
    - Track team budgets, interest and events
    """

    MAX_FREE_AGENT_AGE = 36

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # EVENT LOG
    # ========================================================================

    def _with_event(
        self,
        state: FreeAgencyState,
        event_type: EventType,
        description: str,
        player_id: str = "",
        player_name: str = "",
        team_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        **changes
    ) -> FreeAgencyState:
        """Apply changes to the state and append one event."""
        event = FreeAgencyEvent(
            id=f"event-{state.next_event_id}",
            type=event_type,
            day=state.phase_day,
            phase=changes.get("phase", state.phase),
            description=description,
            player_id=player_id,
            player_name=player_name,
            team_id=team_id,
            details=details or {},
        )
        return replace(
            state,
            events=state.events + (event,),
            next_event_id=state.next_event_id + 1,
            **changes
        )

    def record_event(
        self,
        state: FreeAgencyState,
        event_type: EventType,
        description: str,
        player_id: str = "",
        player_name: str = "",
        team_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> FreeAgencyState:
        """Append an event raised by one of the free agency engines."""
        return self._with_event(
            state, event_type, description, player_id, player_name, team_id, details
        )

    # ========================================================================
    # POOL MANAGEMENT
    # ========================================================================

    def add_free_agent(
        self,
        state: FreeAgencyState,
        player: RosterPlayer,
        previous_team_id: Optional[str],
        market_value: int,
        fa_type: Optional[FreeAgentType] = None,
        previous_contract_aav: int = 0
    ) -> FreeAgencyState:
        """
        Add a player to the pool.

        Args:
            state: Current free agency state
            player: Player record
            previous_team_id: Team the player last played for
            market_value: Projected AAV (thousands)
            fa_type: Free agent type (classified from experience when omitted)
            previous_contract_aav: AAV of the expiring contract

        Returns:
            New state containing the free agent
        """
        if fa_type is None:
            fa_type = classify_free_agent_type(player.experience, player.draft_round > 0)

        free_agent = FreeAgent(
            id=f"fa-{player.player_id}-{state.current_year}",
            player_id=player.player_id,
            player_name=player.name,
            position=player.position,
            age=player.age,
            experience=player.experience,
            overall=player.overall,
            type=fa_type,
            market_value=market_value,
            previous_team_id=previous_team_id,
            previous_contract_aav=previous_contract_aav,
        )

        free_agents = dict(state.free_agents)
        free_agents[free_agent.id] = free_agent
        return replace(state, free_agents=free_agents)

    def remove_free_agent(self, state: FreeAgencyState, free_agent_id: str) -> FreeAgencyState:
        if free_agent_id not in state.free_agents:
            return state
        free_agents = dict(state.free_agents)
        del free_agents[free_agent_id]
        return replace(state, free_agents=free_agents)

    def retire_free_agent(self, state: FreeAgencyState, free_agent_id: str) -> FreeAgencyState:
        """Unsigned players can retire; signed players cannot."""
        free_agent = state.free_agents.get(free_agent_id)
        if free_agent is None or free_agent.is_signed:
            return state

        state = self._expire_pending_offers(state, free_agent_id)
        free_agents = dict(state.free_agents)
        free_agents[free_agent_id] = replace(free_agent, status=FreeAgentStatus.RETIRED)
        return self._with_event(
            state,
            EventType.RETIREMENT,
            f"{free_agent.player_name} retires",
            player_id=free_agent.player_id,
            player_name=free_agent.player_name,
            free_agents=free_agents,
        )

    def retire_aged_free_agents(
        self,
        state: FreeAgencyState,
        max_age: int = MAX_FREE_AGENT_AGE
    ) -> FreeAgencyState:
        """Retire every unsigned free agent older than max_age."""
        for free_agent in list(state.free_agents.values()):
            if free_agent.age > max_age and not free_agent.is_signed:
                state = self.retire_free_agent(state, free_agent.id)
        return state

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_free_agents_by_type(
        self,
        state: FreeAgencyState,
        fa_type: FreeAgentType
    ) -> List[FreeAgent]:
        return [fa for fa in state.free_agents.values() if fa.type == fa_type]

    def get_free_agents_by_position(
        self,
        state: FreeAgencyState,
        position: Position
    ) -> List[FreeAgent]:
        position = to_position(position)
        return [fa for fa in state.free_agents.values() if fa.position == position]

    def get_available_free_agents(self, state: FreeAgencyState) -> List[FreeAgent]:
        return [fa for fa in state.free_agents.values() if fa.is_available]

    def get_top_free_agents(self, state: FreeAgencyState, limit: int = 25) -> List[FreeAgent]:
        """Available free agents by market value, highest first."""
        available = self.get_available_free_agents(state)
        return sorted(available, key=lambda fa: fa.market_value, reverse=True)[:limit]

    def get_team_offers(self, state: FreeAgencyState, team_id: str) -> List[FreeAgencyOffer]:
        return [o for o in state.offers.values() if o.team_id == team_id]

    def get_free_agent_offers(
        self,
        state: FreeAgencyState,
        free_agent_id: str
    ) -> List[FreeAgencyOffer]:
        """Pending offers for a free agent in submission order."""
        return [
            o for o in state.offers.values()
            if o.free_agent_id == free_agent_id and o.is_pending
        ]

    def get_recent_events(self, state: FreeAgencyState, limit: int = 50) -> List[FreeAgencyEvent]:
        """Most recent events first."""
        return list(reversed(state.events[-limit:])) if limit > 0 else []

    def get_team_signings(self, state: FreeAgencyState, team_id: str) -> List[FreeAgent]:
        return [fa for fa in state.free_agents.values() if fa.signed_team_id == team_id]

    # ========================================================================
    # PHASES
    # ========================================================================

    def is_free_agency_active(self, state: FreeAgencyState) -> bool:
        return state.phase not in (FreeAgencyPhase.PRE_FREE_AGENCY, FreeAgencyPhase.CLOSED)

    def can_sign_players(self, state: FreeAgencyState) -> bool:
        return state.phase.allows_signing

    def advance_phase(self, state: FreeAgencyState) -> FreeAgencyState:
        """
        Move to the next phase.

        Phases never skip or go backward; advancing a closed market is a
        no-op. Each transition resets the phase day and logs an event.
        """
        next_phase = state.phase.next_phase()
        if next_phase is None:
            return state

        self.logger.debug(
            "Free agency %d: %s -> %s", state.current_year, state.phase.value, next_phase.value
        )
        return self._with_event(
            state,
            EventType.PHASE_CHANGE,
            f"Free agency transitions to {next_phase.value.replace('_', ' ')}",
            details={"from_phase": state.phase.value, "to_phase": next_phase.value},
            phase=next_phase,
            phase_day=0,
        )

    def advance_day(self, state: FreeAgencyState) -> FreeAgencyState:
        """Advance one day; unsigned players accrue a day on the market."""
        free_agents = {
            fid: replace(fa, days_on_market=fa.days_on_market + 1)
            if fa.status in (FreeAgentStatus.AVAILABLE, FreeAgentStatus.NEGOTIATING) else fa
            for fid, fa in state.free_agents.items()
        }
        return replace(state, phase_day=state.phase_day + 1, free_agents=free_agents)

    # ========================================================================
    # OFFERS & SIGNINGS
    # ========================================================================

    def submit_offer(
        self,
        state: FreeAgencyState,
        team_id: str,
        free_agent_id: str,
        offer: ContractOffer,
        is_user_offer: bool = False
    ) -> FreeAgencyState:
        """
        Submit an offer to a free agent.

        Ignored when the free agent is missing, signed or retired, or when
        the market is not open for offers (pre-free agency, closed).
        """
        return self.place_offer(state, team_id, free_agent_id, offer, is_user_offer)[0]

    def place_offer(
        self,
        state: FreeAgencyState,
        team_id: str,
        free_agent_id: str,
        offer: ContractOffer,
        is_user_offer: bool = False
    ) -> Tuple[FreeAgencyState, Optional[str]]:
        """Same as submit_offer, also returning the new offer id (None when ignored)."""
        free_agent = state.free_agents.get(free_agent_id)
        if free_agent is None or free_agent.status not in (
            FreeAgentStatus.AVAILABLE, FreeAgentStatus.NEGOTIATING
        ):
            return state, None
        if not state.phase.allows_offers:
            self.logger.debug(
                "Offer from %s to %s ignored during %s", team_id, free_agent_id, state.phase.value
            )
            return state, None

        fa_offer = FreeAgencyOffer(
            id=f"offer-{team_id}-{free_agent_id}-{state.next_offer_id}",
            team_id=team_id,
            free_agent_id=free_agent_id,
            offer=offer,
            submitted_day=state.phase_day,
            phase=state.phase,
            is_user_offer=is_user_offer,
        )

        offers = dict(state.offers)
        offers[fa_offer.id] = fa_offer

        free_agents = dict(state.free_agents)
        free_agents[free_agent_id] = replace(
            free_agent,
            offer_ids=free_agent.offer_ids + (fa_offer.id,),
            status=FreeAgentStatus.NEGOTIATING,
        )

        updated = self._with_event(
            state,
            EventType.OFFER,
            f"{free_agent.player_name} receives contract offer",
            player_id=free_agent.player_id,
            player_name=free_agent.player_name,
            team_id=team_id,
            details={"offer_id": fa_offer.id, "aav": offer.aav},
            offers=offers,
            free_agents=free_agents,
            next_offer_id=state.next_offer_id + 1,
        )
        return updated, fa_offer.id

    def accept_offer(self, state: FreeAgencyState, offer_id: str) -> FreeAgencyState:
        """
        Free agent accepts an offer and signs.

        Ignored unless the offer is pending, the player is unsigned and the
        current phase permits signings. Every other pending offer for the
        player expires; the signing team's budget is charged the AAV.
        """
        fa_offer = state.offers.get(offer_id)
        if fa_offer is None or not fa_offer.is_pending:
            return state

        free_agent = state.free_agents.get(fa_offer.free_agent_id)
        if free_agent is None or free_agent.status in (
            FreeAgentStatus.SIGNED, FreeAgentStatus.RETIRED
        ):
            return state

        if not state.phase.allows_signing:
            self.logger.debug(
                "Signing of %s ignored during %s", free_agent.player_name, state.phase.value
            )
            return state

        contract = create_contract(
            player_id=free_agent.player_id,
            player_name=free_agent.player_name,
            team_id=fa_offer.team_id,
            position=free_agent.position,
            offer=fa_offer.offer,
            signed_year=state.current_year,
            contract_type=ContractType.VETERAN,
            contract_id=f"contract-{free_agent.player_id}-{state.current_year}-{fa_offer.team_id}",
        )

        offers = dict(state.offers)
        offers[offer_id] = replace(fa_offer, status=OfferStatus.ACCEPTED)
        for other_id, other in state.offers.items():
            if other.free_agent_id == free_agent.id and other_id != offer_id and other.is_pending:
                offers[other_id] = replace(other, status=OfferStatus.EXPIRED)

        free_agents = dict(state.free_agents)
        free_agents[free_agent.id] = replace(
            free_agent,
            status=FreeAgentStatus.SIGNED,
            signed_team_id=fa_offer.team_id,
            signed_contract_id=contract.id,
        )

        team_budgets = state.team_budgets
        budget = team_budgets.get(fa_offer.team_id)
        if budget is not None:
            team_budgets = dict(team_budgets)
            team_budgets[fa_offer.team_id] = replace(budget, spent=budget.spent + fa_offer.aav)

        self.logger.debug(
            "%s signs with %s: %d years, %s",
            free_agent.player_name, fa_offer.team_id, fa_offer.years,
            format_money(fa_offer.total_value)
        )

        return self._with_event(
            state,
            EventType.SIGNING,
            f"{free_agent.player_name} signs with team",
            player_id=free_agent.player_id,
            player_name=free_agent.player_name,
            team_id=fa_offer.team_id,
            details={
                "contract_id": contract.id,
                "years": fa_offer.years,
                "total_value": fa_offer.total_value,
            },
            offers=offers,
            free_agents=free_agents,
            team_budgets=team_budgets,
            signed_contracts=state.signed_contracts + (contract,),
        )

    def reject_offer(self, state: FreeAgencyState, offer_id: str) -> FreeAgencyState:
        """Reject a pending offer; with nothing else pending the player is available again."""
        return self._close_offer(state, offer_id, OfferStatus.REJECTED)

    def withdraw_offer(self, state: FreeAgencyState, offer_id: str) -> FreeAgencyState:
        """Team pulls a pending offer."""
        return self._close_offer(state, offer_id, OfferStatus.WITHDRAWN)

    def _close_offer(
        self,
        state: FreeAgencyState,
        offer_id: str,
        status: OfferStatus
    ) -> FreeAgencyState:
        fa_offer = state.offers.get(offer_id)
        if fa_offer is None or not fa_offer.is_pending:
            return state

        offers = dict(state.offers)
        offers[offer_id] = replace(fa_offer, status=status)

        free_agent = state.free_agents.get(fa_offer.free_agent_id)
        if free_agent is None or free_agent.status != FreeAgentStatus.NEGOTIATING:
            return replace(state, offers=offers)

        has_pending = any(
            o.free_agent_id == free_agent.id and o.is_pending for o in offers.values()
        )
        if has_pending:
            return replace(state, offers=offers)

        free_agents = dict(state.free_agents)
        free_agents[free_agent.id] = replace(free_agent, status=FreeAgentStatus.AVAILABLE)
        return replace(state, offers=offers, free_agents=free_agents)

    def _expire_pending_offers(self, state: FreeAgencyState, free_agent_id: str) -> FreeAgencyState:
        offers = {
            oid: replace(o, status=OfferStatus.EXPIRED)
            if o.free_agent_id == free_agent_id and o.is_pending else o
            for oid, o in state.offers.items()
        }
        return replace(state, offers=offers)

    # ========================================================================
    # INTEREST & BUDGETS
    # ========================================================================

    def set_team_interest(
        self,
        state: FreeAgencyState,
        team_id: str,
        free_agent_id: str,
        interest_level: InterestLevel,
        fits_need: bool,
        can_afford: bool
    ) -> FreeAgencyState:
        """Record (or replace) one team's interest in a free agent."""
        free_agent = state.free_agents.get(free_agent_id)
        if free_agent is None:
            return state

        interest = TeamInterest(
            team_id=team_id,
            interest_level=interest_level,
            fits_need=fits_need,
            can_afford=can_afford,
        )
        others = tuple(i for i in free_agent.interest if i.team_id != team_id)

        free_agents = dict(state.free_agents)
        free_agents[free_agent_id] = replace(free_agent, interest=others + (interest,))

        return self._with_event(
            state,
            EventType.INTEREST,
            f"Team shows {interest_level.value} interest in {free_agent.player_name}",
            player_id=free_agent.player_id,
            player_name=free_agent.player_name,
            team_id=team_id,
            details={
                "interest_level": interest_level.value,
                "fits_need": fits_need,
                "can_afford": can_afford,
            },
            free_agents=free_agents,
        )

    def update_team_budget(self, state: FreeAgencyState, team_id: str, **changes) -> FreeAgencyState:
        """
        Replace fields of a team budget.

        The team id itself cannot be changed; unknown teams are ignored.
        """
        budget = state.team_budgets.get(team_id)
        if budget is None:
            return state
        changes.pop("team_id", None)

        team_budgets = dict(state.team_budgets)
        team_budgets[team_id] = replace(budget, **changes)
        return replace(state, team_budgets=team_budgets)

    def set_team_budget(self, state: FreeAgencyState, budget: TeamFABudget) -> FreeAgencyState:
        """Install a budget computed elsewhere (e.g. by the AI layer)."""
        team_budgets = dict(state.team_budgets)
        team_budgets[budget.team_id] = budget
        return replace(state, team_budgets=team_budgets)

    # ========================================================================
    # VALIDATION & SUMMARY
    # ========================================================================

    def validate_state(self, state: FreeAgencyState) -> List[str]:
        """Return a list of invariant violations (empty when valid)."""
        errors = []
        if not 2000 <= state.current_year <= 2100:
            errors.append(f"Year {state.current_year} outside 2000-2100")

        for fa in state.free_agents.values():
            if fa.is_signed and fa.signed_team_id is None:
                errors.append(f"{fa.id} is signed without a team")
            for offer_id in fa.offer_ids:
                if offer_id not in state.offers:
                    errors.append(f"{fa.id} references unknown offer {offer_id}")

        if state.signed_contracts and state.phase in (
            FreeAgencyPhase.PRE_FREE_AGENCY, FreeAgencyPhase.LEGAL_TAMPERING
        ):
            errors.append(f"Signed contracts exist during {state.phase.value}")

        return errors

    def get_free_agency_summary(self, state: FreeAgencyState) -> Dict[str, Any]:
        """
        Summary for display.

        Returns:
            Dict with phase, phase_description, total_free_agents,
            available_free_agents, signed_players, pending_offers and
            top_available_players (name, position, market_value)
        """
        all_free_agents = list(state.free_agents.values())
        top_available = self.get_top_free_agents(state, limit=5)

        return {
            "phase": state.phase.value,
            "phase_description": state.phase.description,
            "total_free_agents": len(all_free_agents),
            "available_free_agents": sum(1 for fa in all_free_agents if fa.is_available),
            "signed_players": sum(1 for fa in all_free_agents if fa.is_signed),
            "pending_offers": sum(1 for o in state.offers.values() if o.is_pending),
            "top_available_players": [
                {
                    "name": fa.player_name,
                    "position": fa.position.value,
                    "market_value": format_money(fa.market_value),
                }
                for fa in top_available
            ],
        }
