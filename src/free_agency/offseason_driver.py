"""
Offseason Driver

Main orchestrator for the free agency calendar.
Runs the league one day at a time through the RFA tender deadline,
legal tampering, the two-day frenzy, the trickle period, training camp
and the close of the market.

Responsibilities:
- Own every free agency sub-state and the per-team cap ledgers
- Trigger deadline actions and phase transitions
- Run the AI league day and resolve offers for each phase
- Push signed contracts into cap ledgers and the compensatory pick log
"""

import logging
import random
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config.economy_settings import EconomySettings
from logging_config import set_simulation_context
from salary_cap.cap_ledger import SalaryCapState, add_contract, cap_space, create_salary_cap_state
from salary_cap.contract import ContractOffer, PlayerContract
from salary_cap.contract_generator import RosterPlayer
from salary_cap.offer_evaluation import (
    OfferEvaluation,
    OfferInterest,
    calculate_player_expectations,
    evaluate_contract_offer,
)
from shared.money import format_money
from .ai_decision_layer import (
    FreeAgencyAI,
    RosterComposition,
    TeamAIProfile,
    allocate_fa_budget,
    analyze_roster_composition,
    assess_team_needs,
    create_ai_profile,
)
from .bidding_war import BiddingWarSimulator, FrenzyState, get_signing_rate
from .compensatory_picks import CompPickState, CompensatoryPickCalculator
from .free_agency_manager import FreeAgencyManager, create_free_agency_state
from .legal_tampering import (
    LegalTamperingState,
    create_legal_tampering_state,
    end_legal_tampering,
    advance_tampering_day,
    evaluate_tampering_offers,
    get_free_agent_negotiations,
    has_verbal_agreement,
    negotiation_key,
    record_verbal_agreement,
    score_tampering_offer,
    start_legal_tampering,
    update_negotiation,
)
from .market_value_calculator import (
    MarketValueCalculator,
    PlayerProduction,
    create_default_market_conditions,
    production_from_player,
)
from .models import (
    EventType,
    FreeAgencyOffer,
    FreeAgencyState,
    FreeAgent,
    FreeAgentStatus,
    FreeAgentType,
    MarketValue,
    NeedLevel,
    OfferStatus,
    ProductionTier,
)
from .phases import PHASE_ORDER, FreeAgencyPhase
from .rfa_tenders import (
    OfferSheetStatus,
    RFADeadlines,
    RFAState,
    RFATenderManager,
    TenderLevel,
    recommend_tender_level,
)
from .trickle_phase import (
    TrickleOfferType,
    TricklePhaseManager,
    TricklePhaseState,
    generate_bargain_offer,
    generate_minimum_offer,
)


class OffseasonDriver:
    """
    Drives one league year of free agency.

    The driver is the single owner of the free agency state, the
    tampering, frenzy, trickle, RFA and compensatory pick states and the
    cap ledger of every team. Engines are called with those states and
    their results are stored back here; nothing else holds a reference.

    Calendar days are counted from the start of the league year. Day 0
    is the initial state; advance_day() moves to the next day and
    simulates it.
    """

    DEADLINE_DESCRIPTIONS = {
        "rfa_tender_deadline": "Restricted free agent tender deadline",
        "legal_tampering_start": "Legal tampering window opens",
        "free_agency_start": "Free agency opens",
        "rfa_offer_sheet_deadline": "Last day to sign offer sheets",
        "rfa_match_deadline": "Last day to match offer sheets",
        "training_camp_start": "Training camp opens",
        "free_agency_close": "Free agency closes",
    }

    # AI teams only tender restricted free agents at or above this rating
    AI_TENDER_MIN_OVERALL = 65
    # AI offer sheets go to tendered players at critical positions
    AI_OFFER_SHEET_MIN_OVERALL = 75
    AI_OFFER_SHEET_PREMIUM = 0.10

    def __init__(
        self,
        season_year: int,
        team_ids: Iterable[str],
        user_team_id: Optional[str] = None,
        salary_cap: int = EconomySettings.DEFAULT_SALARY_CAP,
        rng: Optional[random.Random] = None,
        deadlines: Optional[Dict[str, int]] = None,
        max_workers: int = EconomySettings.AI_MAX_WORKERS
    ):
        """
        Initialize the driver.

        Args:
            season_year: League year being simulated
            team_ids: Every team in the league
            user_team_id: Team controlled by the user (never run by the AI)
            salary_cap: League salary cap (thousands)
            rng: Random source for bidding decisions (seed it for replays)
            deadlines: Calendar overrides, keyed like EconomySettings.DEADLINES
            max_workers: Worker threads for the AI league day
        """
        self.season_year = season_year
        self.team_ids = tuple(sorted(team_ids))
        self.user_team_id = user_team_id
        self.salary_cap = salary_cap
        self.rng = rng or random.Random()
        self.deadlines = dict(EconomySettings.DEADLINES)
        if deadlines:
            self.deadlines.update(deadlines)

        self.logger = logging.getLogger(__name__)

        # Engines
        self.fa_manager = FreeAgencyManager()
        self.market_calc = MarketValueCalculator(
            create_default_market_conditions(season_year, salary_cap), year=season_year
        )
        self.ai = FreeAgencyAI(self.fa_manager, max_workers)
        self.bidding = BiddingWarSimulator(rng=self.rng, manager=self.fa_manager)
        self.trickle_manager = TricklePhaseManager()
        self.rfa_manager = RFATenderManager(salary_cap)
        self.comp_calculator = CompensatoryPickCalculator()

        # States
        self.current_day = 0
        self.fa_state = create_free_agency_state(season_year, self.team_ids)
        self.fa_state = replace(self.fa_state, deadlines=dict(self.deadlines))
        self.cap_states: Dict[str, SalaryCapState] = {
            team_id: create_salary_cap_state(team_id, season_year, salary_cap)
            for team_id in self.team_ids
        }
        self.tampering_state = create_legal_tampering_state(
            self.deadlines["legal_tampering_start"], self.deadlines["free_agency_start"] - 1
        )
        self.frenzy_state = FrenzyState()
        self.trickle_state = self.trickle_manager.create_state()
        self.rfa_state = self.rfa_manager.create_state(
            season_year,
            RFADeadlines(
                tender_deadline=self.deadlines["rfa_tender_deadline"],
                offer_sheet_deadline=self.deadlines["rfa_offer_sheet_deadline"],
            ),
        )
        self.comp_state = self.comp_calculator.create_state(season_year)

        # Team and player data
        self.players: Dict[str, RosterPlayer] = {}
        self.productions: Dict[str, PlayerProduction] = {}
        self.market_values: Dict[str, MarketValue] = {}
        self.team_records: Dict[str, Tuple[int, int]] = {}
        self.profiles: Dict[str, TeamAIProfile] = {}
        self.compositions: Dict[str, RosterComposition] = {}

        # Bookkeeping
        self.signed_contracts: List[PlayerContract] = []
        self.deadlines_passed: List[str] = []
        self.offseason_complete = False
        self._applied_fa_contracts = 0
        self._resolved_offer_sheets: set = set()
        self._minimum_offer_ids: set = set()

    # ==================== Setup ====================

    def register_team(
        self,
        team_id: str,
        roster: Iterable[RosterPlayer],
        wins: int = 8,
        losses: int = 9
    ) -> None:
        """Register a team's roster and last season's record for the AI."""
        self.compositions[team_id] = analyze_roster_composition(team_id, roster)
        self.team_records[team_id] = (wins, losses)
        self.profiles[team_id] = create_ai_profile(
            team_id, wins, losses, self._team_cap_space(team_id), self.salary_cap
        )

    def set_cap_state(self, state: SalaryCapState) -> None:
        self.cap_states[state.team_id] = state

    def add_free_agent(
        self,
        player: RosterPlayer,
        previous_team_id: Optional[str],
        durability: int = 100,
        previous_contract_aav: int = 0
    ) -> str:
        """
        Value a player and put him in the pool.

        Returns:
            The free agent id
        """
        production = production_from_player(player, durability=durability)
        market_value = self.market_calc.calculate_market_value(production)
        self.players[player.player_id] = player
        self.productions[player.player_id] = production
        self.market_values[player.player_id] = market_value
        self.fa_state = self.fa_manager.add_free_agent(
            self.fa_state,
            player,
            previous_team_id,
            market_value.projected_aav,
            previous_contract_aav=previous_contract_aav,
        )
        return f"fa-{player.player_id}-{self.season_year}"

    # ==================== Public API: User Actions ====================

    def submit_user_offer(self, free_agent_id: str, offer: ContractOffer) -> Optional[str]:
        """
        Offer a contract on behalf of the user's team.

        Returns:
            The offer id, or None when the offer was not accepted for
            consideration (closed market, unknown or signed player)
        """
        if self.user_team_id is None:
            raise ValueError("No user team configured")

        self.fa_state, offer_id = self.fa_manager.place_offer(
            self.fa_state, self.user_team_id, free_agent_id, offer, is_user_offer=True
        )
        return offer_id

    def withdraw_user_offer(self, offer_id: str) -> None:
        fa_offer = self.fa_state.offers.get(offer_id)
        if fa_offer is None or fa_offer.team_id != self.user_team_id:
            return
        self.fa_state = self.fa_manager.withdraw_offer(self.fa_state, offer_id)

    def submit_user_tender(self, player_id: str, level: TenderLevel) -> bool:
        """
        Tender one of the user's restricted free agents.

        Only allowed up to the tender deadline, for RFA/ERFA players whose
        previous team is the user's. ERFA players can only receive an
        exclusive-rights tender.
        """
        free_agent = self._free_agent_for_player(player_id)
        if free_agent is None or free_agent.previous_team_id != self.user_team_id:
            return False
        if free_agent.type == FreeAgentType.UFA:
            return False
        if self.current_day > self.deadlines["rfa_tender_deadline"]:
            return False
        if free_agent.type == FreeAgentType.ERFA:
            level = TenderLevel.EXCLUSIVE_RIGHTS
        elif level == TenderLevel.EXCLUSIVE_RIGHTS:
            return False

        self.rfa_state = self.rfa_manager.submit_tender(
            self.rfa_state, player_id, free_agent.player_name, self.user_team_id, level
        )
        return True

    def submit_user_offer_sheet(self, player_id: str, offer: ContractOffer) -> Optional[str]:
        if self.user_team_id is None:
            raise ValueError("No user team configured")
        sheet_id = f"offersheet-{player_id}-{self.user_team_id}-{self.rfa_state.next_sheet_id}"
        before = self.rfa_state
        self.rfa_state = self.rfa_manager.submit_offer_sheet(
            self.rfa_state, player_id, self.user_team_id, offer
        )
        return sheet_id if self.rfa_state is not before else None

    def respond_to_offer_sheet(self, offer_sheet_id: str, match: bool) -> None:
        """User decision on an offer sheet signed by one of the user's players."""
        sheet = self.rfa_state.offer_sheets.get(offer_sheet_id)
        if sheet is None or sheet.original_team_id != self.user_team_id:
            return
        if match:
            self.rfa_state = self.rfa_manager.match_offer_sheet(self.rfa_state, offer_sheet_id)
        else:
            self.rfa_state, _ = self.rfa_manager.decline_to_match(self.rfa_state, offer_sheet_id)
        self._collect_offer_sheet_contracts()

    # ==================== Public API: State Summary ====================

    def get_current_phase(self) -> FreeAgencyPhase:
        return self.fa_state.phase

    def is_offseason_complete(self) -> bool:
        """Check if free agency has closed for the year."""
        return self.offseason_complete

    def get_upcoming_deadlines(self, limit: int = 5) -> List[Dict[str, Any]]:
        upcoming = [
            {
                "type": deadline_type,
                "day": day,
                "description": self.DEADLINE_DESCRIPTIONS.get(deadline_type, deadline_type),
                "days_remaining": day - self.current_day,
            }
            for deadline_type, day in self._sorted_deadlines()
            if deadline_type not in self.deadlines_passed
        ]
        return upcoming[:limit]

    def get_state_summary(self) -> Dict[str, Any]:
        """
        Get comprehensive current state summary.

        Returns:
            Dictionary with all key state information
        """
        return {
            "season_year": self.season_year,
            "current_day": self.current_day,
            "current_phase": self.fa_state.phase.value,
            "offseason_complete": self.offseason_complete,
            "upcoming_deadlines": self.get_upcoming_deadlines(3),
            "signings": len(self.signed_contracts),
            "free_agency": self.fa_manager.get_free_agency_summary(self.fa_state),
            "frenzy": self.bidding.get_frenzy_summary(self.frenzy_state),
            "rfa": self.rfa_manager.get_summary(self.rfa_state),
            "compensatory_picks": self.comp_calculator.get_summary(self.comp_state),
        }

    def get_team_cap_space(self, team_id: str) -> int:
        return self._team_cap_space(team_id)

    # ==================== Public API: Save & Restore ====================

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize every state the driver owns, including the random source.

        Rosters, productions and team records are registration inputs and
        are not included; see load_state.
        """
        version, internal, gauss_next = self.rng.getstate()
        return {
            "season_year": self.season_year,
            "current_day": self.current_day,
            "deadlines": dict(self.deadlines),
            "deadlines_passed": list(self.deadlines_passed),
            "offseason_complete": self.offseason_complete,
            "fa_state": self.fa_state.to_dict(),
            "cap_states": {team_id: state.to_dict() for team_id, state in self.cap_states.items()},
            "tampering_state": self.tampering_state.to_dict(),
            "frenzy_state": self.frenzy_state.to_dict(),
            "trickle_state": self.trickle_state.to_dict(),
            "rfa_state": self.rfa_state.to_dict(),
            "comp_state": self.comp_state.to_dict(),
            "market_values": {pid: value.to_dict() for pid, value in self.market_values.items()},
            "profiles": {team_id: profile.to_dict() for team_id, profile in self.profiles.items()},
            "signed_contracts": [contract.to_dict() for contract in self.signed_contracts],
            "applied_fa_contracts": self._applied_fa_contracts,
            "resolved_offer_sheets": sorted(self._resolved_offer_sheets),
            "minimum_offer_ids": sorted(self._minimum_offer_ids),
            "rng_state": [version, list(internal), gauss_next],
        }

    def load_state(self, data: Dict[str, Any]) -> None:
        """
        Restore a snapshot written by to_dict().

        The driver must have been built for the same season with the same
        teams registered; player and team registration is not replayed.

        Raises:
            ValueError: If the snapshot belongs to another season
        """
        if data["season_year"] != self.season_year:
            raise ValueError(
                f"Snapshot is for {data['season_year']}, driver runs {self.season_year}"
            )

        self.current_day = data["current_day"]
        self.deadlines = dict(data["deadlines"])
        self.deadlines_passed = list(data.get("deadlines_passed", []))
        self.offseason_complete = data.get("offseason_complete", False)
        self.fa_state = FreeAgencyState.from_dict(data["fa_state"])
        self.cap_states = {
            team_id: SalaryCapState.from_dict(state)
            for team_id, state in data.get("cap_states", {}).items()
        }
        self.tampering_state = LegalTamperingState.from_dict(data["tampering_state"])
        self.frenzy_state = FrenzyState.from_dict(data["frenzy_state"])
        self.trickle_state = TricklePhaseState.from_dict(data["trickle_state"])
        self.rfa_state = RFAState.from_dict(data["rfa_state"])
        self.comp_state = CompPickState.from_dict(data["comp_state"])
        self.market_values = {
            pid: MarketValue.from_dict(value) for pid, value in data.get("market_values", {}).items()
        }
        if "profiles" in data:
            self.profiles = {
                team_id: TeamAIProfile.from_dict(profile)
                for team_id, profile in data["profiles"].items()
            }
        self.signed_contracts = [PlayerContract.from_dict(c) for c in data.get("signed_contracts", [])]
        self._applied_fa_contracts = data.get("applied_fa_contracts", 0)
        self._resolved_offer_sheets = set(data.get("resolved_offer_sheets", []))
        self._minimum_offer_ids = set(data.get("minimum_offer_ids", []))

        if "rng_state" in data:
            version, internal, gauss_next = data["rng_state"]
            self.rng.setstate((version, tuple(internal), gauss_next))

        self.logger.info("Restored offseason %d at day %d", self.season_year, self.current_day)

    # ==================== Public API: Calendar Advancement ====================

    def simulate_day(self) -> Dict[str, Any]:
        """
        Simulate free agency activity for the current day.

        Returns:
            Dictionary with:
                - day: Day simulated
                - phase_changed: Whether phase changed
                - new_phase: New phase if changed
                - deadlines_passed: List of deadline types passed
                - events_triggered: List of automatic events
                - signings: Contract ids signed today
        """
        set_simulation_context(self.season_year, self.current_day)
        old_phase = self.fa_state.phase
        signed_before = len(self.signed_contracts)

        self._advance_frenzy_phases()

        deadlines_passed = self._check_deadlines_passed()
        events_triggered = []
        for deadline_type in deadlines_passed:
            self.deadlines_passed.append(deadline_type)
            event = self._trigger_deadline_event(deadline_type)
            if event:
                events_triggered.append(event)

        self._run_phase_activity()
        self._resolve_ai_offer_sheets()
        self._apply_new_signings()
        self._end_day()

        phase_changed = old_phase != self.fa_state.phase
        new_signings = [c.id for c in self.signed_contracts[signed_before:]]

        if phase_changed:
            self.logger.info(
                "Day %d: free agency %s -> %s",
                self.current_day, old_phase.value, self.fa_state.phase.value
            )
        if new_signings:
            self.logger.info("Day %d: %d signings", self.current_day, len(new_signings))

        return {
            "day": self.current_day,
            "phase_changed": phase_changed,
            "new_phase": self.fa_state.phase.value if phase_changed else None,
            "deadlines_passed": deadlines_passed,
            "events_triggered": events_triggered,
            "signings": new_signings,
        }

    def advance_day(self) -> Dict[str, Any]:
        """Advance the calendar one day and simulate it."""
        self.current_day += 1
        self.rfa_state = self.rfa_manager.advance_day(self.rfa_state)
        self._collect_offer_sheet_contracts()
        return self.simulate_day()

    def advance_to_deadline(self, deadline_type: str) -> Dict[str, Any]:
        """
        Advance day by day until a deadline has been processed.

        Raises:
            ValueError: If deadline type not found or already passed
        """
        target_day = self.deadlines.get(deadline_type)
        if target_day is None or deadline_type in self.deadlines_passed:
            raise ValueError(f"Deadline '{deadline_type}' not found or already passed")

        days_advanced = 0
        all_events = []
        all_signings = []
        while self.current_day < target_day:
            result = self.advance_day()
            days_advanced += 1
            all_events.extend(result["events_triggered"])
            all_signings.extend(result["signings"])

        return {
            "deadline_type": deadline_type,
            "deadline_day": target_day,
            "days_advanced": days_advanced,
            "current_phase": self.fa_state.phase.value,
            "events_triggered": all_events,
            "signings": all_signings,
        }

    def run_to_completion(self) -> Dict[str, Any]:
        """Simulate until free agency closes."""
        days_advanced = 0
        while not self.offseason_complete:
            self.advance_day()
            days_advanced += 1
        return {
            "days_advanced": days_advanced,
            "current_phase": self.fa_state.phase.value,
            "signings": len(self.signed_contracts),
        }

    # ==================== Private: Deadlines ====================

    def _sorted_deadlines(self) -> List[Tuple[str, int]]:
        return sorted(self.deadlines.items(), key=lambda item: (item[1], item[0]))

    def _check_deadlines_passed(self) -> List[str]:
        """Deadlines reached today that have not been processed yet, in calendar order."""
        return [
            deadline_type for deadline_type, day in self._sorted_deadlines()
            if day <= self.current_day and deadline_type not in self.deadlines_passed
        ]

    def _trigger_deadline_event(self, deadline_type: str) -> Optional[Dict[str, Any]]:
        """Run the automatic action for a deadline."""
        actions = {
            "rfa_tender_deadline": self._process_rfa_tenders,
            "legal_tampering_start": self._open_legal_tampering,
            "free_agency_start": self._open_free_agency,
            "rfa_match_deadline": self._sign_remaining_tenders,
            "training_camp_start": self._open_training_camp,
            "free_agency_close": self._close_free_agency,
        }
        action = actions.get(deadline_type)
        if action is not None:
            action()

        return {
            "type": deadline_type,
            "action": action.__name__.lstrip("_") if action is not None else None,
            "description": self.DEADLINE_DESCRIPTIONS.get(deadline_type, deadline_type),
            "triggered_day": self.current_day,
        }

    def _advance_phase_to(self, target: FreeAgencyPhase) -> None:
        target_index = PHASE_ORDER.index(target)
        while PHASE_ORDER.index(self.fa_state.phase) < target_index:
            self.fa_state = self.fa_manager.advance_phase(self.fa_state)

    def _advance_frenzy_phases(self) -> None:
        """Day 2 follows day 1, and the trickle period follows day 2."""
        opening_day = self.deadlines["free_agency_start"]
        phase = self.fa_state.phase
        if phase == FreeAgencyPhase.DAY1_FRENZY and self.current_day > opening_day:
            self._advance_phase_to(FreeAgencyPhase.DAY2_FRENZY)
        elif phase == FreeAgencyPhase.DAY2_FRENZY and self.current_day > opening_day + 1:
            self._advance_phase_to(FreeAgencyPhase.TRICKLE)
            self.frenzy_state = self.bidding.end_frenzy(self.frenzy_state)
            self.trickle_state = self.trickle_manager.start(self.trickle_state)

    # ==================== Private: Deadline Actions ====================

    def _process_rfa_tenders(self) -> None:
        """
        Tender deadline.

        AI teams tender their restricted players rated 65+ and every
        exclusive-rights player. Tendered players leave the open pool;
        exclusive-rights players sign their tender immediately.
        """
        for free_agent in sorted(self.fa_state.free_agents.values(), key=lambda fa: fa.id):
            if free_agent.type == FreeAgentType.UFA or free_agent.previous_team_id is None:
                continue
            if free_agent.status != FreeAgentStatus.AVAILABLE:
                continue

            tender = self.rfa_manager.get_player_tender(self.rfa_state, free_agent.player_id)
            if tender is None and free_agent.previous_team_id != self.user_team_id:
                self._submit_ai_tender(free_agent)
                tender = self.rfa_manager.get_player_tender(self.rfa_state, free_agent.player_id)
            if tender is None:
                continue

            self.fa_state = self.fa_manager.record_event(
                self.fa_state,
                EventType.TENDER,
                f"{free_agent.player_name} receives {tender.level.value.replace('_', ' ')} tender",
                player_id=free_agent.player_id,
                player_name=free_agent.player_name,
                team_id=tender.team_id,
                details={"tender_id": tender.id, "salary": tender.salary_amount},
            )
            self.fa_state = self.fa_manager.remove_free_agent(self.fa_state, free_agent.id)

            if tender.level == TenderLevel.EXCLUSIVE_RIGHTS:
                self._sign_tender(tender.id)

    def _submit_ai_tender(self, free_agent: FreeAgent) -> None:
        player = self.players.get(free_agent.player_id)
        draft_round = player.draft_round if player is not None else 0

        if free_agent.type == FreeAgentType.ERFA:
            level = TenderLevel.EXCLUSIVE_RIGHTS
        elif free_agent.overall >= self.AI_TENDER_MIN_OVERALL:
            level = recommend_tender_level(free_agent.overall, free_agent.position, draft_round)
        else:
            return

        self.rfa_state = self.rfa_manager.submit_tender(
            self.rfa_state,
            free_agent.player_id,
            free_agent.player_name,
            free_agent.previous_team_id,
            level,
        )

    def _open_legal_tampering(self) -> None:
        """Refresh market conditions and AI budgets, then open the window."""
        self._refresh_market_conditions()
        self._allocate_ai_budgets()
        self._advance_phase_to(FreeAgencyPhase.LEGAL_TAMPERING)
        self.tampering_state = start_legal_tampering(self.tampering_state)

    def _open_free_agency(self) -> None:
        """Close tampering, open the market and honor verbal agreements."""
        self.tampering_state = end_legal_tampering(self.tampering_state)
        self._advance_phase_to(FreeAgencyPhase.DAY1_FRENZY)
        self.frenzy_state = self.bidding.start_frenzy(self.frenzy_state)
        self.frenzy_state, self.fa_state = self.bidding.process_verbal_agreements(
            self.frenzy_state, self.fa_state, self.tampering_state
        )
        self._apply_new_signings()

    def _sign_remaining_tenders(self) -> None:
        """Tendered players without a pending offer sheet play on their tender."""
        pending = {s.rfa_player_id for s in self.rfa_state.offer_sheets.values() if s.is_pending}
        for tender in sorted(self.rfa_state.tenders.values(), key=lambda t: t.id):
            if tender.is_active and tender.player_id not in pending:
                self._sign_tender(tender.id)

    def _open_training_camp(self) -> None:
        self._advance_phase_to(FreeAgencyPhase.TRAINING_CAMP)
        self.fa_state = self.fa_manager.retire_aged_free_agents(self.fa_state)

    def _close_free_agency(self) -> None:
        """Close the market and award compensatory picks."""
        self._advance_phase_to(FreeAgencyPhase.CLOSED)
        self.trickle_state = self.trickle_manager.end(self.trickle_state)
        self.comp_state = self.comp_calculator.calculate_all_comp_picks(
            self.comp_state, self.team_ids
        )
        self.offseason_complete = True

    # ==================== Private: Market & Budgets ====================

    def _refresh_market_conditions(self) -> None:
        """Re-derive positional demand from the pool and league needs, then revalue the pool."""
        counts: Dict[Any, int] = {}
        for free_agent in self.fa_state.free_agents.values():
            if free_agent.status == FreeAgentStatus.AVAILABLE:
                counts[free_agent.position] = counts.get(free_agent.position, 0) + 1

        team_needs: Dict[Any, int] = {}
        for team_id, composition in self.compositions.items():
            needs = assess_team_needs(composition, self._team_cap_space(team_id), self.salary_cap)
            for position, level in needs.needs.items():
                if level in (NeedLevel.CRITICAL, NeedLevel.MODERATE):
                    team_needs[position] = team_needs.get(position, 0) + 1

        if not counts:
            return

        self.market_calc.update_market_conditions(counts, team_needs)
        free_agents = dict(self.fa_state.free_agents)
        for fa_id, free_agent in free_agents.items():
            production = self.productions.get(free_agent.player_id)
            if production is None:
                continue
            market_value = self.market_calc.calculate_market_value(production)
            self.market_values[free_agent.player_id] = market_value
            free_agents[fa_id] = replace(free_agent, market_value=market_value.projected_aav)
        self.fa_state = replace(self.fa_state, free_agents=free_agents)

    def _allocate_ai_budgets(self) -> None:
        for team_id in sorted(self.compositions):
            space = self._team_cap_space(team_id)
            wins, losses = self.team_records.get(team_id, (8, 9))
            profile = create_ai_profile(team_id, wins, losses, space, self.salary_cap)
            self.profiles[team_id] = profile
            if team_id == self.user_team_id:
                continue

            needs = assess_team_needs(self.compositions[team_id], space, self.salary_cap)
            budget = allocate_fa_budget(space, needs, profile.strategy)
            self.fa_state = self.fa_manager.set_team_budget(self.fa_state, budget)
            self.logger.debug(
                "%s: %s strategy, %s budget",
                team_id, profile.strategy.value, format_money(budget.total_budget)
            )

    def _team_cap_space(self, team_id: str) -> int:
        state = self.cap_states.get(team_id)
        if state is None:
            return self.salary_cap
        return cap_space(state)

    def _can_afford(self, fa_offer: FreeAgencyOffer) -> bool:
        """Remaining budget and cap space must both cover the first-year cap hit."""
        budget = self.fa_state.team_budgets.get(fa_offer.team_id)
        if budget is not None and not fa_offer.is_user_offer and budget.remaining < fa_offer.aav:
            return False
        return self._team_cap_space(fa_offer.team_id) >= fa_offer.aav

    # ==================== Private: Daily Activity ====================

    def _run_phase_activity(self) -> None:
        phase = self.fa_state.phase
        if phase == FreeAgencyPhase.LEGAL_TAMPERING:
            self._run_tampering_day()
        elif phase in (FreeAgencyPhase.DAY1_FRENZY, FreeAgencyPhase.DAY2_FRENZY):
            self._run_frenzy_day()
        elif phase in (FreeAgencyPhase.TRICKLE, FreeAgencyPhase.TRAINING_CAMP):
            self._run_trickle_day()

    def _run_ai_league_day(self) -> None:
        self.fa_state = self.ai.run_league_fa_day(
            self.fa_state,
            self.market_values,
            self.profiles,
            self.compositions,
            self.user_team_id,
        )

    def _run_tampering_day(self) -> None:
        """
        Negotiations only; nobody signs.

        Every pending offer is mirrored into the negotiation for its team.
        Players without an agreement then pick the best negotiation that
        clears the acceptance threshold.
        """
        self._run_ai_league_day()

        tampering = self.tampering_state
        for fa_offer in self.fa_state.offers.values():
            if not fa_offer.is_pending:
                continue
            existing = tampering.negotiations.get(
                negotiation_key(fa_offer.team_id, fa_offer.free_agent_id)
            )
            if existing is not None and existing.latest_offer == fa_offer.offer:
                continue
            free_agent = self.fa_state.free_agents[fa_offer.free_agent_id]
            market_value = self.market_values.get(free_agent.player_id)
            closeness = (
                min(1.0, score_tampering_offer(fa_offer.offer, market_value))
                if market_value is not None else 0.5
            )
            tampering = update_negotiation(
                tampering, fa_offer.team_id, fa_offer.free_agent_id, fa_offer.offer, closeness
            )

        for fa_id in sorted(self.fa_state.free_agents):
            free_agent = self.fa_state.free_agents[fa_id]
            if free_agent.status != FreeAgentStatus.NEGOTIATING:
                continue
            if has_verbal_agreement(tampering, fa_id):
                continue
            market_value = self.market_values.get(free_agent.player_id)
            if market_value is None:
                continue

            choice = evaluate_tampering_offers(
                free_agent, get_free_agent_negotiations(tampering, fa_id), market_value
            )
            if choice is not None:
                team_id, offer = choice
                tampering = record_verbal_agreement(tampering, fa_id, team_id, offer)

        self.tampering_state = tampering

    def _run_frenzy_day(self) -> None:
        self._run_ai_league_day()

        for fa_id in sorted(self.fa_state.free_agents):
            pending = self._affordable_pending_offers(fa_id)
            if not pending:
                continue

            teams = list(dict.fromkeys(o.team_id for o in pending))
            if len(teams) >= 2:
                self._resolve_bidding_war(fa_id, pending, teams)
            else:
                self._resolve_single_offer(fa_id, pending)

        remaining_top = sum(
            1 for fa in self.fa_state.free_agents.values()
            if fa.status in (FreeAgentStatus.AVAILABLE, FreeAgentStatus.NEGOTIATING)
            and self._tier_of(fa) in (ProductionTier.ELITE, ProductionTier.PRO_BOWL,
                                      ProductionTier.STARTER)
        )
        self.frenzy_state = self.bidding.update_intensity(self.frenzy_state, remaining_top)

    def _resolve_bidding_war(
        self,
        fa_id: str,
        pending: List[FreeAgencyOffer],
        teams: List[str]
    ) -> None:
        """Competing teams bid until one is left; the winner signs at the final bid."""
        free_agent = self.fa_state.free_agents[fa_id]
        top = max(pending, key=lambda o: o.aav)

        war_id = f"war-{fa_id}-{self.frenzy_state.next_war_id}"
        self.frenzy_state = self.bidding.initiate_bidding_war(
            self.frenzy_state, fa_id, teams, top.offer, top.team_id
        )
        # the user team never raises automatically
        budgets = {
            team_id: budget for team_id, budget in self.fa_state.team_budgets.items()
            if team_id != self.user_team_id
        }
        self.frenzy_state, winner, winning_bid = self.bidding.run_bidding_war(
            self.frenzy_state, war_id, free_agent, budgets
        )
        if winner is None:
            return

        if winner == top.team_id and winning_bid == top.offer:
            offer_id = top.id
        else:
            self.fa_state, offer_id = self.fa_manager.place_offer(
                self.fa_state, winner, fa_id, winning_bid
            )
            if offer_id is None:
                return

        before = self.fa_state
        self.fa_state = self.fa_manager.accept_offer(self.fa_state, offer_id)
        if self.fa_state is not before:
            self._record_frenzy_signing(free_agent, winner, winning_bid, was_bidding_war=True)

    def _resolve_single_offer(self, fa_id: str, pending: List[FreeAgencyOffer]) -> None:
        """
        The player takes the offer he rates highest.

        A very interested player signs at once; otherwise the offer must
        clear his time-adjusted market expectation.
        """
        free_agent = self.fa_state.free_agents[fa_id]
        best, evaluation = self._preferred_offer(free_agent, pending)
        market_value = self.market_values.get(free_agent.player_id)

        if evaluation is not None and evaluation.interest_level == OfferInterest.VERY_INTERESTED:
            self.logger.debug("%s is eager to sign %s", free_agent.player_name, best.id)
        elif market_value is not None:
            accepted, reason = self.trickle_manager.will_player_accept_offer(
                best.offer, market_value, free_agent.days_on_market, len(pending) - 1
            )
            if not accepted:
                self.logger.debug("%s declines %s: %s", free_agent.player_name, best.id, reason)
                return

        self.fa_state = self.fa_manager.accept_offer(self.fa_state, best.id)

    def _preferred_offer(
        self,
        free_agent: FreeAgent,
        pending: List[FreeAgencyOffer]
    ) -> Tuple[FreeAgencyOffer, Optional[OfferEvaluation]]:
        """Best acceptance likelihood, then perceived value; highest AAV for unrated players."""
        player = self.players.get(free_agent.player_id)
        if player is None:
            return max(pending, key=lambda o: o.aav), None

        expectations = calculate_player_expectations(
            player.position, player.overall, player.age, player.experience, self.season_year
        )
        rated = [(evaluate_contract_offer(o.offer, expectations), o) for o in pending]
        evaluation, best = max(
            rated, key=lambda item: (item[0].acceptance_likelihood, item[0].perceived_value)
        )
        return best, evaluation

    def _run_trickle_day(self) -> None:
        """Market offers, bargain and minimum offers, offer sheets, then player decisions."""
        on_market = [
            fa for fa in self.fa_state.free_agents.values()
            if fa.status in (FreeAgentStatus.AVAILABLE, FreeAgentStatus.NEGOTIATING)
        ]
        for free_agent in on_market:
            self.trickle_state = self.trickle_manager.update_market_adjustment(
                self.trickle_state, free_agent.player_id
            )
        self.trickle_state = self.trickle_manager.identify_bargain_opportunities(
            self.trickle_state, on_market, self.market_values
        )

        self._run_ai_league_day()
        self._run_ai_trickle_offers()
        self._submit_ai_offer_sheets()

        for fa_id in sorted(self.fa_state.free_agents):
            pending = self._affordable_pending_offers(fa_id)
            if pending:
                self._resolve_single_offer(fa_id, pending)

    def _run_ai_trickle_offers(self) -> None:
        """Each AI team makes at most one bargain or minimum offer per day."""
        available = [
            fa for fa in self.fa_state.free_agents.values()
            if fa.status == FreeAgentStatus.AVAILABLE
        ]
        if not available:
            return
        bargains = {b.free_agent_id: b for b in self.trickle_state.bargain_opportunities}

        for team_id in sorted(self.profiles):
            if team_id == self.user_team_id:
                continue
            budget = self.fa_state.team_budgets.get(team_id)
            if budget is None:
                continue

            target = self.trickle_manager.simulate_team_activity(
                budget, available, bargains.values(), self.trickle_state.sub_phase
            )
            if target is None:
                continue
            fa_id, offer_type = target
            free_agent = self.fa_state.free_agents[fa_id]

            if offer_type == TrickleOfferType.BARGAIN:
                offer = generate_bargain_offer(bargains[fa_id])
            else:
                offer = generate_minimum_offer(free_agent.experience)

            self.fa_state, offer_id = self.fa_manager.place_offer(self.fa_state, team_id, fa_id, offer)
            if offer_id is None:
                continue
            if offer_type == TrickleOfferType.MINIMUM:
                self._minimum_offer_ids.add(offer_id)
            self.trickle_state = self.trickle_manager.record_visit(
                self.trickle_state, free_agent.player_id, team_id
            )

    def _affordable_pending_offers(self, fa_id: str) -> List[FreeAgencyOffer]:
        """Pending offers for a player; offers the team can no longer afford are withdrawn."""
        free_agent = self.fa_state.free_agents[fa_id]
        pending = []
        for offer_id in free_agent.offer_ids:
            fa_offer = self.fa_state.offers[offer_id]
            if not fa_offer.is_pending:
                continue
            if self._can_afford(fa_offer):
                pending.append(fa_offer)
            else:
                self.fa_state = self.fa_manager.withdraw_offer(self.fa_state, offer_id)
        return pending

    def _tier_of(self, free_agent: FreeAgent) -> Optional[ProductionTier]:
        market_value = self.market_values.get(free_agent.player_id)
        return market_value.tier if market_value is not None else None

    # ==================== Private: Restricted Free Agents ====================

    def _submit_ai_offer_sheets(self) -> None:
        """
        AI teams with a critical need sign tendered players to offer sheets.

        The sheet pays market value plus a premium; one sheet per player
        at a time, before the offer sheet deadline.
        """
        if self.rfa_manager.is_offer_sheet_deadline_passed(self.rfa_state):
            return

        for tender in sorted(self.rfa_state.tenders.values(), key=lambda t: t.id):
            if not tender.is_active or tender.level == TenderLevel.EXCLUSIVE_RIGHTS:
                continue
            player = self.players.get(tender.player_id)
            market_value = self.market_values.get(tender.player_id)
            if player is None or market_value is None:
                continue
            if player.overall < self.AI_OFFER_SHEET_MIN_OVERALL:
                continue

            offer = market_value.to_offer()
            premium = 1 + self.AI_OFFER_SHEET_PREMIUM
            offer = replace(
                offer,
                bonus_per_year=round(offer.bonus_per_year * premium),
                salary_per_year=round(offer.salary_per_year * premium),
            )

            for team_id in sorted(self.profiles):
                if team_id in (tender.team_id, self.user_team_id):
                    continue
                budget = self.fa_state.team_budgets.get(team_id)
                if budget is None or budget.need_for(player.position) != NeedLevel.CRITICAL:
                    continue
                if budget.remaining < offer.aav or self._team_cap_space(team_id) < offer.aav:
                    continue

                before = self.rfa_state
                self.rfa_state = self.rfa_manager.submit_offer_sheet(
                    self.rfa_state, tender.player_id, team_id, offer
                )
                if self.rfa_state is not before:
                    break

    def _resolve_ai_offer_sheets(self) -> None:
        """AI original teams decide on offer sheets the day after they are signed."""
        for sheet in sorted(self.rfa_state.offer_sheets.values(), key=lambda s: s.id):
            if not sheet.is_pending or sheet.original_team_id == self.user_team_id:
                continue
            if sheet.submitted_day >= self.rfa_state.current_day:
                continue

            tender = self.rfa_manager.get_player_tender(self.rfa_state, sheet.rfa_player_id)
            player = self.players.get(sheet.rfa_player_id)
            if tender is None or player is None:
                continue

            analysis = self.rfa_manager.analyze_offer_sheet_match(
                sheet, tender, player.overall, self._team_cap_space(sheet.original_team_id)
            )
            self.logger.debug(
                "%s on offer sheet %s: %s", sheet.original_team_id, sheet.id, analysis.reasoning
            )
            if analysis.should_match:
                self.rfa_state = self.rfa_manager.match_offer_sheet(self.rfa_state, sheet.id)
            else:
                self.rfa_state, _ = self.rfa_manager.decline_to_match(self.rfa_state, sheet.id)

        self._collect_offer_sheet_contracts()

    def _collect_offer_sheet_contracts(self) -> None:
        """Create and apply contracts for offer sheets resolved since the last call."""
        for sheet in sorted(self.rfa_state.offer_sheets.values(), key=lambda s: s.id):
            if sheet.id in self._resolved_offer_sheets:
                continue
            if sheet.status not in (OfferSheetStatus.MATCHED, OfferSheetStatus.NOT_MATCHED):
                continue
            self._resolved_offer_sheets.add(sheet.id)

            player = self.players.get(sheet.rfa_player_id)
            name = player.name if player is not None else sheet.rfa_player_id
            position = player.position if player is not None else None
            if position is None:
                continue

            matched = sheet.status == OfferSheetStatus.MATCHED
            contract = self.rfa_manager.create_contract_from_offer_sheet(
                self.rfa_state, sheet, name, position, matching_team=matched
            )
            self.fa_state = self.fa_manager.record_event(
                self.fa_state,
                EventType.MATCH,
                f"{name} offer sheet {'matched' if matched else 'not matched'}",
                player_id=sheet.rfa_player_id,
                player_name=name,
                team_id=contract.team_id,
                details={"offer_sheet_id": sheet.id, "aav": sheet.offer.aav},
            )
            self._apply_contract(contract)

    def _sign_tender(self, tender_id: str) -> None:
        tender = self.rfa_state.tenders[tender_id]
        player = self.players.get(tender.player_id)
        if player is None:
            return
        contract = self.rfa_manager.create_tender_contract(self.rfa_state, tender, player.position)
        self.rfa_state = self.rfa_manager.sign_tender(self.rfa_state, tender_id)
        self._apply_contract(contract)

    # ==================== Private: Signings ====================

    def _apply_new_signings(self) -> None:
        """Push contracts signed through the free agency market into the ledgers."""
        new_contracts = self.fa_state.signed_contracts[self._applied_fa_contracts:]
        self._applied_fa_contracts = len(self.fa_state.signed_contracts)

        for contract in new_contracts:
            free_agent = self._free_agent_for_player(contract.player_id)
            self._apply_contract(contract)
            if free_agent is None:
                continue

            self.comp_state = self.comp_calculator.record_signing(
                self.comp_state,
                contract,
                free_agent.previous_team_id,
                free_agent.age,
                free_agent.overall,
            )

            phase = self.fa_state.phase
            if phase in (FreeAgencyPhase.DAY1_FRENZY, FreeAgencyPhase.DAY2_FRENZY):
                if free_agent.player_id not in self.frenzy_state.players_signed:
                    offer = self._accepted_offer(free_agent)
                    if offer is not None:
                        self._record_frenzy_signing(
                            free_agent, contract.team_id, offer, was_bidding_war=False
                        )
            elif phase in (FreeAgencyPhase.TRICKLE, FreeAgencyPhase.TRAINING_CAMP):
                accepted_ids = {
                    oid for oid in free_agent.offer_ids
                    if self.fa_state.offers[oid].status == OfferStatus.ACCEPTED
                }
                if accepted_ids & self._minimum_offer_ids:
                    self.trickle_state = self.trickle_manager.record_minimum_signing(
                        self.trickle_state, free_agent.id
                    )

    def _apply_contract(self, contract: PlayerContract) -> None:
        state = self.cap_states.get(contract.team_id)
        if state is None:
            state = create_salary_cap_state(contract.team_id, self.season_year, self.salary_cap)
        self.cap_states[contract.team_id] = add_contract(state, contract)
        self.signed_contracts.append(contract)
        self.logger.info(
            "%s signs with %s: %d years, %s",
            contract.player_name, contract.team_id, contract.total_years,
            format_money(contract.total_value)
        )

    def _record_frenzy_signing(
        self,
        free_agent: FreeAgent,
        team_id: str,
        offer: ContractOffer,
        was_bidding_war: bool
    ) -> None:
        market_value = self.market_values.get(free_agent.player_id)
        market_aav = market_value.projected_aav if market_value is not None else 0
        self.frenzy_state = self.bidding.record_frenzy_signing(
            self.frenzy_state, free_agent, team_id, offer, market_aav, was_bidding_war
        )
        minutes = max(1, round(1 / get_signing_rate(self.frenzy_state.intensity)))
        self.frenzy_state = self.bidding.advance_frenzy_time(self.frenzy_state, minutes)

    def _accepted_offer(self, free_agent: FreeAgent) -> Optional[ContractOffer]:
        for offer_id in free_agent.offer_ids:
            fa_offer = self.fa_state.offers[offer_id]
            if fa_offer.status == OfferStatus.ACCEPTED:
                return fa_offer.offer
        return None

    def _free_agent_for_player(self, player_id: str) -> Optional[FreeAgent]:
        return self.fa_state.free_agents.get(f"fa-{player_id}-{self.season_year}")

    def _end_day(self) -> None:
        """Advance every running clock by one day."""
        phase = self.fa_state.phase
        if phase == FreeAgencyPhase.LEGAL_TAMPERING:
            self.tampering_state = advance_tampering_day(self.tampering_state)
        if phase.allows_signing:
            self.fa_state = self.fa_manager.advance_day(self.fa_state)
        if phase in (FreeAgencyPhase.TRICKLE, FreeAgencyPhase.TRAINING_CAMP):
            self.trickle_state = self.trickle_manager.advance_day(self.trickle_state)

