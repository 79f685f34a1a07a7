"""
RFA Tender System

Restricted free agent tenders, offer sheets and matching windows.

A tender level fixes both a salary (a share of the salary cap) and the
draft compensation owed if another team signs the player away. Offer
sheets open a matching window measured in days; the original team can
match (keeping the player on the offer sheet terms) or decline (the
player signs with the offering team and the compensation class is handed
back to the draft-order system). Windows that lapse without a decision
count as declined.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import logging
from typing import Any, Dict, List, Optional, Tuple

from config.economy_settings import EconomySettings
from constants.positions import Position
from salary_cap.contract import (
    ContractOffer,
    ContractType,
    PlayerContract,
    create_contract,
    get_minimum_salary,
)
from shared.money import format_money


class TenderLevel(Enum):
    FIRST_ROUND = "first_round"
    SECOND_ROUND = "second_round"
    ORIGINAL_ROUND = "original_round"
    RIGHT_OF_FIRST_REFUSAL = "right_of_first_refusal"
    EXCLUSIVE_RIGHTS = "exclusive_rights"


class TenderStatus(Enum):
    ACTIVE = "active"
    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    SIGNED = "signed"
    EXPIRED = "expired"


class OfferSheetStatus(Enum):
    PENDING = "pending"
    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    WITHDRAWN = "withdrawn"


class PoisonPillType(Enum):
    FRONT_LOADED = "front_loaded"
    BACK_LOADED = "back_loaded"


# Share of the salary cap paid by each tender
TENDER_PERCENTAGES = {
    TenderLevel.FIRST_ROUND: 0.085,
    TenderLevel.SECOND_ROUND: 0.05,
    TenderLevel.ORIGINAL_ROUND: 0.03,
    TenderLevel.RIGHT_OF_FIRST_REFUSAL: 0.02,
}

DRAFT_COMPENSATION = {
    TenderLevel.FIRST_ROUND: "1st round pick",
    TenderLevel.SECOND_ROUND: "2nd round pick",
    TenderLevel.ORIGINAL_ROUND: "Original draft round pick",
    TenderLevel.RIGHT_OF_FIRST_REFUSAL: None,
    TenderLevel.EXCLUSIVE_RIGHTS: None,
}

DRAFT_PICK_VALUES = {
    "1st round pick": 20000,
    "2nd round pick": 10000,
    "Original draft round pick": 5000,
}


@dataclass(frozen=True)
class RFADeadlines:
    """Days counted from the start of the league year."""

    tender_deadline: int = EconomySettings.DEADLINES["rfa_tender_deadline"]
    offer_sheet_deadline: int = EconomySettings.DEADLINES["rfa_offer_sheet_deadline"]
    matching_period_days: int = EconomySettings.RFA_MATCH_WINDOW_DAYS

    def to_dict(self) -> Dict[str, int]:
        return {
            "tender_deadline": self.tender_deadline,
            "offer_sheet_deadline": self.offer_sheet_deadline,
            "matching_period_days": self.matching_period_days,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RFADeadlines":
        defaults = cls()
        return cls(
            tender_deadline=data.get("tender_deadline", defaults.tender_deadline),
            offer_sheet_deadline=data.get("offer_sheet_deadline", defaults.offer_sheet_deadline),
            matching_period_days=data.get("matching_period_days", defaults.matching_period_days),
        )


@dataclass(frozen=True)
class TenderOffer:
    id: str
    player_id: str
    player_name: str
    team_id: str
    level: TenderLevel
    salary_amount: int
    draft_compensation: Optional[str]
    year: int
    status: TenderStatus = TenderStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == TenderStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "team_id": self.team_id,
            "level": self.level.value,
            "salary_amount": self.salary_amount,
            "draft_compensation": self.draft_compensation,
            "year": self.year,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TenderOffer":
        return cls(
            id=data["id"],
            player_id=data["player_id"],
            player_name=data["player_name"],
            team_id=data["team_id"],
            level=TenderLevel(data["level"]),
            salary_amount=data["salary_amount"],
            draft_compensation=data.get("draft_compensation"),
            year=data["year"],
            status=TenderStatus(data.get("status", "active")),
        )


@dataclass(frozen=True)
class OfferSheet:
    """Offer to a tendered RFA; match_deadline is the last day to match."""

    id: str
    rfa_player_id: str
    offering_team_id: str
    original_team_id: str
    offer: ContractOffer
    submitted_day: int
    match_deadline: int
    status: OfferSheetStatus = OfferSheetStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status == OfferSheetStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "rfa_player_id": self.rfa_player_id,
            "offering_team_id": self.offering_team_id,
            "original_team_id": self.original_team_id,
            "offer": self.offer.to_dict(),
            "submitted_day": self.submitted_day,
            "match_deadline": self.match_deadline,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OfferSheet":
        return cls(
            id=data["id"],
            rfa_player_id=data["rfa_player_id"],
            offering_team_id=data["offering_team_id"],
            original_team_id=data["original_team_id"],
            offer=ContractOffer.from_dict(data["offer"]),
            submitted_day=data["submitted_day"],
            match_deadline=data["match_deadline"],
            status=OfferSheetStatus(data.get("status", "pending")),
        )


@dataclass(frozen=True)
class MatchAnalysis:
    should_match: bool
    total_cost: int
    cap_impact_year1: int
    guaranteed_exposure: int
    alternative_cost: int
    reasoning: str


@dataclass(frozen=True)
class RFAState:
    current_year: int
    current_day: int = 0
    tenders: Dict[str, TenderOffer] = field(default_factory=dict)
    offer_sheets: Dict[str, OfferSheet] = field(default_factory=dict)
    matched_players: frozenset = field(default_factory=frozenset)
    signed_to_offer_sheets: frozenset = field(default_factory=frozenset)
    deadlines: RFADeadlines = field(default_factory=RFADeadlines)
    next_sheet_id: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_year": self.current_year,
            "current_day": self.current_day,
            "tenders": [t.to_dict() for t in self.tenders.values()],
            "offer_sheets": [s.to_dict() for s in self.offer_sheets.values()],
            "matched_players": sorted(self.matched_players),
            "signed_to_offer_sheets": sorted(self.signed_to_offer_sheets),
            "deadlines": self.deadlines.to_dict(),
            "next_sheet_id": self.next_sheet_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RFAState":
        tenders = [TenderOffer.from_dict(t) for t in data.get("tenders", [])]
        sheets = [OfferSheet.from_dict(s) for s in data.get("offer_sheets", [])]
        return cls(
            current_year=data["current_year"],
            current_day=data.get("current_day", 0),
            tenders={t.id: t for t in tenders},
            offer_sheets={s.id: s for s in sheets},
            matched_players=frozenset(data.get("matched_players", [])),
            signed_to_offer_sheets=frozenset(data.get("signed_to_offer_sheets", [])),
            deadlines=RFADeadlines.from_dict(data.get("deadlines", {})),
            next_sheet_id=data.get("next_sheet_id", 1),
        )


def calculate_tender_value(level: TenderLevel, salary_cap: int) -> int:
    """Tender salary; exclusive-rights tenders pay the rookie minimum."""
    if level == TenderLevel.EXCLUSIVE_RIGHTS:
        return get_minimum_salary(0)
    return round(salary_cap * TENDER_PERCENTAGES[level])


def get_tender_draft_compensation(level: TenderLevel) -> Optional[str]:
    return DRAFT_COMPENSATION[level]


def recommend_tender_level(overall: int, position: Position, draft_round: int) -> TenderLevel:
    """
    Suggested tender for a restricted free agent.

    85+ first round, 75+ second round, 65+ original round when drafted in
    rounds 1-3, otherwise right of first refusal.
    """
    if overall >= 85:
        return TenderLevel.FIRST_ROUND
    if overall >= 75:
        return TenderLevel.SECOND_ROUND
    if overall >= 65 and 1 <= draft_round <= 3:
        return TenderLevel.ORIGINAL_ROUND
    return TenderLevel.RIGHT_OF_FIRST_REFUSAL


def create_poison_pill_offer(base_aav: int, years: int, pill_type: PoisonPillType) -> ContractOffer:
    """
    Offer sheet built to be hard to match.

    Offers are spread evenly, so the pill is carried by a heavy guarantee
    (65% of every year as bonus). Back-loaded sheets also include a
    no-trade clause.
    """
    bonus = round(base_aav * 0.65)
    return ContractOffer(
        years=years,
        bonus_per_year=bonus,
        salary_per_year=base_aav - bonus,
        no_trade_clause=pill_type == PoisonPillType.BACK_LOADED,
    )


class RFATenderManager:
    """
    Runs tenders and offer sheets for one league year.

    No-op conditions (an offer sheet for an untendered player, matching an
    offer sheet already resolved) return the state unchanged.
    """

    def __init__(self, salary_cap: int = EconomySettings.DEFAULT_SALARY_CAP):
        self.salary_cap = salary_cap
        self.logger = logging.getLogger(__name__)

    def create_state(self, current_year: int, deadlines: Optional[RFADeadlines] = None) -> RFAState:
        return RFAState(current_year=current_year, deadlines=deadlines or RFADeadlines())

    # ========================================================================
    # TENDERS
    # ========================================================================

    def submit_tender(
        self,
        state: RFAState,
        player_id: str,
        player_name: str,
        team_id: str,
        level: TenderLevel
    ) -> RFAState:
        tender = TenderOffer(
            id=f"tender-{player_id}-{state.current_year}",
            player_id=player_id,
            player_name=player_name,
            team_id=team_id,
            level=level,
            salary_amount=calculate_tender_value(level, self.salary_cap),
            draft_compensation=get_tender_draft_compensation(level),
            year=state.current_year,
        )
        tenders = dict(state.tenders)
        tenders[tender.id] = tender

        self.logger.debug(
            "%s tenders %s at %s (%s)",
            team_id, player_name, level.value, format_money(tender.salary_amount)
        )
        return replace(state, tenders=tenders)

    def withdraw_tender(self, state: RFAState, tender_id: str) -> RFAState:
        tender = state.tenders.get(tender_id)
        if tender is None or not tender.is_active:
            return state
        tenders = dict(state.tenders)
        tenders[tender_id] = replace(tender, status=TenderStatus.EXPIRED)
        return replace(state, tenders=tenders)

    def sign_tender(self, state: RFAState, tender_id: str) -> RFAState:
        """Player accepts his tender and plays the season on it."""
        tender = state.tenders.get(tender_id)
        if tender is None or not tender.is_active:
            return state
        tenders = dict(state.tenders)
        tenders[tender_id] = replace(tender, status=TenderStatus.SIGNED)
        return replace(state, tenders=tenders)

    def get_player_tender(self, state: RFAState, player_id: str) -> Optional[TenderOffer]:
        for tender in state.tenders.values():
            if tender.player_id == player_id and tender.is_active:
                return tender
        return None

    def get_team_tenders(self, state: RFAState, team_id: str) -> List[TenderOffer]:
        return [t for t in state.tenders.values() if t.team_id == team_id and t.is_active]

    def create_tender_contract(
        self,
        state: RFAState,
        tender: TenderOffer,
        position: Position
    ) -> PlayerContract:
        """One-year contract for a player who plays on his tender."""
        offer = ContractOffer(years=1, bonus_per_year=0, salary_per_year=tender.salary_amount)
        return create_contract(
            tender.player_id,
            tender.player_name,
            tender.team_id,
            position,
            offer,
            state.current_year,
            ContractType.VETERAN,
        )

    # ========================================================================
    # OFFER SHEETS
    # ========================================================================

    def is_offer_sheet_deadline_passed(self, state: RFAState) -> bool:
        return state.current_day > state.deadlines.offer_sheet_deadline

    def submit_offer_sheet(
        self,
        state: RFAState,
        rfa_player_id: str,
        offering_team_id: str,
        offer: ContractOffer
    ) -> RFAState:
        """
        Sign a tendered RFA to an offer sheet.

        Ignored when the player has no active tender, holds an
        exclusive-rights tender, already has a pending sheet, or the
        offer sheet deadline has passed.
        """
        tender = self.get_player_tender(state, rfa_player_id)
        if tender is None or tender.level == TenderLevel.EXCLUSIVE_RIGHTS:
            return state
        if self.is_offer_sheet_deadline_passed(state):
            return state
        if any(s.rfa_player_id == rfa_player_id and s.is_pending for s in state.offer_sheets.values()):
            return state

        sheet = OfferSheet(
            id=f"offersheet-{rfa_player_id}-{offering_team_id}-{state.next_sheet_id}",
            rfa_player_id=rfa_player_id,
            offering_team_id=offering_team_id,
            original_team_id=tender.team_id,
            offer=offer,
            submitted_day=state.current_day,
            match_deadline=state.current_day + state.deadlines.matching_period_days,
        )
        offer_sheets = dict(state.offer_sheets)
        offer_sheets[sheet.id] = sheet

        self.logger.debug(
            "%s signs offer sheet with %s (%s AAV), match by day %d",
            rfa_player_id, offering_team_id, format_money(offer.aav), sheet.match_deadline
        )
        return replace(state, offer_sheets=offer_sheets, next_sheet_id=state.next_sheet_id + 1)

    def match_offer_sheet(self, state: RFAState, offer_sheet_id: str) -> RFAState:
        """Original team matches; the player stays on the offer sheet terms."""
        sheet = state.offer_sheets.get(offer_sheet_id)
        if sheet is None or not sheet.is_pending:
            return state

        offer_sheets = dict(state.offer_sheets)
        offer_sheets[offer_sheet_id] = replace(sheet, status=OfferSheetStatus.MATCHED)

        tenders = dict(state.tenders)
        tender = self.get_player_tender(state, sheet.rfa_player_id)
        if tender is not None:
            tenders[tender.id] = replace(tender, status=TenderStatus.MATCHED)

        return replace(
            state,
            offer_sheets=offer_sheets,
            tenders=tenders,
            matched_players=state.matched_players | {sheet.rfa_player_id},
        )

    def decline_to_match(self, state: RFAState, offer_sheet_id: str) -> Tuple[RFAState, Optional[str]]:
        """
        Original team lets the player go.

        Returns:
            (state, draft compensation class or None)
        """
        sheet = state.offer_sheets.get(offer_sheet_id)
        if sheet is None or not sheet.is_pending:
            return state, None

        tender = self.get_player_tender(state, sheet.rfa_player_id)
        compensation = tender.draft_compensation if tender is not None else None
        return self._release_to_offering_team(state, sheet, tender), compensation

    def _release_to_offering_team(
        self,
        state: RFAState,
        sheet: OfferSheet,
        tender: Optional[TenderOffer]
    ) -> RFAState:
        offer_sheets = dict(state.offer_sheets)
        offer_sheets[sheet.id] = replace(sheet, status=OfferSheetStatus.NOT_MATCHED)

        tenders = dict(state.tenders)
        if tender is not None:
            tenders[tender.id] = replace(tender, status=TenderStatus.NOT_MATCHED)

        return replace(
            state,
            offer_sheets=offer_sheets,
            tenders=tenders,
            signed_to_offer_sheets=state.signed_to_offer_sheets | {sheet.rfa_player_id},
        )

    def withdraw_offer_sheet(self, state: RFAState, offer_sheet_id: str) -> RFAState:
        sheet = state.offer_sheets.get(offer_sheet_id)
        if sheet is None or not sheet.is_pending:
            return state
        offer_sheets = dict(state.offer_sheets)
        offer_sheets[offer_sheet_id] = replace(sheet, status=OfferSheetStatus.WITHDRAWN)
        return replace(state, offer_sheets=offer_sheets)

    def is_matching_period_expired(self, state: RFAState, sheet: OfferSheet) -> bool:
        return state.current_day > sheet.match_deadline

    def expire_unresolved_offer_sheets(self, state: RFAState) -> RFAState:
        """Pending sheets past their deadline go to the offering team."""
        for sheet in list(state.offer_sheets.values()):
            if sheet.is_pending and self.is_matching_period_expired(state, sheet):
                tender = self.get_player_tender(state, sheet.rfa_player_id)
                state = self._release_to_offering_team(state, sheet, tender)
                self.logger.debug(
                    "Matching window lapsed: %s joins %s", sheet.rfa_player_id, sheet.offering_team_id
                )
        return state

    def advance_day(self, state: RFAState) -> RFAState:
        return self.expire_unresolved_offer_sheets(replace(state, current_day=state.current_day + 1))

    def get_pending_offer_sheets_for_team(self, state: RFAState, team_id: str) -> List[OfferSheet]:
        return [
            s for s in state.offer_sheets.values() if s.original_team_id == team_id and s.is_pending
        ]

    def get_offer_sheets_submitted_by_team(self, state: RFAState, team_id: str) -> List[OfferSheet]:
        return [s for s in state.offer_sheets.values() if s.offering_team_id == team_id]

    def create_contract_from_offer_sheet(
        self,
        state: RFAState,
        sheet: OfferSheet,
        player_name: str,
        position: Position,
        matching_team: bool
    ) -> PlayerContract:
        """Contract on offer sheet terms with the original or the offering team."""
        team_id = sheet.original_team_id if matching_team else sheet.offering_team_id
        return create_contract(
            sheet.rfa_player_id,
            player_name,
            team_id,
            position,
            sheet.offer,
            state.current_year,
            ContractType.VETERAN,
        )

    # ========================================================================
    # ANALYSIS
    # ========================================================================

    def analyze_offer_sheet_match(
        self,
        sheet: OfferSheet,
        tender: TenderOffer,
        player_overall: int,
        team_cap_space: int
    ) -> MatchAnalysis:
        """
        Whether the original team should match.

        Alternative cost is a 70% replacement plus the value of the pick
        the team would receive.
        """
        offer = sheet.offer
        year1_cap_hit = offer.aav
        pick_value = DRAFT_PICK_VALUES.get(tender.draft_compensation, 0)
        alternative_cost = round(year1_cap_hit * 0.7) + pick_value

        can_afford = team_cap_space >= year1_cap_hit
        is_overpay = year1_cap_hit > tender.salary_amount * 1.5
        is_valuable = player_overall >= 75

        should_match = False
        if not can_afford:
            reasoning = "Cannot afford the cap hit"
        elif is_valuable and not is_overpay:
            should_match = True
            reasoning = "Worth matching for a quality player at reasonable price"
        elif is_valuable and player_overall >= 85:
            should_match = True
            reasoning = "Elite player worth the premium"
        elif is_valuable:
            reasoning = "Good player but significant overpay"
        else:
            reasoning = "Better to take compensation and find replacement"

        return MatchAnalysis(
            should_match=should_match,
            total_cost=offer.total_value,
            cap_impact_year1=year1_cap_hit,
            guaranteed_exposure=offer.guaranteed_money,
            alternative_cost=alternative_cost,
            reasoning=reasoning,
        )

    def get_summary(self, state: RFAState) -> Dict[str, Any]:
        active = [t for t in state.tenders.values() if t.is_active]
        pending = [s for s in state.offer_sheets.values() if s.is_pending]

        by_level: Dict[str, int] = {}
        for tender in active:
            by_level[tender.level.value] = by_level.get(tender.level.value, 0) + 1

        upcoming = []
        for sheet in pending:
            days_left = sheet.match_deadline - state.current_day
            if days_left <= 3:
                upcoming.append(f"Match deadline in {days_left} days")

        return {
            "active_tenders": len(active),
            "pending_offer_sheets": len(pending),
            "matched_players": len(state.matched_players),
            "signed_to_other_teams": len(state.signed_to_offer_sheets),
            "tenders_by_level": by_level,
            "upcoming_deadlines": upcoming,
        }

    def validate_state(self, state: RFAState) -> List[str]:
        errors = []
        if not 2000 <= state.current_year <= 2100:
            errors.append(f"Year {state.current_year} outside 2000-2100")
        for sheet in state.offer_sheets.values():
            if sheet.match_deadline < sheet.submitted_day:
                errors.append(f"Offer sheet {sheet.id} deadline precedes submission")
        return errors
