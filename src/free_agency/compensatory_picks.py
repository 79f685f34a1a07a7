"""
Compensatory Pick Calculator

Awards compensatory draft picks (rounds 3-7) to teams whose qualifying
free agent losses outweigh their qualifying gains.

Each free agent move is recorded once: it is a loss for the previous team
and a gain for the new team. A loss is offset by an unused gain worth at
least 80% of it; unmatched losses are ranked league-wide and awarded
until the per-team and league limits are reached. Awards apply to the
following year's draft.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from constants.positions import Position, to_position
from salary_cap.contract import PlayerContract
from shared.money import format_money


MAX_COMP_PICKS_PER_TEAM = 4
MAX_COMP_PICKS_LEAGUE = 32
OFFSET_RATIO = 0.8

MIN_QUALIFYING_AAV = 1500
VETERAN_QUALIFYING_AGE = 35
VETERAN_QUALIFYING_AAV = 5000

# (round, minimum comp value), highest round first
COMP_ROUND_THRESHOLDS = (
    (3, 18000),
    (4, 12000),
    (5, 8000),
    (6, 4000),
    (7, 1500),
)


class CompPickLikelihood(Enum):
    LIKELY = "likely"
    POSSIBLE = "possible"
    UNLIKELY = "unlikely"


@dataclass(frozen=True)
class FreeAgentMove:
    """A free agent leaving previous_team_id for new_team_id."""

    id: str
    player_id: str
    player_name: str
    position: Position
    previous_team_id: str
    new_team_id: str
    contract_aav: int
    contract_years: int
    age: int
    overall: int
    year: int
    qualifying_contract: bool

    def __post_init__(self):
        object.__setattr__(self, "position", to_position(self.position))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "position": self.position.value,
            "previous_team_id": self.previous_team_id,
            "new_team_id": self.new_team_id,
            "contract_aav": self.contract_aav,
            "contract_years": self.contract_years,
            "age": self.age,
            "overall": self.overall,
            "year": self.year,
            "qualifying_contract": self.qualifying_contract,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FreeAgentMove":
        return cls(**data)

    @property
    def contract_total(self) -> int:
        return self.contract_aav * self.contract_years

    @property
    def comp_value(self) -> int:
        return calculate_comp_value(self.contract_aav, self.age, self.overall)


@dataclass(frozen=True)
class CompPickEntitlement:
    team_id: str
    lost_player_id: str
    lost_player_name: str
    lost_player_aav: int
    matched_with_gain: bool
    matched_gain_player_id: Optional[str]
    net_value: int
    projected_round: Optional[int]
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "lost_player_id": self.lost_player_id,
            "lost_player_name": self.lost_player_name,
            "lost_player_aav": self.lost_player_aav,
            "matched_with_gain": self.matched_with_gain,
            "matched_gain_player_id": self.matched_gain_player_id,
            "net_value": self.net_value,
            "projected_round": self.projected_round,
            "reasoning": self.reasoning,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompPickEntitlement":
        return cls(**data)


@dataclass(frozen=True)
class CompensatoryPickAward:
    team_id: str
    round: int
    reason: str
    lost_player_id: str
    lost_player_name: str
    net_value: int
    year: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "round": self.round,
            "reason": self.reason,
            "lost_player_id": self.lost_player_id,
            "lost_player_name": self.lost_player_name,
            "net_value": self.net_value,
            "year": self.year,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompensatoryPickAward":
        return cls(**data)


@dataclass(frozen=True)
class TeamCompPickSummary:
    team_id: str
    year: int
    total_losses: int
    total_gains: int
    net_loss_value: int
    entitlements: Tuple[CompPickEntitlement, ...]
    awarded_picks: Tuple[CompensatoryPickAward, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "year": self.year,
            "total_losses": self.total_losses,
            "total_gains": self.total_gains,
            "net_loss_value": self.net_loss_value,
            "entitlements": [e.to_dict() for e in self.entitlements],
            "awarded_picks": [p.to_dict() for p in self.awarded_picks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamCompPickSummary":
        return cls(
            team_id=data["team_id"],
            year=data["year"],
            total_losses=data["total_losses"],
            total_gains=data["total_gains"],
            net_loss_value=data["net_loss_value"],
            entitlements=tuple(CompPickEntitlement.from_dict(e) for e in data.get("entitlements", [])),
            awarded_picks=tuple(
                CompensatoryPickAward.from_dict(p) for p in data.get("awarded_picks", [])
            ),
        )


@dataclass(frozen=True)
class CompPickState:
    year: int
    moves: Tuple[FreeAgentMove, ...] = field(default_factory=tuple)
    team_summaries: Dict[str, TeamCompPickSummary] = field(default_factory=dict)
    awarded_picks: Tuple[CompensatoryPickAward, ...] = field(default_factory=tuple)
    is_calculated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "moves": [m.to_dict() for m in self.moves],
            "team_summaries": {
                team_id: summary.to_dict() for team_id, summary in self.team_summaries.items()
            },
            "awarded_picks": [p.to_dict() for p in self.awarded_picks],
            "is_calculated": self.is_calculated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompPickState":
        return cls(
            year=data["year"],
            moves=tuple(FreeAgentMove.from_dict(m) for m in data.get("moves", [])),
            team_summaries={
                team_id: TeamCompPickSummary.from_dict(summary)
                for team_id, summary in data.get("team_summaries", {}).items()
            },
            awarded_picks=tuple(
                CompensatoryPickAward.from_dict(p) for p in data.get("awarded_picks", [])
            ),
            is_calculated=data.get("is_calculated", False),
        )


def is_qualifying_contract(contract_aav: int, age: int, was_on_practice_squad: bool = False) -> bool:
    """
    Whether a contract counts toward the formula.

    At least $1.5M AAV, not a practice squad signing, and players 35+
    need at least $5M AAV.
    """
    if contract_aav < MIN_QUALIFYING_AAV:
        return False
    if was_on_practice_squad:
        return False
    if age >= VETERAN_QUALIFYING_AGE and contract_aav < VETERAN_QUALIFYING_AAV:
        return False
    return True


def calculate_comp_value(aav: int, age: int, overall: int) -> int:
    """AAV adjusted for age (30+ ×0.9, 32+ ×0.8) and rating (85+ ×1.15 down to ×0.7)."""
    value = float(aav)

    if age >= 32:
        value *= 0.8
    elif age >= 30:
        value *= 0.9

    if overall >= 85:
        value *= 1.15
    elif overall >= 75:
        value *= 1.0
    elif overall >= 65:
        value *= 0.85
    else:
        value *= 0.7

    return round(value)


def determine_comp_pick_round(value: int) -> Optional[int]:
    for round_number, minimum in COMP_ROUND_THRESHOLDS:
        if value >= minimum:
            return round_number
    return None


def estimate_comp_pick(move: FreeAgentMove) -> Tuple[Optional[int], CompPickLikelihood]:
    """Pre-calculation estimate of what a single loss could return."""
    value = move.comp_value
    round_number = determine_comp_pick_round(value)
    if round_number is None:
        return None, CompPickLikelihood.UNLIKELY
    if value >= 15000:
        return round_number, CompPickLikelihood.LIKELY
    if value >= 8000:
        return round_number, CompPickLikelihood.POSSIBLE
    return round_number, CompPickLikelihood.UNLIKELY


class CompensatoryPickCalculator:
    """Tracks free agent moves for a league year and awards comp picks."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def create_state(self, year: int) -> CompPickState:
        return CompPickState(year=year)

    # ========================================================================
    # RECORDING
    # ========================================================================

    def record_move(
        self,
        state: CompPickState,
        player_id: str,
        player_name: str,
        position: Position,
        previous_team_id: str,
        new_team_id: str,
        contract_aav: int,
        contract_years: int,
        age: int,
        overall: int,
        was_on_practice_squad: bool = False
    ) -> CompPickState:
        """Record a free agent changing teams; invalidates earlier results."""
        move = FreeAgentMove(
            id=f"move-{player_id}-{state.year}",
            player_id=player_id,
            player_name=player_name,
            position=position,
            previous_team_id=previous_team_id,
            new_team_id=new_team_id,
            contract_aav=contract_aav,
            contract_years=contract_years,
            age=age,
            overall=overall,
            year=state.year,
            qualifying_contract=is_qualifying_contract(contract_aav, age, was_on_practice_squad),
        )
        return replace(state, moves=state.moves + (move,), is_calculated=False)

    def record_signing(
        self,
        state: CompPickState,
        contract: PlayerContract,
        previous_team_id: Optional[str],
        age: int,
        overall: int
    ) -> CompPickState:
        """Record a free agency contract; re-signings and unattached players are ignored."""
        if not previous_team_id or previous_team_id == contract.team_id:
            return state
        aav = round(contract.total_value / contract.total_years) if contract.total_years else 0
        return self.record_move(
            state,
            contract.player_id,
            contract.player_name,
            contract.position,
            previous_team_id,
            contract.team_id,
            aav,
            contract.total_years,
            age,
            overall,
        )

    def get_team_qualifying_losses(self, state: CompPickState, team_id: str) -> List[FreeAgentMove]:
        return [m for m in state.moves if m.previous_team_id == team_id and m.qualifying_contract]

    def get_team_qualifying_gains(self, state: CompPickState, team_id: str) -> List[FreeAgentMove]:
        return [m for m in state.moves if m.new_team_id == team_id and m.qualifying_contract]

    # ========================================================================
    # CALCULATION
    # ========================================================================

    def calculate_team_entitlements(self, state: CompPickState, team_id: str) -> List[CompPickEntitlement]:
        """
        Pair each loss with an offsetting gain, most valuable first.

        A gain offsets a loss when worth at least 80% of it; each gain
        offsets one loss.
        """
        losses = sorted(self.get_team_qualifying_losses(state, team_id), key=lambda m: m.comp_value, reverse=True)
        gains = sorted(self.get_team_qualifying_gains(state, team_id), key=lambda m: m.comp_value, reverse=True)

        used = set()
        entitlements = []
        for loss in losses:
            loss_value = loss.comp_value
            offset = None
            for gain in gains:
                if gain.id in used:
                    continue
                if gain.comp_value >= loss_value * OFFSET_RATIO:
                    offset = gain
                    used.add(gain.id)
                    break

            if offset is not None:
                entitlements.append(CompPickEntitlement(
                    team_id=team_id,
                    lost_player_id=loss.player_id,
                    lost_player_name=loss.player_name,
                    lost_player_aav=loss.contract_aav,
                    matched_with_gain=True,
                    matched_gain_player_id=offset.player_id,
                    net_value=0,
                    projected_round=None,
                    reasoning="Offset by acquisition of similar value",
                ))
                continue

            projected_round = determine_comp_pick_round(loss_value)
            entitlements.append(CompPickEntitlement(
                team_id=team_id,
                lost_player_id=loss.player_id,
                lost_player_name=loss.player_name,
                lost_player_aav=loss.contract_aav,
                matched_with_gain=False,
                matched_gain_player_id=None,
                net_value=loss_value,
                projected_round=projected_round,
                reasoning=(
                    f"Uncompensated loss worth round {projected_round} pick"
                    if projected_round else "Value below comp pick threshold"
                ),
            ))
        return entitlements

    def calculate_team_summary(self, state: CompPickState, team_id: str) -> TeamCompPickSummary:
        losses = self.get_team_qualifying_losses(state, team_id)
        gains = self.get_team_qualifying_gains(state, team_id)
        return TeamCompPickSummary(
            team_id=team_id,
            year=state.year,
            total_losses=len(losses),
            total_gains=len(gains),
            net_loss_value=sum(m.comp_value for m in losses) - sum(m.comp_value for m in gains),
            entitlements=tuple(self.calculate_team_entitlements(state, team_id)),
        )

    def calculate_all_comp_picks(self, state: CompPickState, team_ids: Iterable[str]) -> CompPickState:
        """
        Award picks league-wide.

        Unmatched losses with a projected round are awarded in descending
        net value; teams stop at 4 picks and the league at 32.
        """
        summaries = {team_id: self.calculate_team_summary(state, team_id) for team_id in team_ids}
        candidates = [
            e for summary in summaries.values() for e in summary.entitlements
            if not e.matched_with_gain and e.projected_round is not None
        ]
        candidates.sort(key=lambda e: e.net_value, reverse=True)

        awards: List[CompensatoryPickAward] = []
        team_counts: Dict[str, int] = {}
        for entitlement in candidates:
            if len(awards) >= MAX_COMP_PICKS_LEAGUE:
                break
            count = team_counts.get(entitlement.team_id, 0)
            if count >= MAX_COMP_PICKS_PER_TEAM:
                continue

            award = CompensatoryPickAward(
                team_id=entitlement.team_id,
                round=entitlement.projected_round,
                reason=f"Compensatory: Lost {entitlement.lost_player_name}",
                lost_player_id=entitlement.lost_player_id,
                lost_player_name=entitlement.lost_player_name,
                net_value=entitlement.net_value,
                year=state.year + 1,
            )
            awards.append(award)
            team_counts[entitlement.team_id] = count + 1

            summary = summaries[entitlement.team_id]
            summaries[entitlement.team_id] = replace(summary, awarded_picks=summary.awarded_picks + (award,))

        self.logger.info("Awarded %d compensatory picks for %d", len(awards), state.year + 1)
        return replace(
            state,
            team_summaries=summaries,
            awarded_picks=tuple(awards),
            is_calculated=True,
        )

    # ========================================================================
    # QUERIES
    # ========================================================================

    def get_team_awarded_picks(self, state: CompPickState, team_id: str) -> List[CompensatoryPickAward]:
        return [p for p in state.awarded_picks if p.team_id == team_id]

    def get_picks_by_round(self, state: CompPickState, round_number: int) -> List[CompensatoryPickAward]:
        return [p for p in state.awarded_picks if p.round == round_number]

    def get_summary(self, state: CompPickState) -> Dict[str, Any]:
        picks_by_round = {round_number: 0 for round_number, _ in COMP_ROUND_THRESHOLDS}
        for pick in state.awarded_picks:
            picks_by_round[pick.round] += 1

        projected = {
            e.lost_player_id: e.projected_round
            for summary in state.team_summaries.values()
            for e in summary.entitlements
        }
        qualifying_losses = sorted(
            (m for m in state.moves if m.qualifying_contract),
            key=lambda m: m.contract_aav,
            reverse=True,
        )

        return {
            "year": state.year,
            "total_qualifying_moves": len(qualifying_losses),
            "total_picks_awarded": len(state.awarded_picks),
            "picks_by_round": picks_by_round,
            "top_losses": [
                {
                    "player_name": m.player_name,
                    "team_id": m.previous_team_id,
                    "aav": format_money(m.contract_aav),
                    "round": projected.get(m.player_id),
                }
                for m in qualifying_losses[:10]
            ],
        }

    def validate_state(self, state: CompPickState) -> List[str]:
        errors = []
        if not 2000 <= state.year <= 2100:
            errors.append(f"Year {state.year} outside 2000-2100")
        if len(state.awarded_picks) > MAX_COMP_PICKS_LEAGUE:
            errors.append("League compensatory pick limit exceeded")
        counts: Dict[str, int] = {}
        for pick in state.awarded_picks:
            counts[pick.team_id] = counts.get(pick.team_id, 0) + 1
        for team_id, count in counts.items():
            if count > MAX_COMP_PICKS_PER_TEAM:
                errors.append(f"Team {team_id} exceeds compensatory pick limit")
        return errors
