"""
Salary Cap Ledger

Per-team running cap accounting:
- Cap usage (all contracts + dead money penalties)
- Top-51 offseason accounting
- Cap status, projections and display summaries
- Unused cap rollover and year advancement

State is immutable: every mutator returns a new SalaryCapState.
Money values are in thousands of dollars.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging

from config.economy_settings import EconomySettings
from shared.money import format_money
from .contract import (
    ContractStatus,
    PlayerContract,
    advance_year,
    cap_hit_for_year,
    contract_end_year,
    get_minimum_salary,
)


logger = logging.getLogger(__name__)


class PenaltyReason(Enum):
    """Why dead money was charged."""
    CUT = "cut"
    TRADE = "trade"
    RESTRUCTURE = "restructure"
    RETIREMENT = "retirement"


@dataclass(frozen=True)
class CapPenalty:
    """
    Dead money charged against a cap year, independent of any live contract.

    Attributes:
        id: Penalty identifier
        player_id: Player the money was owed to
        reason: Why the charge exists
        amount: Dead money charged in `year`
        year: Cap year charged
        years_remaining: Seasons the penalty stays on the books
        player_name: Display name
    """

    id: str
    player_id: str
    reason: PenaltyReason
    amount: int
    year: int
    years_remaining: int
    player_name: str = ""

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")
        if self.years_remaining < 0:
            raise ValueError(f"years_remaining must be non-negative, got {self.years_remaining}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "reason": self.reason.value,
            "amount": self.amount,
            "year": self.year,
            "years_remaining": self.years_remaining,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapPenalty":
        return cls(
            id=data["id"],
            player_id=data["player_id"],
            player_name=data.get("player_name", ""),
            reason=PenaltyReason(data["reason"]),
            amount=data["amount"],
            year=data["year"],
            years_remaining=data["years_remaining"],
        )


@dataclass(frozen=True)
class SalaryCapState:
    """
    A team's cap ledger for the current league year.

    Invariant: salary_cap == baseline_cap + rollover.
    """

    team_id: str
    current_year: int
    salary_cap: int
    baseline_cap: int
    rollover: int = 0
    contracts: Dict[str, PlayerContract] = field(default_factory=dict)
    penalties: Tuple[CapPenalty, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "penalties", tuple(self.penalties))
        object.__setattr__(self, "contracts", dict(self.contracts))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team_id,
            "current_year": self.current_year,
            "salary_cap": self.salary_cap,
            "baseline_cap": self.baseline_cap,
            "rollover": self.rollover,
            "contracts": {cid: c.to_dict() for cid, c in self.contracts.items()},
            "penalties": [p.to_dict() for p in self.penalties],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SalaryCapState":
        return cls(
            team_id=data["team_id"],
            current_year=data["current_year"],
            salary_cap=data["salary_cap"],
            baseline_cap=data["baseline_cap"],
            rollover=data.get("rollover", 0),
            contracts={
                cid: PlayerContract.from_dict(c) for cid, c in data.get("contracts", {}).items()
            },
            penalties=tuple(CapPenalty.from_dict(p) for p in data.get("penalties", [])),
        )


# ============================================================================
# STATE CONSTRUCTION & MUTATION
# ============================================================================

def create_salary_cap_state(
    team_id: str,
    current_year: int,
    baseline_cap: int = EconomySettings.DEFAULT_SALARY_CAP,
) -> SalaryCapState:
    """Create an empty ledger with no rollover."""
    return SalaryCapState(
        team_id=team_id,
        current_year=current_year,
        salary_cap=baseline_cap,
        baseline_cap=baseline_cap,
    )


def add_contract(state: SalaryCapState, contract: PlayerContract) -> SalaryCapState:
    contracts = dict(state.contracts)
    contracts[contract.id] = contract
    return replace(state, contracts=contracts)


def replace_contract(state: SalaryCapState, contract: PlayerContract) -> SalaryCapState:
    """Store a mutated contract under its id (alias of add_contract)."""
    return add_contract(state, contract)


def remove_contract(state: SalaryCapState, contract_id: str) -> SalaryCapState:
    contracts = dict(state.contracts)
    contracts.pop(contract_id, None)
    return replace(state, contracts=contracts)


def add_penalty(state: SalaryCapState, penalty: CapPenalty) -> SalaryCapState:
    return replace(state, penalties=state.penalties + (penalty,))


def add_penalties(state: SalaryCapState, penalties: List[CapPenalty]) -> SalaryCapState:
    return replace(state, penalties=state.penalties + tuple(penalties))


# ============================================================================
# CAP USAGE
# ============================================================================

def cap_usage(state: SalaryCapState, year: Optional[int] = None) -> int:
    """
    Total cap charged in a year.

    Formula:
        Σ contract cap hits for the year + Σ penalties charged in the year
    """
    target_year = state.current_year if year is None else year
    contract_total = sum(cap_hit_for_year(c, target_year) for c in state.contracts.values())
    return contract_total + dead_money_for_year(state, target_year)


def top_51_cap_usage(state: SalaryCapState, year: Optional[int] = None) -> int:
    """Sum of the 51 largest positive cap hits (offseason accounting)."""
    target_year = state.current_year if year is None else year
    hits = [cap_hit_for_year(c, target_year) for c in state.contracts.values()]
    hits = sorted((hit for hit in hits if hit > 0), reverse=True)
    return sum(hits[:EconomySettings.TOP_51_SIZE])


def dead_money_for_year(state: SalaryCapState, year: Optional[int] = None) -> int:
    target_year = state.current_year if year is None else year
    return sum(p.amount for p in state.penalties if p.year == target_year)


def cap_space(state: SalaryCapState) -> int:
    """Cap space for the current year (negative when over the cap)."""
    return state.salary_cap - cap_usage(state)


def get_cap_status(state: SalaryCapState) -> Dict[str, Any]:
    """
    Current year cap status.

    Returns:
        Dict with salary_cap, current_cap_usage, cap_space, dead_money,
        percent_used, top_51_total, is_over_cap, meets_floor and
        rollover_from_previous_year
    """
    usage = cap_usage(state)
    space = state.salary_cap - usage
    floor = state.salary_cap * EconomySettings.SALARY_FLOOR_PERCENTAGE
    percent_used = (usage / state.salary_cap) * 100 if state.salary_cap else 0.0

    return {
        "salary_cap": state.salary_cap,
        "current_cap_usage": usage,
        "cap_space": space,
        "dead_money": dead_money_for_year(state),
        "percent_used": percent_used,
        "top_51_total": top_51_cap_usage(state),
        "is_over_cap": space < 0,
        "meets_floor": usage >= floor,
        "rollover_from_previous_year": state.rollover,
    }


def project_cap(
    state: SalaryCapState,
    years_ahead: int = 3,
    annual_cap_growth: float = EconomySettings.CAP_GROWTH_RATE,
) -> List[Dict[str, Any]]:
    """
    Project cap space for the current year and `years_ahead` future years.

    The cap grows by `annual_cap_growth` each future year; committed spend
    is whatever existing contracts and penalties already charge.
    """
    projections = []
    projected_cap = state.salary_cap

    for offset in range(years_ahead + 1):
        year = state.current_year + offset
        if offset > 0:
            projected_cap = round(projected_cap * (1 + annual_cap_growth))

        committed = cap_usage(state, year)
        projections.append({
            "year": year,
            "projected_cap": projected_cap,
            "committed_spend": committed,
            "dead_money": dead_money_for_year(state, year),
            "projected_space": projected_cap - committed,
            "expiring_contracts": len(expiring_contracts(state, year)),
            "top_51_cap_hits": top_51_cap_usage(state, year),
        })

    return projections


def calculate_rollover(state: SalaryCapState) -> int:
    """Unused current-year cap carried into next year."""
    return max(0, state.salary_cap - cap_usage(state))


def advance_cap_year(state: SalaryCapState, new_baseline_cap: int) -> SalaryCapState:
    """
    Close the current league year and open the next.

    - Unused cap becomes next year's rollover
    - Every contract advances; contracts that are no longer active drop off
    - Penalties lose a year and drop off at zero
    - salary_cap = new_baseline_cap + rollover
    """
    rollover = calculate_rollover(state)

    contracts = {}
    for contract_id, contract in state.contracts.items():
        advanced = advance_year(contract)
        if advanced.status == ContractStatus.ACTIVE:
            contracts[contract_id] = advanced

    penalties = tuple(
        replace(p, years_remaining=p.years_remaining - 1)
        for p in state.penalties
        if p.years_remaining - 1 > 0
    )

    logger.debug(
        "Team %s advanced to %d: rollover %s, %d contracts dropped",
        state.team_id, state.current_year + 1, format_money(rollover),
        len(state.contracts) - len(contracts)
    )

    return replace(
        state,
        current_year=state.current_year + 1,
        salary_cap=new_baseline_cap + rollover,
        baseline_cap=new_baseline_cap,
        rollover=rollover,
        contracts=contracts,
        penalties=penalties,
    )


# ============================================================================
# ROSTER QUERIES
# ============================================================================

def contracts_by_cap_hit(
    state: SalaryCapState,
    year: Optional[int] = None,
) -> List[Tuple[PlayerContract, int]]:
    """(contract, cap_hit) pairs with a positive hit, highest first."""
    target_year = state.current_year if year is None else year
    pairs = [(c, cap_hit_for_year(c, target_year)) for c in state.contracts.values()]
    pairs = [pair for pair in pairs if pair[1] > 0]
    return sorted(pairs, key=lambda pair: pair[1], reverse=True)


def expiring_contracts(state: SalaryCapState, year: Optional[int] = None) -> List[PlayerContract]:
    """Contracts whose last playing season is `year`."""
    target_year = state.current_year if year is None else year
    return [c for c in state.contracts.values() if contract_end_year(c) == target_year]


def can_afford(state: SalaryCapState, first_year_cap_hit: int) -> bool:
    return cap_space(state) >= first_year_cap_hit


def effective_cap_space(state: SalaryCapState) -> int:
    """Cap space after reserving minimum salaries for unfilled roster spots."""
    space = cap_space(state)
    roster_count = len(state.contracts)
    if roster_count < EconomySettings.ROSTER_SIZE:
        reserved = (EconomySettings.ROSTER_SIZE - roster_count) * get_minimum_salary(0)
        return max(0, space - reserved)
    return space


def validate_cap_state(state: SalaryCapState) -> List[str]:
    errors = []
    if not state.team_id:
        errors.append("Team id is required")
    if state.salary_cap != state.baseline_cap + state.rollover:
        errors.append("Salary cap must equal baseline plus rollover")
    if state.rollover < 0:
        errors.append("Rollover cannot be negative")
    return errors


# ============================================================================
# DISPLAY
# ============================================================================

def get_cap_summary(state: SalaryCapState) -> Dict[str, str]:
    """
    Display descriptions of a team's cap health.

    Returns:
        Dict with cap_status_description, space_description,
        dead_money_description and flexibility_rating
    """
    status = get_cap_status(state)
    percent_used = status["percent_used"]
    space = status["cap_space"]
    dead_money_pct = (status["dead_money"] / state.salary_cap) * 100 if state.salary_cap else 0.0

    if status["is_over_cap"]:
        cap_status_description = "Over the cap - must make moves to comply"
        flexibility_rating = "critical"
    elif percent_used > 95:
        cap_status_description = "Very tight cap situation"
        flexibility_rating = "limited"
    elif percent_used > 85:
        cap_status_description = "Limited cap flexibility"
        flexibility_rating = "moderate"
    elif percent_used > 70:
        cap_status_description = "Moderate cap room available"
        flexibility_rating = "good"
    else:
        cap_status_description = "Significant cap space available"
        flexibility_rating = "excellent"

    space_millions = space / 1000
    if space < 0:
        space_description = f"${abs(space_millions):.1f}M over cap"
    elif space < 5000:
        space_description = f"${space_millions:.1f}M available"
    elif space < 20000:
        space_description = f"${space_millions:.0f}M available"
    else:
        space_description = f"${space_millions:.0f}M+ available"

    if dead_money_pct < 1:
        dead_money_description = "Minimal dead money"
    elif dead_money_pct < 5:
        dead_money_description = "Low dead money obligations"
    elif dead_money_pct < 10:
        dead_money_description = "Moderate dead money burden"
    else:
        dead_money_description = "Significant dead money issues"

    return {
        "cap_status_description": cap_status_description,
        "space_description": space_description,
        "dead_money_description": dead_money_description,
        "flexibility_rating": flexibility_rating,
    }
