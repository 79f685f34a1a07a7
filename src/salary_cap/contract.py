"""
Contract Ledger

Value types and pure functions for player contracts:
- Canonical contract offers and conversion from/to legacy contract terms
- Yearly breakdown with evenly prorated guaranteed bonus
- Cap hit, dead money, cap savings and post-June 1 splits
- Year advancement and contract summaries

Contracts are immutable. Every operation that changes a contract returns a
new PlayerContract built with dataclasses.replace().

All money values are in thousands of dollars (80000 = $80M).
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import uuid

from constants.positions import Position, to_position
from shared.money import format_money


logger = logging.getLogger(__name__)


class ContractStatus(Enum):
    """Lifecycle state of a contract."""
    ACTIVE = "active"
    EXPIRED = "expired"
    VOIDED = "voided"
    RESTRUCTURED = "restructured"


class ContractType(Enum):
    """How a contract came to exist."""
    ROOKIE = "rookie"
    VETERAN = "veteran"
    EXTENSION = "extension"
    FRANCHISE_TAG = "franchise_tag"
    TRANSITION_TAG = "transition_tag"


# Experience-indexed league minimum salary (7+ years share the top tier)
MINIMUM_SALARY_BY_EXPERIENCE = {
    0: 795,
    1: 915,
    2: 990,
    3: 1065,
    4: 1145,
    5: 1215,
    6: 1215,
    7: 1215,
}


# ============================================================================
# OFFERS
# ============================================================================

@dataclass(frozen=True)
class ContractOffer:
    """
    Canonical contract offer.

    Attributes:
        years: Playing years offered
        bonus_per_year: Guaranteed (prorated bonus) dollars per year
        salary_per_year: Non-guaranteed salary per year
        no_trade_clause: Whether the player can veto trades
    """

    years: int
    bonus_per_year: int
    salary_per_year: int
    no_trade_clause: bool = False

    def __post_init__(self):
        if not isinstance(self.years, int) or self.years < 1:
            raise ValueError(f"years must be a positive integer, got {self.years}")
        if self.bonus_per_year < 0:
            raise ValueError(f"bonus_per_year must be non-negative, got {self.bonus_per_year}")
        if self.salary_per_year < 0:
            raise ValueError(f"salary_per_year must be non-negative, got {self.salary_per_year}")

    @property
    def aav(self) -> int:
        return self.bonus_per_year + self.salary_per_year

    @property
    def total_value(self) -> int:
        return self.aav * self.years

    @property
    def guaranteed_money(self) -> int:
        return self.bonus_per_year * self.years

    def to_dict(self) -> Dict[str, Any]:
        return {
            "years": self.years,
            "bonus_per_year": self.bonus_per_year,
            "salary_per_year": self.salary_per_year,
            "no_trade_clause": self.no_trade_clause,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractOffer":
        return cls(
            years=data["years"],
            bonus_per_year=data["bonus_per_year"],
            salary_per_year=data["salary_per_year"],
            no_trade_clause=data.get("no_trade_clause", False),
        )


@dataclass(frozen=True)
class LegacyContractTerms:
    """
    Older contract offer shape still produced by some callers.

    Only converted at the boundary; nothing inside the ledger reads it.
    """

    years: int
    total_value: int
    guaranteed_money: int
    signing_bonus: int
    first_year_salary: int
    no_trade_clause: bool = False


def offer_to_legacy_terms(offer: ContractOffer) -> LegacyContractTerms:
    """Express a canonical offer in legacy terms."""
    return LegacyContractTerms(
        years=offer.years,
        total_value=offer.total_value,
        guaranteed_money=offer.guaranteed_money,
        signing_bonus=offer.guaranteed_money,
        first_year_salary=offer.salary_per_year,
        no_trade_clause=offer.no_trade_clause,
    )


def offer_from_legacy_terms(terms: LegacyContractTerms) -> ContractOffer:
    """
    Convert legacy terms to a canonical offer.

    Guaranteed money becomes the evenly prorated bonus; the rest of the
    annual value becomes salary.
    """
    years = max(1, terms.years)
    bonus_per_year = round(terms.guaranteed_money / years)
    salary_per_year = max(0, round(terms.total_value / years) - bonus_per_year)
    return ContractOffer(
        years=years,
        bonus_per_year=bonus_per_year,
        salary_per_year=salary_per_year,
        no_trade_clause=terms.no_trade_clause,
    )


# ============================================================================
# CONTRACT RECORDS
# ============================================================================

@dataclass(frozen=True)
class ContractYear:
    """
    One season of a contract.

    Attributes:
        year: Season year
        bonus: Guaranteed prorated dollars (dead money exposure on release)
        salary: Non-guaranteed salary
        is_void_year: Proration-only year with no playing obligation
    """

    year: int
    bonus: int
    salary: int
    is_void_year: bool = False

    @property
    def cap_hit(self) -> int:
        return self.bonus + self.salary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "bonus": self.bonus,
            "salary": self.salary,
            "cap_hit": self.cap_hit,
            "is_void_year": self.is_void_year,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractYear":
        return cls(
            year=data["year"],
            bonus=data["bonus"],
            salary=data["salary"],
            is_void_year=data.get("is_void_year", False),
        )


@dataclass(frozen=True)
class PlayerContract:
    """
    A player's contract with a team.

    Attributes:
        id: Contract identifier
        player_id: Player identifier
        player_name: Display name
        team_id: Team currently holding the contract
        position: Player position
        status: Lifecycle state
        type: Contract type
        signed_year: First season of the contract
        total_years: Playing years (void years excluded)
        years_remaining: Playing years not yet completed
        total_value: Sum of all cap hits
        guaranteed_money: Sum of all bonus dollars
        yearly_breakdown: Per-season amounts, void years last
        void_years: Number of void years in the breakdown
        has_no_trade_clause: Trade veto
        original_contract_id: Contract this one was derived from
    """

    id: str
    player_id: str
    player_name: str
    team_id: str
    position: Position
    status: ContractStatus
    type: ContractType
    signed_year: int
    total_years: int
    years_remaining: int
    total_value: int
    guaranteed_money: int
    yearly_breakdown: Tuple[ContractYear, ...] = field(default_factory=tuple)
    void_years: int = 0
    has_no_trade_clause: bool = False
    original_contract_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "yearly_breakdown", tuple(self.yearly_breakdown))
        object.__setattr__(self, "position", to_position(self.position))
        if self.total_years < 1:
            raise ValueError(f"total_years must be at least 1, got {self.total_years}")
        if not 0 <= self.years_remaining <= self.total_years:
            raise ValueError(
                f"years_remaining must be within 0-{self.total_years}, got {self.years_remaining}"
            )
        if len(self.yearly_breakdown) < self.total_years:
            raise ValueError("yearly_breakdown must cover every contract year")

    @property
    def average_annual_value(self) -> int:
        return round(self.total_value / self.total_years)

    @property
    def is_active(self) -> bool:
        return self.status == ContractStatus.ACTIVE

    def get_year(self, year: int) -> Optional[ContractYear]:
        """Return the breakdown entry for a season, or None."""
        for contract_year in self.yearly_breakdown:
            if contract_year.year == year:
                return contract_year
        return None

    def playing_years(self) -> List[ContractYear]:
        return [y for y in self.yearly_breakdown if not y.is_void_year]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "team_id": self.team_id,
            "position": self.position.value,
            "status": self.status.value,
            "type": self.type.value,
            "signed_year": self.signed_year,
            "total_years": self.total_years,
            "years_remaining": self.years_remaining,
            "total_value": self.total_value,
            "guaranteed_money": self.guaranteed_money,
            "yearly_breakdown": [y.to_dict() for y in self.yearly_breakdown],
            "void_years": self.void_years,
            "has_no_trade_clause": self.has_no_trade_clause,
            "original_contract_id": self.original_contract_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerContract":
        return cls(
            id=data["id"],
            player_id=data["player_id"],
            player_name=data.get("player_name", ""),
            team_id=data["team_id"],
            position=Position(data["position"]),
            status=ContractStatus(data["status"]),
            type=ContractType(data["type"]),
            signed_year=data["signed_year"],
            total_years=data["total_years"],
            years_remaining=data["years_remaining"],
            total_value=data["total_value"],
            guaranteed_money=data["guaranteed_money"],
            yearly_breakdown=tuple(ContractYear.from_dict(y) for y in data["yearly_breakdown"]),
            void_years=data.get("void_years", 0),
            has_no_trade_clause=data.get("has_no_trade_clause", False),
            original_contract_id=data.get("original_contract_id"),
        )


# ============================================================================
# CREATION
# ============================================================================

def create_contract_id(player_id: str, signed_year: int) -> str:
    return f"contract-{player_id}-{signed_year}-{uuid.uuid4().hex[:8]}"


def calculate_yearly_breakdown(offer: ContractOffer, signed_year: int) -> Tuple[ContractYear, ...]:
    """One equal (bonus, salary) share per offer year starting at signed_year."""
    return tuple(
        ContractYear(
            year=signed_year + i,
            bonus=offer.bonus_per_year,
            salary=offer.salary_per_year,
        )
        for i in range(offer.years)
    )


def create_contract(
    player_id: str,
    player_name: str,
    team_id: str,
    position: Position,
    offer: ContractOffer,
    signed_year: int,
    contract_type: ContractType = ContractType.VETERAN,
    contract_id: Optional[str] = None,
) -> PlayerContract:
    """
    Create an active contract from an offer.

    Args:
        player_id: Player identifier
        player_name: Display name
        team_id: Signing team
        position: Player position
        offer: Canonical offer
        signed_year: First season of the deal
        contract_type: Contract type (default veteran)
        contract_id: Explicit id (generated when omitted)

    Returns:
        PlayerContract with total_value = (bonus + salary) × years and
        guaranteed_money = bonus × years
    """
    contract = PlayerContract(
        id=contract_id or create_contract_id(player_id, signed_year),
        player_id=player_id,
        player_name=player_name,
        team_id=team_id,
        position=to_position(position),
        status=ContractStatus.ACTIVE,
        type=contract_type,
        signed_year=signed_year,
        total_years=offer.years,
        years_remaining=offer.years,
        total_value=offer.total_value,
        guaranteed_money=offer.guaranteed_money,
        yearly_breakdown=calculate_yearly_breakdown(offer, signed_year),
        void_years=0,
        has_no_trade_clause=offer.no_trade_clause,
    )
    logger.debug(
        "Created %s contract %s for %s: %d years, %s total",
        contract_type.value, contract.id, player_id, offer.years, format_money(offer.total_value)
    )
    return contract


def get_minimum_salary(years_experience: int) -> int:
    """League minimum salary for a player's experience (capped at the 7+ tier)."""
    tier = min(max(0, years_experience), 7)
    return MINIMUM_SALARY_BY_EXPERIENCE[tier]


def create_minimum_contract(
    player_id: str,
    player_name: str,
    team_id: str,
    position: Position,
    years_experience: int,
    signed_year: int,
    years: int = 1,
) -> PlayerContract:
    """Create a non-guaranteed league-minimum veteran contract."""
    offer = ContractOffer(
        years=years,
        bonus_per_year=0,
        salary_per_year=get_minimum_salary(years_experience),
    )
    return create_contract(player_id, player_name, team_id, position, offer, signed_year)


# ============================================================================
# LEDGER QUERIES
# ============================================================================

def cap_hit_for_year(contract: PlayerContract, year: int) -> int:
    """Cap hit for a season; 0 when the contract has no entry for it."""
    contract_year = contract.get_year(year)
    return contract_year.cap_hit if contract_year else 0


def dead_money(contract: PlayerContract, year: int) -> int:
    """
    Dead money if the player is released in a season.

    Sum of bonus dollars for every breakdown entry from that season on
    (void years included, each entry counted once).
    """
    return sum(y.bonus for y in contract.yearly_breakdown if y.year >= year)


def cap_savings(contract: PlayerContract, year: int) -> int:
    """Non-guaranteed salary a team avoids by releasing the player in a season."""
    contract_year = contract.get_year(year)
    return contract_year.salary if contract_year else 0


def post_june_1_dead_money(contract: PlayerContract, year: int) -> Dict[str, int]:
    """
    Split dead money across two cap years.

    Returns:
        {'year1': bonus charged this season, 'year2': all later bonus}
    """
    year1 = 0
    year2 = 0
    for contract_year in contract.yearly_breakdown:
        if contract_year.year == year:
            year1 += contract_year.bonus
        elif contract_year.year > year:
            year2 += contract_year.bonus
    return {"year1": year1, "year2": year2}


def contract_end_year(contract: PlayerContract) -> int:
    """Last playing season (void years excluded)."""
    return contract.signed_year + contract.total_years - 1


def is_expiring_contract(contract: PlayerContract) -> bool:
    return contract.is_active and contract.years_remaining == 1


def remaining_contract_years(contract: PlayerContract, year: int) -> List[ContractYear]:
    """Playing years from a season onward, in order."""
    return [y for y in contract.yearly_breakdown if y.year >= year and not y.is_void_year]


# ============================================================================
# LIFECYCLE
# ============================================================================

def advance_year(contract: PlayerContract) -> PlayerContract:
    """
    Move a contract to the next season.

    Always returns a contract. Inactive contracts come back unchanged; an
    active contract whose last year completes comes back with status
    EXPIRED and no years remaining.
    """
    if not contract.is_active:
        return contract

    years_remaining = max(0, contract.years_remaining - 1)
    if years_remaining == 0:
        logger.debug("Contract %s expired", contract.id)
        return replace(contract, years_remaining=0, status=ContractStatus.EXPIRED)
    return replace(contract, years_remaining=years_remaining)


def recompute_totals(contract: PlayerContract) -> PlayerContract:
    """Re-derive total value and guaranteed money from the yearly breakdown."""
    return replace(
        contract,
        total_value=sum(y.cap_hit for y in contract.yearly_breakdown),
        guaranteed_money=sum(y.bonus for y in contract.yearly_breakdown),
    )


def rebuild_breakdown(
    contract: PlayerContract,
    years: Sequence[ContractYear],
    **changes: Any,
) -> PlayerContract:
    """Replace the breakdown (and any other fields) and re-derive totals."""
    updated = replace(contract, yearly_breakdown=tuple(years), **changes)
    return recompute_totals(updated)


# ============================================================================
# SUMMARY & VALIDATION
# ============================================================================

def _status_description(contract: PlayerContract) -> str:
    if contract.status == ContractStatus.ACTIVE:
        return "Expiring" if is_expiring_contract(contract) else "Active"
    return contract.status.value.capitalize()


def get_contract_summary(contract: PlayerContract, current_year: int) -> Dict[str, Any]:
    """
    Display-ready contract summary.

    Returns:
        Dict with formatted total value, guarantee, AAV and current cap hit,
        plus years, years remaining and a status description
    """
    return {
        "total_value": format_money(contract.total_value),
        "guaranteed": format_money(contract.guaranteed_money),
        "aav": format_money(contract.average_annual_value),
        "years": contract.total_years,
        "years_remaining": contract.years_remaining,
        "current_cap_hit": format_money(cap_hit_for_year(contract, current_year)),
        "status_description": _status_description(contract),
    }


def validate_contract(contract: PlayerContract) -> List[str]:
    """
    Check ledger invariants.

    Returns:
        List of violations (empty when the contract is consistent)
    """
    errors = []
    if not contract.id:
        errors.append("Contract id is required")
    if not contract.player_id:
        errors.append("Player id is required")
    if contract.guaranteed_money > contract.total_value:
        errors.append("Guaranteed money exceeds total value")
    if len(contract.yearly_breakdown) < contract.total_years:
        errors.append("Yearly breakdown is shorter than contract length")
    if not 0 <= contract.years_remaining <= contract.total_years:
        errors.append("Years remaining is outside contract length")
    void_count = sum(1 for y in contract.yearly_breakdown if y.is_void_year)
    if void_count != contract.void_years:
        errors.append("Void year count does not match breakdown")
    if sum(y.bonus for y in contract.yearly_breakdown) != contract.guaranteed_money:
        errors.append("Guaranteed money does not match prorated bonus")
    return errors


def is_valid_contract(contract: PlayerContract) -> bool:
    return not validate_contract(contract)
