"""
Contract Generator

Creates contracts for players who do not come through free agency:
- Fresh contracts priced from skill tier, position, age and experience
- Initial-roster contracts at realistic mid-deal stages (rookie deals,
  second contracts, veteran deals, veteran minimums)

Randomized choices use an injected random.Random so seeded generators
reproduce the same rosters.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple
import logging
import random

from config.economy_settings import EconomySettings
from constants.positions import Position, get_position_group, to_position
from .contract import (
    ContractOffer,
    ContractType,
    PlayerContract,
    create_contract,
    get_minimum_salary,
)
from .rookie_scale import RookieScaleCalculator
from .tag_manager import get_franchise_tag_value


# Position value relative to the franchise tag when generating contracts
POSITION_VALUE_MULTIPLIERS: Dict[Position, float] = {
    Position.QB: 1.0,
    Position.DE: 0.92,
    Position.CB: 0.88,
    Position.LT: 0.85,
    Position.WR: 0.82,
    Position.RT: 0.8,
    Position.DT: 0.78,
    Position.OLB: 0.75,
    Position.FS: 0.72,
    Position.SS: 0.72,
    Position.TE: 0.7,
    Position.ILB: 0.68,
    Position.RB: 0.65,
    Position.LG: 0.62,
    Position.RG: 0.62,
    Position.C: 0.6,
    Position.K: 0.35,
    Position.P: 0.32,
}

SKILL_TIER_VALUE_RANGES: Dict[str, Tuple[float, float]] = {
    "elite": (0.85, 1.1),
    "starter": (0.45, 0.7),
    "backup": (0.15, 0.35),
    "fringe": (0.05, 0.15),
}

BASE_YEARS_BY_TIER = {"elite": 4, "starter": 3, "backup": 2, "fringe": 1}
GUARANTEE_BY_TIER = {"elite": 0.6, "starter": 0.45, "backup": 0.3, "fringe": 0.2}

PEAK_AGE_BY_GROUP = {
    "QB": 32, "RB": 26, "WR": 28, "TE": 28, "OL": 30,
    "DL": 28, "LB": 27, "DB": 27, "ST": 32,
}


@dataclass(frozen=True)
class RosterPlayer:
    """
    Player record consumed by the generator.

    draft_round 0 means undrafted; draft_pick is the overall pick.
    """

    player_id: str
    name: str
    position: Position
    age: int
    experience: int
    overall: int
    draft_round: int = 0
    draft_pick: int = 0


class ContractGenerator:
    """
    Generates contracts for roster players.

    Initial-roster distribution:
    - Drafted players with 0-3 years: rookie scale deals
    - 4-7 years: second contracts (fringe players often on minimums)
    - 8+ years: shorter veteran deals
    - Undrafted young players and many depth veterans: veteran minimums
    """

    ELITE_RATING = 85
    STARTER_RATING = 70
    BACKUP_RATING = 58

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        salary_cap: int = EconomySettings.DEFAULT_SALARY_CAP
    ):
        """
        Args:
            rng: Random source (seed it for reproducible rosters)
            salary_cap: League cap used for the rookie wage scale
        """
        self.rng = rng or random.Random()
        self.rookie_scale = RookieScaleCalculator(salary_cap)
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # PRICING
    # ========================================================================

    def determine_skill_tier(self, overall: int) -> str:
        if overall >= self.ELITE_RATING:
            return "elite"
        if overall >= self.STARTER_RATING:
            return "starter"
        if overall >= self.BACKUP_RATING:
            return "backup"
        return "fringe"

    def get_contract_years(self, skill_tier: str, age: int, position: Position) -> int:
        """Tier-based length, shortened for players past peak."""
        years = BASE_YEARS_BY_TIER.get(skill_tier, 2)
        peak_age = PEAK_AGE_BY_GROUP.get(get_position_group(position), 28)

        if age > peak_age + 3:
            years = min(years, 2)
        elif age > peak_age + 1:
            years = min(years, 3)

        if age < peak_age - 2 and skill_tier == "elite":
            years = min(years + 1, 5)

        return max(1, years)

    def calculate_contract_value(
        self,
        position: Position,
        skill_tier: str,
        age: int,
        experience: int,
        year: int
    ) -> ContractOffer:
        """
        Price a contract.

        Formula:
            AAV = tag value × position multiplier × tier midpoint × age factor,
            floored at the minimum salary and split into bonus/salary by tier
        """
        position = to_position(position)
        franchise_value = get_franchise_tag_value(position, 1, year)
        tier_min, tier_max = SKILL_TIER_VALUE_RANGES.get(skill_tier, SKILL_TIER_VALUE_RANGES["fringe"])
        base_aav = round(franchise_value * POSITION_VALUE_MULTIPLIERS[position] * (tier_min + tier_max) / 2)

        peak_age = PEAK_AGE_BY_GROUP.get(get_position_group(position), 28)
        age_multiplier = 1.0
        if age > peak_age + 2:
            age_multiplier = max(0.7, 1 - (age - peak_age - 2) * 0.08)
        elif age < peak_age - 2:
            age_multiplier = 1.05

        aav = max(round(base_aav * age_multiplier), get_minimum_salary(experience))
        years = self.get_contract_years(skill_tier, age, position)
        bonus_per_year = round(aav * GUARANTEE_BY_TIER.get(skill_tier, 0.2))

        return ContractOffer(
            years=years,
            bonus_per_year=bonus_per_year,
            salary_per_year=aav - bonus_per_year,
            no_trade_clause=skill_tier == "elite" and years >= 4,
        )

    # ========================================================================
    # FRESH CONTRACTS
    # ========================================================================

    def generate_player_contract(self, player: RosterPlayer, team_id: str, year: int) -> PlayerContract:
        skill_tier = self.determine_skill_tier(player.overall)
        offer = self.calculate_contract_value(
            player.position, skill_tier, player.age, player.experience, year
        )
        contract_type = ContractType.VETERAN
        if player.experience <= 3 and player.draft_round > 0:
            contract_type = ContractType.ROOKIE
        return create_contract(
            player.player_id, player.name, team_id, player.position, offer, year, contract_type
        )

    def generate_roster_contracts(
        self,
        players: List[RosterPlayer],
        team_id: str,
        year: int
    ) -> Dict[str, PlayerContract]:
        contracts = {}
        for player in players:
            contract = self.generate_player_contract(player, team_id, year)
            contracts[contract.id] = contract
        return contracts

    # ========================================================================
    # INITIAL ROSTERS
    # ========================================================================

    def determine_initial_category(self, player: RosterPlayer, skill_tier: str) -> str:
        """rookie_deal, second_contract, veteran_deal or veteran_minimum."""
        if player.experience <= 3:
            return "rookie_deal" if player.draft_round > 0 else "veteran_minimum"

        if player.experience <= 7:
            if skill_tier == "fringe":
                return "veteran_minimum" if self.rng.random() < 0.6 else "veteran_deal"
            return "second_contract"

        if skill_tier in ("fringe", "backup"):
            return "veteran_minimum" if self.rng.random() < 0.4 else "veteran_deal"
        return "veteran_deal"

    def _rookie_deal(self, player: RosterPlayer, team_id: str, year: int) -> PlayerContract:
        overall_pick = player.draft_pick or self.rng.randint(33, RookieScaleCalculator.LAST_PICK)
        offer = self.rookie_scale.get_slot_values(overall_pick).to_offer()
        contract = create_contract(
            player.player_id, player.name, team_id, player.position,
            offer, year - player.experience, ContractType.ROOKIE
        )
        return replace(contract, years_remaining=max(1, offer.years - player.experience))

    def _mid_deal(
        self,
        player: RosterPlayer,
        team_id: str,
        year: int,
        skill_tier: str,
        contract_type: ContractType
    ) -> PlayerContract:
        offer = self.calculate_contract_value(
            player.position, skill_tier, player.age, player.experience, year
        )
        total_years = offer.years
        if contract_type == ContractType.EXTENSION:
            max_years_into = min(total_years - 1, max(0, player.experience - 3))
        else:
            total_years = min(total_years, 4 if skill_tier == "elite" else 3)
            max_years_into = max(0, total_years - 1)

        years_into = self.rng.randint(0, max(0, max_years_into))
        offer = replace(
            offer,
            years=total_years,
            no_trade_clause=skill_tier == "elite" and total_years >= 4,
        )
        contract = create_contract(
            player.player_id, player.name, team_id, player.position,
            offer, year - years_into, contract_type
        )
        return replace(contract, years_remaining=total_years - years_into)

    def _veteran_minimum(self, player: RosterPlayer, team_id: str, year: int) -> PlayerContract:
        total_years = self.rng.randint(1, 2)
        years_into = self.rng.randint(0, 1) if total_years > 1 else 0
        offer = ContractOffer(
            years=total_years,
            bonus_per_year=0,
            salary_per_year=get_minimum_salary(player.experience),
        )
        contract = create_contract(
            player.player_id, player.name, team_id, player.position,
            offer, year - years_into, ContractType.VETERAN
        )
        return replace(contract, years_remaining=total_years - years_into)

    def generate_initial_roster_contracts(
        self,
        players: List[RosterPlayer],
        team_id: str,
        year: int
    ) -> Dict[str, PlayerContract]:
        """
        Contracts for a new game's roster, each at a realistic stage.

        Returns:
            Dict of contract id → contract
        """
        contracts = {}
        for player in players:
            skill_tier = self.determine_skill_tier(player.overall)
            category = self.determine_initial_category(player, skill_tier)

            if category == "rookie_deal":
                contract = self._rookie_deal(player, team_id, year)
            elif category == "second_contract":
                contract = self._mid_deal(player, team_id, year, skill_tier, ContractType.EXTENSION)
            elif category == "veteran_deal":
                contract = self._mid_deal(player, team_id, year, skill_tier, ContractType.VETERAN)
            else:
                contract = self._veteran_minimum(player, team_id, year)

            contracts[contract.id] = contract

        self.logger.debug("Generated %d initial contracts for team %s", len(contracts), team_id)
        return contracts
