"""
Extension Manager

Contract extensions and extension negotiations:
- Appending new years to an active contract
- Internal player valuation (market tier, AAV, years, guarantees)
- Personality-driven player demands
- Offer evaluation with counter offers
- Recommended offers and display summaries

Valuations and demands are engine-only data; only summaries are shown.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import logging

from config.economy_settings import EconomySettings
from constants.positions import Position, is_premium_position, to_position
from shared.money import format_money
from shared.operation_result import ContractErrorCode, OperationResult
from .contract import (
    ContractOffer,
    ContractStatus,
    ContractType,
    ContractYear,
    PlayerContract,
    contract_end_year,
    get_minimum_salary,
    rebuild_breakdown,
)
from .tag_manager import get_franchise_tag_value


class MarketTier(Enum):
    ELITE = "elite"
    PREMIUM = "premium"
    STARTER = "starter"
    QUALITY = "quality"
    DEPTH = "depth"
    MINIMUM = "minimum"


class FlexibilityLevel(Enum):
    RIGID = "rigid"
    MODERATE = "moderate"
    FLEXIBLE = "flexible"


# (adjusted rating floor, share of franchise tag min, max)
MARKET_TIERS = [
    (MarketTier.ELITE, 90, 1.0, 1.25),
    (MarketTier.PREMIUM, 80, 0.85, 1.0),
    (MarketTier.STARTER, 70, 0.65, 0.85),
    (MarketTier.QUALITY, 60, 0.45, 0.65),
    (MarketTier.DEPTH, 50, 0.25, 0.45),
    (MarketTier.MINIMUM, 40, 0.0, 0.25),
]

GUARANTEE_RANGES = {
    MarketTier.ELITE: (0.5, 0.7),
    MarketTier.PREMIUM: (0.4, 0.55),
    MarketTier.STARTER: (0.3, 0.45),
    MarketTier.QUALITY: (0.2, 0.35),
    MarketTier.DEPTH: (0.1, 0.25),
    MarketTier.MINIMUM: (0.0, 0.15),
}

YEARS_BY_TIER = {
    MarketTier.ELITE: (4, 6),
    MarketTier.PREMIUM: (3, 5),
    MarketTier.STARTER: (3, 4),
    MarketTier.QUALITY: (2, 3),
    MarketTier.DEPTH: (1, 2),
    MarketTier.MINIMUM: (1, 1),
}

RECOMMENDED_GUARANTEE = {
    MarketTier.ELITE: 0.60,
    MarketTier.PREMIUM: 0.50,
    MarketTier.STARTER: 0.45,
    MarketTier.QUALITY: 0.35,
    MarketTier.DEPTH: 0.25,
    MarketTier.MINIMUM: 0.20,
}

ACCEPTANCE_THRESHOLDS = {
    FlexibilityLevel.FLEXIBLE: 0.80,
    FlexibilityLevel.MODERATE: 0.88,
    FlexibilityLevel.RIGID: 0.95,
}


@dataclass(frozen=True)
class PlayerValuation:
    """Engine-side estimate of what a player would sign for."""

    player_id: str
    position: Position
    age: int
    experience: int
    overall_rating: int
    market_tier: MarketTier
    estimated_aav: int
    estimated_years: int
    estimated_guaranteed: int
    confidence_level: float


@dataclass(frozen=True)
class PlayerPersonality:
    """Negotiation traits, each 0-100."""

    greedy: int = 50
    loyal: int = 50
    competitive: int = 50


@dataclass(frozen=True)
class PlayerDemands:
    player_id: str
    minimum_years: int
    minimum_aav: int
    minimum_guaranteed: int
    preferred_years: int
    preferred_aav: int
    preferred_guaranteed: int
    no_trade_clause: bool
    no_tag_clause: bool
    flexibility_level: FlexibilityLevel
    willing_to_take_less_to_contend: bool

    @property
    def preferred_guarantee_pct(self) -> float:
        denominator = self.preferred_aav * self.preferred_years
        return self.preferred_guaranteed / denominator if denominator else 0.0


@dataclass(frozen=True)
class NegotiationResult:
    accepted: bool
    counter_offer: Optional[ContractOffer]
    player_response: str
    negotiation_round: int
    closeness: float


@dataclass(frozen=True)
class ExtensionOutcome:
    contract: PlayerContract
    years_added: int
    new_money_added: int


class ExtensionManager:
    """
    Extends contracts and negotiates extensions.

    Key Rules:
    - Only active contracts can be extended, by 1-5 years
    - New years start after the contract's last playing season
    - New bonus dollars are prorated across remaining + new years
    - Contracts in their final two years (excluding tags) are eligible
    """

    GREEDY_RIGID_THRESHOLD = 70
    GREEDY_MILD_THRESHOLD = 50
    LOYAL_FLEXIBLE_THRESHOLD = 60
    COMPETITIVE_DISCOUNT_THRESHOLD = 70

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # VALUATION
    # ========================================================================

    def determine_market_tier(self, overall_rating: int, position: Union[Position, str]) -> MarketTier:
        """Non-premium positions get +3 on the rating before the tier lookup."""
        adjusted = overall_rating if is_premium_position(position) else overall_rating + 3
        for tier, floor, _, _ in MARKET_TIERS[:-1]:
            if adjusted >= floor:
                return tier
        return MarketTier.MINIMUM

    def _expected_years(self, tier: MarketTier, age: int) -> tuple:
        min_years, max_years = YEARS_BY_TIER[tier]
        if age >= 32:
            return 1, min(2, max_years)
        if age >= 30:
            return min(2, min_years), min(3, max_years)
        if age >= 28:
            return min_years, min(4, max_years)
        return min_years, max_years

    def calculate_extension_value(
        self,
        position: Union[Position, str],
        overall_rating: int,
        age: int,
        experience: int,
        current_year: int,
        player_id: str = ""
    ) -> PlayerValuation:
        """
        Estimate a player's extension value.

        AAV = franchise tag × tier share (interpolated within the tier),
        discounted for age and floored at the minimum salary.
        """
        position = to_position(position)
        tier = self.determine_market_tier(overall_rating, position)
        adjusted = overall_rating if is_premium_position(position) else overall_rating + 3

        _, floor, pct_min, pct_max = next(t for t in MARKET_TIERS if t[0] == tier)
        within_tier = min(1.0, max(0.0, (adjusted - floor) / 10))
        aav_pct = pct_min + (pct_max - pct_min) * within_tier
        estimated_aav = round(get_franchise_tag_value(position, 1, current_year) * aav_pct)

        if age >= 32:
            estimated_aav = round(estimated_aav * 0.75)
        elif age >= 30:
            estimated_aav = round(estimated_aav * 0.85)
        elif age >= 28:
            estimated_aav = round(estimated_aav * 0.95)

        estimated_aav = max(estimated_aav, get_minimum_salary(experience))

        min_years, max_years = self._expected_years(tier, age)
        estimated_years = round((min_years + max_years) / 2)

        guarantee_min, guarantee_max = GUARANTEE_RANGES[tier]
        guarantee_pct = (guarantee_min + guarantee_max) / 2

        return PlayerValuation(
            player_id=player_id,
            position=position,
            age=age,
            experience=experience,
            overall_rating=overall_rating,
            market_tier=tier,
            estimated_aav=estimated_aav,
            estimated_years=estimated_years,
            estimated_guaranteed=round(estimated_aav * estimated_years * guarantee_pct),
            confidence_level=min(1.0, 0.5 + experience * 0.1),
        )

    def generate_player_demands(
        self,
        valuation: PlayerValuation,
        personality: PlayerPersonality
    ) -> PlayerDemands:
        """
        Turn a valuation into asking terms.

        Greedy players (>70) ask 15% more AAV and 20% more guarantees and
        are rigid; mildly greedy (>50) ask 5% more; loyal (>60) are flexible.
        Minimums are 85% of AAV, 75% of guarantees and one year fewer.
        """
        preferred_aav = valuation.estimated_aav
        preferred_years = valuation.estimated_years
        preferred_guaranteed = valuation.estimated_guaranteed

        if personality.greedy > self.GREEDY_RIGID_THRESHOLD:
            preferred_aav = round(preferred_aav * 1.15)
            preferred_guaranteed = round(preferred_guaranteed * 1.2)
        elif personality.greedy > self.GREEDY_MILD_THRESHOLD:
            preferred_aav = round(preferred_aav * 1.05)

        if personality.greedy > self.GREEDY_RIGID_THRESHOLD:
            flexibility = FlexibilityLevel.RIGID
        elif personality.loyal > self.LOYAL_FLEXIBLE_THRESHOLD:
            flexibility = FlexibilityLevel.FLEXIBLE
        else:
            flexibility = FlexibilityLevel.MODERATE

        return PlayerDemands(
            player_id=valuation.player_id,
            minimum_years=max(1, preferred_years - 1),
            minimum_aav=round(preferred_aav * 0.85),
            minimum_guaranteed=round(preferred_guaranteed * 0.75),
            preferred_years=preferred_years,
            preferred_aav=preferred_aav,
            preferred_guaranteed=preferred_guaranteed,
            no_trade_clause=valuation.market_tier in (MarketTier.ELITE, MarketTier.PREMIUM),
            no_tag_clause=valuation.market_tier == MarketTier.ELITE,
            flexibility_level=flexibility,
            willing_to_take_less_to_contend=personality.competitive > self.COMPETITIVE_DISCOUNT_THRESHOLD,
        )

    # ========================================================================
    # NEGOTIATION
    # ========================================================================

    def evaluate_offer(self, offer: ContractOffer, demands: PlayerDemands) -> NegotiationResult:
        """
        Player response to an extension offer.

        closeness = 0.35 × AAV ratio + 0.15 × years ratio + 0.50 × guarantee ratio
        (each capped at 1). Offers below any minimum get the player's
        preferred terms back; offers above the minimums are accepted when
        closeness reaches the flexibility threshold, otherwise countered
        halfway between the offer and the preferred terms.
        """
        offer_aav = offer.aav
        offer_guaranteed = offer.guaranteed_money

        aav_score = min(1.0, offer_aav / demands.preferred_aav) if demands.preferred_aav else 1.0
        years_score = min(1.0, offer.years / demands.preferred_years) if demands.preferred_years else 1.0
        guaranteed_score = (
            min(1.0, offer_guaranteed / demands.preferred_guaranteed)
            if demands.preferred_guaranteed else 1.0
        )
        closeness = aav_score * 0.35 + years_score * 0.15 + guaranteed_score * 0.50

        meets_aav = offer_aav >= demands.minimum_aav
        meets_years = offer.years >= demands.minimum_years
        meets_guaranteed = offer_guaranteed >= demands.minimum_guaranteed
        guarantee_pct = demands.preferred_guarantee_pct

        if not (meets_aav and meets_years and meets_guaranteed):
            counter_bonus = round(demands.preferred_aav * guarantee_pct)
            counter = ContractOffer(
                years=demands.preferred_years,
                bonus_per_year=counter_bonus,
                salary_per_year=demands.preferred_aav - counter_bonus,
                no_trade_clause=demands.no_trade_clause,
            )
            if not meets_guaranteed:
                response = "We need more guaranteed money (bonus) to provide security."
            elif not meets_aav:
                response = "The offer is well below market value. We need significantly more."
            else:
                response = "The contract length doesn't meet our requirements."
            return NegotiationResult(False, counter, response, 1, closeness)

        if closeness >= ACCEPTANCE_THRESHOLDS[demands.flexibility_level]:
            return NegotiationResult(
                True, None, "We're happy with the terms. Let's finalize the deal.", 1, closeness
            )

        counter = ContractOffer(
            years=max(1, round((offer.years + demands.preferred_years) / 2)),
            bonus_per_year=round((offer.bonus_per_year + demands.preferred_aav * guarantee_pct) / 2),
            salary_per_year=round(
                (offer.salary_per_year + demands.preferred_aav * (1 - guarantee_pct)) / 2
            ),
            no_trade_clause=demands.no_trade_clause or offer.no_trade_clause,
        )
        return NegotiationResult(
            False, counter, "We're close, but need more guaranteed money.", 1, closeness
        )

    def calculate_recommended_offer(
        self,
        valuation: PlayerValuation,
        target_years: int = 3
    ) -> ContractOffer:
        """Offer at the estimated AAV with a tier-based guaranteed share."""
        bonus_per_year = round(valuation.estimated_aav * RECOMMENDED_GUARANTEE[valuation.market_tier])
        return ContractOffer(
            years=target_years,
            bonus_per_year=bonus_per_year,
            salary_per_year=valuation.estimated_aav - bonus_per_year,
            no_trade_clause=valuation.market_tier == MarketTier.ELITE,
        )

    # ========================================================================
    # EXTENSION
    # ========================================================================

    def get_extension_eligible(self, contracts: List[PlayerContract]) -> List[PlayerContract]:
        """Active, non-tag contracts with two or fewer years left."""
        return [
            c for c in contracts
            if c.status == ContractStatus.ACTIVE
            and c.years_remaining <= 2
            and c.type not in (ContractType.FRANCHISE_TAG, ContractType.TRANSITION_TAG)
        ]

    def extend_contract(
        self,
        contract: PlayerContract,
        offer: ContractOffer,
        current_year: int
    ) -> OperationResult[ExtensionOutcome]:
        """
        Add offer.years new seasons to an active contract.

        New seasons start the year after the current last playing season
        and carry offer.salary_per_year. The new bonus dollars
        (offer.bonus_per_year × new years) are spread evenly over the
        remaining and new playing years. Existing void years move behind
        the new last season.
        """
        if contract.status != ContractStatus.ACTIVE:
            return OperationResult.fail(
                ContractErrorCode.CONTRACT_NOT_ACTIVE,
                "Can only extend active contracts"
            )

        if contract.years_remaining <= 0:
            return OperationResult.fail(
                ContractErrorCode.NO_YEARS_REMAINING,
                "Contract has no years remaining"
            )

        new_years = offer.years
        if new_years < 1 or new_years > EconomySettings.MAX_EXTENSION_YEARS:
            return OperationResult.fail(ContractErrorCode.INVALID_YEARS, "Extension must be 1-5 years")

        past_years = [y for y in contract.yearly_breakdown if y.year < current_year and not y.is_void_year]
        remaining_years = [
            y for y in contract.yearly_breakdown if y.year >= current_year and not y.is_void_year
        ]
        void_years = [y for y in contract.yearly_breakdown if y.is_void_year]

        new_bonus_total = offer.bonus_per_year * new_years
        share = round(new_bonus_total / (len(remaining_years) + new_years))

        start_year = contract_end_year(contract) + 1
        breakdown = list(past_years)
        breakdown.extend(
            ContractYear(year=y.year, bonus=y.bonus + share, salary=y.salary)
            for y in remaining_years
        )
        breakdown.extend(
            ContractYear(year=start_year + i, bonus=share, salary=offer.salary_per_year)
            for i in range(new_years)
        )
        breakdown.extend(
            ContractYear(year=y.year + new_years, bonus=y.bonus, salary=y.salary, is_void_year=True)
            for y in void_years
        )

        extended = rebuild_breakdown(
            contract,
            breakdown,
            id=f"{contract.id}-ext-{current_year}",
            type=ContractType.EXTENSION,
            total_years=contract.total_years + new_years,
            years_remaining=contract.years_remaining + new_years,
            has_no_trade_clause=contract.has_no_trade_clause or offer.no_trade_clause,
            original_contract_id=contract.original_contract_id or contract.id,
        )

        new_money = offer.aav * new_years
        self.logger.info(
            "Extended %s by %d years (%s new money)",
            contract.id, new_years, format_money(new_money)
        )
        return OperationResult.ok(ExtensionOutcome(
            contract=extended,
            years_added=new_years,
            new_money_added=new_money,
        ))

    def get_extension_summary(self, contract: PlayerContract, offer: ContractOffer) -> Dict[str, Any]:
        """Display-ready description of a proposed extension."""
        first_remaining_year = contract.signed_year + contract.total_years - contract.years_remaining
        current_remaining = sum(
            y.cap_hit for y in contract.yearly_breakdown if y.year >= first_remaining_year
        )
        new_total_years = contract.years_remaining + offer.years
        new_total_value = contract.total_value + offer.aav * offer.years
        new_aav = round(new_total_value / new_total_years) if new_total_years else 0

        return {
            "current_contract_remaining": format_money(current_remaining),
            "proposed_new_money": format_money(offer.aav * offer.years),
            "proposed_new_years": offer.years,
            "new_total_years": new_total_years,
            "new_aav": format_money(new_aav),
            "bonus_per_year": format_money(offer.bonus_per_year),
            "salary_per_year": format_money(offer.salary_per_year),
            "cap_impact_description": (
                f"{format_money(offer.bonus_per_year)}/yr guaranteed, "
                f"{format_money(offer.salary_per_year)}/yr non-guaranteed"
            ),
        }
