"""
Offer Evaluation

Contract offers judged from the player's side of the table:
- Expectations from rating tier, age against the positional peak and
  the franchise tag for the position
- Weighted scoring where guaranteed bonus counts more than salary
- Minimum bonus and minimum total thresholds
- Suggestions for improving an offer

Guaranteed money is what a player actually keeps if he is cut, so older
and elite players ask for a larger guaranteed share.

All money values are in thousands of dollars.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Union

from constants.positions import Position, get_position_group
from shared.money import format_money
from .contract import ContractOffer
from .extension_manager import FlexibilityLevel
from .tag_manager import get_franchise_tag_value


class OfferInterest(Enum):
    VERY_INTERESTED = "very_interested"
    INTERESTED = "interested"
    LUKEWARM = "lukewarm"
    NOT_INTERESTED = "not_interested"
    INSULTED = "insulted"


# Score weights; bonus + salary + years = 1.0
BONUS_WEIGHT = 0.55
SALARY_WEIGHT = 0.25
YEARS_WEIGHT = 0.20

PEAK_AGES: Dict[str, int] = {
    "QB": 32,
    "RB": 26,
    "WR": 28,
    "TE": 28,
    "OL": 30,
    "DL": 28,
    "LB": 27,
    "DB": 27,
    "ST": 32,
}

# (rating floor, share of franchise tag, guaranteed share, flexibility)
EXPECTATION_TIERS = [
    (90, 0.95, 0.60, FlexibilityLevel.RIGID),
    (80, 0.75, 0.50, FlexibilityLevel.MODERATE),
    (70, 0.55, 0.45, FlexibilityLevel.MODERATE),
    (60, 0.35, 0.35, FlexibilityLevel.FLEXIBLE),
    (0, 0.15, 0.25, FlexibilityLevel.FLEXIBLE),
]

FLEXIBILITY_BONUS = {
    FlexibilityLevel.FLEXIBLE: 15,
    FlexibilityLevel.MODERATE: 5,
    FlexibilityLevel.RIGID: 0,
}

# (minimum likelihood, interest, response)
INTEREST_BANDS = [
    (90, OfferInterest.VERY_INTERESTED, "Player is eager to sign. Deal likely to be accepted."),
    (70, OfferInterest.INTERESTED,
     "Player likes the offer. May accept or counter for small improvements."),
    (50, OfferInterest.LUKEWARM, "Player is considering it. Likely to counter with higher demands."),
    (25, OfferInterest.NOT_INTERESTED, "Offer is below expectations. Need significant improvements."),
    (0, OfferInterest.INSULTED, "Offer is insulting. Player may refuse to negotiate."),
]


@dataclass(frozen=True)
class PlayerExpectations:
    """What a player asks for per year, and the floor he will not go under."""

    expected_bonus_per_year: int
    expected_salary_per_year: int
    expected_years: int
    minimum_bonus_per_year: int
    minimum_total_per_year: int
    flexibility: FlexibilityLevel

    @property
    def expected_total_per_year(self) -> int:
        return self.expected_bonus_per_year + self.expected_salary_per_year

    @property
    def guarantee_pct(self) -> float:
        total = self.expected_total_per_year
        return self.expected_bonus_per_year / total if total else 0.0


@dataclass(frozen=True)
class OfferFactors:
    """Component scores, each 0-100."""

    bonus_score: int
    salary_score: int
    years_score: int
    total_score: int


@dataclass(frozen=True)
class OfferEvaluation:
    interest_level: OfferInterest
    acceptance_likelihood: int
    perceived_value: int
    market_comparison: int
    factors: OfferFactors
    meets_minimums: bool
    response_hint: str


def get_peak_age(position: Union[Position, str]) -> int:
    return PEAK_AGES.get(get_position_group(position), 28)


def calculate_player_expectations(
    position: Union[Position, str],
    overall_rating: int,
    age: int,
    experience: int,
    year: int
) -> PlayerExpectations:
    """
    Per-year asks for a player.

    base AAV = franchise tag × tier share × age multiplier, where the age
    multiplier is 0.70 beyond peak + 3 (guaranteed share +10%), 0.85
    beyond peak + 1 (+5%) and 1.05 before peak - 2. Minimums are 75% of
    the expected bonus and 80% of the base AAV.

    experience is accepted for callers that have it; the current tiers
    do not use it.
    """
    franchise_value = get_franchise_tag_value(position, 1, year)
    peak_age = get_peak_age(position)

    for floor, tier_multiplier, guarantee_pct, flexibility in EXPECTATION_TIERS:
        if overall_rating >= floor:
            break

    age_multiplier = 1.0
    if age > peak_age + 3:
        age_multiplier = 0.70
        guarantee_pct += 0.10
    elif age > peak_age + 1:
        age_multiplier = 0.85
        guarantee_pct += 0.05
    elif age < peak_age - 2:
        age_multiplier = 1.05

    base_aav = round(franchise_value * tier_multiplier * age_multiplier)

    if age > peak_age + 2:
        expected_years = 2
    elif age > peak_age:
        expected_years = 3
    elif overall_rating >= 85:
        expected_years = 4
    else:
        expected_years = 3

    expected_bonus = round(base_aav * guarantee_pct)
    return PlayerExpectations(
        expected_bonus_per_year=expected_bonus,
        expected_salary_per_year=base_aav - expected_bonus,
        expected_years=expected_years,
        minimum_bonus_per_year=round(expected_bonus * 0.75),
        minimum_total_per_year=round(base_aav * 0.80),
        flexibility=flexibility,
    )


def _score(offered: float, expected: float) -> float:
    if expected <= 0:
        return 100.0
    return min(100.0, offered / expected * 100)


def evaluate_contract_offer(offer: ContractOffer, expectations: PlayerExpectations) -> OfferEvaluation:
    """
    Player's reaction to an offer.

    total score = 0.55 × bonus score + 0.25 × salary score + 0.20 × years
    score. An offer under either minimum keeps only 30% of its score;
    otherwise the flexibility bonus (15 flexible, 5 moderate) is added,
    capped at 100. Perceived value weighs bonus at 1.5 and salary at 0.8.
    """
    offer_total = offer.bonus_per_year + offer.salary_per_year

    bonus_score = _score(offer.bonus_per_year, expectations.expected_bonus_per_year)
    salary_score = _score(offer.salary_per_year, expectations.expected_salary_per_year)
    years_score = _score(offer.years, expectations.expected_years)
    total_score = (
        bonus_score * BONUS_WEIGHT
        + salary_score * SALARY_WEIGHT
        + years_score * YEARS_WEIGHT
    )

    meets_bonus_min = offer.bonus_per_year >= expectations.minimum_bonus_per_year
    meets_total_min = offer_total >= expectations.minimum_total_per_year

    if meets_bonus_min and meets_total_min:
        likelihood = min(100.0, total_score + FLEXIBILITY_BONUS[expectations.flexibility])
    else:
        likelihood = max(0.0, total_score * 0.3)

    for floor, interest_level, response_hint in INTEREST_BANDS:
        if likelihood >= floor:
            break

    if meets_total_min and not meets_bonus_min:
        response_hint = (
            "Player wants more guaranteed money (bonus). "
            "The salary is okay but they need security."
        )
    elif not meets_total_min and bonus_score > salary_score:
        response_hint = "Overall value is too low. Increase both bonus and salary."

    return OfferEvaluation(
        interest_level=interest_level,
        acceptance_likelihood=round(likelihood),
        perceived_value=round(offer.bonus_per_year * 1.5 + offer.salary_per_year * 0.8),
        market_comparison=round(_score(offer_total, expectations.expected_total_per_year)),
        factors=OfferFactors(
            bonus_score=round(bonus_score),
            salary_score=round(salary_score),
            years_score=round(years_score),
            total_score=round(total_score),
        ),
        meets_minimums=meets_bonus_min and meets_total_min,
        response_hint=response_hint,
    )


def suggest_offer_improvements(
    offer: ContractOffer,
    expectations: PlayerExpectations,
    evaluation: OfferEvaluation
) -> List[str]:
    """Changes that would move the player, bonus first."""
    suggestions = []
    factors = evaluation.factors

    if factors.bonus_score < 80:
        increase = expectations.expected_bonus_per_year - offer.bonus_per_year
        if increase > 0:
            suggestions.append(f"Increase guaranteed bonus by ~{format_money(increase)}/year")

    if evaluation.market_comparison < 85:
        suggestions.append("Offer is below market value - increase total compensation")

    if factors.years_score < 80 and offer.years < expectations.expected_years:
        suggestions.append(f"Consider adding {expectations.expected_years - offer.years} more year(s)")

    if factors.bonus_score >= 80 and factors.salary_score < 70:
        suggestions.append("Non-guaranteed salary portion could be higher")

    if not suggestions and evaluation.acceptance_likelihood >= 85:
        suggestions.append("Offer looks strong - player likely to accept")

    return suggestions


def describe_player_priorities(expectations: PlayerExpectations) -> List[str]:
    priorities = []
    if expectations.guarantee_pct >= 0.55:
        priorities.append("Heavily prioritizes guaranteed money")
    elif expectations.guarantee_pct >= 0.45:
        priorities.append("Values guaranteed money highly")
    else:
        priorities.append("Balance of guaranteed and total value")

    if expectations.flexibility == FlexibilityLevel.RIGID:
        priorities.append("Unlikely to negotiate - take it or leave it")
    elif expectations.flexibility == FlexibilityLevel.FLEXIBLE:
        priorities.append("Willing to negotiate and find middle ground")
    return priorities
