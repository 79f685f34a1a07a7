"""
Restructure Calculator

Salary-to-bonus conversions and pay cuts.

A restructure turns current-year salary into guaranteed bonus and spreads
that bonus evenly over the remaining playing years plus any void years
added. The team gains cap space now and pays it back in later years (and
in dead money if the player is released).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List
import logging

from config.economy_settings import EconomySettings
from shared.money import format_money
from shared.operation_result import ContractErrorCode, OperationResult
from .contract import (
    ContractStatus,
    ContractYear,
    PlayerContract,
    cap_hit_for_year,
    contract_end_year,
    rebuild_breakdown,
)


class RestructureType(Enum):
    CONVERT_SALARY = "convert_salary"
    PAY_CUT = "pay_cut"


@dataclass(frozen=True)
class RestructureDetails:
    """
    What a restructure or pay cut changed.

    Attributes:
        type: Conversion or pay cut
        amount_converted: Salary moved into bonus
        new_void_years: Void years appended
        pay_cut_amount: Current-year salary given up
        current_year_savings: Cap space created this year
        future_year_impact: Added cap hit per later proration year
        total_future_impact: Sum of future_year_impact
        dead_money_risk: Added dead money exposure if released
    """

    type: RestructureType
    amount_converted: int = 0
    new_void_years: int = 0
    pay_cut_amount: int = 0
    current_year_savings: int = 0
    future_year_impact: List[int] = field(default_factory=list)
    total_future_impact: int = 0
    dead_money_risk: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "amount_converted": self.amount_converted,
            "new_void_years": self.new_void_years,
            "pay_cut_amount": self.pay_cut_amount,
            "current_year_savings": self.current_year_savings,
            "future_year_impact": list(self.future_year_impact),
            "total_future_impact": self.total_future_impact,
            "dead_money_risk": self.dead_money_risk,
        }


@dataclass(frozen=True)
class RestructureOutcome:
    contract: PlayerContract
    details: RestructureDetails


@dataclass(frozen=True)
class RestructurePreview:
    """Projected cap effect of a restructure before committing to it."""

    original_cap_hit: int
    new_cap_hit: int
    cap_savings: int
    future_impact: List[Dict[str, int]]
    is_recommended: bool
    recommendation: str


def calculate_proration(amount: int, years_remaining: int, void_years_to_add: int = 0) -> List[int]:
    """
    Split a converted amount into equal rounded shares.

    The rounding remainder lands on the last share so the shares always
    sum to amount.

    Returns:
        One share per remaining playing year plus one per void year added
    """
    total_years = years_remaining + void_years_to_add
    if total_years <= 0:
        return []
    share = round(amount / total_years)
    shares = [share] * total_years
    shares[-1] += amount - share * total_years
    return shares


def playing_years_from(contract: PlayerContract, current_year: int) -> List[ContractYear]:
    """Non-void breakdown years from current_year on."""
    return [y for y in contract.yearly_breakdown if y.year >= current_year and not y.is_void_year]


class RestructureCalculator:
    """
    Restructures and pay cuts.

    Rules:
    - Only salary above the veteran minimum can be converted
    - Conversion is prorated evenly across remaining years + new void years
    - Existing void years keep their proration
    - Pay cuts scale every current and future salary by the same ratio
    """

    MIN_MEANINGFUL_SAVINGS = 1000
    MAX_RECOMMENDED_VOID_YEARS = 2
    HEAVY_FUTURE_IMPACT_RATIO = 1.5
    SUGGESTED_FRACTIONS = (0.25, 0.5, 0.75)

    def __init__(self, veteran_minimum: int = EconomySettings.VETERAN_MINIMUM):
        self.veteran_minimum = veteran_minimum
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # LIMITS
    # ========================================================================

    def get_max_restructure_amount(self, contract: PlayerContract, current_year: int) -> int:
        """Salary above the veteran minimum in current_year (0 for missing or void years)."""
        year_data = contract.get_year(current_year)
        if year_data is None or year_data.is_void_year:
            return 0
        return max(0, year_data.salary - self.veteran_minimum)

    # ========================================================================
    # SALARY CONVERSION
    # ========================================================================

    def preview_restructure(
        self,
        contract: PlayerContract,
        current_year: int,
        amount_to_convert: int,
        void_years_to_add: int = 0
    ) -> RestructurePreview:
        """
        Preview a conversion without building a new contract.

        Recommendation rules (first match wins):
        - savings under $1M → not recommended
        - more than 2 void years → not recommended
        - one year or less remaining → not recommended
        - future impact > 1.5× savings → recommended with a warning
        """
        if contract.get_year(current_year) is None:
            return RestructurePreview(
                original_cap_hit=0,
                new_cap_hit=0,
                cap_savings=0,
                future_impact=[],
                is_recommended=False,
                recommendation="Contract has no cap hit for this year",
            )

        current_cap_hit = cap_hit_for_year(contract, current_year)
        years_remaining = len(playing_years_from(contract, current_year))
        prorated = calculate_proration(amount_to_convert, years_remaining, void_years_to_add)

        first_share = prorated[0] if prorated else 0
        savings = amount_to_convert - first_share
        new_cap_hit = current_cap_hit - savings

        future_impact = []
        for offset in range(1, len(prorated)):
            year = current_year + offset
            original = cap_hit_for_year(contract, year)
            future_impact.append({
                "year": year,
                "additional_cap_hit": prorated[offset],
                "new_total_cap_hit": original + prorated[offset],
            })

        is_recommended = True
        if savings < self.MIN_MEANINGFUL_SAVINGS:
            is_recommended = False
            recommendation = "Cap savings are minimal (under $1M)"
        elif void_years_to_add > self.MAX_RECOMMENDED_VOID_YEARS:
            is_recommended = False
            recommendation = "Too many void years may create future dead money issues"
        elif years_remaining <= 1:
            is_recommended = False
            recommendation = "Contract too short for meaningful restructure"
        else:
            total_future = sum(f["additional_cap_hit"] for f in future_impact)
            if total_future > savings * self.HEAVY_FUTURE_IMPACT_RATIO:
                recommendation = "Good short-term savings but significant future impact"
            else:
                recommendation = "Solid restructure with manageable future impact"

        return RestructurePreview(
            original_cap_hit=current_cap_hit,
            new_cap_hit=new_cap_hit,
            cap_savings=savings,
            future_impact=future_impact,
            is_recommended=is_recommended,
            recommendation=recommendation,
        )

    def restructure_contract(
        self,
        contract: PlayerContract,
        current_year: int,
        amount_to_convert: int,
        void_years_to_add: int = 0
    ) -> OperationResult[RestructureOutcome]:
        """
        Convert current-year salary into prorated bonus.

        Args:
            contract: Active contract
            current_year: Season whose salary is converted
            amount_to_convert: Salary to convert (thousands)
            void_years_to_add: Proration-only years appended after the deal

        Returns:
            OperationResult with the restructured contract and its details
        """
        if contract.status != ContractStatus.ACTIVE:
            return OperationResult.fail(
                ContractErrorCode.CONTRACT_NOT_ACTIVE,
                "Can only restructure active contracts"
            )

        if contract.years_remaining <= 0:
            return OperationResult.fail(
                ContractErrorCode.NO_YEARS_REMAINING,
                "Contract has no years remaining"
            )

        max_amount = self.get_max_restructure_amount(contract, current_year)
        if amount_to_convert > max_amount:
            return OperationResult.fail(
                ContractErrorCode.AMOUNT_EXCEEDS_MAXIMUM,
                f"Maximum restructure amount is ${max_amount / 1000:.1f}M"
            )

        if amount_to_convert <= 0:
            return OperationResult.fail(
                ContractErrorCode.AMOUNT_NOT_POSITIVE,
                "Restructure amount must be positive"
            )

        if void_years_to_add < 0:
            return OperationResult.fail(
                ContractErrorCode.INVALID_YEARS,
                "Void years to add cannot be negative"
            )

        playing_count = len(playing_years_from(contract, current_year))
        prorated = calculate_proration(amount_to_convert, playing_count, void_years_to_add)
        playing_shares = prorated[:playing_count]
        void_shares = prorated[playing_count:]

        breakdown = []
        share_index = 0
        for year_data in contract.yearly_breakdown:
            if year_data.year < current_year or year_data.is_void_year:
                breakdown.append(year_data)
                continue

            share = playing_shares[share_index]
            share_index += 1
            salary = year_data.salary
            if year_data.year == current_year:
                salary -= amount_to_convert
            breakdown.append(ContractYear(
                year=year_data.year,
                bonus=year_data.bonus + share,
                salary=salary,
            ))

        last_year = contract_end_year(contract)
        for i, share in enumerate(void_shares):
            breakdown.append(ContractYear(
                year=last_year + contract.void_years + i + 1,
                bonus=share,
                salary=0,
                is_void_year=True,
            ))

        restructured = rebuild_breakdown(
            contract,
            breakdown,
            void_years=contract.void_years + void_years_to_add,
            original_contract_id=contract.original_contract_id or contract.id,
        )

        original_hit = cap_hit_for_year(contract, current_year)
        new_hit = cap_hit_for_year(restructured, current_year)
        future_impact = prorated[1:]

        details = RestructureDetails(
            type=RestructureType.CONVERT_SALARY,
            amount_converted=amount_to_convert,
            new_void_years=void_years_to_add,
            current_year_savings=original_hit - new_hit,
            future_year_impact=future_impact,
            total_future_impact=sum(future_impact),
            dead_money_risk=amount_to_convert,
        )

        self.logger.info(
            "Restructured %s in %d: converted %s, saves %s",
            contract.id, current_year, format_money(amount_to_convert),
            format_money(details.current_year_savings)
        )
        return OperationResult.ok(RestructureOutcome(contract=restructured, details=details))

    def get_restructure_options(self, contract: PlayerContract, current_year: int) -> Dict[str, Any]:
        """
        Restructure choices available for a contract.

        Returns:
            Dict with can_restructure, max_conversion, suggested_conversions
            (25/50/75/100% of max), can_add_void_years, max_void_years, reason
        """
        unavailable = {
            "can_restructure": False,
            "max_conversion": 0,
            "suggested_conversions": [],
            "can_add_void_years": False,
            "max_void_years": 0,
        }

        if contract.status != ContractStatus.ACTIVE:
            return {**unavailable, "reason": "Contract is not active"}
        if contract.years_remaining <= 0:
            return {**unavailable, "reason": "Contract has no years remaining"}

        max_conversion = self.get_max_restructure_amount(contract, current_year)
        if max_conversion <= 0:
            return {**unavailable, "reason": "No restructurable salary above veteran minimum"}

        suggested = [round(max_conversion * f) for f in self.SUGGESTED_FRACTIONS] + [max_conversion]
        max_void_years = min(EconomySettings.MAX_VOID_YEARS - contract.void_years, 3)

        return {
            "can_restructure": True,
            "max_conversion": max_conversion,
            "suggested_conversions": [amount for amount in suggested if amount > 0],
            "can_add_void_years": max_void_years > 0,
            "max_void_years": max_void_years,
            "reason": "Contract eligible for restructure",
        }

    def project_restructure_impact(
        self,
        contract: PlayerContract,
        current_year: int,
        amount_to_convert: int,
        void_years_to_add: int = 0
    ) -> Dict[str, Any]:
        """
        Year-by-year cap effect of a restructure.

        Returns:
            Dict with year_by_year rows, total_savings, total_additional_cost,
            net_impact and dead_money_risk
        """
        preview = self.preview_restructure(contract, current_year, amount_to_convert, void_years_to_add)

        year_by_year = [{
            "year": current_year,
            "original_cap_hit": preview.original_cap_hit,
            "new_cap_hit": preview.new_cap_hit,
            "difference": preview.cap_savings,
        }]
        for future in preview.future_impact:
            original = cap_hit_for_year(contract, future["year"])
            year_by_year.append({
                "year": future["year"],
                "original_cap_hit": original,
                "new_cap_hit": future["new_total_cap_hit"],
                "difference": original - future["new_total_cap_hit"],
            })

        total_additional = sum(f["additional_cap_hit"] for f in preview.future_impact)
        return {
            "year_by_year": year_by_year,
            "total_savings": preview.cap_savings,
            "total_additional_cost": total_additional,
            "net_impact": preview.cap_savings - total_additional,
            "dead_money_risk": amount_to_convert,
        }

    # ========================================================================
    # PAY CUTS
    # ========================================================================

    def apply_pay_cut(
        self,
        contract: PlayerContract,
        current_year: int,
        new_salary: int
    ) -> OperationResult[RestructureOutcome]:
        """
        Reduce salary for the current and every later playing year.

        Each salary is scaled by new_salary / current salary. Bonus
        (guaranteed) dollars are untouched.
        """
        if contract.status != ContractStatus.ACTIVE:
            return OperationResult.fail(
                ContractErrorCode.CONTRACT_NOT_ACTIVE,
                "Can only cut pay on active contracts"
            )

        if contract.years_remaining <= 0:
            return OperationResult.fail(
                ContractErrorCode.NO_YEARS_REMAINING,
                "Contract has no years remaining"
            )

        year_data = contract.get_year(current_year)
        if year_data is None:
            return OperationResult.fail(
                ContractErrorCode.NO_YEAR_DATA,
                "Contract has no cap hit for this year"
            )

        current_salary = year_data.salary
        if new_salary >= current_salary:
            return OperationResult.fail(
                ContractErrorCode.SALARY_NOT_REDUCED,
                "New salary must be less than current salary for a pay cut"
            )

        ratio = new_salary / current_salary
        breakdown = [
            ContractYear(year=y.year, bonus=y.bonus, salary=round(y.salary * ratio))
            if y.year >= current_year and not y.is_void_year else y
            for y in contract.yearly_breakdown
        ]
        cut_contract = rebuild_breakdown(contract, breakdown)

        pay_cut_amount = current_salary - new_salary
        self.logger.info(
            "Pay cut for %s in %d: %s -> %s",
            contract.id, current_year, format_money(current_salary), format_money(new_salary)
        )
        return OperationResult.ok(RestructureOutcome(
            contract=cut_contract,
            details=RestructureDetails(
                type=RestructureType.PAY_CUT,
                pay_cut_amount=pay_cut_amount,
                current_year_savings=pay_cut_amount,
            ),
        ))
