"""
Cut Calculator

Cap consequences of releasing a player:
- Standard (pre-June 1) release: all remaining bonus accelerates
- Post-June 1 release: dead money split across two cap years
- Designated post-June 1 release: post-June 1 math, executed early
- Best-option selection, candidate ranking and display summaries
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from shared.money import format_money
from shared.operation_result import ContractErrorCode, OperationResult
from .cap_ledger import CapPenalty, PenaltyReason
from .contract import (
    ContractStatus,
    PlayerContract,
    cap_hit_for_year,
    cap_savings,
    dead_money,
    post_june_1_dead_money,
)


class CutType(Enum):
    """Release designations."""
    STANDARD = "standard"
    POST_JUNE_1 = "post_june_1"
    DESIGNATED_POST_JUNE_1 = "designated_post_june_1"


@dataclass(frozen=True)
class CutAnalysis:
    """
    Cap impact of one release designation.

    Attributes:
        cut_type: Designation analyzed
        current_cap_hit: Cap hit before the release
        dead_money: Dead money charged this year
        cap_savings: Cap space created this year
        second_year_dead_money: Dead money pushed to next year (post-June 1)
        total_dead_money: Dead money across both years
        total_cap_savings: Savings across both years
        is_advisable: Whether the release makes sense
        recommendation: Display reasoning
    """

    cut_type: CutType
    current_cap_hit: int
    dead_money: int
    cap_savings: int
    second_year_dead_money: int
    total_dead_money: int
    total_cap_savings: int
    is_advisable: bool
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cut_type": self.cut_type.value,
            "current_cap_hit": self.current_cap_hit,
            "dead_money": self.dead_money,
            "cap_savings": self.cap_savings,
            "second_year_dead_money": self.second_year_dead_money,
            "total_dead_money": self.total_dead_money,
            "total_cap_savings": self.total_cap_savings,
            "is_advisable": self.is_advisable,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class CutBreakdown:
    """All three release options for a contract plus the recommended one."""

    player_id: str
    player_name: str
    contract_id: str
    current_year: int
    years_remaining: int
    standard_cut: CutAnalysis
    post_june_1_cut: CutAnalysis
    designated_post_june_1_cut: CutAnalysis
    best_option: CutType
    best_option_reason: str

    def analysis_for(self, cut_type: CutType) -> CutAnalysis:
        if cut_type == CutType.STANDARD:
            return self.standard_cut
        if cut_type == CutType.POST_JUNE_1:
            return self.post_june_1_cut
        return self.designated_post_june_1_cut

    @property
    def best_analysis(self) -> CutAnalysis:
        return self.analysis_for(self.best_option)


@dataclass(frozen=True)
class CutOutcome:
    """Voided contract plus the dead money it leaves behind."""

    contract: PlayerContract
    penalties: List[CapPenalty]
    cap_savings: int


@dataclass(frozen=True)
class CutCandidate:
    """A contract ranked by dead money per dollar saved (lower cuts first)."""

    contract: PlayerContract
    breakdown: CutBreakdown
    value_score: float


class CutCalculator:
    """
    Release analysis and execution.

    Key Rules:
    - Standard release: savings = current salary, dead money = all remaining bonus
    - Post-June 1: only this year's bonus hits now, the rest hits next year
    - A release never creates savings from guaranteed (bonus) dollars
    """

    MODEST_SAVINGS_RATIO = 0.3
    SIGNIFICANT_RELIEF_RATIO = 0.5
    DESIGNATED_PREFERENCE_RATIO = 1.5
    TIMING_ADVICE_RATIO = 1.3
    DEFAULT_MIN_SAVINGS = 1000

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # ANALYSIS
    # ========================================================================

    def analyze_standard_cut(self, contract: PlayerContract, current_year: int) -> CutAnalysis:
        """Analyze an immediate release in current_year."""
        current_cap_hit = cap_hit_for_year(contract, current_year)
        dead = dead_money(contract, current_year)
        savings = cap_savings(contract, current_year)

        is_advisable = savings > 0
        if savings <= 0:
            recommendation = "Cut would not create cap savings - contract has significant guarantees"
            is_advisable = False
        elif savings < current_cap_hit * self.MODEST_SAVINGS_RATIO:
            recommendation = "Modest cap savings - consider restructure instead"
            is_advisable = contract.years_remaining <= 1
        elif dead > current_cap_hit:
            recommendation = "Large dead money hit - consider post-June 1 designation"
        else:
            recommendation = "Standard cut provides meaningful cap savings"

        return CutAnalysis(
            cut_type=CutType.STANDARD,
            current_cap_hit=current_cap_hit,
            dead_money=dead,
            cap_savings=savings,
            second_year_dead_money=0,
            total_dead_money=dead,
            total_cap_savings=savings,
            is_advisable=is_advisable,
            recommendation=recommendation,
        )

    def analyze_post_june_1_cut(self, contract: PlayerContract, current_year: int) -> CutAnalysis:
        """
        Analyze a post-June 1 release.

        Formula:
            year1_savings = cap_hit(year) - bonus(year)
            year2_savings = cap_hit(year + 1) - Σ bonus(after year)
        """
        current_cap_hit = cap_hit_for_year(contract, current_year)
        split = post_june_1_dead_money(contract, current_year)
        year1_dead, year2_dead = split["year1"], split["year2"]

        year1_savings = current_cap_hit - year1_dead
        year2_cap_hit = cap_hit_for_year(contract, current_year + 1)
        year2_savings = year2_cap_hit - year2_dead

        is_advisable = year1_savings > 0
        if year1_savings <= 0:
            recommendation = "No immediate cap relief from post-June 1 cut"
            is_advisable = False
        elif year2_dead > year2_cap_hit:
            recommendation = "Post-June 1 spreads dead money but increases year 2 hit"
        elif year1_savings > current_cap_hit * self.SIGNIFICANT_RELIEF_RATIO:
            recommendation = "Post-June 1 provides significant immediate relief"
            is_advisable = True
        else:
            recommendation = "Post-June 1 offers some cap flexibility"

        return CutAnalysis(
            cut_type=CutType.POST_JUNE_1,
            current_cap_hit=current_cap_hit,
            dead_money=year1_dead,
            cap_savings=year1_savings,
            second_year_dead_money=year2_dead,
            total_dead_money=year1_dead + year2_dead,
            total_cap_savings=year1_savings + year2_savings,
            is_advisable=is_advisable,
            recommendation=recommendation,
        )

    def analyze_designated_post_june_1_cut(
        self,
        contract: PlayerContract,
        current_year: int
    ) -> CutAnalysis:
        """Same math as post-June 1; the release itself happens now."""
        analysis = self.analyze_post_june_1_cut(contract, current_year)
        recommendation = analysis.recommendation
        if analysis.is_advisable:
            recommendation = "Designated post-June 1: Get relief now, spread dead money"
        return replace(
            analysis,
            cut_type=CutType.DESIGNATED_POST_JUNE_1,
            recommendation=recommendation,
        )

    def analyze_cut(
        self,
        contract: PlayerContract,
        current_year: int,
        cut_type: CutType
    ) -> CutAnalysis:
        if cut_type == CutType.STANDARD:
            return self.analyze_standard_cut(contract, current_year)
        if cut_type == CutType.POST_JUNE_1:
            return self.analyze_post_june_1_cut(contract, current_year)
        return self.analyze_designated_post_june_1_cut(contract, current_year)

    def get_cut_breakdown(self, contract: PlayerContract, current_year: int) -> CutBreakdown:
        """
        Analyze every designation and pick the best one.

        Selection order:
        1. Nothing advisable → standard (keep player or restructure)
        2. Standard saves at least as much now and is advisable → standard
        3. Post-June 1 saves >50% more now and is advisable → designated
        4. Post-June 1 two-year savings beat standard and is advisable → post-June 1
        5. Otherwise standard
        """
        standard = self.analyze_standard_cut(contract, current_year)
        post_june_1 = self.analyze_post_june_1_cut(contract, current_year)
        designated = self.analyze_designated_post_june_1_cut(contract, current_year)

        if not (standard.is_advisable or post_june_1.is_advisable or designated.is_advisable):
            best_option = CutType.STANDARD
            reason = "No cut option creates positive cap savings - keep player or restructure"
        elif standard.cap_savings >= post_june_1.cap_savings and standard.is_advisable:
            best_option = CutType.STANDARD
            reason = "Standard cut provides best immediate cap relief"
        elif (post_june_1.cap_savings > standard.cap_savings * self.DESIGNATED_PREFERENCE_RATIO
              and post_june_1.is_advisable):
            best_option = CutType.DESIGNATED_POST_JUNE_1
            reason = "Designated post-June 1 provides significantly better immediate relief"
        elif post_june_1.total_cap_savings > standard.cap_savings and post_june_1.is_advisable:
            best_option = CutType.POST_JUNE_1
            reason = "Post-June 1 cut optimizes total cap savings over 2 years"
        else:
            best_option = CutType.STANDARD
            reason = "Standard cut is the simplest option with adequate savings"

        return CutBreakdown(
            player_id=contract.player_id,
            player_name=contract.player_name,
            contract_id=contract.id,
            current_year=current_year,
            years_remaining=contract.years_remaining,
            standard_cut=standard,
            post_june_1_cut=post_june_1,
            designated_post_june_1_cut=designated,
            best_option=best_option,
            best_option_reason=reason,
        )

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def create_cut_penalties(
        self,
        contract: PlayerContract,
        current_year: int,
        cut_type: CutType
    ) -> List[CapPenalty]:
        """
        Dead money records left by a release.

        Standard: one penalty this year. Post-June 1 variants: this year's
        bonus now, the rest charged next year. Zero amounts are skipped.
        """
        penalties = []

        def penalty(amount: int, year: int, years_remaining: int) -> CapPenalty:
            return CapPenalty(
                id=f"penalty-cut-{contract.id}-{year}",
                player_id=contract.player_id,
                player_name=contract.player_name,
                reason=PenaltyReason.CUT,
                amount=amount,
                year=year,
                years_remaining=years_remaining,
            )

        if cut_type == CutType.STANDARD:
            dead = dead_money(contract, current_year)
            if dead > 0:
                penalties.append(penalty(dead, current_year, 1))
        else:
            split = post_june_1_dead_money(contract, current_year)
            if split["year1"] > 0:
                penalties.append(penalty(split["year1"], current_year, 1))
            if split["year2"] > 0:
                penalties.append(penalty(split["year2"], current_year + 1, 2))

        return penalties

    def validate_cut(self, contract: PlayerContract) -> Optional[OperationResult]:
        """Return a failure result when the contract cannot be released."""
        if contract.status != ContractStatus.ACTIVE:
            return OperationResult.fail(
                ContractErrorCode.CONTRACT_NOT_ACTIVE,
                "Cannot cut player with inactive contract"
            )
        if contract.years_remaining <= 0:
            return OperationResult.fail(
                ContractErrorCode.NO_YEARS_REMAINING,
                "Contract has no years remaining"
            )
        return None

    def execute_cut(
        self,
        contract: PlayerContract,
        current_year: int,
        cut_type: CutType = CutType.STANDARD
    ) -> OperationResult[CutOutcome]:
        """
        Release a player.

        Returns:
            OperationResult with a CutOutcome: the contract voided with no
            years remaining, its dead money penalties and this year's savings
        """
        failure = self.validate_cut(contract)
        if failure is not None:
            self.logger.warning("Cut rejected for %s: %s", contract.id, failure.error)
            return failure

        analysis = self.analyze_cut(contract, current_year, cut_type)
        penalties = self.create_cut_penalties(contract, current_year, cut_type)
        voided = replace(contract, status=ContractStatus.VOIDED, years_remaining=0)

        self.logger.info(
            "Released %s (%s) in %d: savings %s, dead money %s",
            contract.player_id, cut_type.value, current_year,
            format_money(analysis.cap_savings), format_money(analysis.total_dead_money)
        )

        return OperationResult.ok(CutOutcome(
            contract=voided,
            penalties=penalties,
            cap_savings=analysis.cap_savings,
        ))

    # ========================================================================
    # RANKING & DISPLAY
    # ========================================================================

    def rank_cut_candidates(
        self,
        contracts: List[PlayerContract],
        current_year: int,
        min_savings: int = DEFAULT_MIN_SAVINGS
    ) -> List[CutCandidate]:
        """
        Rank active contracts as release candidates.

        Candidates whose best option saves less than min_savings are skipped.
        value_score = total dead money / savings; lowest first.
        """
        candidates = []
        for contract in contracts:
            if contract.status != ContractStatus.ACTIVE:
                continue

            breakdown = self.get_cut_breakdown(contract, current_year)
            best = breakdown.best_analysis
            if best.cap_savings < min_savings:
                continue

            value_score = best.total_dead_money / max(1, best.cap_savings)
            candidates.append(CutCandidate(
                contract=contract,
                breakdown=breakdown,
                value_score=value_score,
            ))

        return sorted(candidates, key=lambda candidate: candidate.value_score)

    def get_cut_summary(self, breakdown: CutBreakdown) -> Dict[str, str]:
        """Display strings for the recommended release."""
        best = breakdown.best_analysis

        if not best.is_advisable:
            recommended_action = "Keep player or restructure - cut not advisable"
        elif breakdown.best_option == CutType.STANDARD:
            recommended_action = "Release player (standard cut)"
        elif breakdown.best_option == CutType.DESIGNATED_POST_JUNE_1:
            recommended_action = "Designate as post-June 1 cut"
        else:
            recommended_action = "Wait until after June 1 to release"

        savings_description = f"${best.cap_savings / 1000:.1f}M immediate cap savings"

        if best.total_dead_money == 0:
            dead_money_description = "No dead money"
        elif best.second_year_dead_money > 0:
            dead_money_description = (
                f"${best.dead_money / 1000:.1f}M year 1, "
                f"${best.second_year_dead_money / 1000:.1f}M year 2"
            )
        else:
            dead_money_description = f"${best.total_dead_money / 1000:.1f}M dead money"

        if breakdown.years_remaining <= 1:
            timing_advice = "Final year - standard cut is typically best"
        elif (breakdown.post_june_1_cut.cap_savings
              > breakdown.standard_cut.cap_savings * self.TIMING_ADVICE_RATIO):
            timing_advice = "Post-June 1 designation recommended for better cap relief"
        else:
            timing_advice = "Can cut now for immediate roster flexibility"

        return {
            "recommended_action": recommended_action,
            "savings_description": savings_description,
            "dead_money_description": dead_money_description,
            "timing_advice": timing_advice,
        }
