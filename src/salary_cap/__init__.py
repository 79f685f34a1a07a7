"""
Salary Cap System

Contract ledger and salary cap accounting including contract creation,
dead money, cuts, restructures, extensions, franchise tags and per-team
cap tracking.

Core Components:
- contract: Contract value types and ledger functions
- CutCalculator: Standard and post-June 1 releases
- RestructureCalculator: Salary-to-bonus conversions and pay cuts
- ExtensionManager: Extensions and extension negotiations
- offer_evaluation: Player-side expectations and offer scoring
- TagManager: Franchise and transition tags
- cap_ledger: Per-team cap usage, rollover and projections
- ContractGenerator: Roster contracts outside free agency

All money values are in thousands of dollars.
"""

from .contract import (
    ContractOffer,
    ContractStatus,
    ContractType,
    ContractYear,
    LegacyContractTerms,
    PlayerContract,
    advance_year,
    cap_hit_for_year,
    cap_savings,
    create_contract,
    dead_money,
    get_minimum_salary,
    post_june_1_dead_money,
)
from .cap_ledger import CapPenalty, PenaltyReason, SalaryCapState, create_salary_cap_state
from .cut_calculator import CutCalculator, CutType
from .restructure_calculator import RestructureCalculator
from .extension_manager import ExtensionManager
from .offer_evaluation import (
    OfferEvaluation,
    OfferInterest,
    PlayerExpectations,
    calculate_player_expectations,
    evaluate_contract_offer,
    suggest_offer_improvements,
)
from .tag_manager import FranchiseTagType, TagManager, TeamTagStatus
from .contract_generator import ContractGenerator

__version__ = "1.0.0"

__all__ = [
    "ContractOffer",
    "ContractStatus",
    "ContractType",
    "ContractYear",
    "LegacyContractTerms",
    "PlayerContract",
    "advance_year",
    "cap_hit_for_year",
    "cap_savings",
    "create_contract",
    "dead_money",
    "get_minimum_salary",
    "post_june_1_dead_money",
    "CapPenalty",
    "PenaltyReason",
    "SalaryCapState",
    "create_salary_cap_state",
    "CutCalculator",
    "CutType",
    "RestructureCalculator",
    "ExtensionManager",
    "OfferEvaluation",
    "OfferInterest",
    "PlayerExpectations",
    "calculate_player_expectations",
    "evaluate_contract_offer",
    "suggest_offer_improvements",
    "FranchiseTagType",
    "TagManager",
    "TeamTagStatus",
    "ContractGenerator",
]
