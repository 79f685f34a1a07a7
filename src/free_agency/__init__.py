"""
Free Agency System

League free agency from the RFA tender deadline to the close of the
market: player pool and offers, market valuation, legal tampering, the
day-1 frenzy and bidding wars, the trickle period, restricted free agent
tenders and offer sheets, compensatory picks and AI team decisions.

Core Components:
- FreeAgencyManager: Pool, phases, offers and signings
- MarketValueCalculator: Projected contract values
- legal_tampering: Negotiations and verbal agreements before the market opens
- BiddingWarSimulator: Day-1 frenzy and bidding wars
- TricklePhaseManager: Bargains and minimum deals after the frenzy
- RFATenderManager: Tenders, offer sheets and matching
- CompensatoryPickCalculator: Net free agent losses and awarded picks
- FreeAgencyAI: AI team strategy, needs, budgets and daily offers
- OffseasonDriver: Day-by-day orchestration of all of the above

All money values are in thousands of dollars.
"""

from .phases import FreeAgencyPhase
from .models import (
    EventType,
    FreeAgencyEvent,
    FreeAgencyOffer,
    FreeAgencyState,
    FreeAgent,
    FreeAgentStatus,
    FreeAgentType,
    InterestLevel,
    MarketValue,
    NeedLevel,
    OfferStatus,
    ProductionTier,
    TeamFABudget,
    TeamInterest,
)
from .free_agency_manager import (
    FreeAgencyManager,
    classify_free_agent_type,
    create_free_agency_state,
)
from .market_value_calculator import MarketConditions, MarketValueCalculator, PlayerProduction
from .legal_tampering import LegalTamperingState, VerbalAgreement
from .bidding_war import BiddingWar, BiddingWarSimulator, FrenzyState
from .trickle_phase import TricklePhaseManager, TricklePhaseState
from .rfa_tenders import OfferSheet, RFAState, RFATenderManager, TenderLevel, TenderOffer
from .compensatory_picks import CompensatoryPickCalculator, CompPickState
from .ai_decision_layer import FAStrategy, FreeAgencyAI, TeamAIProfile
from .offseason_driver import OffseasonDriver

__version__ = "1.0.0"

__all__ = [
    "FreeAgencyPhase",
    "EventType",
    "FreeAgencyEvent",
    "FreeAgencyOffer",
    "FreeAgencyState",
    "FreeAgent",
    "FreeAgentStatus",
    "FreeAgentType",
    "InterestLevel",
    "MarketValue",
    "NeedLevel",
    "OfferStatus",
    "ProductionTier",
    "TeamFABudget",
    "TeamInterest",
    "FreeAgencyManager",
    "classify_free_agent_type",
    "create_free_agency_state",
    "MarketConditions",
    "MarketValueCalculator",
    "PlayerProduction",
    "LegalTamperingState",
    "VerbalAgreement",
    "BiddingWar",
    "BiddingWarSimulator",
    "FrenzyState",
    "TricklePhaseManager",
    "TricklePhaseState",
    "OfferSheet",
    "RFAState",
    "RFATenderManager",
    "TenderLevel",
    "TenderOffer",
    "CompensatoryPickCalculator",
    "CompPickState",
    "FAStrategy",
    "FreeAgencyAI",
    "TeamAIProfile",
    "OffseasonDriver",
]
