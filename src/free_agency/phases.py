"""
Free Agency Phase Enumeration

Defines the sub-phases of the free agency period, from the pre-market
evaluation window through the close of training camp.
"""

from enum import Enum
from typing import Optional


class FreeAgencyPhase(Enum):
    """
    Free agency phases in strict calendar order.

    Phases never skip and never move backward; each transition is
    recorded as an event on the free agency state.
    """

    PRE_FREE_AGENCY = "pre_free_agency"
    """
    Teams evaluate needs before the market opens.

    - No offers, no signings
    - RFA tenders are placed
    """

    LEGAL_TAMPERING = "legal_tampering"
    """
    Negotiation window before the league year begins.

    - Teams may negotiate with UFAs and reach verbal agreements
    - Nothing can be signed
    """

    DAY1_FRENZY = "day1_frenzy"
    """
    Market opens.

    - Verbal agreements become official
    - Bidding wars for the top free agents
    """

    DAY2_FRENZY = "day2_frenzy"
    """
    Second day of the market, top players still moving quickly.
    """

    TRICKLE = "trickle"
    """
    Slower market after the opening days.

    - Asking prices decay with days on market
    - Bargain hunting for veterans and depth
    """

    TRAINING_CAMP = "training_camp"
    """
    Final roster decisions; remaining free agents sign cheaply or retire.
    """

    CLOSED = "closed"
    """
    Free agency is over for the year.
    """

    def __str__(self) -> str:
        """Return human-readable phase name."""
        return self.value.replace('_', ' ').title()

    @property
    def allows_signing(self) -> bool:
        return self in SIGNING_PHASES

    @property
    def allows_offers(self) -> bool:
        return self not in (FreeAgencyPhase.PRE_FREE_AGENCY, FreeAgencyPhase.CLOSED)

    @property
    def description(self) -> str:
        return PHASE_DESCRIPTIONS[self]

    def next_phase(self) -> Optional['FreeAgencyPhase']:
        """
        Phase that follows this one.

        Returns:
            The next phase, or None when already closed
        """
        index = PHASE_ORDER.index(self)
        if index == len(PHASE_ORDER) - 1:
            return None
        return PHASE_ORDER[index + 1]


PHASE_ORDER = (
    FreeAgencyPhase.PRE_FREE_AGENCY,
    FreeAgencyPhase.LEGAL_TAMPERING,
    FreeAgencyPhase.DAY1_FRENZY,
    FreeAgencyPhase.DAY2_FRENZY,
    FreeAgencyPhase.TRICKLE,
    FreeAgencyPhase.TRAINING_CAMP,
    FreeAgencyPhase.CLOSED,
)

SIGNING_PHASES = frozenset({
    FreeAgencyPhase.DAY1_FRENZY,
    FreeAgencyPhase.DAY2_FRENZY,
    FreeAgencyPhase.TRICKLE,
    FreeAgencyPhase.TRAINING_CAMP,
})

PHASE_DESCRIPTIONS = {
    FreeAgencyPhase.PRE_FREE_AGENCY: "Pre-Free Agency: Teams evaluating needs",
    FreeAgencyPhase.LEGAL_TAMPERING: "Legal Tampering: Negotiations allowed, no signings",
    FreeAgencyPhase.DAY1_FRENZY: "Day 1 Frenzy: Free agency opens, rapid signings",
    FreeAgencyPhase.DAY2_FRENZY: "Day 2: Top players still moving quickly",
    FreeAgencyPhase.TRICKLE: "Trickle Period: Slower pace, bargain hunting",
    FreeAgencyPhase.TRAINING_CAMP: "Training Camp: Final roster decisions",
    FreeAgencyPhase.CLOSED: "Free Agency Closed",
}
