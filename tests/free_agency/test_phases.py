"""
Unit Tests for FreeAgencyPhase
"""

from free_agency.phases import PHASE_ORDER, FreeAgencyPhase


class TestPhaseOrder:
    """Test strict phase progression."""

    def test_phases_in_calendar_order(self):
        assert PHASE_ORDER == (
            FreeAgencyPhase.PRE_FREE_AGENCY,
            FreeAgencyPhase.LEGAL_TAMPERING,
            FreeAgencyPhase.DAY1_FRENZY,
            FreeAgencyPhase.DAY2_FRENZY,
            FreeAgencyPhase.TRICKLE,
            FreeAgencyPhase.TRAINING_CAMP,
            FreeAgencyPhase.CLOSED,
        )

    def test_next_phase_never_skips(self):
        for current, following in zip(PHASE_ORDER, PHASE_ORDER[1:]):
            assert current.next_phase() == following

    def test_closed_is_terminal(self):
        assert FreeAgencyPhase.CLOSED.next_phase() is None


class TestPhasePermissions:
    """Test what each phase allows."""

    def test_no_signing_before_market_opens(self):
        assert not FreeAgencyPhase.PRE_FREE_AGENCY.allows_signing
        assert not FreeAgencyPhase.LEGAL_TAMPERING.allows_signing
        assert not FreeAgencyPhase.CLOSED.allows_signing

    def test_signing_phases(self):
        for phase in (
            FreeAgencyPhase.DAY1_FRENZY,
            FreeAgencyPhase.DAY2_FRENZY,
            FreeAgencyPhase.TRICKLE,
            FreeAgencyPhase.TRAINING_CAMP,
        ):
            assert phase.allows_signing

    def test_offers_allowed_during_tampering(self):
        assert FreeAgencyPhase.LEGAL_TAMPERING.allows_offers
        assert not FreeAgencyPhase.PRE_FREE_AGENCY.allows_offers
        assert not FreeAgencyPhase.CLOSED.allows_offers

    def test_display_strings(self):
        assert str(FreeAgencyPhase.DAY1_FRENZY) == "Day1 Frenzy"
        assert FreeAgencyPhase.CLOSED.description == "Free Agency Closed"
