"""
Integration Tests for OffseasonDriver

Runs a small league through the free agency calendar:
- Deadline processing and phase sequence
- RFA tender deadline handling
- User actions
- Market close, cap ledgers and compensatory picks
"""

import random

import pytest

from free_agency.offseason_driver import OffseasonDriver
from free_agency.models import OfferStatus
from free_agency.phases import FreeAgencyPhase
from free_agency.rfa_tenders import TenderLevel, TenderStatus
from salary_cap.cap_ledger import cap_usage
from salary_cap.contract import ContractOffer


def build_driver(fa_players, team_ids, seed=42, user_team_id="team-a", previous_team="team-b"):
    driver = OffseasonDriver(
        2024, team_ids, user_team_id=user_team_id, rng=random.Random(seed), max_workers=2
    )
    for index, team_id in enumerate(team_ids):
        driver.register_team(team_id, [], wins=6 + index, losses=11 - index)
    for player in fa_players:
        driver.add_free_agent(player, previous_team)
    return driver


@pytest.fixture
def driver(fa_players, team_ids):
    return build_driver(fa_players, team_ids)


class TestCalendar:
    """Test deadlines and phase transitions."""

    def test_initial_state(self, driver):
        assert driver.current_day == 0
        assert driver.get_current_phase() == FreeAgencyPhase.PRE_FREE_AGENCY
        upcoming = driver.get_upcoming_deadlines()
        assert upcoming[0]["type"] == "rfa_tender_deadline"
        assert upcoming[0]["days_remaining"] == 60

    def test_unknown_deadline(self, driver):
        with pytest.raises(ValueError, match="not found or already passed"):
            driver.advance_to_deadline("trade_deadline")

    def test_passed_deadline(self, driver):
        driver.advance_to_deadline("rfa_tender_deadline")
        with pytest.raises(ValueError):
            driver.advance_to_deadline("rfa_tender_deadline")

    def test_phase_sequence(self, driver):
        result = driver.advance_to_deadline("legal_tampering_start")
        assert result["days_advanced"] == 68
        assert driver.get_current_phase() == FreeAgencyPhase.LEGAL_TAMPERING

        driver.advance_to_deadline("free_agency_start")
        assert driver.current_day == 70
        assert driver.get_current_phase() == FreeAgencyPhase.DAY1_FRENZY

        driver.advance_day()
        assert driver.get_current_phase() == FreeAgencyPhase.DAY2_FRENZY
        result = driver.advance_day()
        assert driver.get_current_phase() == FreeAgencyPhase.TRICKLE
        assert result["phase_changed"]
        assert result["new_phase"] == "trickle"

    def test_deadline_event_reported(self, driver):
        result = driver.advance_to_deadline("legal_tampering_start")
        types = [event["type"] for event in result["events_triggered"]]
        assert types == ["rfa_tender_deadline", "legal_tampering_start"]
        assert result["events_triggered"][1]["action"] == "open_legal_tampering"


class TestTenderDeadline:
    """Test AI tenders at the tender deadline."""

    def test_restricted_players_tendered(self, driver):
        driver.advance_to_deadline("rfa_tender_deadline")
        tender = driver.rfa_manager.get_player_tender(driver.rfa_state, "p-lg")
        assert tender.level == TenderLevel.ORIGINAL_ROUND
        assert tender.team_id == "team-b"
        assert "fa-p-lg-2024" not in driver.fa_state.free_agents

    def test_exclusive_rights_player_signs(self, driver):
        driver.advance_to_deadline("rfa_tender_deadline")
        assert driver.rfa_state.tenders["tender-p-te-2024"].status == TenderStatus.SIGNED
        contracts = driver.cap_states["team-b"].contracts.values()
        assert [c.player_id for c in contracts] == ["p-te"]
        assert cap_usage(driver.cap_states["team-b"]) == 795

    def test_unrestricted_players_stay_in_pool(self, driver):
        driver.advance_to_deadline("rfa_tender_deadline")
        assert "fa-p-edge-2024" in driver.fa_state.free_agents


class TestUserActions:
    """Test the user team's actions."""

    def test_offer_requires_user_team(self, fa_players, team_ids):
        driver = build_driver(fa_players, team_ids, user_team_id=None)
        with pytest.raises(ValueError, match="No user team configured"):
            driver.submit_user_offer("fa-p-edge-2024", ContractOffer(3, 5000, 5000))

    def test_offer_before_market_not_accepted(self, driver):
        assert driver.submit_user_offer("fa-p-edge-2024", ContractOffer(3, 5000, 5000)) is None

    def test_offer_during_tampering(self, driver):
        driver.advance_to_deadline("legal_tampering_start")
        offer_id = driver.submit_user_offer("fa-p-edge-2024", ContractOffer(3, 5000, 5000))
        assert driver.fa_state.offers[offer_id].is_user_offer
        assert driver.fa_state.offers[offer_id].team_id == "team-a"

    def test_user_tender(self, fa_players, team_ids):
        driver = build_driver(fa_players, team_ids, previous_team="team-a")
        assert driver.submit_user_tender("p-lg", TenderLevel.SECOND_ROUND)
        assert not driver.submit_user_tender("p-edge", TenderLevel.FIRST_ROUND)
        assert driver.submit_user_tender("p-te", TenderLevel.FIRST_ROUND)
        assert driver.rfa_state.tenders["tender-p-te-2024"].level == TenderLevel.EXCLUSIVE_RIGHTS

    def test_user_tender_after_deadline(self, fa_players, team_ids):
        driver = build_driver(fa_players, team_ids, previous_team="team-a")
        driver.advance_to_deadline("rfa_tender_deadline")
        driver.advance_day()
        assert not driver.submit_user_tender("p-lg", TenderLevel.SECOND_ROUND)


class TestCompletion:
    """Test running the whole calendar."""

    def test_run_to_completion_closes_market(self, driver):
        result = driver.run_to_completion()
        assert driver.is_offseason_complete()
        assert result["current_phase"] == "closed"
        assert result["days_advanced"] == 230
        assert driver.comp_state.is_calculated

    def test_contracts_land_in_cap_ledgers(self, driver):
        driver.run_to_completion()
        assert driver.signed_contracts
        for contract in driver.signed_contracts:
            assert contract.id in driver.cap_states[contract.team_id].contracts

    def test_unmatched_tender_signed_at_match_deadline(self, driver):
        driver.run_to_completion()
        assert driver.rfa_state.tenders["tender-p-lg-2024"].status == TenderStatus.SIGNED
        assert any(c.player_id == "p-lg" for c in driver.cap_states["team-b"].contracts.values())

    def test_aged_player_retires_at_camp(self, driver):
        driver.run_to_completion()
        kicker = driver.fa_state.free_agents["fa-p-k-2024"]
        assert kicker.status.value in ("signed", "retired")

    def test_seeded_runs_agree(self, fa_players, team_ids):
        def signings(seed):
            driver = build_driver(fa_players, team_ids, seed=seed)
            driver.run_to_completion()
            return [(c.player_id, c.team_id, c.total_value) for c in driver.signed_contracts]

        assert signings(7) == signings(7)

    def test_state_summary(self, driver):
        driver.run_to_completion()
        summary = driver.get_state_summary()
        assert summary["offseason_complete"]
        assert summary["current_phase"] == "closed"
        assert summary["signings"] == len(driver.signed_contracts)
        assert summary["upcoming_deadlines"] == []


class TestSaveAndRestore:
    """Test driver snapshots."""

    def test_restored_driver_matches_snapshot(self, fa_players, team_ids):
        original = build_driver(fa_players, team_ids)
        original.advance_to_deadline("free_agency_start")
        snapshot = original.to_dict()

        restored = build_driver(fa_players, team_ids, seed=1)
        restored.load_state(snapshot)
        assert restored.current_day == 70
        assert restored.get_current_phase() == FreeAgencyPhase.DAY1_FRENZY
        assert restored.to_dict() == snapshot

    def test_restored_driver_finishes_the_same_way(self, fa_players, team_ids):
        original = build_driver(fa_players, team_ids)
        original.advance_to_deadline("free_agency_start")
        restored = build_driver(fa_players, team_ids, seed=1)
        restored.load_state(original.to_dict())

        original.run_to_completion()
        restored.run_to_completion()
        assert [(c.player_id, c.team_id, c.total_value) for c in restored.signed_contracts] == [
            (c.player_id, c.team_id, c.total_value) for c in original.signed_contracts
        ]
        assert restored.comp_state == original.comp_state

    def test_snapshot_from_other_season_rejected(self, fa_players, team_ids, driver):
        snapshot = driver.to_dict()
        snapshot["season_year"] = 2025
        with pytest.raises(ValueError, match="Snapshot is for 2025"):
            build_driver(fa_players, team_ids).load_state(snapshot)


class TestPlayerDecisions:
    """Test how a free agent picks between offers."""

    EDGE_ID = "fa-p-edge-2024"

    def open_market(self, driver):
        for _ in range(3):
            driver.fa_state = driver.fa_manager.advance_phase(driver.fa_state)
        assert driver.fa_state.phase == FreeAgencyPhase.DAY1_FRENZY

    def test_guaranteed_offer_beats_salary_heavy_offer(self, driver, sample_offer):
        self.open_market(driver)
        state, salary_heavy = driver.fa_manager.place_offer(
            driver.fa_state, "team-b", self.EDGE_ID, ContractOffer(4, 4000, 20000)
        )
        state, guaranteed = driver.fa_manager.place_offer(
            state, "team-c", self.EDGE_ID, sample_offer
        )
        driver.fa_state = state

        driver._resolve_single_offer(
            self.EDGE_ID, [state.offers[salary_heavy], state.offers[guaranteed]]
        )
        assert driver.fa_state.offers[guaranteed].status == OfferStatus.ACCEPTED
        assert driver.fa_state.offers[salary_heavy].status != OfferStatus.ACCEPTED

    def test_lowball_offer_declined(self, driver):
        self.open_market(driver)
        state, offer_id = driver.fa_manager.place_offer(
            driver.fa_state, "team-b", self.EDGE_ID, ContractOffer(1, 500, 500)
        )
        driver.fa_state = state

        driver._resolve_single_offer(self.EDGE_ID, [state.offers[offer_id]])
        assert driver.fa_state.offers[offer_id].is_pending
