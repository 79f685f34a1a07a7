"""
Pytest configuration for test discovery and imports.

Provides fixtures for testing including:
- Canonical contract offers and contracts
- Team cap ledgers
- Seeded random sources
- Free agent pools and free agency state
"""

import random
import sys
from pathlib import Path

import pytest


# Determine paths
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
tests_path = project_root / "tests"


def pytest_configure(config):
    """Configure pytest - runs very early in startup.

    IMPORTANT: src must come before tests/ so that tests/salary_cap and
    tests/free_agency never shadow the real packages.
    """
    # Filter out tests directory and any duplicates, keeping first occurrence
    seen = set()
    new_path = []
    for p in sys.path:
        if p not in seen and p != str(tests_path):
            seen.add(p)
            new_path.append(p)

    # Ensure project root and src are at the front
    for path in [str(src_path), str(project_root)]:
        if path in new_path:
            new_path.remove(path)

    # Insert at front: project_root, then src
    new_path.insert(0, str(src_path))
    new_path.insert(0, str(project_root))

    sys.path[:] = new_path


# ============================================================================
# CONTRACT FIXTURES
# ============================================================================

@pytest.fixture
def test_season():
    """Standard season year for testing."""
    return 2024


@pytest.fixture
def sample_offer():
    """
    4 years, $12.5M bonus and $7.5M salary per year.

    AAV $20.0M, total $80.0M, guaranteed $50.0M.
    """
    from salary_cap.contract import ContractOffer
    return ContractOffer(years=4, bonus_per_year=12500, salary_per_year=7500)


@pytest.fixture
def sample_contract(sample_offer, test_season):
    """Active 4-year QB contract signed in the test season."""
    from salary_cap.contract import create_contract
    return create_contract(
        player_id="p-qb1",
        player_name="Test Quarterback",
        team_id="team-a",
        position="QB",
        offer=sample_offer,
        signed_year=test_season,
        contract_id="contract-qb1",
    )


@pytest.fixture
def salary_only_contract(test_season):
    """Active 3-year WR contract with no bonus money."""
    from salary_cap.contract import ContractOffer, create_contract
    return create_contract(
        player_id="p-wr1",
        player_name="Test Receiver",
        team_id="team-a",
        position="WR",
        offer=ContractOffer(years=3, bonus_per_year=0, salary_per_year=10000),
        signed_year=test_season,
        contract_id="contract-wr1",
    )


@pytest.fixture
def cap_state(test_season):
    """Empty ledger at the default $255.0M cap."""
    from salary_cap.cap_ledger import create_salary_cap_state
    return create_salary_cap_state("team-a", test_season)


# ============================================================================
# FREE AGENCY FIXTURES
# ============================================================================

@pytest.fixture
def rng():
    """Seeded random source so simulations are repeatable."""
    return random.Random(42)


@pytest.fixture
def team_ids():
    return ["team-a", "team-b", "team-c", "team-d"]


@pytest.fixture
def fa_players():
    """
    Small free agent class.

    Returns:
        List of RosterPlayer records spanning UFA, RFA and ERFA
    """
    from constants.positions import Position
    from salary_cap.contract_generator import RosterPlayer
    return [
        RosterPlayer("p-edge", "Elite Edge", Position.DE, age=27, experience=5, overall=90, draft_round=1),
        RosterPlayer("p-cb", "Starting Corner", Position.CB, age=28, experience=6, overall=80, draft_round=2),
        RosterPlayer("p-rb", "Veteran Back", Position.RB, age=31, experience=9, overall=68, draft_round=4),
        RosterPlayer("p-lg", "Depth Guard", Position.LG, age=25, experience=3, overall=72, draft_round=3),
        RosterPlayer("p-te", "Young Tight End", Position.TE, age=23, experience=2, overall=62, draft_round=6),
        RosterPlayer("p-k", "Old Kicker", Position.K, age=38, experience=15, overall=70),
    ]


@pytest.fixture
def fa_manager():
    from free_agency.free_agency_manager import FreeAgencyManager
    return FreeAgencyManager()


@pytest.fixture
def fa_state(fa_manager, fa_players, team_ids, test_season):
    """Pre-free agency state with the sample class in the pool."""
    from free_agency.free_agency_manager import create_free_agency_state
    state = create_free_agency_state(test_season, team_ids)
    for player in fa_players:
        state = fa_manager.add_free_agent(
            state, player, "team-a", market_value=player.overall * 200
        )
    return state


@pytest.fixture
def open_fa_state(fa_manager, fa_state):
    """Same pool with the market moved to day 1."""
    state = fa_manager.advance_phase(fa_state)
    return fa_manager.advance_phase(state)
