"""
Centralized League Economy Settings

League-wide constants for contracts, the salary cap and free agency.
All money values are in thousands of dollars (80000 = $80M).
"""


class EconomySettings:
    """
    League economy constants.

    Components read their defaults from here; every value can still be
    overridden per call or per instance.
    """

    # ================================================================
    # SALARY CAP
    # ================================================================

    DEFAULT_SALARY_CAP = 255000
    # League baseline cap for the opening season ($255M)

    CAP_GROWTH_RATE = 0.08
    # Annual baseline growth used by cap projections

    SALARY_FLOOR_PERCENTAGE = 0.89
    # Minimum share of the cap a team must spend

    ROSTER_SIZE = 53
    TOP_51_SIZE = 51
    # Offseason accounting only counts the 51 largest cap hits

    # ================================================================
    # CONTRACTS
    # ================================================================

    VETERAN_MINIMUM = 1215
    # Salary that must remain after a restructure conversion

    MAX_EXTENSION_YEARS = 5
    MAX_VOID_YEARS = 5

    # ================================================================
    # FRANCHISE TAGS
    # ================================================================

    TAG_BASE_YEAR = 2024
    TAG_GROWTH_RATE = 0.08

    # ================================================================
    # FREE AGENCY
    # ================================================================

    DEFAULT_FA_BUDGET = 50000
    # Starting free agency budget for a team with no explicit budget

    DEADLINES = {
        "legal_tampering_start": 68,
        "free_agency_start": 70,
        "rfa_tender_deadline": 60,
        "rfa_offer_sheet_deadline": 130,
        "rfa_match_deadline": 137,
        "training_camp_start": 200,
        "free_agency_close": 230,
    }
    # Calendar days counted from the start of the league year

    TAMPERING_DAYS = 2
    TRICKLE_PHASE_DAYS = 90
    RFA_MATCH_WINDOW_DAYS = 7

    # Day-1 frenzy
    FRENZY_SIGNINGS_PER_MINUTE = 2
    BIDDING_WAR_PROBABILITY = 0.3
    BID_ESCALATION_RATE = 0.05
    MAX_BIDDING_ROUNDS = 5

    # AI worker pool used for per-team evaluation
    AI_MAX_WORKERS = 4
