"""
Rookie Wage Scale

Rookie contracts are tied to the salary cap: total value is a slotted
percentage of the cap by overall pick, so the scale grows with the cap.

Reference points (share of cap for the 4-year total):
- Pick #1: ~18.95%
- Pick #32: ~4.7%
- Pick #64: ~2.5%
- Pick #100: ~1.8%
- Rounds 4-7: ~1.57%
"""

from dataclasses import dataclass

from .contract import ContractOffer


ROOKIE_CONTRACT_YEARS = 4


@dataclass(frozen=True)
class RookieSlotValues:
    """Slotted values for one draft pick (thousands)."""

    overall_pick: int
    total_value: int
    signing_bonus: int

    def to_offer(self) -> ContractOffer:
        """Spread the slot evenly: bonus share is guaranteed, the rest is salary."""
        bonus_per_year = round(self.signing_bonus / ROOKIE_CONTRACT_YEARS)
        aav = round(self.total_value / ROOKIE_CONTRACT_YEARS)
        return ContractOffer(
            years=ROOKIE_CONTRACT_YEARS,
            bonus_per_year=bonus_per_year,
            salary_per_year=max(0, aav - bonus_per_year),
        )


class RookieScaleCalculator:
    """
    Slot values by overall pick.

    Percentages stay constant; only the input salary cap changes
    year over year.
    """

    PICK_1_CAP_PERCENT = 0.1895
    PICK_32_CAP_PERCENT = 0.047
    PICK_64_CAP_PERCENT = 0.025
    PICK_100_CAP_PERCENT = 0.018
    LATE_ROUND_CAP_PERCENT = 0.0157

    # Signing bonus share of total value
    SIGNING_BONUS_PERCENT_R1_TOP = 0.665  # Picks 1-10
    SIGNING_BONUS_PERCENT_R1_MID = 0.55  # Picks 11-20
    SIGNING_BONUS_PERCENT_R1_LATE = 0.50  # Picks 21-32
    SIGNING_BONUS_PERCENT_R2 = 0.40
    SIGNING_BONUS_PERCENT_R3 = 0.30
    SIGNING_BONUS_PERCENT_LATE = 0.10

    LAST_PICK = 224

    def __init__(self, salary_cap: int):
        """
        Args:
            salary_cap: League cap in thousands (e.g. 255000)

        Raises:
            ValueError: If salary_cap is not a positive integer
        """
        if not isinstance(salary_cap, int) or salary_cap <= 0:
            raise ValueError(f"salary_cap must be a positive integer, got {salary_cap!r}")
        self.salary_cap = salary_cap

    def get_slot_values(self, overall_pick: int) -> RookieSlotValues:
        """
        Slot values for an overall pick.

        Raises:
            ValueError: If the pick is outside 1-224
        """
        if not isinstance(overall_pick, int) or not 1 <= overall_pick <= self.LAST_PICK:
            raise ValueError(f"overall_pick must be between 1 and 224, got {overall_pick!r}")

        total_value = round(self.salary_cap * self._total_value_percent(overall_pick))
        signing_bonus = round(total_value * self._signing_bonus_percent(overall_pick))
        return RookieSlotValues(
            overall_pick=overall_pick,
            total_value=total_value,
            signing_bonus=signing_bonus,
        )

    def _total_value_percent(self, pick: int) -> float:
        if pick == 1:
            return self.PICK_1_CAP_PERCENT
        if pick <= 32:
            return self._interpolate(pick, 1, 32, self.PICK_1_CAP_PERCENT, self.PICK_32_CAP_PERCENT)
        if pick <= 64:
            return self._interpolate(pick, 33, 64, self.PICK_32_CAP_PERCENT, self.PICK_64_CAP_PERCENT)
        if pick <= 100:
            return self._interpolate(pick, 65, 100, self.PICK_64_CAP_PERCENT, self.PICK_100_CAP_PERCENT)
        return self.LATE_ROUND_CAP_PERCENT

    def _signing_bonus_percent(self, pick: int) -> float:
        if pick <= 10:
            return self.SIGNING_BONUS_PERCENT_R1_TOP
        if pick <= 20:
            return self.SIGNING_BONUS_PERCENT_R1_MID
        if pick <= 32:
            return self.SIGNING_BONUS_PERCENT_R1_LATE
        if pick <= 64:
            return self.SIGNING_BONUS_PERCENT_R2
        if pick <= 100:
            return self.SIGNING_BONUS_PERCENT_R3
        return self.SIGNING_BONUS_PERCENT_LATE

    @staticmethod
    def _interpolate(pick: int, start: int, end: int, start_pct: float, end_pct: float) -> float:
        progress = (pick - start) / (end - start)
        return start_pct - progress * (start_pct - end_pct)
