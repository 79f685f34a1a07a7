"""
Operation Result

Discriminated result returned by contract mutations (cut, restructure,
pay cut, extension, tags). Failures carry a typed error code plus a
display message; no exception crosses the operator boundary.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar


T = TypeVar("T")


class ContractErrorCode(Enum):
    """Reasons a contract operation can be refused."""

    CONTRACT_NOT_ACTIVE = "contract_not_active"
    NO_YEARS_REMAINING = "no_years_remaining"
    NO_YEAR_DATA = "no_year_data"
    AMOUNT_NOT_POSITIVE = "amount_not_positive"
    AMOUNT_EXCEEDS_MAXIMUM = "amount_exceeds_maximum"
    SALARY_NOT_REDUCED = "salary_not_reduced"
    INVALID_YEARS = "invalid_years"
    TAG_ALREADY_USED = "tag_already_used"
    INVALID_PHASE = "invalid_phase"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Outcome of a contract operation.

    Attributes:
        success: True when the operation produced a result
        result: Operation payload (None on failure)
        error: Human readable reason (None on success)
        error_code: Typed reason (None on success)
    """

    success: bool
    result: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[ContractErrorCode] = None

    @classmethod
    def ok(cls, result: T) -> "OperationResult[T]":
        return cls(success=True, result=result)

    @classmethod
    def fail(cls, error_code: ContractErrorCode, error: str) -> "OperationResult[T]":
        return cls(success=False, error=error, error_code=error_code)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize result; payloads with to_dict() are expanded."""
        payload = self.result
        if hasattr(payload, "to_dict"):
            payload = payload.to_dict()
        return {
            "success": self.success,
            "result": payload,
            "error": self.error,
            "error_code": self.error_code.value if self.error_code else None,
        }
