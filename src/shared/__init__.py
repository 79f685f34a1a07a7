"""
Shared helpers for the economy packages.

Contains the operation result type used by every contract mutation and
money formatting helpers used by summaries.
"""

from .operation_result import ContractErrorCode, OperationResult
from .money import format_money

__all__ = [
    'ContractErrorCode',
    'OperationResult',
    'format_money',
]
