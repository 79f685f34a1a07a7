"""
Configuration package

Contains league economy settings shared by the contract and free agency
packages.
"""

from .economy_settings import EconomySettings

__all__ = ['EconomySettings']
