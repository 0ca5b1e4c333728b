"""Core schema helpers for leadscout."""

from .keys import *  # noqa: F401,F403 re-export stable keys
from .errors import PolicyError, ScanError, ScanInputError, ScoutError

__all__ = [name for name in globals() if name.startswith("K_")] + [
    "ScoutError",
    "ScanInputError",
    "PolicyError",
    "ScanError",
]
