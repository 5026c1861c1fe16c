"""
Crossdock configuration.

Usage in settings.py:
    CROSSDOCK = {
        "CONTAINER_CODE_PREFIX": "22O",
        "SURPLUS_CODE_PREFIX": "SOB",
        "CODE_DIGITS": 8,
        "CODE_MAX_ATTEMPTS": 3,
        "SURPLUS_DESTINATION": "SOBRANTE",
        "STALE_LOCK_MINUTES": 120,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class CrossdockSettings:
    """Crossdock configuration settings."""

    # Prefix for regular (per destination) container codes: 22O00000001
    CONTAINER_CODE_PREFIX: str = "22O"

    # Prefix for surplus container codes: SOB00000001
    SURPLUS_CODE_PREFIX: str = "SOB"

    # Zero-padded width of the numeric part of a container code
    CODE_DIGITS: int = 8

    # Read-compute-insert attempts before giving up on a container code
    CODE_MAX_ATTEMPTS: int = 3

    # Destination value stored on surplus containers
    SURPLUS_DESTINATION: str = "SOBRANTE"

    # Default age for `release_pallet_locks` (locks never expire on their own)
    STALE_LOCK_MINUTES: int = 120


def get_crossdock_settings() -> CrossdockSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "CROSSDOCK", {})
    return CrossdockSettings(**{
        k: v for k, v in user_settings.items()
        if k in CrossdockSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_crossdock_settings(), name)


crossdock_settings = _LazySettings()
