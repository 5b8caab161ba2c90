"""Configuration package for the ad targeting service.

Re-exports the settings symbols so that callers can write::

    from ad_targeting.config import get_settings
"""

from __future__ import annotations

from ad_targeting.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
