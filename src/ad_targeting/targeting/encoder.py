"""Compact encodings for targeting dimensions.

Conditions store their audience rules in two compact columns:

- ``gender``   — one of ``"M"``, ``"F"`` or ``"MF"`` (both).
- ``platform`` — a bitmask with one bit per :class:`Platform`.

These functions are pure and shared by the write path (``GraphWriter``) and
the read path (``compile_list_query``).
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from ad_targeting.core.exceptions import TargetingEncodingError


class Gender(str, Enum):
    """Audience gender letters accepted on a condition or a list filter."""

    MALE = "M"
    FEMALE = "F"


class Platform(str, Enum):
    """Platforms an advertisement can target.

    Each member carries its bit in the stored platform mask via :attr:`bit`.
    """

    ANDROID = "android"
    IOS = "ios"
    WEB = "web"

    @property
    def bit(self) -> int:
        return _PLATFORM_BITS[self]


_PLATFORM_BITS: dict[Platform, int] = {
    Platform.ANDROID: 1,
    Platform.IOS: 2,
    Platform.WEB: 4,
}

ALL_PLATFORMS: int = 7
"""Mask stored when a condition names no platform."""

BOTH_GENDERS: str = "MF"

_PLATFORM_NAMES: frozenset[str] = frozenset(platform.value for platform in Platform)


def encode_gender(letters: Iterable[str]) -> str:
    """Return the stored gender code for a set of gender letters.

    No letters and both letters (in either order) mean "any gender" and
    encode as ``"MF"``.  A single letter encodes as itself.

    Raises:
        TargetingEncodingError: If a letter is not ``"M"`` or ``"F"``.
    """
    members: set[Gender] = set()
    for letter in letters:
        try:
            members.add(Gender(letter))
        except ValueError as exc:
            raise TargetingEncodingError(f"unknown gender {letter!r}", value=str(letter)) from exc

    if len(members) == 1:
        return members.pop().value
    return BOTH_GENDERS


def platform_mask(name: str) -> int:
    """Return the bit for a single platform name.

    Raises:
        TargetingEncodingError: If *name* is not a known platform.
    """
    try:
        return Platform(name).bit
    except ValueError as exc:
        raise TargetingEncodingError(f"unknown platform {name!r}", value=str(name)) from exc


def encode_platforms(names: Iterable[str]) -> int:
    """Return the stored platform mask for a set of platform names.

    An empty set means "all platforms" and encodes as :data:`ALL_PLATFORMS`.
    An unrecognized name is an error, not an empty selection.

    Raises:
        TargetingEncodingError: If any name is not a known platform.
    """
    mask = 0
    for name in names:
        mask |= platform_mask(name)
    return mask or ALL_PLATFORMS


def decode_platforms(mask: int) -> list[Platform]:
    """Return the platforms whose bit is set in *mask*, in declaration order."""
    return [platform for platform in Platform if mask & platform.bit]


def is_recognized_platform(name: str) -> bool:
    """Return True for a known platform name or the empty string (no filter)."""
    if name == "":
        return True
    return name in _PLATFORM_NAMES
