"""Parsing key specifications such as 'A-M-x' and matching them against events."""

from __future__ import annotations

from enum import IntEnum

from keywarp.backend import KeyEvent, Modifier, Platform

_MODIFIER_PREFIXES = {
    "A": Modifier.ALT,
    "M": Modifier.META,
    "S": Modifier.SHIFT,
    "C": Modifier.CONTROL,
}


class MatchLevel(IntEnum):
    NONE = 0
    CODE = 1
    FULL = 2


class InvalidModifierError(ValueError):
    """A key specification used an unknown modifier prefix."""


class UnknownKeyError(ValueError):
    """A key specification named a key the platform does not know."""


def parse_key(platform: Platform, s: str) -> KeyEvent | None:
    """Parse a key specification into a pressed KeyEvent; None for an empty string."""
    if not s:
        return None

    mods = Modifier.NONE
    rest = s
    while len(rest) >= 2 and rest[1] == "-":
        try:
            mods |= _MODIFIER_PREFIXES[rest[0]]
        except KeyError:
            raise InvalidModifierError(f"{s} is not a valid modifier") from None
        rest = rest[2:]

    if not rest:
        raise UnknownKeyError(f"{s} names no key")

    code, shifted = platform.input_lookup_code(rest)
    if not code:
        raise UnknownKeyError(f"{rest} is not a valid key name")
    if shifted:
        mods |= Modifier.SHIFT
    return KeyEvent(code, mods, True)


def event_to_str(platform: Platform, event: KeyEvent | None) -> str:
    """Render an event in the same notation parse_key accepts."""
    if event is None:
        return "NULL"
    name = platform.input_lookup_name(event.code, bool(event.mods & Modifier.SHIFT))
    prefix = "".join(
        letter
        for flag, letter in (
            (Modifier.CONTROL, "C-"),
            (Modifier.ALT, "A-"),
            (Modifier.META, "M-"),
        )
        if event.mods & flag
    )
    return prefix + (name or "UNDEFINED")


class KeyMatcher:
    """Matches events to key specifications.

    Modifiers are remembered on key down so the matching key up is recognised
    even if modifiers changed in between.
    """

    def __init__(self, platform: Platform) -> None:
        self.platform = platform
        self._cached_mods: dict[int, Modifier] = {}

    def match(self, event: KeyEvent | None, spec: str) -> MatchLevel:
        if event is None:
            return MatchLevel.NONE

        if event.pressed:
            mods = event.mods
            self._cached_mods[event.code] = event.mods
        else:
            mods = self._cached_mods.get(event.code, Modifier.NONE)

        try:
            expected = parse_key(self.platform, spec)
        except UnknownKeyError:
            return MatchLevel.NONE

        if expected is None or expected.code != event.code:
            return MatchLevel.NONE
        return MatchLevel.FULL if expected.mods == mods else MatchLevel.CODE