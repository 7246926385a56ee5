"""Platform layer: key events, screens, drawing, pointer control and file watching."""

from __future__ import annotations

import os
import string
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Iterable, Mapping, Sequence

MAX_BOXES = 64
MAX_MONITORED_FILES = 32


class Modifier(IntFlag):
    """Keyboard modifiers carried by a key event."""

    NONE = 0
    ALT = 1
    META = 2
    SHIFT = 4
    CONTROL = 8


class ScrollDirection(Enum):
    UP = "up"
    DOWN = "down"
    RIGHT = "right"
    LEFT = "left"


@dataclass(frozen=True)
class KeyEvent:
    """A key press or release identified by a platform key code."""

    code: int
    mods: Modifier = Modifier.NONE
    pressed: bool = True


@dataclass
class Hint:
    """A labelled rectangle drawn on a screen."""

    x: int
    y: int
    w: int
    h: int
    label: str


@dataclass(eq=False)
class Screen:
    """A monitor with its offset in the global coordinate space."""

    x: int
    y: int
    w: int
    h: int
    boxes: list = field(default_factory=list)
    hints: list = field(default_factory=list)


def hex_to_rgba(s: str) -> tuple[int, int, int, int]:
    """Parse '#rrggbb' or '#rrggbbaa' (the '#' is optional) into channel values."""
    digits = s[1:] if s.startswith("#") else s
    if len(digits) not in (6, 8) or not all(c in string.hexdigits for c in digits):
        raise ValueError(f"{s!r} is not a valid hex colour")
    channels = tuple(bytes.fromhex(digits))
    if len(channels) == 3:
        channels += (255,)
    return channels  # type: ignore[return-value]


_NORMALIZATION = {
    "esc": "Escape",
    ",": "comma",
    ".": "period",
    "-": "minus",
    "/": "slash",
    ";": "semicolon",
    "[": "bracketleft",
    "]": "bracketright",
    "'": "apostrophe",
    "$": "dollar",
    "backspace": "BackSpace",
}
_DENORMALIZATION = {xname: name for name, xname in _NORMALIZATION.items()}

_CODE_MODIFIERS = {
    "Control_L": Modifier.CONTROL,
    "Control_R": Modifier.CONTROL,
    "Meta_L": Modifier.META,
    "Meta_R": Modifier.META,
    "Alt_L": Modifier.ALT,
    "Alt_R": Modifier.ALT,
    "Shift_L": Modifier.SHIFT,
    "Shift_R": Modifier.SHIFT,
}


def to_platform_key_name(name: str) -> str:
    """Translate a user-facing key name into the platform's key name."""
    return _NORMALIZATION.get(name, name)


def from_platform_key_name(name: str) -> str:
    """Translate a platform key name into the user-facing key name."""
    return _DENORMALIZATION.get(name, name)


def _mtime(path: str) -> int:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return 0


class FileMonitor:
    """Polls modification times of a set of files."""

    def __init__(self) -> None:
        self._mtimes: dict[str, int] = {}

    def add(self, path) -> None:
        path = os.fspath(path)
        if path not in self._mtimes and len(self._mtimes) >= MAX_MONITORED_FILES:
            raise ValueError(f"cannot monitor more than {MAX_MONITORED_FILES} files")
        self._mtimes[path] = _mtime(path)

    def changed(self) -> bool:
        """Return True if a monitored file changed since it was last seen."""
        for path, old in self._mtimes.items():
            new = _mtime(path)
            if new != old:
                self._mtimes[path] = new
                return True
        return False


class Platform(ABC):
    """Interface every display backend provides."""

    def __init__(self) -> None:
        self.files = FileMonitor()

    def monitor_file(self, path) -> None:
        self.files.add(path)

    @abstractmethod
    def input_grab_keyboard(self) -> None: ...

    @abstractmethod
    def input_ungrab_keyboard(self) -> None: ...

    @abstractmethod
    def input_next_event(self, timeout: int) -> KeyEvent | None:
        """Next key event; None on timeout. A falsy timeout blocks."""

    @abstractmethod
    def input_wait(self, events: Sequence[KeyEvent]) -> KeyEvent | None:
        """Wait for one of the given keys; None when a monitored file changed."""

    @abstractmethod
    def input_lookup_code(self, name: str) -> tuple[int, bool]:
        """Return (code, shifted) for a key name, code 0 when unknown."""

    @abstractmethod
    def input_lookup_name(self, code: int, shifted: bool) -> str | None: ...

    @abstractmethod
    def mouse_move(self, screen: Screen, x, y) -> None: ...

    @abstractmethod
    def mouse_down(self, button: int) -> None: ...

    @abstractmethod
    def mouse_up(self, button: int) -> None: ...

    @abstractmethod
    def mouse_click(self, button: int) -> None: ...

    @abstractmethod
    def mouse_get_position(self) -> tuple[Screen, int, int]: ...

    @abstractmethod
    def mouse_show(self) -> None: ...

    @abstractmethod
    def mouse_hide(self) -> None: ...

    @abstractmethod
    def screen_get_dimensions(self, screen: Screen) -> tuple[int, int]: ...

    @abstractmethod
    def screen_draw_box(self, screen: Screen, x, y, w, h, color: str) -> None: ...

    @abstractmethod
    def screen_clear(self, screen: Screen) -> None: ...

    @abstractmethod
    def screen_list(self) -> list[Screen]: ...

    @abstractmethod
    def init_hint(self, bg: str, fg: str, border_radius: int, font: str) -> None: ...

    @abstractmethod
    def hint_draw(self, screen: Screen, hints: Iterable[Hint]) -> None: ...

    @abstractmethod
    def scroll(self, direction: ScrollDirection) -> None: ...

    @abstractmethod
    def copy_selection(self) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...


class VirtualPlatform(Platform):
    """An in-memory backend driven by a scripted queue of key events.

    The keymap maps key codes to (unshifted, shifted) platform key names.
    Queued None entries stand for timeouts. Exhausting the queue raises EOFError.
    """

    def __init__(self, screens: Sequence[Screen], keymap: Mapping[int, Sequence[str | None]]):
        super().__init__()
        self.screens = list(screens)
        if not self.screens:
            raise ValueError("at least one screen is required")
        self.keymap = {code: tuple(levels) for code, levels in keymap.items()}
        first = self.screens[0]
        self.pointer = (first.x + first.w // 2, first.y + first.h // 2)
        self.pending: deque[KeyEvent | None] = deque()
        self.keyboard_grabbed = False
        self.cursor_hidden = False
        self.active_mods = Modifier.NONE
        self.actions: list[tuple] = []
        self.grabbed_keys: list[KeyEvent] = []
        self.hint_style: tuple | None = None
        self.commits = 0

    def queue_events(self, events: Iterable[KeyEvent | None]) -> None:
        self.pending.extend(events)

    def _level_name(self, code: int, shifted: bool) -> str | None:
        levels = self.keymap.get(code, ())
        index = 1 if shifted else 0
        return levels[index] if index < len(levels) else None

    def _track_modifiers(self, event: KeyEvent) -> None:
        mod = _CODE_MODIFIERS.get(self._level_name(event.code, False) or "", Modifier.NONE)
        if event.pressed:
            self.active_mods |= mod
        else:
            self.active_mods &= ~mod

    def input_grab_keyboard(self) -> None:
        if not self.keyboard_grabbed:
            self.keyboard_grabbed = True
            self.active_mods = Modifier.NONE

    def input_ungrab_keyboard(self) -> None:
        self.keyboard_grabbed = False

    def input_next_event(self, timeout: int) -> KeyEvent | None:
        while True:
            if not self.pending:
                raise EOFError("input exhausted")
            event = self.pending.popleft()
            if event is None:
                if timeout:
                    return None
                continue
            self._track_modifiers(event)
            return event

    def input_wait(self, events: Sequence[KeyEvent]) -> KeyEvent | None:
        self.grabbed_keys = [ev for ev in events if ev is not None and ev.code]
        try:
            while True:
                if self.files.changed():
                    return None
                if not self.pending:
                    raise EOFError("input exhausted")
                event = self.pending.popleft()
                if event is None:
                    continue
                self.input_grab_keyboard()
                return event
        finally:
            self.grabbed_keys = []

    def input_lookup_code(self, name: str) -> tuple[int, bool]:
        sym = to_platform_key_name(name)
        for code in sorted(self.keymap):
            if sym in self.keymap[code]:
                return code, self._level_name(code, False) != sym
        return 0, False

    def input_lookup_name(self, code: int, shifted: bool) -> str | None:
        name = self._level_name(code, shifted)
        return from_platform_key_name(name) if name else None

    def mouse_move(self, screen: Screen, x, y) -> None:
        self.pointer = (screen.x + int(x), screen.y + int(y))

    def mouse_down(self, button: int) -> None:
        self.actions.append(("down", button))

    def mouse_up(self, button: int) -> None:
        self.actions.append(("up", button))

    def mouse_click(self, button: int) -> None:
        self.actions.append(("click", button, self.active_mods))

    def mouse_get_position(self) -> tuple[Screen, int, int]:
        px, py = self.pointer
        for screen in self.screens:
            if screen.x <= px <= screen.x + screen.w and screen.y <= py <= screen.y + screen.h:
                return screen, px - screen.x, py - screen.y
        raise RuntimeError(f"pointer {self.pointer} is outside every screen")

    def mouse_show(self) -> None:
        self.cursor_hidden = False

    def mouse_hide(self) -> None:
        self.cursor_hidden = True

    def screen_get_dimensions(self, screen: Screen) -> tuple[int, int]:
        return screen.w, screen.h

    def screen_draw_box(self, screen: Screen, x, y, w, h, color: str) -> None:
        if len(screen.boxes) >= MAX_BOXES:
            raise RuntimeError(f"a screen holds at most {MAX_BOXES} boxes")
        screen.boxes.append((x, y, w, h, color))

    def screen_clear(self, screen: Screen) -> None:
        screen.boxes.clear()
        screen.hints.clear()

    def screen_list(self) -> list[Screen]:
        return list(self.screens)

    def init_hint(self, bg: str, fg: str, border_radius: int, font: str) -> None:
        self.hint_style = (bg, fg, border_radius, font)

    def hint_draw(self, screen: Screen, hints: Iterable[Hint]) -> None:
        screen.hints = list(hints)

    def scroll(self, direction: ScrollDirection) -> None:
        self.actions.append(("scroll", direction))

    def copy_selection(self) -> None:
        self.actions.append(("copy",))

    def commit(self) -> None:
        self.commits += 1