"""Continuous and count-prefixed keyboard-driven pointer movement."""

from __future__ import annotations

import time
from typing import Callable

from keywarp.backend import KeyEvent, Modifier, Platform, Screen
from keywarp.config import Config

_STEP = 15


class Mouse:
    """Moves the pointer from direction key presses.

    clock returns a time in seconds. process_key expects to be called about
    every 10ms; reset should be called when a containing event loop starts.
    """

    def __init__(self, platform: Platform, config: Config,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.platform = platform
        self.config = config
        self.clock = clock
        self._last_update = clock()

        self._v0 = self._vf = self._vd = 0.0
        self._a = self._a0 = self._a1 = 0.0
        self._cursor_size = 0
        self._sw = self._sh = 0

        self._left = self._right = self._up = self._down = 0
        self._resting = True
        self._slow = False
        self._screen: Screen | None = None
        self._cx = 0.0
        self._cy = 0.0
        self._v = 0.0
        self._count = 0

    def configure(self) -> None:
        """Load speeds and accelerations (per millisecond) from the config."""
        self._update_cursor_position()
        cfg = self.config
        self._cursor_size = (cfg.get_int("cursor_size") * self._sh) // 1080
        self._v0 = cfg.get_int("speed") / 1000.0
        self._vf = cfg.get_int("max_speed") / 1000.0
        self._vd = cfg.get_int("decelerator_speed") / 1000.0
        self._a0 = cfg.get_int("acceleration") / 1000000.0
        self._a1 = cfg.get_int("accelerator_acceleration") / 1000000.0
        self._a = self._a0

    def _update_cursor_position(self) -> None:
        screen, x, y = self.platform.mouse_get_position()
        self._screen = screen
        self._sw, self._sh = self.platform.screen_get_dimensions(screen)
        self._cx = float(x)
        self._cy = float(y)

    def _moving(self) -> bool:
        return bool(self._left or self._right or self._up or self._down)

    def _move(self) -> None:
        self.platform.mouse_move(self._screen, int(self._cx), int(self._cy))

    def _tick(self) -> None:
        now = self.clock()
        elapsed = (now - self._last_update) * 1000.0
        self._last_update = now

        dx = self._right - self._left
        dy = self._down - self._up

        if not dx and not dy:
            self._resting = True
            return

        if self._resting:
            self._update_cursor_position()
            if not self._slow:
                self._v = self._v0
            self._resting = False

        maxx = self._sw - self._cursor_size
        maxy = self._sh - self._cursor_size // 2
        miny = self._cursor_size // 2
        minx = 1

        self._cx += self._v * elapsed * dx
        self._cy += self._v * elapsed * dy

        self._v = min(self._v + elapsed * self._a, self._vf)

        self._cx = min(max(self._cx, minx), maxx)
        self._cy = min(max(self._cy, miny), maxy)

        self._move()

    def _digit(self, code: int) -> int | None:
        name = self.platform.input_lookup_name(code, False)
        if not name or not ("0" <= name[0] <= "9"):
            return None
        return ord(name[0]) - ord("0")

    def process_key(self, event: KeyEvent | None, up_key: str, down_key: str,
                    left_key: str, right_key: str) -> bool:
        """Handle an event (None for a timeout); True if the pointer is affected."""
        if event is None:
            self._tick()
            return self._moving()

        digit = self._digit(event.code)
        if digit is not None and event.mods == Modifier.NONE:
            if event.pressed:
                self._count = self._count * 10 + digit
            # A lone 0 propagates so it can be bound to other actions.
            return self._count != 0

        pressed = int(event.pressed)
        handled = True
        match = self.config.match
        if match(event, down_key):
            self._down = pressed
        elif match(event, left_key):
            self._left = pressed
        elif match(event, right_key):
            self._right = pressed
        elif match(event, up_key):
            self._up = pressed
        else:
            handled = False

        if self._count and handled:
            x = self._right - self._left
            y = self._down - self._up
            self._update_cursor_position()
            self._cx += _STEP * self._count * x
            self._cy += _STEP * self._count * y
            self._move()
            self._count = 0
            self._left = self._right = self._up = self._down = 0
            return True

        self._tick()
        return handled

    def fast(self) -> None:
        self._a = self._a1

    def normal(self) -> None:
        self._v = self._v0
        self._a = self._a0
        self._slow = False

    def slow(self) -> None:
        self._v = self._vd
        self._a = 0.0
        self._slow = True

    def reset(self) -> None:
        self._count = 0
        self._left = self._right = self._up = self._down = 0
        self._a = self._a0
        self._v = self._v0
        self._update_cursor_position()
        self._tick()