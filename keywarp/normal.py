"""Normal mode: keyboard driven pointer movement, clicks, dragging and scrolling."""

from __future__ import annotations

import re
import sys
from typing import Protocol, TextIO

from keywarp.backend import KeyEvent, Platform, ScrollDirection, Screen
from keywarp.config import Config
from keywarp.histfile import HistoryFile
from keywarp.history import PositionHistory
from keywarp.keys import event_to_str
from keywarp.mouse import Mouse

_INDICATOR_GAP = 10
_BLINK = re.compile(r"\s*([+-]?\d+)(?:\s*([+-]?\d+))?")
_NORMAL_KEYS = (
    "accelerator", "bottom", "buttons", "copy_and_exit", "decelerator", "down", "drag",
    "end", "exit", "grid", "hint", "hint2", "hist_back", "hist_forward", "history",
    "left", "middle", "oneshot_buttons", "print", "right", "screen", "scroll_down",
    "scroll_up", "start", "top", "up",
)
_LEAVE_KEYS = ("exit", "grid", "screen", "history", "hint2", "hint")


class Scroller(Protocol):
    """Smooth scrolling driven from normal mode."""

    def tick(self) -> None: ...

    def stop(self) -> None: ...

    def accelerate(self, direction: ScrollDirection) -> None: ...

    def decelerate(self) -> None: ...


class OneshotExit(Exception):
    """A mouse button was pressed in oneshot mode; the program should exit with it."""

    def __init__(self, button: int) -> None:
        super().__init__(f"oneshot button {button}")
        self.button = button


def parse_blink_interval(s: str) -> tuple[int, int]:
    """(on, off) milliseconds; a single value is used for both."""
    found = _BLINK.match(s)
    if not found:
        raise ValueError(f"{s!r} is not a valid blink interval")
    on = int(found.group(1))
    off = int(found.group(2)) if found.group(2) is not None else on
    return on, off


def indicator_box(indicator: str, sw: int, sh: int,
                  size: int) -> tuple[int, int, int, int] | None:
    """The (x, y, w, h) of the mode indicator in the named corner, or None."""
    gap = _INDICATOR_GAP
    corners = {
        "bottomleft": (gap, sh - size - gap),
        "topleft": (gap, gap),
        "topright": (sw - size - gap, gap),
        "bottomright": (sw - size - gap, sh - size - gap),
    }
    if indicator not in corners:
        return None
    x, y = corners[indicator]
    return x, y, size, size


class NormalMode:
    def __init__(self, platform: Platform, config: Config, mouse: Mouse,
                 history: PositionHistory, histfile: HistoryFile, scroller: Scroller,
                 out: TextIO | None = None) -> None:
        self.platform = platform
        self.config = config
        self.mouse = mouse
        self.history = history
        self.histfile = histfile
        self.scroller = scroller
        self.out = out if out is not None else sys.stdout

    def _redraw(self, screen: Screen, x: int, y: int, hide_cursor: bool) -> None:
        p, cfg = self.platform, self.config
        sw, sh = p.screen_get_dimensions(screen)
        size = (cfg.get_int("indicator_size") * sh) // 1080
        cursz = cfg.get_int("cursor_size")
        p.screen_clear(screen)
        if not hide_cursor:
            p.screen_draw_box(screen, x + 1, y - cursz // 2, cursz, cursz, cfg.get("cursor_color"))
        box = indicator_box(cfg.get("indicator"), sw, sh, size)
        if box:
            p.screen_draw_box(screen, *box, cfg.get("indicator_color"))
        p.commit()

    def _move(self, screen: Screen, x: int, y: int, hide_cursor: bool) -> None:
        self.platform.mouse_move(screen, x, y)
        self._redraw(screen, x, y, hide_cursor)

    def _oneshot_repeat(self, button: int) -> None:
        timeout = self.config.get_int("oneshot_timeout")
        while True:
            event = self.platform.input_next_event(timeout)
            if event is None:
                return
            if event.pressed and self.config.match(event, "oneshot_buttons"):
                self.platform.mouse_click(button)

    def run(self, start_event: KeyEvent | None = None, oneshot: bool = False) -> KeyEvent | None:
        """Run until a key leaves normal mode; return that key (None after copy)."""
        p, cfg, match = self.platform, self.config, self.config.match
        cursz = cfg.get_int("cursor_size")
        system_cursor = cfg.get_int("normal_system_cursor")
        on_time, off_time = parse_blink_interval(cfg.get("normal_blink_interval"))
        show_cursor = not system_cursor
        dragging = False

        p.input_grab_keyboard()
        screen, mx, my = p.mouse_get_position()
        sw, sh = p.screen_get_dimensions(screen)
        if not system_cursor:
            p.mouse_hide()
        self.mouse.reset()
        self._redraw(screen, mx, my, not show_cursor)

        now = 0
        last_blink = 0
        pending = start_event
        while True:
            cfg.whitelist(_NORMAL_KEYS)
            if pending is None:
                event = p.input_next_event(10)
                now += 10
            else:
                event, pending = pending, None

            screen, mx, my = p.mouse_get_position()

            if not system_cursor and on_time:
                if show_cursor and now - last_blink >= on_time:
                    show_cursor = False
                    self._redraw(screen, mx, my, True)
                    last_blink = now
                elif not show_cursor and now - last_blink >= off_time:
                    show_cursor = True
                    self._redraw(screen, mx, my, False)
                    last_blink = now

            self.scroller.tick()
            if self.mouse.process_key(event, "up", "down", "left", "right"):
                self._redraw(screen, mx, my, not show_cursor)
                continue
            if event is None:
                continue

            hide = not show_cursor
            if match(event, "scroll_down") or match(event, "scroll_up"):
                direction = (ScrollDirection.DOWN if match(event, "scroll_down")
                             else ScrollDirection.UP)
                self._redraw(screen, mx, my, True)
                if event.pressed:
                    self.scroller.stop()
                    self.scroller.accelerate(direction)
                else:
                    self.scroller.decelerate()
            elif match(event, "accelerator"):
                self.mouse.fast() if event.pressed else self.mouse.normal()
            elif match(event, "decelerator"):
                self.mouse.slow() if event.pressed else self.mouse.normal()
            elif not event.pressed:
                p.commit()
                continue

            if match(event, "top"):
                self._move(screen, mx, cursz // 2, hide)
            elif match(event, "bottom"):
                self._move(screen, mx, sh - cursz // 2, hide)
            elif match(event, "middle"):
                self._move(screen, mx, sh // 2, hide)
            elif match(event, "start"):
                self._move(screen, 1, my, hide)
            elif match(event, "end"):
                self._move(screen, sw - cursz, my, hide)
            elif match(event, "hist_back"):
                self.history.add(mx, my)
                mx, my = self.history.back() or (mx, my)
                self._move(screen, mx, my, hide)
            elif match(event, "hist_forward"):
                mx, my = self.history.forward() or (mx, my)
                self._move(screen, mx, my, hide)
            elif match(event, "drag"):
                dragging = not dragging
                button = cfg.get_int("drag_button")
                p.mouse_down(button) if dragging else p.mouse_up(button)
            elif match(event, "copy_and_exit"):
                p.mouse_up(cfg.get_int("drag_button"))
                p.copy_selection()
                event = None
                break
            elif any(match(event, key) for key in _LEAVE_KEYS):
                break
            elif match(event, "print"):
                self.out.write(f"{mx} {my} {event_to_str(p, event)}\n")
                self.out.flush()
            elif button := match(event, "buttons"):
                if oneshot:
                    self.out.write(f"{mx} {my}\n")
                    self.out.flush()
                    raise OneshotExit(button)
                self.history.add(mx, my)
                self.histfile.add(mx, my)
                p.mouse_click(button)
            elif button := match(event, "oneshot_buttons"):
                self.history.add(mx, my)
                p.mouse_click(button)
                self._oneshot_repeat(button)
                break

            p.commit()

        p.mouse_show()
        p.screen_clear(screen)
        p.input_ungrab_keyboard()
        p.commit()
        return event