"""Hint generation and the interactive hint selection modes."""

from __future__ import annotations

import sys
from typing import Iterable, TextIO

from keywarp.backend import Hint, Platform, Screen
from keywarp.config import Config
from keywarp.histfile import HistoryFile
from keywarp.history import PositionHistory
from keywarp.keys import event_to_str

_SELECTION_KEYS = ("hint_exit", "hint_undo_all", "hint_undo")
_MAX_LABEL = 15


def _cdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def hint_size(sw: int, sh: int, size: int) -> tuple[int, int]:
    """Hint width and height for a screen; size is in thousandths of the screen."""
    if sw < sh:
        sw, sh = sh, sw
    return _cdiv(sw * size, 1000), _cdiv(sh * size, 1000)


def generate_fullscreen_hints(sw: int, sh: int, chars: str, size: int) -> list[Hint]:
    """A len(chars) x len(chars) grid of two-letter hints covering the screen."""
    w, h = hint_size(sw, sh, size)
    n = len(chars)
    if n == 0:
        return []
    colgap = _cdiv(sw, n) - w
    rowgap = _cdiv(sh, n) - h
    x_offset = _cdiv(sw - n * w - (n - 1) * colgap, 2)
    y_offset = _cdiv(sh - n * h - (n - 1) * rowgap, 2)

    hints = []
    for i, first in enumerate(chars):
        x = x_offset + i * (colgap + w)
        for j, second in enumerate(chars):
            y = y_offset + j * (rowgap + h)
            hints.append(Hint(x, y, w, h, first + second))
    return hints


def generate_sift_hints(x: int, y: int, sh: int, chars: str, gap: int, size: int,
                        grid_size: int) -> list[Hint]:
    """A small grid of single-letter hints centred on (x, y)."""
    gap = _cdiv(gap * sh, 1000)
    hint_sz = _cdiv(size * sh, 1000)
    offset = _cdiv((hint_sz + (gap - 1)) * grid_size, 2)
    x -= offset
    y -= offset

    hints = []
    for col in range(grid_size):
        for row in range(grid_size):
            idx = row * grid_size + col
            if idx < len(chars):
                hints.append(Hint(x + (hint_sz + gap) * col, y + (hint_sz + gap) * row,
                                  hint_sz, hint_sz, chars[idx]))
    return hints


def parse_hintspec(lines: Iterable[str], w: int, h: int) -> list[Hint]:
    """Read 'label x y' triples, centring a w x h hint on each point."""
    tokens = [tok for line in lines for tok in line.split()]
    hints = []
    for start in range(0, len(tokens) - 2, 3):
        label, sx, sy = tokens[start:start + 3]
        try:
            x, y = int(sx), int(sy)
        except ValueError:
            break
        hints.append(Hint(x - w // 2, y - h // 2, w, h, label[:_MAX_LABEL]))
    return hints


class HintController:
    """Runs the hint based selection modes."""

    def __init__(self, platform: Platform, config: Config, history: PositionHistory,
                 histfile: HistoryFile) -> None:
        self.platform = platform
        self.config = config
        self.history = history
        self.histfile = histfile
        self.last_selected = ""

    def init_hints(self) -> None:
        cfg = self.config
        self.platform.init_hint(cfg.get("hint_bgcolor"), cfg.get("hint_fgcolor"),
                                cfg.get_int("hint_border_radius"), cfg.get("hint_font"))

    def _hint_size(self, screen: Screen) -> tuple[int, int]:
        sw, sh = self.platform.screen_get_dimensions(screen)
        return hint_size(sw, sh, self.config.get_int("hint_size"))

    def _filter(self, screen: Screen, hints: list[Hint], prefix: str) -> list[Hint]:
        matched = [h for h in hints if h.label.startswith(prefix)]
        self.platform.screen_clear(screen)
        self.platform.hint_draw(screen, matched)
        self.platform.commit()
        return matched

    def select(self, screen: Screen, hints: Iterable[Hint]) -> int:
        """Let the user type a label; -1 if aborted, else 0."""
        p = self.platform
        hints = list(hints)
        self._filter(screen, hints, "")
        rc = 0
        typed = ""
        p.input_grab_keyboard()
        p.mouse_hide()
        self.config.whitelist(_SELECTION_KEYS)
        try:
            while True:
                event = p.input_next_event(0)
                if event is None or not event.pressed:
                    continue
                if self.config.match(event, "hint_exit"):
                    rc = -1
                    break
                elif self.config.match(event, "hint_undo_all"):
                    typed = ""
                elif self.config.match(event, "hint_undo"):
                    typed = typed[:-1]
                else:
                    name = event_to_str(p, event)
                    if len(name) != 1:
                        continue
                    typed += name

                matched = self._filter(screen, hints, typed)
                if len(matched) == 1:
                    h = matched[0]
                    p.screen_clear(screen)
                    nx, ny = h.x + h.w // 2, h.y + h.h // 2
                    # Nudge first: some text widgets ignore an instant warp.
                    p.mouse_move(screen, nx + 1, ny + 1)
                    p.mouse_move(screen, nx, ny)
                    self.last_selected = typed
                    break
                if not matched:
                    break
        finally:
            p.input_ungrab_keyboard()
            p.screen_clear(screen)
            p.mouse_show()
            p.commit()
        return rc

    def _sift(self) -> int:
        cfg = self.config
        screen, x, y = self.platform.mouse_get_position()
        _, sh = self.platform.screen_get_dimensions(screen)
        hints = generate_sift_hints(x, y, sh, cfg.get("hint2_chars"),
                                    cfg.get_int("hint2_gap_size"), cfg.get_int("hint2_size"),
                                    cfg.get_int("hint2_grid_size"))
        return self.select(screen, hints)

    def full_hint_mode(self, second_pass: bool = False) -> int:
        screen, mx, my = self.platform.mouse_get_position()
        self.history.add(mx, my)
        sw, sh = self.platform.screen_get_dimensions(screen)
        hints = generate_fullscreen_hints(sw, sh, self.config.get("hint_chars"),
                                          self.config.get_int("hint_size"))
        if self.select(screen, hints):
            return -1
        return self._sift() if second_pass else 0

    def history_hint_mode(self) -> int:
        screen, _, _ = self.platform.mouse_get_position()
        w, h = self._hint_size(screen)
        hints = [Hint(x - w // 2, y - h // 2, w, h, chr(ord("a") + i))
                 for i, (x, y) in enumerate(self.histfile.read())]
        return self.select(screen, hints)

    def hintspec_mode(self, stream: TextIO | None = None) -> int:
        screen, _, _ = self.platform.mouse_get_position()
        w, h = self._hint_size(screen)
        hints = parse_hintspec(stream if stream is not None else sys.stdin, w, h)
        return self.select(screen, hints)