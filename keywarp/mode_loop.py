"""Switching between the interactive modes until the user leaves."""

from __future__ import annotations

import sys
from enum import Enum
from typing import Callable, TextIO

from keywarp.backend import KeyEvent, Platform
from keywarp.config import Config
from keywarp.grid import GridMode
from keywarp.hint import HintController
from keywarp.histfile import HistoryFile
from keywarp.normal import NormalMode, OneshotExit


class Mode(Enum):
    NORMAL = "normal"
    HINT = "hint"
    HINT2 = "hint2"
    GRID = "grid"
    SCREEN_SELECTION = "screen_selection"
    HISTORY = "history"
    HINTSPEC = "hintspec"


# Keys that move from normal mode into another mode, in the order they are checked.
_NORMAL_TRANSITIONS = (
    ("history", Mode.HISTORY),
    ("hint", Mode.HINT),
    ("hint2", Mode.HINT2),
    ("grid", Mode.GRID),
    ("screen", Mode.SCREEN_SELECTION),
)


class ModeLoop:
    """Runs one mode after another, starting from an initial mode.

    screen_selection is called to run screen selection mode; None makes it a no-op.
    """

    def __init__(self, platform: Platform, config: Config, normal: NormalMode,
                 grid: GridMode, hints: HintController, histfile: HistoryFile,
                 screen_selection: Callable[[], object] | None = None,
                 out: TextIO | None = None) -> None:
        self.platform = platform
        self.config = config
        self.normal = normal
        self.grid = grid
        self.hints = hints
        self.histfile = histfile
        self.screen_selection = screen_selection
        self.out = out if out is not None else sys.stdout

    def _transition(self, event: KeyEvent | None) -> Mode | None:
        for key, mode in _NORMAL_TRANSITIONS:
            if self.config.match(event, key):
                return mode
        return None

    def _report(self, mode: Mode, record_history: bool) -> None:
        _, x, y = self.platform.mouse_get_position()
        if record_history:
            self.histfile.add(x, y)
        if mode is Mode.HINTSPEC:
            self.out.write(f"{x} {y} {self.hints.last_selected}\n")
        else:
            self.out.write(f"{x} {y}\n")
        self.out.flush()

    def run(self, initial_mode: Mode = Mode.NORMAL, oneshot: bool = False,
            record_history: bool = False) -> int:
        """Run until the user leaves; return the mouse button that ended it, or 0.

        In oneshot mode the pointer position is printed (and optionally recorded)
        once a selection has been made.
        """
        match = self.config.match
        mode = initial_mode
        event: KeyEvent | None = None

        while True:
            self.config.whitelist(None)

            if mode is Mode.HISTORY:
                if self.hints.history_hint_mode() < 0:
                    return 0
                event = None
                mode = Mode.NORMAL
            elif mode is Mode.HINTSPEC:
                self.hints.hintspec_mode()
            elif mode is Mode.NORMAL:
                try:
                    event = self.normal.run(event, oneshot)
                except OneshotExit as exc:
                    return exc.button
                next_mode = self._transition(event)
                if next_mode is not None:
                    mode = next_mode
                else:
                    rc = match(event, "oneshot_buttons")
                    if rc or event is None:
                        return rc
                    if match(event, "exit"):
                        return 0
            elif mode in (Mode.HINT, Mode.HINT2):
                if self.hints.full_hint_mode(mode is Mode.HINT2) < 0:
                    return 0
                event = None
                mode = Mode.NORMAL
            elif mode is Mode.GRID:
                event = self.grid.run()
                if match(event, "grid_exit"):
                    event = None
                mode = Mode.NORMAL
            elif mode is Mode.SCREEN_SELECTION:
                if self.screen_selection is not None:
                    self.screen_selection()
                mode = Mode.NORMAL
                event = None

            if oneshot:
                button = 0
                if initial_mode is not Mode.NORMAL or (button := match(event, "buttons")):
                    self._report(mode, record_history)
                    return button