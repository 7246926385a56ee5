"""The background loop that waits for activation keys and starts modes."""

from __future__ import annotations

from keywarp.backend import KeyEvent, Platform
from keywarp.config import Config
from keywarp.hint import HintController
from keywarp.keys import UnknownKeyError, parse_key
from keywarp.mode_loop import Mode, ModeLoop
from keywarp.mouse import Mouse

ACTIVATION_KEYS = (
    "activation_key",
    "hint_activation_key",
    "grid_activation_key",
    "hint_oneshot_key",
    "screen_activation_key",
    "hint2_activation_key",
    "hint2_oneshot_key",
    "history_activation_key",
)

_MODE_KEYS = (
    ("activation_key", Mode.NORMAL),
    ("grid_activation_key", Mode.GRID),
    ("hint_activation_key", Mode.HINT),
    ("hint2_activation_key", Mode.HINT2),
    ("screen_activation_key", Mode.SCREEN_SELECTION),
    ("history_activation_key", Mode.HISTORY),
)


class Daemon:
    """Waits for global activation keys and reloads the config when it changes."""

    def __init__(self, platform: Platform, config: Config, config_path,
                 hints: HintController, mouse: Mouse, loop: ModeLoop) -> None:
        self.platform = platform
        self.config = config
        self.config_path = config_path
        self.hints = hints
        self.mouse = mouse
        self.loop = loop
        self.activation_events: list[KeyEvent] = []

    def reload(self) -> None:
        """Re-read the config file and rebuild everything derived from it."""
        self.config.load(self.config_path)
        self.hints.init_hints()
        self.mouse.configure()

        events = []
        for key in ACTIVATION_KEYS:
            try:
                event = parse_key(self.platform, self.config.get(key))
            except UnknownKeyError:
                continue
            if event is not None:
                events.append(event)
        self.activation_events = events

    def step(self) -> Mode | None:
        """Handle one activation; return the mode entered, or None after a reload."""
        event = self.platform.input_wait(self.activation_events)
        if event is None:
            self.reload()
            return None

        match = self.config.match
        self.config.whitelist(ACTIVATION_KEYS)

        for key, mode in _MODE_KEYS:
            if match(event, key):
                self.loop.run(mode, False, True)
                return mode

        if match(event, "hint2_oneshot_key"):
            self.hints.full_hint_mode(True)
            return Mode.HINT2
        if match(event, "hint_oneshot_key"):
            self.hints.full_hint_mode(False)
            return Mode.HINT
        if match(event, "history_oneshot_key"):
            self.hints.history_hint_mode()
            return Mode.HISTORY

        self.loop.run(Mode.NORMAL, False, True)
        return Mode.NORMAL

    def run(self) -> None:
        """Watch the config file and handle activations forever."""
        self.platform.monitor_file(self.config_path)
        self.reload()
        while True:
            self.step()