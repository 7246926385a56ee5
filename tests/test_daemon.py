import os
import string

import pytest

from keywarp.backend import Screen, VirtualPlatform
from keywarp.config import Config
from keywarp.daemon import ACTIVATION_KEYS, Daemon
from keywarp.keys import parse_key
from keywarp.mode_loop import Mode


def make_keymap():
    keymap = {}
    code = 10
    for c in string.ascii_lowercase:
        keymap[code] = (c, c.upper())
        code += 1
    for d in string.digits:
        keymap[code] = (d, "dollar") if d == "4" else (d,)
        code += 1
    for name in ("comma", "period", "minus", "slash", "semicolon", "Escape",
                 "BackSpace", "apostrophe"):
        keymap[code] = (name,)
        code += 1
    return keymap


class FakeHints:
    def __init__(self):
        self.init_calls = 0
        self.full_calls = []
        self.history_calls = 0

    def init_hints(self):
        self.init_calls += 1

    def full_hint_mode(self, second_pass=False):
        self.full_calls.append(second_pass)
        return 0

    def history_hint_mode(self):
        self.history_calls += 1
        return 0


class FakeMouse:
    def __init__(self):
        self.configure_calls = 0

    def configure(self):
        self.configure_calls += 1


class FakeLoop:
    def __init__(self):
        self.calls = []

    def run(self, initial_mode, oneshot=False, record_history=False):
        self.calls.append((initial_mode, oneshot, record_history))
        return 0


@pytest.fixture
def platform():
    return VirtualPlatform([Screen(0, 0, 1920, 1080)], make_keymap())


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config"
    path.write_text("")
    return path


@pytest.fixture
def parts(platform, config_path):
    config = Config(platform)
    hints, mouse, loop = FakeHints(), FakeMouse(), FakeLoop()
    daemon = Daemon(platform, config, str(config_path), hints, mouse, loop)
    daemon.reload()
    return daemon, hints, mouse, loop


def press(platform, daemon, spec):
    platform.queue_events([parse_key(platform, spec)])
    return daemon.step()


def test_reload_parses_every_activation_key(platform, parts):
    daemon, hints, mouse, _ = parts
    assert len(daemon.activation_events) == len(ACTIVATION_KEYS)
    assert parse_key(platform, "A-M-c") in daemon.activation_events
    assert hints.init_calls == 1
    assert mouse.configure_calls == 1


@pytest.mark.parametrize("spec, mode", [
    ("A-M-c", Mode.NORMAL),
    ("A-M-g", Mode.GRID),
    ("A-M-x", Mode.HINT),
    ("A-M-X", Mode.HINT2),
    ("A-M-s", Mode.SCREEN_SELECTION),
    ("A-M-h", Mode.HISTORY),
])
def test_activation_key_starts_mode_loop(platform, parts, spec, mode):
    daemon, _, _, loop = parts
    assert press(platform, daemon, spec) is mode
    assert loop.calls == [(mode, False, True)]


def test_hint_oneshot_key_runs_hint_mode_only(platform, parts):
    daemon, hints, _, loop = parts
    assert press(platform, daemon, "A-M-l") is Mode.HINT
    assert hints.full_calls == [False]
    assert loop.calls == []


def test_hint2_oneshot_key_runs_two_pass_hint_mode(platform, parts):
    daemon, hints, _, loop = parts
    assert press(platform, daemon, "A-M-L") is Mode.HINT2
    assert hints.full_calls == [True]
    assert loop.calls == []


def test_config_file_overrides_binding(platform, config_path):
    config_path.write_text("activation_key: A-M-z\n")
    config = Config(platform)
    loop = FakeLoop()
    daemon = Daemon(platform, config, str(config_path), FakeHints(), FakeMouse(), loop)
    daemon.reload()
    assert parse_key(platform, "A-M-z") in daemon.activation_events
    assert press(platform, daemon, "A-M-z") is Mode.NORMAL
    assert loop.calls == [(Mode.NORMAL, False, True)]


def test_unbound_activation_key_is_not_grabbed(platform, config_path):
    config_path.write_text("activation_key: unbind\n")
    daemon = Daemon(platform, Config(platform), str(config_path), FakeHints(),
                    FakeMouse(), FakeLoop())
    daemon.reload()
    assert len(daemon.activation_events) == len(ACTIVATION_KEYS) - 1
    assert parse_key(platform, "A-M-c") not in daemon.activation_events


def test_changed_config_file_triggers_reload(platform, parts, config_path):
    daemon, hints, mouse, loop = parts
    platform.monitor_file(str(config_path))
    config_path.write_text("grid_activation_key: A-M-q\n")
    stat = os.stat(config_path)
    os.utime(config_path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))

    assert daemon.step() is None
    assert hints.init_calls == 2
    assert mouse.configure_calls == 2

    assert press(platform, daemon, "A-M-q") is Mode.GRID
    assert loop.calls == [(Mode.GRID, False, True)]


def test_run_handles_activations_until_input_ends(platform, config_path):
    loop = FakeLoop()
    hints = FakeHints()
    daemon = Daemon(platform, Config(platform), str(config_path), hints, FakeMouse(), loop)
    platform.queue_events([parse_key(platform, "A-M-g"), parse_key(platform, "A-M-c")])
    with pytest.raises(EOFError):
        daemon.run()
    assert loop.calls == [(Mode.GRID, False, True), (Mode.NORMAL, False, True)]
    assert hints.init_calls == 1


def test_missing_config_file_uses_defaults(platform, tmp_path):
    loop = FakeLoop()
    daemon = Daemon(platform, Config(platform), str(tmp_path / "missing"), FakeHints(),
                    FakeMouse(), loop)
    daemon.reload()
    assert press(platform, daemon, "A-M-x") is Mode.HINT
    assert loop.calls == [(Mode.HINT, False, True)]