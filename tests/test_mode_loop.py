import io
import string

import pytest

from keywarp.backend import Screen, VirtualPlatform
from keywarp.config import Config
from keywarp.histfile import HistoryFile
from keywarp.keys import parse_key
from keywarp.mode_loop import Mode, ModeLoop
from keywarp.normal import OneshotExit

NORMAL_KEYS = [
    "accelerator", "bottom", "buttons", "copy_and_exit", "decelerator", "down", "drag",
    "end", "exit", "grid", "hint", "hint2", "hist_back", "hist_forward", "history",
    "left", "middle", "oneshot_buttons", "print", "right", "screen", "scroll_down",
    "scroll_up", "start", "top", "up",
]


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


class FakeNormal:
    def __init__(self, config, results):
        self.config = config
        self.results = list(results)
        self.calls = []

    def run(self, start_event=None, oneshot=False):
        self.calls.append((start_event, oneshot))
        self.config.whitelist(NORMAL_KEYS)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeGrid:
    def __init__(self, config, results):
        self.config = config
        self.results = list(results)
        self.calls = 0

    def run(self):
        self.calls += 1
        self.config.whitelist(None)
        return self.results.pop(0)


class FakeHints:
    def __init__(self, full=(), history=(), hintspec=(), last_selected=""):
        self.full = list(full)
        self.history = list(history)
        self.hintspec = list(hintspec)
        self.full_calls = []
        self.history_calls = 0
        self.hintspec_calls = 0
        self.last_selected = last_selected

    def full_hint_mode(self, second_pass=False):
        self.full_calls.append(second_pass)
        return self.full.pop(0)

    def history_hint_mode(self):
        self.history_calls += 1
        return self.history.pop(0)

    def hintspec_mode(self, stream=None):
        self.hintspec_calls += 1
        return self.hintspec.pop(0)


@pytest.fixture
def platform():
    return VirtualPlatform([Screen(0, 0, 1920, 1080)], make_keymap())


@pytest.fixture
def config(platform):
    cfg = Config(platform)
    cfg.load()
    return cfg


@pytest.fixture
def histfile(tmp_path):
    return HistoryFile(tmp_path / "history")


def key(platform, spec):
    return parse_key(platform, spec)


def make_loop(platform, config, histfile, normal=(), grid=(), hints=None, screen=None):
    out = io.StringIO()
    normal_mode = FakeNormal(config, normal)
    grid_mode = FakeGrid(config, grid)
    hints = hints if hints is not None else FakeHints()
    loop = ModeLoop(platform, config, normal_mode, grid_mode, hints, histfile, screen, out)
    return loop, normal_mode, grid_mode, hints, out


def test_exit_key_ends_loop_with_zero(platform, config, histfile):
    loop, normal, _, _, out = make_loop(platform, config, histfile, normal=[key(platform, "esc")])
    assert loop.run(Mode.NORMAL) == 0
    assert len(normal.calls) == 1
    assert out.getvalue() == ""


def test_hint_key_runs_hint_mode_then_returns_to_normal(platform, config, histfile):
    hints = FakeHints(full=[0])
    loop, normal, _, _, _ = make_loop(
        platform, config, histfile,
        normal=[key(platform, "x"), key(platform, "esc")], hints=hints)
    assert loop.run(Mode.NORMAL) == 0
    assert hints.full_calls == [False]
    assert normal.calls == [(None, False), (None, False)]


def test_hint2_key_runs_two_pass_hint_mode(platform, config, histfile):
    hints = FakeHints(full=[0])
    loop, _, _, _, _ = make_loop(
        platform, config, histfile,
        normal=[key(platform, "X"), key(platform, "esc")], hints=hints)
    assert loop.run(Mode.NORMAL) == 0
    assert hints.full_calls == [True]


def test_aborted_hint_selection_ends_loop(platform, config, histfile):
    hints = FakeHints(full=[-1])
    loop, normal, _, _, _ = make_loop(
        platform, config, histfile, normal=[key(platform, "x")], hints=hints)
    assert loop.run(Mode.NORMAL) == 0
    assert len(normal.calls) == 1


@pytest.mark.parametrize("spec, button", [("n", 1), ("-", 2), ("/", 3)])
def test_oneshot_button_returns_its_index(platform, config, histfile, spec, button):
    loop, _, _, _, _ = make_loop(platform, config, histfile, normal=[key(platform, spec)])
    assert loop.run(Mode.NORMAL) == button


def test_copy_and_exit_ends_loop(platform, config, histfile):
    loop, normal, _, _, _ = make_loop(platform, config, histfile, normal=[None])
    assert loop.run(Mode.NORMAL) == 0
    assert len(normal.calls) == 1


def test_grid_exit_key_returns_to_normal_without_event(platform, config, histfile):
    loop, normal, grid, _, _ = make_loop(
        platform, config, histfile,
        normal=[key(platform, "g"), key(platform, "esc")], grid=[key(platform, "c")])
    assert loop.run(Mode.NORMAL) == 0
    assert grid.calls == 1
    assert normal.calls[1] == (None, False)


def test_grid_terminating_event_is_passed_to_normal(platform, config, histfile):
    esc = key(platform, "esc")
    loop, normal, _, _, _ = make_loop(
        platform, config, histfile, normal=[key(platform, "g"), esc], grid=[esc])
    assert loop.run(Mode.NORMAL) == 0
    assert normal.calls[1][0] == esc


def test_screen_selection_runs_then_returns_to_normal(platform, config, histfile):
    calls = []
    loop, normal, _, _, _ = make_loop(
        platform, config, histfile,
        normal=[key(platform, "s"), key(platform, "esc")],
        screen=lambda: calls.append("screen"))
    assert loop.run(Mode.NORMAL) == 0
    assert calls == ["screen"]
    assert normal.calls[1] == (None, False)


def test_history_key_runs_history_mode(platform, config, histfile):
    hints = FakeHints(history=[0])
    loop, normal, _, _, _ = make_loop(
        platform, config, histfile,
        normal=[key(platform, ";"), key(platform, "esc")], hints=hints)
    assert loop.run(Mode.NORMAL) == 0
    assert hints.history_calls == 1
    assert len(normal.calls) == 2


def test_initial_history_mode_aborted(platform, config, histfile):
    hints = FakeHints(history=[-1])
    loop, normal, _, _, _ = make_loop(platform, config, histfile, hints=hints)
    assert loop.run(Mode.HISTORY) == 0
    assert normal.calls == []


def test_oneshot_hint_prints_and_records_position(platform, config, histfile):
    platform.pointer = (100, 200)
    hints = FakeHints(full=[0])
    loop, normal, _, _, out = make_loop(platform, config, histfile, hints=hints)
    assert loop.run(Mode.HINT, oneshot=True, record_history=True) == 0
    assert out.getvalue() == "100 200\n"
    assert histfile.read() == [(100, 200)]
    assert normal.calls == []


def test_oneshot_without_recording_leaves_history_empty(platform, config, histfile):
    platform.pointer = (100, 200)
    hints = FakeHints(full=[0])
    loop, _, _, _, out = make_loop(platform, config, histfile, hints=hints)
    loop.run(Mode.HINT, oneshot=True, record_history=False)
    assert out.getvalue() == "100 200\n"
    assert histfile.read() == []


def test_oneshot_hintspec_prints_selected_label(platform, config, histfile):
    platform.pointer = (100, 200)
    hints = FakeHints(hintspec=[0], last_selected="ab")
    loop, _, _, _, out = make_loop(platform, config, histfile, hints=hints)
    assert loop.run(Mode.HINTSPEC, oneshot=True) == 0
    assert out.getvalue() == "100 200 ab\n"
    assert hints.hintspec_calls == 1


def test_oneshot_normal_button_is_returned(platform, config, histfile):
    loop, _, _, _, _ = make_loop(platform, config, histfile, normal=[OneshotExit(3)])
    assert loop.run(Mode.NORMAL, oneshot=True) == 3


def test_oneshot_grid_ended_by_button(platform, config, histfile):
    platform.pointer = (100, 200)
    loop, normal, _, _, out = make_loop(
        platform, config, histfile, normal=[key(platform, "g")], grid=[key(platform, ",")])
    assert loop.run(Mode.NORMAL, oneshot=True) == 2
    assert out.getvalue() == "100 200\n"
    assert normal.calls == [(None, True)]