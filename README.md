# keywarp

A modal, keyboard-driven pointing system. You press an activation key and
steer the mouse pointer from the keyboard instead of reaching for the mouse.

- **Normal mode** (`keywarp.normal.NormalMode`): move the cursor with
  `h j k l`, accelerate and decelerate it, jump to the top, middle, bottom,
  start or end of the screen, click, drag, scroll, print the position, and
  walk back and forth through recent positions. A count typed before a
  direction key (such as `5l`) moves the pointer in fixed steps.
- **Hint mode** (`keywarp.hint.HintController`): label points across the
  whole screen with two-letter hints and type a label to warp there. A second
  pass refines the position with a small grid of single-letter hints around
  the chosen point. History hints and hints read from a `label x y` stream
  are also supported.
- **Grid mode** (`keywarp.grid.GridMode`): split the screen into a grid and
  narrow it cell by cell, or cut it in half in any direction.
- **History**: `keywarp.history.PositionHistory` keeps in-session positions
  with back/forward navigation. `keywarp.histfile.HistoryFile` stores clicked
  positions in a small binary file.

`keywarp.mode_loop.ModeLoop` switches between the modes, and
`keywarp.daemon.Daemon` waits for activation keys and reloads the
configuration when its file changes.

## Configuration

`keywarp.config.Config.load(path)` resets every option to its default and then
applies a plain text file with one `key: value` pair per line (`"-"` reads
standard input; a file that cannot be opened leaves the defaults). Lines
starting with `#` and lines without a colon are ignored, and unknown keys are
skipped. A later line overrides an earlier one.

Key bindings use modifier prefixes `A-` (Alt), `M-` (Meta), `S-` (Shift) and
`C-` (Control); a list of keys is separated by spaces. Any key option can be
set to `unbind`. Integer options that are not integers, and unknown
modifiers, raise `ConfigError`.

```
# activate normal mode with Alt+Meta+c
activation_key: A-M-c
hint_chars: abcdefghijklmnopqrstuvwxyz
speed: 220
cursor_color: #FF4500
indicator: topright
```

`keywarp.config.describe_options()` returns one line per option with its
description and default.

## Using the library

All display access goes through the abstract `keywarp.backend.Platform`.
`VirtualPlatform` is an in-memory implementation: give it screens and a keymap
of key codes to `(unshifted, shifted)` key names, and feed it key events with
`queue_events` (a `None` entry stands for a timeout; an empty queue raises
`EOFError`). It records clicks, scrolls and drawn boxes so you can inspect
them.

```python
from keywarp.backend import KeyEvent, Modifier, Screen, VirtualPlatform, hex_to_rgba
from keywarp.keys import event_to_str, parse_key
from keywarp.history import PositionHistory
from keywarp.histfile import HistoryFile

hex_to_rgba("#FF4500")               # (255, 69, 0, 255)

platform = VirtualPlatform([Screen(0, 0, 1920, 1080)], {38: ("a", "A"), 9: ("Escape",)})
parse_key(platform, "C-a")           # KeyEvent(code=38, mods=Modifier.CONTROL, pressed=True)
parse_key(platform, "esc")           # KeyEvent(code=9, ...)
event_to_str(platform, KeyEvent(38, Modifier.CONTROL))   # "C-a"

history = PositionHistory(16)
history.add(100, 200)
history.add(300, 400)
history.back()                       # (100, 200)

clicks = HistoryFile("history", 16)
clicks.add(640, 360)
clicks.read()                        # [(640, 360)]
```

In oneshot mode, a mouse button pressed in normal mode raises
`keywarp.normal.OneshotExit` carrying the button; `ModeLoop.run` turns it into
its return value.

## What this package does not do

- It has no backend for a real display server. Only the abstract `Platform`
  and the in-memory `VirtualPlatform` are provided, so it cannot move a real
  pointer until you supply a `Platform` implementation.
- It installs no command. You build the pieces and call `Daemon.run()` or
  `ModeLoop.run()` yourself.
- Smooth scrolling and screen selection are not implemented here.
  `NormalMode` takes a `Scroller` you provide, and `ModeLoop` takes an
  optional `screen_selection` callable. Without one, screen selection mode
  does nothing.