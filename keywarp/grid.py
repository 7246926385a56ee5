"""Grid mode: recursively narrow a grid to position the pointer."""

from __future__ import annotations

from keywarp.backend import KeyEvent, Platform, Screen
from keywarp.config import Config
from keywarp.mouse import Mouse

_GRID_KEYS = (
    "grid_up", "grid_down", "grid_right", "grid_left",
    "grid_cut_up", "grid_cut_down", "grid_cut_right", "grid_cut_left",
    "grid_keys", "buttons", "oneshot_buttons",
    "grid", "hint", "exit", "drag", "grid_exit",
)
_EXIT_KEYS = ("buttons", "oneshot_buttons", "grid", "hint", "exit", "drag", "grid_exit")


def _cdiv(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def grid_lines(sz: int, nc: int, nr: int, x: int, y: int, w: int,
               h: int) -> list[tuple[int, int, int, int]]:
    """Boxes (x, y, w, h) of the lines of an nc x nr grid; empty if it does not fit."""
    ygap = _cdiv(h - (nr + 1) * sz, nr)
    xgap = _cdiv(w - (nc + 1) * sz, nc)
    if xgap < 0 or ygap < 0:
        return []
    rows = [(x, y + (ygap + sz) * i, w, sz) for i in range(nr + 1)]
    cols = [(x + (xgap + sz) * i, y, sz, h) for i in range(nc + 1)]
    return rows + cols


class GridMode:
    def __init__(self, platform: Platform, config: Config, mouse: Mouse) -> None:
        self.platform = platform
        self.config = config
        self.mouse = mouse
        self._screen: Screen | None = None
        self._width = 0
        self._height = 0
        self._last: tuple[int, int] | None = None

    def _redraw(self, mx: int, my: int, force: bool) -> None:
        if not force and self._last == (mx, my):
            return
        self._last = (mx, my)

        cfg, p, scr = self.config, self.platform, self._screen
        nc, nr = cfg.get_int("grid_nc"), cfg.get_int("grid_nr")
        cursz = cfg.get_int("cursor_size")
        gsz = cfg.get_int("grid_size")
        gbsz = cfg.get_int("grid_border_size")
        gw, gh = self._width, self._height
        x, y = mx - gw // 2, my - gh // 2

        p.screen_clear(scr)
        border_color = cfg.get("grid_border_color")
        for box in grid_lines(gsz + gbsz * 2, nc, nr, x, y, gw, gh):
            p.screen_draw_box(scr, *box, border_color)
        color = cfg.get("grid_color")
        for box in grid_lines(gsz, nc, nr, x + gbsz, y + gbsz, gw - gbsz * 2, gh - gbsz * 2):
            p.screen_draw_box(scr, *box, color)
        p.screen_draw_box(scr, x + gw // 2 - cursz // 2, y + gh // 2 - cursz // 2,
                          cursz, cursz, cfg.get("cursor_color"))
        p.commit()

    def _move(self, mx: int, my: int) -> None:
        self.platform.mouse_move(self._screen, mx, my)
        self._redraw(mx, my, False)

    def run(self) -> KeyEvent | None:
        """Run until a terminating key; return that event."""
        p, cfg = self.platform, self.config
        nc, nr = cfg.get_int("grid_nc"), cfg.get_int("grid_nr")

        p.input_grab_keyboard()
        p.mouse_hide()
        self.mouse.reset()

        self._screen, _, _ = p.mouse_get_position()
        self._width, self._height = p.screen_get_dimensions(self._screen)
        mx, my = self._width // 2, self._height // 2
        p.mouse_move(self._screen, mx, my)
        self._redraw(mx, my, True)

        cfg.whitelist(_GRID_KEYS)
        try:
            while True:
                event = p.input_next_event(10)
                _, mx, my = p.mouse_get_position()

                if self.mouse.process_key(event, "grid_up", "grid_down", "grid_left", "grid_right"):
                    self._redraw(mx, my, False)
                    continue
                if event is None or not event.pressed:
                    continue

                idx = cfg.match(event, "grid_keys")
                if idx and idx <= nc * nr:
                    my = (my - self._height // 2) + (self._height // nr) * ((idx - 1) // nc)
                    mx = (mx - self._width // 2) + (self._width // nc) * ((idx - 1) % nc)
                    self._height //= nr
                    self._width //= nc
                    mx += self._width // 2
                    my += self._height // 2
                    self._move(mx, my)

                if cfg.match(event, "grid_cut_up"):
                    my -= self._height // 4
                    self._height //= 2
                    self._move(mx, my)
                if cfg.match(event, "grid_cut_down"):
                    my += self._height // 4
                    self._height //= 2
                    self._move(mx, my)
                if cfg.match(event, "grid_cut_left"):
                    mx -= self._width // 4
                    self._width //= 2
                    self._move(mx, my)
                if cfg.match(event, "grid_cut_right"):
                    mx += self._width // 4
                    self._width //= 2
                    self._move(mx, my)

                if any(cfg.match(event, key) for key in _EXIT_KEYS):
                    return event

                self._redraw(mx, my, False)
        finally:
            cfg.whitelist(None)
            p.screen_clear(self._screen)
            p.mouse_show()
            p.input_ungrab_keyboard()
            p.commit()