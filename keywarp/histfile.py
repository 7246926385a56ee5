"""Persistent history of clicked positions stored as a fixed-size binary record."""

from __future__ import annotations

import os
import struct

_PROXIMITY = 30


class HistoryFile:
    """A file holding up to max_entries recent (x, y) click positions.

    The record is a native int count followed by max_entries (x, y) int pairs.
    """

    def __init__(self, path, max_entries: int = 16) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.path = os.fspath(path)
        self.max_entries = max_entries
        self._record = struct.Struct(f"=i{2 * max_entries}i")

    def read(self) -> list[tuple[int, int]]:
        """Return stored positions, oldest first, creating the file if absent."""
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o600)
        with os.fdopen(fd, "rb") as fh:
            data = fh.read(self._record.size)

        header = struct.calcsize("=i")
        if len(data) < header:
            return []
        available = (len(data) - header) // struct.calcsize("=ii")
        values = self._record.unpack(data.ljust(self._record.size, b"\0"))
        count = max(0, min(values[0], available, self.max_entries))
        pairs = list(zip(values[1::2], values[2::2]))
        return pairs[:count]

    def add(self, x: int, y: int) -> None:
        """Record a position, replacing stored ones close to it."""
        kept = [
            (ex, ey)
            for ex, ey in self.read()
            if not (abs(ex - x) < _PROXIMITY and abs(ey - y) < _PROXIMITY)
        ]
        if len(kept) >= self.max_entries:
            del kept[: len(kept) - self.max_entries + 1]
        kept.append((x, y))

        flat = [coord for pos in kept for coord in pos]
        flat.extend([0] * (2 * self.max_entries - len(flat)))
        payload = self._record.pack(len(kept), *flat)

        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)