"""In-session history of pointer positions with back/forward navigation."""

from __future__ import annotations


class PositionHistory:
    """A bounded list of positions with a cursor, like browser history."""

    def __init__(self, capacity: int = 16) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: list[tuple[int, int]] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._entries)

    def current(self) -> tuple[int, int] | None:
        """The position under the cursor, or None when empty."""
        return self._entries[self._cursor] if self._entries else None

    def add(self, x: int, y: int) -> None:
        """Record a position, discarding anything ahead of the cursor."""
        position = (x, y)
        if self.current() == position:
            return
        del self._entries[self._cursor + 1:]
        if len(self._entries) >= self.capacity:
            del self._entries[0]
        self._entries.append(position)
        self._cursor = len(self._entries) - 1

    def back(self) -> tuple[int, int] | None:
        if self._cursor > 0:
            self._cursor -= 1
        return self.current()

    def forward(self) -> tuple[int, int] | None:
        if self._cursor < len(self._entries) - 1:
            self._cursor += 1
        return self.current()