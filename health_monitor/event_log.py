import threading
from collections.abc import Iterator


class EventLog:
    """
    Ordered, append-only sequence of rendered report lines.

    Lines are never reordered or dropped; clear() is the only way to
    remove anything. Safe to read from another thread while a round is
    being appended.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line.rstrip("\n"))

    def extend(self, lines: list[str]) -> None:
        with self._lock:
            self._lines.extend(line.rstrip("\n") for line in lines)

    def lines(self) -> list[str]:
        with self._lock:
            return list(self._lines)

    def content(self) -> str:
        """The whole log as text, one line per entry."""
        with self._lock:
            return "".join(f"{line}\n" for line in self._lines)

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines())
