from __future__ import annotations

from collections.abc import Iterator

from loguru import logger


class EventLog:
    """Append-only, ordered progress messages for display.

    Grows without bound during a run; only ``clear()`` (used by reset) empties it.
    """

    def __init__(self) -> None:
        self._entries: list[str] = []

    def append(self, message: str) -> None:
        self._entries.append(message)
        logger.debug("[EventLog] {}", message)

    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._entries))
