"""An ordered log of diagnostic requests, responses and messages."""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass
from typing import Any, Iterator


class LogType(enum.Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


@dataclass(frozen=True)
class LogEntry:
    """One logged operation: a request with an optional response."""

    request: str | None
    response: str | None
    log_type: LogType


class LogView:
    """Log entries kept in the order they were added."""

    def __init__(self) -> None:
        self._entries: deque[LogEntry] = deque()

    def add_log(self, request: Any, response: Any, log_type: LogType) -> None:
        """Record a request together with its response."""
        self._entries.append(LogEntry(str(request), str(response), log_type))

    def add_msg(self, msg: Any, log_type: LogType) -> None:
        """Record a single message."""
        self._entries.append(LogEntry(str(msg), None, log_type))

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)