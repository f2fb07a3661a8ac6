"""Roll history, passed explicitly to whoever wants rolls recorded."""

from __future__ import annotations

import dataclasses
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

import orjson
import structlog

log = structlog.get_logger()

DEFAULT_HISTORY_SIZE = 50


class RollSink(Protocol):
    def record(self, result: Any) -> None: ...


@dataclass(frozen=True)
class HistoryEntry:
    result: Any
    recorded_at: datetime


def _default(obj: Any) -> Any:
    # orjson serializes dataclasses, enums and datetimes natively
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    raise TypeError(f"cannot serialize {type(obj).__name__}")


class RollHistory:
    """Bounded, newest-first record of resolved rolls."""

    def __init__(self, max_entries: int = DEFAULT_HISTORY_SIZE):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: deque[HistoryEntry] = deque(maxlen=max_entries)

    def record(self, result: Any) -> None:
        # appendleft on a bounded deque drops the oldest entry from the right
        self._entries.appendleft(HistoryEntry(result, datetime.now(timezone.utc)))
        log.debug("rules.history.recorded", kind=type(result).__name__, size=len(self._entries))

    def last(self, n: int | None = None) -> list[HistoryEntry]:
        entries = list(self._entries)
        return entries if n is None else entries[:n]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def to_json(self) -> bytes:
        payload = [
            {"recorded_at": e.recorded_at, "result": _as_plain(e.result)} for e in self._entries
        ]
        return orjson.dumps(payload, default=_default)


def _as_plain(result: Any) -> Any:
    if dataclasses.is_dataclass(result) and not isinstance(result, type):
        return dataclasses.asdict(result)
    return result
