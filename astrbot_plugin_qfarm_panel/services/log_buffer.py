from __future__ import annotations

import datetime as dt
import math
from typing import Any


def _now_iso() -> str:
    now = dt.datetime.now(dt.timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _to_since_id(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


class LogRingBuffer:
    """面板日志环形缓冲：自增 id，超出容量丢弃最旧的记录。"""

    def __init__(self, max_entries: int = 120) -> None:
        try:
            capacity = int(max_entries)
        except (TypeError, ValueError):
            capacity = 0
        self.max_entries = max(0, capacity)
        self._entries: list[dict[str, Any]] = []
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def last_id(self) -> int:
        if not self._entries:
            return 0
        return int(self._entries[-1]["id"])

    def append(self, level: str, message: Any) -> None:
        if self.max_entries <= 0:
            return
        entry = {
            "id": self._next_id,
            "ts": _now_iso(),
            "level": str(level or "INFO"),
            "message": str(message or ""),
        }
        self._next_id += 1
        self._entries.append(entry)
        if len(self._entries) > self.max_entries:
            self._entries = self._entries[-self.max_entries :]

    def since(self, last_id: Any = 0) -> list[dict[str, Any]]:
        since_id = _to_since_id(last_id)
        if since_id <= 0:
            return [dict(row) for row in self._entries]
        return [dict(row) for row in self._entries if row["id"] > since_id]
