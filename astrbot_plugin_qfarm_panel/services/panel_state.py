from __future__ import annotations

import math
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, replace
from typing import Any

from .log_buffer import LogRingBuffer
from .metrics import GOLD_RATE_REFERENCE_PER_HOUR, RATE_MIN_WINDOW_SEC, LevelProgressFn, compute_metrics
from .runtime_settings import RuntimeSettingsStore, SchedulerConfig
from .strategy_store import StrategyStore


def _finite_number(value: Any) -> int | float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    try:
        if not math.isfinite(number):
            return None
    except OverflowError:
        return None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _default_level_progress(level: int, total_exp: int) -> dict[str, int]:
    _ = level
    return {"current": max(0, int(total_exp)), "needed": 1}


@dataclass(slots=True, frozen=True)
class StatusSnapshot:
    platform: str = "qq"
    name: str = ""
    level: int = 0
    gold: int | float = 0
    exp: int | float = 0

    @property
    def login_ready(self) -> bool:
        return bool(self.name) or self.level > 0

    @property
    def identity_key(self) -> str:
        if not self.login_ready:
            return ""
        return f"{self.platform}:{self.name}"


@dataclass(slots=True)
class Baseline:
    gold: int | float | None = None
    exp: int | float | None = None
    ready: bool = False
    key: str = ""

    def reset(self) -> None:
        self.gold = None
        self.exp = None
        self.ready = False
        self.key = ""


def merge_status(current: StatusSnapshot, patch: Mapping[str, Any]) -> StatusSnapshot:
    """浅合并状态补丁；缺失或无法识别的字段保留原值。"""
    changes: dict[str, Any] = {}
    for key in ("platform", "name"):
        value = patch.get(key)
        if value is not None:
            changes[key] = str(value)
    level = _finite_number(patch.get("level"))
    if level is not None:
        changes["level"] = max(0, int(level))
    for key in ("gold", "exp"):
        value = _finite_number(patch.get(key))
        if value is not None:
            changes[key] = value
    if not changes:
        return current
    return replace(current, **changes)


class PanelStateService:
    """进程内面板状态：账号快照、收益基线、日志、策略与巡查间隔。"""

    def __init__(
        self,
        *,
        max_logs: int = 120,
        platform: str = "qq",
        scheduler_config: SchedulerConfig | None = None,
        level_progress: LevelProgressFn | None = None,
        rate_window_sec: int = RATE_MIN_WINDOW_SEC,
        gold_rate_reference: float = GOLD_RATE_REFERENCE_PER_HOUR,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self.started_at = float(clock())
        self.status = StatusSnapshot(platform=str(platform or "qq"))
        self.baseline = Baseline()
        self.logs = LogRingBuffer(max_logs)
        self.strategy = StrategyStore()
        self.settings = RuntimeSettingsStore(scheduler_config)
        self.level_progress = level_progress or _default_level_progress
        self.rate_window_sec = max(0, int(rate_window_sec))
        self.gold_rate_reference = float(gold_rate_reference) if gold_rate_reference else GOLD_RATE_REFERENCE_PER_HOUR

    def update_status(self, partial: Any) -> None:
        if not isinstance(partial, Mapping):
            return
        previous = self.status
        self.status = merge_status(previous, partial)

        identity_key = self.status.identity_key
        if self.baseline.ready and identity_key and self.baseline.key and identity_key != self.baseline.key:
            self.baseline.reset()

        identity_changed = previous.name != self.status.name or previous.platform != self.status.platform
        carried_numbers = _finite_number(partial.get("exp")) is not None or _finite_number(partial.get("gold")) is not None
        if not self.baseline.ready and self.status.login_ready and (identity_changed or carried_numbers):
            self.baseline.gold = self.status.gold
            self.baseline.exp = self.status.exp
            self.baseline.ready = True
            self.baseline.key = identity_key

    def add_log(self, level: str, message: Any) -> None:
        self.logs.append(level, message)

    def get_logs_since(self, since_id: Any = 0) -> list[dict[str, Any]]:
        return self.logs.since(since_id)

    @property
    def last_log_id(self) -> int:
        return self.logs.last_id

    def get_strategy_config(self) -> dict[str, Any]:
        return self.strategy.get()

    def update_strategy_config(self, patch: Any) -> dict[str, Any]:
        return self.strategy.update(patch)

    def record_strategy_decision(self, decision: dict[str, Any] | None) -> None:
        self.strategy.record_decision(decision)

    def get_runtime_settings(self) -> dict[str, int]:
        return self.settings.get()

    def update_runtime_settings(self, patch: Any) -> dict[str, int]:
        return self.settings.update(patch)

    def uptime_sec(self, now: float | None = None) -> int:
        current = self._clock() if now is None else now
        return max(0, int(math.floor(current - self.started_at)))

    def build_metrics(self, uptime_sec: int) -> dict[str, Any]:
        return compute_metrics(
            self.status_dict(),
            asdict(self.baseline),
            uptime_sec,
            self.level_progress,
            rate_window_sec=self.rate_window_sec,
            gold_rate_reference=self.gold_rate_reference,
        )

    def status_dict(self) -> dict[str, Any]:
        return asdict(self.status)

    def get_snapshot_for_api(self) -> dict[str, Any]:
        now = self._clock()
        uptime = self.uptime_sec(now)
        return {
            "status": self.status_dict(),
            "uptimeSec": uptime,
            "metrics": self.build_metrics(uptime),
            "strategy": self.get_strategy_config(),
            "settings": self.get_runtime_settings(),
            "lastLogId": self.last_log_id,
            "serverTime": int(now * 1000),
        }
