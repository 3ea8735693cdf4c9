from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .metrics import round_half_up

SETTINGS_FIELDS = (
    ("farmIntervalSec", "farm_check_interval", "invalid_farm_interval"),
    ("friendIntervalSec", "friend_check_interval", "invalid_friend_interval"),
)


class SettingsValidationError(ValueError):
    """巡查间隔参数非法，code 为返回给前端的错误码。"""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


@dataclass(slots=True)
class SchedulerConfig:
    """巡查调度共享配置（毫秒），调度器每轮读取。"""

    farm_check_interval: int = 1000
    friend_check_interval: int = 10000


def _interval_sec(ms: Any) -> int:
    try:
        value = float(ms or 1000)
    except (TypeError, ValueError):
        value = 1000.0
    if not math.isfinite(value):
        value = 1000.0
    return max(1, round_half_up(value / 1000))


def _parse_interval(value: Any, code: str) -> int:
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise SettingsValidationError(code) from None
    if not math.isfinite(number) or number <= 0:
        raise SettingsValidationError(code)
    return max(1, math.floor(number))


def apply_settings_patch(current: dict[str, int], patch: dict[str, Any]) -> dict[str, int]:
    result = dict(current)
    for key, _, code in SETTINGS_FIELDS:
        if key in patch:
            result[key] = _parse_interval(patch.get(key), code)
    return result


class RuntimeSettingsStore:
    """实时可改的巡查间隔，写入后下一轮调度生效。"""

    def __init__(self, scheduler_config: SchedulerConfig | None = None) -> None:
        self.scheduler_config = scheduler_config if scheduler_config is not None else SchedulerConfig()

    def get(self) -> dict[str, int]:
        return {
            "farmIntervalSec": _interval_sec(self.scheduler_config.farm_check_interval),
            "friendIntervalSec": _interval_sec(self.scheduler_config.friend_check_interval),
        }

    def update(self, patch: Any) -> dict[str, int]:
        if not isinstance(patch, dict):
            return self.get()
        next_settings = apply_settings_patch(self.get(), patch)
        for key, attr, _ in SETTINGS_FIELDS:
            if key in patch:
                setattr(self.scheduler_config, attr, next_settings[key] * 1000)
        return self.get()
