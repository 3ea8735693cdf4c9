from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from typing import Any

RATE_MIN_WINDOW_SEC = 120
GOLD_RATE_REFERENCE_PER_HOUR = 30000

LevelProgressFn = Callable[[int, int], Mapping[str, Any]]


def round_half_up(value: float) -> int:
    """与面板前端一致的四舍五入（-2.5 -> -2）。"""
    return int(math.floor(value + 0.5))


def _to_number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _normalize_number(value: float) -> int | float:
    if float(value).is_integer():
        return int(value)
    return value


def _clamp_percent(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def _per_hour(gain: float, uptime_sec: float) -> int:
    return round_half_up(gain / (uptime_sec / 3600))


def compute_metrics(
    status: Mapping[str, Any],
    baseline: Mapping[str, Any],
    uptime_sec: float,
    level_progress: LevelProgressFn,
    *,
    rate_window_sec: int = RATE_MIN_WINDOW_SEC,
    gold_rate_reference: float = GOLD_RATE_REFERENCE_PER_HOUR,
) -> dict[str, Any]:
    level = int(_to_number(status.get("level")))
    exp = _to_number(status.get("exp"))
    gold = _to_number(status.get("gold"))

    ready = bool(baseline.get("ready"))
    base_exp = exp
    base_gold = gold
    if ready and baseline.get("exp") is not None:
        base_exp = _to_number(baseline.get("exp"))
    if ready and baseline.get("gold") is not None:
        base_gold = _to_number(baseline.get("gold"))

    exp_gain = _normalize_number(exp - base_exp)
    gold_gain = _normalize_number(gold - base_gold)

    progress = level_progress(level, int(exp)) or {}
    exp_needed = _to_number(progress.get("needed")) or 1
    exp_needed = max(1, exp_needed)
    exp_current = _to_number(progress.get("current"))

    uptime = _to_number(uptime_sec)
    rate_ready = uptime >= rate_window_sec and uptime > 0
    exp_per_hour = _per_hour(exp_gain, uptime) if rate_ready else 0
    gold_per_hour = _per_hour(gold_gain, uptime) if rate_ready else 0
    reference = _to_number(gold_rate_reference) or GOLD_RATE_REFERENCE_PER_HOUR

    return {
        "expGain": exp_gain,
        "goldGain": gold_gain,
        "expPerHour": exp_per_hour,
        "goldPerHour": gold_per_hour,
        "rateReady": rate_ready,
        "rateWindowSec": int(rate_window_sec),
        "expCurrent": _normalize_number(exp_current),
        "expNeeded": _normalize_number(exp_needed),
        "expProgress": _clamp_percent(exp_current / exp_needed * 100),
        "goldRateProgress": _clamp_percent(abs(gold_per_hour) / reference * 100),
    }
