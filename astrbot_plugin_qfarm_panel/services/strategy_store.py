from __future__ import annotations

import copy
import time
from dataclasses import dataclass, replace
from typing import Any

STRATEGY_MODES = ("normalFert", "noFert")


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except Exception:
        return int(default)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True, frozen=True)
class StrategyConfig:
    mode: str = "normalFert"
    manual_seed_id: int = 0
    manual_seed_name: str = ""
    source: str = "auto"
    updated_at: int = 0
    last_decision: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "manualSeedId": int(self.manual_seed_id),
            "manualSeedName": self.manual_seed_name or "",
            "source": self.source or "auto",
            "updatedAt": int(self.updated_at or 0),
            "lastDecision": copy.deepcopy(self.last_decision) if self.last_decision else None,
        }


def apply_strategy_patch(current: StrategyConfig, patch: dict[str, Any], now_ms: int) -> StrategyConfig:
    """按 mode -> clearManual -> manualSeedId 的顺序合并补丁。

    非法 mode 直接忽略；同时带 clearManual 和 manualSeedId 时先清空再设置。
    """
    result = current
    mode = patch.get("mode")
    if mode in STRATEGY_MODES:
        result = replace(result, mode=mode)

    if patch.get("clearManual"):
        result = replace(result, manual_seed_id=0, manual_seed_name="", source="auto")

    if "manualSeedId" in patch:
        seed_id = _to_int(patch.get("manualSeedId"), 0)
        result = replace(result, manual_seed_id=seed_id)
        if seed_id > 0:
            seed_name = str(patch.get("manualSeedName") or result.manual_seed_name or "")
            result = replace(result, source="manual", manual_seed_name=seed_name)

    return replace(result, updated_at=int(now_ms))


class StrategyStore:
    """种植策略：自动/手动优先级 + 最近一次决策记录。"""

    def __init__(self, initial_mode: str = "normalFert") -> None:
        mode = initial_mode if initial_mode in STRATEGY_MODES else "normalFert"
        self._config = StrategyConfig(mode=mode)

    def get(self) -> dict[str, Any]:
        return self._config.to_dict()

    def update(self, patch: Any) -> dict[str, Any]:
        if not isinstance(patch, dict):
            return self.get()
        self._config = apply_strategy_patch(self._config, patch, _now_ms())
        return self.get()

    def record_decision(self, decision: dict[str, Any] | None) -> None:
        row: dict[str, Any] = {"at": _now_ms()}
        if isinstance(decision, dict):
            row.update(copy.deepcopy(decision))
        self._config = replace(self._config, last_decision=row)
