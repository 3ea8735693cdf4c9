from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except Exception:
        return int(default)


def parse_grow_phases(grow_phases: str | None) -> list[int]:
    """解析 `名称:秒;名称:秒` 形式的生长阶段。"""
    if not grow_phases:
        return []
    result: list[int] = []
    for seg in str(grow_phases).split(";"):
        part = seg.strip()
        if not part or ":" not in part:
            continue
        result.append(max(0, _to_int(part.rsplit(":", 1)[1], 0)))
    return result


class GameConfigData:
    def __init__(self, plugin_root: Path, config_dir: Path | None = None) -> None:
        self.plugin_root = Path(plugin_root)
        if config_dir is not None:
            self.config_dir = Path(config_dir)
            self.docs_root = self.config_dir.parent
        else:
            self.docs_root = self._resolve_docs_root(self.plugin_root)
            self.config_dir = self.docs_root / "gameConfig"

        self.level_exp_table: dict[int, int] = {}
        self.plants: list[dict[str, Any]] = []
        self.plant_by_seed: dict[int, dict[str, Any]] = {}
        self.item_by_id: dict[int, dict[str, Any]] = {}
        self.seed_item_by_id: dict[int, dict[str, Any]] = {}

        self.reload()

    @staticmethod
    def _resolve_docs_root(plugin_root: Path) -> Path:
        preferred = plugin_root / "qqfarm文档"
        if preferred.exists():
            return preferred

        # 兼容解压后目录名不同的情况，只要目录下含 gameConfig 即可。
        try:
            children = sorted(plugin_root.iterdir())
        except Exception:
            children = []

        for child in children:
            if not child.is_dir():
                continue
            if not child.name.lower().startswith("qqfarm"):
                continue
            if (child / "gameConfig").exists():
                return child

        return preferred

    def reload(self) -> None:
        self._load_role_level()
        self._load_plants()
        self._load_items()

    def get_level_exp_progress(self, level: int, total_exp: int) -> dict[str, int]:
        level = _to_int(level, 0)
        current_start = self.level_exp_table.get(level, 0)
        next_start = self.level_exp_table.get(level + 1, current_start + 100000)
        current = max(0, _to_int(total_exp, 0) - int(current_start))
        needed = max(1, int(next_start) - int(current_start))
        return {"current": current, "needed": needed, "level": level}

    def get_seed_unlock_level(self, seed_id: int) -> int:
        plant = self.plant_by_seed.get(int(seed_id))
        if plant and _to_int(plant.get("land_level_need"), 0) > 0:
            return _to_int(plant.get("land_level_need"), 1)
        item = self.seed_item_by_id.get(int(seed_id))
        return _to_int(item.get("level"), 1) if item else 1

    def get_fruit_price(self, fruit_id: int) -> int:
        item = self.item_by_id.get(int(fruit_id))
        return _to_int(item.get("price"), 0) if item else 0

    @staticmethod
    def format_grow_time(seconds: int) -> str:
        sec = max(0, int(seconds))
        if sec < 60:
            return f"{sec}秒"
        if sec < 3600:
            return f"{sec // 60}分钟"
        hours = sec // 3600
        mins = (sec % 3600) // 60
        if mins > 0:
            return f"{hours}小时{mins}分钟"
        return f"{hours}小时"

    def _load_role_level(self) -> None:
        rows = self._read_json(self.config_dir / "RoleLevel.json", [])
        self.level_exp_table = {}
        for row in rows if isinstance(rows, list) else []:
            if not isinstance(row, dict):
                continue
            level = _to_int(row.get("level"), 0)
            if level > 0:
                self.level_exp_table[level] = _to_int(row.get("exp"), 0)

    def _load_plants(self) -> None:
        rows = self._read_json(self.config_dir / "Plant.json", [])
        self.plants = [row for row in rows if isinstance(row, dict)] if isinstance(rows, list) else []
        self.plant_by_seed = {}
        for plant in self.plants:
            seed_id = _to_int(plant.get("seed_id"), 0)
            if seed_id > 0:
                self.plant_by_seed[seed_id] = plant

    def _load_items(self) -> None:
        rows = self._read_json(self.config_dir / "ItemInfo.json", [])
        self.item_by_id = {}
        self.seed_item_by_id = {}
        for row in rows if isinstance(rows, list) else []:
            if not isinstance(row, dict):
                continue
            item_id = _to_int(row.get("id"), 0)
            if item_id <= 0:
                continue
            self.item_by_id[item_id] = row
            if _to_int(row.get("type"), 0) == 5:
                self.seed_item_by_id[item_id] = row

    @staticmethod
    def _read_json(path: Path, default: Any) -> Any:
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except Exception:
            return default
