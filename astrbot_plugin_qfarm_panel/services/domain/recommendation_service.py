from __future__ import annotations

from typing import Any

from .config_data import GameConfigData, parse_grow_phases


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except Exception:
        return int(default)


def _is_farm_crop(plant_id: int, seed_id: int) -> bool:
    return str(plant_id).startswith("102") and 20000 <= seed_id < 30000


class PlantingRecommender:
    """按等级和地块数估算各作物的经验/金币效率，给出普通肥与不施肥两套排名。"""

    def __init__(self, config: GameConfigData) -> None:
        self.config = config

    def get_planting_recommendation(self, level: int, lands: int, top: int = 10) -> dict[str, Any]:
        level = _to_int(level, 0)
        lands = _to_int(lands, 0)
        if level < 1:
            raise ValueError("等级必须大于 0")
        if lands < 1:
            raise ValueError("地块数必须大于 0")
        limit = max(1, _to_int(top, 10))

        normal_rows: list[dict[str, Any]] = []
        no_fert_rows: list[dict[str, Any]] = []
        for plant in self.config.plants:
            plant_id = _to_int(plant.get("id"), 0)
            seed_id = _to_int(plant.get("seed_id"), 0)
            if plant_id <= 0 or seed_id <= 0 or not _is_farm_crop(plant_id, seed_id):
                continue
            required_level = self.config.get_seed_unlock_level(seed_id)
            if required_level > level:
                continue

            phases = parse_grow_phases(plant.get("grow_phases"))
            base_grow = sum(phases)
            if base_grow <= 0:
                continue
            seasons = _to_int(plant.get("seasons"), 1)
            is_two = seasons == 2
            grow_time = int(base_grow * 1.5) if is_two else base_grow
            reduce_sec = phases[0] * (2 if is_two else 1)
            fert_time = max(1, grow_time - reduce_sec)

            harvest_exp = _to_int(plant.get("exp"), 0) * (2 if is_two else 1)
            fruit = plant.get("fruit") if isinstance(plant.get("fruit"), dict) else {}
            fruit_count = _to_int(fruit.get("count"), 0)
            income = fruit_count * self.config.get_fruit_price(_to_int(fruit.get("id"), 0)) * (2 if is_two else 1)

            base = {
                "seedId": seed_id,
                "name": str(plant.get("name") or f"种子{seed_id}"),
                "requiredLevel": required_level,
                "seasons": seasons,
            }
            normal_rows.append(self._build_row(base, fert_time, harvest_exp, income, lands))
            no_fert_rows.append(self._build_row(base, grow_time, harvest_exp, income, lands))

        normal_rows.sort(key=lambda x: (-float(x["expPerHour"]), x["seedId"]))
        no_fert_rows.sort(key=lambda x: (-float(x["expPerHour"]), x["seedId"]))
        return {
            "level": level,
            "lands": lands,
            "candidatesNormalFert": normal_rows[:limit],
            "candidatesNoFert": no_fert_rows[:limit],
            "bestNormalFert": normal_rows[0] if normal_rows else None,
            "bestNoFert": no_fert_rows[0] if no_fert_rows else None,
        }

    def _build_row(
        self,
        base: dict[str, Any],
        cycle_sec: int,
        harvest_exp: int,
        income: int,
        lands: int,
    ) -> dict[str, Any]:
        cycle = max(1, int(cycle_sec))
        return {
            **base,
            "growTimeSec": cycle,
            "growTimeStr": self.config.format_grow_time(cycle),
            "expPerHour": round(harvest_exp * lands / cycle * 3600, 2),
            "goldPerHour": round(income * lands / cycle * 3600, 2),
        }
