from __future__ import annotations

import json
from pathlib import Path

import pytest

from astrbot_plugin_qfarm_panel.services.domain.config_data import GameConfigData
from astrbot_plugin_qfarm_panel.services.domain.recommendation_service import PlantingRecommender


def _write_tables(config_dir: Path) -> None:
    config_dir.mkdir(parents=True, exist_ok=True)
    plants = [
        {
            "id": 1020001,
            "seed_id": 20001,
            "name": "白萝卜",
            "exp": 10,
            "seasons": 1,
            "land_level_need": 1,
            "grow_phases": "种子:600;发芽:600;成熟:0",
            "fruit": {"id": 40001, "count": 5},
        },
        {
            "id": 1020002,
            "seed_id": 20002,
            "name": "胡萝卜",
            "exp": 40,
            "seasons": 1,
            "land_level_need": 5,
            "grow_phases": "种子:1800;成熟:1800",
            "fruit": {"id": 40002, "count": 2},
        },
        {
            "id": 1020003,
            "seed_id": 20003,
            "name": "玉米",
            "exp": 30,
            "seasons": 2,
            "land_level_need": 3,
            "grow_phases": "种子:1200;成熟:1200",
            "fruit": {"id": 40003, "count": 1},
        },
        {
            "id": 2020004,
            "seed_id": 20004,
            "name": "装饰花",
            "exp": 999,
            "land_level_need": 1,
            "grow_phases": "种子:60",
        },
    ]
    items = [
        {"id": 20001, "type": 5, "price": 2, "level": 1},
        {"id": 40001, "type": 6, "price": 3},
    ]
    levels = [{"level": 1, "exp": 0}, {"level": 2, "exp": 100}, {"level": 3, "exp": 300}]
    (config_dir / "Plant.json").write_text(json.dumps(plants, ensure_ascii=False), encoding="utf-8")
    (config_dir / "ItemInfo.json").write_text(json.dumps(items), encoding="utf-8")
    (config_dir / "RoleLevel.json").write_text(json.dumps(levels), encoding="utf-8")


@pytest.fixture
def recommender(tmp_path: Path) -> PlantingRecommender:
    _write_tables(tmp_path / "qqfarm文档" / "gameConfig")
    return PlantingRecommender(GameConfigData(tmp_path))


def test_ranking_by_exp_per_hour(recommender: PlantingRecommender):
    result = recommender.get_planting_recommendation(4, 2)

    assert result["level"] == 4
    assert result["lands"] == 2
    assert [(row["name"], row["expPerHour"]) for row in result["candidatesNormalFert"]] == [
        ("玉米", 360.0),
        ("白萝卜", 120.0),
    ]
    assert [(row["name"], row["expPerHour"]) for row in result["candidatesNoFert"]] == [
        ("玉米", 120.0),
        ("白萝卜", 60.0),
    ]
    assert result["bestNormalFert"]["seedId"] == 20003
    assert result["bestNormalFert"]["growTimeStr"] == "20分钟"
    assert result["bestNoFert"]["growTimeSec"] == 3600


def test_gold_per_hour_uses_fruit_price(recommender: PlantingRecommender):
    result = recommender.get_planting_recommendation(4, 2)
    radish = next(row for row in result["candidatesNoFert"] if row["seedId"] == 20001)

    assert radish["goldPerHour"] == 90.0
    assert radish["requiredLevel"] == 1


def test_unlock_level_and_top_limit(recommender: PlantingRecommender):
    result = recommender.get_planting_recommendation(5, 1, top=2)
    assert [row["seedId"] for row in result["candidatesNoFert"]] == [20003, 20002]

    low = recommender.get_planting_recommendation(1, 1)
    assert [row["seedId"] for row in low["candidatesNormalFert"]] == [20001]


def test_invalid_level_or_lands(recommender: PlantingRecommender):
    with pytest.raises(ValueError):
        recommender.get_planting_recommendation(0, 18)
    with pytest.raises(ValueError):
        recommender.get_planting_recommendation(3, 0)


def test_level_progress_from_role_table(recommender: PlantingRecommender):
    config = recommender.config
    assert config.get_level_exp_progress(2, 150) == {"current": 50, "needed": 200, "level": 2}
    assert config.get_level_exp_progress(3, 250)["current"] == 0
