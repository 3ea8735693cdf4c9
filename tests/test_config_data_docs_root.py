from __future__ import annotations

import json
from pathlib import Path

from astrbot_plugin_qfarm_panel.services.domain.config_data import GameConfigData, parse_grow_phases


def _prepare_game_config(root: Path) -> None:
    game_cfg = root / "gameConfig"
    game_cfg.mkdir(parents=True, exist_ok=True)
    (game_cfg / "RoleLevel.json").write_text(json.dumps([]), encoding="utf-8")
    (game_cfg / "Plant.json").write_text(json.dumps([]), encoding="utf-8")
    (game_cfg / "ItemInfo.json").write_text(json.dumps([]), encoding="utf-8")


def test_config_data_prefers_qqfarm_docs_dir(tmp_path: Path):
    docs = tmp_path / "qqfarm文档"
    _prepare_game_config(docs)

    cfg = GameConfigData(tmp_path)

    assert cfg.docs_root == docs
    assert cfg.config_dir == docs / "gameConfig"


def test_config_data_fallbacks_to_any_qqfarm_like_dir_with_game_config(tmp_path: Path):
    (tmp_path / "qqfarm_empty").mkdir()
    weird = tmp_path / "qqfarm_docs_backup"
    _prepare_game_config(weird)

    cfg = GameConfigData(tmp_path)

    assert cfg.docs_root == weird
    assert cfg.config_dir == weird / "gameConfig"


def test_explicit_config_dir_and_missing_files(tmp_path: Path):
    cfg = GameConfigData(tmp_path, config_dir=tmp_path / "custom")

    assert cfg.config_dir == tmp_path / "custom"
    assert cfg.plants == []
    assert cfg.get_level_exp_progress(1, 50) == {"current": 50, "needed": 100000, "level": 1}


def test_parse_grow_phases_skips_malformed_segments():
    assert parse_grow_phases("种子:600;发芽:600;;坏数据;成熟:0") == [600, 600, 0]
    assert parse_grow_phases(None) == []


def test_format_grow_time():
    assert GameConfigData.format_grow_time(45) == "45秒"
    assert GameConfigData.format_grow_time(600) == "10分钟"
    assert GameConfigData.format_grow_time(3600) == "1小时"
    assert GameConfigData.format_grow_time(5400) == "1小时30分钟"
