from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def _cfg_raw(config: Any, key: str, default: Any) -> Any:
    try:
        value = config.get(key, default)
    except Exception:
        value = default
    return default if value is None else value


def _cfg_str(config: Any, key: str, default: str) -> str:
    return str(_cfg_raw(config, key, default)).strip()


def _cfg_int(config: Any, key: str, default: int) -> int:
    try:
        return int(float(_cfg_raw(config, key, default)))
    except Exception:
        return int(default)


def _cfg_float(config: Any, key: str, default: float) -> float:
    try:
        return float(_cfg_raw(config, key, default))
    except Exception:
        return float(default)


def _cfg_bool(config: Any, key: str, default: bool) -> bool:
    value = _cfg_raw(config, key, default)
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "on", "yes", "y", "开", "开启"}:
        return True
    if text in {"0", "false", "off", "no", "n", "关", "关闭"}:
        return False
    return bool(default)


@dataclass(slots=True)
class PanelConfig:
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8787
    token: str = ""
    max_logs: int = 120
    max_body_bytes: int = 65536
    calc_root: Path = Path("FarmCalc")
    game_config_dir: Path | None = None
    farm_interval_sec: int = 1
    friend_interval_sec: int = 10
    platform: str = "qq"
    log_level: str = "info"
    mirror_logs: bool = False
    log_to_file: bool = False
    log_dir: Path = Path("logs")
    rate_min_window_sec: int = 120
    gold_rate_reference_per_hour: float = 30000.0

    def __post_init__(self) -> None:
        self.port = max(0, int(self.port))
        self.max_logs = max(0, int(self.max_logs))
        self.max_body_bytes = max(1024, int(self.max_body_bytes))
        self.farm_interval_sec = max(1, int(self.farm_interval_sec))
        self.friend_interval_sec = max(1, int(self.friend_interval_sec))
        self.rate_min_window_sec = max(0, int(self.rate_min_window_sec))
        if self.gold_rate_reference_per_hour <= 0:
            self.gold_rate_reference_per_hour = 30000.0
        self.platform = str(self.platform or "qq").strip().lower() or "qq"
        self.calc_root = Path(self.calc_root)
        self.log_dir = Path(self.log_dir)
        if self.game_config_dir is not None:
            self.game_config_dir = Path(self.game_config_dir)

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any] | Any, *, base_dir: Path | None = None) -> PanelConfig:
        """从 AstrBot 插件配置读取，非法值回退默认。"""
        root = Path(base_dir) if base_dir is not None else Path.cwd()
        calc_root = Path(_cfg_str(config, "panel_calc_root", "FarmCalc") or "FarmCalc")
        game_dir = _cfg_str(config, "game_config_dir", "")
        log_dir = Path(_cfg_str(config, "panel_log_dir", "logs") or "logs")
        return cls(
            enabled=_cfg_bool(config, "panel_enabled", True),
            host=_cfg_str(config, "panel_host", "0.0.0.0") or "0.0.0.0",
            port=_cfg_int(config, "panel_port", 8787),
            token=_cfg_str(config, "panel_token", ""),
            max_logs=_cfg_int(config, "panel_max_logs", 120),
            max_body_bytes=_cfg_int(config, "panel_max_body_bytes", 65536),
            calc_root=calc_root if calc_root.is_absolute() else root / calc_root,
            game_config_dir=Path(game_dir) if game_dir else None,
            farm_interval_sec=_cfg_int(config, "farm_interval_sec", 1),
            friend_interval_sec=_cfg_int(config, "friend_interval_sec", 10),
            platform=_cfg_str(config, "platform", "qq"),
            log_level=_cfg_str(config, "panel_log_level", "info"),
            mirror_logs=_cfg_bool(config, "panel_mirror_logs", False),
            log_to_file=_cfg_bool(config, "panel_log_to_file", False),
            log_dir=log_dir if log_dir.is_absolute() else root / log_dir,
            rate_min_window_sec=_cfg_int(config, "rate_min_window_sec", 120),
            gold_rate_reference_per_hour=_cfg_float(config, "gold_rate_reference_per_hour", 30000.0),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PanelConfig:
        env = os.environ if environ is None else environ
        mapping: dict[str, Any] = {"panel_mirror_logs": True, "panel_log_to_file": True}
        env_keys = {
            "DASHBOARD_HOST": "panel_host",
            "DASHBOARD_PORT": "panel_port",
            "DASHBOARD_TOKEN": "panel_token",
            "DASHBOARD_MAX_LOGS": "panel_max_logs",
            "DASHBOARD_CALC_ROOT": "panel_calc_root",
            "GAME_CONFIG_DIR": "game_config_dir",
            "FARM_INTERVAL": "farm_interval_sec",
            "FRIEND_INTERVAL": "friend_interval_sec",
            "PLATFORM": "platform",
            "LOG_LEVEL": "panel_log_level",
            "LOG_TO_FILE": "panel_log_to_file",
        }
        for env_key, cfg_key in env_keys.items():
            value = env.get(env_key)
            if value is not None and str(value).strip() != "":
                mapping[cfg_key] = value
        return cls.from_mapping(mapping)
