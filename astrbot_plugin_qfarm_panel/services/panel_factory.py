from __future__ import annotations

from pathlib import Path
from typing import Any

from .domain.config_data import GameConfigData
from .domain.recommendation_service import PlantingRecommender
from .panel_config import PanelConfig
from .panel_server import PanelServer
from .panel_state import PanelStateService
from .runtime_settings import SchedulerConfig


def build_panel(
    config: PanelConfig,
    *,
    plugin_root: Path,
    scheduler_config: SchedulerConfig | None = None,
    logger: Any | None = None,
) -> tuple[PanelStateService, PanelServer]:
    """按配置组装面板状态服务与 HTTP 服务，调度配置可由农场脚本共享传入。"""
    if scheduler_config is None:
        scheduler_config = SchedulerConfig(
            farm_check_interval=config.farm_interval_sec * 1000,
            friend_check_interval=config.friend_interval_sec * 1000,
        )
    game_config = GameConfigData(plugin_root, config_dir=config.game_config_dir)
    recommender = PlantingRecommender(game_config)
    state = PanelStateService(
        max_logs=config.max_logs,
        platform=config.platform,
        scheduler_config=scheduler_config,
        level_progress=game_config.get_level_exp_progress,
        rate_window_sec=config.rate_min_window_sec,
        gold_rate_reference=config.gold_rate_reference_per_hour,
    )
    server = PanelServer(
        state,
        host=config.host,
        port=config.port,
        token=config.token,
        calc_root=config.calc_root,
        recommender=recommender.get_planting_recommendation,
        max_body_bytes=config.max_body_bytes,
        logger=logger,
    )
    return state, server
