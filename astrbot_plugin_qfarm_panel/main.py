from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from astrbot.api import AstrBotConfig, logger
from astrbot.api.event import AstrMessageEvent, filter
from astrbot.api.star import Context, Star, register

from .services.log_bridge import PanelLogHandler, build_file_log_handler
from .services.panel_config import PanelConfig
from .services.panel_factory import build_panel
from .services.panel_server import PanelServer
from .services.panel_state import PanelStateService
from .services.runtime_settings import SchedulerConfig


@register(
    "astrbot_plugin_qfarm_panel",
    "riddle",
    "QQ 农场运行面板：状态遥测、收益速率、种植策略与巡查间隔",
    "1.0.0",
    "https://github.com/R1ddle1337/astrbot_plugin_qfarm_panel",
)
class QFarmPanelPlugin(Star):
    def __init__(self, context: Context, config: AstrBotConfig | None = None) -> None:
        super().__init__(context)
        self.config = config if config is not None else {}

        self.plugin_root = Path(__file__).resolve().parent
        self.scheduler_config = SchedulerConfig()
        self.panel_config: PanelConfig | None = None
        self.state: PanelStateService | None = None
        self.server: PanelServer | None = None
        self._log_handler: PanelLogHandler | None = None
        self._file_handler: logging.Handler | None = None

    async def initialize(self) -> None:
        self.panel_config = PanelConfig.from_mapping(self.config, base_dir=self.plugin_root)
        self.scheduler_config.farm_check_interval = self.panel_config.farm_interval_sec * 1000
        self.scheduler_config.friend_check_interval = self.panel_config.friend_interval_sec * 1000
        self.state, self.server = build_panel(
            self.panel_config,
            plugin_root=self.plugin_root,
            scheduler_config=self.scheduler_config,
            logger=logger,
        )
        if self.panel_config.mirror_logs:
            self._log_handler = PanelLogHandler(self.state, level=self.panel_config.log_level)
            logger.addHandler(self._log_handler)
        if self.panel_config.log_to_file:
            try:
                self._file_handler = build_file_log_handler(self.panel_config.log_dir, level=self.panel_config.log_level)
                logger.addHandler(self._file_handler)
            except OSError as e:
                logger.warning(f"[qfarm-panel] 初始化日志文件失败: {e}")
        if self.panel_config.enabled:
            try:
                await self.server.start()
            except Exception as e:
                logger.error(f"[qfarm-panel] 面板启动失败，插件仍可接收状态: {e}")
        logger.info("[qfarm-panel] 插件初始化完成")

    async def terminate(self) -> None:
        if self._log_handler is not None:
            logger.removeHandler(self._log_handler)
            self._log_handler = None
        if self._file_handler is not None:
            logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None
        if self.server:
            await self.server.stop()
        logger.info("[qfarm-panel] 插件已卸载")

    def update_status(self, partial: dict[str, Any]) -> None:
        if self.state is not None:
            self.state.update_status(partial)

    def add_log(self, level: str, message: Any) -> None:
        if self.state is not None:
            self.state.add_log(level, message)

    def record_strategy_decision(self, decision: dict[str, Any] | None) -> None:
        if self.state is not None:
            self.state.record_strategy_decision(decision)

    @filter.command("qfarm面板", alias={"farmpanel", "农场面板"})
    async def panel_entry(self, event: AstrMessageEvent):
        yield event.plain_result(self._build_summary())

    def _build_summary(self) -> str:
        if self.state is None:
            return "qfarm 面板尚未初始化。"
        snapshot = self.state.get_snapshot_for_api()
        status = snapshot["status"]
        metrics = snapshot["metrics"]
        strategy = snapshot["strategy"]
        settings = snapshot["settings"]

        lines = ["【农场面板】"]
        if self.server is not None and self.server.is_running():
            lines.append(f"面板地址: http://{self._display_host()}:{self.server.bound_port}/")
        else:
            lines.append("面板地址: 未启动")
        lines.append(f"账号: {status['name'] or '未登录'} ({status['platform']}) Lv.{status['level']}")
        lines.append(f"金币: {status['gold']}  经验: {status['exp']}")
        lines.append(f"本次增量: 经验+{metrics['expGain']} 金币+{metrics['goldGain']}")
        if metrics["rateReady"]:
            lines.append(f"速率: 经验 {metrics['expPerHour']}/时  金币 {metrics['goldPerHour']}/时")
        else:
            lines.append(f"速率: 样本不足（至少 {metrics['rateWindowSec']} 秒）")
        lines.append(f"等级进度: {metrics['expCurrent']}/{metrics['expNeeded']} ({metrics['expProgress']}%)")
        source_text = "手动" if strategy["source"] == "manual" else "自动"
        mode_text = "不施肥" if strategy["mode"] == "noFert" else "普通肥"
        seed_text = f" 种子#{strategy['manualSeedId']}" if strategy["manualSeedId"] else ""
        lines.append(f"策略: {source_text} / {mode_text}{seed_text}")
        lines.append(f"巡查间隔: 农场{settings['farmIntervalSec']}s / 好友{settings['friendIntervalSec']}s")
        return "\n".join(lines)

    def _display_host(self) -> str:
        host = self.panel_config.host if self.panel_config else "127.0.0.1"
        return "127.0.0.1" if host in {"0.0.0.0", "::", ""} else host
