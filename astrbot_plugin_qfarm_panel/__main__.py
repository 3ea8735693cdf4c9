from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .services.log_bridge import PanelLogHandler, build_file_log_handler, resolve_log_level
from .services.panel_config import PanelConfig
from .services.panel_factory import build_panel

logger = logging.getLogger("qfarm_panel")


async def _serve(config: PanelConfig) -> None:
    state, server = build_panel(config, plugin_root=Path.cwd(), logger=logger)
    if config.mirror_logs:
        logger.addHandler(PanelLogHandler(state, level=resolve_log_level(config.log_level)))
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


def main() -> None:
    config = PanelConfig.from_env()
    logging.basicConfig(
        level=resolve_log_level(config.log_level),
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if config.log_to_file:
        try:
            logging.getLogger().addHandler(build_file_log_handler(config.log_dir, level=config.log_level))
        except OSError as e:
            logger.warning(f"[qfarm-panel] 初始化日志文件失败，仅输出到终端: {e}")
    if not config.token:
        logger.warning("[qfarm-panel] 未设置 DASHBOARD_TOKEN，面板接口不做鉴权。")
    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
