"""astrbot_plugin_qfarm_panel service layer."""

__all__ = [
    "log_bridge",
    "log_buffer",
    "metrics",
    "panel_config",
    "panel_factory",
    "panel_page",
    "panel_server",
    "panel_state",
    "runtime_settings",
    "strategy_store",
]
