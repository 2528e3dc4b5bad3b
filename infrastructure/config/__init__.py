"""配置模块"""

from infrastructure.config.settings import Settings, get_settings, parse_list

__all__ = ["Settings", "get_settings", "parse_list"]
