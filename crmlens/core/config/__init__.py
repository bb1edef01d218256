from crmlens.core.config.manager import ConfigManager
from crmlens.core.config.models import AppConfig
from crmlens.core.config.paths import ConfigFsPaths

__all__ = ["AppConfig", "ConfigFsPaths", "ConfigManager"]
