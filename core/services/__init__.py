from .background_cache import BackgroundCache
from .settings_handler import SettingsHandler
from .global_logger import setup_logger

__all__ = ['BackgroundCache', 'SettingsHandler', 'setup_logger']
