"""
Configuración del logging de la aplicación (consola + archivo rotativo en __logs__)
"""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from core.utils.constants import LOGS_DIR_NAME
from core.utils.version import APP_NAME, APP_VERSION

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_FILE_NAME = 'manga_wm_remover.log'
ROOT_LOGGER_NAMES = ('core', 'OverlayRemove', 'gui', 'utils')


def setup_logger(
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
    console: bool = True
) -> logging.Logger:
    """
    Configura los loggers de los paquetes del proyecto. Llamar una sola vez al iniciar.

    Args:
        log_dir: Carpeta de los logs (default: __logs__ junto a la aplicación)
        level: Nivel mínimo de los mensajes
        console: Si True también escribe en la consola

    Returns:
        logging.Logger: el logger del paquete `core`
    """
    if log_dir is None:
        from core.services.settings_handler import get_app_dir
        log_dir = get_app_dir() / LOGS_DIR_NAME
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [RotatingFileHandler(log_dir / LOG_FILE_NAME, maxBytes=1_000_000, backupCount=3, encoding='utf-8')]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)

    for name in ROOT_LOGGER_NAMES:
        package_logger = logging.getLogger(name)
        package_logger.setLevel(level)
        for old_handler in list(package_logger.handlers):
            package_logger.removeHandler(old_handler)
            old_handler.close()
        for handler in handlers:
            package_logger.addHandler(handler)
        package_logger.propagate = False

    core_logger = logging.getLogger('core')
    core_logger.info("%s v%s - logs en %s", APP_NAME, APP_VERSION, log_dir)
    return core_logger
