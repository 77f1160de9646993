"""
Carga y guardado de la configuración de salida en __settings__/config.json
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

from core.errors import InvalidConfigError, WriteError
from core.models import OutputConfig
from core.utils.constants import CONFIG_FILE_NAME, DEFAULT_OUTPUT_DIR_NAME, SETTINGS_DIR_NAME
from utils import UtilJson

logger = logging.getLogger(__name__)


def get_app_dir() -> Path:
    """Carpeta de la aplicación: la del ejecutable si está compilada, la del proyecto si no"""
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).resolve().parents[2]


class SettingsHandler:
    """
    Maneja el archivo de configuración.

    `load()` se llama una vez al iniciar; la instancia que devuelve es la que se
    comparte con el pipeline, y `save()` la actualiza en el lugar para que
    todos los que la referencian vean los nuevos valores.
    """

    def __init__(self, settings_dir: Optional[Union[str, Path]] = None, app_dir: Optional[Union[str, Path]] = None):
        self.app_dir = Path(app_dir) if app_dir else get_app_dir()
        self.settings_dir = Path(settings_dir) if settings_dir else self.app_dir / SETTINGS_DIR_NAME
        self.settings_file = UtilJson(self.settings_dir / CONFIG_FILE_NAME)
        self.config: Optional[OutputConfig] = None

    def default_config(self) -> OutputConfig:
        return OutputConfig(output_dir=self.app_dir / DEFAULT_OUTPUT_DIR_NAME)

    def load(self) -> OutputConfig:
        """
        Lee la configuración. Si el archivo no existe o no es válido se usan los
        valores por defecto, y el resultado se escribe de vuelta al disco.
        """
        config = self.default_config()
        if self.settings_file.exists():
            try:
                config = OutputConfig.from_dict(self.settings_file.read())
            except (ValueError, InvalidConfigError) as e:
                logger.warning("Configuración inválida en %s, usando valores por defecto: %s",
                               self.settings_file.path, e)
        self.config = config
        self._write(config)
        return config

    def save(self, config: OutputConfig) -> OutputConfig:
        if not str(config.output_dir).strip():
            raise InvalidConfigError("outputDir must not be empty")
        self._write(config)
        if self.config is None:
            self.config = config
        elif self.config is not config:
            self.config.output_dir = config.output_dir
            self.config.output_format = config.output_format
            self.config.output_optimize = config.output_optimize
        logger.info("Configuración guardada en %s", self.settings_file.path)
        return self.config

    def _write(self, config: OutputConfig):
        try:
            self.settings_file.write(config.to_dict())
        except OSError as e:
            raise WriteError(self.settings_file.path, str(e)) from e
