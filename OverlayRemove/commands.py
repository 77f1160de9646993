"""
Comandos que la UI invoca sobre el backend.

Cada método corresponde a un comando IPC; los errores se lanzan como
subclases de `WatermarkError` y la UI muestra su mensaje.
"""
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from core.errors import WatermarkError
from core.models import ImageData, ImageFormat, ImageInfo, MangaDirData, OutputConfig, Rect
from core.services.background_cache import BackgroundCache
from core.services.image_handler import open_image
from core.services.settings_handler import SettingsHandler
from OverlayRemove.pipeline import EventCallback, WatermarkPipeline

logger = logging.getLogger(__name__)

RectData = Union[Rect, dict, None]


class Commands:
    """
    Superficie de comandos. Carga la configuración una vez al crearse y la
    comparte por referencia con el pipeline.
    """

    def __init__(
        self,
        settings: Optional[SettingsHandler] = None,
        cache: Optional[BackgroundCache] = None,
        event_callback: Optional[EventCallback] = None,
        **pipeline_options
    ):
        self.settings = settings or SettingsHandler()
        self.config = self.settings.load()
        self.cache = cache or BackgroundCache()
        self.pipeline = WatermarkPipeline(
            self.config, self.cache, event_callback=event_callback, **pipeline_options
        )

    def generate_background(self, manga_dir: str, rect_data: RectData, width: int, height: int) -> None:
        rect = Rect.from_dict(rect_data) if isinstance(rect_data, dict) else rect_data
        self.pipeline.generate_background(manga_dir, rect, width, height)

    def remove_watermark(
        self,
        manga_dir: str,
        output_dir: str,
        image_format: Union[str, ImageFormat],
        optimize: bool,
        backgrounds_data: Sequence[Tuple[ImageData, ImageData]]
    ) -> None:
        """
        Los fondos llegan como las vistas previas que devolvió `get_manga_dir_data`;
        se vuelven a leer sin pérdida desde las rutas de la caché.
        """
        pairs = [
            self.cache.load_pair(black.info.path, white.info.path)
            for black, white in backgrounds_data
        ]
        self.pipeline.remove_watermark(manga_dir, pairs, output_dir, image_format, optimize)

    def cancel_remove_watermark(self) -> None:
        self.pipeline.cancel()

    def open_image(self, path: str) -> ImageData:
        return open_image(path)

    def get_manga_dir_data(self, manga_dir: str) -> List[MangaDirData]:
        return self.pipeline.get_manga_dir_data(manga_dir)

    def get_image_infos(self, manga_dir: str) -> List[ImageInfo]:
        """Nunca falla: si la carpeta no es válida retorna una lista vacía"""
        try:
            return self.pipeline.get_image_infos(manga_dir)
        except (WatermarkError, OSError) as e:
            logger.debug("get_image_infos(%s): %s", manga_dir, e)
            return []

    def show_path_in_file_manager(self, path: str) -> None:
        from gui.file_manager import show_path_in_file_manager
        show_path_in_file_manager(path)

    def get_background_dir_relative_path(self, manga_dir: str, width: int, height: int) -> Path:
        return self.cache.relative_path(manga_dir, width, height)

    def get_background_dir_abs_path(self, manga_dir: str, width: int, height: int) -> Path:
        return self.cache.absolute_path(manga_dir, width, height)

    def get_config(self) -> OutputConfig:
        return self.config

    def save_config(self, config: Union[OutputConfig, dict]) -> None:
        if isinstance(config, dict):
            config = OutputConfig.from_dict(config)
        self.settings.save(config)
