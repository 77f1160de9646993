"""
Orquestador: escaneo -> estimación/caché de fondos -> eliminación, con eventos de progreso.
"""
import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Tuple, Union

from core.errors import DimensionGroupNotFoundError, InvalidConfigError
from core.models import (
    BackgroundPair, FileOutcome, ImageData, ImageFormat, ImageInfo, MangaDirData, OutputConfig, Rect,
    RemoveWatermarkEndEvent, RemoveWatermarkErrorEvent, RemoveWatermarkStartEvent, RemoveWatermarkSuccessEvent
)
from core.services.background_cache import BackgroundCache
from core.services.directory_explorer import group_by_dimensions, scan_image_infos, validate_manga_dir
from core.services.image_handler import to_base64_jpeg
from core.utils.constants import MIN_BACKGROUND_SAMPLES
from OverlayRemove.background import estimate_background
from OverlayRemove.wm_remove import process_directory

logger = logging.getLogger(__name__)

EventCallback = Callable[[object], None]


class WatermarkPipeline:
    """
    Operaciones por lotes sobre una carpeta de manga.

    Args:
        config: Configuración de salida compartida (se lee, nunca se modifica aquí)
        cache: Caché de fondos
        event_callback: Recibe los eventos de eliminación, siempre desde el hilo
            que llama a `remove_watermark`
        min_samples: Mínimo de imágenes por grupo para estimar fondos
        max_workers: Hilos por operación (None = según la CPU)
    """

    def __init__(
        self,
        config: OutputConfig,
        cache: Optional[BackgroundCache] = None,
        event_callback: Optional[EventCallback] = None,
        min_samples: int = MIN_BACKGROUND_SAMPLES,
        max_workers: Optional[int] = None
    ):
        self.config = config
        self.cache = cache or BackgroundCache()
        self.event_callback = event_callback
        self.min_samples = min_samples
        self.max_workers = max_workers
        self._cancel_event = threading.Event()

    # ---- Consultas ----
    def get_image_infos(self, manga_dir: Union[str, Path]) -> List[ImageInfo]:
        return scan_image_infos(manga_dir)

    def get_manga_dir_data(self, manga_dir: Union[str, Path]) -> List[MangaDirData]:
        """Un registro por grupo de dimensiones, con los fondos en caché si existen (no los recalcula)"""
        manga_dir = validate_manga_dir(manga_dir)
        groups = group_by_dimensions(scan_image_infos(manga_dir))
        data = []
        for (width, height), infos in groups.items():
            entry = MangaDirData(width=width, height=height, count=len(infos))
            if self.cache.has(manga_dir, width, height):
                pair = self.cache.get(manga_dir, width, height)
                entry.black_background = self._preview(
                    pair.black, self.cache.black_path(manga_dir, width, height))
                entry.white_background = self._preview(
                    pair.white, self.cache.white_path(manga_dir, width, height))
            data.append(entry)
        return data

    @staticmethod
    def _preview(pixels, path: Path) -> ImageData:
        height, width = pixels.shape[:2]
        return ImageData(info=ImageInfo(width=width, height=height, path=path), base64=to_base64_jpeg(pixels))

    # ---- Fondos ----
    def generate_background(
        self,
        manga_dir: Union[str, Path],
        rect: Optional[Rect],
        width: int,
        height: int
    ) -> BackgroundPair:
        """Estima los fondos del grupo width x height y los guarda en la caché"""
        manga_dir = validate_manga_dir(manga_dir)
        groups = group_by_dimensions(scan_image_infos(manga_dir))
        infos = groups.get((width, height))
        if not infos:
            raise DimensionGroupNotFoundError(manga_dir, width, height)

        pair = estimate_background(
            [info.path for info in infos],
            width,
            height,
            rect=rect,
            min_samples=self.min_samples,
            max_workers=self.max_workers
        )
        self.cache.put(manga_dir, pair)
        return pair

    # ---- Eliminación ----
    def cancel(self):
        """Pide detener la eliminación en curso; los archivos ya empezados terminan"""
        self._cancel_event.set()

    def remove_watermark(
        self,
        manga_dir: Union[str, Path],
        backgrounds: Union[Mapping[Tuple[int, int], BackgroundPair], Iterable[BackgroundPair]],
        output_dir: Optional[Union[str, Path]] = None,
        image_format: Optional[Union[str, ImageFormat]] = None,
        optimize: Optional[bool] = None
    ) -> List[FileOutcome]:
        """
        Elimina la marca de toda la carpeta.

        Emite: inicio (total) -> un éxito o error por archivo -> un único fin.
        Los errores de cada archivo solo se ven en los eventos; la excepción de
        este método indica únicamente que el lote no se pudo empezar.
        """
        if not isinstance(backgrounds, Mapping):
            backgrounds = self._backgrounds_by_key(backgrounds)
        output_dir = self.config.output_dir if output_dir is None else output_dir
        image_format = self.config.output_format if image_format is None else image_format
        optimize = self.config.output_optimize if optimize is None else optimize

        manga_dir = Path(manga_dir)
        progress = {'started': False, 'total': 0, 'current': 0}

        def on_start(total: int):
            progress['started'] = True
            progress['total'] = total
            logger.info("Eliminando marcas de %d imágenes en %s", total, manga_dir)
            self._emit(RemoveWatermarkStartEvent(dir_path=manga_dir, total=total))

        def on_outcome(outcome: FileOutcome):
            progress['current'] += 1
            if outcome.ok:
                self._emit(RemoveWatermarkSuccessEvent(
                    dir_path=manga_dir, img_path=outcome.path, current=progress['current']))
            else:
                self._emit(RemoveWatermarkErrorEvent(
                    dir_path=manga_dir, img_path=outcome.path, err_msg=outcome.error))

        try:
            outcomes = process_directory(
                manga_dir,
                output_dir,
                image_format,
                optimize,
                backgrounds,
                on_start=on_start,
                on_outcome=on_outcome,
                cancel_event=self._cancel_event,
                max_workers=self.max_workers
            )
        finally:
            # Un cancel() pedido antes de empezar vale para esta ejecución; nunca para la siguiente
            self._cancel_event.clear()
            if progress['started']:
                self._emit(RemoveWatermarkEndEvent(dir_path=manga_dir))

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info("Terminado %s: %d correctas, %d con error", manga_dir, len(outcomes) - failed, failed)
        return outcomes

    @staticmethod
    def _backgrounds_by_key(pairs: Iterable[BackgroundPair]) -> dict:
        backgrounds = {}
        for pair in pairs:
            if pair.key in backgrounds:
                raise InvalidConfigError(f"more than one background pair for dimensions {pair.width}x{pair.height}")
            backgrounds[pair.key] = pair
        return backgrounds

    def _emit(self, event):
        if self.event_callback is not None:
            self.event_callback(event)
