"""
Caché en disco de los fondos negro/blanco de cada grupo de dimensiones.

Ubicación: <carpeta de manga>/.backgrounds/<ancho>x<alto>/{black,white}.png
junto a background.json con las dimensiones del grupo y el rectángulo usado.
Las entradas nunca caducan; solo se sobrescriben con un nuevo `put`.
"""
import logging
from pathlib import Path
from typing import Optional, Union

from core.errors import DecodeError, WriteError
from core.models import BackgroundPair, ImageFormat, Rect
from core.services.image_handler import encode_image, load_images_cv2
from core.utils.constants import (
    BACKGROUND_DIR_NAME, BACKGROUND_META_FILE, BLACK_BACKGROUND_FILE, WHITE_BACKGROUND_FILE
)
from utils import UtilJson

logger = logging.getLogger(__name__)


class BackgroundCache:

    def __init__(self, dir_name: str = BACKGROUND_DIR_NAME):
        self.dir_name = dir_name

    def relative_path(self, manga_dir: Union[str, Path], width: int, height: int) -> Path:
        """Ruta de la entrada relativa a la carpeta de manga (no hace falta que exista)"""
        return Path(self.dir_name) / f"{width}x{height}"

    def absolute_path(self, manga_dir: Union[str, Path], width: int, height: int) -> Path:
        return Path(manga_dir).absolute() / self.relative_path(manga_dir, width, height)

    def black_path(self, manga_dir: Union[str, Path], width: int, height: int) -> Path:
        return self.absolute_path(manga_dir, width, height) / BLACK_BACKGROUND_FILE

    def white_path(self, manga_dir: Union[str, Path], width: int, height: int) -> Path:
        return self.absolute_path(manga_dir, width, height) / WHITE_BACKGROUND_FILE

    def has(self, manga_dir: Union[str, Path], width: int, height: int) -> bool:
        """Indica si la entrada existe, sin decodificarla"""
        return (
            self.black_path(manga_dir, width, height).is_file()
            and self.white_path(manga_dir, width, height).is_file()
        )

    def put(self, manga_dir: Union[str, Path], pair: BackgroundPair) -> Path:
        """Guarda el par de fondos (PNG, sin pérdida) y sus metadatos. Retorna la carpeta de la entrada."""
        entry_dir = self.absolute_path(manga_dir, pair.width, pair.height)
        black_data = encode_image(pair.black, ImageFormat.PNG)
        white_data = encode_image(pair.white, ImageFormat.PNG)
        try:
            entry_dir.mkdir(parents=True, exist_ok=True)
            (entry_dir / BLACK_BACKGROUND_FILE).write_bytes(black_data)
            (entry_dir / WHITE_BACKGROUND_FILE).write_bytes(white_data)
            UtilJson(entry_dir / BACKGROUND_META_FILE).write({
                'width': pair.width,
                'height': pair.height,
                'rect': pair.rect.to_dict() if pair.rect else None,
            })
        except OSError as e:
            raise WriteError(entry_dir, str(e)) from e
        logger.info("Fondos %dx%d guardados en %s", pair.width, pair.height, entry_dir)
        return entry_dir

    def get(self, manga_dir: Union[str, Path], width: int, height: int) -> Optional[BackgroundPair]:
        if not self.has(manga_dir, width, height):
            return None
        return self.load_pair(
            self.black_path(manga_dir, width, height),
            self.white_path(manga_dir, width, height)
        )

    def load_pair(self, black_path: Union[str, Path], white_path: Union[str, Path]) -> BackgroundPair:
        """
        Reconstruye un par desde sus dos archivos.

        Las dimensiones del grupo y el rectángulo salen del background.json vecino;
        sin él se asume que los fondos cubren la imagen completa.
        """
        black_path = Path(black_path)
        black = load_images_cv2(black_path)
        white = load_images_cv2(white_path)
        if black.shape != white.shape:
            raise DecodeError(white_path, f"shape {white.shape} differs from black background {black.shape}")

        try:
            meta = UtilJson(black_path.parent / BACKGROUND_META_FILE).read()
        except ValueError as e:
            raise DecodeError(black_path.parent / BACKGROUND_META_FILE, str(e)) from e

        height, width = black.shape[:2]
        rect = Rect.from_dict(meta['rect']) if meta.get('rect') else None
        pair = BackgroundPair(
            width=int(meta.get('width', width)),
            height=int(meta.get('height', height)),
            black=black,
            white=white,
            rect=rect,
        )
        if pair.composite_size != (width, height):
            raise DecodeError(black_path, f"background size {width}x{height} does not match its metadata")
        return pair
