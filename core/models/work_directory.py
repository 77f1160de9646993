"""
Modelos de datos de una carpeta de manga: imágenes, rectángulos y fondos.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import numpy as np

from core.errors import InvalidRectError


@dataclass(frozen=True)
class ImageInfo:
    """Dimensiones y ruta de un archivo de imagen (se recalcula en cada escaneo)"""
    width: int
    height: int
    path: Path

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def to_dict(self) -> dict:
        return {'width': self.width, 'height': self.height, 'path': str(self.path)}


@dataclass
class ImageBuffer:
    """
    Imagen decodificada.

    `pixels` tiene forma (alto, ancho, 3), dtype uint8 y orden de canales BGR
    (el de OpenCV). Cada operación decodifica su propia copia.
    """
    info: ImageInfo
    pixels: np.ndarray


@dataclass(frozen=True)
class ImageData:
    """Vista previa JPEG en base64 para la UI, junto con la info del archivo"""
    info: ImageInfo
    base64: str

    def to_dict(self) -> dict:
        return {'info': self.info.to_dict(), 'base64': self.base64}


@dataclass(frozen=True)
class Rect:
    """Región (left, top, right, bottom) en coordenadas de píxel, extremos abiertos a la derecha/abajo"""
    left: int
    top: int
    right: int
    bottom: int

    @classmethod
    def from_dict(cls, data: dict) -> 'Rect':
        try:
            return cls(int(data['left']), int(data['top']), int(data['right']), int(data['bottom']))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRectError(f"invalid rect data: {data!r}") from e

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def validate(self, width: int, height: int) -> 'Rect':
        """Comprueba que el rectángulo no esté vacío y quepa en una imagen de width x height"""
        if not (0 <= self.left < self.right <= width and 0 <= self.top < self.bottom <= height):
            raise InvalidRectError(
                f"rect ({self.left}, {self.top}, {self.right}, {self.bottom}) "
                f"is empty or outside a {width}x{height} image"
            )
        return self

    def crop(self, pixels: np.ndarray) -> np.ndarray:
        return pixels[self.top:self.bottom, self.left:self.right]

    def to_dict(self) -> dict:
        return {'left': self.left, 'top': self.top, 'right': self.right, 'bottom': self.bottom}


@dataclass
class BackgroundPair:
    """
    Fondos negro (mínimo) y blanco (máximo) de un grupo de dimensiones.

    `width`/`height` son las del grupo. Si se eligió un `rect`, los compuestos
    tienen las dimensiones del rectángulo en lugar de las del grupo.
    """
    width: int
    height: int
    black: np.ndarray
    white: np.ndarray
    rect: Optional[Rect] = None

    @property
    def key(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def composite_size(self) -> Tuple[int, int]:
        if self.rect is not None:
            return self.rect.width, self.rect.height
        return self.width, self.height


@dataclass
class MangaDirData:
    """Estado de un grupo de dimensiones dentro de la carpeta de manga"""
    width: int
    height: int
    count: int
    black_background: Optional[ImageData] = None
    white_background: Optional[ImageData] = None

    @property
    def has_background(self) -> bool:
        return self.black_background is not None and self.white_background is not None

    def to_dict(self) -> dict:
        return {
            'width': self.width,
            'height': self.height,
            'count': self.count,
            'blackBackground': self.black_background.to_dict() if self.black_background else None,
            'whiteBackground': self.white_background.to_dict() if self.white_background else None,
        }


@dataclass
class FileOutcome:
    """Resultado del procesamiento de un archivo durante la eliminación"""
    path: Path
    output_path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
