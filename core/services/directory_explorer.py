"""
Escaneo de una carpeta de manga y agrupación de sus imágenes por dimensiones.
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union

from natsort import natsorted

from core.errors import DecodeError, DirNotFoundError, NotADirError
from core.models import ImageInfo
from core.services.image_handler import read_image_info
from core.utils.constants import SUPPORTED_FORMATS

logger = logging.getLogger(__name__)


def validate_manga_dir(carpeta: Union[str, Path]) -> Path:
    directorio = Path(carpeta)
    if not directorio.exists():
        raise DirNotFoundError(directorio)
    if not directorio.is_dir():
        raise NotADirError(directorio)
    return directorio


def cargar_lotes_imagenes(carpeta: Union[str, Path]) -> List[Path]:
    """Retorna, en orden natural, los archivos de imagen soportados de la carpeta (sin subcarpetas)."""
    directorio = validate_manga_dir(carpeta)
    return natsorted(
        [f for f in directorio.iterdir() if f.is_file() and f.suffix.lower() in SUPPORTED_FORMATS],
        key=lambda f: f.name
    )


def scan_image_infos(carpeta: Union[str, Path]) -> List[ImageInfo]:
    """
    Lee las dimensiones de cada imagen de la carpeta.

    Solo se lee la cabecera de cada archivo. Los archivos ilegibles se omiten:
    el escaneo es informativo y no debe fallar por un archivo dañado.
    """
    infos = []
    for image_path in cargar_lotes_imagenes(carpeta):
        try:
            infos.append(read_image_info(image_path))
        except DecodeError as e:
            logger.warning("Omitiendo %s: %s", image_path.name, e)
    return infos


def group_by_dimensions(infos: Iterable[ImageInfo]) -> Dict[Tuple[int, int], List[ImageInfo]]:
    """Agrupa por (ancho, alto) conservando el orden de aparición"""
    groups: Dict[Tuple[int, int], List[ImageInfo]] = {}
    for info in infos:
        groups.setdefault(info.size, []).append(info)
    return groups
