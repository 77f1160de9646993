"""
Estimación de los fondos negro y blanco de un grupo de imágenes del mismo tamaño.

Modelo: en cada píxel/canal, observado = pagina*(1-a) + marca*a, con `a` y
`marca` constantes en todo el grupo. El mínimo observado aproxima pagina=0 y
el máximo pagina=255; el par de compuestos basta para invertir la mezcla al
eliminar (ver wm_remove.remove_watermark).
"""
import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from core.errors import DecodeError, InsufficientSamplesError
from core.models import BackgroundPair, Rect
from core.services.image_handler import load_images_cv2
from core.utils.constants import MAX_WORKERS, MIN_BACKGROUND_SAMPLES

logger = logging.getLogger(__name__)

Extremes = Tuple[np.ndarray, np.ndarray]


def load_sample(image_path: Union[str, Path], width: int, height: int, rect: Optional[Rect] = None) -> np.ndarray:
    """Decodifica una imagen del grupo, comprueba su tamaño y la recorta al rectángulo"""
    img = load_images_cv2(image_path)
    h_img, w_img = img.shape[:2]
    if (w_img, h_img) != (width, height):
        raise DecodeError(image_path, f"decoded size {w_img}x{h_img} differs from group size {width}x{height}")
    if rect is not None:
        img = rect.crop(img)
    return img


def merge_extremes(a: Optional[Extremes], b: Optional[Extremes]) -> Optional[Extremes]:
    """Une dos resultados parciales (mínimo y máximo punto a punto). Asociativa y conmutativa."""
    if a is None:
        return b
    if b is None:
        return a
    return np.minimum(a[0], b[0]), np.maximum(a[1], b[1])


def reduce_chunk(
    paths: Sequence[Path],
    width: int,
    height: int,
    rect: Optional[Rect] = None
) -> Optional[Extremes]:
    """Mínimo y máximo de un lote de imágenes (trabajo de un hilo)"""
    extremes = None
    for image_path in paths:
        img = load_sample(image_path, width, height, rect)
        if extremes is None:
            extremes = (img.copy(), img.copy())
        else:
            np.minimum(extremes[0], img, out=extremes[0])
            np.maximum(extremes[1], img, out=extremes[1])
    return extremes


def split_chunks(paths: Sequence[Path], parts: int) -> List[List[Path]]:
    parts = max(1, min(parts, len(paths)))
    return [list(paths[i::parts]) for i in range(parts)]


def estimate_background(
    paths: Sequence[Union[str, Path]],
    width: int,
    height: int,
    rect: Optional[Rect] = None,
    min_samples: int = MIN_BACKGROUND_SAMPLES,
    max_workers: Optional[int] = None
) -> BackgroundPair:
    """
    Calcula los fondos negro (mínimo) y blanco (máximo) de un grupo.

    Args:
        paths: Imágenes del grupo, todas de width x height
        width, height: Dimensiones del grupo
        rect: Región a analizar (None = imagen completa). Los fondos resultantes
            tienen las dimensiones del rectángulo.
        min_samples: Mínimo de imágenes necesarias
        max_workers: Hilos para decodificar (default: MAX_WORKERS)

    Returns:
        BackgroundPair con los dos compuestos.

    Raises:
        InsufficientSamplesError: si hay menos de `min_samples` imágenes.
        DecodeError: si alguna imagen no se puede decodificar. No se excluye el
            archivo: un dato faltante sesgaría los extremos, así que se aborta todo.
    """
    paths = [Path(p) for p in paths]
    if len(paths) < max(1, min_samples):
        raise InsufficientSamplesError(width, height, len(paths), max(1, min_samples))
    if rect is not None:
        rect.validate(width, height)

    workers = max_workers or MAX_WORKERS
    chunks = split_chunks(paths, workers)
    logger.info("Estimando fondos %dx%d con %d imágenes (%d hilos)", width, height, len(paths), len(chunks))

    extremes = None
    with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
        futures = [executor.submit(reduce_chunk, chunk, width, height, rect) for chunk in chunks]
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        for future in not_done:
            future.cancel()
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        for future in futures:
            extremes = merge_extremes(extremes, future.result())

    black, white = extremes
    return BackgroundPair(width=width, height=height, black=black, white=white, rect=rect)
