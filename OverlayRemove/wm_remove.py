"""
Eliminación de la marca de agua invirtiendo la mezcla con los fondos negro/blanco.
"""
import logging
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from core.errors import DimensionMismatchError, InvalidConfigError, WriteError
from core.models import BackgroundPair, FileOutcome, ImageBuffer, ImageFormat
from core.services.directory_explorer import cargar_lotes_imagenes, validate_manga_dir
from core.services.image_handler import decode_image, encode_image, read_dimensions
from core.utils.constants import MAX_INTENSITY, MAX_WORKERS, MIN_SPAN

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "remove watermark cancelled"

Backgrounds = Mapping[Tuple[int, int], BackgroundPair]


def remove_watermark(
    image: np.ndarray,
    black: np.ndarray,
    white: np.ndarray,
    min_span: float = MIN_SPAN,
    max_intensity: float = MAX_INTENSITY
) -> np.ndarray:
    """
    Recupera la página original píxel a píxel.

    Con el fondo negro como pagina=0 y el blanco como pagina=max en cada
    posición, la mezcla observado = pagina*(1-a) + marca*a da:
        blanco - negro = max*(1-a)      marca*a = negro
    y por lo tanto pagina = (observado - negro) * max / (blanco - negro).

    Donde blanco - negro < min_span (la marca es opaca o nada varió) no hay
    información para recuperar y el píxel se deja igual.

    Args:
        image: Imagen con marca (uint8, BGR)
        black: Fondo negro (mínimos) del mismo tamaño
        white: Fondo blanco (máximos) del mismo tamaño

    Returns:
        Imagen sin marca (uint8)
    """
    if image.shape != black.shape or image.shape != white.shape:
        raise DimensionMismatchError(
            f"image shape {image.shape} does not match background shapes {black.shape} / {white.shape}"
        )
    observed = image.astype(np.float32)
    black_f = black.astype(np.float32)
    span = white.astype(np.float32) - black_f

    recoverable = span >= min_span
    page = np.divide((observed - black_f) * max_intensity, span, out=observed.copy(), where=recoverable)
    np.clip(page, 0, max_intensity, out=page)
    return np.rint(page).astype(np.uint8)


def process(source: ImageBuffer, pair: BackgroundPair) -> ImageBuffer:
    """Aplica el par de fondos a una imagen; con rectángulo solo se toca esa región"""
    if source.info.size != pair.key:
        raise DimensionMismatchError(
            f"image is {source.info.width}x{source.info.height} but the background pair "
            f"is for {pair.width}x{pair.height}"
        )
    if pair.rect is None:
        pixels = remove_watermark(source.pixels, pair.black, pair.white)
    else:
        rect = pair.rect
        pixels = source.pixels.copy()
        pixels[rect.top:rect.bottom, rect.left:rect.right] = remove_watermark(
            rect.crop(source.pixels), pair.black, pair.white
        )
    return ImageBuffer(info=source.info, pixels=pixels)


def output_path_for(
    image_path: Union[str, Path],
    manga_dir: Union[str, Path],
    output_dir: Union[str, Path],
    image_format: ImageFormat
) -> Path:
    """<output_dir>/<nombre de la carpeta de manga>/<nombre del archivo>.<ext del formato>"""
    return Path(output_dir) / Path(manga_dir).name / (Path(image_path).stem + image_format.extension)


def prepare_output_dir(manga_dir: Union[str, Path], output_dir: Union[str, Path, None]) -> Path:
    """
    Valida y crea la carpeta de salida antes de tocar cualquier archivo.

    Raises:
        InvalidConfigError: carpeta vacía, es un archivo, o coincide con la carpeta de manga.
        WriteError: no se pudo crear.
    """
    if output_dir is None or not str(output_dir).strip():
        raise InvalidConfigError("output directory is not set")
    output_dir = Path(output_dir)
    if output_dir.exists() and not output_dir.is_dir():
        raise InvalidConfigError(f"output directory is a file: {output_dir}")

    target_dir = output_dir / Path(manga_dir).name
    if target_dir.resolve() == Path(manga_dir).resolve():
        raise InvalidConfigError(f"output directory would overwrite the manga directory: {target_dir}")
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteError(target_dir, str(e)) from e
    return target_dir


def guardar(output_path: Path, data: bytes) -> Path:
    """Escribe la imagen codificada en disco"""
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(data)
    except OSError as e:
        raise WriteError(output_path, str(e)) from e
    return output_path


def process_file(
    image_path: Path,
    pair: BackgroundPair,
    output_path: Path,
    image_format: ImageFormat,
    optimize: bool = False
) -> Path:
    """Decodifica, elimina la marca, codifica y guarda un archivo"""
    source = decode_image(image_path)
    result = process(source, pair)
    data = encode_image(result.pixels, image_format, optimize=optimize)
    return guardar(output_path, data)


def _process_one(
    image_path: Path,
    manga_dir: Path,
    output_dir: Path,
    image_format: ImageFormat,
    optimize: bool,
    backgrounds: Backgrounds
) -> FileOutcome:
    try:
        width, height = read_dimensions(image_path)
        pair = backgrounds.get((width, height))
        if pair is None:
            return FileOutcome(path=image_path, error=f"no background pair for dimensions {width}x{height}")
        output_path = output_path_for(image_path, manga_dir, output_dir, image_format)
        process_file(image_path, pair, output_path, image_format, optimize)
        return FileOutcome(path=image_path, output_path=output_path)
    except Exception as e:
        # Un archivo fallido nunca detiene el lote; se reporta como resultado
        logger.warning("Error procesando %s: %s", image_path.name, e)
        return FileOutcome(path=image_path, error=str(e) or type(e).__name__)


def process_directory(
    manga_dir: Union[str, Path],
    output_dir: Union[str, Path],
    image_format: Union[str, ImageFormat],
    optimize: bool,
    backgrounds: Backgrounds,
    on_start: Optional[Callable[[int], None]] = None,
    on_outcome: Optional[Callable[[FileOutcome], None]] = None,
    cancel_event: Optional[threading.Event] = None,
    max_workers: Optional[int] = None
) -> List[FileOutcome]:
    """
    Elimina la marca de todas las imágenes de la carpeta de manga.

    Cada archivo usa el par de fondos de sus propias dimensiones. Los errores de
    un archivo se devuelven como FileOutcome con `error`; solo los problemas del
    lote (carpeta inválida, salida inválida) se lanzan como excepción, antes de
    empezar.

    Los callbacks se llaman siempre desde el hilo que invoca esta función:
    `on_start(total)` una vez y `on_outcome(resultado)` por archivo.

    Si se activa `cancel_event` no se empiezan más archivos; los que ya están
    en proceso terminan y los pendientes se reportan como cancelados.
    """
    manga_dir = validate_manga_dir(manga_dir)
    image_format = ImageFormat.parse(image_format)
    prepare_output_dir(manga_dir, output_dir)
    output_dir = Path(output_dir)
    backgrounds: Dict[Tuple[int, int], BackgroundPair] = dict(backgrounds)

    image_paths = cargar_lotes_imagenes(manga_dir)
    if on_start:
        on_start(len(image_paths))

    outcomes: List[FileOutcome] = []

    def report(outcome: FileOutcome):
        outcomes.append(outcome)
        if on_outcome:
            on_outcome(outcome)

    def cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    # Dos fuentes con el mismo nombre base (p0.png, p0.jpg) irían al mismo archivo de salida;
    # la primera en orden natural se queda con él
    claimed: Dict[Path, Path] = {}
    collisions: Dict[Path, str] = {}
    for image_path in image_paths:
        target = output_path_for(image_path, manga_dir, output_dir, image_format)
        if target in claimed:
            collisions[image_path] = f"output path {target} is already used by {claimed[target].name}"
        else:
            claimed[target] = image_path

    workers = max(1, max_workers or MAX_WORKERS)
    remaining = deque(image_paths)
    in_flight = {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        while remaining or in_flight:
            while remaining and len(in_flight) < workers and not cancelled():
                image_path = remaining.popleft()
                if image_path in collisions:
                    report(FileOutcome(path=image_path, error=collisions[image_path]))
                    continue
                future = executor.submit(
                    _process_one, image_path, manga_dir, output_dir, image_format, optimize, backgrounds
                )
                in_flight[future] = image_path

            if cancelled() and remaining:
                logger.info("Cancelado: %d archivos sin procesar", len(remaining))
                while remaining:
                    report(FileOutcome(path=remaining.popleft(), error=CANCELLED_MESSAGE))

            if not in_flight:
                continue
            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in done:
                in_flight.pop(future)
                report(future.result())

    return outcomes
