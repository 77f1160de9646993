"""
Códec de imágenes: decodifica a arreglos BGR de OpenCV y vuelve a codificar la salida.
"""
import base64
import io
import logging
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from core.errors import DecodeError, EncodeError
from core.models import ImageBuffer, ImageData, ImageFormat, ImageInfo
from core.utils.constants import JPEG_QUALITY, PREVIEW_JPEG_QUALITY

logger = logging.getLogger(__name__)

# La orientación EXIF se ignora para que las dimensiones coincidan con las de la cabecera
_DECODE_FLAGS = cv2.IMREAD_COLOR | cv2.IMREAD_IGNORE_ORIENTATION


def read_dimensions(image_path: Union[str, Path]) -> Tuple[int, int]:
    """
    Lee (ancho, alto) solo desde la cabecera del archivo, sin decodificar los píxeles.

    Raises:
        DecodeError: si el archivo no es una imagen reconocible.
    """
    try:
        with Image.open(image_path) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(image_path, str(e)) from e
    if width <= 0 or height <= 0:
        raise DecodeError(image_path, f"invalid size {width}x{height}")
    return width, height


def read_image_info(image_path: Union[str, Path]) -> ImageInfo:
    width, height = read_dimensions(image_path)
    return ImageInfo(width=width, height=height, path=Path(image_path))


def load_images_cv2(image_path: Union[str, Path]) -> np.ndarray:
    """
    Carga una imagen como arreglo BGR uint8 de 3 canales.

    Se lee con numpy + imdecode para soportar rutas con caracteres especiales.
    """
    if isinstance(image_path, Path):
        image_path = str(image_path)
    try:
        img_array = np.fromfile(image_path, dtype=np.uint8)
    except OSError as e:
        raise DecodeError(image_path, str(e)) from e
    if img_array.size == 0:
        raise DecodeError(image_path, "empty file")
    img = cv2.imdecode(img_array, _DECODE_FLAGS)
    if img is None:
        raise DecodeError(image_path)

    return img


def decode_image(image_path: Union[str, Path]) -> ImageBuffer:
    pixels = load_images_cv2(image_path)
    height, width = pixels.shape[:2]
    return ImageBuffer(info=ImageInfo(width=width, height=height, path=Path(image_path)), pixels=pixels)


def optimize_png(data: bytes) -> bytes:
    """Pasada sin pérdida con Pillow (optimize=True); se queda con el resultado más pequeño"""
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        buffer = io.BytesIO()
        img.save(buffer, format='PNG', optimize=True)
    optimized = buffer.getvalue()
    return optimized if len(optimized) < len(data) else data


def encode_image(
    pixels: np.ndarray,
    image_format: ImageFormat,
    optimize: bool = False,
    quality: int = JPEG_QUALITY
) -> bytes:
    """
    Codifica un arreglo BGR al formato pedido.

    Con `optimize` el JPEG usa tablas Huffman optimizadas y el PNG pasa por
    `optimize_png`; ninguna de las dos cambia los píxeles.
    """
    if image_format is ImageFormat.JPEG:
        params = [cv2.IMWRITE_JPEG_QUALITY, quality]
        if optimize:
            params += [cv2.IMWRITE_JPEG_OPTIMIZE, 1]
    else:
        params = [cv2.IMWRITE_PNG_COMPRESSION, 3]

    try:
        success, encoded_image = cv2.imencode(image_format.extension, pixels, params)
    except cv2.error as e:
        raise EncodeError(f"failed to encode image as {image_format.value}: {e}") from e
    if not success:
        raise EncodeError(f"failed to encode image as {image_format.value}")

    data = encoded_image.tobytes()
    if optimize and image_format is ImageFormat.PNG:
        before = len(data)
        data = optimize_png(data)
        logger.debug("PNG optimizado: %d -> %d bytes", before, len(data))
    return data


def to_base64_jpeg(pixels: np.ndarray, quality: int = PREVIEW_JPEG_QUALITY) -> str:
    data = encode_image(pixels, ImageFormat.JPEG, quality=quality)
    return base64.b64encode(data).decode('ascii')


def open_image(image_path: Union[str, Path]) -> ImageData:
    """Decodifica una imagen y la devuelve como vista previa para la UI"""
    buffer = decode_image(image_path)
    return ImageData(info=buffer.info, base64=to_base64_jpeg(buffer.pixels))
