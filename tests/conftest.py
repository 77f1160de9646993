from pathlib import Path

import cv2
import numpy as np
import pytest

from core.models import OutputConfig
from core.services import BackgroundCache, SettingsHandler
from OverlayRemove.pipeline import WatermarkPipeline


def write_image(path: Path, pixels: np.ndarray) -> Path:
    success, encoded = cv2.imencode(path.suffix, pixels)
    assert success
    path.write_bytes(encoded.tobytes())
    return path


def write_corrupt_png(path: Path, width: int, height: int) -> Path:
    """PNG con cabecera válida (las dimensiones se pueden leer) pero datos IDAT destruidos"""
    success, encoded = cv2.imencode('.png', np.full((height, width, 3), 128, dtype=np.uint8))
    assert success
    data = bytearray(encoded.tobytes())
    idat = data.index(b'IDAT')
    length = int.from_bytes(data[idat - 4:idat], 'big')
    data[idat + 4:idat + 4 + length] = bytes(length)
    path.write_bytes(bytes(data))
    return path


def blend(page: np.ndarray, alpha, overlay) -> np.ndarray:
    observed = page.astype(np.float64) * (1 - alpha) + np.asarray(overlay, dtype=np.float64) * alpha
    return np.clip(np.rint(observed), 0, 255).astype(np.uint8)


def make_clean_pages(count: int, width: int, height: int, seed: int = 0) -> list:
    """Páginas aleatorias donde los extremos del grupo llegan a 0 y 255 en cada posición"""
    rng = np.random.default_rng(seed)
    pages = [rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8) for _ in range(count)]
    pages[0][:] = 0
    pages[1][:] = 255
    return pages


def make_watermark(width: int, height: int, seed: int = 1):
    """Marca estática: opacidad entre 0.1 y 0.4 y color arbitrario por píxel/canal"""
    rng = np.random.default_rng(seed)
    alpha = rng.uniform(0.1, 0.4, size=(height, width, 3))
    overlay = rng.integers(0, 256, size=(height, width, 3)).astype(np.float64)
    return alpha, overlay


def write_flat_pages(directory: Path, count: int, width: int, height: int, prefix: str = 'page') -> list:
    """Páginas planas con un recuadro semitransparente fijo; se comprimen rápido"""
    paths = []
    for i in range(count):
        value = int(round(255 * i / max(1, count - 1)))
        page = np.full((height, width, 3), value, dtype=np.uint8)
        observed = page.copy()
        observed[height // 4:height // 2, width // 4:width // 2] = blend(
            page[height // 4:height // 2, width // 4:width // 2], 0.3, 200
        )
        paths.append(write_image(directory / f"{prefix}_{i + 1}.png", observed))
    return paths


@pytest.fixture
def manga_dir(tmp_path) -> Path:
    directory = tmp_path / 'manga'
    directory.mkdir()
    return directory


@pytest.fixture
def output_dir(tmp_path) -> Path:
    return tmp_path / 'output'


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def pipeline(output_dir, events) -> WatermarkPipeline:
    config = OutputConfig(output_dir=output_dir)
    return WatermarkPipeline(config, BackgroundCache(), event_callback=events.append, max_workers=4)


@pytest.fixture
def settings(tmp_path) -> SettingsHandler:
    return SettingsHandler(settings_dir=tmp_path / '__settings__', app_dir=tmp_path)
