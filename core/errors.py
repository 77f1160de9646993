"""
Errores del backend de Quita Marcas.

Los mensajes viajan tal cual hasta la UI (eventos y resultados de comandos),
por eso se escriben en inglés igual que el resto de la superficie IPC.
"""
from pathlib import Path
from typing import Optional, Union


class WatermarkError(Exception):
    """Error base de todas las operaciones del backend"""


class DirNotFoundError(WatermarkError, FileNotFoundError):
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"directory not found: {self.path}")

    def __str__(self) -> str:
        return self.args[0]


class NotADirError(WatermarkError, NotADirectoryError):
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"not a directory: {self.path}")

    def __str__(self) -> str:
        return self.args[0]


class DecodeError(WatermarkError, ValueError):
    """La imagen no se pudo decodificar. Siempre nombra el archivo."""

    def __init__(self, path: Union[str, Path], reason: Optional[str] = None):
        self.path = Path(path)
        self.reason = reason
        message = f"failed to decode image: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InsufficientSamplesError(WatermarkError):
    def __init__(self, width: int, height: int, count: int, minimum: int):
        self.width = width
        self.height = height
        self.count = count
        self.minimum = minimum
        super().__init__(
            f"not enough images sized {width}x{height} to estimate the background: "
            f"found {count}, need at least {minimum}"
        )


class EncodeError(WatermarkError):
    pass


class WriteError(WatermarkError, OSError):
    def __init__(self, path: Union[str, Path], reason: Optional[str] = None):
        self.path = Path(path)
        message = f"failed to write: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]


class InvalidConfigError(WatermarkError, ValueError):
    pass


class InvalidRectError(WatermarkError, ValueError):
    pass


class DimensionGroupNotFoundError(WatermarkError):
    def __init__(self, directory: Union[str, Path], width: int, height: int):
        self.directory = Path(directory)
        self.width = width
        self.height = height
        super().__init__(f"no images sized {width}x{height} in {self.directory}")


class DimensionMismatchError(WatermarkError, ValueError):
    pass
