"""
Eventos emitidos durante una ejecución de eliminación de marcas.

Son registros inmutables; el nombre de cada evento coincide con el que escucha la UI.
"""
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RemoveWatermarkStartEvent:
    dir_path: Path
    total: int

    name = 'remove-watermark-start-event'

    def to_dict(self) -> dict:
        return {'dirPath': str(self.dir_path), 'total': self.total}


@dataclass(frozen=True)
class RemoveWatermarkSuccessEvent:
    dir_path: Path
    img_path: Path
    current: int

    name = 'remove-watermark-success-event'

    def to_dict(self) -> dict:
        return {'dirPath': str(self.dir_path), 'imgPath': str(self.img_path), 'current': self.current}


@dataclass(frozen=True)
class RemoveWatermarkErrorEvent:
    dir_path: Path
    img_path: Path
    err_msg: str

    name = 'remove-watermark-error-event'

    def to_dict(self) -> dict:
        return {'dirPath': str(self.dir_path), 'imgPath': str(self.img_path), 'errMsg': self.err_msg}


@dataclass(frozen=True)
class RemoveWatermarkEndEvent:
    dir_path: Path

    name = 'remove-watermark-end-event'

    def to_dict(self) -> dict:
        return {'dirPath': str(self.dir_path)}
