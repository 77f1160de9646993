"""
Configuración de salida del proceso (se carga al iniciar y se guarda bajo demanda).
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from core.errors import InvalidConfigError


class ImageFormat(str, Enum):
    JPEG = 'Jpeg'
    PNG = 'Png'

    @property
    def extension(self) -> str:
        return '.jpg' if self is ImageFormat.JPEG else '.png'

    @classmethod
    def parse(cls, value: Union[str, 'ImageFormat']) -> 'ImageFormat':
        """Acepta el enum, su valor ('Jpeg') o el nombre en cualquier caso ('png', 'jpg')"""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        aliases = {'jpeg': cls.JPEG, 'jpg': cls.JPEG, 'png': cls.PNG}
        if text not in aliases:
            raise InvalidConfigError(f"unsupported output format: {value!r}")
        return aliases[text]


@dataclass
class OutputConfig:
    output_dir: Path
    output_format: ImageFormat = ImageFormat.JPEG
    output_optimize: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'OutputConfig':
        """Construye la configuración desde el JSON (claves camelCase)"""
        try:
            output_dir = data['outputDir']
            output_format = data['outputFormat']
            output_optimize = data['outputOptimize']
        except (KeyError, TypeError) as e:
            raise InvalidConfigError(f"missing config field: {e}") from e
        if not isinstance(output_optimize, bool):
            raise InvalidConfigError(f"outputOptimize must be a boolean, got {output_optimize!r}")
        if not output_dir:
            raise InvalidConfigError("outputDir must not be empty")
        return cls(
            output_dir=Path(output_dir),
            output_format=ImageFormat.parse(output_format),
            output_optimize=output_optimize,
        )

    def to_dict(self) -> dict:
        return {
            'outputDir': str(self.output_dir),
            'outputFormat': self.output_format.value,
            'outputOptimize': self.output_optimize,
        }
