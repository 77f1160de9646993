import json
import os
import tempfile
from pathlib import Path
from typing import Union


class UtilJson:
    """
    Lectura y escritura de un archivo JSON pequeño (configuración, metadatos de fondos).

    La escritura es atómica: se escribe en un temporal de la misma carpeta y se
    reemplaza el destino, para que un corte a mitad no deje el archivo truncado.

    Args:
        path: Ruta al archivo JSON (str o Path)
        encoding: Codificación del archivo (default: 'utf-8')
        indent: Espacios de indentación (default: 4)

    Ejemplo:
        >>> meta = UtilJson('background.json')
        >>> meta.write({'width': 800, 'height': 1200})
        >>> meta.read()['width']
        800
    """

    def __init__(self, path: Union[str, Path], encoding: str = 'utf-8', indent: int = 4):
        self.path = Path(path) if isinstance(path, str) else path
        self.encoding = encoding
        self.indent = indent

    def read(self) -> dict:
        """
        Lee el archivo.

        Returns:
            dict: Contenido del archivo. Vacío si no existe.

        Raises:
            ValueError: si el contenido no es JSON válido o no es un objeto.
        """
        try:
            with open(self.path, 'r', encoding=self.encoding) as archivo:
                data = json.load(archivo)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON in {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object in {self.path}")
        return data

    def write(self, data: dict) -> 'UtilJson':
        """Sobrescribe el archivo con `data`, creando la carpeta si hace falta"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding=self.encoding) as archivo:
                json.dump(data, archivo, indent=self.indent, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        return self

    def exists(self) -> bool:
        return self.path.is_file()

    def __repr__(self) -> str:
        return f"UtilJson(path='{self.path}', encoding='{self.encoding}')"
