"""
Abrir rutas en el explorador de archivos del sistema
"""
from pathlib import Path

from PySide6.QtCore import QUrl
from PySide6.QtGui import QDesktopServices

from core.errors import DirNotFoundError


def show_path_in_file_manager(path) -> bool:
    """Abre la carpeta (o la carpeta que contiene el archivo) en el explorador"""
    target = Path(path)
    if not target.exists():
        raise DirNotFoundError(target)
    if target.is_file():
        target = target.parent
    return QDesktopServices.openUrl(QUrl.fromLocalFile(str(target.absolute())))
