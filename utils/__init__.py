"""
utils - Utilidades generales

Contiene el manejo de archivos JSON usado por la configuración y la caché de fondos.
"""

from .json_utils import UtilJson

__all__ = ['UtilJson']
