"""
OverlayRemove - Eliminación de marcas de agua estáticas por estimación de fondos

Submódulos:
    - background: Estimación de los fondos negro/blanco de un grupo de dimensiones
    - wm_remove: Inversión de la mezcla por píxel y procesamiento de carpetas
    - pipeline: Orquestación y eventos de progreso
    - commands: Comandos que expone el backend a la UI

Ejemplo:
    >>> from OverlayRemove import Commands
    >>> commands = Commands(event_callback=print)
    >>> commands.generate_background('manga/cap1', None, 800, 1200)
    >>> data = commands.get_manga_dir_data('manga/cap1')
    >>> pairs = [(d.black_background, d.white_background) for d in data if d.has_background]
    >>> commands.remove_watermark('manga/cap1', 'salida', 'Png', True, pairs)
"""

from .background import estimate_background
from .wm_remove import remove_watermark, process, process_directory
from .pipeline import WatermarkPipeline
from .commands import Commands

from core.utils.version import APP_VERSION as __version__

__all__ = [
    'estimate_background',
    'remove_watermark',
    'process',
    'process_directory',
    'WatermarkPipeline',
    'Commands',
]
