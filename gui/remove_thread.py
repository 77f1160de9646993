"""
Hilos Qt para ejecutar las operaciones largas sin bloquear la GUI
"""
from PySide6.QtCore import QThread, Signal

from core.errors import WatermarkError
from core.models import (
    RemoveWatermarkEndEvent, RemoveWatermarkErrorEvent, RemoveWatermarkStartEvent, RemoveWatermarkSuccessEvent
)


class RemoveWatermarkThread(QThread):
    """Thread que elimina las marcas de una carpeta y reenvía los eventos como señales"""
    started_run = Signal(str, int)  # carpeta, total
    success = Signal(str, str, int)  # carpeta, imagen, completadas
    error = Signal(str, str, str)  # carpeta, imagen, mensaje
    ended = Signal(str)  # carpeta
    failed = Signal(str)  # el lote no se pudo empezar

    def __init__(self, commands, manga_dir, output_dir, image_format, optimize, backgrounds_data):
        super().__init__()
        self.commands = commands
        self.manga_dir = manga_dir
        self.output_dir = output_dir
        self.image_format = image_format
        self.optimize = optimize
        self.backgrounds_data = backgrounds_data

    def run(self):
        pipeline = self.commands.pipeline
        previous_callback = pipeline.event_callback
        pipeline.event_callback = self._forward
        try:
            self.commands.remove_watermark(
                self.manga_dir, self.output_dir, self.image_format, self.optimize, self.backgrounds_data
            )
        except WatermarkError as e:
            self.failed.emit(str(e))
        finally:
            pipeline.event_callback = previous_callback

    def stop(self):
        self.commands.cancel_remove_watermark()

    def _forward(self, event):
        if isinstance(event, RemoveWatermarkStartEvent):
            self.started_run.emit(str(event.dir_path), event.total)
        elif isinstance(event, RemoveWatermarkSuccessEvent):
            self.success.emit(str(event.dir_path), str(event.img_path), event.current)
        elif isinstance(event, RemoveWatermarkErrorEvent):
            self.error.emit(str(event.dir_path), str(event.img_path), event.err_msg)
        elif isinstance(event, RemoveWatermarkEndEvent):
            self.ended.emit(str(event.dir_path))


class GenerateBackgroundThread(QThread):
    """Thread para estimar los fondos de un grupo"""
    finished_ok = Signal(int, int)  # ancho, alto
    error = Signal(str)

    def __init__(self, commands, manga_dir, rect_data, width, height):
        super().__init__()
        self.commands = commands
        self.manga_dir = manga_dir
        self.rect_data = rect_data
        self.width = width
        self.height = height

    def run(self):
        try:
            self.commands.generate_background(self.manga_dir, self.rect_data, self.width, self.height)
            self.finished_ok.emit(self.width, self.height)
        except WatermarkError as e:
            self.error.emit(str(e))
