from .work_directory import (
    ImageInfo, ImageBuffer, ImageData, Rect, BackgroundPair, MangaDirData, FileOutcome
)
from .app_settings import ImageFormat, OutputConfig
from .events import (
    RemoveWatermarkStartEvent,
    RemoveWatermarkSuccessEvent,
    RemoveWatermarkErrorEvent,
    RemoveWatermarkEndEvent,
)

__all__ = [
    'ImageInfo', 'ImageBuffer', 'ImageData', 'Rect', 'BackgroundPair', 'MangaDirData', 'FileOutcome',
    'ImageFormat', 'OutputConfig',
    'RemoveWatermarkStartEvent', 'RemoveWatermarkSuccessEvent',
    'RemoveWatermarkErrorEvent', 'RemoveWatermarkEndEvent',
]
