"""
Rendering surfaces for generated compositions.
"""

from .canvas import BACKGROUND_COLOR, Canvas, RecordingCanvas, with_alpha

__all__ = ["BACKGROUND_COLOR", "Canvas", "RecordingCanvas", "with_alpha"]
