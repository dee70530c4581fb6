"""
Rectangular mask layer: carves large voids out of the composition.
"""

import math
from dataclasses import dataclass, field
from typing import List

from .base import LayerParams, RenderParams, register_layer


@dataclass
class RectMask:
    x: float
    y: float
    w: float
    h: float


@dataclass
class RectMaskData:
    masks: List[RectMask] = field(default_factory=list)


@register_layer
class RectMaskLayer:
    """Two to four rectangles erased from everything painted before them."""

    name = "rectMasks"
    z_index = 90
    requires = ()

    def __init__(self):
        self.mask_count = (2, 4)
        # Fraction of the smaller canvas dimension
        self.size_range = (0.25, 0.45)

    def generate_data(self, params: LayerParams) -> RectMaskData:
        random = params.random
        min_dim = min(params.width, params.height)
        low, high = self.mask_count
        count = low + math.floor(random.next() * (high - low + 1))
        size_low, size_high = self.size_range

        data = RectMaskData()
        for _ in range(count):
            w = (size_low + random.next() * (size_high - size_low)) * min_dim
            h = (size_low + random.next() * (size_high - size_low)) * min_dim * (0.6 + random.next() * 0.8)
            x = params.padding + random.next() * (params.width - params.padding * 2 - w)
            y = params.padding + random.next() * (params.height - params.padding * 2 - h)
            data.masks.append(RectMask(x, y, w, h))

        return data

    def render(self, canvas, data: RectMaskData, params: RenderParams) -> None:
        for m in data.masks:
            canvas.erase_polygon([(m.x, m.y), (m.x + m.w, m.y), (m.x + m.w, m.y + m.h), (m.x, m.y + m.h)])
