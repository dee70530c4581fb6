"""
Core layer: large circles that mask whatever lies beneath them.

Cores sit at infrastructure static-line endpoints. When no static lines
produce a core, cluster centers are used instead.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer


@dataclass
class Core:
    x: float
    y: float
    radius: float
    type: str  # "pulsing", "concentric", "radial" or "dotted"
    fill_color: tuple
    stroke_color: tuple
    pulse_speed: Optional[float] = None
    pulse_amplitude: Optional[float] = None
    ring_count: Optional[int] = None
    ring_spacing: Optional[float] = None
    line_count: Optional[int] = None
    line_length: Optional[float] = None
    dot_count: Optional[int] = None
    dot_size: Optional[float] = None

    def current_radius(self, time: float) -> float:
        if self.type == "pulsing":
            return self.radius + math.sin(time * self.pulse_speed) * self.radius * self.pulse_amplitude
        return self.radius


@dataclass
class CoreData:
    cores: List[Core] = field(default_factory=list)

    def at_position(self, x: float, y: float) -> Optional[Core]:
        for core in self.cores:
            if math.hypot(x - core.x, y - core.y) <= core.radius:
                return core
        return None

    def remove_closest(self, x: float, y: float, max_distance: float = 50) -> Optional[Core]:
        """Remove and return the core nearest to a point, if within range."""
        closest_index = -1
        min_distance = math.inf
        for index, core in enumerate(self.cores):
            d = math.hypot(x - core.x, y - core.y)
            if d < min_distance and d <= max_distance:
                min_distance = d
                closest_index = index
        if closest_index < 0:
            return None
        return self.cores.pop(closest_index)

    def stats(self) -> Dict[str, object]:
        count = len(self.cores)
        distribution: Dict[str, int] = {}
        for core in self.cores:
            distribution[core.type] = distribution.get(core.type, 0) + 1
        return {
            "total_cores": count,
            "average_radius": sum(c.radius for c in self.cores) / count if count else 0.0,
            "total_area": sum(math.pi * c.radius * c.radius for c in self.cores),
            "type_distribution": distribution,
        }


@register_layer
class CoreLayer:
    """Masking cores painted beneath every other layer."""

    name = "cores"
    z_index = -100
    requires = ("infrastructure",)

    def __init__(self, probability: float = 0.4):
        self.probability = probability
        self.radius_range = (40.0, 100.0)
        self.line_width = 2.0

    def generate_data(self, params: LayerParams) -> CoreData:
        random = params.random
        data = CoreData()

        for line in params.static_lines:
            for x, y in ((line.x1, line.y1), (line.x2, line.y2)):
                core = self._maybe_core(x, y, random)
                if core is not None:
                    data.cores.append(core)

        if not data.cores:
            for cluster in params.clusters:
                core = self._maybe_core(cluster.x, cluster.y, random)
                if core is not None:
                    data.cores.append(core)

        return data

    def _maybe_core(self, x: float, y: float, random) -> Optional[Core]:
        if random.next() <= 1 - self.probability:
            return None

        low, high = self.radius_range
        radius = low + random.next() * (high - low)
        core_type = random.next()

        if core_type < 0.3:
            return Core(
                x, y, radius, "pulsing",
                fill_color=(250, 248, 245, 0.7),
                stroke_color=(60, 60, 60, 0.5),
                pulse_speed=0.005 + random.next() * 0.01,
                pulse_amplitude=0.08 + random.next() * 0.05,
            )
        if core_type < 0.6:
            return Core(
                x, y, radius, "concentric",
                fill_color=(250, 248, 245, 0.6),
                stroke_color=(60, 60, 60, 0.4),
                ring_count=1 + math.floor(random.next() * 2),
                ring_spacing=radius * (0.2 + random.next() * 0.1),
            )
        if core_type < 0.8:
            return Core(
                x, y, radius, "radial",
                fill_color=(250, 248, 245, 0.6),
                stroke_color=(60, 60, 60, 0.4),
                line_count=4 + math.floor(random.next() * 3),
                line_length=radius * (0.4 + random.next() * 0.2),
            )
        return Core(
            x, y, radius, "dotted",
            fill_color=(250, 248, 245, 0.4),
            stroke_color=(60, 60, 60, 0.5),
            dot_count=4 + math.floor(random.next() * 4),
            dot_size=radius * (0.03 + random.next() * 0.05),
        )

    def render(self, canvas, data: CoreData, params: RenderParams) -> None:
        for core in data.cores:
            center = (core.x, core.y)
            radius = core.current_radius(params.time)
            fill = with_alpha(core.fill_color, params.opacity)
            stroke = with_alpha(core.stroke_color, params.opacity)

            canvas.erase_polygon(_circle_points(core.x, core.y, radius))
            canvas.fill_circle(center, radius, fill)

            if core.type == "concentric":
                for i in range(1, core.ring_count + 1):
                    canvas.circle(center, radius * i / core.ring_count, stroke, self.line_width)
                continue

            if core.type == "radial":
                for i in range(core.line_count):
                    angle = i / core.line_count * math.pi * 2
                    end = (core.x + math.cos(angle) * core.line_length, core.y + math.sin(angle) * core.line_length)
                    canvas.line(center, end, stroke, self.line_width)
            elif core.type == "dotted":
                for i in range(core.dot_count):
                    angle = i / core.dot_count * math.pi * 2
                    # Golden-ratio spacing keeps dot placement stable across frames
                    dot_radius = radius * (0.3 + ((i * 0.618) % 1.0) * 0.4)
                    canvas.fill_circle(
                        (core.x + math.cos(angle) * dot_radius, core.y + math.sin(angle) * dot_radius),
                        core.dot_size,
                        stroke,
                    )
            canvas.circle(center, radius, stroke, self.line_width)


def _circle_points(cx: float, cy: float, r: float, sides: int = 48):
    return [
        (cx + math.cos(math.pi * 2 * k / sides) * r, cy + math.sin(math.pi * 2 * k / sides) * r)
        for k in range(sides)
    ]
