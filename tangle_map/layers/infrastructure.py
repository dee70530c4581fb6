"""
Infrastructure layer: connections and static lines between clusters.

The static lines and their terminal points are consumed by the flow,
particle and core layers.
"""

import math
from dataclasses import dataclass, field
from typing import List

from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer

CONNECTION_COUNT = 8


@dataclass
class Connection:
    x1: float
    y1: float
    x2: float
    y2: float
    should_draw: bool


@dataclass
class StaticLine:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass
class TerminalPoint:
    x: float
    y: float


@dataclass
class InfrastructureData:
    connections: List[Connection] = field(default_factory=list)
    static_lines: List[StaticLine] = field(default_factory=list)
    terminal_points: List[TerminalPoint] = field(default_factory=list)


@register_layer
class InfrastructureLayer:
    """Loose connections plus heavy static lines between cluster pairs."""

    name = "infrastructure"
    z_index = -10
    requires = ()

    def __init__(self):
        self.connection_color = (50, 120, 160, 0.4)
        self.static_line_color = (30, 80, 120, 0.8)
        self.endpoint_color = (30, 80, 120, 0.9)
        self.connection_line_width = 1.0
        self.static_line_width = 4.0

    def generate_data(self, params: LayerParams) -> InfrastructureData:
        random = params.random
        clusters = params.clusters
        data = InfrastructureData()

        if not clusters:
            return data

        for _ in range(CONNECTION_COUNT):
            should_draw = random.next() > 0.4
            c1 = random.pick(clusters)
            c2 = random.pick(clusters)

            x1 = c1.x + (random.next() - 0.5) * c1.radius * 0.2
            y1 = c1.y + (random.next() - 0.5) * c1.radius * 0.2
            x2 = c2.x + (random.next() - 0.5) * c2.radius * 0.2
            y2 = c2.y + (random.next() - 0.5) * c2.radius * 0.2
            data.connections.append(Connection(x1, y1, x2, y2, should_draw))

        for i in range(len(clusters) - 1):
            for j in range(i + 1, len(clusters)):
                if random.next() <= 0.3:
                    continue

                c1, c2 = clusters[i], clusters[j]
                x1 = self._clamp(c1.x + (random.next() - 0.5) * c1.radius * 0.15, params.width)
                y1 = self._clamp(c1.y + (random.next() - 0.5) * c1.radius * 0.15, params.height)
                x2 = self._clamp(c2.x + (random.next() - 0.5) * c2.radius * 0.15, params.width)
                y2 = self._clamp(c2.y + (random.next() - 0.5) * c2.radius * 0.15, params.height)

                data.static_lines.append(StaticLine(x1, y1, x2, y2))
                data.terminal_points.append(TerminalPoint(x1, y1))
                data.terminal_points.append(TerminalPoint(x2, y2))

        return data

    @staticmethod
    def _clamp(value: float, upper: float) -> float:
        return max(0.0, min(upper, value))

    def render(self, canvas, data: InfrastructureData, params: RenderParams) -> None:
        connection_color = with_alpha(self.connection_color, params.opacity)
        for idx, conn in enumerate(data.connections):
            if not conn.should_draw:
                continue
            # Every fifth connection is promoted to a primary line
            width = self.connection_line_width * 1.1
            if idx % 5 == 0:
                width *= 1.9
            canvas.line((conn.x1, conn.y1), (conn.x2, conn.y2), connection_color, width)

        static_color = with_alpha(self.static_line_color, params.opacity)
        for line in data.static_lines:
            canvas.line((line.x1, line.y1), (line.x2, line.y2), static_color, self.static_line_width * 0.6)

        endpoint_color = with_alpha(self.endpoint_color, params.opacity)
        for li, line in enumerate(data.static_lines):
            for pi, point in enumerate(((line.x1, line.y1), (line.x2, line.y2))):
                self._render_endpoint(canvas, point, (li * 7 + pi * 3) % 8, endpoint_color)

    def _render_endpoint(self, canvas, point, shape: int, color) -> None:
        x, y = point
        r = 8.0
        if shape == 0:
            canvas.fill_circle(point, r, color)
        elif shape == 1:
            canvas.fill_circle(point, r * 1.8, color)
        elif shape == 2:
            canvas.erase_polygon(_regular_polygon(x, y, r, 24))
            canvas.circle(point, r, color, 1.2)
        elif shape == 3:
            canvas.polyline(_regular_polygon(x, y, r, 12)[:8], color, 1.2)
        elif shape == 4:
            s = r * 0.6
            canvas.fill_polygon([(x - s, y - s), (x + s, y - s), (x + s, y + s), (x - s, y + s)], color)
        elif shape == 5:
            s = r * 1.1
            canvas.fill_polygon([(x, y - s), (x + s, y), (x, y + s), (x - s, y)], color)
        elif shape == 6:
            s = r * 1.3
            canvas.fill_polygon(
                [(x, y - s), (x + s * 0.866, y + s * 0.5), (x - s * 0.866, y + s * 0.5)], color
            )
        else:
            s = r * 0.8
            canvas.line((x - s, y), (x + s, y), color, 1.2)
            canvas.line((x, y - s), (x, y + s), color, 1.2)


def _regular_polygon(cx: float, cy: float, r: float, sides: int):
    return [
        (cx + math.cos(math.pi * 2 * k / sides) * r, cy + math.sin(math.pi * 2 * k / sides) * r)
        for k in range(sides)
    ]
