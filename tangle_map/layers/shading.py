"""
Shading layer: organic areas filled with stipple, crosshatch or flow
line textures.

Areas are centered on grid crossings and grid-snapped cluster centers.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from ..core.geometry import (
    Point,
    in_padded_bounds,
    polygon_area,
    sample_in_polygon,
    snap_to_grid,
    synthesize_boundary,
)
from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer

PATTERNS = ("stipple", "crosshatch", "flow")

# Stipple dots per square pixel of boundary area at full intensity
STIPPLE_DENSITY = 0.0025


@dataclass
class StippleDot:
    x: float
    y: float
    radius: float


@dataclass
class HatchLine:
    start_x: float
    start_y: float
    end_x: float
    end_y: float


@dataclass
class StipplePattern:
    dots: List[StippleDot] = field(default_factory=list)


@dataclass
class CrosshatchPattern:
    lines: List[HatchLine] = field(default_factory=list)


@dataclass
class FlowLinePattern:
    flows: List[List[Point]] = field(default_factory=list)


@dataclass
class ShadingArea:
    center_x: float
    center_y: float
    size: float
    area_index: int
    intensity: float
    pattern_type: str
    z_offset: int
    in_bounds: bool
    boundary: List[Point]
    pattern: Union[StipplePattern, CrosshatchPattern, FlowLinePattern, None] = None


@dataclass
class ShadingData:
    shading_areas: List[ShadingArea] = field(default_factory=list)

    def stats(self) -> Dict[str, object]:
        count = len(self.shading_areas)
        pattern_counts = {pattern: 0 for pattern in PATTERNS}
        for area in self.shading_areas:
            pattern_counts[area.pattern_type] += 1
        return {
            "total_areas": count,
            "pattern_counts": pattern_counts,
            "average_size": sum(a.size for a in self.shading_areas) / count if count else 0.0,
            "in_bounds_areas": sum(1 for a in self.shading_areas if a.in_bounds),
        }


@register_layer
class ShadingLayer:
    """Textured organic areas that give the composition visual weight."""

    name = "shading"
    z_index = 5
    requires = ()

    def __init__(self):
        self.boundary_color = (60, 100, 120, 0.4)
        self.fill_color = (100, 140, 120, 0.2)
        self.pattern_colors = {
            "stipple": (60, 100, 80, 0.6),
            "crosshatch": (60, 100, 120, 0.5),
            "flow": (80, 120, 140, 0.5),
        }
        self.boundary_line_width = 0.8
        self.pattern_line_width = 0.8
        self.hatch_spacing = 6
        self.max_placement_attempts = 10

    def generate_data(self, params: LayerParams) -> ShadingData:
        random = params.random
        grid_size = params.grid_size or 64
        data = ShadingData()

        centers: List[Tuple[float, float]] = []
        if params.grid is not None:
            centers.extend(params.grid.intersections())
        for cluster in params.clusters:
            centers.append((snap_to_grid(cluster.x, grid_size), snap_to_grid(cluster.y, grid_size)))

        shading_count = min(len(centers), 8 + math.floor(random.next() * 6))

        for i in range(shading_count):
            center_x, center_y = random.pick(centers)
            size = 200 + random.next() * 150
            intensity = 0.8 + random.next() * 0.2
            in_bounds = in_padded_bounds(
                center_x - size, center_y - size, params.width, params.height, params.padding
            ) and in_padded_bounds(
                center_x + size, center_y + size, params.width, params.height, params.padding
            )

            n_points = 10 + math.floor(random.next() * 6)
            boundary = synthesize_boundary(random, center_x, center_y, size * 0.5, n_points)

            area = ShadingArea(
                center_x=center_x,
                center_y=center_y,
                size=size,
                area_index=i,
                intensity=intensity,
                pattern_type=PATTERNS[i % len(PATTERNS)],
                z_offset=i * 2,
                in_bounds=in_bounds,
                boundary=boundary,
            )
            area.pattern = self._generate_pattern(area, params)
            data.shading_areas.append(area)

        return data

    def _generate_pattern(self, area: ShadingArea, params: LayerParams):
        if area.pattern_type == "crosshatch":
            return self._crosshatch(area, params.random)
        if area.pattern_type == "flow":
            return self._flow_lines(area, params.random, params.noise)
        return self._stipple(area, params.random)

    def _stipple(self, area: ShadingArea, random) -> StipplePattern:
        pattern = StipplePattern()
        dot_count = math.floor(polygon_area(area.boundary) * area.intensity * STIPPLE_DENSITY)
        spread = area.size * 1.2

        def sampler() -> Point:
            return (
                area.center_x + (random.next() - 0.5) * spread,
                area.center_y + (random.next() - 0.5) * spread,
            )

        for _ in range(dot_count):
            point = sample_in_polygon(area.boundary, sampler, self.max_placement_attempts)
            if point is None:
                continue
            pattern.dots.append(StippleDot(point[0], point[1], 0.5 + random.next() * 0.5))

        return pattern

    def _crosshatch(self, area: ShadingArea, random) -> CrosshatchPattern:
        pattern = CrosshatchPattern()
        cx, cy, size = area.center_x, area.center_y, area.size

        x = cx - size
        while x < cx + size:
            y = cy - size
            while y < cy + size:
                if math.hypot(x - cx, y - cy) < size * 0.6 and random.next() > 0.6:
                    length = 3 + random.next() * 2
                    angle = 0.0 if random.next() > 0.5 else math.pi / 2
                    pattern.lines.append(
                        HatchLine(x, y, x + math.cos(angle) * length, y + math.sin(angle) * length)
                    )
                y += self.hatch_spacing
            x += self.hatch_spacing

        return pattern

    def _flow_lines(self, area: ShadingArea, random, noise) -> FlowLinePattern:
        pattern = FlowLinePattern()
        cx, cy, size = area.center_x, area.center_y, area.size
        flow_count = math.floor(size * area.intensity * 0.3)

        for i in range(flow_count):
            fx = cx + (random.next() - 0.5) * size * 0.8
            fy = cy + (random.next() - 0.5) * size * 0.8
            points = [(fx, fy)]

            for _ in range(8):
                angle = noise(fx * 0.02, fy * 0.02, i) * math.pi * 2
                fx += math.cos(angle) * 2
                fy += math.sin(angle) * 2
                if math.hypot(fx - cx, fy - cy) > size * 0.7:
                    break
                points.append((fx, fy))

            pattern.flows.append(points)

        return pattern

    def render(self, canvas, data: ShadingData, params: RenderParams) -> None:
        boundary_color = with_alpha(self.boundary_color, params.opacity)

        for area in data.shading_areas:
            if not area.in_bounds or not area.boundary:
                continue

            color = with_alpha(self.pattern_colors[area.pattern_type], params.opacity)
            if isinstance(area.pattern, StipplePattern):
                canvas.fill_polygon(area.boundary, with_alpha(self.fill_color, params.opacity))
                for dot in area.pattern.dots:
                    canvas.fill_circle((dot.x, dot.y), dot.radius, color)
            elif isinstance(area.pattern, CrosshatchPattern):
                for line in area.pattern.lines:
                    canvas.line(
                        (line.start_x, line.start_y), (line.end_x, line.end_y), color, self.pattern_line_width
                    )
            elif isinstance(area.pattern, FlowLinePattern):
                for flow in area.pattern.flows:
                    if len(flow) >= 2:
                        canvas.polyline(flow, color, self.pattern_line_width * 1.5)

            canvas.polyline(area.boundary, boundary_color, self.boundary_line_width, closed=True)
