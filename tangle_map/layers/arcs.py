"""
Compass-style arcs and donuts.

Arcs are centered on grid-aligned cluster centers and on grid crossings
away from clusters. Where an arc crosses a grid line a small wedge fill
may be placed.
"""

import math
from dataclasses import dataclass, field
from typing import List

from ..core.geometry import TWO_PI, circle_line_intersections, distance, snap_to_grid
from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer

CLUSTER_PALETTE = ((25, 70, 110, 0.6), (80, 40, 60, 0.5), (40, 80, 40, 0.5))
INTERSECTION_PALETTE = ((25, 70, 110, 0.4), (80, 40, 60, 0.3), (40, 80, 40, 0.3))


@dataclass
class ArcCenter:
    x: float
    y: float
    kind: str  # "cluster" or "intersection"
    intensity: float
    cluster_id: int = -1


@dataclass
class Arc:
    cx: float
    cy: float
    r: float
    inner_radius: float
    start: float
    end: float
    color_index: int
    center_kind: str
    type: str = "donut"


@dataclass
class ArcDot:
    x: float
    y: float
    size: float


@dataclass
class ArcGridFill:
    arc_index: int
    orientation: str
    line_position: float
    x: float
    y: float
    angle: float


@dataclass
class ArcData:
    arcs: List[Arc] = field(default_factory=list)
    intersections: List[ArcDot] = field(default_factory=list)
    arc_grid_fills: List[ArcGridFill] = field(default_factory=list)


@register_layer
class ArcLayer:
    """Donut arcs around clusters and grid crossings."""

    name = "arcs"
    z_index = -8
    requires = ()

    def __init__(self):
        self.color = (25, 70, 110, 0.7)
        self.line_width = 1.2
        self.arc_count_range = (3, 6)
        self.radius_range = (60.0, 200.0)
        self.min_cluster_clearance = 120.0
        self.intersection_center_probability = 0.3
        self.fill_probability = 0.4
        self.max_pair_checks = 8

    def generate_data(self, params: LayerParams) -> ArcData:
        random = params.random
        grid = params.grid
        grid_size = params.grid_size or 64
        data = ArcData()

        centers = [
            ArcCenter(
                x=snap_to_grid(c.x, grid_size),
                y=snap_to_grid(c.y, grid_size),
                kind="cluster",
                intensity=c.intensity,
                cluster_id=c.id,
            )
            for c in params.clusters
        ]

        if grid is not None:
            for x, y in grid.intersections():
                too_close = any(
                    distance(x, y, c.x, c.y) < self.min_cluster_clearance
                    for c in params.clusters
                )
                if not too_close and random.next() < self.intersection_center_probability:
                    centers.append(ArcCenter(x=x, y=y, kind="intersection", intensity=0.5))

        low, high = self.arc_count_range
        arc_count = low + math.floor(random.next() * (high - low + 1))

        for _ in range(arc_count):
            if not centers:
                break
            center = random.pick(centers)
            if center.kind == "cluster":
                data.arcs.extend(self._cluster_donuts(center, random, grid_size))
            else:
                data.arcs.extend(self._intersection_donuts(center, random, grid_size))

        data.intersections = self._find_arc_intersections(data.arcs, random)
        if grid is not None:
            data.arc_grid_fills = self._find_arc_grid_fills(data.arcs, grid, random)

        return data

    def _cluster_donuts(self, center: ArcCenter, random, grid_size: float) -> List[Arc]:
        min_r, max_r = self.radius_range
        arcs = []
        for _ in range(1 + math.floor(random.next() * 2)):
            radius = snap_to_grid(min_r + random.next() * (max_r - min_r), grid_size)
            inner = radius * (0.3 + random.next() * 0.4)
            arcs.append(
                Arc(
                    cx=center.x,
                    cy=center.y,
                    r=radius,
                    inner_radius=inner,
                    start=0.0,
                    end=TWO_PI,
                    color_index=math.floor(random.next() * len(CLUSTER_PALETTE)),
                    center_kind="cluster",
                )
            )
        return arcs

    def _intersection_donuts(self, center: ArcCenter, random, grid_size: float) -> List[Arc]:
        if random.next() >= 0.5:
            return []

        min_r, max_r = self.radius_range[0] * 0.5, self.radius_range[1] * 0.5
        radius = snap_to_grid(min_r + random.next() * (max_r - min_r), grid_size)
        inner = radius * (0.4 + random.next() * 0.3)
        return [
            Arc(
                cx=center.x,
                cy=center.y,
                r=radius,
                inner_radius=inner,
                start=0.0,
                end=TWO_PI,
                color_index=math.floor(random.next() * len(INTERSECTION_PALETTE)),
                center_kind="intersection",
            )
        ]

    def _find_arc_intersections(self, arcs: List[Arc], random) -> List[ArcDot]:
        # Marks the midpoint between overlapping arc centers
        dots = []
        checks = min(len(arcs), self.max_pair_checks)
        for i in range(checks):
            for j in range(i + 1, checks):
                a, b = arcs[i], arcs[j]
                d = distance(a.cx, a.cy, b.cx, b.cy)
                if 10 < d < a.r + b.r:
                    dots.append(
                        ArcDot(
                            x=(a.cx + b.cx) / 2,
                            y=(a.cy + b.cy) / 2,
                            size=3 + random.next() * 3,
                        )
                    )
        return dots

    def _find_arc_grid_fills(self, arcs: List[Arc], grid, random) -> List[ArcGridFill]:
        fills = []
        for index, arc in enumerate(arcs):
            for lines in (grid.vertical, grid.horizontal):
                for line in lines:
                    hits = circle_line_intersections(
                        arc.cx, arc.cy, arc.r, line.position, line.orientation, arc.start, arc.end
                    )
                    for x, y, angle in hits:
                        if random.next() < self.fill_probability:
                            fills.append(
                                ArcGridFill(
                                    arc_index=index,
                                    orientation=line.orientation,
                                    line_position=line.position,
                                    x=x,
                                    y=y,
                                    angle=angle,
                                )
                            )
        return fills

    def arc_color(self, arc: Arc):
        palette = CLUSTER_PALETTE if arc.center_kind == "cluster" else INTERSECTION_PALETTE
        return palette[arc.color_index]

    def render(self, canvas, data: ArcData, params: RenderParams) -> None:
        for fill in data.arc_grid_fills:
            arc = data.arcs[fill.arc_index]
            r, g, b, _ = self.arc_color(arc)
            wedge = [(arc.cx, arc.cy), (fill.x, fill.y)]
            for k in range(9):
                angle = fill.angle - math.pi * 0.1 + (math.pi * 0.2) * k / 8
                wedge.append((arc.cx + math.cos(angle) * arc.r, arc.cy + math.sin(angle) * arc.r))
            canvas.fill_polygon(wedge, with_alpha((r, g, b, 0.15), params.opacity))

        for arc in data.arcs:
            color = with_alpha(self.arc_color(arc), params.opacity)
            canvas.circle((arc.cx, arc.cy), arc.r, color, self.line_width)
            canvas.circle((arc.cx, arc.cy), arc.inner_radius, color, self.line_width)

        dot_color = with_alpha(self.color, params.opacity)
        for dot in data.intersections:
            canvas.fill_circle((dot.x, dot.y), dot.size, dot_color)
