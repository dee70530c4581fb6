"""
Flow layer: a river-like road network.

Primary roads connect two clusters or run from a cluster to a canvas
edge; secondary roads branch off existing roads. Crossings between roads
are recorded, and so are crossings with the infrastructure static lines,
which are marked with small bridge dots.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ..core.geometry import Point, TWO_PI, chaikin_smooth, polyline_intersections
from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer


@dataclass
class Road:
    points: List[Point]
    smoothed: List[Point]
    width: float
    type: str  # "primary" or "secondary"


@dataclass
class RoadIntersection:
    x: float
    y: float
    road_a: int
    road_b: int
    segment_a: int
    segment_b: int


@dataclass
class FlowData:
    roads: List[Road] = field(default_factory=list)
    intersections: List[RoadIntersection] = field(default_factory=list)
    line_crossings: List[Point] = field(default_factory=list)

    def stats(self) -> Dict[str, int]:
        return {
            "total_roads": len(self.roads),
            "primary_roads": sum(1 for r in self.roads if r.type == "primary"),
            "secondary_roads": sum(1 for r in self.roads if r.type == "secondary"),
            "intersections": len(self.intersections),
            "line_crossings": len(self.line_crossings),
        }


def _xy(target) -> Point:
    if isinstance(target, tuple):
        return target
    return (target.x, target.y)


@register_layer
class FlowLayer:
    """Meandering roads joining clusters and canvas edges."""

    name = "flow"
    z_index = 4
    requires = ("infrastructure",)

    def __init__(self):
        self.color = (30, 110, 120, 0.65)
        self.primary_width = 2.2
        self.secondary_width = 1.4
        self.intersection_radius = 25.0
        self.bridge_radius = 2.5
        self.primary_road_count = (2, 3)
        self.secondary_road_count = (2, 4)
        self.min_road_points = 6
        self.smoothing_iterations = 2

    def generate_data(self, params: LayerParams) -> FlowData:
        random = params.random
        clusters = params.clusters
        data = FlowData()

        if not clusters:
            return data

        low, high = self.primary_road_count
        road_count = low + math.floor(random.next() * (high - low + 1))

        for _ in range(road_count):
            if random.next() < 0.6 and len(clusters) >= 2:
                cluster_a = random.pick(clusters)
                cluster_b = random.pick(clusters)
                if cluster_a is cluster_b:
                    continue
                road = self._river_road(cluster_a, cluster_b, params, "primary")
            else:
                start = random.pick(clusters)
                road = self._river_road(start, self._edge_target(params), params, "primary")

            if len(road.points) >= self.min_road_points:
                data.roads.append(road)

        low, high = self.secondary_road_count
        secondary_count = low + math.floor(random.next() * (high - low + 1))

        for _ in range(secondary_count):
            if not data.roads:
                break

            parent = random.pick(data.roads)
            # Branch points avoid the parent's endpoints
            branch_index = math.floor(random.next() * (len(parent.points) - 2)) + 1
            branch_point = parent.points[branch_index]

            if random.next() < 0.5:
                target = self._edge_target(params)
            else:
                target = random.pick(clusters)

            road = self._river_road(branch_point, target, params, "secondary")
            if len(road.points) >= self.min_road_points:
                data.roads.append(road)

        data.intersections = self._find_intersections(data.roads)
        data.line_crossings = self._find_line_crossings(data.roads, params.static_lines)
        return data

    def _edge_target(self, params: LayerParams) -> Point:
        random = params.random
        width, height, padding = params.width, params.height, params.padding
        edge = math.floor(random.next() * 4)

        if edge == 0:
            return (padding + random.next() * (width - 2 * padding), padding)
        if edge == 1:
            return (width - padding, padding + random.next() * (height - 2 * padding))
        if edge == 2:
            return (padding + random.next() * (width - 2 * padding), height - padding)
        return (padding, padding + random.next() * (height - 2 * padding))

    def _river_road(self, start, end, params: LayerParams, road_type: str) -> Road:
        random = params.random
        noise = params.noise
        sx, sy = _xy(start)
        ex, ey = _xy(end)
        total_distance = math.hypot(ex - sx, ey - sy)

        waypoints = []
        n_waypoints = 3 + math.floor(random.next() * 4)
        for i in range(n_waypoints):
            t = (i + 1) / (n_waypoints + 1)
            base_x = sx + (ex - sx) * t
            base_y = sy + (ey - sy) * t
            offset = total_distance * (0.3 + random.next() * 0.4)
            angle = random.next() * TWO_PI
            waypoints.append((base_x + math.cos(angle) * offset, base_y + math.sin(angle) * offset))

        anchors = [(sx, sy)] + waypoints + [(ex, ey)]
        points = []
        for i in range(len(anchors) - 1):
            (cx, cy), (nx, ny) = anchors[i], anchors[i + 1]
            segment_steps = max(8, math.floor(math.hypot(nx - cx, ny - cy) / 10))

            for j in range(segment_steps + 1):
                t = j / segment_steps
                x = cx + (nx - cx) * t
                y = cy + (ny - cy) * t
                final_x = x + noise(x * 0.01, y * 0.01, i * 10 + j) * 20
                final_y = y + noise(x * 0.01, y * 0.01, i * 10 + j + 100) * 20

                # Points off the canvas are dropped
                if 0 <= final_x <= params.width and 0 <= final_y <= params.height:
                    points.append((final_x, final_y))

        return Road(
            points=points,
            smoothed=chaikin_smooth(points, self.smoothing_iterations),
            width=self.primary_width if road_type == "primary" else self.secondary_width,
            type=road_type,
        )

    def _find_intersections(self, roads: List[Road]) -> List[RoadIntersection]:
        found = []
        for i in range(len(roads)):
            for j in range(i + 1, len(roads)):
                for seg_a, seg_b, x, y in polyline_intersections(roads[i].points, roads[j].points):
                    if self._is_distinct(x, y, found):
                        found.append(RoadIntersection(x, y, i, j, seg_a, seg_b))
        return found

    def _find_line_crossings(self, roads: List[Road], static_lines) -> List[Point]:
        crossings = []
        for road in roads:
            for line in static_lines:
                segment = [(line.x1, line.y1), (line.x2, line.y2)]
                for _, _, x, y in polyline_intersections(road.points, segment):
                    crossings.append((x, y))
        return crossings

    def _is_distinct(self, x: float, y: float, existing: List[RoadIntersection]) -> bool:
        return all(math.hypot(x - e.x, y - e.y) >= self.intersection_radius for e in existing)

    def render(self, canvas, data: FlowData, params: RenderParams) -> None:
        color = with_alpha(self.color, params.opacity)
        for road in data.roads:
            width = self.primary_width * 1.2 if road.type == "primary" else self.secondary_width
            canvas.polyline(road.smoothed, color, width)

        for x, y in data.line_crossings:
            canvas.fill_circle((x, y), self.bridge_radius, color)
