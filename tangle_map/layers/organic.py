"""
Organic layer: noise-steered meanders around cluster centers.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core.geometry import in_padded_bounds
from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer


@dataclass
class FlowPoint:
    x: float
    y: float
    cp1x: Optional[float] = None
    cp1y: Optional[float] = None
    is_start: bool = False


@dataclass
class OrganicFlow:
    start_x: float
    start_y: float
    cluster_id: int
    should_close: bool
    in_bounds: bool
    points: List[FlowPoint] = field(default_factory=list)


@dataclass
class OrganicData:
    flows: List[OrganicFlow] = field(default_factory=list)
    terminal_points: List[tuple] = field(default_factory=list)

    def contains_point(self, x: float, y: float, tolerance: float = 5) -> bool:
        """Whether any flow vertex lies within ``tolerance`` of a point."""
        return any(
            math.hypot(x - p.x, y - p.y) <= tolerance
            for flow in self.flows
            for p in flow.points
        )

    def stats(self) -> Dict[str, float]:
        count = len(self.flows)
        return {
            "total_flows": count,
            "average_points": sum(len(f.points) for f in self.flows) / count if count else 0.0,
            "closed_flows": sum(1 for f in self.flows if f.should_close),
            "in_bounds_flows": sum(1 for f in self.flows if f.in_bounds),
        }


@register_layer
class OrganicLayer:
    """Meandering paths steered by the deterministic noise field."""

    name = "organic"
    z_index = 3
    requires = ()

    def __init__(self):
        self.color = (0, 150, 120, 0.1)
        self.line_width = 2.5
        self.noise_scale = 0.2
        self.angle_variation = 10.0
        self.step_size = (4.0, 10.0)
        self.point_count = (20, 200)

    def generate_data(self, params: LayerParams) -> OrganicData:
        random = params.random
        noise = params.noise
        data = OrganicData()

        for cluster in params.clusters:
            flow_count = math.floor(cluster.intensity * 4)

            for _ in range(flow_count):
                start_angle = random.random_angle()
                start_distance = random.next() * cluster.radius * 0.3
                start_x = cluster.x + math.cos(start_angle) * start_distance
                start_y = cluster.y + math.sin(start_angle) * start_distance

                flow = OrganicFlow(
                    start_x=start_x,
                    start_y=start_y,
                    cluster_id=cluster.id,
                    should_close=random.next() > 0.7,
                    in_bounds=in_padded_bounds(start_x, start_y, params.width, params.height, params.padding),
                )

                low, high = self.point_count
                n_points = low + math.floor(random.next() * (high - low))
                x, y = start_x, start_y
                heading = random.random_angle()
                flow.points.append(FlowPoint(x, y, is_start=True))

                step_min, step_max = self.step_size
                for _ in range(n_points):
                    heading += (noise(x * self.noise_scale, y * self.noise_scale, 1) - 0.5) * self.angle_variation

                    step = step_min + random.next() * (step_max - step_min)
                    x = max(0.0, min(params.width, x + math.cos(heading) * step))
                    y = max(0.0, min(params.height, y + math.sin(heading) * step))

                    # Stop once the walk strays from its cluster
                    if math.hypot(x - cluster.x, y - cluster.y) > cluster.radius * 1.2:
                        break

                    cp1x = x + (random.next() - 0.5) * 15
                    cp1y = y + (random.next() - 0.5) * 15
                    flow.points.append(FlowPoint(x, y, cp1x, cp1y))

                data.flows.append(flow)
                data.terminal_points.append((x, y))

        return data

    def render(self, canvas, data: OrganicData, params: RenderParams) -> None:
        color = with_alpha(self.color, params.opacity)
        for index, flow in enumerate(data.flows):
            if not flow.in_bounds or len(flow.points) < 2:
                continue

            path = [(flow.start_x, flow.start_y)]
            for i, point in enumerate(flow.points[1:], start=1):
                wobble = math.sin((i + index) * 0.9) * 1.2
                path.append((point.x + math.cos(i * 0.7) * wobble, point.y + math.sin(i * 0.6) * wobble))
            canvas.polyline(path, color, self.line_width * 0.95, closed=flow.should_close)
