"""
Node layer: connection points with short radiating lines.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core.geometry import TWO_PI, in_padded_bounds
from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer


@dataclass
class ConnectionLine:
    end_x: float
    end_y: float
    should_draw: bool


@dataclass
class Node:
    x: float
    y: float
    radius: float
    connections: int
    cluster_id: int
    in_bounds: bool
    connection_lines: List[ConnectionLine] = field(default_factory=list)


@dataclass
class NodeData:
    nodes: List[Node] = field(default_factory=list)
    terminal_points: List[tuple] = field(default_factory=list)

    def in_cluster(self, cluster_id: int) -> List[Node]:
        return [node for node in self.nodes if node.cluster_id == cluster_id]

    def closest(self, x: float, y: float, max_distance: float = 50) -> Optional[Node]:
        """Nearest in-bounds node within ``max_distance`` of a point."""
        closest = None
        min_distance = math.inf
        for node in self.nodes:
            if not node.in_bounds:
                continue
            d = math.hypot(x - node.x, y - node.y)
            if d < min_distance and d <= max_distance:
                min_distance = d
                closest = node
        return closest

    def stats(self) -> Dict[str, float]:
        count = len(self.nodes)
        return {
            "total_nodes": count,
            "total_connections": sum(node.connections for node in self.nodes),
            "average_radius": sum(node.radius for node in self.nodes) / count if count else 0.0,
            "in_bounds_nodes": sum(1 for node in self.nodes if node.in_bounds),
        }


@register_layer
class NodeLayer:
    """Filled nodes scattered inside each cluster."""

    name = "nodes"
    z_index = 0
    requires = ()

    def __init__(self):
        self.node_color = (30, 80, 120, 0.8)
        self.connection_color = (30, 80, 120, 1.0)
        self.connection_line_width = 0.8

    def generate_data(self, params: LayerParams) -> NodeData:
        random = params.random
        data = NodeData()

        for cluster in params.clusters:
            node_count = math.floor(cluster.intensity * 6)

            for _ in range(node_count):
                angle = random.random_angle()
                dist = random.next() * cluster.radius * 0.7
                x = cluster.x + math.cos(angle) * dist
                y = cluster.y + math.sin(angle) * dist
                radius = (2.5 + random.next() * 4.5) * cluster.intensity
                connections = math.floor(2 + random.next() * 3)

                node = Node(
                    x=x,
                    y=y,
                    radius=radius,
                    connections=connections,
                    cluster_id=cluster.id,
                    in_bounds=in_padded_bounds(x, y, params.width, params.height, params.padding),
                )

                for j in range(connections):
                    should_draw = random.next() > 0.6
                    conn_angle = (j / connections) * TWO_PI + random.next() * 0.3
                    length = (18 + random.next() * 42) * cluster.intensity
                    end_x = x + math.cos(conn_angle) * length
                    end_y = y + math.sin(conn_angle) * length

                    node.connection_lines.append(ConnectionLine(end_x, end_y, should_draw))
                    data.terminal_points.append((end_x, end_y))

                data.nodes.append(node)

        return data

    def render(self, canvas, data: NodeData, params: RenderParams) -> None:
        fill = with_alpha(self.node_color, params.opacity)
        stroke = with_alpha(self.connection_color, params.opacity)

        for node in data.nodes:
            if not node.in_bounds:
                continue
            canvas.fill_circle((node.x, node.y), node.radius, fill)
            for conn in node.connection_lines:
                if conn.should_draw:
                    canvas.line((node.x, node.y), (conn.end_x, conn.end_y), stroke, self.connection_line_width)
