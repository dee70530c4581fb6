"""
Radiating plot divisions around each cluster, in the manner of
historical town maps.
"""

from dataclasses import dataclass, field
from typing import List

from ..core.geometry import Wedge, in_padded_bounds, subdivide_wedges
from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer


@dataclass
class TownPlot:
    x: float
    y: float
    plot_size: float
    cluster_id: int
    cluster_index: int
    divisions: List[Wedge] = field(default_factory=list)


@dataclass
class TownPlotData:
    structures: List[TownPlot] = field(default_factory=list)


@register_layer
class TownPlotsLayer:
    """One wedge-subdivided plot per cluster."""

    name = "plotAreas"
    z_index = -7
    requires = ()

    def __init__(self, plot_scale: float = 1.25):
        self.plot_scale = plot_scale
        self.structure_color = (180, 80, 60, 0.4)
        self.line_width = 1.0

    def generate_data(self, params: LayerParams) -> TownPlotData:
        data = TownPlotData()

        for index, cluster in enumerate(params.clusters):
            plot_size = cluster.radius * self.plot_scale
            divisions = subdivide_wedges(params.random, cluster.x, cluster.y, plot_size)

            # Plots with no point in the safe zone are dropped after generation
            in_bounds = any(
                in_padded_bounds(x, y, params.width, params.height, params.padding)
                for wedge in divisions
                for x, y in wedge.points
            )
            if not in_bounds:
                continue

            data.structures.append(
                TownPlot(
                    x=cluster.x,
                    y=cluster.y,
                    plot_size=plot_size,
                    cluster_id=cluster.id,
                    cluster_index=index,
                    divisions=divisions,
                )
            )

        return data

    def render(self, canvas, data: TownPlotData, params: RenderParams) -> None:
        color = with_alpha(self.structure_color, params.opacity)
        for plot in data.structures:
            for wedge in plot.divisions:
                if len(wedge.points) < 3:
                    continue
                canvas.polyline(wedge.points, color, self.line_width, closed=True)
