"""Rectilinear panel partition of the composition area."""

from dataclasses import dataclass, field
from typing import List

from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer


@dataclass
class Panel:
    x: float
    y: float
    w: float
    h: float
    emphasize: bool


@dataclass
class PanelData:
    cell_width: float
    cell_height: float
    rects: List[Panel] = field(default_factory=list)


@register_layer
class PanelLayer:
    """
    Splits the padded area into a columns x rows partition.

    Panels are mostly consumed as clipping regions; guides are only drawn
    when ``show_guides`` is set.
    """

    name = "panels"
    z_index = -15
    requires = ()

    def __init__(self, columns: int = 16, rows: int = 12, fill_ratio: float = 0.45):
        self.columns = columns
        self.rows = rows
        self.fill_ratio = fill_ratio
        self.show_guides = False
        self.line_color = (40, 90, 120, 0.25)
        self.line_width = 0.6

    def generate_data(self, params: LayerParams) -> PanelData:
        usable_width = params.width - params.padding * 2
        usable_height = params.height - params.padding * 2
        data = PanelData(
            cell_width=usable_width / self.columns,
            cell_height=usable_height / self.rows,
        )

        for r in range(self.rows):
            for c in range(self.columns):
                data.rects.append(
                    Panel(
                        x=params.padding + c * data.cell_width,
                        y=params.padding + r * data.cell_height,
                        w=data.cell_width,
                        h=data.cell_height,
                        emphasize=params.random.next() < self.fill_ratio,
                    )
                )
        return data

    def render(self, canvas, data: PanelData, params: RenderParams) -> None:
        if not self.show_guides:
            return
        color = with_alpha(self.line_color, params.opacity)
        for p in data.rects:
            corners = [(p.x, p.y), (p.x + p.w, p.y), (p.x + p.w, p.y + p.h), (p.x, p.y + p.h)]
            canvas.polyline(corners, color, self.line_width, closed=True)
