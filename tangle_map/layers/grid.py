"""
Background structural grid.

The grid is the foundational layer: it is generated before every other
layer and its line positions and pitch are handed to the layers that align
their geometry to it.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..core.geometry import distance
from ..render.canvas import BACKGROUND_COLOR, with_alpha
from .base import LayerParams, RenderParams, register_layer

TEXTURE_TYPES = ("stipple", "crosshatch", "diagonal", "dots")


@dataclass
class GridLine:
    """Vertical line at x=position or horizontal line at y=position."""

    orientation: str
    position: float
    start: float
    end: float


@dataclass
class AngledBreak:
    x1: float
    y1: float
    x2: float
    y2: float
    angle: float


@dataclass
class GridSquare:
    x: float
    y: float
    size: float
    type: str  # "filled" or "missing"
    intensity: Optional[float] = None


@dataclass
class IntersectionDot:
    x: float
    y: float
    is_large: bool


@dataclass
class MaskingRectangle:
    x: float
    y: float
    width: float
    height: float
    opacity: float
    is_blowing: bool
    use_texture: bool
    texture_type: Optional[str]
    z_offset: int


@dataclass
class GridData:
    """Payload of the grid layer."""

    grid_size: float
    bounds: Tuple[float, float, float, float]  # left, top, right, bottom
    vertical: List[GridLine] = field(default_factory=list)
    horizontal: List[GridLine] = field(default_factory=list)
    angled_breaks: List[AngledBreak] = field(default_factory=list)
    filled_squares: List[GridSquare] = field(default_factory=list)
    intersection_dots: List[IntersectionDot] = field(default_factory=list)
    masking_rectangles: List[MaskingRectangle] = field(default_factory=list)

    def intersections(self) -> List[Tuple[float, float]]:
        """Crossings of every vertical line with every horizontal line."""
        return [(v.position, h.position) for v in self.vertical for h in self.horizontal]


@register_layer
class GridLayer:
    """Background grid with breaks, filled cells, dots and masking blocks."""

    name = "grid"
    z_index = -20
    requires = ()

    def __init__(self, grid_size: float = 64, line_keep_probability: float = 0.8):
        self.grid_size = grid_size
        self.line_keep_probability = line_keep_probability
        self.color = (40, 60, 80, 0.2)
        self.line_width = 0.3

    def generate_data(self, params: LayerParams) -> GridData:
        random = params.random
        gs = self.grid_size

        center_x = params.width / 2
        center_y = params.height / 2
        grid_width = params.width - params.padding * 2
        grid_height = params.height - params.padding * 2
        left = center_x - grid_width / 2
        right = center_x + grid_width / 2
        top = center_y - grid_height / 2
        bottom = center_y + grid_height / 2

        data = GridData(grid_size=gs, bounds=(left, top, right, bottom))

        x = math.ceil(left / gs) * gs
        end_x = math.floor(right / gs) * gs
        while x <= end_x:
            # Border lines are skipped
            if left < x < right and random.next() < self.line_keep_probability:
                data.vertical.append(GridLine("vertical", x, top, bottom))
            x += gs

        y = math.ceil(top / gs) * gs
        end_y = math.floor(bottom / gs) * gs
        while y <= end_y:
            if top < y < bottom and random.next() < self.line_keep_probability:
                data.horizontal.append(GridLine("horizontal", y, left, right))
            y += gs

        self._generate_angled_breaks(data, random)
        self._generate_filled_squares(data, random)
        self._generate_intersection_dots(data, random)
        self._generate_masking_rectangles(data, random)
        return data

    def _generate_angled_breaks(self, data: GridData, random) -> None:
        left, top, right, bottom = data.bounds
        n_breaks = 3 + math.floor(random.next() * 4)

        for _ in range(n_breaks):
            angle = math.pi / 4 + (random.next() - 0.5) * math.pi / 6
            start_x = left + random.next() * (right - left)
            start_y = top + random.next() * (bottom - top)
            length = 100 + random.next() * 200

            end_x = start_x + math.cos(angle) * length
            end_y = start_y + math.sin(angle) * length
            if left <= end_x <= right and top <= end_y <= bottom:
                data.angled_breaks.append(AngledBreak(start_x, start_y, end_x, end_y, angle))

    def _random_cell(self, data: GridData, random) -> Tuple[float, float]:
        left, top, right, bottom = data.bounds
        gs = self.grid_size
        cell_x = math.floor((left + random.next() * (right - left)) / gs) * gs
        cell_y = math.floor((top + random.next() * (bottom - top)) / gs) * gs
        return cell_x, cell_y

    def _cell_inside(self, data: GridData, cell_x: float, cell_y: float) -> bool:
        left, top, right, bottom = data.bounds
        gs = self.grid_size
        return left <= cell_x < right - gs and top <= cell_y < bottom - gs

    def _generate_filled_squares(self, data: GridData, random) -> None:
        n_squares = 8 + math.floor(random.next() * 12)

        for _ in range(n_squares):
            cell_x, cell_y = self._random_cell(data, random)
            if not self._cell_inside(data, cell_x, cell_y):
                continue

            square_type = random.next()
            if square_type < 0.3:
                data.filled_squares.append(
                    GridSquare(cell_x, cell_y, self.grid_size, "filled", 0.3 + random.next() * 0.4)
                )
            elif square_type < 0.5:
                data.filled_squares.append(GridSquare(cell_x, cell_y, self.grid_size, "missing"))

    def _generate_intersection_dots(self, data: GridData, random) -> None:
        intersections = data.intersections()
        n_groups = 2 + math.floor(random.next() * 4)
        group_radius = self.grid_size * 1.5

        if intersections:
            for _ in range(n_groups):
                center_x, center_y = random.pick(intersections)
                group_size = 2 + math.floor(random.next() * 3)

                group = []
                for x, y in intersections:
                    if len(group) >= group_size:
                        break
                    if distance(x, y, center_x, center_y) <= group_radius:
                        group.append(IntersectionDot(x, y, True))
                data.intersection_dots.extend(group)

        large = {(dot.x, dot.y) for dot in data.intersection_dots}
        for x, y in intersections:
            if (x, y) not in large:
                data.intersection_dots.append(IntersectionDot(x, y, False))

    def _generate_masking_rectangles(self, data: GridData, random) -> None:
        _, _, right, bottom = data.bounds
        gs = self.grid_size
        n_rects = 4 + math.floor(random.next() * 6)

        for _ in range(n_rects):
            cell_x, cell_y = self._random_cell(data, random)
            if not self._cell_inside(data, cell_x, cell_y):
                continue

            width = gs * (1 + math.floor(random.next() * 3))
            height = gs * (1 + math.floor(random.next() * 3))
            if cell_x + width > right or cell_y + height > bottom:
                continue

            # "Blowing" blocks are painted in background color on top
            is_blowing = random.next() < 0.3
            use_texture = not is_blowing and random.next() < 0.4
            opacity = 1.0 if is_blowing else 0.1 + random.next() * 0.2
            texture_type = random.pick(TEXTURE_TYPES) if use_texture else None

            data.masking_rectangles.append(
                MaskingRectangle(
                    x=cell_x,
                    y=cell_y,
                    width=width,
                    height=height,
                    opacity=opacity,
                    is_blowing=is_blowing,
                    use_texture=use_texture,
                    texture_type=texture_type,
                    z_offset=10 if is_blowing else 0,
                )
            )

    def render(self, canvas, data: GridData, params: RenderParams) -> None:
        color = with_alpha(self.color, params.opacity)
        shade = (40, 60, 80, 1.0)

        for square in data.filled_squares:
            if square.type == "filled":
                canvas.fill_rect(
                    square.x, square.y, square.size, square.size,
                    with_alpha(shade, square.intensity * 0.3 * params.opacity),
                )

        for line in data.vertical:
            canvas.line((line.position, line.start), (line.position, line.end), color, self.line_width)
        for line in data.horizontal:
            canvas.line((line.start, line.position), (line.end, line.position), color, self.line_width)

        for brk in data.angled_breaks:
            canvas.line((brk.x1, brk.y1), (brk.x2, brk.y2), color, self.line_width * 1.2)

        for dot in data.intersection_dots:
            canvas.fill_circle((dot.x, dot.y), 2.4 if dot.is_large else 0.8, color)

        for rect in sorted(data.masking_rectangles, key=lambda r: r.z_offset):
            if rect.is_blowing:
                canvas.fill_rect(rect.x, rect.y, rect.width, rect.height, BACKGROUND_COLOR)
            elif rect.use_texture:
                self._render_texture(canvas, rect, with_alpha(shade, rect.opacity * params.opacity))
            else:
                canvas.fill_rect(
                    rect.x, rect.y, rect.width, rect.height,
                    with_alpha(shade, rect.opacity * params.opacity),
                )

    def _render_texture(self, canvas, rect: MaskingRectangle, color) -> None:
        x0, y0 = rect.x, rect.y
        x1, y1 = rect.x + rect.width, rect.y + rect.height

        if rect.texture_type in ("stipple", "dots"):
            spacing, size = (4, 1.5) if rect.texture_type == "stipple" else (8, 2)
            offset = 0 if rect.texture_type == "stipple" else spacing / 2
            px = x0 + offset
            while px < x1:
                py = y0 + offset
                while py < y1:
                    canvas.fill_circle((px, py), size, color)
                    py += spacing
                px += spacing
        elif rect.texture_type == "crosshatch":
            py = y0
            while py < y1:
                canvas.line((x0, py), (x1, py), color, 0.5)
                py += 6
            px = x0
            while px < x1:
                canvas.line((px, y0), (px, y1), color, 0.5)
                px += 6
        elif rect.texture_type == "diagonal":
            # Clip each diagonal to the rectangle
            offset = -rect.height
            while offset < rect.width:
                sx, sy = x0 + offset, y0
                ex, ey = sx + rect.height, y1
                if sx < x0:
                    sy += x0 - sx
                    sx = x0
                if ex > x1:
                    ey -= ex - x1
                    ex = x1
                canvas.line((sx, sy), (ex, ey), color, 0.5)
                offset += 8
