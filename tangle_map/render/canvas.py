"""
Drawing surface abstraction for layer rendering.

Layers only emit primitive operations; how they turn into pixels is up to
the canvas implementation.
"""

from typing import Any, List, Protocol, Sequence, Tuple

Color = Tuple[int, int, int, float]
Point = Tuple[float, float]

BACKGROUND_COLOR: Color = (250, 248, 245, 1.0)


def with_alpha(color: Color, factor: float) -> Color:
    """Scale the alpha channel of an RGBA color."""
    r, g, b, a = color
    return (r, g, b, max(0.0, min(1.0, a * factor)))


class Canvas(Protocol):
    """Operations a layer may perform while rendering."""

    def clear(self, width: float, height: float, color: Color = BACKGROUND_COLOR) -> None: ...

    def line(self, p1: Point, p2: Point, color: Color, width: float = 1.0) -> None: ...

    def polyline(
        self, points: Sequence[Point], color: Color, width: float = 1.0, closed: bool = False
    ) -> None: ...

    def fill_polygon(self, points: Sequence[Point], color: Color) -> None: ...

    def circle(self, center: Point, radius: float, color: Color, width: float = 1.0) -> None: ...

    def fill_circle(self, center: Point, radius: float, color: Color) -> None: ...

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None: ...

    def erase_polygon(self, points: Sequence[Point]) -> None: ...


class RecordingCanvas:
    """Canvas that records every operation as a tuple, for headless use."""

    def __init__(self):
        self.operations: List[Tuple[Any, ...]] = []

    def clear(self, width, height, color=BACKGROUND_COLOR):
        self.operations = [("clear", width, height, color)]

    def line(self, p1, p2, color, width=1.0):
        self.operations.append(("line", p1, p2, color, width))

    def polyline(self, points, color, width=1.0, closed=False):
        self.operations.append(("polyline", list(points), color, width, closed))

    def fill_polygon(self, points, color):
        self.operations.append(("fill_polygon", list(points), color))

    def circle(self, center, radius, color, width=1.0):
        self.operations.append(("circle", center, radius, color, width))

    def fill_circle(self, center, radius, color):
        self.operations.append(("fill_circle", center, radius, color))

    def fill_rect(self, x, y, w, h, color):
        self.operations.append(("fill_rect", x, y, w, h, color))

    def erase_polygon(self, points):
        self.operations.append(("erase_polygon", list(points)))

    def count(self, kind: str) -> int:
        """Number of recorded operations of a given kind."""
        return sum(1 for op in self.operations if op[0] == kind)
