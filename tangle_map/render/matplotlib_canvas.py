"""Matplotlib-backed canvas producing raster images."""

import io
from typing import Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
from matplotlib.patches import Circle, Polygon, Rectangle

from .canvas import BACKGROUND_COLOR, Color, Point


def _rgba(color: Color):
    r, g, b, a = color
    return (r / 255.0, g / 255.0, b / 255.0, a)


class MatplotlibCanvas:
    """
    Draws canvas operations onto a matplotlib figure.

    Coordinates are canvas pixels with the origin at the top left, like a
    browser canvas; the y axis is inverted accordingly.
    """

    def __init__(self, width: float, height: float, dpi: int = 100):
        self.width = width
        self.height = height
        self.dpi = dpi
        self.background = BACKGROUND_COLOR
        self.figure = plt.figure(figsize=(width / dpi, height / dpi), dpi=dpi)
        self.axes = self.figure.add_axes((0, 0, 1, 1))
        self._reset_axes()

    def _reset_axes(self) -> None:
        self.axes.set_xlim(0, self.width)
        self.axes.set_ylim(self.height, 0)
        self.axes.set_aspect("equal")
        self.axes.axis("off")

    def clear(self, width, height, color=BACKGROUND_COLOR):
        self.width = width
        self.height = height
        self.background = color
        self.axes.clear()
        self._reset_axes()
        self.figure.set_facecolor(_rgba(color))
        self.axes.add_patch(Rectangle((0, 0), width, height, color=_rgba(color), zorder=0))

    def line(self, p1: Point, p2: Point, color: Color, width: float = 1.0):
        self.axes.plot([p1[0], p2[0]], [p1[1], p2[1]], color=_rgba(color), linewidth=width)

    def polyline(self, points: Sequence[Point], color: Color, width: float = 1.0, closed: bool = False):
        if len(points) < 2:
            return
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        if closed:
            xs.append(points[0][0])
            ys.append(points[0][1])
        self.axes.plot(xs, ys, color=_rgba(color), linewidth=width, solid_capstyle="round")

    def fill_polygon(self, points: Sequence[Point], color: Color):
        if len(points) < 3:
            return
        self.axes.add_patch(Polygon(points, closed=True, facecolor=_rgba(color), edgecolor="none"))

    def circle(self, center: Point, radius: float, color: Color, width: float = 1.0):
        self.axes.add_patch(Circle(center, radius, fill=False, edgecolor=_rgba(color), linewidth=width))

    def fill_circle(self, center: Point, radius: float, color: Color):
        self.axes.add_patch(Circle(center, radius, facecolor=_rgba(color), edgecolor="none"))

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color):
        self.axes.add_patch(Rectangle((x, y), w, h, facecolor=_rgba(color), edgecolor="none"))

    def erase_polygon(self, points: Sequence[Point]):
        self.fill_polygon(points, self.background)

    def to_png(self) -> bytes:
        """Encode the current figure as PNG bytes."""
        buffer = io.BytesIO()
        self.figure.savefig(buffer, format="png", dpi=self.dpi, facecolor=self.figure.get_facecolor())
        return buffer.getvalue()

    def close(self) -> None:
        plt.close(self.figure)
