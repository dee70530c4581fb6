"""
Shared computational-geometry helpers for composition layers.

This module provides:
- Organic boundary synthesis around a center
- Shoelace polygon area and ray-casting point-in-polygon
- Segment/segment and circle/axis-line intersection
- Chaikin corner-cutting for polylines
- Angular wedge subdivision for radiating plots

Everything here is stateless. Functions that need randomness take the
RandomStream explicitly and document the order in which they draw from it.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .random_stream import RandomStream

Point = Tuple[float, float]

TWO_PI = math.pi * 2

# Determinant magnitude below which two segments count as parallel
PARALLEL_EPSILON = 0.001

# (coordinate scale, key scale, amplitude) for the two boundary noise terms
DEFAULT_BOUNDARY_OCTAVES = ((0.008, 0.1, 30.0), (0.02, 0.3, 15.0))


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def snap_to_grid(value: float, pitch: float) -> float:
    """Round a coordinate to the nearest multiple of ``pitch`` (halves round up)."""
    return math.floor(value / pitch + 0.5) * pitch


def in_padded_bounds(
    x: float, y: float, width: float, height: float, padding: float = 80
) -> bool:
    """Check whether a point lies inside the padded safe zone of the canvas."""
    return padding <= x <= width - padding and padding <= y <= height - padding


def synthesize_boundary(
    random: RandomStream,
    center_x: float,
    center_y: float,
    base_radius: float,
    n_points: int,
    octaves: Sequence[Tuple[float, float, float]] = DEFAULT_BOUNDARY_OCTAVES,
    radius_jitter: float = 20.0,
    angle_jitter: float = 0.1,
) -> List[Point]:
    """
    Build an organic closed polygon around a center.

    For each of the ``n_points`` evenly spaced angles the radius is the base
    radius plus one noise term per octave plus uniform jitter, and the angle
    itself is nudged by a small random offset. Noise is keyed by the center
    and the vertex index, so the noise part of the shape is identical on
    every call.

    Draws two values from ``random`` per vertex: radius jitter, then angle jitter.

    Args:
        random: Random stream (noise basis and jitter source)
        center_x: Center x coordinate
        center_y: Center y coordinate
        base_radius: Radius before variation
        n_points: Number of vertices
        octaves: (coordinate scale, key scale, amplitude) per noise term
        radius_jitter: Full width of the uniform radius jitter
        angle_jitter: Full width of the uniform angle jitter in radians

    Returns:
        List of (x, y) vertices, not repeated at the end
    """
    boundary = []
    for i in range(n_points):
        angle = (i / n_points) * TWO_PI

        radius = base_radius
        for coord_scale, key_scale, amplitude in octaves:
            radius += (
                random.noise(center_x * coord_scale, center_y * coord_scale, i * key_scale)
                * amplitude
            )
        radius += (random.next() - 0.5) * radius_jitter

        final_angle = angle + (random.next() - 0.5) * angle_jitter
        boundary.append(
            (
                center_x + math.cos(final_angle) * radius,
                center_y + math.sin(final_angle) * radius,
            )
        )

    return boundary


def polygon_area(points: Sequence[Point]) -> float:
    """Absolute polygon area using the shoelace formula."""
    if len(points) < 3:
        return 0.0
    coords = np.asarray(points, dtype=np.float64)
    x = coords[:, 0]
    y = coords[:, 1]
    return float(0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def point_in_polygon(x: float, y: float, polygon: Sequence[Point]) -> bool:
    """
    Ray-casting parity test.

    A horizontal ray is cast towards +x. Points on left/bottom edges count as
    inside and points on right/top edges as outside, consistently.
    """
    inside = False
    n = len(polygon)
    if n < 3:
        return False

    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y):
            cross_x = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < cross_x:
                inside = not inside
        j = i

    return inside


def sample_in_polygon(
    polygon: Sequence[Point],
    sampler: Callable[[], Point],
    max_attempts: int = 10,
) -> Optional[Point]:
    """
    Draw candidates from ``sampler`` until one lands inside ``polygon``.

    Returns None once ``max_attempts`` candidates have been rejected, so a
    caller drops the point instead of looping indefinitely.
    """
    for _ in range(max_attempts):
        x, y = sampler()
        if point_in_polygon(x, y, polygon):
            return (x, y)
    return None


def segment_intersection(
    p1: Point, p2: Point, p3: Point, p4: Point, epsilon: float = PARALLEL_EPSILON
) -> Optional[Point]:
    """
    Intersection point of segments p1-p2 and p3-p4.

    Returns None for near-parallel segments or when the crossing lies
    outside either segment.
    """
    x1, y1 = p1
    x2, y2 = p2
    x3, y3 = p3
    x4, y4 = p4

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < epsilon:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom

    if 0 <= t <= 1 and 0 <= u <= 1:
        return (x1 + t * (x2 - x1), y1 + t * (y2 - y1))
    return None


def polyline_intersections(
    line_a: Sequence[Point], line_b: Sequence[Point], epsilon: float = PARALLEL_EPSILON
) -> List[Tuple[int, int, float, float]]:
    """
    All segment crossings between two polylines.

    Vectorized equivalent of calling ``segment_intersection`` for every
    segment pair; results come back in the same (segment of a, segment of b)
    row-major order.

    Returns:
        List of (segment index in a, segment index in b, x, y)
    """
    if len(line_a) < 2 or len(line_b) < 2:
        return []

    a = np.asarray(line_a, dtype=np.float64)
    b = np.asarray(line_b, dtype=np.float64)

    x1 = a[:-1, 0][:, None]
    y1 = a[:-1, 1][:, None]
    x2 = a[1:, 0][:, None]
    y2 = a[1:, 1][:, None]
    x3 = b[:-1, 0][None, :]
    y3 = b[:-1, 1][None, :]
    x4 = b[1:, 0][None, :]
    y4 = b[1:, 1][None, :]

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    with np.errstate(divide="ignore", invalid="ignore"):
        t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
        u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom

    valid = (np.abs(denom) >= epsilon) & (t >= 0) & (t <= 1) & (u >= 0) & (u <= 1)
    rows, cols = np.nonzero(valid)
    if len(rows) == 0:
        return []

    hit_t = t[rows, cols]
    xs = a[rows, 0] + hit_t * (a[rows + 1, 0] - a[rows, 0])
    ys = a[rows, 1] + hit_t * (a[rows + 1, 1] - a[rows, 1])

    return [
        (int(i), int(j), float(x), float(y))
        for i, j, x, y in zip(rows, cols, xs, ys)
    ]


def angle_on_arc(angle: float, start: float, end: float) -> bool:
    """Check whether ``angle`` falls inside the arc span [start, end]."""
    if start < 0:
        start += TWO_PI
    if end < 0:
        end += TWO_PI
    if angle < 0:
        angle += TWO_PI

    if start > end:
        return angle >= start or angle <= end
    return start <= angle <= end


def circle_line_intersections(
    center_x: float,
    center_y: float,
    radius: float,
    position: float,
    orientation: str,
    start: float = 0.0,
    end: float = TWO_PI,
) -> List[Tuple[float, float, float]]:
    """
    Intersections of an arc with an axis-aligned line.

    Args:
        center_x: Arc center x
        center_y: Arc center y
        radius: Arc radius; non-positive radii never intersect
        position: x of a vertical line or y of a horizontal line
        orientation: "vertical" or "horizontal"
        start: Arc start angle
        end: Arc end angle

    Returns:
        List of (x, y, angle) for chord endpoints lying on the arc span
    """
    if radius <= 0:
        return []
    if orientation not in ("vertical", "horizontal"):
        raise ValueError(f"Unknown line orientation: {orientation}")

    offset = position - (center_x if orientation == "vertical" else center_y)
    discriminant = radius * radius - offset * offset
    if discriminant < 0:
        return []

    half_chord = math.sqrt(discriminant)
    chord_offsets = (half_chord, -half_chord) if half_chord > 0 else (0.0,)

    intersections = []
    for chord in chord_offsets:
        if orientation == "vertical":
            x, y = position, center_y + chord
            angle = math.atan2(chord, offset)
        else:
            x, y = center_x + chord, position
            angle = math.atan2(offset, chord)

        if angle_on_arc(angle, start, end):
            intersections.append((x, y, angle))

    return intersections


def chaikin_smooth(points: Sequence[Point], iterations: int = 1) -> List[Point]:
    """
    Soften a polyline with Chaikin corner-cutting.

    Each iteration replaces every edge with points at 1/4 and 3/4 along it
    while the first and last points stay where they are.
    """
    pts = np.asarray(points, dtype=np.float64)
    if len(pts) < 2:
        return [tuple(map(float, p)) for p in pts]

    for _ in range(iterations):
        head = pts[:-1]
        tail = pts[1:]
        cuts = np.empty((2 * len(head), 2), dtype=np.float64)
        cuts[0::2] = 0.75 * head + 0.25 * tail
        cuts[1::2] = 0.25 * head + 0.75 * tail
        pts = np.vstack([pts[:1], cuts, pts[-1:]])

    return [(float(x), float(y)) for x, y in pts]


@dataclass
class Wedge:
    """One angular sector of a radiating plot subdivision."""

    plot_index: int
    angle_start: float
    angle_end: float
    end_radius: float
    edge_style: str  # "arc", "organic", "straight"
    points: List[Point] = field(default_factory=list)


def _arc_edge(
    random: RandomStream,
    center_x: float,
    center_y: float,
    radius: float,
    start_angle: float,
    end_angle: float,
    n_points: int = 8,
) -> List[Point]:
    """Points along an arc with slight radial jitter (one draw per point)."""
    points = []
    angle_range = end_angle - start_angle
    for i in range(n_points + 1):
        angle = start_angle + angle_range * (i / n_points)
        r = radius + (random.next() - 0.5) * radius * 0.1
        points.append((center_x + math.cos(angle) * r, center_y + math.sin(angle) * r))
    return points


def _perturbed_edge(
    random: RandomStream,
    center_x: float,
    center_y: float,
    end_radius: float,
    from_angle: float,
    to_angle: float,
    steps: int,
    radius_spread: float,
    angle_spread: float,
) -> List[Point]:
    """Points from ``from_angle`` to ``to_angle`` with radius and angle jitter."""
    points = []
    for i in range(steps + 1):
        t = i / steps
        angle = from_angle + (to_angle - from_angle) * t
        r = end_radius + (random.next() - 0.5) * end_radius * radius_spread
        angle += (random.next() - 0.5) * math.pi * angle_spread
        points.append((center_x + math.cos(angle) * r, center_y + math.sin(angle) * r))
    return points


def subdivide_wedges(
    random: RandomStream, center_x: float, center_y: float, plot_size: float
) -> List[Wedge]:
    """
    Partition a full turn around a center into 7-12 radiating wedges.

    Each wedge gets its own skew, angular width, outer radius and one of
    three outer-edge styles: a concentric arc (30%), an organically
    perturbed edge (30%) or a slightly jittered straight chord (40%).
    """
    n_divisions = 7 + math.floor(random.next() * 6)
    base_angle = TWO_PI / n_divisions
    system_skew = (random.next() - 0.5) * math.pi * 0.15
    start_radius = plot_size * 0.03

    concentric_radii = [
        plot_size * (0.2 + r * 0.1 + random.next() * 0.08) for r in range(3)
    ]

    wedges = []
    for i in range(n_divisions):
        individual_skew = (random.next() - 0.5) * math.pi * 0.1
        skewed_angle = i * base_angle + system_skew + individual_skew

        size_variation = random.next()
        if size_variation < 0.15:
            end_radius = plot_size * (0.35 + random.next() * 0.2)
        elif size_variation < 0.35:
            end_radius = plot_size * (0.25 + random.next() * 0.1)
        else:
            end_radius = plot_size * (0.15 + random.next() * 0.1)

        # Some plots reach out towards the grid edges
        if random.next() < 0.3:
            end_radius = plot_size * (0.6 + random.next() * 0.3)

        angle_variation = (random.next() - 0.5) * base_angle * 0.3
        angle1 = skewed_angle - angle_variation
        angle2 = skewed_angle + base_angle + angle_variation

        inner1 = start_radius + (random.next() - 0.5) * start_radius * 0.5
        inner2 = start_radius + (random.next() - 0.5) * start_radius * 0.5
        points = [
            (center_x + math.cos(angle1) * inner1, center_y + math.sin(angle1) * inner1),
            (center_x + math.cos(angle2) * inner2, center_y + math.sin(angle2) * inner2),
        ]

        n_inner = 1 + math.floor(random.next() * 3)
        for j in range(1, n_inner + 1):
            t = j / (n_inner + 1)
            angle = angle1 + (angle2 - angle1) * t
            radius = start_radius + (end_radius - start_radius) * t * 0.3
            radius += (random.next() - 0.5) * radius * 0.3
            points.append((center_x + math.cos(angle) * radius, center_y + math.sin(angle) * radius))

        edge_type = random.next()
        if edge_type < 0.3:
            edge_style = "arc"
            arc_radius = random.pick(concentric_radii)
            points.extend(_arc_edge(random, center_x, center_y, arc_radius, angle2, angle1))
        elif edge_type < 0.6:
            edge_style = "organic"
            n_edge = 4 + math.floor(random.next() * 4)
            points.extend(
                _perturbed_edge(
                    random, center_x, center_y, end_radius, angle2, angle1,
                    steps=n_edge - 1, radius_spread=0.2, angle_spread=0.1,
                )
            )
        else:
            edge_style = "straight"
            n_segments = 2 + math.floor(random.next() * 2)
            points.extend(
                _perturbed_edge(
                    random, center_x, center_y, end_radius, angle2, angle1,
                    steps=n_segments, radius_spread=0.1, angle_spread=0.05,
                )
            )

        wedges.append(
            Wedge(
                plot_index=i,
                angle_start=angle1,
                angle_end=angle2,
                end_radius=end_radius,
                edge_style=edge_style,
                points=points,
            )
        )

    return wedges
