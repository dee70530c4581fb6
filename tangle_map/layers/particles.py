"""
Particle burst layer: anisotropic point sprays used as energetic accents.

Bursts are seeded from infrastructure static-line endpoints and node
centers. A burst whose origin falls inside a shading area keeps its
particles inside that area's boundary.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.geometry import Point, point_in_polygon, sample_in_polygon
from ..render.canvas import with_alpha
from .base import LayerParams, RenderParams, register_layer


@dataclass
class Particle:
    x: float
    y: float
    size: float
    alpha: float


@dataclass
class Burst:
    origin: Point
    burst_alpha: float
    confined: bool
    particles: List[Particle] = field(default_factory=list)


@dataclass
class ParticleData:
    bursts: List[Burst] = field(default_factory=list)


@register_layer
class ParticleBurstLayer:
    """Sprays of fading dots around structural endpoints."""

    name = "particles"
    z_index = 20
    requires = ("infrastructure", "nodes", "shading")

    def __init__(self):
        self.color = (30, 80, 120, 0.65)
        self.count_range = (1, 3)
        self.particles_per = (200, 700)
        self.radius_range = (50.0, 180.0)
        self.max_seed_nodes = 4
        self.max_placement_attempts = 10

    def generate_data(self, params: LayerParams) -> ParticleData:
        random = params.random
        data = ParticleData()

        low, high = self.count_range
        count = low + math.floor(random.next() * (high - low + 1))

        seeds: List[Point] = []
        for line in params.static_lines:
            if random.next() > 0.5:
                seeds.append((line.x1, line.y1))
            if random.next() > 0.5:
                seeds.append((line.x2, line.y2))

        nodes = params.prior_output("nodes")
        if nodes is not None:
            seeds.extend((n.x, n.y) for n in nodes.nodes[: self.max_seed_nodes])

        while len(seeds) < count:
            seeds.append(
                (
                    params.padding + random.next() * (params.width - params.padding * 2),
                    params.padding + random.next() * (params.height - params.padding * 2),
                )
            )

        shading = params.prior_output("shading")
        boundaries = [area.boundary for area in shading.shading_areas] if shading is not None else []

        for i in range(count):
            origin = seeds[i % len(seeds)]
            target = self._containing_boundary(origin, boundaries)
            burst = Burst(origin=origin, burst_alpha=0.7 - i * 0.05, confined=target is not None)

            n_low, n_high = self.particles_per
            n = n_low + math.floor(random.next() * (n_high - n_low + 1))
            r_low, r_high = self.radius_range
            radius = r_low + random.next() * (r_high - r_low)
            aspect = 0.5 + random.next() * 1.2
            angle = random.next() * math.pi * 2

            for _ in range(n):
                particle = self._place_particle(random, origin, radius, aspect, angle, target)
                if particle is not None:
                    burst.particles.append(particle)

            data.bursts.append(burst)

        return data

    @staticmethod
    def _containing_boundary(origin: Point, boundaries) -> Optional[List[Point]]:
        for boundary in boundaries:
            if point_in_polygon(origin[0], origin[1], boundary):
                return boundary
        return None

    def _place_particle(self, random, origin, radius, aspect, angle, target) -> Optional[Particle]:
        ox, oy = origin
        last_r = 0.0

        def sampler() -> Point:
            nonlocal last_r
            last_r = (random.next() ** 0.7) * radius
            a = angle + (random.next() - 0.5) * math.pi * 0.6
            return (ox + math.cos(a) * last_r * aspect, oy + math.sin(a) * last_r / aspect)

        if target is None:
            point = sampler()
        else:
            point = sample_in_polygon(target, sampler, self.max_placement_attempts)
            if point is None:
                return None

        size = 0.6 + random.next() * 1.2
        # Fade outward
        alpha = 0.35 + (1 - last_r / radius) * 0.45
        return Particle(point[0], point[1], size, alpha)

    def render(self, canvas, data: ParticleData, params: RenderParams) -> None:
        for burst in data.bursts:
            for p in burst.particles:
                canvas.fill_circle(
                    (p.x, p.y), p.size, with_alpha(self.color, burst.burst_alpha * p.alpha * params.opacity)
                )
