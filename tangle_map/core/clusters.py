"""
Composition cluster placement.

Clusters are the focal points of a composition: areas of high activity
that most other layers key their geometry off.
"""

import math
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from .random_stream import RandomStream

logger = structlog.get_logger()


class Cluster(BaseModel):
    """A composition focal point."""

    id: int = Field(description="Sequential cluster identifier")
    x: float = Field(description="Center x coordinate")
    y: float = Field(description="Center y coordinate")
    radius: float = Field(description="Radius of influence")
    intensity: float = Field(ge=0.0, le=1.0, description="Activity level")
    type: int = Field(ge=0, le=2, description="0: dense, 1: sparse, 2: flowing")
    color_index: int = Field(ge=0, description="Palette slot for theming")


class ClusterField:
    """
    Places and manages composition clusters.

    ``generate`` and ``get`` are part of the deterministic pass. ``add``,
    ``remove`` and ``update`` are interactive edits; using them breaks strict
    reproducibility of the seed for the rest of the session.
    """

    def __init__(self, width: float, height: float, padding: float = 80):
        self.padding = padding
        self.clusters: List[Cluster] = []
        self.update_dimensions(width, height)

    def update_dimensions(self, width: float, height: float, padding: Optional[float] = None) -> None:
        """Resize the canvas the clusters are placed on, optionally changing the padding."""
        if padding is not None:
            self.padding = padding
        self.width = width
        self.height = height
        self.composition_width = width - self.padding * 2
        self.composition_height = height - self.padding * 2

    def _draw_cluster(self, random: RandomStream, cluster_id: int, x: float, y: float) -> Cluster:
        # Field order matters: radius, intensity, type, color
        return Cluster(
            id=cluster_id,
            x=x,
            y=y,
            radius=80 + random.next() * 120,
            intensity=0.6 + random.next() * 0.4,
            type=random.random_int(0, 2),
            color_index=random.random_int(0, 3),
        )

    def generate(self, random: RandomStream, count: int = 3) -> List[Cluster]:
        """
        Generate ``count`` clusters, replacing any existing ones.

        Args:
            random: Random stream to draw from
            count: Number of clusters

        Returns:
            List of generated clusters
        """
        self.clusters = []
        for i in range(count):
            x = self.padding + random.next() * self.composition_width
            y = self.padding + random.next() * self.composition_height
            self.clusters.append(self._draw_cluster(random, i, x, y))

        logger.debug("Clusters generated", count=len(self.clusters))
        return self.clusters

    def get(self, random: RandomStream, count: int = 3) -> List[Cluster]:
        """Return current clusters, generating them only if none exist."""
        if not self.clusters:
            return self.generate(random, count)
        return self.clusters

    def add(self, x: float, y: float, random: RandomStream) -> Cluster:
        """Add a cluster at a position clamped into the safe zone."""
        clamped_x = max(self.padding, min(self.width - self.padding, x))
        clamped_y = max(self.padding, min(self.height - self.padding, y))

        cluster = self._draw_cluster(random, len(self.clusters), clamped_x, clamped_y)
        self.clusters.append(cluster)
        return cluster

    def remove(self, cluster_id: int) -> None:
        """Remove a cluster by id and renumber the remaining ones."""
        remaining = [c for c in self.clusters if c.id != cluster_id]
        self.clusters = [c.model_copy(update={"id": i}) for i, c in enumerate(remaining)]

    def update(self, cluster_id: int, **changes: Any) -> Optional[Cluster]:
        """Replace properties of a cluster; returns the updated cluster."""
        for i, cluster in enumerate(self.clusters):
            if cluster.id == cluster_id:
                self.clusters[i] = cluster.model_copy(update=changes)
                return self.clusters[i]
        return None

    def closest(self, x: float, y: float) -> Optional[Cluster]:
        """Find the cluster nearest to a point."""
        closest = None
        min_distance = math.inf
        for cluster in self.clusters:
            d = math.hypot(x - cluster.x, y - cluster.y)
            if d < min_distance:
                min_distance = d
                closest = cluster
        return closest

    def containing(self, x: float, y: float) -> Optional[Cluster]:
        """First cluster whose radius covers the point."""
        for cluster in self.clusters:
            if math.hypot(x - cluster.x, y - cluster.y) <= cluster.radius:
                return cluster
        return None

    def within(self, x: float, y: float, max_distance: float) -> List[Cluster]:
        """All clusters whose centers lie within ``max_distance`` of a point."""
        return [
            c for c in self.clusters
            if math.hypot(x - c.x, y - c.y) <= max_distance
        ]

    def is_in_safe_zone(self, cluster: Cluster) -> bool:
        return (
            self.padding <= cluster.x <= self.width - self.padding
            and self.padding <= cluster.y <= self.height - self.padding
        )

    def stats(self) -> Dict[str, float]:
        """Composition statistics for the current clusters."""
        count = len(self.clusters)
        area = self.composition_width * self.composition_height
        return {
            "cluster_count": count,
            "average_intensity": (
                sum(c.intensity for c in self.clusters) / count if count else 0.0
            ),
            "total_area": sum(math.pi * c.radius * c.radius for c in self.clusters),
            "composition_density": count / area * 10000 if area > 0 else 0.0,
        }
