"""
Core composition functionality.

The pipeline lives in ``tangle_map.core.pipeline`` and is not re-exported
here, because it imports the layer package, which itself builds on the
modules below.
"""

from .random_stream import RandomStream
from .clusters import Cluster, ClusterField

__all__ = ['RandomStream', 'Cluster', 'ClusterField']
