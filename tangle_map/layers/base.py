"""
Layer contract shared by all composition layers.

A layer is any object with a ``name``, a ``z_index``, the names of prior
layers it ``requires`` and two methods:

- ``generate_data(params)`` draws from the shared RandomStream and returns a
  payload. It runs for every registered layer on every generation pass, so
  toggling visibility never shifts the random sequence seen by later layers.
- ``render(canvas, data, params)`` draws a previously generated payload and
  never touches the RandomStream.

Layers register themselves by name with ``register_layer``; the pipeline
holds their enabled and opacity state, not the layers.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple, Type

from ..core.clusters import Cluster
from ..core.random_stream import RandomStream
from ..render.canvas import Canvas


@dataclass
class LayerParams:
    """Inputs to ``generate_data``."""

    width: float
    height: float
    padding: float
    clusters: List[Cluster]
    random: RandomStream
    noise: Optional[Callable[..., float]] = None
    grid: Optional[Any] = None
    grid_size: Optional[float] = None
    prior: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.noise is None:
            self.noise = self.random.noise

    def prior_output(self, name: str) -> Optional[Any]:
        """Payload of an injected prior layer, or None when it is absent."""
        return self.prior.get(name)

    @property
    def static_lines(self) -> List[Any]:
        """Static lines of the infrastructure layer; empty when not injected."""
        infrastructure = self.prior.get("infrastructure")
        return list(infrastructure.static_lines) if infrastructure is not None else []


@dataclass
class RenderParams:
    """Inputs to ``render``."""

    width: float
    height: float
    opacity: float = 1.0
    time: float = 0.0


class LayerGenerator(Protocol):
    """Capability interface implemented by every layer."""

    name: str
    z_index: int
    requires: Tuple[str, ...]

    def generate_data(self, params: LayerParams) -> Any: ...

    def render(self, canvas: Canvas, data: Any, params: RenderParams) -> None: ...


LAYER_REGISTRY: Dict[str, Type[Any]] = {}


def register_layer(cls: Type[Any]) -> Type[Any]:
    """Class decorator adding a layer type to the registry under its name."""
    if cls.name in LAYER_REGISTRY:
        raise ValueError(f"Layer '{cls.name}' is already registered")
    LAYER_REGISTRY[cls.name] = cls
    return cls
