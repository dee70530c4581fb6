"""
Layer orchestration.

The pipeline owns one RandomStream and one ClusterField and drives every
registered layer through two explicit passes:

1. Generation: every layer's ``generate_data`` runs in registration order,
   whether the layer is enabled or not, so the random draws seen by any
   layer depend only on the seed and the registered layers.
2. Rendering: enabled layers are painted in ascending z order (or the
   order set with ``set_layer_order``) from the generated store.

Callers must not run two passes concurrently against the same pipeline;
the RandomStream cursor is shared mutable state.
"""

import dataclasses
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog

from ..config import CompositionParams
from ..layers import create_default_layers
from ..layers.base import LayerParams, RenderParams
from ..render.canvas import BACKGROUND_COLOR
from .clusters import ClusterField
from .random_stream import RandomStream

logger = structlog.get_logger()


class LayerConfigurationError(ValueError):
    """Raised when layers are registered or ordered inconsistently."""


@dataclass
class LayerSlot:
    """Pipeline-held state of one registered layer."""

    name: str
    z_index: int
    generator: Any
    enabled: bool = True
    opacity: float = 1.0

    def info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "z_index": self.z_index,
            "enabled": self.enabled,
            "opacity": self.opacity,
            "requires": list(getattr(self.generator, "requires", ())),
        }


class CompositionPipeline:
    """
    Generates and renders a layered composition.

    Args:
        random: Random stream shared by clusters and all layers
        cluster_field: Cluster placement for the composition
        layers: Layer generators in generation order; defaults to every built-in layer
        foundation_layer: Name of the layer generated first and injected into the rest
        background: RGBA color the canvas is cleared to
    """

    def __init__(
        self,
        random: RandomStream,
        cluster_field: ClusterField,
        layers: Optional[Sequence[Any]] = None,
        foundation_layer: str = "grid",
        background=BACKGROUND_COLOR,
    ):
        self.random = random
        self.cluster_field = cluster_field
        self.foundation_layer = foundation_layer
        self.background = background
        self.slots: Dict[str, LayerSlot] = {}

        for generator in layers if layers is not None else create_default_layers():
            if generator.name in self.slots:
                raise LayerConfigurationError(f"Layer '{generator.name}' registered twice")
            self.slots[generator.name] = LayerSlot(generator.name, generator.z_index, generator)

        self.layer_order: List[str] = self._default_order()
        self.generated_data: Dict[str, Any] = {}
        self.last_render_time: Optional[float] = None

    def _default_order(self) -> List[str]:
        # sorted() is stable, so equal z keeps registration order
        return [slot.name for slot in sorted(self.slots.values(), key=lambda s: s.z_index)]

    @property
    def generation_order(self) -> List[str]:
        return list(self.slots)

    # Generation

    def generate_all_data(self, params: CompositionParams) -> Dict[str, Any]:
        """
        Run one generation pass over every registered layer.

        The foundation layer is generated first and its payload and grid
        pitch are handed to every later layer. Each layer also receives the
        payloads of the layers named in its ``requires``. A layer that
        raises contributes no data; the pass carries on.

        Returns:
            Payloads keyed by layer name, in generation order
        """
        self.cluster_field.update_dimensions(params.width, params.height, params.padding)
        clusters = self.cluster_field.get(self.random, params.cluster_count)
        start_count = self.random.call_count

        store: Dict[str, Any] = {}
        grid = None
        grid_size = None

        foundation = self.slots.get(self.foundation_layer)
        if foundation is not None:
            grid = self._generate_layer(foundation, self._layer_params(params, clusters, None, None, store))
            if grid is not None:
                store[foundation.name] = grid
                grid_size = getattr(foundation.generator, "grid_size", None)

        for name, slot in self.slots.items():
            if name == self.foundation_layer:
                continue
            layer_params = self._layer_params(params, clusters, grid, grid_size, store, slot)
            data = self._generate_layer(slot, layer_params)
            if data is not None:
                store[name] = data

        self.generated_data = store
        logger.info(
            "Generation pass complete",
            layers=len(store),
            clusters=len(clusters),
            draws=self.random.call_count - start_count,
        )
        return store

    def _layer_params(self, params, clusters, grid, grid_size, store, slot=None) -> LayerParams:
        requires = getattr(slot.generator, "requires", ()) if slot is not None else ()
        return LayerParams(
            width=params.width,
            height=params.height,
            padding=params.padding,
            clusters=list(clusters),
            random=self.random,
            noise=self.random.noise,
            grid=grid,
            grid_size=grid_size,
            prior={name: store[name] for name in requires if name in store},
        )

    def _generate_layer(self, slot: LayerSlot, layer_params: LayerParams) -> Optional[Any]:
        try:
            return slot.generator.generate_data(layer_params)
        except Exception:
            logger.exception("Layer generation failed", layer=slot.name)
            return None

    # Rendering

    def render_all(
        self,
        canvas,
        params: CompositionParams,
        regenerate: bool = True,
        time_value: float = 0.0,
    ) -> Dict[str, Any]:
        """
        Clear the canvas and paint every enabled layer in paint order.

        With ``regenerate`` the clusters are drawn anew and a full pass
        runs. Without it the cached store is reused, and a pass runs only
        when nothing is cached yet.
        """
        canvas.clear(params.width, params.height, self.background)

        if regenerate:
            self.cluster_field.update_dimensions(params.width, params.height, params.padding)
            self.cluster_field.generate(self.random, params.cluster_count)
            data = self.generate_all_data(params)
        elif not self.generated_data:
            data = self.generate_all_data(params)
        else:
            data = self.generated_data

        self._paint(canvas, data, self.layer_order, params, time_value)
        self.last_render_time = time.time()
        return data

    def render_layers(
        self, canvas, layer_names: Iterable[str], params: CompositionParams, time_value: float = 0.0
    ) -> Dict[str, Any]:
        """Run a full generation pass but paint only the named layers."""
        wanted = set(layer_names)
        data = self.generate_all_data(params)
        self._paint(canvas, data, [n for n in self.layer_order if n in wanted], params, time_value)
        return data

    def _paint(self, canvas, data, order, params, time_value) -> None:
        for name in order:
            slot = self.slots[name]
            payload = data.get(name)
            if not slot.enabled or payload is None:
                continue

            render_params = RenderParams(
                width=params.width, height=params.height, opacity=slot.opacity, time=time_value
            )
            try:
                slot.generator.render(canvas, payload, render_params)
            except Exception:
                logger.exception("Layer render failed", layer=name)

    # Layer state

    def toggle_layer(self, name: str) -> bool:
        slot = self.slots.get(name)
        if slot is None:
            return False
        slot.enabled = not slot.enabled
        return slot.enabled

    def set_layer_enabled(self, name: str, enabled: bool) -> None:
        slot = self.slots.get(name)
        if slot is not None:
            slot.enabled = enabled

    def set_layer_opacity(self, name: str, opacity: float) -> None:
        slot = self.slots.get(name)
        if slot is not None:
            slot.opacity = max(0.0, min(1.0, opacity))

    def set_layer_states(self, states: Dict[str, bool]) -> None:
        for name, enabled in states.items():
            self.set_layer_enabled(name, enabled)

    def get_layer_states(self) -> Dict[str, bool]:
        return {name: self.slots[name].enabled for name in self.layer_order}

    def reset_to_defaults(self) -> None:
        """Enable every layer at full opacity and restore z paint order."""
        for slot in self.slots.values():
            slot.enabled = True
            slot.opacity = 1.0
        self.layer_order = self._default_order()

    def set_layer_order(self, order: Sequence[str]) -> None:
        """
        Change the paint order; generation order is unaffected.

        Raises:
            LayerConfigurationError: If ``order`` names an unregistered layer
        """
        unknown = [name for name in order if name not in self.slots]
        if unknown:
            raise LayerConfigurationError(f"Unknown layers in order: {', '.join(unknown)}")

        new_order = list(dict.fromkeys(order))
        for name in self._default_order():
            if name not in new_order:
                new_order.append(name)
        self.layer_order = new_order

    # Introspection

    def layer_info(self, name: str) -> Optional[Dict[str, Any]]:
        slot = self.slots.get(name)
        return slot.info() if slot is not None else None

    def all_layer_info(self) -> List[Dict[str, Any]]:
        """Metadata of every layer in paint order. Never triggers generation."""
        return [self.slots[name].info() for name in self.layer_order]

    def validate_layers(self) -> List[str]:
        """Configuration problems as human-readable warnings."""
        warnings = []

        seen: Dict[int, str] = {}
        for name, slot in self.slots.items():
            if slot.z_index in seen:
                warnings.append(
                    f"Duplicate z-index {slot.z_index} found in layers: {name} and {seen[slot.z_index]}"
                )
            else:
                seen[slot.z_index] = name

        for prev_name, curr_name in zip(self.layer_order, self.layer_order[1:]):
            prev, curr = self.slots[prev_name], self.slots[curr_name]
            if prev.z_index > curr.z_index:
                warnings.append(
                    f"Layer order inconsistency: {prev_name} (z:{prev.z_index}) "
                    f"should come after {curr_name} (z:{curr.z_index})"
                )

        position = {name: i for i, name in enumerate(self.slots)}
        for name, slot in self.slots.items():
            for required in getattr(slot.generator, "requires", ()):
                if required not in position:
                    warnings.append(f"Layer {name} requires unregistered layer {required}")
                elif position[required] > position[name]:
                    warnings.append(f"Layer {name} requires {required}, which is generated after it")

        return warnings

    def export_layer_data(self) -> Dict[str, Dict[str, Any]]:
        """Generated payloads with their layer state, as plain dicts."""
        exported = {}
        for name, payload in self.generated_data.items():
            slot = self.slots[name]
            exported[name] = {
                "enabled": slot.enabled,
                "z_index": slot.z_index,
                "data": dataclasses.asdict(payload) if dataclasses.is_dataclass(payload) else payload,
            }
        return exported

    def render_stats(self) -> Dict[str, Any]:
        return {
            "total_layers": len(self.slots),
            "enabled_layers": sum(1 for s in self.slots.values() if s.enabled),
            "layer_names": list(self.layer_order),
            "last_render_time": self.last_render_time,
            "layer_states": self.get_layer_states(),
        }
