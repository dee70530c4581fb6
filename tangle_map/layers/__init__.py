"""
Composition layers.

Importing this package registers every layer type in ``LAYER_REGISTRY``.
"""

from .base import LAYER_REGISTRY, LayerGenerator, LayerParams, RenderParams, register_layer
from .grid import GridLayer
from .panels import PanelLayer
from .arcs import ArcLayer
from .infrastructure import InfrastructureLayer
from .town_plots import TownPlotsLayer
from .nodes import NodeLayer
from .organic import OrganicLayer
from .flow import FlowLayer
from .shading import ShadingLayer
from .particles import ParticleBurstLayer
from .cores import CoreLayer
from .rect_masks import RectMaskLayer

# Generation order. Changing it changes every composition for every seed.
DEFAULT_GENERATION_ORDER = [
    "grid",
    "panels",
    "arcs",
    "infrastructure",
    "plotAreas",
    "nodes",
    "organic",
    "flow",
    "shading",
    "particles",
    "cores",
    "rectMasks",
]


def create_default_layers():
    """Fresh instances of every default layer, in generation order."""
    return [LAYER_REGISTRY[name]() for name in DEFAULT_GENERATION_ORDER]


__all__ = [
    'LAYER_REGISTRY', 'LayerGenerator', 'LayerParams', 'RenderParams', 'register_layer',
    'GridLayer', 'PanelLayer', 'ArcLayer', 'InfrastructureLayer', 'TownPlotsLayer',
    'NodeLayer', 'OrganicLayer', 'FlowLayer', 'ShadingLayer', 'ParticleBurstLayer',
    'CoreLayer', 'RectMaskLayer', 'DEFAULT_GENERATION_ORDER', 'create_default_layers',
]
