"""
Tangle Map: deterministic layered generative compositions.

A single integer seed drives a RandomStream that places clusters and then
feeds every layer generator in a fixed order, so the same seed always
yields the same composition whichever layers are shown.
"""

__version__ = "0.1.0"
