"""Outbreak-Sim: risk-weighted epidemic spread over a geographic point grid.

A small, grid-based stochastic spread model:
  - Point grid loaded from a GeoJSON FeatureCollection with per-point risk
  - Single seed outbreak chosen by risk-weighted rejection sampling
  - Discrete-step propagation from the infection frontier to neighbours
    within a fixed haversine radius
  - Renderer/exporter boundaries for map front-ends and batch runs
"""

__version__ = "0.1.0"
