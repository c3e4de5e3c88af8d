"""Outbreak-Sim visualization package.

Modules:
    plot_utils    Reusable matplotlib plotting functions for static PNGs
"""
