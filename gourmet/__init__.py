"""Gourmet food catalog: graph-backed analytics and recommendations."""

__version__ = "0.1.0"
