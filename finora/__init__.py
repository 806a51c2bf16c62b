"""FINORA: vernacular financial mentor."""

__version__ = "0.1.0"
