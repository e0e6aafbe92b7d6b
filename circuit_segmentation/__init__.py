"""
Schematic segmentation for electrical circuit images.

This package turns a raster image of a hand-drawn or printed schematic into
a connected graph of components, connections, junction nodes and labels,
exported as a JSON segmentation map plus per-element ROI images.
"""

__version__ = "0.1.0"
