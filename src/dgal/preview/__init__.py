"""Preview module.

Components:
    raster: Signed-distance rasterisation of a polygon pair and its overlap
    export: PNG export via Pillow
    display: Matplotlib preview window
"""

from .export import image_to_uint8, save_png
from .raster import rasterize_pair

__all__ = ["image_to_uint8", "rasterize_pair", "save_png"]
