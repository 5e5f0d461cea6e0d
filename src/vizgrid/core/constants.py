"""
vizgrid core defaults.

Defines renderer signal names, shared selection parameter names, and layout/throttle
defaults consumed by the compiler and the render layer. This module is zero-IO and
uses only the Python standard library.

Notes:
    - Cross-filter stores are exposed by the renderer as ``<signal>_store`` datasets.
    - THROTTLE_DIVISOR is a tunable policy constant; override it through
      vizgrid.config.RenderSettings rather than editing it here.
"""

from __future__ import annotations

__all__ = [
    "BRUSH_SIGNAL_NAME",
    "POINT_SIGNAL_NAME",
    "STORE_SUFFIX",
    "SELECTION_NAME",
    "SCALE_BIND_NAME",
    "GUTTER_PX",
    "THROTTLE_DIVISOR",
    "RASTER_SCALE",
    "FILENAME_STEM",
    "DEFAULT_WIDTH",
    "DEFAULT_HEIGHT",
]

# Renderer signal names tapped for cross-view filtering.
BRUSH_SIGNAL_NAME: str = "__gw_brush__"
POINT_SIGNAL_NAME: str = "__gw_point__"
STORE_SUFFIX: str = "_store"

# Global click-to-select point selection and the optional pan/zoom interval.
SELECTION_NAME: str = "geom"
SCALE_BIND_NAME: str = "grid"

# Pixels removed from each repeated view's share of the layout.
GUTTER_PX: int = 5

# Throttle window (ms) = data_length / THROTTLE_DIVISOR * row_count * col_count.
THROTTLE_DIVISOR: int = 64

# Scale factor used by raster downloads.
RASTER_SCALE: int = 2

FILENAME_STEM: str = "gw chart"

DEFAULT_WIDTH: int = 320
DEFAULT_HEIGHT: int = 200
