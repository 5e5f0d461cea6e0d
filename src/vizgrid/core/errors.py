"""
Core exception types raised by spec compilation, rendering, and export.

Provides typed exceptions for vizgrid failures:
- SpecCompileError when a grid cell cannot be turned into a renderable spec.
- EmbedError when the renderer rejects a cell's spec.
- SignalWiringError when listeners cannot be attached to a rendered view.
- ExportError when a vector/raster snapshot cannot be produced.
- ConfigError for invalid or unsupported settings.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - The render layer never lets EmbedError or SignalWiringError escape to the host
      application; both are logged and the affected view degrades (see
      vizgrid.render.orchestrator).

Examples:
    Catch a compile failure for one cell.

    >>> from vizgrid.core.errors import SpecCompileError
    >>> try:
    ...     raise SpecCompileError("cell (0, 1): unsupported geometry")
    ... except SpecCompileError as e:
    ...     msg = str(e)
    >>> "cell (0, 1)" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "VizGridError",
    "SpecCompileError",
    "EmbedError",
    "SignalWiringError",
    "ExportError",
    "ConfigError",
]


class VizGridError(Exception):
    """Base class for vizgrid errors."""


class SpecCompileError(VizGridError, ValueError):
    """A grid cell could not be compiled into a renderable spec."""


class EmbedError(VizGridError):
    """
    The renderer failed to embed a cell's spec.

    Attributes:
        view_index (int): Index of the grid cell whose embed failed.
    """

    def __init__(self, view_index: int, message: str) -> None:
        super().__init__(f"view {view_index}: {message}")
        self.view_index = view_index


class SignalWiringError(VizGridError):
    """Listeners could not be attached to a rendered view (e.g. unknown signal)."""


class ExportError(VizGridError, RuntimeError):
    """A vector or raster snapshot could not be produced."""


class ConfigError(VizGridError, ValueError):
    """Invalid or unsupported configuration value."""
