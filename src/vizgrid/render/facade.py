"""
Host-facing handle over a RenderOrchestrator.

Exposes the readiness flag and batch exports of every live view. Export calls work on
whatever handles exist at call time; hosts that need a complete grid await ``ready()``
first. Before the first cycle completes every batch is empty.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from pathlib import Path

from vizgrid.config import RenderSettings

from .orchestrator import RenderOrchestrator

logger = logging.getLogger(__name__)

__all__ = ["ViewHandleFacade", "png_data_url", "export_filenames"]


def png_data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def export_filenames(stem: str, count: int, ext: str) -> list[str]:
    """One filename per view; ``_<n>`` (1-based) is appended only when count > 1.

    Examples:
        >>> export_filenames("chart", 1, "svg")
        ['chart.svg']
        >>> export_filenames("chart", 2, "png")
        ['chart_1.png', 'chart_2.png']
    """
    if count == 1:
        return [f"{stem}.{ext}"]
    return [f"{stem}_{i + 1}.{ext}" for i in range(count)]


class ViewHandleFacade:
    """Readiness and export surface for one chart instance.

    Args:
        orchestrator: Orchestrator whose handles and readiness are exposed.
        settings: Overrides the orchestrator's settings for download defaults.
    """

    def __init__(self, orchestrator: RenderOrchestrator, settings: RenderSettings | None = None) -> None:
        self._orchestrator = orchestrator
        self.settings = settings or orchestrator.settings

    # Readiness

    @property
    def is_ready(self) -> bool:
        return self._orchestrator.readiness.is_ready

    def set_unready(self) -> None:
        self._orchestrator.readiness.set_unready()

    def set_ready(self) -> None:
        self._orchestrator.readiness.set_ready()

    async def ready(self) -> bool:
        """Resolve once ready; immediately when already ready."""
        return await self._orchestrator.readiness.wait()

    async def wait_next_ready(self) -> bool:
        """Resolve on the next unready -> ready transition."""
        return await self._orchestrator.readiness.wait_next()

    # Exports

    @property
    def view_count(self) -> int:
        return len(self._orchestrator.handles)

    async def get_svg_data(self) -> list[str]:
        handles = self._orchestrator.handles
        return list(await asyncio.gather(*(h.to_svg() for h in handles)))

    async def get_canvas_data(self, scale: float = 1) -> list[str]:
        """Raster snapshots of every live view as base64 PNG data URLs."""
        handles = self._orchestrator.handles
        pngs = await asyncio.gather(*(h.to_canvas(scale) for h in handles))
        return [png_data_url(png) for png in pngs]

    def _default_stem(self) -> str:
        return f"{self.settings.filename_stem} {int(time.time() * 1000)}"

    def _target_dir(self, directory: str | Path | None) -> Path:
        out = Path(directory if directory is not None else self.settings.download_dir)
        out.mkdir(parents=True, exist_ok=True)
        return out

    async def download_svg(
        self, filename: str | None = None, directory: str | Path | None = None
    ) -> list[Path]:
        """Write one ``.svg`` per live view and return the written paths."""
        svgs = await self.get_svg_data()
        if not svgs:
            return []
        out = self._target_dir(directory)
        paths: list[Path] = []
        for name, svg in zip(export_filenames(filename or self._default_stem(), len(svgs), "svg"), svgs):
            path = out / name
            path.write_text(svg, encoding="utf-8")
            paths.append(path)
        logger.info("Wrote %d SVG file(s) to %s", len(paths), out)
        return paths

    async def download_png(
        self, filename: str | None = None, directory: str | Path | None = None
    ) -> list[Path]:
        """Write one ``.png`` per live view at ``settings.raster_scale``."""
        handles = self._orchestrator.handles
        if not handles:
            return []
        pngs = await asyncio.gather(*(h.to_canvas(self.settings.raster_scale) for h in handles))
        out = self._target_dir(directory)
        paths: list[Path] = []
        for name, png in zip(export_filenames(filename or self._default_stem(), len(pngs), "png"), pngs):
            path = out / name
            path.write_bytes(png)
            paths.append(path)
        logger.info("Wrote %d PNG file(s) to %s", len(paths), out)
        return paths
