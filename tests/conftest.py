from __future__ import annotations

import asyncio
from collections.abc import Iterable

import pytest

from vizgrid.config import RenderSettings
from vizgrid.core.schema import FieldDescriptor
from vizgrid.core.typing import JsonDict
from vizgrid.render.headless import HeadlessView
from vizgrid.render.protocols import EmbedOptions, ViewAnchor


def measure(fid: str, **kw) -> FieldDescriptor:
    return FieldDescriptor(fid=fid, analytic_type="measure", **kw)


def dimension(fid: str, **kw) -> FieldDescriptor:
    return FieldDescriptor(fid=fid, analytic_type="dimension", **kw)


class GatedRenderer:
    """Renderer double with per-cell gates to control embed completion order.

    With ``gated=True`` every embed waits on ``gate(view_index)`` until the test calls
    ``release(view_index)``. Cells listed in ``fail`` reject their embed.
    """

    def __init__(self, *, gated: bool = False, fail: Iterable[int] = ()) -> None:
        self.gated = gated
        self.fail = set(fail)
        self.gates: dict[int, asyncio.Event] = {}
        self.calls: list[ViewAnchor] = []
        self.options: list[EmbedOptions] = []
        self.views: list[HeadlessView] = []

    def gate(self, view_index: int) -> asyncio.Event:
        return self.gates.setdefault(view_index, asyncio.Event())

    def release(self, view_index: int) -> None:
        self.gate(view_index).set()

    async def embed(self, anchor: ViewAnchor, spec: JsonDict, options: EmbedOptions) -> HeadlessView:
        self.calls.append(anchor)
        self.options.append(options)
        if self.gated:
            await self.gate(anchor.view_index).wait()
        if anchor.view_index in self.fail:
            raise RuntimeError(f"renderer rejected view {anchor.view_index}")
        view = HeadlessView(anchor, spec, options)
        self.views.append(view)
        return view


async def settle(n: int = 5) -> None:
    """Yield to the event loop a few times so pending tasks can run."""
    for _ in range(n):
        await asyncio.sleep(0)


@pytest.fixture
def settings() -> RenderSettings:
    return RenderSettings()


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch) -> None:
    # Keep RenderSettings.load() away from the repo's pyproject and the caller's env.
    monkeypatch.chdir(tmp_path)
    for key in (
        "THROTTLE_DIVISOR",
        "GUTTER_PX",
        "RASTER_SCALE",
        "DOWNLOAD_DIR",
        "FILENAME_STEM",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv("VIZGRID_" + key, raising=False)
