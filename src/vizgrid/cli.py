from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import polars as pl

from vizgrid.config import RenderSettings
from vizgrid.core.errors import ExportError, VizGridError
from vizgrid.core.schema import ChannelAssignment, VisualConfig
from vizgrid.logging_util import get_logger
from vizgrid.render.facade import ViewHandleFacade
from vizgrid.render.headless import HeadlessRenderer
from vizgrid.render.orchestrator import RenderOrchestrator
from vizgrid.viz.compose import compile_views
from vizgrid.viz.grid import plan_grid


def _load_chart(path: Path) -> tuple[ChannelAssignment, VisualConfig]:
    """Read a chart file of the form ``{"encodings": {...}, "config": {...}}``.

    Args:
        path: Path to the chart JSON file.
    """
    raw: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
    assignment = ChannelAssignment.model_validate(raw.get("encodings") or {})
    config = VisualConfig.model_validate(raw.get("config") or {})
    return assignment, config


def _load_rows(path: str) -> pl.DataFrame | list[dict[str, Any]]:
    if not path:
        return []
    return pl.read_json(Path(path))


def _cmd_plan(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="plan", description="Print the view grid for a chart.")
    p.add_argument("--chart", type=str, required=True, help="Path to chart JSON.")
    args = p.parse_args(argv)

    assignment, _ = _load_chart(Path(args.chart))
    plan = plan_grid(assignment)
    print(f"[INFO] Grid {plan.row_count}x{plan.col_count} ({plan.cell_count} view(s))")
    for index, i, j in plan.cells():
        x = plan.col_field_at(j) if plan.is_repeated else plan.x_field
        y = plan.row_field_at(i) if plan.is_repeated else plan.y_field
        print(f"  [{index}] ({i}, {j}) x={x.fid if x else '-'} y={y.fid if y else '-'}")
    if plan.has_facet:
        row = plan.row_facet.fid if plan.row_facet else "-"
        col = plan.col_facet.fid if plan.col_facet else "-"
        print(f"  facet row={row} column={col}")
    return 0


def _cmd_compile(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="compile", description="Compile per-view Vega-Lite specs.")
    p.add_argument("--chart", type=str, required=True, help="Path to chart JSON.")
    p.add_argument("--rows", type=str, default="", help="Path to rows JSON (array of records).")
    p.add_argument("--out", type=str, default="", help="Write specs here instead of stdout.")
    args = p.parse_args(argv)

    settings = RenderSettings.load()
    assignment, config = _load_chart(Path(args.chart))
    rows = _load_rows(args.rows)
    specs = compile_views(plan_grid(assignment), assignment, config, rows, settings=settings)
    payload = [
        {"view_index": s.view_index, "row": s.row, "col": s.col, "spec": s.spec} for s in specs
    ]
    text = json.dumps(payload, indent=2, default=str)
    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        print(f"[INFO] Wrote {len(specs)} spec(s) to {out}")
    else:
        print(text)
    return 0


async def _export(
    assignment: ChannelAssignment,
    config: VisualConfig,
    rows: pl.DataFrame | list[dict[str, Any]],
    settings: RenderSettings,
    fmt: str,
    out_dir: Path,
    filename: str | None,
) -> list[Path]:
    orchestrator = RenderOrchestrator(HeadlessRenderer(), settings=settings)
    facade = ViewHandleFacade(orchestrator)
    if not await orchestrator.render(assignment, config, rows):
        failed = ", ".join(str(i) for i in orchestrator.failed_views) or "none"
        raise ExportError(f"Chart did not render completely (failed views: {failed})")
    await facade.ready()
    if fmt == "png":
        return await facade.download_png(filename, out_dir)
    return await facade.download_svg(filename, out_dir)


def _cmd_export(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="export", description="Render a chart headlessly and save it.")
    p.add_argument("--chart", type=str, required=True, help="Path to chart JSON.")
    p.add_argument("--rows", type=str, default="", help="Path to rows JSON (array of records).")
    p.add_argument("--out-dir", type=str, default="", help="Output directory.")
    p.add_argument("--format", dest="fmt", choices=("svg", "png"), default="svg")
    p.add_argument("--filename", type=str, default="", help="Filename stem (default: timestamped).")
    args = p.parse_args(argv)

    settings = RenderSettings.load()
    log = get_logger("vizgrid", settings)
    assignment, config = _load_chart(Path(args.chart))
    rows = _load_rows(args.rows)
    out_dir = Path(args.out_dir or settings.download_dir)
    try:
        paths = asyncio.run(
            _export(assignment, config, rows, settings, args.fmt, out_dir, args.filename or None)
        )
    except VizGridError as e:
        log.error("%s", e)
        return 1
    for path in paths:
        print(f"[INFO] Wrote {path}")
    return 0


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="vizgrid", description="Multi-view chart compiler CLI.")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("plan")
    sub.add_parser("compile")
    sub.add_parser("export")
    return p


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        build_argparser().print_help()
        return
    cmd, rest = argv[0], argv[1:]
    if cmd == "plan":
        code = _cmd_plan(rest)
    elif cmd == "compile":
        code = _cmd_compile(rest)
    elif cmd == "export":
        code = _cmd_export(rest)
    else:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        code = 2
    raise SystemExit(code)


if __name__ == "__main__":
    main()
