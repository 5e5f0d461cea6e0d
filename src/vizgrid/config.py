"""
Configuration for the vizgrid render layer.

Defines RenderSettings, a frozen dataclass carrying the tunable policies of the
compiler and the interaction bus. Defaults are sourced from vizgrid.core.constants
(the single source of truth).

Source of truth
- vizgrid.core.constants.THROTTLE_DIVISOR, GUTTER_PX, RASTER_SCALE, FILENAME_STEM

Import DAG discipline
- Depends only on stdlib and vizgrid.core.
- Does not import vizgrid.viz or vizgrid.render.

Notes
- Throttle window (ms) = floor(data_length / throttle_divisor * row_count * col_count).
  The divisor has no derivation beyond "coarser for larger grids and datasets", so it
  is exposed here instead of being hard-coded in the bus.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from vizgrid.core.constants import FILENAME_STEM as CORE_FILENAME_STEM
from vizgrid.core.constants import GUTTER_PX as CORE_GUTTER_PX
from vizgrid.core.constants import RASTER_SCALE as CORE_RASTER_SCALE
from vizgrid.core.constants import THROTTLE_DIVISOR as CORE_THROTTLE_DIVISOR
from vizgrid.core.errors import ConfigError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_LOG_LEVELS: set[str] = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class RenderSettings:
    """
    Runtime settings for the vizgrid compiler and render layer.

    Attributes:
        throttle_divisor (float): Rows per millisecond of throttle window per view (> 0).
        gutter_px (int): Pixels removed from each repeated view's share of the layout.
        raster_scale (int): Scale factor for raster downloads (>= 1).
        download_dir (str): Directory receiving downloaded exports.
        filename_stem (str): Default download filename stem.
        log_level (str): Level applied by vizgrid.logging_util.get_logger.

    Examples:
        >>> from vizgrid.config import RenderSettings
        >>> RenderSettings(throttle_divisor=128)  # doctest: +ELLIPSIS
        RenderSettings(...)
    """

    throttle_divisor: float = CORE_THROTTLE_DIVISOR
    gutter_px: int = CORE_GUTTER_PX
    raster_scale: int = CORE_RASTER_SCALE
    download_dir: str = "."
    filename_stem: str = CORE_FILENAME_STEM
    log_level: LogLevel = "WARNING"

    def __post_init__(self) -> None:
        if self.throttle_divisor <= 0:
            raise ConfigError(f"throttle_divisor must be > 0 (got {self.throttle_divisor!r})")
        if self.gutter_px < 0:
            raise ConfigError(f"gutter_px must be >= 0 (got {self.gutter_px!r})")
        if self.raster_scale < 1:
            raise ConfigError(f"raster_scale must be >= 1 (got {self.raster_scale!r})")

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: RenderSettings, cfg: dict[str, Any] | None) -> RenderSettings:
        """Apply a loose config mapping onto RenderSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        # Unparseable numbers are ignored; parsed but out-of-range values raise ConfigError.
        if "throttle_divisor" in cfg:
            try:
                divisor = float(cfg["throttle_divisor"])
            except (TypeError, ValueError):
                pass
            else:
                s = replace(s, throttle_divisor=divisor)

        if "gutter_px" in cfg:
            try:
                gutter = int(cfg["gutter_px"])
            except (TypeError, ValueError):
                pass
            else:
                s = replace(s, gutter_px=gutter)

        if "raster_scale" in cfg:
            try:
                scale = int(cfg["raster_scale"])
            except (TypeError, ValueError):
                pass
            else:
                s = replace(s, raster_scale=scale)

        if "download_dir" in cfg and isinstance(cfg["download_dir"], str):
            s = replace(s, download_dir=cfg["download_dir"])

        if "filename_stem" in cfg and isinstance(cfg["filename_stem"], str):
            s = replace(s, filename_stem=cfg["filename_stem"])

        if "log_level" in cfg and isinstance(cfg["log_level"], str):
            lvl = cfg["log_level"].strip().upper()
            if lvl in _LOG_LEVELS:
                s = replace(s, log_level=lvl)  # type: ignore[arg-type]

        return s

    @classmethod
    def from_env(
        cls, base: RenderSettings | None = None, prefix: str = "VIZGRID_"
    ) -> RenderSettings:
        """
        Build RenderSettings from environment variables. Precedence is env > base > defaults.

        Recognized variables:
            - VIZGRID_THROTTLE_DIVISOR
            - VIZGRID_GUTTER_PX
            - VIZGRID_RASTER_SCALE
            - VIZGRID_DOWNLOAD_DIR
            - VIZGRID_FILENAME_STEM
            - VIZGRID_LOG_LEVEL
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for key in (
            "throttle_divisor",
            "gutter_px",
            "raster_scale",
            "download_dir",
            "filename_stem",
            "log_level",
        ):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> RenderSettings:
        """
        Build RenderSettings from a TOML file.

        Search order when `path` is None:
            1) ./vizgrid.toml (with either a [render] table or top-level keys)
            2) ./pyproject.toml under [tool.vizgrid.render]

        Returns defaults if no file is present or it cannot be parsed.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "vizgrid.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("vizgrid", {}).get("render", {}) if isinstance(tool, dict) else None
            else:
                render = data.get("render")
                cfg = render if isinstance(render, dict) else data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> RenderSettings:
        """
        Load RenderSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (vizgrid.toml,
                pyproject.toml).

        Raises:
            ConfigError: If the merged values are out of range.
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
