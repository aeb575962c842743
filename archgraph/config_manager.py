"""Settings loader for archgraph using TOML files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import toml

from .config import CONFIG_FILE, MAX_FILE_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisSettings:
    max_file_size: int = MAX_FILE_SIZE


@dataclass(frozen=True)
class LayoutSettings:
    node_width: float = 180.0
    node_height: float = 80.0
    node_spacing: float = 20.0
    level_spacing: float = 40.0
    layer_spacing: float = 50.0
    band_padding: float = 20.0
    margin: float = 50.0
    canvas_width: float = 1200.0
    max_overlap_iterations: int = 100
    curve_factor: float = 0.2
    max_curve_offset: float = 60.0
    # Minimum band heights, in Layer order.
    min_band_heights: Tuple[float, ...] = (120.0, 200.0, 250.0, 150.0, 180.0)


def _from_section(cls, section: Dict[str, Any]):
    known = {f.name: f for f in fields(cls)}
    kwargs: Dict[str, Any] = {}
    for key, value in section.items():
        if key not in known:
            logger.debug("Ignoring unknown setting '%s' for %s", key, cls.__name__)
            continue
        if key == "min_band_heights":
            value = tuple(float(v) for v in value)
        kwargs[key] = value
    return cls(**kwargs)


def load_settings(
    config_file: Optional[Path] = None,
) -> Tuple[AnalysisSettings, LayoutSettings]:
    """Load analysis and layout settings from a TOML file.

    Returns:
        ``(AnalysisSettings, LayoutSettings)``. Falls back to defaults when
        the file doesn't exist or can't be read.
    """
    path = config_file or CONFIG_FILE
    if not path.exists():
        return AnalysisSettings(), LayoutSettings()

    try:
        with open(path, "r") as f:
            data = toml.load(f)
        return (
            _from_section(AnalysisSettings, data.get("analysis", {})),
            _from_section(LayoutSettings, data.get("layout", {})),
        )
    except (toml.TomlDecodeError, OSError, TypeError, ValueError) as exc:
        logger.warning("Could not read settings from %s: %s", path, exc)
        return AnalysisSettings(), LayoutSettings()
