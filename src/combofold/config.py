"""Engine configuration, optionally read from pyproject.toml.

Reads the [tool.combofold] section:

    [tool.combofold]
    animate = false
    proxy_curve_offset = 40
    combo_padding = 12
    collapsed_combo_size = 36

    [tool.combofold.proxy_edge_style]
    lineDash = [4, 4]
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any


def _default_proxy_style() -> dict[str, Any]:
    return {"lineDash": [4, 4], "endArrow": True}


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for the collapse engine.

    Attributes:
        animate: Animate hide/show transitions
        proxy_curve_offset: Curvature applied to each half of a mutual proxy pair
        combo_padding: Padding around visible members when sizing a combo
        collapsed_combo_size: Side of the placeholder box of a combo with no
            visible member
        proxy_edge_style: Base style copied onto every proxy edge
    """

    animate: bool = True
    proxy_curve_offset: float = 30.0
    combo_padding: float = 10.0
    collapsed_combo_size: float = 32.0
    proxy_edge_style: dict[str, Any] = field(default_factory=_default_proxy_style)


def find_pyproject(start: Path | None = None) -> Path | None:
    """Walk up from start directory to find pyproject.toml."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def load_config(start: Path | None = None) -> EngineConfig:
    """Load [tool.combofold] from the nearest pyproject.toml.

    Returns default config if no pyproject.toml or no [tool.combofold] section.
    Unknown keys are ignored.
    """
    path = find_pyproject(start)
    if path is None:
        return EngineConfig()

    if sys.version_info >= (3, 11):
        import tomllib
    else:
        try:
            import tomli as tomllib
        except ImportError:
            return EngineConfig()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    section = data.get("tool", {}).get("combofold", {})
    if not section:
        return EngineConfig()

    known = {f.name for f in fields(EngineConfig)}
    return EngineConfig(**{key: value for key, value in section.items() if key in known})
