"""Configuration helpers for the annual fire clustering pipeline.

Provides YAML loading, nested lookups with defaults, and the typed
configuration value handed to the clustering driver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import yaml

DEFAULT_MIN_POINTS = 3
MALFORMED_DATE_POLICIES = ("raise", "drop")
EXECUTORS = ("process", "thread")

MinPointsPolicy = Callable[[int], int]


def load_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML configuration file."""

    with Path(path).open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_nested(config: Dict[str, Any], keys: list[str], default: Any) -> Any:
    """Retrieve a nested value from a config dict with a default."""

    current: Any = config
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


@dataclass(frozen=True)
class YearlyMinPoints:
    """Minimum neighbourhood size per year: a default plus per-year overrides."""

    default: int = DEFAULT_MIN_POINTS
    overrides: Mapping[int, int] = field(default_factory=dict)

    def __call__(self, year: int) -> int:
        return int(self.overrides.get(int(year), self.default))


def constant_min_points(value: int) -> YearlyMinPoints:
    return YearlyMinPoints(default=int(value))


def build_min_points_policy(value: Any) -> MinPointsPolicy:
    """
    Turn a config value into a ``year -> min_points`` policy.

    Accepts an integer, a mapping ``{default: N, overrides: {YEAR: M}}`` or an
    existing callable, which is returned unchanged.
    """

    if value is None:
        return constant_min_points(DEFAULT_MIN_POINTS)
    if callable(value):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid min_points value: {value!r}")
    if isinstance(value, int):
        return constant_min_points(value)
    if isinstance(value, Mapping):
        overrides = value.get("overrides", {}) or {}
        return YearlyMinPoints(
            default=int(value.get("default", DEFAULT_MIN_POINTS)),
            overrides={int(year): int(points) for year, points in overrides.items()},
        )
    raise ValueError(f"Invalid min_points value: {value!r}")


def parse_years(value: Any) -> Optional[list[int]]:
    """Parse a year list or an inclusive ``{start, end}`` range."""

    if value is None:
        return None
    if isinstance(value, Mapping):
        if "start" not in value or "end" not in value:
            raise ValueError(f"Year range needs 'start' and 'end': {dict(value)}")
        return list(range(int(value["start"]), int(value["end"]) + 1))
    if isinstance(value, (str, bytes)):
        raise ValueError(f"Invalid years value: {value!r}")
    return sorted({int(year) for year in value})


@dataclass
class ClusterByYearConfig:
    """Explicit configuration for one call of the annual clustering driver."""

    date_column: str = "acq_date"
    coordinate_columns: Tuple[str, str] = ("longitude", "latitude")
    source_crs: str | int = "EPSG:4326"
    target_crs: str | int | None = None
    min_points_policy: MinPointsPolicy = field(default_factory=lambda: constant_min_points(DEFAULT_MIN_POINTS))
    years: Optional[Sequence[int]] = None
    parallelism: int = 4
    method: str = "hdbscan"
    method_params: Dict[str, Any] = field(default_factory=dict)
    executor: str = "process"
    on_malformed_date: str = "raise"

    def __post_init__(self) -> None:
        if len(self.coordinate_columns) != 2:
            raise ValueError(f"coordinate_columns needs exactly two names: {self.coordinate_columns}")
        self.coordinate_columns = tuple(self.coordinate_columns)
        if self.on_malformed_date not in MALFORMED_DATE_POLICIES:
            raise ValueError(
                f"on_malformed_date must be one of {MALFORMED_DATE_POLICIES}, got {self.on_malformed_date!r}"
            )
        if self.executor not in EXECUTORS:
            raise ValueError(f"executor must be one of {EXECUTORS}, got {self.executor!r}")
        if int(self.parallelism) < 1:
            raise ValueError(f"parallelism must be at least 1, got {self.parallelism}")


def config_from_dict(section: Dict[str, Any] | None) -> ClusterByYearConfig:
    """Build a :class:`ClusterByYearConfig` from the ``clustering`` YAML section."""

    section = section or {}
    method = str(section.get("method", "hdbscan")).lower()
    return ClusterByYearConfig(
        date_column=str(section.get("date_column", "acq_date")),
        coordinate_columns=tuple(section.get("coordinate_columns", ["longitude", "latitude"])),
        source_crs=section.get("source_crs", "EPSG:4326"),
        target_crs=section.get("target_crs"),
        min_points_policy=build_min_points_policy(section.get("min_points")),
        years=parse_years(section.get("years")),
        parallelism=int(section.get("parallelism", 4)),
        method=method,
        method_params=dict(section.get(method, {}) or {}),
        executor=str(section.get("executor", "process")),
        on_malformed_date=str(section.get("on_malformed_date", "raise")),
    )
