"""Utilities for annual density-based clustering of satellite fire detections.

This package provides modular building blocks to load FIRMS MODIS/VIIRS CSVs,
split acquisition dates, project coordinates to UTM, cluster detections per
acquisition year with HDBSCAN, and summarise the resulting clusters.
"""

from .config import ClusterByYearConfig, build_min_points_policy, config_from_dict, load_config
from .driver import AnnualClusterRun, cluster_by_year, cluster_years, resolve_worker_count
from .errors import MalformedDateError, ReprojectionError, YearFailure

__all__ = [
    "AnnualClusterRun",
    "ClusterByYearConfig",
    "MalformedDateError",
    "ReprojectionError",
    "YearFailure",
    "build_min_points_policy",
    "cluster_by_year",
    "cluster_years",
    "config_from_dict",
    "load_config",
    "resolve_worker_count",
]
