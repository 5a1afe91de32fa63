"""Input/output helpers for the annual fire clustering pipeline.

Covers FIRMS CSV loading with truncation, column renaming, required-column
checks, coordinate projection to UTM, and CSV saving.
"""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd
from pyproj import Transformer
from pyproj.exceptions import CRSError, ProjError

from .errors import ReprojectionError

PROJECTED_COLUMNS: Tuple[str, str] = ("projected_x", "projected_y")


def load_fire_csvs(csv_glob: str, max_rows_total: int | None = None) -> pd.DataFrame:
    """Load and concatenate FIRMS archive CSVs matching the glob.

    The acquisition date column is kept as text so it can be split into
    year/month/day without any locale-dependent parsing.
    """

    paths = sorted(glob.glob(csv_glob))
    if not paths:
        raise FileNotFoundError(f"No CSV files matched glob: {csv_glob}")

    frames: List[pd.DataFrame] = []
    for path in paths:
        logging.info("Reading %s", path)
        frames.append(pd.read_csv(path, dtype={"acq_date": str, "acq_time": str}, low_memory=False))

    combined = pd.concat(frames, ignore_index=True)
    logging.info("Loaded %d detections from %d files", len(combined), len(paths))

    if max_rows_total is not None:
        combined = combined.iloc[:max_rows_total].copy()
        logging.info("Truncated to %d rows due to test mode cap", len(combined))

    return combined


def rename_columns(df: pd.DataFrame, mapping: Mapping[str, str] | None) -> pd.DataFrame:
    """Rename columns, skipping (and logging) source names that are absent."""

    if not mapping:
        return df
    missing = [col for col in mapping if col not in df.columns]
    if missing:
        logging.warning("Skipping renames for columns not present: %s", missing)
    present = {src: dst for src, dst in mapping.items() if src in df.columns}
    return df.rename(columns=present)


def ensure_required_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """Validate that the DataFrame contains the required columns."""

    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    return df


def save_dataframe(df: pd.DataFrame, path: str | Path) -> None:
    """Persist a DataFrame to CSV."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logging.info("Saved %d rows to %s", len(df), path)


def project_coordinates(
    x: np.ndarray,
    y: np.ndarray,
    source_crs: str | int,
    target_crs: str | int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Transform x/y (longitude/latitude for geographic systems) between CRSs."""

    try:
        transformer = Transformer.from_crs(source_crs, target_crs, always_xy=True)
        out_x, out_y = transformer.transform(
            np.asarray(x, dtype=float), np.asarray(y, dtype=float), errcheck=True
        )
    except (CRSError, ProjError) as exc:
        raise ReprojectionError(f"Cannot project from {source_crs} to {target_crs}: {exc}") from exc
    return np.asarray(out_x, dtype=float), np.asarray(out_y, dtype=float)


def add_projected_coordinates(
    df: pd.DataFrame,
    coordinate_columns: Sequence[str] = ("longitude", "latitude"),
    source_crs: str | int = "EPSG:4326",
    target_crs: str | int | None = None,
) -> pd.DataFrame:
    """
    Add 'projected_x' and 'projected_y' columns.
    Without a target CRS the raw coordinates are copied, so clustering runs in
    the source units.
    """

    x_col, y_col = coordinate_columns
    ensure_required_columns(df, [x_col, y_col])
    x = df[x_col].to_numpy(dtype=float)
    y = df[y_col].to_numpy(dtype=float)

    df = df.copy()
    if target_crs is None:
        df[PROJECTED_COLUMNS[0]] = x
        df[PROJECTED_COLUMNS[1]] = y
        return df

    proj_x, proj_y = project_coordinates(x, y, source_crs, target_crs)
    df[PROJECTED_COLUMNS[0]] = proj_x
    df[PROJECTED_COLUMNS[1]] = proj_y
    logging.info("Projected %d coordinates from %s to %s", len(df), source_crs, target_crs)
    return df
