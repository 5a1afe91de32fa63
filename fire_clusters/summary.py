"""Per-year and per-cluster summaries of clustered detections."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, List

import pandas as pd

from .registry import NOISE_LABEL


@dataclass(frozen=True)
class YearSummary:
    year: int
    n_records: int
    n_noise: int
    n_clustered: int
    n_clusters: int


def summarize_year(year: int, frame: pd.DataFrame) -> YearSummary:
    """Count noise, clustered detections and distinct non-noise clusters."""

    labels = frame["cluster_id"]
    noise = labels == NOISE_LABEL
    return YearSummary(
        year=int(year),
        n_records=len(frame),
        n_noise=int(noise.sum()),
        n_clustered=int((~noise).sum()),
        n_clusters=int(labels[~noise].nunique()),
    )


def summaries_frame(summaries: Iterable[YearSummary]) -> pd.DataFrame:
    rows = [asdict(summary) for summary in summaries]
    columns = ["year", "n_records", "n_noise", "n_clustered", "n_clusters"]
    return pd.DataFrame(rows, columns=columns)


def drop_noise(df: pd.DataFrame) -> pd.DataFrame:
    """Keep only detections assigned to a cluster."""

    return df[df["cluster_id"] != NOISE_LABEL]


def annual_cluster_key(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add 'annual_cluster' = '<year>-<cluster_id>' so ids from different years
    never collide. Noise rows get a missing value.
    """

    df = df.copy()
    key = df["year"].astype(str) + "-" + df["cluster_id"].astype(str)
    df["annual_cluster"] = key.where(df["cluster_id"] != NOISE_LABEL)
    return df


def cluster_table(df: pd.DataFrame, date_column: str = "acq_date") -> pd.DataFrame:
    """One row per (year, cluster_id) with size, centre and date span."""

    columns: List[str] = [
        "year",
        "cluster_id",
        "n_detections",
        "center_x",
        "center_y",
        "mean_membership_probability",
    ]
    clustered = drop_noise(df)
    if clustered.empty:
        return pd.DataFrame(columns=columns)

    aggregations = {
        "n_detections": ("projected_x", "size"),
        "center_x": ("projected_x", "mean"),
        "center_y": ("projected_y", "mean"),
        "mean_membership_probability": ("membership_probability", "mean"),
    }
    for col in ("longitude", "latitude"):
        if col in clustered.columns:
            aggregations[f"center_{col}"] = (col, "mean")
    if date_column in clustered.columns:
        aggregations["first_detection"] = (date_column, "min")
        aggregations["last_detection"] = (date_column, "max")
    for col in ("frp", "brightness"):
        if col in clustered.columns:
            aggregations[f"max_{col}"] = (col, "max")

    table = clustered.groupby(["year", "cluster_id"], as_index=False).agg(**aggregations)
    table["year_sort"] = pd.to_numeric(table["year"], errors="coerce")
    return table.sort_values(["year_sort", "cluster_id"]).drop(columns="year_sort").reset_index(drop=True)
