"""Optional plotting utilities for inspecting annual clusters."""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from .registry import NOISE_LABEL


def plot_annual_clusters(df: pd.DataFrame, year: int, output_path: Path, projected: bool = True) -> bool:
    """Scatter one year's detections, noise in grey and clusters coloured by id.

    Returns False without writing anything when the year has no detections.
    """

    subset = df[pd.to_numeric(df["year"], errors="coerce") == int(year)]
    if subset.empty:
        return False

    x_col, y_col = ("projected_x", "projected_y") if projected else ("longitude", "latitude")
    noise = subset[subset["cluster_id"] == NOISE_LABEL]
    clustered = subset[subset["cluster_id"] != NOISE_LABEL]

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.scatter(noise[x_col], noise[y_col], s=4, c="lightgrey", label="noise")
    if not clustered.empty:
        ax.scatter(clustered[x_col], clustered[y_col], s=6, c=clustered["cluster_id"], cmap="tab20")
    ax.set_xlabel("X (m)" if projected else "Longitude")
    ax.set_ylabel("Y (m)" if projected else "Latitude")
    ax.set_title(f"Fire clusters {year}: {clustered['cluster_id'].nunique()} clusters, {len(noise)} noise")
    ax.legend(loc="best", fontsize=8)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return True
