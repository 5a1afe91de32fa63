"""CLI entry point for the annual fire clustering pipeline.

Orchestrates loading FIRMS CSVs, column renaming, per-year clustering, output
packaging, and optional plotting, honoring test-mode caps from the config.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict

import pandas as pd

from fire_clusters.config import config_from_dict, load_config
from fire_clusters.driver import cluster_years
from fire_clusters.io import load_fire_csvs, rename_columns, save_dataframe
from fire_clusters.summary import annual_cluster_key, cluster_table, drop_noise, summaries_frame


def configure_logging(log_cfg: Dict[str, object]) -> None:
    """Configure root logger with both file and console handlers."""

    log_dir = Path(log_cfg.get("dir", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    filename = log_cfg.get("filename", "fire_clusters.log")
    log_path = log_dir / filename
    level_name = str(log_cfg.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s - %(levelname)s - %(message)s"
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(fmt))
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(fmt))

    root.addHandler(file_handler)
    root.addHandler(stream_handler)
    root.info("Logging to %s (level=%s)", log_path, level_name)


def main(config_path: str = "config/fire_clusters.yaml") -> None:
    cfg = load_config(config_path)

    configure_logging(cfg.get("logging", {}) or {})
    testing_cfg = cfg.get("testing", {}) or {}
    test_mode = bool(testing_cfg.get("enabled", False))
    logging.info("Test mode: %s", test_mode)

    input_cfg = cfg.get("input", {}) or {}
    csv_glob = input_cfg.get("csv_glob", "data/fire_archive_*.csv")
    max_rows = testing_cfg.get("max_rows_total") if test_mode else None

    df = load_fire_csvs(csv_glob=csv_glob, max_rows_total=max_rows)
    df = rename_columns(df, input_cfg.get("rename", {}) or {})

    cluster_cfg = config_from_dict(cfg.get("clustering", {}) or {})
    logging.info(
        "Clustering with %s (CRS %s -> %s, years=%s)",
        cluster_cfg.method,
        cluster_cfg.source_crs,
        cluster_cfg.target_crs,
        cluster_cfg.years or "all",
    )
    run = cluster_years(df, cluster_cfg)

    output_cfg = cfg.get("output", {}) or {}
    output_dir = Path(output_cfg.get("dir", "output"))
    name = str(output_cfg.get("name", "fires"))
    clustered = annual_cluster_key(run.records)

    save_dataframe(clustered, output_dir / f"clustered_{name}.csv")
    if output_cfg.get("save_no_noise", True):
        save_dataframe(drop_noise(clustered), output_dir / f"clustered_no_noise_{name}.csv")
    if output_cfg.get("save_cluster_table", True):
        save_dataframe(cluster_table(clustered, date_column=cluster_cfg.date_column), output_dir / f"clusters_{name}.csv")
    save_dataframe(summaries_frame(run.summaries), output_dir / f"year_summary_{name}.csv")
    if run.failures:
        failures = pd.DataFrame([vars(failure) for failure in run.failures])
        save_dataframe(failures, output_dir / f"failed_years_{name}.csv")

    if output_cfg.get("save_plots", False):
        from fire_clusters.plots import plot_annual_clusters

        for summary in run.summaries:
            plot_annual_clusters(clustered, summary.year, output_dir / "figures" / f"clusters_{name}_{summary.year}.png")


def run() -> None:
    parser = argparse.ArgumentParser(description="Annual fire detection clustering pipeline.")
    parser.add_argument(
        "-c",
        "--config",
        default="config/fire_clusters.yaml",
        help="Path to YAML config file.",
    )
    args = parser.parse_args()
    main(args.config)


if __name__ == "__main__":
    run()
