"""Annual clustering driver.

Splits detections by acquisition year, projects coordinates once, clusters each
year independently on a bounded worker pool, and concatenates the labelled
years in ascending order. A year whose clustering fails is logged and reported
as a :class:`~fire_clusters.errors.YearFailure`; the other years are unaffected.
"""

from __future__ import annotations

import concurrent.futures as cf
import logging
import os
import pickle
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .config import ClusterByYearConfig, MinPointsPolicy, build_min_points_policy
from .errors import YearFailure
from .io import PROJECTED_COLUMNS, add_projected_coordinates, ensure_required_columns
from .preprocessing import DATE_PART_COLUMNS, resolve_years, select_year, split_acquisition_date
from .registry import Clusterer, get_clusterer
from .summary import YearSummary, summarize_year

LABEL_COLUMNS = ["cluster_id", "membership_probability"]
OUTPUT_COLUMNS = [*DATE_PART_COLUMNS, *PROJECTED_COLUMNS, *LABEL_COLUMNS]


@dataclass
class YearResult:
    """Outcome of one year's task: a labelled frame or a captured failure."""

    year: int
    frame: Optional[pd.DataFrame] = None
    summary: Optional[YearSummary] = None
    failure: Optional[YearFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class AnnualClusterRun:
    records: pd.DataFrame
    summaries: List[YearSummary] = field(default_factory=list)
    failures: List[YearFailure] = field(default_factory=list)
    years: List[int] = field(default_factory=list)


def resolve_worker_count(requested: int, cpu_count: int | None = None) -> int:
    """Cap the requested pool size at one less than the available CPUs (minimum 1)."""

    if int(requested) < 1:
        raise ValueError(f"parallelism must be at least 1, got {requested}")
    if cpu_count is None:
        cpu_count = os.cpu_count() or 1
    return max(1, min(int(requested), cpu_count - 1))


def _empty_output(frame: pd.DataFrame) -> pd.DataFrame:
    empty = frame.iloc[0:0].copy()
    for col in OUTPUT_COLUMNS:
        if col not in empty.columns:
            dtype = {"cluster_id": int, "membership_probability": float}.get(col, object)
            empty[col] = pd.Series(dtype=dtype)
    return empty


def cluster_year(year: int, subset: pd.DataFrame, min_points: int, clusterer: Clusterer) -> YearResult:
    """Cluster one year's detections on their projected coordinates.

    Runs inside a pool worker, so it does not log; the caller reports the
    returned result.
    """

    try:
        points = subset[list(PROJECTED_COLUMNS)].to_numpy(dtype=float)
        assignment = clusterer.cluster(points, min_points)
        if len(assignment.labels) != len(subset) or len(assignment.probabilities) != len(subset):
            raise ValueError(
                f"{clusterer.name} returned {len(assignment.labels)} labels for {len(subset)} points"
            )
        result = subset.copy()
        result["cluster_id"] = assignment.labels.astype(int)
        result["membership_probability"] = assignment.probabilities.astype(float)
    except Exception as exc:
        return YearResult(year=year, failure=YearFailure(year=year, message=str(exc), error_type=type(exc).__name__))

    return YearResult(year=year, frame=result, summary=summarize_year(year, result))


def _report(result: YearResult) -> None:
    if not result.ok:
        logging.error("Error processing year %s - %s", result.year, result.failure.message)
        return
    logging.info(
        "Year %s: noise fires=%d, clustered fires=%d, clusters=%d",
        result.year,
        result.summary.n_noise,
        result.summary.n_clustered,
        result.summary.n_clusters,
    )


def _make_executor(kind: str, workers: int) -> cf.Executor:
    if kind == "thread":
        return cf.ThreadPoolExecutor(max_workers=workers)
    if kind == "process":
        return cf.ProcessPoolExecutor(max_workers=workers)
    raise ValueError(f"Unsupported executor: {kind}")


def _check_picklable(clusterer: Clusterer) -> None:
    """A process pool ships the clusterer to every worker."""

    try:
        pickle.dumps(clusterer)
    except (pickle.PicklingError, TypeError, AttributeError) as exc:
        raise ValueError(
            f"Clusterer {clusterer.name!r} cannot be sent to a process pool ({exc}); use executor='thread'"
        ) from exc


def _run_tasks(
    tasks: Dict[int, tuple[pd.DataFrame, int]],
    clusterer: Clusterer,
    executor: str,
    workers: int,
) -> List[YearResult]:
    """Fan out one task per year, report each as it completes, and wait for all of them."""

    results: List[YearResult] = []
    with _make_executor(executor, workers) as pool:
        futures = {}
        for year, (subset, min_points) in tasks.items():
            logging.info("Processing year %s: %d detections, min_points=%d", year, len(subset), min_points)
            futures[pool.submit(cluster_year, year, subset, min_points, clusterer)] = year
        for future in cf.as_completed(futures):
            year = futures[future]
            try:
                result = future.result()
            except Exception as exc:
                failure = YearFailure(year=year, message=str(exc), error_type=type(exc).__name__)
                result = YearResult(year=year, failure=failure)
            _report(result)
            results.append(result)
    return results


def cluster_years(
    records: pd.DataFrame,
    config: ClusterByYearConfig | None = None,
    clusterer: Clusterer | None = None,
) -> AnnualClusterRun:
    """
    Cluster detections independently per acquisition year.
    Returns the labelled detections (ascending year, original order and row
    labels within a year) together with per-year summaries and failures.
    """

    config = config or ClusterByYearConfig()
    if clusterer is None:
        clusterer = get_clusterer(config.method, **config.method_params)
    if config.executor == "process":
        _check_picklable(clusterer)

    if records.empty:
        logging.info("No detections supplied; nothing to cluster.")
        return AnnualClusterRun(records=_empty_output(records))

    ensure_required_columns(records, [config.date_column, *config.coordinate_columns])
    df = split_acquisition_date(records, config.date_column, on_malformed=config.on_malformed_date)
    df = add_projected_coordinates(
        df,
        coordinate_columns=config.coordinate_columns,
        source_crs=config.source_crs,
        target_crs=config.target_crs,
    )

    years = resolve_years(df, config.years)
    tasks: Dict[int, tuple[pd.DataFrame, int]] = {}
    for year in years:
        subset = select_year(df, year)
        if subset.empty:
            logging.info("Year %s: no data available, skipping", year)
            continue
        tasks[year] = (subset, int(config.min_points_policy(year)))

    results: List[YearResult] = []
    if tasks:
        workers = min(resolve_worker_count(config.parallelism), len(tasks))
        logging.info(
            "Clustering %d year(s) with %s on %d %s worker(s)",
            len(tasks),
            clusterer.name,
            workers,
            config.executor,
        )
        results = _run_tasks(tasks, clusterer, config.executor, workers)

    results.sort(key=lambda result: result.year)
    successes = [result for result in results if result.ok]
    failures = [result.failure for result in results if not result.ok]

    if successes:
        merged = pd.concat(
            [result.frame for result in successes],
            keys=[result.year for result in successes],
            names=["cluster_year", None],
        ).droplevel("cluster_year")
    else:
        merged = _empty_output(df)

    if failures:
        logging.warning("%d year(s) failed: %s", len(failures), [failure.year for failure in failures])
    logging.info("Clustered %d of %d detections across %d year(s)", len(merged), len(records), len(successes))

    return AnnualClusterRun(
        records=merged,
        summaries=[result.summary for result in successes],
        failures=failures,
        years=years,
    )


def cluster_by_year(
    records: pd.DataFrame,
    coordinate_columns: Sequence[str] = ("longitude", "latitude"),
    source_crs: str | int = "EPSG:4326",
    target_crs: str | int | None = None,
    min_points_policy: MinPointsPolicy | int | Mapping[str, Any] | None = None,
    year_range: Sequence[int] | None = None,
    parallelism: int = 4,
    clusterer: Clusterer | None = None,
    **options: Any,
) -> pd.DataFrame:
    """Cluster detections per year and return them with cluster assignments attached.

    Parameters
    ----------
    records:
        Detections with longitude, latitude and a ``YYYY-MM-DD`` date column.
    coordinate_columns:
        Names of the x (longitude) and y (latitude) columns.
    source_crs, target_crs:
        Reference system of the raw coordinates and, optionally, the planar
        system (e.g. ``"EPSG:32638"``) they are projected to before clustering.
    min_points_policy:
        ``year -> min_points`` callable, an integer, or a
        ``{default, overrides}`` mapping.
    year_range:
        Years to process; defaults to the years present in the data.
    parallelism:
        Requested worker count, capped at the CPU count minus one.
    clusterer:
        Clustering capability; defaults to the one named by ``method``. With
        the default process pool it must be picklable, otherwise a
        ``ValueError`` is raised before any year is dispatched.
    options:
        Remaining :class:`ClusterByYearConfig` fields (``date_column``,
        ``method``, ``method_params``, ``executor``, ``on_malformed_date``).

    Returns
    -------
    pandas.DataFrame
        Input rows of the successfully clustered years with ``year``, ``month``,
        ``day``, ``projected_x``, ``projected_y``, ``cluster_id`` and
        ``membership_probability`` added.
    """

    config = ClusterByYearConfig(
        coordinate_columns=tuple(coordinate_columns),
        source_crs=source_crs,
        target_crs=target_crs,
        min_points_policy=build_min_points_policy(min_points_policy),
        years=year_range,
        parallelism=parallelism,
        **options,
    )
    return cluster_years(records, config, clusterer=clusterer).records
