"""Clustering registry and simple wrappers.

Every clusterer returns labels in the 0-is-noise convention (positive ids for
clusters) together with a membership probability per point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np
from sklearn.cluster import DBSCAN, HDBSCAN

NOISE_LABEL = 0


@dataclass
class ClusterAssignment:
    labels: np.ndarray
    probabilities: np.ndarray

    @property
    def n_clusters(self) -> int:
        return len(set(self.labels.tolist()) - {NOISE_LABEL})


class Clusterer(Protocol):
    name: str

    def cluster(self, points: np.ndarray, min_points: int) -> ClusterAssignment:
        ...


def relabel_noise_zero(labels) -> np.ndarray:
    """Map scikit-learn labels (-1 and below for noise) to 0 = noise, 1..k = clusters."""

    labels = np.asarray(labels, dtype=int)
    return np.where(labels < 0, NOISE_LABEL, labels + 1)


def _check_points(points: np.ndarray) -> np.ndarray:
    points = np.asarray(points, dtype=float)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"Expected points with shape (n_samples, 2), got {points.shape}")
    return points


@dataclass
class HdbscanClusterer:
    name: str = "hdbscan"

    def cluster(self, points: np.ndarray, min_points: int) -> ClusterAssignment:
        points = _check_points(points)
        model = HDBSCAN(min_cluster_size=int(min_points), min_samples=int(min_points), copy=True)
        model.fit(points)
        return ClusterAssignment(
            labels=relabel_noise_zero(model.labels_),
            probabilities=np.clip(np.nan_to_num(model.probabilities_, nan=0.0), 0.0, 1.0),
        )


@dataclass
class DbscanClusterer:
    name: str = "dbscan"
    eps: float = 1000.0

    def cluster(self, points: np.ndarray, min_points: int) -> ClusterAssignment:
        points = _check_points(points)
        model = DBSCAN(eps=float(self.eps), min_samples=int(min_points))
        labels = relabel_noise_zero(model.fit_predict(points))
        # DBSCAN has no soft membership: members count as certain, noise as zero.
        probabilities = np.where(labels == NOISE_LABEL, 0.0, 1.0)
        return ClusterAssignment(labels=labels, probabilities=probabilities)


def get_clusterer(method_name: str, **params) -> Clusterer:
    name = method_name.lower()
    if name == "hdbscan":
        return HdbscanClusterer(**params)
    if name == "dbscan":
        return DbscanClusterer(**params)
    raise ValueError(f"Unsupported clustering method: {method_name}")
