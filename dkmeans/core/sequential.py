# core/sequential.py
from __future__ import annotations

from typing import List, Sequence

from .base import ClusterMap, ClusteringBase, build_cluster_map, nearest_centroids
from .observations import Observation


class SequentialClustering(ClusteringBase):
    """Однопроцессная реализация k-means (baseline)."""

    def start(self, observations: Sequence[Observation]) -> None:
        self._observations = list(observations)

    def assign_round(self, round_idx: int, centroids: List[Observation]) -> ClusterMap:
        labels = nearest_centroids(self._observations, centroids)
        return build_cluster_map(self._observations, labels, len(centroids))
