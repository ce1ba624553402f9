"""
Тесты последовательного движка k-means и политик завершения.
"""

import logging

import pytest

from dkmeans.core.base import (
    EMPTY_CLUSTER_WARNING,
    CentroidContainment,
    FixedRounds,
    build_cluster_map,
    centroids_contained,
    nearest_centroids,
    policy_for_kind,
    recompute_centroids,
)
from dkmeans.core.observations import DNAStrand, Point
from dkmeans.core.sequential import SequentialClustering
from dkmeans.errors import InitializationError
from dkmeans.metrics.timers import RunContext


def strand(text: str) -> DNAStrand:
    return DNAStrand(tuple(text))


class TestAssignment:
    """Тесты шага назначения."""

    def test_nearest_centroid(self, four_points):
        labels = nearest_centroids(four_points, [Point(0, 0), Point(10, 0)])
        assert labels == [0, 0, 1, 1]

    def test_tie_goes_to_first_centroid(self):
        # (5, 0) равноудалена от обоих центроидов
        labels = nearest_centroids([Point(5, 0)], [Point(0, 0), Point(10, 0)])
        assert labels == [0]

    def test_empty_observations(self):
        assert nearest_centroids([], [Point(0, 0)]) == []

    def test_cluster_map_keeps_empty_groups(self, four_points):
        cluster_map = build_cluster_map(four_points, [0, 0, 0, 0], 3)
        assert cluster_map == {0: four_points, 1: [], 2: []}

    def test_recompute_skips_empty_groups(self, caplog):
        logger = logging.getLogger("tests.recompute")
        cluster_map = {0: [Point(0, 0), Point(2, 2)], 1: []}
        with caplog.at_level(logging.WARNING, logger="tests.recompute"):
            centroids, sizes = recompute_centroids(cluster_map, Point, logger)

        assert centroids == [Point(1, 1)]
        assert sizes == [2]
        assert EMPTY_CLUSTER_WARNING in caplog.text


class TestTermination:
    """Тесты политик завершения."""

    def test_containment_ignores_order(self):
        old = [Point(0, 0), Point(1, 1)]
        assert centroids_contained(old, [Point(1, 1), Point(0, 0)])
        assert centroids_contained(old, [Point(1, 1)])
        assert not centroids_contained(old, [Point(1, 1), Point(2, 2)])

    def test_fixed_rounds(self):
        policy = FixedRounds(3)
        same = [Point(0, 0)]
        assert not policy.should_stop(1, same, same)
        assert policy.should_stop(3, same, same)

    def test_fixed_rounds_must_be_positive(self):
        with pytest.raises(ValueError):
            FixedRounds(0)

    def test_containment_with_round_limit(self):
        policy = CentroidContainment(max_rounds=2)
        assert not policy.should_stop(1, [Point(0, 0)], [Point(1, 1)])
        assert policy.should_stop(2, [Point(0, 0)], [Point(1, 1)])

    def test_policy_for_kind(self):
        assert policy_for_kind("dna") == FixedRounds(100)
        assert policy_for_kind("dna", 7) == FixedRounds(7)
        assert policy_for_kind("point") == CentroidContainment()
        with pytest.raises(ValueError):
            policy_for_kind("protein")


class TestSequentialClustering:
    """Тесты последовательного движка."""

    def test_two_pairs_converge(self, four_points):
        engine = SequentialClustering(2, CentroidContainment())
        result = engine.fit(four_points, [Point(0, 0), Point(10, 0)])

        assert result.centroids == [Point(0, 0.5), Point(10, 0.5)]
        assert result.cluster_sizes == [2, 2]
        assert result.n_rounds == 2
        assert result.converged

    def test_k_equals_n_converges_in_one_round(self, four_points, rng):
        engine = SequentialClustering(4, CentroidContainment(), rng=rng)
        result = engine.fit(four_points)

        assert result.n_rounds == 1
        assert set(result.centroids) == set(four_points)
        assert result.cluster_sizes == [1, 1, 1, 1]

    def test_majority_strand(self, rng):
        strands = [strand("AA"), strand("AA"), strand("TT")]
        engine = SequentialClustering(1, FixedRounds(3), rng=rng)
        result = engine.fit(strands)

        assert result.centroids == [strand("AA")]
        assert result.n_rounds == 3

    def test_dna_groups(self, dna_strands):
        strands, initial = dna_strands
        engine = SequentialClustering(2, FixedRounds(5))
        result = engine.fit(strands, initial)

        assert result.centroids == [strand("AAAAAAAA"), strand("TTTTTTTT")]
        assert result.cluster_sizes == [4, 4]
        assert result.n_rounds == 5

    def test_blobs(self, blob_points):
        points, initial = blob_points
        engine = SequentialClustering(3, CentroidContainment())
        result = engine.fit(points, initial)

        assert result.converged
        assert result.cluster_sizes == [30, 30, 30]
        assert result.labels_for(points) == [0] * 30 + [1] * 30 + [2] * 30

    def test_empty_cluster_shrinks_k(self, caplog):
        logger = logging.getLogger("tests.empty_cluster")
        points = [Point(0, 0), Point(0, 1)]
        engine = SequentialClustering(2, CentroidContainment(), logger=logger)
        with caplog.at_level(logging.WARNING, logger="tests.empty_cluster"):
            result = engine.fit(points, [Point(0, 0), Point(100, 100)])

        assert result.centroids == [Point(0, 0.5)]
        assert result.cluster_sizes == [2]
        assert EMPTY_CLUSTER_WARNING in caplog.text

    def test_empty_dataset(self):
        engine = SequentialClustering(1, CentroidContainment())
        with pytest.raises(InitializationError):
            engine.fit([])

    def test_duplicate_dataset(self, rng):
        engine = SequentialClustering(2, CentroidContainment(), rng=rng)
        with pytest.raises(InitializationError):
            engine.fit([Point(3, 3)] * 5)

    def test_timings_and_elapsed(self, four_points):
        context = RunContext(label="test")
        engine = SequentialClustering(2, CentroidContainment())
        result = engine.fit(four_points, [Point(0, 0), Point(10, 0)], context)

        assert result.elapsed > 0
        assert result.t_assign_total >= 0
        assert result.t_update_total >= 0
        assert result.t_iter_total == pytest.approx(
            result.t_assign_total + result.t_update_total
        )

    @pytest.mark.parametrize(
        "initial",
        [
            [Point(0, 0), Point(10, 0)],
            [Point(0, 1), Point(10, 1)],
            [Point(10, 0), Point(0, 1)],
            [Point(10, 1), Point(0, 0)],
        ],
    )
    def test_two_pairs_from_any_split_start(self, four_points, initial):
        engine = SequentialClustering(2, CentroidContainment())
        result = engine.fit(four_points, initial)
        assert set(result.centroids) == {Point(0, 0.5), Point(10, 0.5)}

    def test_optimal_centroids_are_a_fixed_point(self, four_points):
        optimal = [Point(0, 0.5), Point(10, 0.5)]
        cluster_map = build_cluster_map(
            four_points, nearest_centroids(four_points, optimal), len(optimal)
        )
        centroids, _ = recompute_centroids(cluster_map, Point)
        assert centroids == optimal

        result = SequentialClustering(2, CentroidContainment()).fit(four_points, optimal)
        assert result.n_rounds == 1
        assert result.centroids == optimal
