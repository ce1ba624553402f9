"""
Тесты согласованности последовательного и распределённого движков.

Критически важно: при одинаковых начальных центроидах оба движка должны
проходить одни и те же раунды и давать одинаковые центроиды.
"""

import logging

import pytest

from dkmeans.core.base import EMPTY_CLUSTER_WARNING, CentroidContainment, FixedRounds
from dkmeans.core.observations import Point
from dkmeans.core.sequential import SequentialClustering
from dkmeans.data.dataset import Dataset
from dkmeans.data.generators import DatasetGenerator, GeneratorConfig
from dkmeans.errors import ConfigurationError
from dkmeans.launcher import DistributedConfig, run_threaded
from dkmeans.runner import ClusteringRunner
from dkmeans.transport.messages import ResultFormat


class TestEngineConsistency:
    """Последовательный и распределённый движки на одних данных."""

    @pytest.mark.parametrize("n_workers", [1, 2, 5])
    @pytest.mark.parametrize("result_format", list(ResultFormat))
    def test_points(self, blob_points, n_workers, result_format):
        points, initial = blob_points

        sequential = SequentialClustering(3, CentroidContainment()).fit(points, initial)
        distributed = run_threaded(
            points,
            3,
            CentroidContainment(),
            config=DistributedConfig(
                n_workers=n_workers, transport="threads", result_format=result_format
            ),
            initial_centroids=initial,
        )

        assert distributed.centroids == sequential.centroids
        assert distributed.cluster_sizes == sequential.cluster_sizes
        assert distributed.n_rounds == sequential.n_rounds

    @pytest.mark.parametrize("n_workers", [1, 3])
    def test_generated_strands(self, n_workers):
        generated = DatasetGenerator(base_seed=3).generate(
            "dna", GeneratorConfig(n_clusters=3, per_cluster=20, strand_length=16)
        )
        strands = generated.observations
        initial = [strands[0], strands[20], strands[40]]

        sequential = SequentialClustering(3, FixedRounds(10)).fit(strands, initial)
        distributed = run_threaded(
            strands,
            3,
            FixedRounds(10),
            config=DistributedConfig(n_workers=n_workers, transport="threads"),
            initial_centroids=initial,
        )

        assert distributed.centroids == sequential.centroids
        assert distributed.cluster_sizes == sequential.cluster_sizes == [20, 20, 20]


class TestClusteringRunner:
    """Тесты запуска прогонов по режиму."""

    def test_sequential_and_parallel(self, blob_points):
        points, _ = blob_points
        runner = ClusteringRunner(Dataset.from_observations(points, "point"), 3, "point")

        sequential = runner.run("sequential", seed=0)
        parallel = runner.run(
            "parallel", config=DistributedConfig(n_workers=2, transport="threads"), seed=0
        )

        assert sequential.converged
        assert parallel.centroids == sequential.centroids

    def test_dna_runs_fixed_rounds(self, dna_strands):
        strands, initial = dna_strands
        runner = ClusteringRunner(Dataset.from_observations(strands, "dna"), 2, "dna")
        result = runner.run("sequential", rounds=3, initial_centroids=initial)
        assert result.n_rounds == 3

    def test_unknown_mode(self, four_points):
        runner = ClusteringRunner(Dataset.from_observations(four_points, "point"), 2, "point")
        with pytest.raises(ConfigurationError):
            runner.run("gpu")

    def test_benchmark(self, blob_points):
        points, _ = blob_points
        runner = ClusteringRunner(Dataset.from_observations(points, "point"), 3, "point")
        stats = runner.benchmark(DistributedConfig(n_workers=2, transport="threads"), seed=1)

        assert stats["same_cluster_sizes"]
        assert stats["rounds_sequential"] == stats["rounds_parallel"]
        assert stats["n_workers"] == 2
        assert stats["speedup"] > 0
        assert stats["efficiency"] == pytest.approx(stats["speedup"] / 2)

    def test_benchmark_rejects_mpi(self, four_points):
        runner = ClusteringRunner(Dataset.from_observations(four_points, "point"), 2, "point")
        with pytest.raises(ConfigurationError):
            runner.benchmark(DistributedConfig(transport="mpi"))

    def test_empty_cluster_warning_without_logger(self):
        """Без явного логгера предупреждение уходит в логгер проекта."""
        records = []
        handler = logging.Handler()
        handler.emit = records.append
        project_logger = logging.getLogger("dkmeans")
        project_logger.addHandler(handler)
        try:
            points = [Point(0, 0), Point(0, 1)]
            runner = ClusteringRunner(Dataset.from_observations(points, "point"), 2, "point")
            result = runner.run("sequential", initial_centroids=[Point(0, 0), Point(100, 100)])
        finally:
            project_logger.removeHandler(handler)

        assert result.centroids == [Point(0, 0.5)]
        assert any(EMPTY_CLUSTER_WARNING in r.getMessage() for r in records)
