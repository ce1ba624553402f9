import logging
from typing import Any, Dict, Optional, Sequence

import numpy as np

from dkmeans.core.base import ClusteringResult, TerminationPolicy, policy_for_kind
from dkmeans.core.distributed import result_format_for_kind
from dkmeans.core.initialization import initial_centroids as pick_initial_centroids
from dkmeans.core.observations import Observation
from dkmeans.core.sequential import SequentialClustering
from dkmeans.errors import ConfigurationError
from dkmeans.launcher import DistributedConfig, run_local, run_mpi, run_threaded
from dkmeans.metrics.metrics import efficiency, speedup, throughput
from dkmeans.metrics.timers import RunContext
from dkmeans.utils.logging import PrefixedLogger, format_run_prefix

MODES = ("sequential", "parallel")


class ClusteringRunner:
    """
    Запускает кластеризацию одного датасета в выбранном режиме.

    Ожидается, что снаружи будет передан:
    - dataset: экземпляр Dataset (на воркерах MPI — None)
    - n_clusters: число кластеров k
    """

    def __init__(
        self,
        dataset: Any,
        n_clusters: int,
        kind: str,
        logger: logging.Logger | None = None,
    ) -> None:
        self.dataset = dataset
        self.n_clusters = n_clusters
        self.kind = kind
        self.logger = logger

    def _prefixed(self, mode: str) -> PrefixedLogger:
        meta: Dict[str, Any] = {
            "kind": self.kind,
            "k": self.n_clusters,
            "N": len(self.dataset) if self.dataset is not None else "?",
            "mode": mode,
        }
        base = self.logger if self.logger is not None else logging.getLogger("dkmeans")
        return PrefixedLogger(base, format_run_prefix(meta))

    @property
    def observations(self) -> Optional[Sequence[Observation]]:
        return self.dataset.observations if self.dataset is not None else None

    def policy(self, rounds: Optional[int] = None) -> TerminationPolicy:
        return policy_for_kind(self.kind, rounds)

    def run(
        self,
        mode: str,
        config: DistributedConfig | None = None,
        rounds: Optional[int] = None,
        seed: Optional[int] = None,
        initial_centroids: Sequence[Observation] | None = None,
        context: RunContext | None = None,
    ) -> Optional[ClusteringResult]:
        """
        Один прогон k-means.

        :param mode: ``sequential`` или ``parallel``
        :param config: параметры распределённого режима
        :param rounds: число раундов (dna) или их предел (point)
        :param seed: seed для выбора начальных центроидов
        :return: результат; None на воркерах MPI
        """
        if mode not in MODES:
            raise ConfigurationError(f"Unknown mode {mode!r}; expected one of {MODES}")

        policy = self.policy(rounds)
        rng = np.random.default_rng(seed)
        context = context if context is not None else RunContext(label=mode)
        logger = self._prefixed(mode)

        if mode == "sequential":
            logger.info(f"Starting sequential clustering, policy={policy}")
            engine = SequentialClustering(self.n_clusters, policy, rng=rng, logger=logger)
            result = engine.fit(self.observations, initial_centroids, context)
        else:
            config = config if config is not None else DistributedConfig(
                result_format=result_format_for_kind(self.kind)
            )
            logger.info(
                f"Starting distributed clustering, transport={config.transport}, "
                f"workers={config.n_workers}, result_format={config.result_format.value}, "
                f"policy={policy}"
            )
            launch = {"local": run_local, "threads": run_threaded, "mpi": run_mpi}[config.transport]
            result = launch(
                self.observations,
                self.n_clusters,
                policy,
                config=config,
                initial_centroids=initial_centroids,
                context=context,
                rng=rng,
                logger=logger,
            )

        if result is not None:
            logger.info(
                f"Finished: rounds={result.n_rounds}, clusters={len(result.centroids)}, "
                f"converged={result.converged}, elapsed={result.elapsed:.6f}s"
            )
        return result

    def benchmark(
        self,
        config: DistributedConfig,
        rounds: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Сравнивает последовательный и распределённый режимы.

        Оба прогона стартуют с одних и тех же начальных центроидов, поэтому
        должны дать одинаковые размеры кластеров.
        """
        if config.transport == "mpi":
            raise ConfigurationError("benchmark runs local transports only")

        rng = np.random.default_rng(seed)
        start = pick_initial_centroids(self.observations, self.n_clusters, rng=rng)

        sequential = self.run("sequential", rounds=rounds, initial_centroids=start)
        parallel = self.run("parallel", config=config, rounds=rounds, initial_centroids=start)

        s = speedup(sequential.elapsed, parallel.elapsed)
        stats: Dict[str, Any] = {
            "T_sequential": sequential.elapsed,
            "T_parallel": parallel.elapsed,
            "rounds_sequential": sequential.n_rounds,
            "rounds_parallel": parallel.n_rounds,
            "n_workers": config.n_workers,
            "speedup": s,
            "efficiency": efficiency(s, config.n_workers),
            "throughput_parallel": throughput(
                len(self.observations), self.n_clusters, parallel.n_rounds, parallel.elapsed
            ),
            "same_cluster_sizes": sorted(sequential.cluster_sizes)
            == sorted(parallel.cluster_sizes),
        }

        self._prefixed("benchmark").info(
            f"speedup={stats['speedup']:.3f}, efficiency={stats['efficiency']:.3f}, "
            f"same_cluster_sizes={stats['same_cluster_sizes']}"
        )
        return stats
