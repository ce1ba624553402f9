"""
Окружение, в котором выполняется распределённый прогон.

Лаунчер строит топологию процессов и один раз выбирает роль каждого
участника (Coordinator или Worker):
- ``local``: воркеры — процессы multiprocessing, каналы — Pipe;
- ``threads``: воркеры — потоки, каналы — очереди (отладка и тесты);
- ``mpi``: процессы запускает mpirun, координатор — процесс ранга 0.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from multiprocessing import Pipe, Process
from multiprocessing.connection import Connection
from typing import Any, List, Optional, Sequence

import numpy as np

from dkmeans.core.base import ClusteringResult, TerminationPolicy
from dkmeans.core.distributed import Coordinator, Runnable, Worker
from dkmeans.core.observations import Observation
from dkmeans.errors import ConfigurationError
from dkmeans.metrics.timers import RunContext
from dkmeans.transport.channels import MPIChannel, PipeChannel, QueueChannel
from dkmeans.transport.messages import ResultFormat

COORDINATOR_RANK = 0

TRANSPORTS = ("local", "threads", "mpi")

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistributedConfig:
    """Параметры распределённого прогона."""

    n_workers: int = 4
    transport: str = "local"
    result_format: ResultFormat = ResultFormat.LABELS

    def __post_init__(self) -> None:
        if self.transport not in TRANSPORTS:
            raise ConfigurationError(
                f"Unknown transport {self.transport!r}; expected one of {TRANSPORTS}"
            )
        # Для MPI число воркеров задаёт mpirun
        if self.transport != "mpi" and self.n_workers < 1:
            raise ConfigurationError(f"n_workers must be >= 1, got {self.n_workers}")


def _worker_process_main(conn: Connection) -> None:
    """Точка входа процесса-воркера."""
    channel = PipeChannel(conn)
    try:
        Worker(channel).run()
    finally:
        channel.close()


def run_local(
    observations: Sequence[Observation],
    n_clusters: int,
    policy: TerminationPolicy,
    config: DistributedConfig = DistributedConfig(),
    initial_centroids: Sequence[Observation] | None = None,
    context: RunContext | None = None,
    rng: Optional[np.random.Generator] = None,
    logger: Any | None = None,
) -> ClusteringResult:
    """Координатор в текущем процессе, воркеры — дочерние процессы."""
    channels: List[PipeChannel] = []
    processes: List[Process] = []
    try:
        for i in range(config.n_workers):
            parent_conn, child_conn = Pipe(duplex=True)
            proc = Process(
                target=_worker_process_main,
                args=(child_conn,),
                name=f"dkmeans-worker-{i + 1}",
                daemon=True,
            )
            proc.start()
            # Родитель не держит конец воркера, иначе не увидит EOF при его падении
            child_conn.close()
            channels.append(PipeChannel(parent_conn))
            processes.append(proc)

        coordinator = Coordinator(
            observations,
            n_clusters,
            channels,
            policy,
            result_format=config.result_format,
            initial_centroids=initial_centroids,
            context=context,
            rng=rng,
            logger=logger,
        )
        return coordinator.run()
    finally:
        for channel in channels:
            channel.close()
        for proc in processes:
            proc.join()
            if proc.exitcode != 0:
                _log.warning(f"{proc.name} exited with code {proc.exitcode}")


def run_threaded(
    observations: Sequence[Observation],
    n_clusters: int,
    policy: TerminationPolicy,
    config: DistributedConfig = DistributedConfig(transport="threads"),
    initial_centroids: Sequence[Observation] | None = None,
    context: RunContext | None = None,
    rng: Optional[np.random.Generator] = None,
    logger: Any | None = None,
) -> ClusteringResult:
    """Та же топология внутри одного процесса: воркеры в потоках."""
    coordinator_ends: List[QueueChannel] = []
    threads: List[threading.Thread] = []
    worker_errors: List[BaseException] = []

    def serve(channel: QueueChannel) -> None:
        try:
            Worker(channel).run()
        except BaseException as e:
            worker_errors.append(e)
        finally:
            channel.close()

    try:
        for i in range(config.n_workers):
            coordinator_end, worker_end = QueueChannel.pair()
            thread = threading.Thread(
                target=serve, args=(worker_end,), name=f"dkmeans-worker-{i + 1}", daemon=True
            )
            thread.start()
            coordinator_ends.append(coordinator_end)
            threads.append(thread)

        coordinator = Coordinator(
            observations,
            n_clusters,
            coordinator_ends,
            policy,
            result_format=config.result_format,
            initial_centroids=initial_centroids,
            context=context,
            rng=rng,
            logger=logger,
        )
        result = coordinator.run()
    finally:
        for channel in coordinator_ends:
            channel.close()
        for thread in threads:
            thread.join()

    if worker_errors:
        raise worker_errors[0]
    return result


def select_role(
    comm: Any,
    observations: Sequence[Observation] | None,
    n_clusters: int,
    policy: TerminationPolicy,
    result_format: ResultFormat = ResultFormat.LABELS,
    initial_centroids: Sequence[Observation] | None = None,
    context: RunContext | None = None,
    rng: Optional[np.random.Generator] = None,
    logger: Any | None = None,
) -> Runnable:
    """Роль процесса по его рангу в коммуникаторе; вызывается один раз."""
    size = comm.Get_size()
    rank = comm.Get_rank()
    if size < 2:
        raise ConfigurationError(
            "MPI transport needs at least 2 processes (1 coordinator + workers)"
        )

    if rank == COORDINATOR_RANK:
        if observations is None:
            raise ConfigurationError("Coordinator rank must own the dataset")
        channels = [
            MPIChannel(comm, peer) for peer in range(size) if peer != COORDINATOR_RANK
        ]
        return Coordinator(
            observations,
            n_clusters,
            channels,
            policy,
            result_format=result_format,
            initial_centroids=initial_centroids,
            context=context,
            rng=rng,
            logger=logger,
        )
    return Worker(MPIChannel(comm, COORDINATOR_RANK), logger=logger)


def run_mpi(
    observations: Sequence[Observation] | None,
    n_clusters: int,
    policy: TerminationPolicy,
    config: DistributedConfig = DistributedConfig(transport="mpi"),
    initial_centroids: Sequence[Observation] | None = None,
    context: RunContext | None = None,
    rng: Optional[np.random.Generator] = None,
    logger: Any | None = None,
    comm: Any | None = None,
) -> ClusteringResult | None:
    """
    Прогон под mpirun.

    На ранге координатора возвращает ClusteringResult, на воркерах — None.
    Датасет нужен только координатору.
    """
    if comm is None:
        from mpi4py import MPI

        comm = MPI.COMM_WORLD

    role = select_role(
        comm,
        observations,
        n_clusters,
        policy,
        result_format=config.result_format,
        initial_centroids=initial_centroids,
        context=context,
        rng=rng,
        logger=logger,
    )
    outcome = role.run()
    return outcome if isinstance(role, Coordinator) else None


def is_coordinator_process(config: DistributedConfig) -> bool:
    """Должен ли текущий процесс читать датасет и печатать результат."""
    if config.transport != "mpi":
        return True
    from mpi4py import MPI

    return MPI.COMM_WORLD.Get_rank() == COORDINATOR_RANK
