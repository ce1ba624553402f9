"""
Распределённый k-means в схеме координатор/воркеры.

Координатор владеет всем датасетом, один раз делит его на непрерывные
партиции и рассылает их воркерам, после чего ведёт раунды:
рассылка центроидов → сбор назначений → пересчёт → проверка завершения.
По окончании каждому воркеру отправляется Completed.

Воркер только назначает: получает партицию один раз, затем на каждую
рассылку центроидов отвечает назначением своих наблюдений.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from dkmeans.core.base import (
    ClusterMap,
    ClusteringBase,
    ClusteringResult,
    TerminationPolicy,
    build_cluster_map,
    nearest_centroids,
)
from dkmeans.core.observations import Observation
from dkmeans.errors import ConfigurationError, ProtocolError, TransportError
from dkmeans.metrics.timers import RunContext
from dkmeans.transport.channels import Channel
from dkmeans.transport.messages import (
    AssignmentResult,
    Centroids,
    Completed,
    Partition,
    ResultFormat,
)

_log = logging.getLogger(__name__)


class Runnable(Protocol):
    """Роль процесса в распределённом прогоне."""

    def run(self) -> Any: ...


def partition(
    observations: Sequence[Observation], n_workers: int
) -> List[Tuple[Observation, ...]]:
    """
    Делит датасет на ``n_workers`` непрерывных партиций.

    Размер партиции — ceil(N / n_workers), остаток достаётся последней
    непустой партиции. Воркеры за концом датасета получают пустую партицию,
    чтобы каждый воркер получил ровно одно сообщение Partition.
    """
    if n_workers <= 0:
        raise ConfigurationError(f"Number of workers must be positive, got {n_workers}")

    n = len(observations)
    split_size = math.ceil(n / n_workers)
    parts: List[Tuple[Observation, ...]] = []
    for i in range(n_workers):
        start = min(i * split_size, n)
        end = min(start + split_size, n)
        parts.append(tuple(observations[start:end]))
    return parts


def result_format_for_kind(kind: str) -> ResultFormat:
    """Цепочки ДНК возвращают индексы, точки — сгруппированные списки."""
    return ResultFormat.GROUPS if kind == "point" else ResultFormat.LABELS


class Coordinator(ClusteringBase):
    """Роль координатора: владеет датасетом и центроидами, ведёт раунды."""

    def __init__(
        self,
        observations: Sequence[Observation],
        n_clusters: int,
        channels: Sequence[Channel],
        policy: TerminationPolicy,
        result_format: ResultFormat = ResultFormat.LABELS,
        initial_centroids: Sequence[Observation] | None = None,
        context: RunContext | None = None,
        rng: Optional[np.random.Generator] = None,
        logger: Any | None = None,
    ) -> None:
        super().__init__(n_clusters=n_clusters, policy=policy, rng=rng, logger=logger)
        if not channels:
            raise ConfigurationError("Coordinator needs at least one worker channel")
        self.observations = list(observations)
        self.channels = list(channels)
        self.result_format = result_format
        self.initial_centroids = initial_centroids
        self.context = context

        self._partitions: List[Tuple[Observation, ...]] = []

    def run(self) -> ClusteringResult:
        return self.fit(self.observations, self.initial_centroids, self.context)

    def fit(
        self,
        observations: Sequence[Observation],
        initial_centroids: Sequence[Observation] | None = None,
        context: RunContext | None = None,
    ) -> ClusteringResult:
        """fit с гарантированной рассылкой Completed всем воркерам."""
        try:
            result = super().fit(observations, initial_centroids, context)
        except BaseException:
            self._broadcast_completion(best_effort=True)
            raise
        self._broadcast_completion()
        return result

    # ---------- Partition (once per run) ----------

    def start(self, observations: Sequence[Observation]) -> None:
        self._partitions = partition(observations, len(self.channels))
        for worker_idx, (channel, part) in enumerate(
            zip(self.channels, self._partitions), start=1
        ):
            self.logger.debug(f"Sending partition of {len(part)} observations to worker {worker_idx}")
            channel.send(Partition(part))

    # ---------- Broadcast + collect ----------

    def assign_round(self, round_idx: int, centroids: List[Observation]) -> ClusterMap:
        message = Centroids(round_idx, tuple(centroids), self.result_format)
        for channel in self.channels:
            channel.send(message)

        cluster_map: ClusterMap = {idx: [] for idx in range(len(centroids))}
        for worker_idx, (channel, part) in enumerate(
            zip(self.channels, self._partitions), start=1
        ):
            reply = channel.recv()
            self._check_reply(worker_idx, reply, round_idx, part)
            self._merge(cluster_map, reply, part)
        return cluster_map

    def _check_reply(
        self,
        worker_idx: int,
        reply: Any,
        round_idx: int,
        part: Tuple[Observation, ...],
    ) -> None:
        if not isinstance(reply, AssignmentResult):
            raise ProtocolError(
                f"Worker {worker_idx} sent {type(reply).__name__}, expected AssignmentResult"
            )
        if reply.round != round_idx:
            raise ProtocolError(
                f"Worker {worker_idx} answered round {reply.round} during round {round_idx}"
            )
        if reply.size != len(part):
            raise ProtocolError(
                f"Worker {worker_idx} assigned {reply.size} observations, "
                f"its partition holds {len(part)}"
            )

    @staticmethod
    def _merge(
        cluster_map: ClusterMap,
        reply: AssignmentResult,
        part: Tuple[Observation, ...],
    ) -> None:
        # (индекс центроида, группа наблюдений) для обоих форматов ответа
        if reply.labels is not None:
            pairs = zip(reply.labels, ((obs,) for obs in part))
        else:
            pairs = sorted(reply.groups.items())
        for idx, group in pairs:
            if idx not in cluster_map:
                raise ProtocolError(f"Assignment to unknown centroid index {idx}")
            cluster_map[idx].extend(group)

    # ---------- Completion ----------

    def _broadcast_completion(self, best_effort: bool = False) -> None:
        for worker_idx, channel in enumerate(self.channels, start=1):
            try:
                channel.send(Completed())
            except TransportError as e:
                if not best_effort:
                    raise
                self.logger.warning(f"Worker {worker_idx} unreachable on completion: {e}")


class Worker:
    """Роль воркера: назначает наблюдения своей партиции ближайшим центроидам."""

    def __init__(self, channel: Channel, logger: Any | None = None) -> None:
        self.channel = channel
        self.logger = logger if logger is not None else _log
        self.partition: Tuple[Observation, ...] = ()

    def run(self) -> int:
        """
        Обслуживает координатора до получения Completed.

        :return: количество обслуженных раундов
        """
        first = self.channel.recv()
        if isinstance(first, Completed):
            return 0
        if not isinstance(first, Partition):
            raise ProtocolError(
                f"Expected Partition as the first message, got {type(first).__name__}"
            )
        self.partition = first.observations
        self.logger.debug(f"Received partition of {len(self.partition)} observations")

        rounds = 0
        while True:
            message = self.channel.recv()
            if isinstance(message, Completed):
                break
            if not isinstance(message, Centroids):
                raise ProtocolError(
                    f"Expected Centroids or Completed, got {type(message).__name__}"
                )
            self.channel.send(self.assign(message))
            rounds += 1

        self.logger.debug(f"Completed after {rounds} rounds")
        return rounds

    def assign(self, message: Centroids) -> AssignmentResult:
        labels = nearest_centroids(self.partition, message.centroids)
        if message.result_format == ResultFormat.GROUPS:
            cluster_map = build_cluster_map(self.partition, labels, len(message.centroids))
            groups = {idx: group for idx, group in cluster_map.items() if group}
            return AssignmentResult(message.round, groups=groups)
        return AssignmentResult(message.round, labels=labels)
