from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from dkmeans.core.initialization import initial_centroids as pick_initial_centroids
from dkmeans.core.observations import Observation
from dkmeans.errors import InitializationError
from dkmeans.metrics.timers import RunContext, Timer

# Номер кластера → наблюдения, отнесённые к нему в текущем раунде
ClusterMap = Dict[int, List[Observation]]

DEFAULT_ROUNDS = 100

EMPTY_CLUSTER_WARNING = (
    "There exists a cluster centroid with no points assigned to it. "
    "You may end up with fewer clusters than expected."
)


def nearest_centroids(
    observations: Sequence[Observation], centroids: Sequence[Observation]
) -> List[int]:
    """
    Индекс ближайшего центроида для каждого наблюдения.

    При равных расстояниях выигрывает центроид, встретившийся первым
    (np.argmin возвращает первый минимум).
    """
    if not observations:
        return []
    distances = type(observations[0]).distance_matrix(observations, centroids)
    return [int(i) for i in np.argmin(distances, axis=1)]


def build_cluster_map(
    observations: Sequence[Observation], labels: Sequence[int], n_centroids: int
) -> ClusterMap:
    """Группирует наблюдения по индексу центроида; пустые группы сохраняются."""
    cluster_map: ClusterMap = {idx: [] for idx in range(n_centroids)}
    for obs, label in zip(observations, labels):
        cluster_map[label].append(obs)
    return cluster_map


def recompute_centroids(
    cluster_map: ClusterMap,
    observation_cls: Type[Observation],
    logger: Any | None = None,
) -> Tuple[List[Observation], List[int]]:
    """
    Пересчитывает центроиды по сгруппированным наблюдениям.

    Пустые группы пропускаются с предупреждением, поэтому кластеров может
    стать меньше k.

    :return: (новые центроиды, размеры породивших их групп)
    """
    centroids: List[Observation] = []
    sizes: List[int] = []
    for idx in sorted(cluster_map):
        group = cluster_map[idx]
        if not group:
            if logger:
                logger.warning(f"{EMPTY_CLUSTER_WARNING} (cluster index {idx})")
            continue
        centroids.append(observation_cls.aggregate(group))
        sizes.append(len(group))
    return centroids, sizes


def centroids_contained(
    old: Sequence[Observation], new: Sequence[Observation]
) -> bool:
    """Новый набор центроидов является подмножеством старого."""
    return set(new) <= set(old)


class TerminationPolicy(ABC):
    """Решение о завершении итераций после очередного раунда."""

    @abstractmethod
    def should_stop(
        self,
        round_idx: int,
        old: Sequence[Observation],
        new: Sequence[Observation],
    ) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class FixedRounds(TerminationPolicy):
    """Ровно ``rounds`` раундов независимо от сдвига центроидов."""

    rounds: int = DEFAULT_ROUNDS

    def __post_init__(self) -> None:
        if self.rounds <= 0:
            raise ValueError(f"rounds must be positive, got {self.rounds}")

    def should_stop(self, round_idx, old, new) -> bool:
        return round_idx >= self.rounds


@dataclass(frozen=True)
class CentroidContainment(TerminationPolicy):
    """
    Остановка, когда новый набор центроидов ⊆ старого (ни один не сдвинулся).

    Сравнение идёт по множествам, а не по индексам. ``max_rounds``:
    необязательный верхний предел числа раундов.
    """

    max_rounds: Optional[int] = None

    def should_stop(self, round_idx, old, new) -> bool:
        if centroids_contained(old, new):
            return True
        return self.max_rounds is not None and round_idx >= self.max_rounds


def policy_for_kind(kind: str, rounds: Optional[int] = None) -> TerminationPolicy:
    """
    Политика завершения по умолчанию для вида наблюдений.

    - ``dna``: фиксированное число раундов (100, если не задано);
    - ``point``: до сходимости по вложению, ``rounds`` — предел раундов.
    """
    if kind == "dna":
        return FixedRounds(rounds if rounds is not None else DEFAULT_ROUNDS)
    if kind == "point":
        return CentroidContainment(max_rounds=rounds)
    raise ValueError(f"No termination policy for observation kind {kind!r}")


@dataclass
class ClusteringResult:
    """Итог одного прогона кластеризации."""

    centroids: List[Observation]
    cluster_sizes: List[int]
    n_rounds: int
    converged: bool
    elapsed: float
    t_assign_total: float = 0.0
    t_update_total: float = 0.0
    t_iter_total: float = 0.0
    extra: Dict[str, Any] = field(default_factory=dict)

    def labels_for(self, observations: Sequence[Observation]) -> List[int]:
        """Разбиение датасета, индуцированное итоговыми центроидами."""
        return nearest_centroids(observations, self.centroids)


class ClusteringBase(ABC):
    """
    Базовый класс движков кластеризации.

    Отвечает за цикл раундов, политику завершения и сбор таймингов:
    - T_назначения: время шага assign_round (для распределённого движка —
      рассылка центроидов и сбор ответов воркеров);
    - T_обновления: время пересчёта центроидов;
    - T_итерации: сумма двух предыдущих.
    """

    def __init__(
        self,
        n_clusters: int,
        policy: TerminationPolicy,
        rng: Optional[np.random.Generator] = None,
        logger: Any | None = None,
    ):
        self.K = n_clusters
        self.policy = policy
        self.rng = rng
        self.logger = logger if logger is not None else logging.getLogger(__name__)

        self.centroids: List[Observation] | None = None

        # агрегированные тайминги за один вызов fit(...)
        self.t_assign_total: float = 0.0
        self.t_update_total: float = 0.0
        self.t_iter_total: float = 0.0

        self.n_rounds: int = 0

    def fit(
        self,
        observations: Sequence[Observation],
        initial_centroids: Sequence[Observation] | None = None,
        context: RunContext | None = None,
    ) -> ClusteringResult:
        """
        Основной цикл k-means: назначение → пересчёт → проверка завершения.

        Если ``initial_centroids`` не переданы, они выбираются случайно из
        датасета. Время прогона читается из ``context`` по завершении.
        """
        context = context if context is not None else RunContext()
        if not observations:
            raise InitializationError("Cannot cluster an empty dataset")

        if initial_centroids is None:
            self.centroids = pick_initial_centroids(observations, self.K, rng=self.rng)
        else:
            self.centroids = list(initial_centroids)
        observation_cls = type(observations[0])

        # сбрасываем накопленные тайминги для нового запуска
        self.t_assign_total = 0.0
        self.t_update_total = 0.0
        self.t_iter_total = 0.0
        self.n_rounds = 0

        sizes: List[int] = []
        converged = False

        self.start(observations)
        while True:
            round_idx = self.n_rounds + 1
            old_centroids = list(self.centroids)

            with Timer() as t_assign:
                cluster_map = self.assign_round(round_idx, old_centroids)
            with Timer() as t_update:
                new_centroids, sizes = recompute_centroids(
                    cluster_map, observation_cls, self.logger
                )

            self.t_assign_total += t_assign.elapsed
            self.t_update_total += t_update.elapsed
            self.t_iter_total += t_assign.elapsed + t_update.elapsed
            self.n_rounds = round_idx

            converged = centroids_contained(old_centroids, new_centroids)
            stop = self.policy.should_stop(round_idx, old_centroids, new_centroids)

            if round_idx == 1 or round_idx % 10 == 0 or stop:
                status = " (converged)" if converged else ""
                self.logger.info(
                    f"  Round {round_idx}{status} "
                    f"(clusters={len(new_centroids)}, "
                    f"T_assign={t_assign.elapsed:.6f}s, "
                    f"T_update={t_update.elapsed:.6f}s)"
                )

            self.centroids = new_centroids
            if stop:
                break

        return ClusteringResult(
            centroids=list(self.centroids),
            cluster_sizes=sizes,
            n_rounds=self.n_rounds,
            converged=converged,
            elapsed=context.elapsed(),
            t_assign_total=self.t_assign_total,
            t_update_total=self.t_update_total,
            t_iter_total=self.t_iter_total,
        )

    def start(self, observations: Sequence[Observation]) -> None:
        """Подготовка перед первым раундом."""

    @abstractmethod
    def assign_round(
        self, round_idx: int, centroids: List[Observation]
    ) -> ClusterMap:
        """Шаг назначения наблюдений ближайшим центроидам."""
        raise NotImplementedError
