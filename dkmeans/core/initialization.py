"""Выбор начальных центроидов случайной выборкой без возвращения."""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from dkmeans.core.observations import Observation
from dkmeans.errors import InitializationError


def default_max_attempts(n_observations: int, k: int) -> int:
    return max(100, 10 * k * n_observations)


def initial_centroids(
    observations: Sequence[Observation],
    k: int,
    rng: Optional[np.random.Generator] = None,
    max_attempts: Optional[int] = None,
) -> List[Observation]:
    """
    Выбирает k различных наблюдений датасета в качестве начальных центроидов.

    Индексы выбираются равновероятно; если выпало наблюдение, равное по
    значению уже выбранному центроиду, выбор повторяется. Общее число
    розыгрышей ограничено ``max_attempts``: датасет, в котором меньше k
    различных значений, приводит к InitializationError, а не к зависанию.

    :param observations: полный датасет
    :param k: число кластеров
    :param rng: генератор случайных чисел (для воспроизводимости)
    :param max_attempts: лимит розыгрышей индексов
    :return: список из k центроидов
    """
    n = len(observations)
    if k <= 0:
        raise InitializationError(f"Number of clusters must be positive, got k={k}")
    if k > n:
        raise InitializationError(
            f"Number of clusters k={k} exceeds dataset size N={n}"
        )

    rng = rng if rng is not None else np.random.default_rng()
    limit = max_attempts if max_attempts is not None else default_max_attempts(n, k)

    centroids: List[Observation] = []
    chosen = set()
    attempts = 0
    while len(centroids) < k:
        if attempts >= limit:
            raise InitializationError(
                f"Could not pick {k} distinct centroids after {attempts} draws; "
                f"only {len(centroids)} distinct values found"
            )
        attempts += 1
        candidate = observations[int(rng.integers(n))]
        if candidate in chosen:
            continue
        chosen.add(candidate)
        centroids.append(candidate)

    return centroids
