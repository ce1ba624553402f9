"""
Валидация датасета перед запуском кластеризации.

Модуль проверяет соответствие наблюдений заявленному виду и параметрам
прогона.
"""

from __future__ import annotations

from dkmeans.core.observations import DNAStrand, observation_type
from dkmeans.data.dataset import Dataset
from dkmeans.errors import DatasetError


def validate_dataset(dataset: Dataset, k: int | None = None) -> None:
    """
    Проверяет корректность загруженного датасета.

    - датасет не пуст;
    - все наблюдения одного вида, цепочки ДНК одной длины;
    - если задан ``k``: k не превышает размер датасета.

    Число различных значений не проверяется: k больше него приводит к
    InitializationError при выборе начальных центроидов.

    Raises:
        DatasetError: Если датасет не проходит проверку
    """
    observations = dataset.observations
    if not observations:
        raise DatasetError(f"Dataset {dataset.data_path} is empty")

    expected_cls = observation_type(dataset.kind)
    for idx, obs in enumerate(observations):
        if not isinstance(obs, expected_cls):
            raise DatasetError(
                f"Observation #{idx} is {type(obs).__name__}, expected {expected_cls.__name__}"
            )

    if expected_cls is DNAStrand:
        lengths = {len(obs) for obs in observations}
        if len(lengths) > 1:
            raise DatasetError(f"DNA strands have different lengths: {sorted(lengths)}")

    if k is not None and k > len(observations):
        raise DatasetError(
            f"Expected k <= N, got k={k} for N={len(observations)}"
        )
