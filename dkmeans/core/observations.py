"""
Наблюдения, которые умеет кластеризовать движок.

Любой кластеризуемый элемент обязан уметь две вещи:
- считать неотрицательное симметричное расстояние до наблюдения того же вида;
- участвовать в агрегации группы наблюдений в представителя (центроид).

Реализованы два вида:
- Point — точка на плоскости, агрегация = покоординатное среднее;
- DNAStrand — цепочка ДНК фиксированной длины, агрегация = голосование
  большинством по каждой позиции.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Sequence, Type, TypeVar

import numpy as np

from dkmeans.errors import EmptyClusterError

T = TypeVar("T", bound="Observation")


class Observation(ABC):
    """Базовый контракт кластеризуемого наблюдения."""

    kind: ClassVar[str] = ""

    @abstractmethod
    def distance(self, other: Observation) -> float:
        """Расстояние до другого наблюдения того же вида."""
        raise NotImplementedError

    @classmethod
    @abstractmethod
    def aggregate(cls: Type[T], group: Sequence[T]) -> T:
        """Представитель непустой группы наблюдений."""
        raise NotImplementedError

    @abstractmethod
    def to_csv(self) -> str:
        raise NotImplementedError

    @classmethod
    @abstractmethod
    def from_csv(cls: Type[T], line: str) -> T:
        raise NotImplementedError

    @classmethod
    def distance_matrix(
        cls, observations: Sequence[Observation], centroids: Sequence[Observation]
    ) -> np.ndarray:
        """
        Матрица расстояний (N, K) между наблюдениями и центроидами.

        Наивная реализация через distance(); наследники переопределяют её
        векторизованной версией на NumPy.
        """
        distances = np.empty((len(observations), len(centroids)), dtype=np.float64)
        for i, obs in enumerate(observations):
            for j, centroid in enumerate(centroids):
                distances[i, j] = obs.distance(centroid)
        return distances


def _require_non_empty(group: Sequence[Observation]) -> None:
    if len(group) == 0:
        raise EmptyClusterError("Cannot aggregate an empty group of observations")


@dataclass(frozen=True)
class Point(Observation):
    """Точка на плоскости с вещественными координатами."""

    kind: ClassVar[str] = "point"

    x: float
    y: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))

    def distance(self, other: Observation) -> float:
        if not isinstance(other, Point):
            raise TypeError(f"Cannot measure distance between Point and {type(other).__name__}")
        dx = self.x - other.x
        dy = self.y - other.y
        return float(np.sqrt(dx * dx + dy * dy))

    @classmethod
    def aggregate(cls, group: Sequence[Point]) -> Point:
        _require_non_empty(group)
        coords = np.array([(p.x, p.y) for p in group], dtype=np.float64)
        # Среднее отклонений от первой точки: группа равных точек даёт ровно эту точку
        base = coords[0]
        mean = base + (coords - base).mean(axis=0)
        return cls(float(mean[0]), float(mean[1]))

    @classmethod
    def distance_matrix(
        cls, observations: Sequence[Point], centroids: Sequence[Point]
    ) -> np.ndarray:
        # (N, 1, 2) - (1, K, 2) → (N, K)
        X = np.array([(p.x, p.y) for p in observations], dtype=np.float64).reshape(-1, 2)
        C = np.array([(c.x, c.y) for c in centroids], dtype=np.float64).reshape(-1, 2)
        diff = X[:, None, :] - C[None, :, :]
        return np.sqrt(np.sum(diff * diff, axis=2))

    def to_csv(self) -> str:
        return f"{self.x!r},{self.y!r}"

    @classmethod
    def from_csv(cls, line: str) -> Point:
        parts = line.strip().split(",")
        if len(parts) != 2:
            raise ValueError(f"Expected 2 coordinates, got {len(parts)}: {line!r}")
        x, y = float(parts[0]), float(parts[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Coordinates must be finite, got {line!r}")
        return cls(x, y)

    def __str__(self) -> str:
        return f"x coordinate: {self.x} y coordinate: {self.y}"


class DNABase(str, Enum):
    """Алфавит нуклеотидов. Порядок членов задаёт разрешение ничьих."""

    A = "A"
    C = "C"
    G = "G"
    T = "T"


# Порядок перечисления фиксирован: при равенстве частот побеждает первый.
ALPHABET: tuple[DNABase, ...] = tuple(DNABase)
_BASE_CODES = {base: code for code, base in enumerate(ALPHABET)}


@dataclass(frozen=True)
class DNAStrand(Observation):
    """
    Цепочка ДНК фиксированной длины.

    Расстояние: количество несовпадающих позиций (метрика Хэмминга),
    центроид группы: нуклеотид-победитель по числу вхождений в каждой
    позиции.
    """

    kind: ClassVar[str] = "dna"

    bases: tuple[DNABase, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "bases", tuple(DNABase(b) for b in self.bases))

    def __len__(self) -> int:
        return len(self.bases)

    def codes(self) -> np.ndarray:
        """Позиции нуклеотидов в ALPHABET."""
        return np.fromiter((_BASE_CODES[b] for b in self.bases), dtype=np.int8, count=len(self.bases))

    def distance(self, other: Observation) -> float:
        if not isinstance(other, DNAStrand):
            raise TypeError(f"Cannot measure distance between DNAStrand and {type(other).__name__}")
        if len(self) != len(other):
            raise ValueError(
                f"Strand length mismatch: {len(self)} != {len(other)}"
            )
        return float(sum(1 for a, b in zip(self.bases, other.bases) if a != b))

    @classmethod
    def aggregate(cls, group: Sequence[DNAStrand]) -> DNAStrand:
        _require_non_empty(group)
        codes = np.stack([s.codes() for s in group])  # (n, L)
        # (|ALPHABET|, L): сколько раз каждый нуклеотид встретился в позиции
        counts = np.stack([(codes == code).sum(axis=0) for code in range(len(ALPHABET))])
        # argmax возвращает первый максимум, т.е. первый член ALPHABET
        winners = np.argmax(counts, axis=0)
        return cls(tuple(ALPHABET[int(code)] for code in winners))

    @classmethod
    def distance_matrix(
        cls, observations: Sequence[DNAStrand], centroids: Sequence[DNAStrand]
    ) -> np.ndarray:
        if not observations or not centroids:
            return np.zeros((len(observations), len(centroids)), dtype=np.float64)
        X = np.stack([s.codes() for s in observations])
        C = np.stack([c.codes() for c in centroids])
        if X.shape[1] != C.shape[1]:
            raise ValueError(
                f"Strand length mismatch: {X.shape[1]} != {C.shape[1]}"
            )
        return np.sum(X[:, None, :] != C[None, :, :], axis=2).astype(np.float64)

    def to_csv(self) -> str:
        return ",".join(b.value for b in self.bases)

    @classmethod
    def from_csv(cls, line: str) -> DNAStrand:
        return cls(tuple(DNABase(token.strip()) for token in line.strip().split(",")))

    def __str__(self) -> str:
        return self.to_csv()


OBSERVATION_KINDS: dict[str, Type[Observation]] = {
    Point.kind: Point,
    DNAStrand.kind: DNAStrand,
}


def observation_type(kind: str) -> Type[Observation]:
    """Класс наблюдения по имени вида (``point`` или ``dna``)."""
    try:
        return OBSERVATION_KINDS[kind]
    except KeyError:
        raise ValueError(
            f"Unknown observation kind {kind!r}; expected one of {sorted(OBSERVATION_KINDS)}"
        ) from None
