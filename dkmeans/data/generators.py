"""
Генератор синтетических датасетов для k-means.

Создаёт хорошо разделимые наборы:
- точки на плоскости вокруг K центров (sklearn.make_blobs);
- цепочки ДНК вокруг K базовых цепочек: базовые цепочки удалены друг от
  друга не меньше чем на L/2, цепочка кластера отличается от своей базовой
  меньше чем на L/4 позиций.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

import numpy as np
from sklearn.datasets import make_blobs

from dkmeans.core.observations import ALPHABET, DNAStrand, Observation, Point
from dkmeans.errors import ConfigurationError


@dataclass
class GeneratorConfig:
    """Конфигурация параметров датасета."""

    n_clusters: int = 4
    per_cluster: int = 100
    strand_length: int = 20
    cluster_std: float = 1.0
    center_box_range: tuple[float, float] = (-50.0, 50.0)
    max_attempts: int = 10_000


@dataclass
class GeneratedDataset:
    """Контейнер для сгенерированных данных."""

    observations: List[Observation]
    labels: np.ndarray
    centers: List[Observation]
    metadata: dict[str, Any] = field(default_factory=dict)


class DatasetGenerator:
    """
    Генератор синтетических датасетов.

    Все случайные решения идут через один numpy.random.Generator,
    инициализированный ``base_seed``, поэтому результат воспроизводим.
    """

    def __init__(self, base_seed: int = 42) -> None:
        self.base_seed = base_seed
        self.rng = np.random.default_rng(base_seed)

    def generate(self, kind: str, config: GeneratorConfig) -> GeneratedDataset:
        if config.n_clusters <= 0 or config.per_cluster <= 0:
            raise ConfigurationError(
                f"n_clusters and per_cluster must be positive, got "
                f"{config.n_clusters} and {config.per_cluster}"
            )
        if kind == "point":
            return self.generate_points(config)
        if kind == "dna":
            return self.generate_strands(config)
        raise ConfigurationError(f"Cannot generate observations of kind {kind!r}")

    def generate_points(self, config: GeneratorConfig) -> GeneratedDataset:
        """
        Точки на плоскости вокруг ``n_clusters`` случайных центров.

        Returns:
            GeneratedDataset с точками, истинными метками и центрами
        """
        data, labels, centers = make_blobs(
            n_samples=config.n_clusters * config.per_cluster,
            n_features=2,
            centers=config.n_clusters,
            cluster_std=config.cluster_std,
            center_box=config.center_box_range,
            random_state=self.base_seed,
            return_centers=True,
        )
        return GeneratedDataset(
            observations=[Point(float(x), float(y)) for x, y in data],
            labels=labels,
            centers=[Point(float(x), float(y)) for x, y in centers],
            metadata={
                "kind": "point",
                "N": int(data.shape[0]),
                "K": config.n_clusters,
                "cluster_std": config.cluster_std,
                "seed": self.base_seed,
            },
        )

    # ---------- DNA ----------

    def random_strand(self, length: int) -> DNAStrand:
        codes = self.rng.integers(len(ALPHABET), size=length)
        return DNAStrand(tuple(ALPHABET[int(c)] for c in codes))

    def mutate(self, base: DNAStrand, threshold: int) -> DNAStrand:
        """
        Цепочка, отличающаяся от ``base`` не более чем в ``threshold - 1``
        позициях: threshold - 1 раз заменяем случайную позицию другим
        нуклеотидом (позиции могут повторяться).
        """
        bases = list(base.bases)
        for _ in range(1, threshold):
            pos = int(self.rng.integers(len(bases)))
            others = [b for b in ALPHABET if b != bases[pos]]
            bases[pos] = others[int(self.rng.integers(len(others)))]
        return DNAStrand(tuple(bases))

    def generate_strands(self, config: GeneratorConfig) -> GeneratedDataset:
        length = config.strand_length
        # При L < 8 порог L/4 равен 1 и mutate не меняет ни одной позиции
        if length < 8:
            raise ConfigurationError(
                f"strand_length must be >= 8 so cluster members can differ from "
                f"their base strand, got {length}"
            )
        base_threshold = length // 2
        member_threshold = base_threshold // 2

        base_strands: List[DNAStrand] = []
        for _ in range(config.n_clusters):
            base_strands.append(self._far_base_strand(base_strands, length, base_threshold, config))

        observations: List[Observation] = []
        labels: List[int] = []
        for cluster_idx, base in enumerate(base_strands):
            members = self._cluster_members(base, member_threshold, config)
            observations.extend(members)
            labels.extend([cluster_idx] * len(members))

        return GeneratedDataset(
            observations=observations,
            labels=np.array(labels, dtype=np.int32),
            centers=list(base_strands),
            metadata={
                "kind": "dna",
                "N": len(observations),
                "K": config.n_clusters,
                "L": length,
                "base_threshold": base_threshold,
                "member_threshold": member_threshold,
                "seed": self.base_seed,
            },
        )

    def _far_base_strand(
        self,
        existing: List[DNAStrand],
        length: int,
        threshold: int,
        config: GeneratorConfig,
    ) -> DNAStrand:
        for _ in range(config.max_attempts):
            candidate = self.random_strand(length)
            if all(candidate.distance(other) >= threshold for other in existing):
                return candidate
        raise ConfigurationError(
            f"Could not place base strand #{len(existing) + 1} at distance >= {threshold} "
            f"from the others after {config.max_attempts} attempts; "
            f"use longer strands or fewer clusters"
        )

    def _cluster_members(
        self, base: DNAStrand, threshold: int, config: GeneratorConfig
    ) -> List[DNAStrand]:
        # Базовая цепочка всегда первая в кластере
        members = [base]
        seen = {base}
        collisions = 0
        while len(members) < config.per_cluster:
            if collisions >= config.max_attempts:
                raise ConfigurationError(
                    f"Could not generate {config.per_cluster} distinct strands "
                    f"within distance {threshold} of the base strand"
                )
            strand = self.mutate(base, threshold)
            if strand in seen:
                collisions += 1
                continue
            collisions = 0
            seen.add(strand)
            members.append(strand)
        return members
