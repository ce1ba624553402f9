"""
Загрузка и сохранение датасетов наблюдений.

Формат файла: CSV без заголовка, одно наблюдение в строке:
- точки: ``x,y``;
- цепочки ДНК: ``A,C,G,T,...``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Type

from dkmeans.core.observations import Observation, observation_type
from dkmeans.errors import DatasetError


def read_observations(path: str | Path, kind: str) -> List[Observation]:
    """
    Читает наблюдения вида ``kind`` из CSV-файла.

    Пустые строки пропускаются. Ошибка ввода-вывода или неразбираемая строка
    приводят к DatasetError с указанием файла и номера строки.
    """
    path = Path(path)
    observation_cls: Type[Observation] = observation_type(kind)
    observations: List[Observation] = []

    try:
        with open(path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    observations.append(observation_cls.from_csv(line))
                except ValueError as e:
                    raise DatasetError(f"{path}:{line_no}: cannot parse {kind} from {line!r}: {e}") from e
    except UnicodeDecodeError as e:
        raise DatasetError(f"Dataset {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise DatasetError(f"Cannot read dataset {path}: {e}") from e

    return observations


def write_observations(path: str | Path, observations: Iterable[Observation]) -> int:
    """Пишет наблюдения в CSV; возвращает число записанных строк."""
    path = Path(path)
    count = 0
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for obs in observations:
                f.write(obs.to_csv())
                f.write("\n")
                count += 1
    except OSError as e:
        raise DatasetError(f"Cannot write dataset {path}: {e}") from e
    return count


class Dataset:
    """
    Датасет для одного прогона кластеризации.

    Хранит путь, вид наблюдений и сами наблюдения.
    """

    def __init__(self, data_path: str | Path, kind: str) -> None:
        """
        Args:
            data_path: Путь к CSV-файлу
            kind: Вид наблюдений (``point`` или ``dna``)
        """
        self.data_path = Path(data_path)
        self.kind = kind
        self.observations: List[Observation] = []

        logging.getLogger(__name__).info(f"Loading dataset from {self.data_path}")
        self._load_data()

    def _load_data(self) -> None:
        self.observations = read_observations(self.data_path, self.kind)
        logging.getLogger(__name__).info(
            f"Dataset loaded: N={len(self.observations)}, kind={self.kind}"
        )

    def __len__(self) -> int:
        return len(self.observations)

    @property
    def n_distinct(self) -> int:
        return len(set(self.observations))

    @property
    def dataset_info(self) -> dict:
        return {"kind": self.kind, "N": len(self.observations)}

    @classmethod
    def from_observations(cls, observations: Sequence[Observation], kind: str) -> Dataset:
        """Датасет из уже готового списка наблюдений (без чтения файла)."""
        dataset = cls.__new__(cls)
        dataset.data_path = Path("<memory>")
        dataset.kind = kind
        dataset.observations = list(observations)
        return dataset
