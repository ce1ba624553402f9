"""
Сообщения протокола координатор ↔ воркер.

Каждое сообщение несёт дискриминатор ``kind``; для MPI-транспорта он же
используется как тег сообщения.

Порядок обмена для пары координатор/воркер в рамках прогона:
Partition (один раз) → {Centroids → AssignmentResult}* → Completed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, ClassVar, Dict, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from dkmeans.core.observations import Observation


class MessageKind(IntEnum):
    CENTROIDS = 1
    PARTITION = 2
    RESULT = 3
    COMPLETED = 4


class ResultFormat(str, Enum):
    """Форма ответа воркера."""

    LABELS = "labels"  # индекс центроида для каждого наблюдения партиции
    GROUPS = "groups"  # индекс центроида → наблюдения партиции


@dataclass(frozen=True)
class Centroids:
    kind: ClassVar[MessageKind] = MessageKind.CENTROIDS

    round: int
    centroids: Tuple[Observation, ...]
    result_format: ResultFormat = ResultFormat.LABELS


@dataclass(frozen=True)
class Partition:
    kind: ClassVar[MessageKind] = MessageKind.PARTITION

    observations: Tuple[Observation, ...]


@dataclass(frozen=True)
class AssignmentResult:
    """
    Ответ воркера на рассылку центроидов.

    Заполнено ровно одно из полей: ``labels`` или ``groups``.
    """

    kind: ClassVar[MessageKind] = MessageKind.RESULT

    round: int
    labels: Optional[List[int]] = None
    groups: Optional[Dict[int, List[Observation]]] = None

    def __post_init__(self) -> None:
        if (self.labels is None) == (self.groups is None):
            raise ValueError("AssignmentResult needs exactly one of labels or groups")

    @property
    def size(self) -> int:
        """Сколько наблюдений партиции покрывает ответ."""
        if self.labels is not None:
            return len(self.labels)
        return sum(len(group) for group in self.groups.values())


@dataclass(frozen=True)
class Completed:
    kind: ClassVar[MessageKind] = MessageKind.COMPLETED


Message = Union[Centroids, Partition, AssignmentResult, Completed]

MESSAGE_TYPES: Dict[MessageKind, type] = {
    MessageKind.CENTROIDS: Centroids,
    MessageKind.PARTITION: Partition,
    MessageKind.RESULT: AssignmentResult,
    MessageKind.COMPLETED: Completed,
}
