"""
Иерархия исключений проекта.

Единственная штатная (восстанавливаемая) ситуация — пустой кластер: движки
пропускают его и пишут предупреждение в лог. Всё остальное пробрасывается
вызывающему коду как фатальная ошибка прогона.
"""

from __future__ import annotations


class KMeansError(Exception):
    """Базовое исключение пакета dkmeans."""


class DatasetError(KMeansError):
    """Ошибка чтения или разбора датасета."""


class EmptyClusterError(KMeansError):
    """Агрегация вызвана для пустой группы наблюдений."""


class InitializationError(KMeansError):
    """Не удалось выбрать k различных начальных центроидов."""


class TransportError(KMeansError):
    """Канал между координатором и воркером оборван."""


class ProtocolError(KMeansError):
    """Получено сообщение, которое не ожидалось на данном шаге протокола."""


class ConfigurationError(KMeansError):
    """Некорректные параметры запуска."""
