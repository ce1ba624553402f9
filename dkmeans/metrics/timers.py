"""
Высокоточные таймеры для измерения производительности.

Модуль предоставляет контекстный менеджер Timer для измерения времени
выполнения участков кода и RunContext — явный контекст прогона, который
передаётся в движок кластеризации вместо глобального времени старта.
"""
from __future__ import annotations
import time
from dataclasses import dataclass, field
from typing import Any


class Timer:
    """
    Контекстный менеджер для измерения времени выполнения кода.

    Использует time.perf_counter() для высокоточных измерений времени,
    не зависящих от системных часов.

    Пример использования:
        with Timer() as t:
            # код для измерения
            pass
        elapsed_time = t.elapsed
    """

    def __init__(self) -> None:
        self.start: float = 0.0
        self.end: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> Timer:
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        """Вычисляет прошедшее время и сохраняет в self.elapsed."""
        self.end = time.perf_counter()
        self.elapsed = self.end - self.start


@dataclass
class RunContext:
    """
    Контекст одного прогона кластеризации.

    Время старта фиксируется при создании контекста (обычно сразу после
    чтения датасета) и читается движком по завершении прогона.
    """

    label: str = "run"
    started_at: float = field(default_factory=time.perf_counter)

    def elapsed(self) -> float:
        """Секунды, прошедшие с момента создания контекста."""
        return time.perf_counter() - self.started_at

    def elapsed_ns(self) -> int:
        return int(self.elapsed() * 1_000_000_000)
