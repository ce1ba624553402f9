"""
Метрики производительности для сравнения режимов запуска.

Модуль предоставляет функции для вычисления ускорения, эффективности
и пропускной способности распределённого режима относительно
последовательного.
"""

from __future__ import annotations


def speedup(t_serial: float, t_parallel: float) -> float:
    """
    Вычисляет ускорение распределённого прогона относительно последовательного.

    Args:
        t_serial: Время выполнения последовательного движка
        t_parallel: Время выполнения распределённого движка

    Returns:
        Значение ускорения (speedup = t_serial / t_parallel)

    Raises:
        ZeroDivisionError: Если t_parallel равно нулю
    """
    if t_parallel == 0:
        raise ZeroDivisionError("Parallel time cannot be zero")
    return t_serial / t_parallel


def efficiency(speedup: float, p: int) -> float:
    """
    Вычисляет параллельную эффективность.

    Идеальное значение = 1.0 (линейное ускорение).

    Args:
        speedup: Значение ускорения
        p: Количество воркеров

    Raises:
        ZeroDivisionError: Если p равно нулю
    """
    if p == 0:
        raise ZeroDivisionError("Number of workers cannot be zero")
    return speedup / p


def throughput(n: int, k: int, n_rounds: int, total_time: float) -> float:
    """
    Пропускная способность: количество вычислений расстояний в секунду.

    Пропускная способность = (N × K × n_rounds) / total_time

    Raises:
        ZeroDivisionError: Если total_time равно нулю
    """
    if total_time == 0:
        raise ZeroDivisionError("Total time cannot be zero")
    return (n * k * n_rounds) / total_time
