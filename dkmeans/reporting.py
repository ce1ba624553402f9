"""
Консольный отчёт о прогоне и визуализация кластеров на плоскости.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Sequence, TextIO

import numpy as np

from dkmeans.core.base import ClusteringResult
from dkmeans.core.observations import Observation, Point


def format_report(result: ClusteringResult) -> List[str]:
    """Строки итогового отчёта: центроиды и затраченное время."""
    lines = ["The final cluster centroids: "]
    lines.extend(str(centroid) for centroid in result.centroids)
    elapsed_ns = int(result.elapsed * 1_000_000_000)
    lines.append(
        f"Time taken to find cluster centroids {elapsed_ns} nanoseconds, "
        f"or {result.elapsed} seconds"
    )
    return lines


def print_report(result: ClusteringResult, out: TextIO | None = None) -> None:
    out = out if out is not None else sys.stdout
    for line in format_report(result):
        print(line, file=out)


def format_benchmark(stats: Dict[str, float]) -> List[str]:
    return [
        f"Sequential: {stats['T_sequential']:.6f}s ({stats['rounds_sequential']} rounds)",
        f"Parallel:   {stats['T_parallel']:.6f}s ({stats['rounds_parallel']} rounds, "
        f"{stats['n_workers']} workers)",
        f"Speedup:    {stats['speedup']:.3f}",
        f"Efficiency: {stats['efficiency']:.3f}",
        f"Throughput: {stats['throughput_parallel']:.3e} distances/s",
        f"Same cluster sizes: {stats['same_cluster_sizes']}",
    ]


def plot_clusters(
    observations: Sequence[Observation],
    result: ClusteringResult,
    output_path: str | Path,
    title: str | None = None,
) -> Path:
    """
    Сохраняет диаграмму рассеяния точек, раскрашенных по итоговым кластерам.

    Поддерживаются только точки на плоскости.
    """
    if not observations or not isinstance(observations[0], Point):
        raise ValueError("Only 2-D point clusterings can be plotted")

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    X = np.array([(p.x, p.y) for p in observations], dtype=np.float64)
    C = np.array([(c.x, c.y) for c in result.centroids], dtype=np.float64)
    labels = np.array(result.labels_for(observations))

    fig, ax = plt.subplots(figsize=(8, 8))
    ax.scatter(X[:, 0], X[:, 1], c=labels, cmap="tab10", s=12, alpha=0.7)
    ax.scatter(C[:, 0], C[:, 1], c="black", marker="x", s=120, linewidths=2, label="centroids")
    ax.set_title(title or f"k={len(result.centroids)}, rounds={result.n_rounds}")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(output_path, dpi=120)
    plt.close(fig)
    return output_path
