"""
Общие фикстуры для всех тестов.
"""

import numpy as np
import pytest

from dkmeans.core.observations import DNAStrand, Point


def _strand(text: str) -> DNAStrand:
    return DNAStrand(tuple(text))


@pytest.fixture
def rng():
    """Фикстура с фиксированным генератором случайных чисел."""
    return np.random.default_rng(42)


@pytest.fixture
def four_points():
    """Четыре точки, образующие две явно разделённые пары."""
    return [Point(0, 0), Point(0, 1), Point(10, 0), Point(10, 1)]


@pytest.fixture
def blob_points():
    """Фикстура с небольшим датасетом точек (3 кластера по 30 точек)."""
    gen = np.random.default_rng(7)
    centers = [(0.0, 0.0), (20.0, 20.0), (-20.0, 15.0)]
    points = []
    for cx, cy in centers:
        for x, y in gen.normal(loc=(cx, cy), scale=1.0, size=(30, 2)):
            points.append(Point(float(x), float(y)))
    initial_centroids = [points[0], points[30], points[60]]
    return points, initial_centroids


@pytest.fixture
def dna_strands():
    """Фикстура с цепочками ДНК: две группы вокруг AAAAAAAA и TTTTTTTT."""
    strands = [
        _strand("AAAAAAAA"),
        _strand("AAAAAAAC"),
        _strand("AAGAAAAA"),
        _strand("CAAAAAAA"),
        _strand("TTTTTTTT"),
        _strand("TTTTGTTT"),
        _strand("TTTTTTTA"),
        _strand("TCTTTTTT"),
    ]
    initial_centroids = [strands[1], strands[5]]
    return strands, initial_centroids
