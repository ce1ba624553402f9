"""k-means для точек и цепочек ДНК: последовательный и распределённый режимы."""

__version__ = "0.1.0"
