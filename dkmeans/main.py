"""
Командная строка для кластеризации, генерации датасетов и сравнения режимов.

Поддерживает три режима работы:
1. cluster   — кластеризация датасета (sequential | parallel)
2. generate  — генерация синтетического датасета точек или цепочек ДНК
3. benchmark — сравнение последовательного и распределённого режимов
"""

import argparse
import logging
import sys
from multiprocessing import cpu_count
from pathlib import Path

from dkmeans.core.distributed import result_format_for_kind
from dkmeans.core.observations import OBSERVATION_KINDS
from dkmeans.data.dataset import Dataset, write_observations
from dkmeans.data.generators import DatasetGenerator, GeneratorConfig
from dkmeans.data.validation import validate_dataset
from dkmeans.errors import KMeansError
from dkmeans.launcher import TRANSPORTS, DistributedConfig, is_coordinator_process
from dkmeans.metrics.timers import RunContext
from dkmeans.reporting import format_benchmark, plot_clusters, print_report
from dkmeans.runner import MODES, ClusteringRunner
from dkmeans.utils.logging import setup_logger

KINDS = sorted(OBSERVATION_KINDS)


def _default_workers() -> int:
    return max(1, cpu_count() - 1)


def _distributed_config(args: argparse.Namespace) -> DistributedConfig:
    return DistributedConfig(
        n_workers=args.workers,
        transport=args.transport,
        result_format=result_format_for_kind(args.kind),
    )


def run_cluster(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Кластеризация датасета и печать итоговых центроидов."""
    context = RunContext(label=args.mode)
    config = _distributed_config(args) if args.mode == "parallel" else None

    # Под MPI датасет читает и результат печатает только координатор
    owns_dataset = config is None or is_coordinator_process(config)
    dataset = None
    if owns_dataset:
        dataset = Dataset(args.input, args.kind)
        validate_dataset(dataset, k=args.k)

    runner = ClusteringRunner(dataset, args.k, args.kind, logger=logger)
    result = runner.run(
        args.mode,
        config=config,
        rounds=args.rounds,
        seed=args.seed,
        context=context,
    )
    if result is None:
        return 0

    print_report(result)
    if args.plot:
        path = plot_clusters(dataset.observations, result, args.plot)
        logger.info(f"Cluster plot saved to {path}")
    return 0


def run_generate(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Генерация синтетического датасета в CSV."""
    generator = DatasetGenerator(base_seed=args.seed if args.seed is not None else 42)
    config = GeneratorConfig(
        n_clusters=args.clusters,
        per_cluster=args.per_cluster,
        strand_length=args.length,
        cluster_std=args.cluster_std,
    )
    generated = generator.generate(args.kind, config)
    count = write_observations(args.output, generated.observations)
    logger.info(f"Generated {count} {args.kind} observations in {args.output} ({generated.metadata})")
    return 0


def run_benchmark(args: argparse.Namespace, logger: logging.Logger) -> int:
    """Сравнение последовательного и распределённого режимов на одном датасете."""
    dataset = Dataset(args.input, args.kind)
    validate_dataset(dataset, k=args.k)

    runner = ClusteringRunner(dataset, args.k, args.kind, logger=logger)
    stats = runner.benchmark(_distributed_config(args), rounds=args.rounds, seed=args.seed)
    for line in format_benchmark(stats):
        print(line)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dkmeans",
        description="k-means для точек и цепочек ДНК: последовательный и распределённый режимы",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Примеры использования:

  # Генерация 4 кластеров цепочек ДНК длины 20
  dkmeans generate dna --output data/dna.csv --clusters 4 --per-cluster 250

  # Последовательная кластеризация
  dkmeans cluster 4 sequential dna --input data/dna.csv

  # Распределённая кластеризация на 3 локальных воркерах
  dkmeans cluster 4 parallel point --input data/points.csv --workers 3

  # Распределённая кластеризация под MPI (ранг 0 — координатор)
  mpirun -np 4 dkmeans cluster 4 parallel point --input data/points.csv --transport mpi

  # Сравнение режимов
  dkmeans benchmark 4 point --input data/points.csv --workers 4
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Уровень логирования (по умолчанию: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Режим работы")

    def add_run_arguments(p: argparse.ArgumentParser) -> None:
        p.add_argument("--input", type=Path, required=True, help="CSV-файл с наблюдениями")
        p.add_argument(
            "--workers",
            type=int,
            default=_default_workers(),
            help="Количество воркеров для локальных транспортов",
        )
        p.add_argument(
            "--rounds",
            type=int,
            default=None,
            help="Число раундов для dna (по умолчанию 100) или их предел для point",
        )
        p.add_argument("--seed", type=int, default=None, help="Seed выбора начальных центроидов")

    cluster_parser = subparsers.add_parser("cluster", help="Кластеризация датасета")
    cluster_parser.add_argument("k", type=int, help="Количество кластеров")
    cluster_parser.add_argument("mode", choices=MODES, help="Режим выполнения")
    cluster_parser.add_argument("kind", choices=KINDS, help="Вид наблюдений")
    add_run_arguments(cluster_parser)
    cluster_parser.add_argument(
        "--transport",
        choices=TRANSPORTS,
        default="local",
        help="Транспорт распределённого режима (по умолчанию: local)",
    )
    cluster_parser.add_argument("--plot", type=Path, default=None, help="PNG с кластерами (только point)")

    generate_parser = subparsers.add_parser("generate", help="Генерация синтетического датасета")
    generate_parser.add_argument("kind", choices=KINDS, help="Вид наблюдений")
    generate_parser.add_argument("--output", type=Path, required=True, help="Куда записать CSV")
    generate_parser.add_argument("--clusters", type=int, default=4, help="Количество кластеров")
    generate_parser.add_argument("--per-cluster", type=int, default=100, help="Наблюдений в кластере")
    generate_parser.add_argument("--length", type=int, default=20, help="Длина цепочки ДНК")
    generate_parser.add_argument("--cluster-std", type=float, default=1.0, help="Разброс точек")
    generate_parser.add_argument("--seed", type=int, default=None, help="Seed генератора")

    benchmark_parser = subparsers.add_parser("benchmark", help="Сравнение режимов")
    benchmark_parser.add_argument("k", type=int, help="Количество кластеров")
    benchmark_parser.add_argument("kind", choices=KINDS, help="Вид наблюдений")
    add_run_arguments(benchmark_parser)
    benchmark_parser.add_argument(
        "--transport",
        choices=[t for t in TRANSPORTS if t != "mpi"],
        default="local",
        help="Транспорт распределённого прогона (по умолчанию: local)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Основная функция командной строки."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "cluster" and args.plot is not None and args.kind != "point":
        parser.error("--plot is only supported for point datasets")

    logger = setup_logger(getattr(logging, args.log_level))

    handlers = {
        "cluster": run_cluster,
        "generate": run_generate,
        "benchmark": run_benchmark,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args, logger)
    except KMeansError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
