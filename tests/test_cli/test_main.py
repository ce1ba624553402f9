"""
Тесты командной строки и консольного отчёта.
"""

import io

import pytest

from dkmeans.core.base import ClusteringResult
from dkmeans.core.observations import DNAStrand, Point
from dkmeans.main import main
from dkmeans.reporting import format_report, plot_clusters, print_report


@pytest.fixture
def points_csv(tmp_path):
    path = tmp_path / "points.csv"
    assert main(
        [
            "generate", "point",
            "--output", str(path),
            "--clusters", "3",
            "--per-cluster", "20",
            "--seed", "4",
        ]
    ) == 0
    return path


class TestReport:
    """Тесты консольного отчёта."""

    def test_format_report(self):
        result = ClusteringResult(
            centroids=[Point(0, 0.5), Point(10, 0.5)],
            cluster_sizes=[2, 2],
            n_rounds=2,
            converged=True,
            elapsed=1.5,
        )
        lines = format_report(result)
        assert lines[0] == "The final cluster centroids: "
        assert lines[1] == "x coordinate: 0.0 y coordinate: 0.5"
        assert lines[3] == (
            "Time taken to find cluster centroids 1500000000 nanoseconds, or 1.5 seconds"
        )

    def test_print_report_strands(self):
        result = ClusteringResult(
            centroids=[DNAStrand(tuple("ACGT"))],
            cluster_sizes=[1],
            n_rounds=100,
            converged=True,
            elapsed=0.25,
        )
        out = io.StringIO()
        print_report(result, out=out)
        assert "A,C,G,T\n" in out.getvalue()

    def test_plot_clusters(self, tmp_path, four_points):
        result = ClusteringResult(
            centroids=[Point(0, 0.5), Point(10, 0.5)],
            cluster_sizes=[2, 2],
            n_rounds=2,
            converged=True,
            elapsed=0.1,
        )
        path = plot_clusters(four_points, result, tmp_path / "plots" / "clusters.png")
        assert path.exists()
        assert path.stat().st_size > 0

    def test_plot_rejects_strands(self, tmp_path):
        strands = [DNAStrand(tuple("AC"))]
        result = ClusteringResult(
            centroids=strands, cluster_sizes=[1], n_rounds=1, converged=True, elapsed=0.1
        )
        with pytest.raises(ValueError):
            plot_clusters(strands, result, tmp_path / "x.png")


class TestCommandLine:
    """Тесты подкоманд dkmeans."""

    def test_generate(self, points_csv):
        assert len(points_csv.read_text().splitlines()) == 60

    def test_generate_dna(self, tmp_path):
        path = tmp_path / "dna.csv"
        code = main(
            ["generate", "dna", "--output", str(path), "--clusters", "2",
             "--per-cluster", "5", "--length", "12"]
        )
        assert code == 0
        lines = path.read_text().splitlines()
        assert len(lines) == 10
        assert all(len(line.split(",")) == 12 for line in lines)

    def test_cluster_sequential(self, points_csv, capsys):
        code = main(["cluster", "3", "sequential", "point", "--input", str(points_csv), "--seed", "0"])
        out = capsys.readouterr().out

        assert code == 0
        assert out.startswith("The final cluster centroids: ")
        assert out.count("x coordinate:") == 3
        assert "Time taken to find cluster centroids" in out

    def test_cluster_parallel_threads(self, points_csv, capsys):
        code = main(
            ["cluster", "3", "parallel", "point", "--input", str(points_csv),
             "--workers", "2", "--transport", "threads", "--seed", "0"]
        )
        assert code == 0
        assert capsys.readouterr().out.count("x coordinate:") == 3

    def test_cluster_with_plot(self, points_csv, tmp_path):
        plot = tmp_path / "clusters.png"
        code = main(
            ["cluster", "3", "sequential", "point", "--input", str(points_csv),
             "--seed", "0", "--plot", str(plot)]
        )
        assert code == 0
        assert plot.exists()

    def test_benchmark(self, points_csv, capsys):
        code = main(
            ["benchmark", "3", "point", "--input", str(points_csv),
             "--workers", "2", "--transport", "threads", "--seed", "0"]
        )
        out = capsys.readouterr().out
        assert code == 0
        assert "Speedup:" in out
        assert "Same cluster sizes: True" in out

    def test_missing_input_is_error(self, tmp_path):
        code = main(["cluster", "2", "sequential", "point", "--input", str(tmp_path / "none.csv")])
        assert code == 1

    def test_invalid_utf8_input_is_error(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_bytes(b"\xff\xfe,3\n")
        assert main(["cluster", "1", "sequential", "point", "--input", str(path)]) == 1

    def test_k_larger_than_dataset(self, points_csv):
        assert main(["cluster", "100", "sequential", "point", "--input", str(points_csv)]) == 1

    def test_plot_requires_points(self, points_csv):
        with pytest.raises(SystemExit):
            main(["cluster", "2", "sequential", "dna", "--input", str(points_csv), "--plot", "x.png"])

    def test_no_command(self, capsys):
        assert main([]) == 1
