"""
Tests for the command-line interface and report figures.
"""

import matplotlib
matplotlib.use("Agg")

import pytest

import cli
from consensus_pca import CPCA
from consensus_pca.benchmark import BenchmarkConfig, run_benchmark
from consensus_pca.viz import create_report_figures, plot_benchmark, plot_superscores


class TestCli:

    def test_parse_blocks(self):
        assert cli.parse_blocks(None) is None
        assert cli.parse_blocks("2") == 2
        assert cli.parse_blocks("2, 1,1") == [2, 1, 1]

    def test_fit_writes_reports(self, tmp_path, capsys):
        code = cli.main(["--mode", "fit", "--dataset", "iris", "--scale", "--reports", str(tmp_path)])
        assert code == 0
        out = capsys.readouterr().out
        assert "Agreement with batch PCA" in out
        for name in ["superscores.csv", "loadings.csv", "block_errors.csv", "config.json"]:
            assert (tmp_path / name).exists()

    def test_fit_with_blocks(self, capsys):
        code = cli.main(["--dataset", "iris", "--no-center", "--blocks", "2", "--components", "4"])
        assert code == 0
        assert "block0[0:2], block1[2:4]" in capsys.readouterr().out

    def test_configuration_error_exit_code(self, capsys):
        code = cli.main(["--dataset", "iris", "--blocks", "3,3"])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    @pytest.mark.parametrize("text", ["a,b,c\n1,2,3\n4,,6\n", "1,2,3\n4,5\n"])
    def test_malformed_csv_exit_code(self, tmp_path, capsys, text):
        path = tmp_path / "bad.csv"
        path.write_text(text)
        code = cli.main(["--dataset", "csv", "--csv", str(path)])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_csv_dataset_requires_path(self, capsys):
        assert cli.main(["--dataset", "csv"]) == 1

    def test_benchmark_mode(self, tmp_path, capsys):
        code = cli.main([
            "--mode", "benchmark", "--dataset", "iris", "--no-center",
            "--repeats", "1", "--reports", str(tmp_path), "--plot"
        ])
        assert code == 0
        assert (tmp_path / "benchmark.csv").exists()
        assert (tmp_path / "benchmark.png").exists()
        assert "cpca_evd_b2+2" in capsys.readouterr().out


class TestFigures:

    def test_report_figures(self, iris, tmp_path):
        model = CPCA(center=False, blocks=2).fit(iris)
        paths = create_report_figures(model, str(tmp_path))
        assert set(paths) == {"superscores", "block_loadings", "explained_variance"}
        for path in paths.values():
            assert (tmp_path / path.split("/")[-1]).exists()

    def test_superscores_single_component(self, iris):
        model = CPCA(n_components=1).fit(iris)
        fig = plot_superscores(model, show=False)
        assert fig.axes[0].get_xlabel() == "Superscore 0"

    def test_benchmark_plot(self, iris, tmp_path):
        results = run_benchmark(iris, BenchmarkConfig(methods=["ones"]))
        fig = plot_benchmark(results, title="bench", save_path=str(tmp_path / "b.png"), show=False)
        assert len(fig.axes) == 2
        assert (tmp_path / "b.png").exists()
