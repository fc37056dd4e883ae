"""Tests for the build/query command line."""

import pytest

from image_retrieval.cli import main, build_parser


@pytest.fixture
def no_env_table(monkeypatch):
    monkeypatch.setattr("image_retrieval.config.EMBEDDING_CSV", None)


class TestBuildAndQuery:
    def test_build_then_query(self, image_dir, tmp_path, capsys):
        db = tmp_path / "features_hist.csv"
        assert main(["build", "-d", str(image_dir), "-f", "histogram", "-o", str(db)]) == 0
        assert db.exists()
        assert "Built feature database with 4 images" in capsys.readouterr().out

        target = str(image_dir / "red.png")
        assert main(["query", "-t", target, "-f", "histogram", "-i", str(db), "-n", "2"]) == 0
        out = capsys.readouterr().out
        assert "1. red.png (distance: " in out
        assert "2. " in out
        assert "3. " not in out

    def test_query_with_other_feature_uses_database_kind(self, image_dir, tmp_path, capsys):
        db = tmp_path / "features_base.csv"
        main(["build", "-d", str(image_dir), "-f", "baseline", "-o", str(db)])
        capsys.readouterr()

        target = str(image_dir / "noise.png")
        assert main(["query", "-t", target, "-f", "custom", "-i", str(db)]) == 0
        out = capsys.readouterr().out
        assert "using the database feature type" in out
        assert "1. noise.png (distance: 0)" in out

    def test_unknown_feature_falls_back_to_baseline(self, image_dir, tmp_path, capsys):
        db = tmp_path / "features.csv"
        assert main(["build", "-d", str(image_dir), "-f", "gabor", "-o", str(db)]) == 0
        assert "using baseline" in capsys.readouterr().out
        assert "# Feature Type: baseline" in db.read_text()


class TestFailures:
    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_missing_database(self, image_dir, tmp_path):
        target = str(image_dir / "red.png")
        assert main(["query", "-t", target, "-f", "histogram",
                     "-i", str(tmp_path / "missing.csv")]) == 1

    def test_missing_directory(self, tmp_path):
        assert main(["build", "-d", str(tmp_path / "nowhere"), "-f", "histogram",
                     "-o", str(tmp_path / "db.csv")]) == 1

    def test_dnn_requires_table(self, tmp_path, no_env_table, capsys):
        assert main(["build", "-d", str(tmp_path), "-f", "dnn_embedding",
                     "-o", str(tmp_path / "db.csv")]) == 1
        assert "requires -c" in capsys.readouterr().err


class TestParser:
    def test_default_result_count(self):
        args = build_parser().parse_args(["query", "-t", "a.jpg", "-f", "histogram", "-i", "db.csv"])
        assert args.num_results == 3
        assert args.dnn_csv is None
