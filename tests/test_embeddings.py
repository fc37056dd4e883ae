"""Tests for the external embedding table."""

import numpy as np
import pytest

from image_retrieval.descriptors import DescriptorKind, EmbeddingNotFoundError
from image_retrieval.embeddings import (
    load_embedding_table, extract_dnn_from_csv, names_match,
)


def _row(name, values):
    return name + "," + ",".join(f"{v:.6g}" for v in values)


@pytest.fixture
def cat_values():
    return np.round(np.linspace(0.1, 0.9, 512), 6)


@pytest.fixture
def cat_table(tmp_path, cat_values):
    path = tmp_path / "embeddings.csv"
    path.write_text(_row("cat.jpg", cat_values) + "\n")
    return path


class TestExtractDnnFromCsv:
    """Tests for single-image lookup."""

    def test_exact_name(self, cat_table, cat_values):
        desc = extract_dnn_from_csv(str(cat_table), "cat.jpg")
        assert desc.kind is DescriptorKind.DNN_EMBEDDING
        assert desc.source_id == "cat.jpg"
        assert desc.values.shape == (512,)
        assert np.allclose(desc.values, cat_values, atol=1e-6)

    def test_missing_name(self, cat_table):
        with pytest.raises(EmbeddingNotFoundError):
            extract_dnn_from_csv(str(cat_table), "dog.jpg")

    def test_query_path_contains_stored_name(self, cat_table):
        desc = extract_dnn_from_csv(str(cat_table), "/data/pets/cat.jpg")
        assert desc.source_id == "/data/pets/cat.jpg"

    def test_stored_path_contains_query(self, tmp_path):
        path = tmp_path / "embeddings.csv"
        path.write_text(_row("data/olympus/pic.0001.jpg", [1.0] * 512) + "\n")
        desc = extract_dnn_from_csv(str(path), "pic.0001.jpg")
        assert desc.values[0] == 1.0

    def test_first_match_wins(self, tmp_path):
        path = tmp_path / "embeddings.csv"
        path.write_text(
            _row("a/cat.jpg", [1.0] * 512) + "\n"
            + _row("b/cat.jpg", [2.0] * 512) + "\n"
        )
        desc = extract_dnn_from_csv(str(path), "cat.jpg")
        assert np.all(desc.values == 1.0)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            extract_dnn_from_csv(str(tmp_path / "nope.csv"), "cat.jpg")


class TestLoadEmbeddingTable:
    """Tests for bulk loading."""

    def test_loads_all_rows_in_order(self, tmp_path):
        path = tmp_path / "embeddings.csv"
        path.write_text(
            _row("one.jpg", [1.0] * 512) + "\n\n"
            + _row("two.jpg", [2.0] * 512) + "\n"
        )
        descriptors = load_embedding_table(str(path))
        assert [d.source_id for d in descriptors] == ["one.jpg", "two.jpg"]
        assert all(len(d) == 512 for d in descriptors)

    def test_malformed_and_short_rows(self, tmp_path):
        path = tmp_path / "embeddings.csv"
        path.write_text("x.jpg,0.5,oops,1.5\n")
        desc = load_embedding_table(str(path))[0]
        assert desc.values[0] == pytest.approx(0.5)
        assert desc.values[1] == 0.0
        assert desc.values[2] == pytest.approx(1.5)
        assert not desc.values[3:].any()

    def test_extra_columns_ignored(self, tmp_path):
        path = tmp_path / "embeddings.csv"
        path.write_text(_row("x.jpg", range(600)) + "\n")
        desc = load_embedding_table(str(path))[0]
        assert len(desc) == 512
        assert desc.values[-1] == 511.0

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            load_embedding_table(str(tmp_path / "nope.csv"))


class TestNamesMatch:
    def test_bidirectional_containment(self):
        assert names_match("dir/cat.jpg", "cat.jpg")
        assert names_match("cat.jpg", "dir/cat.jpg")
        assert not names_match("cat.jpg", "dog.jpg")


class TestNonUtf8Names:
    def test_name_kept_as_escaped_bytes(self, tmp_path):
        path = tmp_path / "embeddings.csv"
        path.write_bytes(b"caf\xe9.jpg," + b",".join([b"1"] * 512) + b"\n")
        desc = load_embedding_table(str(path))[0]
        assert desc.source_id == "caf\udce9.jpg"
        assert np.all(desc.values == 1.0)
