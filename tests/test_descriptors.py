"""Tests for the descriptor model."""

import numpy as np
import pytest

from image_retrieval.descriptors import (
    Descriptor, DescriptorKind, TEXTURE_COLOR_DIM,
)


class TestDescriptorKind:
    """Tests for kind names and dimensions."""

    @pytest.mark.parametrize("name, kind", [
        ("baseline", DescriptorKind.BASELINE),
        ("histogram", DescriptorKind.HISTOGRAM),
        ("multi_histogram", DescriptorKind.MULTI_HISTOGRAM),
        ("texture_color", DescriptorKind.TEXTURE_COLOR),
        ("dnn_embedding", DescriptorKind.DNN_EMBEDDING),
        ("custom", DescriptorKind.CUSTOM),
    ])
    def test_from_name(self, name, kind):
        assert DescriptorKind.from_name(name) is kind
        assert kind.label == name
        assert str(kind) == name

    def test_unknown_name_falls_back_to_baseline(self):
        assert DescriptorKind.from_name("sift") is DescriptorKind.BASELINE
        assert DescriptorKind.from_name("") is DescriptorKind.BASELINE

    def test_dimensions(self):
        assert DescriptorKind.BASELINE.dimension == 147
        assert DescriptorKind.HISTOGRAM.dimension == 4096
        assert DescriptorKind.MULTI_HISTOGRAM.dimension == 1024
        assert DescriptorKind.TEXTURE_COLOR.dimension == 520
        assert DescriptorKind.DNN_EMBEDDING.dimension == 512
        assert DescriptorKind.CUSTOM.dimension == 30
        assert TEXTURE_COLOR_DIM == 512

    def test_only_embeddings_are_not_pixel_based(self):
        assert not DescriptorKind.DNN_EMBEDDING.pixel_based
        assert all(k.pixel_based for k in DescriptorKind
                   if k is not DescriptorKind.DNN_EMBEDDING)


class TestDescriptor:
    """Tests for Descriptor storage and normalization."""

    def test_values_stored_as_float32(self):
        desc = Descriptor([1, 2, 3], DescriptorKind.BASELINE, "a.jpg")
        assert desc.values.dtype == np.float32
        assert len(desc) == 3
        assert desc.size == 3
        assert desc.source_id == "a.jpg"

    def test_normalize_unit_length(self):
        desc = Descriptor([3.0, 4.0])
        desc.normalize()
        assert desc.values == pytest.approx([0.6, 0.8])
        assert np.linalg.norm(desc.values) == pytest.approx(1.0)

    def test_normalize_zero_vector_is_noop(self):
        desc = Descriptor(np.zeros(5))
        desc.normalize()
        assert np.all(desc.values == 0)

    def test_copy_is_independent(self):
        desc = Descriptor([1.0, 2.0], DescriptorKind.CUSTOM, "a.jpg")
        dup = desc.copy(source_id="b.jpg")
        dup.values[0] = 9.0
        assert desc.values[0] == 1.0
        assert dup.source_id == "b.jpg"
        assert dup.kind is DescriptorKind.CUSTOM
