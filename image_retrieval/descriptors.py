"""
Descriptor model shared by the extractors, metrics and the engine.

A Descriptor is a fixed-length float32 vector tagged with the kind of
extraction that produced it. The kind fixes the vector length and the
metric used to compare two descriptors, so the bin counts below are the
single source for both sides: the texture_color metric splits at
TEXTURE_COLOR_DIM and must move together with TEXTURE_COLOR_BINS.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)

# Extractor defaults used by the dispatcher
BASELINE_WINDOW = 7
HISTOGRAM_BINS = 16
MULTI_HISTOGRAM_BINS = 8
TEXTURE_COLOR_BINS = 8
TEXTURE_GRADIENT_BINS = 8
EMBEDDING_DIM = 512

BASELINE_DIM = BASELINE_WINDOW * BASELINE_WINDOW * 3
HISTOGRAM_DIM = HISTOGRAM_BINS ** 3
MULTI_HISTOGRAM_DIM = 2 * MULTI_HISTOGRAM_BINS ** 3
TEXTURE_COLOR_DIM = TEXTURE_COLOR_BINS ** 3
TEXTURE_DIM = TEXTURE_COLOR_DIM + TEXTURE_GRADIENT_BINS

# Custom "blue sky" descriptor layout
CUSTOM_BLUE_HIST = slice(0, 16)
CUSTOM_SPATIAL = slice(16, 24)
CUSTOM_SPATIAL_TOP = slice(16, 20)
CUSTOM_SPATIAL_BOTTOM = slice(20, 24)
CUSTOM_BRIGHTNESS = slice(24, 28)
CUSTOM_SKY_POSITION = slice(28, 30)
CUSTOM_DIM = 30


class EmptyImageError(ValueError):
    """Raised by an extractor when the pixel grid has no pixels."""


class EmbeddingNotFoundError(LookupError):
    """Raised when no embedding table row matches an image name."""


class DescriptorKind(Enum):
    """Closed set of descriptor types, each with its vector length."""

    BASELINE = ("baseline", BASELINE_DIM)
    HISTOGRAM = ("histogram", HISTOGRAM_DIM)
    MULTI_HISTOGRAM = ("multi_histogram", MULTI_HISTOGRAM_DIM)
    TEXTURE_COLOR = ("texture_color", TEXTURE_DIM)
    DNN_EMBEDDING = ("dnn_embedding", EMBEDDING_DIM)
    CUSTOM = ("custom", CUSTOM_DIM)

    def __init__(self, label: str, dimension: int):
        self.label = label
        self.dimension = dimension

    def __str__(self) -> str:
        return self.label

    @property
    def pixel_based(self) -> bool:
        """False only for kinds read from an external embedding table."""
        return self is not DescriptorKind.DNN_EMBEDDING

    @classmethod
    def from_name(cls, name: str) -> "DescriptorKind":
        """
        Map a kind name to its member.

        Unknown names fall back to BASELINE rather than failing, so
        databases written with an unrecognised header still load.
        """
        cleaned = (name or "").strip().lower()
        for kind in cls:
            if kind.label == cleaned:
                return kind
        logger.warning(f"Unknown descriptor kind '{name}', using baseline")
        return cls.BASELINE

    @classmethod
    def names(cls) -> list:
        return [kind.label for kind in cls]


@dataclass
class Descriptor:
    """
    A feature vector extracted from one image.

    Attributes:
        values: 1-D float32 array whose length is fixed by ``kind``.
        kind: Extraction method that produced the vector.
        source_id: Opaque identifier, usually the image path.
    """

    values: np.ndarray
    kind: DescriptorKind = DescriptorKind.BASELINE
    source_id: str = field(default="")

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=np.float32).reshape(-1)

    def __len__(self) -> int:
        return int(self.values.shape[0])

    @property
    def size(self) -> int:
        return len(self)

    def normalize(self) -> "Descriptor":
        """L2-normalize the values in place; zero vectors are left as is."""
        norm = float(np.linalg.norm(self.values.astype(np.float64)))
        if norm > 0:
            self.values /= np.float32(norm)
        return self

    def copy(self, source_id: str = None) -> "Descriptor":
        return Descriptor(
            self.values.copy(),
            self.kind,
            self.source_id if source_id is None else source_id,
        )
