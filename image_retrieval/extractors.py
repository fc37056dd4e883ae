"""
Pixel descriptor extraction and per-kind dispatch.

The dispatcher bakes in the default parameters for every pixel-based
kind. Callers that need other bin counts call the extractors directly,
but databases built that way cannot be compared with the fixed metric
split points in metrics.py.
"""

import logging

import numpy as np

from .descriptors import (
    Descriptor, DescriptorKind, EmptyImageError,
    BASELINE_WINDOW, HISTOGRAM_BINS, MULTI_HISTOGRAM_BINS,
    TEXTURE_COLOR_BINS, TEXTURE_GRADIENT_BINS,
)
from .histograms import extract_histogram, extract_multi_histogram, extract_texture_color
from .preprocessing import normalize_image, is_empty, center_window
from .sky_descriptor import extract_custom

logger = logging.getLogger(__name__)


def extract_baseline(image_np: np.ndarray) -> Descriptor:
    """
    Extract the raw 7x7 center window as a 147-value vector.

    Pixels are emitted row by row, three channel values each in B, G, R
    order. No normalization is applied.

    Raises:
        EmptyImageError: If the image has no pixels.
    """
    if is_empty(image_np):
        raise EmptyImageError("cannot extract baseline from an empty image")

    image_np = normalize_image(image_np)
    window = center_window(image_np, BASELINE_WINDOW)
    return Descriptor(window.reshape(-1).astype(np.float32), DescriptorKind.BASELINE)


_EXTRACTORS = {
    DescriptorKind.BASELINE: extract_baseline,
    DescriptorKind.HISTOGRAM: lambda img: extract_histogram(img, HISTOGRAM_BINS),
    DescriptorKind.MULTI_HISTOGRAM: lambda img: extract_multi_histogram(
        img, MULTI_HISTOGRAM_BINS, split_horizontal=True),
    DescriptorKind.TEXTURE_COLOR: lambda img: extract_texture_color(
        img, TEXTURE_COLOR_BINS, TEXTURE_GRADIENT_BINS),
    DescriptorKind.CUSTOM: extract_custom,
}


def extract_feature(image_np: np.ndarray,
                    kind: DescriptorKind,
                    source_id: str = "") -> Descriptor:
    """
    Extract a descriptor of the given kind with the default parameters.

    Args:
        image_np: BGR uint8 image.
        kind: Pixel-based descriptor kind.
        source_id: Identifier stored on the returned descriptor.

    Returns:
        Descriptor of the requested kind.

    Raises:
        EmptyImageError: If the image has no pixels.
        ValueError: If the kind is not computed from pixels.
    """
    extractor = _EXTRACTORS.get(kind)
    if extractor is None:
        raise ValueError(f"descriptor kind '{kind}' is not extracted from pixels")

    descriptor = extractor(image_np)
    descriptor.source_id = source_id
    return descriptor

