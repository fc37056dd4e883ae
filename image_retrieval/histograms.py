"""
Joint color histogram descriptors.

Quantizes each BGR channel into equal-width bins over 0-255 and counts
pixels in the joint (R, G, B) bin grid. Histograms are normalized by
pixel count, not by L2 norm, so each histogram sums to 1 and images of
different sizes remain comparable under histogram intersection.

Three descriptors are built from the same binning:
    histogram        whole-image joint histogram (16 bins/channel)
    multi_histogram  top/bottom (or left/right) halves, 8 bins/channel each
    texture_color    8 bins/channel color + 8-bin gradient magnitude
"""

import numpy as np
import logging

from .descriptors import (
    Descriptor, DescriptorKind, EmptyImageError,
    HISTOGRAM_BINS, MULTI_HISTOGRAM_BINS,
    TEXTURE_COLOR_BINS, TEXTURE_GRADIENT_BINS,
)
from .preprocessing import (
    normalize_image, is_empty,
    compute_gradient_magnitude, compute_magnitude_histogram,
)

logger = logging.getLogger(__name__)


def joint_bin_indices(image_np: np.ndarray, bins: int) -> np.ndarray:
    """
    Map every pixel to its flat joint-histogram bin.

    Per channel: floor(value / (256 / bins)), computed exactly in
    integer arithmetic and clamped to [0, bins - 1]. The flat index is
    (r_bin * bins + g_bin) * bins + b_bin.

    Args:
        image_np: BGR uint8 image.
        bins: Bins per channel.

    Returns:
        1-D int64 array with one bin index per pixel.
    """
    pixels = image_np.reshape(-1, 3).astype(np.int64)
    channel_bins = np.minimum((pixels * bins) // 256, bins - 1)
    b_bin = channel_bins[:, 0]
    g_bin = channel_bins[:, 1]
    r_bin = channel_bins[:, 2]
    return (r_bin * bins + g_bin) * bins + b_bin


def compute_color_histogram(image_np: np.ndarray, bins: int) -> np.ndarray:
    """
    Joint color histogram normalized by pixel count.

    Returns:
        Float32 array of length bins**3. All zeros when the region has
        no pixels.
    """
    total_bins = bins ** 3
    pixel_count = image_np.shape[0] * image_np.shape[1] if image_np.ndim >= 2 else 0
    if pixel_count == 0:
        return np.zeros(total_bins, dtype=np.float32)

    counts = np.bincount(joint_bin_indices(image_np, bins), minlength=total_bins)
    return counts.astype(np.float32) / np.float32(pixel_count)


def extract_histogram(image_np: np.ndarray,
                      bins: int = HISTOGRAM_BINS) -> Descriptor:
    """
    Extract a whole-image joint color histogram.

    Args:
        image_np: BGR uint8 image.
        bins: Bins per channel (16 by default, giving 4096 values).

    Returns:
        Descriptor of kind HISTOGRAM with bins**3 values summing to 1.

    Raises:
        EmptyImageError: If the image has no pixels.
    """
    if is_empty(image_np):
        raise EmptyImageError("cannot extract histogram from an empty image")

    image_np = normalize_image(image_np)
    return Descriptor(compute_color_histogram(image_np, bins),
                      DescriptorKind.HISTOGRAM)


def split_regions(image_np: np.ndarray, split_horizontal: bool = True):
    """
    Split an image into two disjoint halves.

    Horizontal splits give (top, bottom) with rows // 2 rows on top;
    vertical splits give (left, right) with cols // 2 columns on the
    left. Odd remainders go to the second region.
    """
    h, w = image_np.shape[:2]
    if split_horizontal:
        return image_np[:h // 2], image_np[h // 2:]
    return image_np[:, :w // 2], image_np[:, w // 2:]


def extract_multi_histogram(image_np: np.ndarray,
                            bins: int = MULTI_HISTOGRAM_BINS,
                            split_horizontal: bool = True) -> Descriptor:
    """
    Extract per-region color histograms and concatenate them.

    Each region is normalized by its own pixel count, so both halves
    sum to 1 independently (a region with no pixels stays all zero).

    Args:
        image_np: BGR uint8 image.
        bins: Bins per channel for each region histogram.
        split_horizontal: Top/bottom when True, left/right otherwise.

    Returns:
        Descriptor of kind MULTI_HISTOGRAM with 2 * bins**3 values.

    Raises:
        EmptyImageError: If the image has no pixels.
    """
    if is_empty(image_np):
        raise EmptyImageError("cannot extract multi-histogram from an empty image")

    image_np = normalize_image(image_np)
    first, second = split_regions(image_np, split_horizontal)

    values = np.concatenate([
        compute_color_histogram(first, bins),
        compute_color_histogram(second, bins),
    ])
    return Descriptor(values, DescriptorKind.MULTI_HISTOGRAM)


def extract_texture_color(image_np: np.ndarray,
                          color_bins: int = TEXTURE_COLOR_BINS,
                          texture_bins: int = TEXTURE_GRADIENT_BINS) -> Descriptor:
    """
    Extract a color histogram followed by a gradient-magnitude histogram.

    The color part is the joint histogram with color_bins per channel;
    the texture part histograms the 0-255 Sobel magnitude map into
    texture_bins equal-width bins. Both are divided by the total pixel
    count.

    Returns:
        Descriptor of kind TEXTURE_COLOR with color_bins**3 + texture_bins
        values.

    Raises:
        EmptyImageError: If the image has no pixels.
    """
    if is_empty(image_np):
        raise EmptyImageError("cannot extract texture/color from an empty image")

    image_np = normalize_image(image_np)
    color_hist = compute_color_histogram(image_np, color_bins)

    magnitude = compute_gradient_magnitude(image_np)
    texture_hist = compute_magnitude_histogram(magnitude, texture_bins, 255.0)

    logger.debug(
        f"Texture/color descriptor: {color_hist.size} color + "
        f"{texture_hist.size} texture bins"
    )
    return Descriptor(np.concatenate([color_hist, texture_hist]),
                      DescriptorKind.TEXTURE_COLOR)
