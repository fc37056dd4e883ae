"""
Hand-designed "blue sky" descriptor (the custom descriptor kind).

Targets outdoor scenes where a bright blue band sits at the top of the
frame. The descriptor is a 30-dimensional vector:
    [0:16]  — blue hue histogram, normalized by blue pixel count
    [16:24] — blue density per horizontal stripe (4 top + 4 bottom),
              normalized by the pixel count of the stripe's half
    [24:28] — bright (V > 150) / very bright (V > 200) pixels, 2 bins
              per half, normalized by the half's pixel count
    [28:30] — fraction of blue pixels in the top half, and the mean
              row of blue pixels divided by the image height

A pixel is blue when its OpenCV hue lies in [50, 70], its saturation is
at least 50 and its value is above 50.
"""

import numpy as np
import logging

from .descriptors import (
    Descriptor, DescriptorKind, EmptyImageError, CUSTOM_DIM,
)
from .preprocessing import normalize_image, is_empty, to_hsv

logger = logging.getLogger(__name__)

# OpenCV hue runs 0-179, so 50-70 covers roughly 100-140 degrees
BLUE_HUE_MIN = 50
BLUE_HUE_MAX = 70
BLUE_SATURATION_MIN = 50
BLUE_VALUE_MIN = 50

BLUE_HIST_BINS = 16
SPATIAL_BINS = 4
BRIGHT_THRESHOLD = 150
VERY_BRIGHT_THRESHOLD = 200


def blue_mask(hsv: np.ndarray) -> np.ndarray:
    """Boolean mask of pixels passing the hue, saturation and value tests."""
    h = hsv[:, :, 0].astype(np.int32)
    s = hsv[:, :, 1].astype(np.int32)
    v = hsv[:, :, 2].astype(np.int32)
    return ((h >= BLUE_HUE_MIN) & (h <= BLUE_HUE_MAX)
            & (s >= BLUE_SATURATION_MIN) & (v > BLUE_VALUE_MIN))


def _stripe_counts(mask: np.ndarray) -> np.ndarray:
    """Count masked pixels in SPATIAL_BINS equal horizontal stripes."""
    counts = np.zeros(SPATIAL_BINS, dtype=np.float32)
    region_rows = mask.shape[0]
    if region_rows == 0:
        return counts

    rows, _ = np.nonzero(mask)
    stripes = (rows * SPATIAL_BINS) // region_rows
    stripes = np.minimum(stripes, SPATIAL_BINS - 1)
    counts += np.bincount(stripes, minlength=SPATIAL_BINS)[:SPATIAL_BINS]
    return counts


def _brightness_counts(value: np.ndarray) -> np.ndarray:
    bright = value > BRIGHT_THRESHOLD
    very_bright = bright & (value > VERY_BRIGHT_THRESHOLD)
    return np.array([
        np.count_nonzero(bright & ~very_bright),
        np.count_nonzero(very_bright),
    ], dtype=np.float32)


def extract_custom(image_np: np.ndarray) -> Descriptor:
    """
    Extract the 30-dimensional blue sky descriptor.

    Process:
        1. Convert to HSV and mark blue pixels
        2. Histogram blue hues into 16 bins
        3. Count blue pixels per stripe in each half
        4. Count bright pixels per half
        5. Derive the two sky position scalars

    Args:
        image_np: BGR uint8 image.

    Returns:
        Descriptor of kind CUSTOM. An image without blue pixels yields
        zeros everywhere except the brightness bins.

    Raises:
        EmptyImageError: If the image has no pixels.
    """
    if is_empty(image_np):
        raise EmptyImageError("cannot extract custom descriptor from an empty image")

    image_np = normalize_image(image_np)
    hsv = to_hsv(image_np)
    rows = hsv.shape[0]
    half = rows // 2

    feature = np.zeros(CUSTOM_DIM, dtype=np.float32)
    mask = blue_mask(hsv)
    value = hsv[:, :, 2]

    # --- Part 1: blue hue histogram ---
    blue_hues = hsv[:, :, 0][mask].astype(np.int64)
    hue_bins = ((blue_hues - BLUE_HUE_MIN) * BLUE_HIST_BINS) // (BLUE_HUE_MAX - BLUE_HUE_MIN)
    hue_bins = np.minimum(hue_bins, BLUE_HIST_BINS - 1)
    feature[0:16] = np.bincount(hue_bins, minlength=BLUE_HIST_BINS)[:BLUE_HIST_BINS]

    # --- Part 2: spatial stripes ---
    top_mask, bottom_mask = mask[:half], mask[half:]
    feature[16:20] = _stripe_counts(top_mask)
    feature[20:24] = _stripe_counts(bottom_mask)

    # --- Part 3: brightness ---
    feature[24:26] = _brightness_counts(value[:half])
    feature[26:28] = _brightness_counts(value[half:])

    top_pixels = top_mask.size
    bottom_pixels = bottom_mask.size
    blue_top = int(np.count_nonzero(top_mask))
    blue_total = int(np.count_nonzero(mask))

    if blue_total > 0:
        feature[0:16] /= blue_total
    if top_pixels > 0:
        feature[16:20] /= top_pixels
        feature[24:26] /= top_pixels
    if bottom_pixels > 0:
        feature[20:24] /= bottom_pixels
        feature[26:28] /= bottom_pixels

    # --- Part 4: sky position ---
    if blue_total > 0:
        blue_rows, _ = np.nonzero(mask)
        feature[28] = blue_top / blue_total
        feature[29] = float(blue_rows.mean()) / rows

    logger.debug(f"Custom descriptor: {blue_total} blue pixels, {blue_top} in top half")
    return Descriptor(feature, DescriptorKind.CUSTOM)
