"""
Distance metrics for descriptor comparison.

Every value returned from compute_distance is a distance: lower means
more similar. Similarity measures (histogram intersection) are negated
before they are returned.

Primitive metrics never raise on shape mismatch. Comparing vectors of
different lengths returns MISMATCH (-1.0) so one bad entry cannot abort
a whole query.

Arithmetic stays in float32, the precision descriptors are stored in.

Composite metrics slice a descriptor into fixed sub-ranges (numpy views,
no copies) and combine the sub-distances with the weights below.
"""

import logging
from typing import Sequence

import numpy as np

from .descriptors import (
    Descriptor, DescriptorKind, TEXTURE_COLOR_DIM,
    CUSTOM_BLUE_HIST, CUSTOM_SPATIAL, CUSTOM_SPATIAL_TOP,
    CUSTOM_BRIGHTNESS, CUSTOM_SKY_POSITION,
)

logger = logging.getLogger(__name__)

MISMATCH = -1.0

# Custom descriptor sub-distance weights
CUSTOM_WEIGHTS = {
    "blue": 0.35,
    "spatial": 0.25,
    "brightness": 0.20,
    "sky_position": 0.20,
}

# Spatial stripes in the top half count three times as much as the bottom
SPATIAL_TOP_WEIGHT = 3.0
SPATIAL_BOTTOM_WEIGHT = 1.0


def _as_array(vector) -> np.ndarray:
    if isinstance(vector, Descriptor):
        vector = vector.values
    return np.asarray(vector, dtype=np.float32).reshape(-1)


def sum_squared_difference(a, b) -> float:
    """Sum of squared element differences."""
    a, b = _as_array(a), _as_array(b)
    if a.shape != b.shape:
        return MISMATCH
    diff = a - b
    return float(np.dot(diff, diff))


def histogram_intersection(a, b) -> float:
    """Histogram intersection similarity: sum of per-bin minimums."""
    a, b = _as_array(a), _as_array(b)
    if a.shape != b.shape:
        return MISMATCH
    return float(np.minimum(a, b).sum())


def histogram_intersection_distance(a, b) -> float:
    """Negated histogram intersection, so smaller is more similar."""
    a, b = _as_array(a), _as_array(b)
    if a.shape != b.shape:
        return MISMATCH
    return -histogram_intersection(a, b)


def cosine_similarity(a, b) -> float:
    """
    Cosine of the angle between two vectors.

    Defined as 0 when either vector has zero norm.
    """
    a, b = _as_array(a), _as_array(b)
    if a.shape != b.shape:
        return MISMATCH

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def cosine_distance(a, b) -> float:
    """1 - cosine similarity."""
    a, b = _as_array(a), _as_array(b)
    if a.shape != b.shape:
        return MISMATCH
    return 1.0 - cosine_similarity(a, b)


def l1_distance(a, b) -> float:
    """Manhattan distance."""
    a, b = _as_array(a), _as_array(b)
    if a.shape != b.shape:
        return MISMATCH
    return float(np.abs(a - b).sum())


def l2_distance(a, b) -> float:
    """Euclidean distance."""
    a, b = _as_array(a), _as_array(b)
    if a.shape != b.shape:
        return MISMATCH
    return float(np.linalg.norm(a - b))


def weighted_distance(distances: Sequence[float],
                      weights: Sequence[float]) -> float:
    """
    Weighted mean of several sub-distances.

    Falls back to the plain weighted sum when the weights total zero or
    less.

    Args:
        distances: Sub-distance values.
        weights: One weight per distance.

    Returns:
        Combined distance, or MISMATCH if the sequences differ in length.
    """
    if len(distances) != len(weights):
        return MISMATCH

    total = 0.0
    weight_sum = 0.0
    for distance, weight in zip(distances, weights):
        total += distance * weight
        weight_sum += weight

    if weight_sum > 0:
        return total / weight_sum
    return total


def multi_histogram_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Mean negated intersection of the two region halves."""
    half = a.shape[0] // 2
    first = histogram_intersection_distance(a[:half], b[:half])
    second = histogram_intersection_distance(a[half:2 * half], b[half:2 * half])
    return (first + second) / 2.0


def texture_color_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Mean negated intersection of the color and texture parts."""
    color = histogram_intersection_distance(a[:TEXTURE_COLOR_DIM], b[:TEXTURE_COLOR_DIM])
    texture = histogram_intersection_distance(a[TEXTURE_COLOR_DIM:], b[TEXTURE_COLOR_DIM:])
    return (color + texture) / 2.0


def custom_distance(a: np.ndarray, b: np.ndarray) -> float:
    """
    Weighted distance for the blue sky descriptor.

    Sub-distances:
        - Blue hue histogram: negated intersection
        - Spatial stripes: weighted SSD, top stripes weighted 3x,
          divided by the weight total
        - Brightness bins: negated intersection
        - Sky position: mean absolute difference
    """
    w = CUSTOM_WEIGHTS

    blue = histogram_intersection_distance(a[CUSTOM_BLUE_HIST], b[CUSTOM_BLUE_HIST])

    spatial_a, spatial_b = a[CUSTOM_SPATIAL], b[CUSTOM_SPATIAL]
    top_count = CUSTOM_SPATIAL_TOP.stop - CUSTOM_SPATIAL_TOP.start
    spatial_weights = np.where(np.arange(spatial_a.shape[0]) < top_count,
                               SPATIAL_TOP_WEIGHT, SPATIAL_BOTTOM_WEIGHT)
    spatial_weights = spatial_weights.astype(np.float32)
    spatial = 0.0
    if spatial_weights.size:
        spatial = float(np.sum(spatial_weights * (spatial_a - spatial_b) ** 2)
                        / spatial_weights.sum())

    brightness = histogram_intersection_distance(a[CUSTOM_BRIGHTNESS], b[CUSTOM_BRIGHTNESS])

    sky_a, sky_b = a[CUSTOM_SKY_POSITION], b[CUSTOM_SKY_POSITION]
    sky_position = float(np.abs(sky_a - sky_b).sum()) / 2.0

    return (w["blue"] * blue
            + w["spatial"] * spatial
            + w["brightness"] * brightness
            + w["sky_position"] * sky_position)


_KIND_METRICS = {
    DescriptorKind.BASELINE: sum_squared_difference,
    DescriptorKind.HISTOGRAM: histogram_intersection_distance,
    DescriptorKind.MULTI_HISTOGRAM: multi_histogram_distance,
    DescriptorKind.TEXTURE_COLOR: texture_color_distance,
    DescriptorKind.DNN_EMBEDDING: cosine_distance,
    DescriptorKind.CUSTOM: custom_distance,
}


def compute_distance(a, b, kind: DescriptorKind) -> float:
    """
    Distance between two descriptors using the metric for their kind.

    Args:
        a: Query descriptor (Descriptor or array-like).
        b: Stored descriptor (Descriptor or array-like).
        kind: Active descriptor kind of the database.

    Returns:
        Distance (lower = more similar), or MISMATCH if the vectors
        differ in length. Unknown kinds use sum of squared differences.
    """
    a, b = _as_array(a), _as_array(b)
    if a.shape != b.shape:
        logger.debug(f"Descriptor length mismatch: {a.shape[0]} vs {b.shape[0]}")
        return MISMATCH

    metric = _KIND_METRICS.get(kind, sum_squared_difference)
    return float(metric(a, b))
