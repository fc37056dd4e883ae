"""
Pixel-grid helpers shared by the extractors.

Handles input normalization, the clamped center window used by the
baseline descriptor, color-space conversion, and the Sobel gradient
magnitude used for texture histograms. All images are OpenCV-style
BGR uint8 arrays.
"""

import cv2
import numpy as np
import logging

logger = logging.getLogger(__name__)


def normalize_image(image_np: np.ndarray) -> np.ndarray:
    """Ensure image is 3-channel BGR uint8."""
    image_np = np.asarray(image_np)
    if image_np.dtype != np.uint8:
        if image_np.size and image_np.max() <= 1.0:
            image_np = (image_np * 255).astype(np.uint8)
        else:
            image_np = np.clip(image_np, 0, 255).astype(np.uint8)

    if image_np.size == 0:
        return image_np

    if image_np.ndim == 2:
        image_np = cv2.cvtColor(image_np, cv2.COLOR_GRAY2BGR)
    elif image_np.ndim == 3 and image_np.shape[2] == 1:
        image_np = cv2.cvtColor(image_np, cv2.COLOR_GRAY2BGR)
    elif image_np.ndim == 3 and image_np.shape[2] == 4:
        image_np = cv2.cvtColor(image_np, cv2.COLOR_BGRA2BGR)
    return image_np


def is_empty(image_np) -> bool:
    return image_np is None or np.asarray(image_np).size == 0


def center_window(image_np: np.ndarray, size: int = 7) -> np.ndarray:
    """
    Extract a size x size window centered on the image midpoint.

    The window starts size // 2 pixels up and left of (cols // 2,
    rows // 2). Coordinates falling outside the image are clamped to
    the nearest edge, so images smaller than the window still yield a
    full window with repeated edge pixels.

    Args:
        image_np: BGR uint8 image.
        size: Window side length.

    Returns:
        Array of shape (size, size, channels).
    """
    h, w = image_np.shape[:2]
    half = size // 2

    ys = np.clip(np.arange(size) + h // 2 - half, 0, h - 1)
    xs = np.clip(np.arange(size) + w // 2 - half, 0, w - 1)

    return image_np[np.ix_(ys, xs)]


def to_hsv(image_np: np.ndarray) -> np.ndarray:
    """Convert BGR to OpenCV HSV (H 0-179, S and V 0-255)."""
    return cv2.cvtColor(image_np, cv2.COLOR_BGR2HSV)


def compute_gradient_magnitude(image_np: np.ndarray) -> np.ndarray:
    """
    Compute a Sobel gradient magnitude map rescaled to 0-255.

    Process:
        1. Convert to grayscale
        2. 3x3 Sobel derivatives in x and y
        3. Euclidean magnitude sqrt(gx^2 + gy^2)
        4. Min-max rescale to span exactly 0-255, rounded to uint8

    A constant image has no gradient and maps to all zeros.

    Args:
        image_np: BGR uint8 image.

    Returns:
        Single-channel uint8 magnitude map, same height and width.
    """
    if image_np.ndim == 3:
        gray = cv2.cvtColor(image_np, cv2.COLOR_BGR2GRAY)
    else:
        gray = image_np.copy()

    gx = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3)
    gy = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3)
    magnitude = cv2.magnitude(gx, gy)

    return cv2.normalize(magnitude, None, 0, 255, cv2.NORM_MINMAX,
                         dtype=cv2.CV_8U)


def compute_magnitude_histogram(magnitude: np.ndarray,
                                bins: int,
                                max_value: float = 255.0) -> np.ndarray:
    """
    Histogram a single-channel magnitude map into equal-width bins.

    Bin index is int(value / (max_value / bins)), clamped to bins - 1,
    and counts are divided by the number of pixels.

    Returns:
        Float32 array of length bins.
    """
    hist = np.zeros(bins, dtype=np.float32)
    total = magnitude.size
    if total == 0:
        return hist

    bin_size = np.float32(max_value / bins)
    idx = (magnitude.astype(np.float32).reshape(-1) / bin_size).astype(np.int64)
    idx = np.minimum(idx, bins - 1)

    hist += np.bincount(idx, minlength=bins)[:bins].astype(np.float32)
    return hist / np.float32(total)
