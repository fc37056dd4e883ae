"""
Image discovery and decoding.

Directory scanning uses a case-insensitive extension whitelist and a
sorted listing, so builds over the same directory index images in the
same order. Decoding is delegated to OpenCV and yields BGR uint8 arrays.
"""

import os
import logging
from typing import List, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.ppm', '.tif', '.tiff', '.bmp'}


def is_image_file(filename: str) -> bool:
    return os.path.splitext(filename)[1].lower() in IMAGE_EXTENSIONS


def filename_of(path: str) -> str:
    """Last component of a '/' or '\\' separated path."""
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def list_images(image_dir: str) -> List[str]:
    """
    List image files in a directory.

    Args:
        image_dir: Directory to scan (not recursive).

    Returns:
        Sorted full paths of files with a recognized image extension.

    Raises:
        OSError: If the directory cannot be listed.
    """
    return [
        os.path.join(image_dir, name)
        for name in sorted(os.listdir(image_dir))
        if is_image_file(name) and os.path.isfile(os.path.join(image_dir, name))
    ]


def load_image(path: str) -> Optional[np.ndarray]:
    """Decode an image as BGR uint8, or return None if it cannot be read."""
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None or image.size == 0:
        logger.debug(f"Could not decode: {path}")
        return None
    return image
