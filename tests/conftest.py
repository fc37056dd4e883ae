"""Shared test fixtures for image retrieval tests."""

import numpy as np
import cv2
import pytest


@pytest.fixture
def gray_image():
    """Generate a 14x14 uniform mid-gray image (B=G=R=128)."""
    return np.full((14, 14, 3), 128, dtype=np.uint8)


@pytest.fixture
def black_image():
    return np.zeros((40, 40, 3), dtype=np.uint8)


@pytest.fixture
def red_square_image():
    """Generate a 200x200 red square on white background (BGR)."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    img[40:160, 40:160] = [30, 30, 200]  # Red square
    return img


@pytest.fixture
def sky_image():
    """
    Generate an 8x4 image whose top half passes the sky detector.

    BGR (0, 255, 0) converts to OpenCV HSV (60, 255, 255): hue inside
    the 50-70 band, full saturation and value. The bottom half is black.
    """
    img = np.zeros((8, 4, 3), dtype=np.uint8)
    img[:4] = [0, 255, 0]
    return img


@pytest.fixture
def textured_image():
    """Generate a 200x200 checkerboard with strong gradients."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 200
    for y in range(0, 200, 20):
        for x in range(0, 200, 20):
            if (x // 20 + y // 20) % 2 == 0:
                img[y:y+20, x:x+20] = [50, 50, 50]
    return img


@pytest.fixture
def noise_image():
    """Generate a 200x200 random noise image."""
    rng = np.random.RandomState(42)
    return rng.randint(0, 255, (200, 200, 3), dtype=np.uint8)


@pytest.fixture
def image_dir(tmp_path, red_square_image, textured_image, noise_image):
    """
    Directory with four decodable images plus files the scan must skip.

    Images are written as PNG so decoding returns the exact pixels.
    """
    directory = tmp_path / "images"
    directory.mkdir()

    blue = np.zeros((60, 60, 3), dtype=np.uint8)
    blue[:] = [200, 40, 40]

    cv2.imwrite(str(directory / "red.png"), red_square_image)
    cv2.imwrite(str(directory / "checker.PNG"), textured_image)
    cv2.imwrite(str(directory / "noise.png"), noise_image)
    cv2.imwrite(str(directory / "blue.bmp"), blue)

    (directory / "notes.txt").write_text("not an image")
    (directory / "broken.jpg").write_bytes(b"\x00\x01 definitely not a jpeg")
    return directory
