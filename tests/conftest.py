"""
Pytest configuration and shared fixtures for imagediff tests.

This module provides small synthetic images and helpers used across
multiple test modules.
"""

import pytest
from PIL import Image


def build_image(rows, mode="RGBA"):
    """
    Build an image from rows of 8-bit RGBA tuples.

    Args:
        rows: List of rows, each a list of (R, G, B, A) tuples
        mode: Mode to convert the result to

    Returns:
        Pillow image of len(rows[0]) x len(rows)
    """
    height = len(rows)
    width = len(rows[0]) if rows else 0
    image = Image.new("RGBA", (width, height))
    for y, row in enumerate(rows):
        for x, color in enumerate(row):
            image.putpixel((x, y), color)
    return image if mode == "RGBA" else image.convert(mode)


def solid_row(color, width):
    return [color] * width


@pytest.fixture
def make_image():
    """Provide the build_image helper as a fixture."""
    return build_image


@pytest.fixture
def palette():
    """
    Provide distinct opaque colors, one per test row.

    Returns:
        List of (R, G, B, A) tuples
    """
    return [
        (255, 0, 0, 255),      # Red
        (0, 255, 0, 255),      # Green
        (0, 0, 255, 255),      # Blue
        (255, 255, 255, 255),  # White
        (0, 0, 0, 255),        # Black
        (128, 128, 128, 255),  # Gray
    ]


@pytest.fixture
def striped_image(palette):
    """A 4x5 image with one distinct color per row."""
    return build_image([solid_row(color, 4) for color in palette[:5]])


@pytest.fixture
def images_dir(tmp_path):
    """Provide a temporary directory for image files."""
    path = tmp_path / "images"
    path.mkdir()
    return path
