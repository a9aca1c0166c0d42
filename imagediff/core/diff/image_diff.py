"""
Image file diff engine.

Compares two images row by row, like a line diff over scanlines:
- Every row of both images is encoded as a token
- The token sequences are diffed into an edit script
- The edit script is painted onto a canvas, one entry per row

The diff image is as wide as the wider input and has one row per
edit script entry.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from imagediff.core.diff.compositor import Compositor
from imagediff.core.diff.line_diff import LineDiffEngine
from imagediff.core.diff.row_codec import RowCodec
from imagediff.core.models import ImageDiffResult, ImageInfo
from imagediff.services.file_io import ImageIOService


class ImageDiffEngine:
    """
    Engine for comparing image files row by row.

    Holds no state between comparisons; one engine can run any number
    of them.
    """

    def __init__(
        self,
        codec: Optional[RowCodec] = None,
        differ: Optional[LineDiffEngine] = None,
        io_service: Optional[ImageIOService] = None
    ):
        self.codec = codec or RowCodec()
        self.differ = differ or LineDiffEngine()
        self.compositor = Compositor(self.codec)
        self.io_service = io_service or ImageIOService()

    def diff_images(
        self,
        left_img: Image.Image,
        right_img: Image.Image,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        left_info: Optional[ImageInfo] = None,
        right_info: Optional[ImageInfo] = None,
        left_label: str = "left",
        right_label: str = "right"
    ) -> ImageDiffResult:
        """
        Diff two decoded images.

        Args:
            left_img: Left/original image
            right_img: Right/modified image
            progress_callback: Progress callback (rows rendered, total rows)
            left_info: Metadata of the left image (derived if None)
            right_info: Metadata of the right image (derived if None)
            left_label: Label for the left image
            right_label: Label for the right image

        Returns:
            ImageDiffResult with the edit script and the diff canvas
        """
        left_rows = self.codec.encode_image(left_img)
        right_rows = self.codec.encode_image(right_img)

        script = self.differ.diff(left_rows, right_rows)

        width = max(left_img.width, right_img.width)
        canvas = self.compositor.render(script, width, progress_callback)

        stats = self.differ.statistics(script, len(left_rows), len(right_rows))

        logging.info(
            f"Compared {left_label} ({left_img.width}x{left_img.height}) with "
            f"{right_label} ({right_img.width}x{right_img.height}): {stats}"
        )

        return ImageDiffResult(
            left_path=left_label,
            right_path=right_label,
            left_info=left_info or self.io_service.get_image_info(left_img),
            right_info=right_info or self.io_service.get_image_info(right_img),
            script=script,
            canvas=canvas,
            statistics=stats
        )

    def compare(
        self,
        left_path: Path | str,
        right_path: Path | str,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> ImageDiffResult:
        """
        Compare two image files.

        Args:
            left_path: Path to left image
            right_path: Path to right image
            progress_callback: Progress callback (current, total)

        Returns:
            ImageDiffResult with comparison details

        Raises:
            ImageLoadError: if either image cannot be loaded
        """
        left_path = Path(left_path)
        right_path = Path(right_path)

        left_img = self.io_service.load_image(left_path)
        right_img = self.io_service.load_image(right_path)

        return self.diff_images(
            left_img,
            right_img,
            progress_callback,
            left_info=self.io_service.get_image_info(left_img, left_path),
            right_info=self.io_service.get_image_info(right_img, right_path),
            left_label=str(left_path),
            right_label=str(right_path)
        )

    def compare_bytes(
        self,
        left_data: bytes,
        right_data: bytes
    ) -> ImageDiffResult:
        """Compare two images from byte data."""
        left_img = self.io_service.load_image_bytes(left_data)
        right_img = self.io_service.load_image_bytes(right_data)

        left_info = self.io_service.get_image_info(left_img)
        left_info.file_size = len(left_data)
        right_info = self.io_service.get_image_info(right_img)
        right_info.file_size = len(right_data)

        return self.diff_images(
            left_img,
            right_img,
            left_info=left_info,
            right_info=right_info,
            left_label="<bytes>",
            right_label="<bytes>"
        )


def diff_images(left_img: Image.Image, right_img: Image.Image) -> Image.Image:
    """Diff two images and return the diff image."""
    return ImageDiffEngine().diff_images(left_img, right_img).visualization_image
