"""
Image I/O service for reading and writing image files safely.

Handles:
- Opening and fully decoding input images
- Atomic writes of the diff image
- Output format selection
- Image metadata
"""

from __future__ import annotations

import io
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from imagediff.core.exceptions import ImageLoadError, ImageSaveError
from imagediff.core.models import ImageInfo


DEFAULT_FORMAT = 'PNG'


@dataclass
class WriteResult:
    """Result of an image write operation."""
    path: Path
    image_format: str
    bytes_written: int = 0


class ImageIOService:
    """Service for safe image file I/O operations."""

    def __init__(self, default_format: str = DEFAULT_FORMAT):
        self.default_format = default_format.upper()

    def load_image(self, path: Path | str) -> Image.Image:
        """
        Open and fully decode an image file.

        Args:
            path: Path to the image

        Returns:
            Loaded Pillow image, detached from the file

        Raises:
            ImageLoadError: if the path is missing, not a file, or not an image
        """
        path = Path(path)

        if not path.exists():
            raise ImageLoadError(f"File not found: {path}", path)
        if not path.is_file():
            raise ImageLoadError(f"Not a file: {path}", path)

        try:
            with Image.open(path) as img:
                img.load()
                loaded = img.copy()
                loaded.format = img.format
        except UnidentifiedImageError as e:
            logging.error(f"ImageIOService - Unrecognized image format {path}: {e}")
            raise ImageLoadError(f"Not a recognized image: {path}", path) from e
        except Image.DecompressionBombError as e:
            logging.error(f"ImageIOService - Refusing oversized image {path}: {e}")
            raise ImageLoadError(f"Image too large: {path}: {e}", path) from e
        except OSError as e:
            logging.error(f"ImageIOService - Failed to read image {path}: {e}")
            raise ImageLoadError(f"Could not read image {path}: {e}", path) from e

        logging.debug(f"ImageIOService - Loaded {path} ({loaded.width}x{loaded.height} {loaded.mode})")
        return loaded

    def load_image_bytes(self, data: bytes) -> Image.Image:
        """Decode an image held in memory."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                loaded = img.copy()
                loaded.format = img.format
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise ImageLoadError(f"Could not decode image data: {e}") from e
        return loaded

    def save_image(
        self,
        image: Image.Image,
        path: Path | str,
        image_format: Optional[str] = None,
        overwrite: bool = True
    ) -> WriteResult:
        """
        Write an image atomically.

        The image is encoded into a temp file next to the target which
        then replaces it, so a failed write never leaves a truncated
        output behind.

        Args:
            image: Image to write
            path: Target path
            image_format: Pillow format name (inferred from the suffix if None)
            overwrite: Replace an existing file

        Returns:
            WriteResult describing the written file

        Raises:
            ImageSaveError: on any failure
        """
        path = Path(path)
        image_format = (image_format or self.format_for_path(path)).upper()

        if path.exists() and not overwrite:
            raise ImageSaveError(f"Output already exists: {path}", path)
        if path.is_dir():
            raise ImageSaveError(f"Output is a directory: {path}", path)

        buf = io.BytesIO()
        try:
            image.save(buf, format=image_format)
        except (KeyError, ValueError, OSError) as e:
            raise ImageSaveError(f"Could not encode image as {image_format}: {e}", path) from e
        encoded = buf.getvalue()

        temp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, 'wb') as f:
                f.write(encoded)
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.unlink(temp_path)
            logging.error(f"ImageIOService - Failed to write {path}: {e}")
            raise ImageSaveError(f"Could not write {path}: {e}", path) from e

        logging.info(f"Saved {image.width}x{image.height} diff image to {path}")
        return WriteResult(path=path, image_format=image_format, bytes_written=len(encoded))

    def format_for_path(self, path: Path | str) -> str:
        """Get the Pillow format for a file suffix, falling back to the default."""
        suffix = Path(path).suffix.lower()
        Image.init()
        return Image.registered_extensions().get(suffix, self.default_format)

    def get_image_info(self, img: Image.Image, path: Optional[Path | str] = None) -> ImageInfo:
        """Extract information from an image."""
        file_size = 0
        if path is not None:
            path = Path(path)
            file_size = path.stat().st_size if path.exists() else 0

        return ImageInfo(
            width=img.width,
            height=img.height,
            mode=img.mode,
            format=img.format,
            file_size=file_size,
            has_alpha='A' in img.mode or 'transparency' in img.info
        )


def check_image_support() -> dict:
    """Check which image formats can be read and written."""
    Image.init()

    common_formats = ['PNG', 'JPEG', 'GIF', 'BMP', 'TIFF', 'WEBP', 'ICO', 'PPM']

    return {
        'readable': [fmt.lower() for fmt in common_formats if fmt in Image.OPEN],
        'writable': [fmt.lower() for fmt in common_formats if fmt in Image.SAVE],
        'pillow_version': getattr(Image, '__version__', 'unknown'),
    }
