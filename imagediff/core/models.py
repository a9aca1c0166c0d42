"""
Core data models for the image diff pipeline.

This module defines the data structures shared by every stage:
- Pixel and row models (16-bit premultiplied RGBA)
- Edit script models (diff kinds and entries)
- Output canvas
- Image metadata and comparison results

All models are designed to be:
- UI-agnostic (can be used with any frontend)
- Created and consumed within a single comparison run
- Type-hinted for IDE support
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, NamedTuple, Optional, Sequence

from PIL import Image


# Full scale of a 16-bit channel
CHANNEL_MAX = 0xFFFF


# =============================================================================
# Enumerations
# =============================================================================

class DiffKind(Enum):
    """Kind of a row in an edit script."""
    EQUAL = auto()   # Row exists in both images
    INSERT = auto()  # Row exists only in the right/new image
    DELETE = auto()  # Row exists only in the left/old image

    @property
    def prefix(self) -> str:
        """Get the unified-diff style prefix character."""
        return {
            DiffKind.EQUAL: ' ',
            DiffKind.INSERT: '+',
            DiffKind.DELETE: '-',
        }[self]


# =============================================================================
# Pixel Models
# =============================================================================

class Pixel(NamedTuple):
    """
    A single premultiplied RGBA pixel at 16-bit precision.

    Every channel is in [0, 65535] whatever the bit depth of the
    source image.
    """
    r: int
    g: int
    b: int
    a: int

    @property
    def is_opaque(self) -> bool:
        return self.a == CHANNEL_MAX


TRANSPARENT = Pixel(0, 0, 0, 0)

# One scanline, one pixel per column
Row = Sequence[Pixel]


# =============================================================================
# Edit Script Models
# =============================================================================

@dataclass(frozen=True)
class DiffEntry:
    """
    One row of an edit script.

    DELETE entries carry a row of the left image, INSERT entries a row
    of the right image and EQUAL entries a row common to both.
    """
    kind: DiffKind
    token: str

    @property
    def is_change(self) -> bool:
        return self.kind is not DiffKind.EQUAL

    def __str__(self) -> str:
        return f"{self.kind.prefix}{self.token}"


EditScript = list[DiffEntry]


@dataclass
class DiffStatistics:
    """Statistics about an edit script."""
    total_rows_left: int = 0
    total_rows_right: int = 0
    added_rows: int = 0
    removed_rows: int = 0
    unchanged_rows: int = 0

    @property
    def total_changes(self) -> int:
        return self.added_rows + self.removed_rows

    @property
    def similarity_ratio(self) -> float:
        """Calculate similarity ratio (0.0 to 1.0)."""
        total = max(self.total_rows_left, self.total_rows_right)
        if total == 0:
            return 1.0
        return self.unchanged_rows / total

    def __str__(self) -> str:
        return (
            f"+{self.added_rows} -{self.removed_rows} "
            f"={self.unchanged_rows} ({self.similarity_ratio:.1%} similar)"
        )


# =============================================================================
# Canvas
# =============================================================================

class Canvas:
    """
    Mutable 16-bit premultiplied RGBA raster.

    Starts fully transparent black. The compositor owns it while
    painting; afterwards it is read through ``pixel``/``row`` or
    converted with ``to_image``.
    """

    def __init__(self, width: int, height: int):
        if width < 0 or height < 0:
            raise ValueError(f"Invalid canvas size: {width}x{height}")
        self.width = width
        self.height = height
        self._rows: list[list[Pixel]] = [
            [TRANSPARENT] * width for _ in range(height)
        ]

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def pixel(self, x: int, y: int) -> Pixel:
        return self._rows[y][x]

    def row(self, y: int) -> tuple[Pixel, ...]:
        return tuple(self._rows[y])

    def iter_rows(self) -> Iterator[tuple[Pixel, ...]]:
        for y in range(self.height):
            yield self.row(y)

    def set_pixel(self, x: int, y: int, pixel: Pixel) -> None:
        self._rows[y][x] = pixel

    def paint_row(self, y: int, pixels: Row) -> None:
        """Write pixels into row y starting at column 0.

        Columns past the end of ``pixels`` keep their current value.
        """
        if len(pixels) > self.width:
            raise ValueError(
                f"Row of {len(pixels)} pixels does not fit canvas width {self.width}"
            )
        self._rows[y][:len(pixels)] = pixels

    def to_image(self) -> Image.Image:
        """
        Convert to an 8-bit straight-alpha RGBA Pillow image.

        Channels are un-premultiplied before narrowing.
        """
        if self.width == 0 or self.height == 0:
            return Image.new('RGBA', self.size)

        data = bytearray()
        for pixels in self._rows:
            for r, g, b, a in pixels:
                if a == 0:
                    data += b'\x00\x00\x00\x00'
                    continue
                data += bytes((
                    _to_straight8(r, a),
                    _to_straight8(g, a),
                    _to_straight8(b, a),
                    _narrow(a),
                ))
        return Image.frombytes('RGBA', self.size, bytes(data))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Canvas):
            return NotImplemented
        return self.size == other.size and self._rows == other._rows

    def __repr__(self) -> str:
        return f"Canvas({self.width}x{self.height})"


def _narrow(value: int) -> int:
    return min(255, (value + 128) // 257)


def _to_straight8(channel: int, alpha: int) -> int:
    straight = (channel * CHANNEL_MAX + alpha // 2) // alpha
    return _narrow(min(straight, CHANNEL_MAX))


# =============================================================================
# Image Models
# =============================================================================

@dataclass
class ImageInfo:
    """Information about an image."""
    width: int
    height: int
    mode: str  # PIL mode (RGB, RGBA, L, I;16, etc.)
    format: Optional[str] = None
    file_size: int = 0
    has_alpha: bool = False

    @property
    def dimensions(self) -> tuple[int, int]:
        return (self.width, self.height)

    def __str__(self) -> str:
        fmt = self.format or "raw"
        return f"{self.width}x{self.height} {self.mode} ({fmt})"


@dataclass
class ImageDiffResult:
    """Result of a row-level image comparison."""
    left_path: str
    right_path: str
    left_info: ImageInfo
    right_info: ImageInfo
    script: EditScript
    canvas: Canvas
    statistics: DiffStatistics = field(default_factory=DiffStatistics)

    @property
    def is_identical(self) -> bool:
        return all(entry.kind is DiffKind.EQUAL for entry in self.script)

    @property
    def dimensions(self) -> tuple[int, int]:
        """Dimensions of the diff image."""
        return self.canvas.size

    @property
    def dimensions_match(self) -> bool:
        return self.left_info.dimensions == self.right_info.dimensions

    @property
    def visualization_image(self) -> Image.Image:
        """The diff canvas as a Pillow image."""
        return self.canvas.to_image()
