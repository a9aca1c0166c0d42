"""
Diff module for row-level image comparison.

Provides the pipeline stages:
- Row codec (scanline <-> token)
- Line diff engine (edit script over row tokens)
- Compositor (edit script -> diff canvas)
- Image diff engine (runs the whole pipeline)
"""

from imagediff.core.diff.row_codec import (
    RowCodec,
    encode_row,
    decode_row,
)
from imagediff.core.diff.line_diff import (
    LineDiffEngine,
    diff_rows,
)
from imagediff.core.diff.compositor import (
    Compositor,
    blend,
)
from imagediff.core.diff.image_diff import (
    ImageDiffEngine,
    diff_images,
)

__all__ = [
    # Row codec
    'RowCodec',
    'encode_row',
    'decode_row',
    # Line diff
    'LineDiffEngine',
    'diff_rows',
    # Compositing
    'Compositor',
    'blend',
    # Image diff
    'ImageDiffEngine',
    'diff_images',
]
