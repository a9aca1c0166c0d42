"""
Diff image compositor.

Paints an edit script onto a canvas, one script entry per canvas row:
- Deleted rows are tinted red
- Inserted rows are tinted green
- Unchanged rows are copied as they are, alpha included
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from imagediff.core.diff.row_codec import RowCodec
from imagediff.core.models import (
    CHANNEL_MAX,
    Canvas,
    DiffEntry,
    DiffKind,
    Pixel,
)


# 0.25 of full scale
OVERLAY_ALPHA = 0x4000

DELETE_OVERLAY = Pixel(CHANNEL_MAX, 0, 0, OVERLAY_ALPHA)
INSERT_OVERLAY = Pixel(0, CHANNEL_MAX, 0, OVERLAY_ALPHA)

OVERLAYS = {
    DiffKind.DELETE: DELETE_OVERLAY,
    DiffKind.INSERT: INSERT_OVERLAY,
}


def blend(dest: Pixel, overlay: Pixel) -> Pixel:
    """
    Source-over blend of overlay onto dest.

    out = overlay * a + dest * (1 - a) per color channel, with
    a = overlay.a / 65535, rounded to the nearest integer. The result
    is always fully opaque, whatever the alpha of dest.
    """
    alpha = overlay.a
    inverse = CHANNEL_MAX - alpha
    half = CHANNEL_MAX // 2
    return Pixel(
        (overlay.r * alpha + dest.r * inverse + half) // CHANNEL_MAX,
        (overlay.g * alpha + dest.g * inverse + half) // CHANNEL_MAX,
        (overlay.b * alpha + dest.b * inverse + half) // CHANNEL_MAX,
        CHANNEL_MAX,
    )


class Compositor:
    """
    Renders edit scripts to canvases.

    Rows are painted strictly top to bottom and never revisited.
    """

    # Rows between two progress reports
    PROGRESS_CHUNK = 128

    def __init__(self, codec: Optional[RowCodec] = None):
        self.codec = codec or RowCodec()

    def render(
        self,
        script: Sequence[DiffEntry],
        width: int,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> Canvas:
        """
        Paint an edit script onto a new canvas.

        Args:
            script: Edit script from the line diff engine
            width: Canvas width, the widest of the two input images
            progress_callback: Progress callback (rows done, total rows)

        Returns:
            Canvas of width x len(script)

        Raises:
            MalformedTokenError: if an entry's token cannot be decoded
        """
        height = len(script)
        canvas = Canvas(width, height)

        for y, entry in enumerate(script):
            canvas.paint_row(y, self.render_row(entry))

            if progress_callback and ((y + 1) % self.PROGRESS_CHUNK == 0 or y + 1 == height):
                progress_callback(y + 1, height)

        logging.debug(f"Compositor - Rendered {height} rows at width {width}")
        return canvas

    def render_row(self, entry: DiffEntry) -> list[Pixel]:
        """Decode one entry and apply the overlay for its kind."""
        pixels = self.codec.decode(entry.token)

        overlay = OVERLAYS.get(entry.kind)
        if overlay is None:
            return pixels

        return [blend(pixel, overlay) for pixel in pixels]
