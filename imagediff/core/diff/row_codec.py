"""
Row codec.

Serializes a single scanline to an opaque one-line ASCII token and
back, so rows can be compared like lines of text:
- Every pixel becomes four big-endian 32-bit channel values
- The byte buffer is written in unpadded URL-safe base64
- Decoding validates the alphabet, the buffer stride and channel range
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
import struct
from typing import Iterator

from PIL import Image

from imagediff.core.exceptions import MalformedTokenError, PixelRangeError
from imagediff.core.models import CHANNEL_MAX, Pixel, Row


# Bytes per pixel: four 32-bit channels
PIXEL_STRIDE = 16

# Unpadded URL-safe base64 alphabet
_TOKEN_PATTERN = re.compile(r'[A-Za-z0-9_-]*')

# Modes whose samples are already 16-bit gray
GRAY16_MODES = ('I;16', 'I;16L', 'I;16B', 'I;16N', 'I')

# 8-bit to 16-bit widening factor (0xFF -> 0xFFFF)
_WIDEN = 257


class RowCodec:
    """
    Reversible row <-> token conversion.

    Stateless; a single instance may be shared freely.
    """

    def encode(self, row: Row) -> str:
        """
        Encode a row of pixels as a token.

        Raises:
            PixelRangeError: if a channel is outside [0, 65535]
        """
        channels: list[int] = []
        for x, pixel in enumerate(row):
            for value in pixel:
                if not 0 <= value <= CHANNEL_MAX:
                    raise PixelRangeError(
                        f"Channel value {value} at column {x} is outside 0..{CHANNEL_MAX}"
                    )
            channels.extend(pixel)

        buf = struct.pack(f'>{len(channels)}I', *channels)
        return base64.urlsafe_b64encode(buf).rstrip(b'=').decode('ascii')

    def decode(self, token: str) -> list[Pixel]:
        """
        Decode a token back into a row of pixels.

        Raises:
            MalformedTokenError: if the token was not produced by encode
        """
        if not _TOKEN_PATTERN.fullmatch(token):
            raise MalformedTokenError("Token contains characters outside the URL-safe base64 alphabet", token)
        if len(token) % 4 == 1:
            raise MalformedTokenError("Token has an impossible base64 length", token)

        padding = '=' * (-len(token) % 4)
        try:
            buf = base64.urlsafe_b64decode(token + padding)
        except (binascii.Error, ValueError) as e:
            raise MalformedTokenError(f"Invalid base64: {e}", token) from e

        if len(buf) % PIXEL_STRIDE:
            raise MalformedTokenError(
                f"Decoded {len(buf)} bytes, not a multiple of the {PIXEL_STRIDE}-byte pixel stride",
                token
            )

        channels = struct.unpack(f'>{len(buf) // 4}I', buf)
        if channels and max(channels) > CHANNEL_MAX:
            raise MalformedTokenError("Decoded channel value exceeds 16 bits", token)

        return [
            Pixel(*channels[i:i + 4])
            for i in range(0, len(channels), 4)
        ]

    def read_rows(self, image: Image.Image) -> Iterator[list[Pixel]]:
        """
        Read every scanline of an image in the 16-bit premultiplied model.

        16-bit grayscale images keep their full precision; every other
        mode goes through 8-bit RGBA.
        """
        width, height = image.size

        if image.mode in GRAY16_MODES:
            pixels = image.load()
            for y in range(height):
                row = []
                for x in range(width):
                    value = min(max(int(pixels[x, y]), 0), CHANNEL_MAX)
                    row.append(Pixel(value, value, value, CHANNEL_MAX))
                yield row
            return

        rgba = image if image.mode == 'RGBA' else image.convert('RGBA')
        data = rgba.tobytes()
        row_bytes = width * 4
        for y in range(height):
            start = y * row_bytes
            yield [
                _premultiply(data[i], data[i + 1], data[i + 2], data[i + 3])
                for i in range(start, start + row_bytes, 4)
            ]

    def read_row(self, image: Image.Image, y: int) -> list[Pixel]:
        """Read a single scanline."""
        if not 0 <= y < image.height:
            raise IndexError(f"Row {y} out of range for image height {image.height}")
        strip = image.crop((0, y, image.width, y + 1))
        return next(self.read_rows(strip))

    def encode_image(self, image: Image.Image) -> list[str]:
        """Encode every row of an image, top to bottom."""
        tokens = [self.encode(row) for row in self.read_rows(image)]
        logging.debug(
            f"RowCodec - Encoded {len(tokens)} rows of width {image.width} ({image.mode})"
        )
        return tokens


def _premultiply(r: int, g: int, b: int, a: int) -> Pixel:
    alpha = a * _WIDEN
    return Pixel(
        r * _WIDEN * alpha // CHANNEL_MAX,
        g * _WIDEN * alpha // CHANNEL_MAX,
        b * _WIDEN * alpha // CHANNEL_MAX,
        alpha,
    )


_default_codec = RowCodec()


def encode_row(row: Row) -> str:
    """Encode a row with the shared codec."""
    return _default_codec.encode(row)


def decode_row(token: str) -> list[Pixel]:
    """Decode a token with the shared codec."""
    return _default_codec.decode(token)
