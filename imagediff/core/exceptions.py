"""
Exceptions raised by the image diff pipeline.

Every error raised on purpose derives from ImageDiffError so callers
(the command line entry point in particular) can catch one type.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ImageDiffError(Exception):
    """Base class for all image diff errors."""


class MalformedTokenError(ImageDiffError):
    """
    A row token could not be decoded.

    Tokens are only ever produced by the row codec, so this signals a
    broken encode/diff/decode chain and is never recoverable.
    """

    def __init__(self, message: str, token: Optional[str] = None):
        super().__init__(message)
        self.token = token

    def __str__(self) -> str:
        message = super().__str__()
        if self.token is None:
            return message
        preview = self.token if len(self.token) <= 32 else self.token[:29] + '...'
        return f"{message} (token {preview!r})"


class PixelRangeError(ImageDiffError, ValueError):
    """A pixel channel is outside the 16-bit range."""


class ImageLoadError(ImageDiffError):
    """An input image could not be opened or decoded."""

    def __init__(self, message: str, path: Optional[Path | str] = None):
        super().__init__(message)
        self.path = str(path) if path is not None else None


class ImageSaveError(ImageDiffError):
    """The diff image could not be written."""

    def __init__(self, message: str, path: Optional[Path | str] = None):
        super().__init__(message)
        self.path = str(path) if path is not None else None
