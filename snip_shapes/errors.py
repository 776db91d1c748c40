"""Errors raised by the snip shape library."""


class GeometryError(ValueError):
    """Raised when an outline cannot be built, e.g. for a zero-area rectangle."""


class MaskingFailed(Exception):
    """Raised when a photo cannot be decoded, normalized or rendered into a snip.

    No partial image is ever produced alongside this error.
    """
