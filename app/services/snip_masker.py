"""Service for cutting uploaded photos into transparent snips."""

import base64
import logging
import time
from typing import Optional

from app.config import settings
from snip_shapes import ShapeVariant, mask_image

logger = logging.getLogger(__name__)


class SnipMasker:
    """Cuts photos into shaped PNG snips at final or preview resolution."""

    def __init__(
        self,
        output_width: int = 800,
        preview_width: int = 400,
        max_width: int = 2048,
        supersample: int = 4,
    ):
        """Initialize the snip masker.

        Args:
            output_width: Width in pixels of final snips.
            preview_width: Width in pixels of preview snips.
            max_width: Largest width a caller may request.
            supersample: Anti-aliasing factor for shape edges.
        """
        self.output_width = output_width
        self.preview_width = preview_width
        self.max_width = max_width
        self.supersample = supersample

    def resolve_width(self, preview: bool = False, width: Optional[int] = None) -> int:
        """Pick the output width for a request.

        Raises:
            ValueError: If an explicit width is outside 1..max_width.
        """
        if width is None:
            return self.preview_width if preview else self.output_width
        if not 1 <= width <= self.max_width:
            raise ValueError(f"Width must be between 1 and {self.max_width}, got {width}")
        return width

    def mask(
        self,
        image_bytes: bytes,
        shape: ShapeVariant,
        rotation: int = 0,
        preview: bool = False,
        width: Optional[int] = None,
    ) -> bytes:
        """Cut a photo into a snip.

        Args:
            image_bytes: Encoded source photo.
            shape: Shape to cut.
            rotation: Clockwise rotation in degrees (0, 90, 180, 270).
            preview: Render at preview width instead of output width.
            width: Explicit width, overriding preview/output width.

        Returns:
            Transparent PNG bytes.

        Raises:
            MaskingFailed: If the photo cannot be decoded or rendered.
        """
        target_width = self.resolve_width(preview, width)
        started = time.perf_counter()
        png = mask_image(image_bytes, shape, rotation=rotation, width=target_width, supersample=self.supersample)
        logger.info(
            "Masked %s snip at %dpx, rotation %d (%d bytes, %.0f ms)",
            ShapeVariant(shape).value,
            target_width,
            rotation,
            len(png),
            (time.perf_counter() - started) * 1000,
        )
        return png

    def to_data_url(self, png: bytes) -> str:
        """Convert PNG bytes to a base64 data URL.

        Args:
            png: The PNG bytes.

        Returns:
            Base64 encoded data URL string.
        """
        base64_data = base64.b64encode(png).decode("utf-8")
        return f"data:image/png;base64,{base64_data}"


# Singleton instance
_snip_masker: Optional[SnipMasker] = None


def get_snip_masker() -> SnipMasker:
    """Get the singleton SnipMasker instance."""
    global _snip_masker
    if _snip_masker is None:
        _snip_masker = SnipMasker(
            output_width=settings.OUTPUT_WIDTH,
            preview_width=settings.PREVIEW_WIDTH,
            max_width=settings.MAX_OUTPUT_WIDTH,
            supersample=settings.MASK_SUPERSAMPLE,
        )
    return _snip_masker
