import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..exceptions import ImageDecodeError

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "JPEG"
OUTPUT_MIME_TYPE = "image/jpeg"


@dataclass
class NormalizedImage:
    """Bytes to persist together with the dimensions they decode to."""
    content: bytes
    width: int
    height: int
    format: Optional[str]
    mime_type: Optional[str]
    resized: bool
    original_width: int
    original_height: int

    @property
    def byte_size(self) -> int:
        return len(self.content)


class ImageNormalizer:
    """
    Validates image bytes and shrinks images that exceed the configured bounds.

    Images inside the bounds are returned untouched. Larger images are scaled
    down, keeping the aspect ratio, until they fit, then re-encoded as JPEG.
    """

    def __init__(self, max_width: int, max_height: int, quality: int = 85):
        if max_width <= 0 or max_height <= 0:
            raise ValueError("max_width and max_height must be positive")
        if not 1 <= quality <= 100:
            raise ValueError("quality must be between 1 and 100")
        self.max_width = max_width
        self.max_height = max_height
        self.quality = quality

    def normalize(self, data: bytes) -> NormalizedImage:
        if not data:
            raise ImageDecodeError("Empty file")

        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                width, height = img.size
                source_format = img.format
                source_mime = Image.MIME.get(source_format) if source_format else None

                if width <= self.max_width and height <= self.max_height:
                    return NormalizedImage(
                        content=data,
                        width=width,
                        height=height,
                        format=source_format,
                        mime_type=source_mime,
                        resized=False,
                        original_width=width,
                        original_height=height,
                    )

                # Encode before the with block closes the source image.
                resized = self._resize(img)
                buffer = io.BytesIO()
                resized.save(buffer, format=OUTPUT_FORMAT, quality=self.quality)
                content = buffer.getvalue()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            raise ImageDecodeError(f"Invalid image file: {e}") from e

        logger.debug(
            f"Resized {width}x{height} -> {resized.width}x{resized.height}, "
            f"{len(data)} -> {len(content)} bytes"
        )
        return NormalizedImage(
            content=content,
            width=resized.width,
            height=resized.height,
            format=OUTPUT_FORMAT,
            mime_type=OUTPUT_MIME_TYPE,
            resized=True,
            original_width=width,
            original_height=height,
        )

    def _resize(self, img: Image.Image) -> Image.Image:
        # thumbnail() keeps the aspect ratio and never enlarges.
        img.thumbnail((self.max_width, self.max_height), Image.Resampling.LANCZOS)
        # JPEG has no alpha channel or palette.
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        return img
