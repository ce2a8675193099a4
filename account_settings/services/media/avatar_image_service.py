"""
Avatar image ingestion.

Decodes a user-selected image, shrinks it so the larger side fits the
configured bound, recompresses it as JPEG until it fits the byte budget and
returns it as a base64 data URL ready to hand to the storage endpoint.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from common.utils.exceptions import ImageProcessingException

logger = logging.getLogger(__name__)

MAX_IMAGE_PIXELS = 40_000_000  # decompression bomb guard
INITIAL_JPEG_QUALITY = 90
MIN_JPEG_QUALITY = 30
QUALITY_STEP = 10
MIN_DIMENSION = 16
OUTPUT_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ProcessedImage:
    """Compressed avatar, encoded for transport."""
    payload: str  # data:image/jpeg;base64,...
    content_type: str
    width: int
    height: int
    byte_size: int


class AvatarImageService:
    """
    Validates and compresses avatar images with Pillow.
    """

    def __init__(
        self,
        max_dimension: int = 512,
        max_bytes: int = 10 * 1024 * 1024,
    ):
        """
        Initialize AvatarImageService.

        Args:
            max_dimension: Larger side of the output image, in pixels
            max_bytes: Upper bound for the encoded JPEG, in bytes
        """
        if max_dimension < MIN_DIMENSION:
            raise ValueError(f"max_dimension must be at least {MIN_DIMENSION}")
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")

        self._max_dimension = max_dimension
        self._max_bytes = max_bytes

    async def process_async(self, raw: bytes) -> ProcessedImage:
        """
        Run process() on a worker thread so the event loop stays free.

        Args:
            raw: Raw image file bytes

        Returns:
            ProcessedImage within the configured bounds
        """
        return await asyncio.to_thread(self.process, raw)

    def process(self, raw: bytes) -> ProcessedImage:
        """
        Decode, resize and recompress an image.

        Args:
            raw: Raw image file bytes (any format Pillow can decode)

        Returns:
            ProcessedImage within the configured bounds

        Raises:
            ImageProcessingException: Empty, undecodable, oversized or
                incompressible input
        """
        if not raw:
            raise ImageProcessingException(
                message="The selected file is empty",
                code="IMAGE_EMPTY"
            )

        img = self._decode(raw)
        img = self._normalize(img)
        img = self._fit(img, self._max_dimension)

        data, (width, height) = self._compress(img)

        logger.debug(
            f"Avatar processed: {len(raw)} -> {len(data)} bytes, {width}x{height}"
        )

        return ProcessedImage(
            payload=f"data:{OUTPUT_CONTENT_TYPE};base64,{base64.b64encode(data).decode('ascii')}",
            content_type=OUTPUT_CONTENT_TYPE,
            width=width,
            height=height,
            byte_size=len(data),
        )

    def _decode(self, raw: bytes) -> Image.Image:
        try:
            with Image.open(BytesIO(raw)) as candidate:
                width, height = candidate.size
                if width * height > MAX_IMAGE_PIXELS:
                    raise ImageProcessingException(
                        message=(
                            f"Image dimensions too large ({width}x{height}). "
                            f"Maximum is {MAX_IMAGE_PIXELS:,} pixels."
                        ),
                        code="IMAGE_TOO_LARGE"
                    )
                candidate.verify()

            # verify() leaves the image unusable, reopen for decoding
            img = Image.open(BytesIO(raw))
            img.load()
            return img
        except ImageProcessingException:
            raise
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            logger.warning(f"Rejected avatar image: {e}")
            raise ImageProcessingException(
                message="The selected file is not a valid image",
                code="IMAGE_INVALID"
            )

    def _normalize(self, img: Image.Image) -> Image.Image:
        """Apply EXIF orientation and convert to RGB, flattening alpha on white."""
        img = ImageOps.exif_transpose(img)

        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background

        if img.mode != "RGB":
            return img.convert("RGB")

        return img

    @staticmethod
    def _fit(img: Image.Image, max_dimension: int) -> Image.Image:
        """Downscale so the larger side is at most max_dimension. Never upscales."""
        if max(img.size) <= max_dimension:
            return img

        img = img.copy()
        img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
        return img

    def _compress(self, img: Image.Image):
        """
        Encode as JPEG, lowering quality and then dimensions until the
        payload fits max_bytes.

        Returns:
            (jpeg_bytes, (width, height))
        """
        while True:
            quality = INITIAL_JPEG_QUALITY
            while quality >= MIN_JPEG_QUALITY:
                data = self._encode_jpeg(img, quality)
                if len(data) <= self._max_bytes:
                    return data, img.size
                quality -= QUALITY_STEP

            next_dimension = max(img.size) // 2
            if next_dimension < MIN_DIMENSION:
                raise ImageProcessingException(
                    message="The selected image could not be compressed enough",
                    code="IMAGE_TOO_LARGE"
                )
            img = self._fit(img, next_dimension)

    @staticmethod
    def _encode_jpeg(img: Image.Image, quality: int) -> bytes:
        output = BytesIO()
        img.save(output, format="JPEG", quality=quality, optimize=True)
        return output.getvalue()
