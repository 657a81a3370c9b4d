"""JPEG payload fitting for the remote OCR API size ceiling."""

import io

from PIL import Image

from src.utils.logger import get_logger

logger = get_logger(__name__)

# (scale, quality) attempts, tried in order until the payload fits.
_COMPRESSION_STEPS: list[tuple[float, int]] = [(1.0, 85), (1.0, 70), (0.7, 80)]


class PayloadTooLargeError(RuntimeError):
    """Raised when an image cannot be recompressed for upload."""


def encode_jpeg(image: Image.Image, quality: int, scale: float = 1.0) -> bytes:
    """Encode an image as JPEG, optionally resizing it first.

    Args:
        image: Source image.
        quality: JPEG quality (1-95).
        scale: Resize factor applied to both dimensions.

    Returns:
        JPEG bytes.
    """
    if scale != 1.0:
        size = (max(1, int(image.width * scale)), max(1, int(image.height * scale)))
        image = image.resize(size, Image.Resampling.BICUBIC)
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def fit_payload(image: Image.Image, max_bytes: int) -> bytes:
    """Encode an image under the upload ceiling with progressive recompression.

    Quality steps down first, then the image is physically resized. The
    last attempt is returned even if it is still over the ceiling.

    Args:
        image: Rendered page image.
        max_bytes: Upload size ceiling in bytes.

    Returns:
        JPEG bytes.

    Raises:
        PayloadTooLargeError: If encoding itself fails.
    """
    payload = b""
    try:
        for scale, quality in _COMPRESSION_STEPS:
            payload = encode_jpeg(image, quality, scale)
            if len(payload) <= max_bytes:
                logger.debug(
                    "Payload fits at scale %.1f quality %d (%d bytes)",
                    scale,
                    quality,
                    len(payload),
                )
                return payload
            logger.info(
                "Payload %d bytes over ceiling %d at quality %d, recompressing",
                len(payload),
                max_bytes,
                quality,
            )
    except (OSError, ValueError) as exc:
        raise PayloadTooLargeError(f"Image recompression failed: {exc}") from exc

    logger.warning("Payload still %d bytes after resizing, sending anyway", len(payload))
    return payload
