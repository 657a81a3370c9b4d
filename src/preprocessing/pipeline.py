"""Image preprocessing pipeline for scanned rotas and document photos.

Upscales small scans, strips colored cell backgrounds, converts to
grayscale, applies a mild contrast boost and a light sharpen, tracking
quality metrics before and after.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from src.utils.config import PreprocessingConfig
from src.utils.logger import get_logger

from .color_removal import remove_colored_background

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def _to_gray(image: np.ndarray) -> np.ndarray:
    if len(image.shape) == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(_to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(_to_gray(image).std())


def decode_image(content: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, TIFF) into a BGR array.

    Raises:
        ValueError: If the bytes are not a readable image.
    """
    buffer = np.frombuffer(content, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Unreadable image content")
    return image


def encode_png(image: np.ndarray) -> bytes:
    """Encode an image array as PNG bytes."""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("PNG encoding failed")
    return buffer.tobytes()


class ImagePreprocessor:
    """Cleans a scanned page before text recognition.

    Args:
        config: Preprocessing thresholds and target width.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config
        edge = config.sharpen_edge
        self.sharpen_kernel = np.array(
            [[0, edge, 0], [edge, config.sharpen_center, edge], [0, edge, 0]],
            dtype=np.float32,
        )

    def process(self, image: np.ndarray) -> np.ndarray:
        """Run the preprocessing steps, falling back to the input on failure.

        Args:
            image: Input image (BGR, BGRA or grayscale).

        Returns:
            The cleaned grayscale image, or the original image unchanged
            when any step raised.
        """
        try:
            result, _ = self.process_with_metrics(image)
            return result
        except Exception as exc:
            logger.warning("Preprocessing failed, using original image: %s", exc)
            return image

    def process_with_metrics(
        self, image: np.ndarray
    ) -> tuple[np.ndarray, QualityMetrics]:
        """Run the preprocessing steps and measure their effect.

        Args:
            image: Input image (BGR, BGRA or grayscale).

        Returns:
            Tuple of (processed_image, quality_metrics).
        """
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            contrast_before=calculate_contrast(image),
            sharpness_after=0.0,
            contrast_after=0.0,
        )

        result = self.upscale(image)
        if len(result.shape) == 3:
            if result.shape[2] == 4:
                result = cv2.cvtColor(result, cv2.COLOR_BGRA2BGR)
            result = remove_colored_background(result, self.config)
        result = _to_gray(result)
        result = cv2.convertScaleAbs(result, alpha=self.config.contrast_factor, beta=0)
        result = cv2.filter2D(result, -1, self.sharpen_kernel)

        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)

        logger.info(
            "Preprocessing complete: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics

    def upscale(self, image: np.ndarray) -> np.ndarray:
        """Scale the image up to the target width with bicubic interpolation.

        Images already at or above the target width are returned as-is.
        """
        height, width = image.shape[:2]
        if width >= self.config.target_width:
            return image
        scale = self.config.target_width / width
        new_size = (self.config.target_width, max(1, round(height * scale)))
        logger.debug("Upscaling image from %dx%d to %dx%d", width, height, *new_size)
        return cv2.resize(image, new_size, interpolation=cv2.INTER_CUBIC)
