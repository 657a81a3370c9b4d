"""Tests for JPEG payload fitting."""

import io
from unittest.mock import patch

import numpy as np
import pytest
from PIL import Image

from src.ocr.image_payload import PayloadTooLargeError, encode_jpeg, fit_payload


def _make_noise_image(size: int = 100) -> Image.Image:
    rng = np.random.default_rng(0)
    return Image.fromarray(rng.integers(0, 255, (size, size, 3), dtype=np.uint8))


class TestEncodeJpeg:
    """Tests for encode_jpeg."""

    def test_output_is_jpeg(self) -> None:
        payload = encode_jpeg(_make_noise_image(), quality=85)
        assert payload[:2] == b"\xff\xd8"

    def test_scale(self) -> None:
        payload = encode_jpeg(_make_noise_image(), quality=80, scale=0.5)
        assert Image.open(io.BytesIO(payload)).size == (50, 50)

    def test_rgba_converted(self) -> None:
        image = Image.new("RGBA", (20, 20), (255, 0, 0, 128))
        assert encode_jpeg(image, quality=85)[:2] == b"\xff\xd8"


class TestFitPayload:
    """Tests for progressive recompression."""

    def test_small_image_fits_first_try(self) -> None:
        image = _make_noise_image()
        with patch("src.ocr.image_payload.encode_jpeg", wraps=encode_jpeg) as spy:
            fit_payload(image, max_bytes=10_000_000)
        spy.assert_called_once_with(image, 85, 1.0)

    def test_oversized_returns_last_attempt(self) -> None:
        payload = fit_payload(_make_noise_image(), max_bytes=1)
        assert Image.open(io.BytesIO(payload)).size == (70, 70)

    def test_encoding_failure(self) -> None:
        with patch("src.ocr.image_payload.encode_jpeg", side_effect=OSError("disk")):
            with pytest.raises(PayloadTooLargeError):
                fit_payload(_make_noise_image(), max_bytes=1000)
