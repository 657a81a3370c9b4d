"""Tesseract OCR engine wrapper.

The engine is constructed once and shared; every call builds its own
Tesseract config string so concurrent callers never mutate shared
segmentation or whitelist settings.
"""

import shutil

import cv2
import numpy as np
import pytesseract
from PIL import Image

from src.utils.logger import get_logger

logger = get_logger(__name__)


def build_tesseract_config(
    oem: int,
    psm: int,
    whitelist: str | None = None,
    preserve_spaces: bool = False,
) -> str:
    """Build a Tesseract command-line config string.

    Args:
        oem: OCR engine mode (1 = LSTM only).
        psm: Page segmentation mode.
        whitelist: Optional set of characters Tesseract may emit.
        preserve_spaces: Keep runs of spaces between words, which helps
            column-aligned tables.

    Returns:
        Config string for ``pytesseract``.
    """
    parts = [f"--oem {oem}", f"--psm {psm}"]
    if whitelist:
        parts.append(f'-c tessedit_char_whitelist="{whitelist}"')
    if preserve_spaces:
        parts.append("-c preserve_interword_spaces=1")
    return " ".join(parts)


class TesseractEngine:
    """Wrapper around Tesseract OCR for plain-text extraction.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: Default OCR language code.
        oem: OCR engine mode used for every call.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        oem: int = 1,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.tesseract_cmd = tesseract_cmd or "tesseract"
        self.default_lang = default_lang
        self.oem = oem

    def is_available(self) -> bool:
        """Return whether the Tesseract binary can be found."""
        return shutil.which(self.tesseract_cmd) is not None

    def extract_text(
        self,
        image: np.ndarray | Image.Image,
        lang: str | None = None,
        psm: int = 1,
        whitelist: str | None = None,
    ) -> str:
        """Extract plain text from an image.

        Args:
            image: Page image as a PIL image or numpy array (BGR when
                three channels).
            lang: OCR language code. Defaults to the engine default.
            psm: Tesseract page segmentation mode.
            whitelist: Optional character whitelist for tabular sources.

        Returns:
            Recognized text, possibly empty.

        Raises:
            pytesseract.TesseractError: If the engine fails on the image.
        """
        lang = lang or self.default_lang
        config = build_tesseract_config(
            self.oem, psm, whitelist=whitelist, preserve_spaces=whitelist is not None
        )
        pil_image = self._to_pil(image)
        text = pytesseract.image_to_string(pil_image, lang=lang, config=config)
        logger.info("Tesseract extracted %d characters (psm=%d)", len(text), psm)
        return text

    @staticmethod
    def _to_pil(image: np.ndarray | Image.Image) -> Image.Image:
        if isinstance(image, Image.Image):
            return image
        if len(image.shape) == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return Image.fromarray(image)
