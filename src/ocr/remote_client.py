"""HTTP client for the remote OCR API.

Speaks the OCR.space-style wire contract: either a multipart upload
with a ``file`` part or an urlencoded ``base64Image`` data URI, plus
fixed recognition options and an ``apikey`` header.
"""

import base64

import requests

from src.utils.config import RemoteOCRConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

MULTIPART = "multipart"
BASE64 = "base64"


class RemoteOCRError(RuntimeError):
    """Raised when every transport encoding failed at the HTTP level."""


class RemoteOCRClient:
    """Blocking client for the remote OCR API with short fixed timeouts.

    Args:
        config: Endpoint, key and timeout settings.
        session: Optional pre-built ``requests`` session.
    """

    def __init__(
        self, config: RemoteOCRConfig, session: requests.Session | None = None
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.timeout = (config.connect_timeout, config.read_timeout)

    @property
    def is_configured(self) -> bool:
        """Whether the client is enabled and has an API key."""
        return self.config.enabled and bool(self.config.api_key)

    def recognize(
        self,
        content: bytes,
        filename: str = "document.jpg",
        content_type: str = "image/jpeg",
        prefer_base64: bool = False,
    ) -> str:
        """Recognize text, trying both transport encodings in turn.

        Some gateways silently reject one encoding, so an empty answer
        from the first encoding moves on to the second.

        Args:
            content: Encoded image bytes.
            filename: File name sent with the multipart part.
            content_type: MIME type of ``content``.
            prefer_base64: Try the base64 encoding first.

        Returns:
            Parsed text, or an empty string when the API found none.

        Raises:
            RemoteOCRError: If every encoding failed with a transport error.
        """
        order = [BASE64, MULTIPART] if prefer_base64 else [MULTIPART, BASE64]
        last_error: Exception | None = None
        answered = False

        for encoding in order:
            try:
                if encoding == MULTIPART:
                    text = self.recognize_multipart(content, filename, content_type)
                else:
                    text = self.recognize_base64(content, content_type)
            except (requests.RequestException, ValueError) as exc:
                logger.warning("Remote OCR %s request failed: %s", encoding, exc)
                last_error = exc
                continue

            answered = True
            if text.strip():
                logger.info("Remote OCR (%s) returned %d characters", encoding, len(text))
                return text
            logger.info("Remote OCR (%s) returned no text", encoding)

        if not answered and last_error is not None:
            raise RemoteOCRError(f"Remote OCR unavailable: {last_error}") from last_error
        return ""

    def recognize_multipart(
        self, content: bytes, filename: str, content_type: str
    ) -> str:
        """Send the image as a multipart ``file`` part."""
        response = self.session.post(
            self.config.api_url,
            headers=self._headers(),
            data=self._options(),
            files={"file": (filename, content, content_type)},
            timeout=self.timeout,
        )
        return self._parse_response(response)

    def recognize_base64(self, content: bytes, content_type: str = "image/jpeg") -> str:
        """Send the image as an urlencoded ``base64Image`` data URI."""
        encoded = base64.b64encode(content).decode("ascii")
        mime = content_type if content_type.startswith("image/") else "image/jpeg"
        data = self._options()
        data["base64Image"] = f"data:{mime};base64,{encoded}"
        response = self.session.post(
            self.config.api_url,
            headers=self._headers(),
            data=data,
            timeout=self.timeout,
        )
        return self._parse_response(response)

    def _headers(self) -> dict[str, str]:
        return {"apikey": self.config.api_key or ""}

    def _options(self) -> dict[str, str]:
        return {
            "language": self.config.language,
            "isOverlayRequired": "false",
            "detectOrientation": "true",
            "scale": "true",
            "OCREngine": str(self.config.engine),
        }

    @staticmethod
    def _parse_response(response: requests.Response) -> str:
        """Pull the parsed text out of an API response.

        An error flag or a missing result yields an empty string.

        Raises:
            requests.HTTPError: On a non-2xx status.
            ValueError: If the body is not JSON.
        """
        response.raise_for_status()
        payload = response.json()

        if payload.get("IsErroredOnProcessing"):
            message = payload.get("ErrorMessage") or payload.get("ErrorDetails")
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            logger.warning("Remote OCR reported an error: %s", message)
            return ""

        results = payload.get("ParsedResults") or []
        if not results:
            logger.warning("Remote OCR response has no parsed results")
            return ""
        return results[0].get("ParsedText") or ""
