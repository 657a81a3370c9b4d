"""Configuration management for the document and rota extraction engine.

Loads and validates YAML configuration with sensible defaults for
preprocessing, OCR backends, field extraction, and schedule parsing.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PreprocessingConfig(BaseModel):
    """Configuration for the image preprocessor.

    The pixel thresholds were tuned empirically against scanned hotel
    timesheets with yellow and orange cell fills.
    """

    target_width: int = 2000
    contrast_factor: float = 1.2
    sharpen_center: float = 3.0
    sharpen_edge: float = -0.5
    dark_brightness: int = 130
    white_brightness: int = 230
    yellow_score: int = 100
    orange_score: int = 80
    orange_min_red: int = 150
    light_yellow: tuple[int, int, int] = (180, 180, 160)
    medium_yellow: tuple[int, int, int] = (150, 140, 120)
    orange_yellow: tuple[int, int, int] = (180, 120, 120)
    gray_channel_spread: int = 40
    gray_min_brightness: int = 140
    light_brightness: int = 180
    tint_min_brightness: int = 140
    tint_blue_margin: int = 20
    apply_to_documents: bool = False


class OCRConfig(BaseModel):
    """Configuration for the local Tesseract engine."""

    enabled: bool = True
    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    oem: int = 1
    psm: int = 1
    rota_psm: int = 6
    rota_whitelist: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789 -:./"
    pdf_dpi: int = 300


class RemoteOCRConfig(BaseModel):
    """Configuration for the remote OCR HTTP API."""

    enabled: bool = False
    api_url: str = "https://api.ocr.space/parse/image"
    api_key: str | None = None
    language: str = "eng"
    engine: int = 2
    connect_timeout: float = 5.0
    read_timeout: float = 5.0
    max_payload_bytes: int = 900 * 1024
    render_dpi: int = 200
    embedded_text_min_chars: int = 50


class ExtractionConfig(BaseModel):
    """Configuration for field extraction and document-type checks."""

    document_types_path: str = "configs/document_types.yaml"
    authority_window: int = 200


class ScheduleConfig(BaseModel):
    """Configuration for rota parsing and employee name matching."""

    header_anchor: str = "TIMESHEET"
    site_suffix: str = "HOTEL"
    unit_label: str = "set-up"
    unit_label_repeats: int = 3
    banner_phrases: list[str] = Field(
        default_factory=lambda: ["timesheet", "conference", "banquet"]
    )
    min_line_length: int = 5
    min_alnum_chars: int = 5
    max_special_ratio: float = 0.5
    token_similarity: float = 0.70
    line_similarity: float = 0.60
    line_prefix_chars: int = 30
    prefix_chars: int = 5
    unique_first_name_min: int = 6
    sparse_threshold: int = 5
    next_year_after_months: int = 6
    fallback_days: int = 7


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    remote_ocr: RemoteOCRConfig = Field(default_factory=RemoteOCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    The remote OCR key is taken from ``OCR_API_KEY`` when the file
    does not set one.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        config = AppConfig(**raw)
    else:
        logger.info("No config file found at %s, using defaults", path)
        config = AppConfig()

    if not config.remote_ocr.api_key and os.environ.get("OCR_API_KEY"):
        config.remote_ocr.api_key = os.environ["OCR_API_KEY"]
    return config
