"""Colored cell background removal for scanned timesheets.

Each pixel is classified by an ordered list of rules; the first rule
whose predicate matches decides the pixel. Rules with a replacement
paint the pixel (white for background tints), rules without one keep
it unchanged. Evaluation is vectorised over the whole image.
"""

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from src.utils.config import PreprocessingConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

WHITE = (255, 255, 255)

Predicate = Callable[["Channels"], np.ndarray]


@dataclass
class Channels:
    """Signed per-channel views of a BGR image plus mean brightness."""

    r: np.ndarray
    g: np.ndarray
    b: np.ndarray
    brightness: np.ndarray

    @classmethod
    def from_bgr(cls, image: np.ndarray) -> "Channels":
        pixels = image.astype(np.int32)
        b, g, r = pixels[..., 0], pixels[..., 1], pixels[..., 2]
        return cls(r=r, g=g, b=b, brightness=(r + g + b) // 3)


@dataclass
class PixelRule:
    """A single pixel classification rule.

    Attributes:
        name: Rule label used in debug logging.
        predicate: Returns a boolean mask of pixels the rule claims.
        replacement: BGR color painted over claimed pixels, or ``None``
            to keep them unchanged.
    """

    name: str
    predicate: Predicate
    replacement: tuple[int, int, int] | None = WHITE


def build_background_rules(config: PreprocessingConfig) -> list[PixelRule]:
    """Build the ordered background rule set from configuration.

    Args:
        config: Preprocessing thresholds.

    Returns:
        Rules in evaluation order, dark text first.
    """
    c = config
    ly, my, oy = c.light_yellow, c.medium_yellow, c.orange_yellow
    return [
        PixelRule("dark_text", lambda p: p.brightness < c.dark_brightness, None),
        PixelRule("near_white", lambda p: p.brightness > c.white_brightness),
        PixelRule("yellow", lambda p: (p.r + p.g - 2 * p.b) > c.yellow_score),
        PixelRule(
            "orange",
            lambda p: ((p.r - p.b) > c.orange_score) & (p.r > c.orange_min_red),
        ),
        PixelRule(
            "light_yellow", lambda p: (p.r > ly[0]) & (p.g > ly[1]) & (p.b < ly[2])
        ),
        PixelRule(
            "medium_yellow", lambda p: (p.r > my[0]) & (p.g > my[1]) & (p.b < my[2])
        ),
        PixelRule(
            "orange_yellow", lambda p: (p.r > oy[0]) & (p.g > oy[1]) & (p.b < oy[2])
        ),
        PixelRule(
            "gray_beige",
            lambda p: (np.abs(p.r - p.g) < c.gray_channel_spread)
            & (np.abs(p.g - p.b) < c.gray_channel_spread)
            & (p.brightness > c.gray_min_brightness),
        ),
        PixelRule("light", lambda p: p.brightness > c.light_brightness),
        PixelRule(
            "tint",
            lambda p: (p.brightness > c.tint_min_brightness)
            & (
                (p.r > p.b + c.tint_blue_margin)
                | (p.g > p.b + c.tint_blue_margin)
            ),
        ),
    ]


def apply_pixel_rules(image: np.ndarray, rules: list[PixelRule]) -> np.ndarray:
    """Apply first-match-wins pixel rules to a BGR image.

    Args:
        image: Input image in BGR order (3 channels).
        rules: Ordered classification rules.

    Returns:
        A new image with claimed pixels repainted.
    """
    channels = Channels.from_bgr(image)
    result = image.copy()
    decided = np.zeros(image.shape[:2], dtype=bool)

    for rule in rules:
        mask = rule.predicate(channels) & ~decided
        if rule.replacement is not None:
            result[mask] = rule.replacement
        decided |= mask
        logger.debug("Pixel rule %s claimed %d pixels", rule.name, int(mask.sum()))

    return result


def remove_colored_background(
    image: np.ndarray, config: PreprocessingConfig
) -> np.ndarray:
    """Replace tinted cell backgrounds with white, keeping dark text.

    Args:
        image: Input image in BGR order.
        config: Preprocessing thresholds.

    Returns:
        Cleaned BGR image.
    """
    return apply_pixel_rules(image, build_background_rules(config))
