"""Scales leading ingredient quantities by a serving factor."""

import logging
import re
from dataclasses import replace
from fractions import Fraction

from models import Item, RecipeDraft

logger = logging.getLogger(__name__)

_DECIMAL = r"(?:\d+(?:\.\d*)?|\.\d+)"
_FRACTION_PATTERN = re.compile(rf"^({_DECIMAL})/({_DECIMAL})$")
_DECIMAL_PATTERN = re.compile(rf"^{_DECIMAL}$")


def parse_quantity(token: str) -> float | None:
    """Parses "a/b" or a plain decimal. Returns None if the token is not a number."""
    token = token.strip()
    if not token:
        return None

    match = _FRACTION_PATTERN.match(token)
    if match:
        numerator = float(match.group(1))
        denominator = float(match.group(2))
        if denominator == 0:
            return None
        return numerator / denominator

    if _DECIMAL_PATTERN.match(token):
        return float(token)
    return None


def format_quantity(value: float) -> str:
    """Rounds to at most 2 decimals and drops trailing zeros: 2.50 -> "2.5", 4.0 -> "4"."""
    text = f"{round(value, 2):.2f}"
    text = text.rstrip("0").rstrip(".")
    return text or "0"


def scale_item(item: Item, factor: float | Fraction) -> Item:
    """Scales one ingredient. Headers and non-numeric lines pass through unchanged."""
    if item.is_header:
        return item

    quantity, _, rest = item.text.partition(" ")
    value = parse_quantity(quantity)
    if value is None:
        return item

    scaled = format_quantity(value * float(factor))
    text = f"{scaled} {rest}" if rest else scaled
    return replace(item, text=text)


def scale_recipe(draft: RecipeDraft, factor: float | Fraction = 1) -> RecipeDraft:
    """
    Returns a display copy of the draft with ingredient quantities scaled.

    Instructions are never scaled and the input draft is left untouched.

    Raises:
        ValueError: If factor is not positive.
    """
    if factor <= 0:
        raise ValueError(f"Scale factor must be positive, got {factor}")
    if factor == 1:
        ingredients = list(draft.ingredients)
    else:
        ingredients = [scale_item(item, factor) for item in draft.ingredients]
    logger.debug(f"Scaled {len(ingredients)} ingredients by {factor}")
    return RecipeDraft(ingredients=ingredients, instructions=list(draft.instructions))
