"""Heuristic parser that splits plain recipe text into ingredients and instructions.

Works line by line with a small state machine. Section markers ("Ingredients",
"Directions") switch the state, footer markers ("Notes", "Nutrition") end it,
and everything in between is collected for the current section.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from models import Item, RecipeDraft

logger = logging.getLogger(__name__)


class Section(Enum):
    NONE = "none"
    INGREDIENTS = "ingredients"
    INSTRUCTIONS = "instructions"


INGREDIENT_KEYWORDS = ("ingredient", "shopping list", "what you need")
INSTRUCTION_KEYWORDS = ("instruction", "direction", "method", "preparation", "how to make", "steps")
STOP_KEYWORDS = ("notes", "recipe notes", "nutrition")
UI_CHROME = ("jump to", "print recipe", "us customary")

MAX_STOP_LINE = 60
MAX_SECTION_MARKER = 100
MAX_INGREDIENT_LINE = 200
MAX_SUBHEADER = 50

_WHITESPACE = re.compile(r"\s+")

# Bullets, dashes, asterisks, brackets, checkboxes, an "o" used as a bullet,
# and "1." / "2)" step numbering.
_BULLET_PATTERN = re.compile(
    r"^(?:[\s•‣◦⁃∙*\-+\[\]☐☑☒■□▪▫]"
    r"|o(?=\s)"
    r"|\d+[.)](?=\s))+"
)

_INGREDIENT_SUBHEADER = re.compile(
    r"^(For |To |Make |Filling|Crust|Sauce|Frosting|Dressing|Marinade)", re.IGNORECASE
)
_INSTRUCTION_SUBHEADER = re.compile(r"^(For |To |Make )", re.IGNORECASE)


@dataclass(frozen=True)
class Emission:
    """A line to append to a section."""
    section: Section
    item: Item


def strip_bullet(line: str) -> str:
    """Removes leading list glyphs and numbering, collapsing inner whitespace. Idempotent."""
    return _WHITESPACE.sub(" ", _BULLET_PATTERN.sub("", line)).strip()


def _is_section_marker(lower: str, keywords: tuple[str, ...]) -> bool:
    return len(lower) < MAX_SECTION_MARKER and any(k in lower for k in keywords)


def is_subheader(text: str, section: Section) -> bool:
    if text.endswith(":"):
        return True
    if len(text) >= MAX_SUBHEADER:
        return False
    pattern = _INGREDIENT_SUBHEADER if section is Section.INGREDIENTS else _INSTRUCTION_SUBHEADER
    return bool(pattern.match(text))


def transition(state: Section, line: str) -> tuple[Section, Emission | None]:
    """
    Classifies one raw line given the current section.

    The checks run in a fixed order: footer stop, UI chrome skip, section
    marker, content. Returns the next state and the item to emit, if any.
    """
    text = strip_bullet(line)
    if not text:
        return state, None
    lower = text.lower()

    if len(lower) < MAX_STOP_LINE and lower.startswith(STOP_KEYWORDS):
        logger.debug(f"Stop keyword: {text!r}")
        return Section.NONE, None

    # "Ingredients US Customary" is still a section marker
    marker_candidate = any(k in lower for k in INGREDIENT_KEYWORDS + INSTRUCTION_KEYWORDS)
    if not marker_candidate and any(chrome in lower for chrome in UI_CHROME):
        logger.debug(f"Skipping UI element: {text!r}")
        return state, None

    if _is_section_marker(lower, INGREDIENT_KEYWORDS):
        logger.debug(f"Section detected (ingredients): {text!r}")
        return Section.INGREDIENTS, None
    if _is_section_marker(lower, INSTRUCTION_KEYWORDS):
        logger.debug(f"Section detected (instructions): {text!r}")
        return Section.INSTRUCTIONS, None

    if state is Section.NONE:
        return state, None
    if state is Section.INGREDIENTS and len(text) >= MAX_INGREDIENT_LINE:
        return state, None

    item = Item(text=text, is_header=is_subheader(text, state))
    return state, Emission(section=state, item=item)


def split_lines(text: str) -> list[str]:
    """Non-empty lines, trimmed and whitespace-collapsed."""
    lines = (_WHITESPACE.sub(" ", line).strip() for line in text.splitlines())
    return [line for line in lines if line]


def classify_text(text: str) -> RecipeDraft:
    """
    Parses plain text into a RecipeDraft.

    If no section could be identified at all, the lines are split at their
    midpoint: the first half become ingredients, the rest instructions.
    """
    lines = split_lines(text)
    ingredients: list[Item] = []
    instructions: list[Item] = []

    state = Section.NONE
    for line in lines:
        state, emission = transition(state, line)
        if emission is None:
            continue
        if emission.section is Section.INGREDIENTS:
            ingredients.append(emission.item)
        else:
            instructions.append(emission.item)

    if not ingredients and not instructions and lines:
        midpoint = len(lines) // 2
        logger.info(f"No sections found, splitting {len(lines)} lines at midpoint")
        ingredients = [Item(text=line) for line in lines[:midpoint]]
        instructions = [Item(text=line) for line in lines[midpoint:]]

    logger.info(f"Parsed: {len(ingredients)} ingredients, {len(instructions)} instructions")
    return RecipeDraft(ingredients=ingredients, instructions=instructions)
