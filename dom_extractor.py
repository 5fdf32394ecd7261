"""Extracts ingredients and instructions from recipe page markup."""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, FeatureNotFound, Tag

from line_classifier import INGREDIENT_KEYWORDS, classify_text
from models import Item, RecipeDraft

logger = logging.getLogger(__name__)

# =============================================================================
# SELECTORS
# =============================================================================

NON_CONTENT_TAGS = ["script", "style", "nav", "footer", "iframe", "svg", "noscript"]

# Wrappers of common recipe plugins (WP Recipe Maker, Tasty Recipes, Mediavine Create, ...)
RECIPE_CONTAINER_SELECTORS = [
    ".wprm-recipe-container",
    ".tasty-recipes",
    ".mv-create-wrapper",
    ".recipe-card",
    '[class*="recipe-container"]',
    '[class*="recipe-card"]',
]


@dataclass(frozen=True)
class SelectorStrategy:
    selector: str
    header_selector: str | None = None


INGREDIENT_STRATEGIES = [
    SelectorStrategy(
        ".wprm-recipe-ingredients-container .wprm-recipe-group-name, "
        ".wprm-recipe-ingredients-container .wprm-recipe-ingredient",
        ".wprm-recipe-group-name",
    ),
    SelectorStrategy(
        ".tasty-recipes-ingredients .tasty-recipes-group-name, .tasty-recipes-ingredients li",
        ".tasty-recipes-group-name",
    ),
    SelectorStrategy(
        ".mv-create-ingredients .mv-create-ingredients-header, .mv-create-ingredients li",
        ".mv-create-ingredients-header",
    ),
    SelectorStrategy(
        ".recipe-ingredients h3, .recipe-ingredients h4, .recipe-ingredients li",
        ".recipe-ingredients h3, .recipe-ingredients h4",
    ),
    SelectorStrategy('li[class*="ingredient"]'),
]

INSTRUCTION_STRATEGIES = [
    SelectorStrategy(
        ".wprm-recipe-instructions-container .wprm-recipe-group-name, "
        ".wprm-recipe-instructions-container .wprm-recipe-instruction",
        ".wprm-recipe-group-name",
    ),
    SelectorStrategy(
        ".tasty-recipes-instructions .tasty-recipes-group-name, .tasty-recipes-instructions li",
        ".tasty-recipes-group-name",
    ),
    SelectorStrategy(
        ".mv-create-instructions .mv-create-instructions-header, .mv-create-instructions li",
        ".mv-create-instructions-header",
    ),
    SelectorStrategy(
        ".recipe-instructions h3, .recipe-instructions h4, .recipe-instructions li",
        ".recipe-instructions h3, .recipe-instructions h4",
    ),
    SelectorStrategy('li[class*="instruction"]'),
]

HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6, strong, b, div"
INSTRUCTION_HEADING_KEYWORDS = ("instruction", "direction", "method", "preparation")

MIN_ITEM_LENGTH = 3
MAX_HEADING_LENGTH = 100
SIBLING_LOOKAHEAD = 5
MIN_READABLE_TEXT = 1500
BLOCK_TAGS = "p, div, h1, h2, h3, h4, h5, h6, li, br, tr"

_WHITESPACE = re.compile(r"\s+")
_BLOCK_BREAK = "\u2029"
_STEP_NUMBER = re.compile(r"^\d+\.\s*")


class UnsupportedEnvironmentError(RuntimeError):
    """Raised when no HTML document parser is available."""
    pass


@dataclass
class PageMetadata:
    """Data harvested from <script type="application/ld+json"> before scripts are removed."""
    caption_text: str = ""
    schema_recipes: list[dict] = field(default_factory=list)


# =============================================================================
# PARSING
# =============================================================================

def parse_document(html: str, backend: str = "html.parser") -> BeautifulSoup:
    """
    Parses HTML into a document tree.

    Raises:
        UnsupportedEnvironmentError: If the tree builder is not installed.
    """
    try:
        return BeautifulSoup(html, backend)
    except FeatureNotFound as e:
        raise UnsupportedEnvironmentError(
            f"HTML parser '{backend}' is not available in this environment"
        ) from e


def collapse_text(element: Tag) -> str:
    return _WHITESPACE.sub(" ", element.get_text(" ")).strip()


def _iter_json_ld(data):
    """Yields JSON-LD objects from a single object, a list, or an @graph container."""
    if isinstance(data, list):
        for entry in data:
            yield from _iter_json_ld(entry)
    elif isinstance(data, dict):
        yield data
        if isinstance(data.get("@graph"), list):
            for entry in data["@graph"]:
                yield from _iter_json_ld(entry)


def _is_schema_recipe(data: dict) -> bool:
    schema_type = data.get("@type", "")
    if isinstance(schema_type, list):
        return "Recipe" in schema_type
    return schema_type == "Recipe"


def harvest_json_ld(soup: BeautifulSoup) -> PageMetadata:
    """Collects description/articleBody text and schema.org Recipe objects."""
    metadata = PageMetadata()
    texts = []

    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            logger.debug("Skipping unparsable JSON-LD block")
            continue

        for entry in _iter_json_ld(data):
            for key in ("description", "articleBody"):
                value = entry.get(key)
                if isinstance(value, str) and value.strip():
                    texts.append(value)
            if _is_schema_recipe(entry):
                metadata.schema_recipes.append(entry)

    metadata.caption_text = "\n".join(texts)
    return metadata


def remove_non_content(soup: BeautifulSoup) -> None:
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()


def meta_description(soup: BeautifulSoup) -> str:
    for attrs in ({"property": "og:description"}, {"name": "description"}):
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content"):
            return tag["content"]
    return ""


def find_recipe_container(soup: BeautifulSoup) -> Tag:
    """Narrows the search to a known recipe plugin wrapper, else the body."""
    for selector in RECIPE_CONTAINER_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            logger.info(f"Found recipe container: {selector}")
            return container
    return soup.body or soup


# =============================================================================
# STRATEGIES
# =============================================================================

def extract_with_selectors(root: Tag, strategies: list[SelectorStrategy]) -> list[Item]:
    """First strategy whose selector matches anything wins, even if all its items are filtered."""
    for strategy in strategies:
        elements = root.select(strategy.selector)
        if not elements:
            continue

        logger.info(f"Selector strategy matched {len(elements)} elements: {strategy.selector[:60]}")
        items = []
        for element in elements:
            text = collapse_text(element)
            is_header = bool(strategy.header_selector) and element.css.match(strategy.header_selector)
            if len(text) >= MIN_ITEM_LENGTH or (is_header and text):
                items.append(Item(text=text, is_header=is_header))
        return items
    return []


def _list_items(list_tag: Tag) -> list[Item]:
    texts = (collapse_text(li) for li in list_tag.find_all("li"))
    return [Item(text=text) for text in texts if len(text) >= MIN_ITEM_LENGTH]


def find_list_after_heading(root: Tag, keywords: tuple[str, ...]) -> list[Item]:
    """Finds a heading mentioning a keyword and returns the first list that follows it."""
    for heading in root.select(HEADING_SELECTOR):
        text = heading.get_text(" ", strip=True).lower()
        if len(text) >= MAX_HEADING_LENGTH or not any(k in text for k in keywords):
            continue

        sibling = heading.find_next_sibling(True)
        attempts = 0
        while sibling is not None and attempts < SIBLING_LOOKAHEAD:
            if sibling.name in ("ul", "ol"):
                return _list_items(sibling)
            nested = sibling.select_one("ul, ol")
            if nested is not None:
                return _list_items(nested)
            sibling = sibling.find_next_sibling(True)
            attempts += 1
    return []


def strip_step_numbers(items: list[Item]) -> list[Item]:
    return [
        item if item.is_header else Item(text=_STEP_NUMBER.sub("", item.text), is_header=False)
        for item in items
    ]


def _schema_instruction_items(raw) -> list[Item]:
    if isinstance(raw, str):
        return [Item(text=line.strip()) for line in raw.split("\n") if line.strip()]
    if not isinstance(raw, list):
        return []

    items = []
    for entry in raw:
        if isinstance(entry, str) and entry.strip():
            items.append(Item(text=entry.strip()))
        elif isinstance(entry, dict):
            if entry.get("@type") == "HowToSection":
                if entry.get("name"):
                    items.append(Item(text=str(entry["name"]).strip(), is_header=True))
                items.extend(_schema_instruction_items(entry.get("itemListElement", [])))
            elif entry.get("text"):
                items.append(Item(text=_WHITESPACE.sub(" ", str(entry["text"])).strip()))
    return items


def draft_from_schema(data: dict) -> RecipeDraft:
    """Converts a schema.org Recipe object."""
    raw_ingredients = data.get("recipeIngredient", [])
    if isinstance(raw_ingredients, str):
        raw_ingredients = [raw_ingredients]
    ingredients = [
        Item(text=_WHITESPACE.sub(" ", str(i)).strip())
        for i in raw_ingredients if i and str(i).strip()
    ]
    instructions = strip_step_numbers(_schema_instruction_items(data.get("recipeInstructions", [])))
    return RecipeDraft(ingredients=ingredients, instructions=instructions)


def readable_text(element: Tag) -> str:
    """Visible text with one line per block element. Inline markup stays on its line."""
    for block in element.select(BLOCK_TAGS):
        block.insert_after(_BLOCK_BREAK)
    # source newlines inside a block are layout, not line breaks
    lines = (_WHITESPACE.sub(" ", chunk).strip() for chunk in element.get_text().split(_BLOCK_BREAK))
    return "\n".join(line for line in lines if line)


# =============================================================================
# ENTRY POINT
# =============================================================================

def extract_recipe_from_document(
    soup: BeautifulSoup,
    source_url: str = "",
    classify: Callable[[str], RecipeDraft] | None = None,
    social: bool = False,
) -> RecipeDraft:
    """
    Extracts a recipe from a parsed page.

    Order: social caption text (social pages only), plugin selectors and
    heading/list heuristics, schema.org Recipe data, then plain-text
    classification of the recipe container.
    """
    classify = classify or classify_text
    metadata = harvest_json_ld(soup)
    remove_non_content(soup)

    if social:
        combined = meta_description(soup) + "\n" + metadata.caption_text
        if combined.strip():
            logger.info(f"Using meta/JSON-LD caption for {source_url}")
            return classify(combined)

    root = find_recipe_container(soup)

    ingredients = extract_with_selectors(root, INGREDIENT_STRATEGIES)
    if not ingredients:
        ingredients = find_list_after_heading(root, INGREDIENT_KEYWORDS)

    instructions = extract_with_selectors(root, INSTRUCTION_STRATEGIES)
    if not instructions:
        instructions = find_list_after_heading(root, INSTRUCTION_HEADING_KEYWORDS)
    instructions = strip_step_numbers(instructions)

    if ingredients and instructions:
        logger.info(
            f"DOM extraction success: {len(ingredients)} ingredients, {len(instructions)} instructions"
        )
        return RecipeDraft(ingredients=ingredients, instructions=instructions)

    for schema in metadata.schema_recipes:
        draft = draft_from_schema(schema)
        if draft.ingredients and draft.instructions:
            logger.info("Recipe extracted from schema.org data")
            return draft

    logger.info("DOM extraction failed, falling back to text parsing")
    body = soup.body or soup
    text = readable_text(root)
    if len(text) < MIN_READABLE_TEXT and root is not body:
        logger.info("Container text too short, using full document body")
        text = readable_text(body)

    logger.debug(f"Extracted text length: {len(text)}")
    return classify(text)
