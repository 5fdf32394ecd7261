"""Extracts recipes from pasted text or recipe web pages."""

import logging

import requests

from config import Config
from dom_extractor import extract_recipe_from_document, parse_document
from fetcher import fetch_source
from instagram import acquire_instagram, caption_from_html, has_login_wall, is_instagram_url
from line_classifier import classify_text
from models import Item, LoginWallNotice, RecipeDraft

logger = logging.getLogger(__name__)


def is_url_input(text: str) -> bool:
    """Input is treated as a URL iff it starts with "http" (any case)."""
    return text.strip().lower().startswith("http")


def extract_recipe(
    config: Config,
    source: str,
    session: requests.Session | None = None,
) -> RecipeDraft | LoginWallNotice:
    """
    Turns pasted recipe text or a recipe URL into a RecipeDraft.

    For URLs the page is fetched through the render/relay chain. Instagram
    posts are read from their caption; a login page yields a LoginWallNotice
    instead of a draft. Other pages go through DOM extraction with plain-text
    classification as fallback.

    Raises:
        ValueError: For empty input.
        FetchExhaustedError: If the page could not be fetched at all.
        UnsupportedEnvironmentError: If no HTML parser is available.
    """
    source = source.strip()
    if not source:
        raise ValueError("Nothing to extract: input is empty")

    if not is_url_input(source):
        logger.info(f"Parsing pasted text ({len(source)} characters)")
        return classify_text(source)

    url = source
    social = is_instagram_url(url)

    if social:
        logger.info(f"Instagram URL detected: {url}")
        acquired = acquire_instagram(url, config, session)
        if acquired.caption:
            return classify_text(acquired.caption)
        html = acquired.html
    else:
        html = fetch_source(url, config, session)

    logger.info(f"HTML content length: {len(html)}")

    if social:
        caption = caption_from_html(html)
        if caption:
            return classify_text(caption)
        if has_login_wall(html, config):
            logger.warning(f"Login wall detected for {url}")
            return LoginWallNotice(source_url=url)

    soup = parse_document(html, config.parser.backend)
    return extract_recipe_from_document(soup, url, social=social)


# =============================================================================
# SERIALIZATION / FORMATTING
# =============================================================================

def recipe_to_dict(draft: RecipeDraft) -> dict:
    """JSON-friendly mapping, items as {"text", "isHeader"}."""
    def items(values: list[Item]) -> list[dict]:
        return [{"text": item.text, "isHeader": item.is_header} for item in values]

    return {"ingredients": items(draft.ingredients), "instructions": items(draft.instructions)}


def recipe_from_dict(data: dict) -> RecipeDraft:
    def items(values) -> list[Item]:
        return [
            Item(text=str(value.get("text", "")), is_header=bool(value.get("isHeader", False)))
            for value in values or []
            if isinstance(value, dict)
        ]

    return RecipeDraft(
        ingredients=items(data.get("ingredients")),
        instructions=items(data.get("instructions")),
    )


def format_recipe_markdown(draft: RecipeDraft, title: str | None = None) -> str:
    """Formats a draft as Markdown."""
    lines = []

    if title:
        lines.append(f"# {title}")
        lines.append("")

    # Ingredients
    lines.append("## Ingredients")
    lines.append("")
    for ingredient in draft.ingredients:
        if ingredient.is_header:
            lines.append(f"\n### {ingredient.text}")
            lines.append("")
        else:
            lines.append(f"- {ingredient.text}")
    lines.append("")

    # Instructions (headers are not numbered)
    lines.append("## Instructions")
    lines.append("")
    step = 0
    for instruction in draft.instructions:
        if instruction.is_header:
            lines.append(f"\n### {instruction.text}")
            lines.append("")
        else:
            step += 1
            lines.append(f"{step}. {instruction.text}")
    lines.append("")

    return "\n".join(lines)
