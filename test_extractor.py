import json
from unittest import mock

import pytest

import dom_extractor
import extractor
from conftest import FakeSession
from dom_extractor import UnsupportedEnvironmentError
from extractor import (
    extract_recipe,
    format_recipe_markdown,
    is_url_input,
    recipe_from_dict,
    recipe_to_dict,
)
from fetcher import FetchExhaustedError
from models import Item, LoginWallNotice, RecipeDraft

POST = "https://www.instagram.com/p/C0ffee/"

RECIPE_PAGE = """
<html><body>
<div class="tasty-recipes">
  <div class="tasty-recipes-ingredients"><ul><li>1/2 cup sugar</li><li>2 eggs</li></ul></div>
  <div class="tasty-recipes-instructions"><ol><li>Whisk</li><li>Bake</li></ol></div>
</div>
</body></html>
"""


@pytest.mark.parametrize("text, expected", [
    ("https://example.com", True),
    ("  HTTP://EXAMPLE.COM ", True),
    ("http", True),
    ("Ingredients\n1 egg", False),
    ("www.example.com", False),
])
def test_is_url_input(text, expected):
    assert is_url_input(text) is expected


def test_pasted_text_is_classified_without_network(config):
    session = FakeSession()
    draft = extract_recipe(config, "Ingredients\n2 cups flour\n1 egg\nInstructions\nMix well\nBake at 350", session)
    assert draft == RecipeDraft(
        [Item("2 cups flour"), Item("1 egg")],
        [Item("Mix well"), Item("Bake at 350")],
    )
    assert session.calls == []


def test_empty_input_rejected(config):
    with pytest.raises(ValueError):
        extract_recipe(config, "   ")


def test_web_page_goes_through_dom_extraction(config):
    session = FakeSession({"corsproxy.io": RECIPE_PAGE})
    draft = extract_recipe(config, "https://blog.example.com/cake", session)
    assert draft.ingredients == [Item("1/2 cup sugar"), Item("2 eggs")]
    assert draft.instructions == [Item("Whisk"), Item("Bake")]


def test_fetch_exhausted_propagates(config):
    with pytest.raises(FetchExhaustedError):
        extract_recipe(config, "https://blog.example.com/cake", FakeSession())


def test_instagram_oembed_caption_is_classified(config):
    session = FakeSession({
        "api.instagram.com": json.dumps({"title": "Ingredients\n1 banana\nSteps\nBlend"}),
    })
    draft = extract_recipe(config, POST, session)
    assert draft == RecipeDraft([Item("1 banana")], [Item("Blend")])


def test_instagram_login_wall_returns_notice(config):
    session = FakeSession({
        "codetabs.com": "<html><body><h1>Log in to Instagram</h1><p>Ingredients</p></body></html>",
    })
    result = extract_recipe(config, POST, session)
    assert isinstance(result, LoginWallNotice)
    assert "paste the caption" in result.message
    assert result.source_url == POST


def test_instagram_caption_in_html_beats_login_wall(config):
    page = (
        '<meta property="og:description" content="Ingredients&#10;1 kiwi&#10;Method&#10;Slice">'
        "<p>Log in to Instagram</p>"
    )
    session = FakeSession({"codetabs.com": page})
    draft = extract_recipe(config, POST, session)
    assert draft == RecipeDraft([Item("1 kiwi")], [Item("Slice")])


def test_instagram_page_without_caption_uses_dom_metadata(config):
    page = """
    <html><head><meta name="description" content="Ingredients
1 mango
Steps
Cut"></head><body></body></html>
    """
    session = FakeSession({"codetabs.com": page})
    draft = extract_recipe(config, POST, session)
    assert draft == RecipeDraft([Item("1 mango")], [Item("Cut")])


def test_unsupported_parser_is_reported(config):
    config.parser.backend = "no-such-tree-builder"
    session = FakeSession({"corsproxy.io": RECIPE_PAGE})
    with pytest.raises(UnsupportedEnvironmentError):
        extract_recipe(config, "https://blog.example.com/cake", session)


def test_dom_success_skips_text_classifier(config, monkeypatch):
    classify = mock.Mock()
    monkeypatch.setattr(extractor, "classify_text", classify)
    monkeypatch.setattr(dom_extractor, "classify_text", classify)
    session = FakeSession({"corsproxy.io": RECIPE_PAGE})
    extract_recipe(config, "https://blog.example.com/cake", session)
    classify.assert_not_called()


def test_dict_mapping():
    draft = RecipeDraft([Item("For it:", True), Item("1 egg")], [Item("Fry")])
    data = recipe_to_dict(draft)
    assert data["ingredients"][0] == {"text": "For it:", "isHeader": True}
    assert recipe_from_dict(data) == draft


def test_markdown_numbers_steps_but_not_headers():
    draft = RecipeDraft(
        [Item("Dough", True), Item("2 cups flour")],
        [Item("Mix"), Item("To finish", True), Item("Bake")],
    )
    markdown = format_recipe_markdown(draft, title="Bread")
    assert markdown.startswith("# Bread\n")
    assert "### Dough" in markdown
    assert "- 2 cups flour" in markdown
    assert "1. Mix" in markdown
    assert "2. Bake" in markdown
    assert "### To finish" in markdown
