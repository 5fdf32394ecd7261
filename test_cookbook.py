import pytest

from cookbook import RecipeNotFoundError, delete_recipe, get_recipe, list_recipes, save_recipe
from models import Item, RecipeDraft

DRAFT = RecipeDraft([Item("For the crust:", True), Item("1 cup flour")], [Item("Bake")])


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "cookbook.json"
    saved = save_recipe(path, DRAFT, "  Apple Pie ")

    assert saved.name == "Apple Pie"
    assert saved.data == DRAFT
    assert get_recipe(path, saved.id) == saved


def test_newest_first(tmp_path):
    path = tmp_path / "cookbook.json"
    first = save_recipe(path, DRAFT, "First")
    second = save_recipe(path, DRAFT, "Second")
    assert [r.id for r in list_recipes(path)] == [second.id, first.id]
    assert first.id != second.id


def test_empty_cookbook(tmp_path):
    assert list_recipes(tmp_path / "missing.json") == []


def test_delete(tmp_path):
    path = tmp_path / "cookbook.json"
    saved = save_recipe(path, DRAFT, "Soup")
    delete_recipe(path, saved.id)
    assert list_recipes(path) == []
    with pytest.raises(RecipeNotFoundError):
        delete_recipe(path, saved.id)


def test_unknown_id(tmp_path):
    with pytest.raises(RecipeNotFoundError):
        get_recipe(tmp_path / "cookbook.json", "nope")


def test_blank_name_rejected(tmp_path):
    with pytest.raises(ValueError):
        save_recipe(tmp_path / "cookbook.json", DRAFT, "   ")


def test_corrupt_file(tmp_path):
    path = tmp_path / "cookbook.json"
    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(ValueError):
        list_recipes(path)
