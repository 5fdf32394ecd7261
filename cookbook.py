"""Stores saved recipes in a local JSON file."""

import json
import logging
import uuid
from datetime import date
from pathlib import Path

from extractor import recipe_from_dict, recipe_to_dict
from models import RecipeDraft, SavedRecipe

logger = logging.getLogger(__name__)


class RecipeNotFoundError(KeyError):
    """Raised when no saved recipe has the given id."""
    pass


def _load(path: Path) -> list[dict]:
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Cookbook file {path} is corrupt: {e}") from e
    return data if isinstance(data, list) else []


def _store(path: Path, entries: list[dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(entries, indent=2, ensure_ascii=False), encoding="utf-8")


def _to_saved(entry: dict) -> SavedRecipe:
    return SavedRecipe(
        id=str(entry["id"]),
        name=entry.get("name", ""),
        date=entry.get("date", ""),
        data=recipe_from_dict(entry.get("data", {})),
    )


def save_recipe(path: Path, draft: RecipeDraft, name: str) -> SavedRecipe:
    """Saves a draft under a name. Newest recipes come first."""
    name = name.strip()
    if not name:
        raise ValueError("Recipe name must not be empty")

    saved = SavedRecipe(id=uuid.uuid4().hex, name=name, date=date.today().isoformat(), data=draft)
    entries = _load(path)
    entries.insert(0, {
        "id": saved.id,
        "name": saved.name,
        "date": saved.date,
        "data": recipe_to_dict(draft),
    })
    _store(path, entries)

    logger.info(f"Recipe saved: {saved.name} ({saved.id})")
    return saved


def list_recipes(path: Path) -> list[SavedRecipe]:
    return [_to_saved(entry) for entry in _load(path)]


def get_recipe(path: Path, recipe_id: str) -> SavedRecipe:
    for entry in _load(path):
        if str(entry.get("id")) == recipe_id:
            return _to_saved(entry)
    raise RecipeNotFoundError(recipe_id)


def delete_recipe(path: Path, recipe_id: str) -> None:
    entries = _load(path)
    remaining = [entry for entry in entries if str(entry.get("id")) != recipe_id]
    if len(remaining) == len(entries):
        raise RecipeNotFoundError(recipe_id)

    _store(path, remaining)
    logger.info(f"Recipe deleted: {recipe_id}")
