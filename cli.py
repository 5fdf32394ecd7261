#!/usr/bin/env python3
"""Recipe Pantry command line."""

import argparse
import json
import logging
import sys
from fractions import Fraction
from pathlib import Path

from config import Config, load_config
from cookbook import RecipeNotFoundError, delete_recipe, get_recipe, list_recipes, save_recipe
from dom_extractor import UnsupportedEnvironmentError
from extractor import extract_recipe, format_recipe_markdown, is_url_input, recipe_to_dict
from fetcher import FetchExhaustedError
from models import LoginWallNotice, RecipeDraft
from scaler import scale_recipe

logger = logging.getLogger(__name__)

EXIT_FETCH_FAILED = 1
EXIT_LOGIN_WALL = 2
EXIT_UNSUPPORTED = 3
EXIT_NOT_FOUND = 4
EXIT_INVALID_INPUT = 5


def _scale_factor(value: str) -> Fraction:
    """Accepts "2", "0.5" or "1/2"."""
    try:
        factor = Fraction(value)
    except (ValueError, ZeroDivisionError):
        raise argparse.ArgumentTypeError(f"invalid scale factor: {value}")
    if factor <= 0:
        raise argparse.ArgumentTypeError("scale factor must be positive")
    return factor


def _read_source(source: str) -> str:
    """A URL is used as is; "-" reads stdin; an existing file is read as text."""
    if source == "-":
        return sys.stdin.read()
    if not is_url_input(source):
        path = Path(source)
        try:
            if path.is_file():
                return path.read_text(encoding="utf-8")
        except OSError as e:
            # pasted text longer than a file name can be
            logger.debug(f"Source is not a readable file: {e}")
    return source


def _print_recipe(draft: RecipeDraft, scale: Fraction, as_json: bool, title: str | None = None) -> None:
    display = scale_recipe(draft, scale)
    if as_json:
        print(json.dumps(recipe_to_dict(display), indent=2, ensure_ascii=False))
    else:
        print(format_recipe_markdown(display, title=title))


def cmd_extract(config: Config, args: argparse.Namespace) -> int:
    source = _read_source(args.source)
    try:
        result = extract_recipe(config, source)
    except FetchExhaustedError as e:
        logger.error(f"Fetch failed: {e}")
        print(e.message, file=sys.stderr)
        return EXIT_FETCH_FAILED
    except UnsupportedEnvironmentError as e:
        print(f"Unsupported environment: {e}", file=sys.stderr)
        return EXIT_UNSUPPORTED

    if isinstance(result, LoginWallNotice):
        print(result.message, file=sys.stderr)
        return EXIT_LOGIN_WALL

    _print_recipe(result, args.scale, args.json)

    if args.save:
        saved = save_recipe(config.storage.path, result, args.save)
        print(f"Saved to cookbook as '{saved.name}' (id {saved.id})", file=sys.stderr)
    return 0


def cmd_list(config: Config, args: argparse.Namespace) -> int:
    recipes = list_recipes(config.storage.path)
    if not recipes:
        print("Cookbook is empty.")
    for recipe in recipes:
        print(
            f"{recipe.id}  {recipe.date}  {recipe.name}  "
            f"({len(recipe.data.ingredients)} ingredients, {len(recipe.data.instructions)} steps)"
        )
    return 0


def cmd_show(config: Config, args: argparse.Namespace) -> int:
    try:
        recipe = get_recipe(config.storage.path, args.id)
    except RecipeNotFoundError:
        print(f"No saved recipe with id {args.id}", file=sys.stderr)
        return EXIT_NOT_FOUND
    _print_recipe(recipe.data, args.scale, args.json, title=recipe.name)
    return 0


def cmd_delete(config: Config, args: argparse.Namespace) -> int:
    try:
        delete_recipe(config.storage.path, args.id)
    except RecipeNotFoundError:
        print(f"No saved recipe with id {args.id}", file=sys.stderr)
        return EXIT_NOT_FOUND
    print(f"Deleted {args.id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="recipe-pantry", description="Turn messy recipe pages into clean recipes.")
    parser.add_argument("--config", type=Path, help="path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    extract = sub.add_parser("extract", help="extract a recipe from a URL, a text file or stdin (-)")
    extract.add_argument("source")
    extract.add_argument("--scale", type=_scale_factor, default=Fraction(1))
    extract.add_argument("--save", metavar="NAME", help="save the extracted recipe to the cookbook")
    extract.add_argument("--json", action="store_true", help="print JSON instead of Markdown")
    extract.set_defaults(handler=cmd_extract)

    listing = sub.add_parser("list", help="list saved recipes")
    listing.set_defaults(handler=cmd_list)

    show = sub.add_parser("show", help="print a saved recipe")
    show.add_argument("id")
    show.add_argument("--scale", type=_scale_factor, default=Fraction(1))
    show.add_argument("--json", action="store_true")
    show.set_defaults(handler=cmd_show)

    delete = sub.add_parser("delete", help="delete a saved recipe")
    delete.add_argument("id")
    delete.set_defaults(handler=cmd_delete)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    config = load_config(args.config)
    try:
        return args.handler(config, args)
    except ValueError as e:
        # empty input, a blank recipe name or an unreadable cookbook file
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT


if __name__ == "__main__":
    sys.exit(main())
