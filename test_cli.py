import io
import json

import pytest

import cli
from config import load_config
from fetcher import FETCH_EXHAUSTED_MESSAGE, FetchExhaustedError
from models import LoginWallNotice

RECIPE_TEXT = "Ingredients\n1/2 cup sugar\n2 eggs\nInstructions\nWhisk\nBake"


@pytest.fixture(autouse=True)
def cookbook_path(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(f"storage:\n  path: {tmp_path / 'cookbook.json'}\n", encoding="utf-8")
    monkeypatch.setattr(cli, "load_config", lambda path=None: load_config(config_file))
    return tmp_path / "cookbook.json"


@pytest.fixture
def recipe_file(tmp_path):
    path = tmp_path / "recipe.txt"
    path.write_text(RECIPE_TEXT, encoding="utf-8")
    return path


def test_extract_text_file_scaled_as_json(recipe_file, capsys):
    assert cli.main(["extract", str(recipe_file), "--scale", "4", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["ingredients"] == [
        {"text": "2 cup sugar", "isHeader": False},
        {"text": "8 eggs", "isHeader": False},
    ]


def test_extract_save_list_show_delete(recipe_file, capsys):
    assert cli.main(["extract", str(recipe_file), "--save", "Cake"]) == 0
    assert "## Ingredients" in capsys.readouterr().out

    assert cli.main(["list"]) == 0
    line = capsys.readouterr().out.strip()
    recipe_id = line.split()[0]
    assert "Cake" in line

    assert cli.main(["show", recipe_id, "--scale", "1/2"]) == 0
    shown = capsys.readouterr().out
    assert "# Cake" in shown
    assert "- 0.25 cup sugar" in shown

    assert cli.main(["delete", recipe_id]) == 0
    assert cli.main(["show", recipe_id]) == cli.EXIT_NOT_FOUND


def test_fetch_failure_exit_code(monkeypatch, capsys):
    def fail(config, source):
        raise FetchExhaustedError()

    monkeypatch.setattr(cli, "extract_recipe", fail)
    assert cli.main(["extract", "https://example.com/x"]) == cli.EXIT_FETCH_FAILED
    assert FETCH_EXHAUSTED_MESSAGE in capsys.readouterr().err


def test_login_wall_exit_code(monkeypatch, capsys):
    monkeypatch.setattr(cli, "extract_recipe", lambda config, source: LoginWallNotice())
    assert cli.main(["extract", "https://www.instagram.com/p/x/"]) == cli.EXIT_LOGIN_WALL
    assert "Instagram blocked" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["0", "-2", "abc", "1/0"])
def test_invalid_scale_rejected(value):
    with pytest.raises(SystemExit):
        cli.main(["extract", "text", "--scale", value])


def test_empty_stdin_is_reported(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("   \n"))
    assert cli.main(["extract", "-"]) == cli.EXIT_INVALID_INPUT
    assert "Error:" in capsys.readouterr().err


def test_corrupt_cookbook_is_reported(cookbook_path, capsys):
    cookbook_path.write_text("{broken", encoding="utf-8")
    assert cli.main(["list"]) == cli.EXIT_INVALID_INPUT
    assert "Error:" in capsys.readouterr().err


def test_long_pasted_text_is_not_treated_as_path(capsys):
    text = RECIPE_TEXT + "\n" + "Bake until golden. " * 40
    assert cli.main(["extract", text]) == 0
    assert "## Ingredients" in capsys.readouterr().out
