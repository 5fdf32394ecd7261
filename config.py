"""Configuration management for Recipe Pantry."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/114.0.0.0 Safari/537.36"
)


@dataclass
class HttpConfig:
    timeout: float = 15
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class RelayConfig:
    # {url} is replaced by the percent-encoded target URL
    primary: str = "https://corsproxy.io/?{url}"
    secondary: str = "https://api.allorigins.win/get?url={url}"  # JSON envelope with "contents"
    tertiary: str = "https://api.codetabs.com/v1/proxy?quest={url}"
    size_limit_marker: str = "Response exceeds 1MB size limit"


@dataclass
class RenderConfig:
    endpoint: str | None = None  # e.g. "http://localhost:3000/scrape"; None disables rendering
    timeout: float = 10
    domains: list[str] = field(default_factory=lambda: ["instagram.com/"])
    mobile_domains: list[str] = field(default_factory=lambda: ["instagram.com"])
    block_resources: bool = True


@dataclass
class InstagramConfig:
    oembed: str = "https://api.instagram.com/oembed/?url={url}"
    noembed: str = "https://noembed.com/embed?url={url}"
    login_markers: list[str] = field(
        default_factory=lambda: ["Log in to Instagram", "Create an account"]
    )


@dataclass
class ParserConfig:
    backend: str = "html.parser"  # "html.parser", "lxml" or "html5lib"


@dataclass
class StorageConfig:
    path: Path = field(default_factory=lambda: Path.home() / ".recipe_pantry" / "cookbook.json")


@dataclass
class Config:
    http: HttpConfig = field(default_factory=HttpConfig)
    relays: RelayConfig = field(default_factory=RelayConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    instagram: InstagramConfig = field(default_factory=InstagramConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def _expand_env(value: str) -> str:
    """Replaces ${ENV_VAR} with environment variables."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]
        return os.environ.get(env_var, "")
    return value


def _positive_number(raw, default: float, name: str) -> float:
    """Validates a timeout-like value."""
    try:
        value = float(raw)
    except (ValueError, TypeError):
        logger.warning(f"Invalid {name} '{raw}', defaulting to {default}")
        return default
    if value <= 0:
        logger.warning(f"Invalid {name} '{raw}', defaulting to {default}")
        return default
    return value


def _string_list(raw, default: list[str]) -> list[str]:
    if raw is None:
        return list(default)
    if isinstance(raw, str):
        return [raw]
    return [str(item) for item in raw if str(item).strip()]


def load_config(config_path: Path | None = None) -> Config:
    """
    Loads configuration from YAML file.

    Without an explicit path, a missing config.yaml beside this module
    yields the defaults.
    """
    if config_path is None:
        config_path = Path(__file__).parent / "config.yaml"
        if not config_path.exists():
            logger.debug(f"No config file at {config_path}, using defaults")
            return Config()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    http_raw = raw.get("http", {}) or {}
    http = HttpConfig(
        timeout=_positive_number(http_raw.get("timeout", 15), 15, "http.timeout"),
        user_agent=_expand_env(http_raw.get("user_agent", DEFAULT_USER_AGENT)),
    )

    relays_raw = raw.get("relays", {}) or {}
    defaults = RelayConfig()
    relays = RelayConfig(
        primary=_expand_env(relays_raw.get("primary", defaults.primary)),
        secondary=_expand_env(relays_raw.get("secondary", defaults.secondary)),
        tertiary=_expand_env(relays_raw.get("tertiary", defaults.tertiary)),
        size_limit_marker=relays_raw.get("size_limit_marker", defaults.size_limit_marker),
    )

    render_raw = raw.get("render", {}) or {}
    render_defaults = RenderConfig()
    render = RenderConfig(
        endpoint=_expand_env(render_raw.get("endpoint")) or None,
        timeout=_positive_number(render_raw.get("timeout", 10), 10, "render.timeout"),
        domains=_string_list(render_raw.get("domains"), render_defaults.domains),
        mobile_domains=_string_list(render_raw.get("mobile_domains"), render_defaults.mobile_domains),
        block_resources=bool(render_raw.get("block_resources", True)),
    )

    instagram_raw = raw.get("instagram", {}) or {}
    instagram_defaults = InstagramConfig()
    instagram = InstagramConfig(
        oembed=instagram_raw.get("oembed", instagram_defaults.oembed),
        noembed=instagram_raw.get("noembed", instagram_defaults.noembed),
        login_markers=_string_list(instagram_raw.get("login_markers"), instagram_defaults.login_markers),
    )

    parser_raw = raw.get("parser", {}) or {}
    parser = ParserConfig(backend=parser_raw.get("backend", "html.parser"))

    storage_raw = raw.get("storage", {}) or {}
    storage = StorageConfig()
    if storage_raw.get("path"):
        storage = StorageConfig(path=Path(_expand_env(storage_raw["path"])).expanduser())

    return Config(
        http=http,
        relays=relays,
        render=render,
        instagram=instagram,
        parser=parser,
        storage=storage,
    )
