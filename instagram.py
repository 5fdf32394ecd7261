"""Retrieves recipe captions from Instagram posts."""

import html as html_lib
import json
import logging
import re
from dataclasses import dataclass

import requests

from config import Config
from fetcher import (
    FetchError,
    FetchExhaustedError,
    fetch_rendered,
    fetch_via_tertiary,
    get_http_session,
    http_get,
    relay_url,
    requires_rendering,
    response_json,
    run_stages,
)

logger = logging.getLogger(__name__)

_CAPTION_PATTERN = re.compile(
    r'"edge_media_to_caption":\{"edges":\[\{"node":\{"text":"((?:[^"\\]|\\.)*)"\}\}\]\}'
)
_OG_DESCRIPTION_PATTERN = re.compile(
    r'<meta[^>]*property="og:description"[^>]*content="([^"]*)"', re.IGNORECASE
)


@dataclass
class InstagramSource:
    """Either a caption found through an embed API or the raw page HTML."""
    caption: str | None = None
    html: str | None = None


def is_instagram_url(url: str) -> bool:
    return "instagram.com/" in url.lower()


def _title(data: dict, source: str) -> str:
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise FetchError(f"No title in {source} response")
    return title


def fetch_oembed_caption(url: str, config: Config, session: requests.Session | None = None) -> str:
    """Official oEmbed endpoint, requested through the primary relay."""
    session = session or get_http_session(config)
    oembed_url = relay_url(config.instagram.oembed, url)
    response = http_get(session, relay_url(config.relays.primary, oembed_url), config.http.timeout)
    return _title(response_json(response), "oEmbed")


def fetch_noembed_caption(url: str, config: Config, session: requests.Session | None = None) -> str:
    """noembed.com serves CORS-enabled JSON, so no relay is needed."""
    session = session or get_http_session(config)
    response = http_get(session, relay_url(config.instagram.noembed, url), config.http.timeout)
    return _title(response_json(response), "noembed")


def acquire_instagram(url: str, config: Config, session: requests.Session | None = None) -> InstagramSource:
    """
    Gets a post's content: rendered page, oEmbed caption, noembed caption,
    then the raw page through the tertiary relay.

    Raises:
        FetchExhaustedError: If nothing could be retrieved.
    """
    if requires_rendering(url, config):
        html = run_stages([("render", fetch_rendered)], url, config, session)
        if html:
            return InstagramSource(html=html)

    caption = run_stages(
        [("oEmbed", fetch_oembed_caption), ("noembed", fetch_noembed_caption)],
        url, config, session,
    )
    if caption:
        logger.info("Instagram caption found via embed API")
        return InstagramSource(caption=caption)

    html = run_stages([("tertiary relay", fetch_via_tertiary)], url, config, session)
    if html:
        return InstagramSource(html=html)

    raise FetchExhaustedError()


def caption_from_html(page_html: str) -> str | None:
    """Finds the caption in embedded page data, then in the og:description meta tag."""
    match = _CAPTION_PATTERN.search(page_html)
    if match:
        try:
            caption = json.loads(f'"{match.group(1)}"')
        except json.JSONDecodeError as e:
            logger.warning(f"Could not decode embedded caption: {e}")
        else:
            if caption.strip():
                logger.info("Found Instagram caption in embedded page data")
                return caption

    match = _OG_DESCRIPTION_PATTERN.search(page_html)
    if match and match.group(1).strip():
        logger.info("Found Instagram caption in og:description")
        return html_lib.unescape(match.group(1))

    return None


def has_login_wall(page_html: str, config: Config) -> bool:
    return any(marker in page_html for marker in config.instagram.login_markers)
