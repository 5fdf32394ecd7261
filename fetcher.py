"""Fetches page content through a chain of render and relay services."""

import ipaddress
import logging
import socket
from collections.abc import Callable
from urllib.parse import quote, urlparse

import requests

from config import Config

logger = logging.getLogger(__name__)

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)

FETCH_EXHAUSTED_MESSAGE = "Could not fetch this website. Try pasting the text manually."

# HTTP session for connection reuse
_http_session: requests.Session | None = None


class FetchError(Exception):
    """A single fetch stage failed; the next stage is tried."""
    pass


class FetchExhaustedError(Exception):
    """Every fetch stage failed."""

    def __init__(self, message: str = FETCH_EXHAUSTED_MESSAGE):
        super().__init__(message)
        self.message = message


def get_http_session(config: Config | None = None) -> requests.Session:
    """Returns a reusable HTTP session."""
    global _http_session
    if _http_session is None:
        user_agent = config.http.user_agent if config else Config().http.user_agent
        _http_session = requests.Session()
        _http_session.headers.update({
            "User-Agent": user_agent,
            "Accept-Language": "en-US,en;q=0.9",
        })
    return _http_session


def relay_url(template: str, target: str) -> str:
    """Fills a relay template with the percent-encoded target URL."""
    return template.replace("{url}", quote(target, safe=""))


def is_safe_url(url: str) -> bool:
    """Rejects non-HTTP(S) URLs and hosts resolving to private, loopback or link-local addresses."""
    try:
        parsed = urlparse(url)

        if parsed.scheme not in ("http", "https"):
            logger.warning(f"Invalid URL scheme: {parsed.scheme}")
            return False

        if not parsed.hostname:
            logger.warning("URL without hostname")
            return False

        hostname = parsed.hostname.lower()
        if hostname in ("localhost", "127.0.0.1", "0.0.0.0", "::1"):
            logger.warning(f"Blocked hostname: {hostname}")
            return False

        try:
            resolved_ip = socket.gethostbyname(hostname)
        except socket.gaierror:
            logger.warning(f"DNS resolution failed for: {hostname}")
            return False

        ip_obj = ipaddress.ip_address(resolved_ip)
        if ip_obj.is_private or ip_obj.is_loopback or ip_obj.is_reserved or ip_obj.is_link_local:
            logger.warning(f"Private/reserved IP blocked: {resolved_ip}")
            return False

        return True

    except ValueError as e:
        logger.warning(f"URL validation failed: {e}")
        return False


def http_get(session: requests.Session, url: str, timeout: float, **kwargs) -> requests.Response:
    """GET that raises FetchError on network errors and non-success status."""
    try:
        response = session.get(url, timeout=timeout, **kwargs)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"Request to {urlparse(url).netloc} failed: {e}") from e
    return response


def response_json(response: requests.Response) -> dict:
    try:
        data = response.json()
    except ValueError as e:
        raise FetchError(f"Invalid JSON from {response.url}: {e}") from e
    if not isinstance(data, dict):
        raise FetchError(f"Unexpected JSON payload from {response.url}")
    return data


# =============================================================================
# STAGES
# =============================================================================

def requires_rendering(url: str, config: Config) -> bool:
    """True if the URL belongs to a site that needs script execution to show content."""
    return any(domain in url for domain in config.render.domains)


def fetch_rendered(url: str, config: Config, session: requests.Session | None = None) -> str:
    """
    Asks the headless render service for the page HTML.

    The service navigates with its own short budget and returns whatever was
    rendered when that budget runs out, so a partial page is a success here.
    """
    if not config.render.endpoint:
        raise FetchError("Render service not configured")
    if not is_safe_url(url):
        raise FetchError(f"Unsafe URL blocked for rendering: {url}")

    session = session or get_http_session(config)
    params = {"url": url}
    if config.render.block_resources:
        params["block"] = "image,stylesheet,font,media"
    if any(domain in url for domain in config.render.mobile_domains):
        params["mobile"] = "1"
        params["user_agent"] = MOBILE_USER_AGENT

    response = http_get(session, config.render.endpoint, config.render.timeout, params=params)
    html = response_json(response).get("html")
    if not html:
        raise FetchError("Render service returned no HTML")
    return html


def fetch_via_primary(url: str, config: Config, session: requests.Session | None = None) -> str:
    session = session or get_http_session(config)
    response = http_get(session, relay_url(config.relays.primary, url), config.http.timeout)
    text = response.text
    if config.relays.size_limit_marker and config.relays.size_limit_marker in text:
        raise FetchError("Primary relay size limit exceeded")
    if not text.strip():
        raise FetchError("Primary relay returned an empty body")
    return text


def fetch_via_secondary(url: str, config: Config, session: requests.Session | None = None) -> str:
    session = session or get_http_session(config)
    response = http_get(session, relay_url(config.relays.secondary, url), config.http.timeout)
    contents = response_json(response).get("contents")
    if not isinstance(contents, str) or not contents.strip():
        raise FetchError("Secondary relay returned no contents")
    return contents


def fetch_via_tertiary(url: str, config: Config, session: requests.Session | None = None) -> str:
    session = session or get_http_session(config)
    response = http_get(session, relay_url(config.relays.tertiary, url), config.http.timeout)
    if not response.text.strip():
        raise FetchError("Tertiary relay returned an empty body")
    return response.text


Stage = Callable[[str, Config, requests.Session | None], str]


def run_stages(
    stages: list[tuple[str, Stage]],
    url: str,
    config: Config,
    session: requests.Session | None = None,
) -> str | None:
    """Tries each stage once, in order. Returns the first result or None."""
    for name, stage in stages:
        try:
            result = stage(url, config, session)
        except FetchError as e:
            logger.warning(f"Fetch stage '{name}' failed: {e}")
            continue
        logger.info(f"Fetched {len(result)} characters via {name}")
        return result
    return None


def fetch_source(url: str, config: Config, session: requests.Session | None = None) -> str:
    """
    Fetches raw page content: render service (for script-heavy sites only),
    then the primary, secondary and tertiary relays.

    Raises:
        FetchExhaustedError: If every stage failed.
    """
    stages: list[tuple[str, Stage]] = []
    if requires_rendering(url, config):
        stages.append(("render", fetch_rendered))
    stages += [
        ("primary relay", fetch_via_primary),
        ("secondary relay", fetch_via_secondary),
        ("tertiary relay", fetch_via_tertiary),
    ]

    result = run_stages(stages, url, config, session)
    if result is None:
        raise FetchExhaustedError()
    return result
