import json
import logging
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import httpx

from .token_response import TokenInfo, parse_token_response
from .errors import ConfigError, TokenResponseError

logger = logging.getLogger(__name__)

SPOTIFY_ACCOUNTS_BASE_URL = "https://accounts.spotify.com"
SPOTIFY_AUTHORIZE_URL = f"{SPOTIFY_ACCOUNTS_BASE_URL}/authorize"
SPOTIFY_TOKEN_URL = f"{SPOTIFY_ACCOUNTS_BASE_URL}/api/token"

CALLBACK_HOST = "localhost"
CALLBACK_PORT = 12345
CALLBACK_PATH = "/callback"
REDIRECT_URI = f"http://{CALLBACK_HOST}:{CALLBACK_PORT}{CALLBACK_PATH}"

DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class HttpOptions:
    """Options handed through from the command line to the HTTP client."""

    timeout: float = DEFAULT_HTTP_TIMEOUT
    verify: bool = True
    proxy: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    follow_redirects: bool = True


def build_scope(scopes: Union[str, Iterable[str], None]) -> str:
    """Join whitespace-delimited scopes with '+' for use as a query parameter."""

    if scopes is None:
        return ""
    if isinstance(scopes, str):
        parts = scopes.split()
    else:
        parts = [p for s in scopes for p in str(s).split()]
    return "+".join(parts)


def parse_header(raw: str) -> Tuple[str, str]:
    """Parse a curl style 'Name: value' header."""

    name, sep, value = str(raw or "").partition(":")
    name = name.strip()
    if not sep or not name:
        raise ValueError(f"invalid header {raw!r}, expected 'Name: value'")
    return name, value.strip()


def _encode_form(fields: Dict[str, Any]) -> str:
    # '+' stays literal so an already joined scope decodes back to spaces
    data = {k: str(v) for k, v in fields.items() if v is not None}
    return urllib.parse.urlencode(data, safe="+")


def build_authorize_url(client_id: str, *, scope: str, redirect_uri: str = REDIRECT_URI) -> str:
    """Authorization code flow URL the user has to visit and approve."""

    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": scope,
        "response_type": "code",
    }
    return f"{SPOTIFY_AUTHORIZE_URL}?{_encode_form(params)}"


def extract_code_from_redirect_url(redirect_url: str) -> Dict[str, str]:
    """Parse a redirect URL or request path and return {"code": ..., "state": ..., "error": ...} (missing keys omitted)."""

    parsed = urllib.parse.urlparse(str(redirect_url or "").strip())
    qs = urllib.parse.parse_qs(parsed.query)
    out: Dict[str, str] = {}
    if qs.get("code"):
        out["code"] = str(qs["code"][0])
    if qs.get("state"):
        out["state"] = str(qs["state"][0])
    if qs.get("error"):
        out["error"] = str(qs["error"][0])
    return out


def spotify_app_setup_instructions(*, redirect_uri: str = REDIRECT_URI) -> str:
    """Return user-facing setup instructions for creating a Spotify Developer app."""

    return (
        "Generate an App client ID and secret for the SPOTIFY_ID and SPOTIFY_SECRET environment variables here:\n\n"
        "  https://developer.spotify.com/dashboard/applications\n\n"
        f"Make sure to add a callback URL of exactly '{redirect_uri}' without the quotes\n"
        "to be able to generate private tokens"
    )


def open_http_client(options: Optional[HttpOptions] = None) -> httpx.Client:
    options = options or HttpOptions()
    kwargs: Dict[str, Any] = {
        "timeout": options.timeout,
        "verify": options.verify,
        "follow_redirects": options.follow_redirects,
        "headers": dict(options.headers),
    }
    if options.proxy:
        kwargs["proxy"] = options.proxy
    try:
        return httpx.Client(**kwargs)
    except ValueError as e:
        raise ConfigError(f"Invalid HTTP client option: {e}") from e
    except ImportError as e:
        raise ConfigError(f"SOCKS proxies need the httpx socks extra (pip install 'httpx[socks]'): {e}") from e


def request_token(
    client: httpx.Client,
    form: Dict[str, Any],
    *,
    client_id: str,
    client_secret: str,
) -> TokenInfo:
    """POST form to the token endpoint using HTTP Basic auth and return the parsed token.

    Credentials travel in the Authorization header only. Transport errors
    (httpx.HTTPError) are left to the caller.
    """

    logger.debug("Requesting token from %s (grant_type=%s)", SPOTIFY_TOKEN_URL, form.get("grant_type"))
    resp = client.post(
        SPOTIFY_TOKEN_URL,
        content=_encode_form(form),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        auth=(client_id, client_secret),
    )
    logger.debug("Token endpoint answered HTTP %s", resp.status_code)

    try:
        payload = resp.json()
    except json.JSONDecodeError as e:
        raise TokenResponseError(
            f"Spotify token response was not JSON (HTTP {resp.status_code}): {resp.text}",
            status_code=resp.status_code,
        ) from e

    if not isinstance(payload, dict):
        raise TokenResponseError(
            f"Spotify token response was not an object (HTTP {resp.status_code}): {payload}",
            status_code=resp.status_code,
        )

    return parse_token_response(payload, status_code=resp.status_code)
