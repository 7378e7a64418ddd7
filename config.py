import os
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from spotify_token.auth import (
    CALLBACK_HOST,
    CALLBACK_PORT,
    DEFAULT_HTTP_TIMEOUT,
    REDIRECT_URI,
    HttpOptions,
    build_scope,
    parse_header,
)
from spotify_token.callback_server import DEFAULT_CALLBACK_TIMEOUT
from spotify_token.errors import ConfigError, MissingCredentialsError

REQUIRED_ENV_VARS = ("SPOTIFY_ID", "SPOTIFY_SECRET")

# Everything the Spotify API scripts need. Client credentials tokens ignore
# scopes but sending them does no harm.
DEFAULT_SCOPES = [
    "app-remote-control",
    "playlist-modify-private",
    "playlist-modify-public",
    "playlist-read-collaborative",
    "playlist-read-private",
    "streaming",
    "user-follow-modify",
    "user-follow-read",
    "user-library-modify",
    "user-library-read",
    "user-modify-playback-state",
    "user-read-currently-playing",
    "user-read-email",
    "user-read-playback-position",
    "user-read-playback-state",
    "user-read-private",
    "user-read-recently-played",
    "user-top-read",
]

# Default configuration values
DEFAULT_CONFIG = {
    "private": False,
    "scopes": DEFAULT_SCOPES,
    "redirect_uri": REDIRECT_URI,
    "callback_host": CALLBACK_HOST,
    "callback_port": CALLBACK_PORT,
    "callback_timeout": DEFAULT_CALLBACK_TIMEOUT,
    "open_browser": True,

    # Passed through to the HTTP client
    "http_timeout": DEFAULT_HTTP_TIMEOUT,
    "http_verify": True,
    "http_proxy": None,
    "http_headers": [],
}

# Validation rules for config fields
CONFIG_SCHEMA = {
    "client_id": {"type": str, "required": True},
    "client_secret": {"type": str, "required": True},
    "private": {"type": bool, "required": True},
    "scopes": {"type": list, "required": True, "element_type": str},
    "redirect_uri": {"type": str, "required": True},
    "callback_host": {"type": str, "required": True},
    "callback_port": {"type": int, "required": True, "min": 1, "max": 65535},
    "callback_timeout": {"type": (int, float), "required": True, "min": 1, "max": 3600},
    "open_browser": {"type": bool, "required": False},

    "http_timeout": {"type": (int, float), "required": False, "min": 1, "max": 600},
    "http_verify": {"type": bool, "required": False},
    "http_proxy": {
        "type": (str, type(None)),
        "required": False,
        "url_schemes": ["http", "https", "socks5", "socks5h"],
    },
    "http_headers": {"type": list, "required": False, "element_type": str},
}


@dataclass(frozen=True)
class TokenConfig:
    """Everything one token run needs, resolved from the environment and command line."""

    client_id: str
    client_secret: str = field(repr=False)
    private: bool = False
    scope: str = ""
    redirect_uri: str = REDIRECT_URI
    callback_host: str = CALLBACK_HOST
    callback_port: int = CALLBACK_PORT
    callback_timeout: float = DEFAULT_CALLBACK_TIMEOUT
    open_browser: bool = True
    http_options: HttpOptions = field(default_factory=HttpOptions)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def check_credentials(environ: Mapping[str, str]) -> List[str]:
    """Return the names of required environment variables that are unset or blank."""
    return [name for name in REQUIRED_ENV_VARS if is_blank(environ.get(name))]


def is_debug(environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return not is_blank(environ.get("DEBUG")) or not is_blank(environ.get("VERBOSE"))


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration against schema.
    Returns (is_valid, list_of_errors).
    """
    errors = []

    for key, rules in CONFIG_SCHEMA.items():
        # Check required fields
        if rules.get("required", False) and key not in config:
            errors.append(f"Missing required field: {key}")
            continue

        if key not in config:
            continue

        value = config[key]

        # Type check (bool is an int, but never a valid number here)
        expected_type = rules.get("type")
        wrong_bool = isinstance(value, bool) and expected_type is not bool
        if expected_type and (wrong_bool or not isinstance(value, expected_type)):
            type_names = expected_type.__name__ if not isinstance(expected_type, tuple) else "/".join(t.__name__ for t in expected_type)
            errors.append(f"Field '{key}' must be {type_names}, got {type(value).__name__}")
            continue

        # List element type check
        if isinstance(value, list) and "element_type" in rules:
            elem_type = rules["element_type"]
            bad_elems = [v for v in value if not isinstance(v, elem_type)]
            if bad_elems:
                errors.append(
                    f"Field '{key}' must be a list of {elem_type.__name__}, got invalid elements: {bad_elems}"
                )
                continue

        # URL check, e.g. a proxy the HTTP client would otherwise reject on startup
        if isinstance(value, str) and value and "url_schemes" in rules:
            parts = urllib.parse.urlsplit(value)
            if parts.scheme.lower() not in rules["url_schemes"] or not parts.netloc:
                errors.append(
                    f"Field '{key}' must be a URL with scheme {'/'.join(rules['url_schemes'])}, got '{value}'"
                )

        # Range check for numeric values
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if "min" in rules and value < rules["min"]:
                errors.append(f"Field '{key}' must be >= {rules['min']}, got {value}")
            if "max" in rules and value > rules["max"]:
                errors.append(f"Field '{key}' must be <= {rules['max']}, got {value}")

    return len(errors) == 0, errors


def _settings_from_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    settings: Dict[str, Any] = {
        "client_id": str(environ["SPOTIFY_ID"]).strip(),
        "client_secret": str(environ["SPOTIFY_SECRET"]).strip(),
        "private": not is_blank(environ.get("SPOTIFY_PRIVATE")),
    }

    if not is_blank(environ.get("SPOTIFY_TOKEN_SCOPE")):
        settings["scopes"] = environ["SPOTIFY_TOKEN_SCOPE"].split()

    raw_timeout = environ.get("SPOTIFY_CALLBACK_TIMEOUT")
    if not is_blank(raw_timeout):
        try:
            settings["callback_timeout"] = float(raw_timeout)
        except ValueError:
            raise ConfigError(f"SPOTIFY_CALLBACK_TIMEOUT must be a number of seconds, got '{raw_timeout}'")

    return settings


def _http_options(config: Dict[str, Any]) -> HttpOptions:
    headers = {}
    for raw in config.get("http_headers") or []:
        try:
            name, value = parse_header(raw)
        except ValueError as e:
            raise ConfigError(str(e)) from e
        headers[name] = value

    return HttpOptions(
        timeout=float(config.get("http_timeout", DEFAULT_HTTP_TIMEOUT)),
        verify=bool(config.get("http_verify", True)),
        proxy=config.get("http_proxy") or None,
        headers=headers,
    )


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> TokenConfig:
    """Build the run configuration from environment variables, applying defaults and overrides.

    Overrides come from the command line; None values mean "not given" and are skipped.
    Raises MissingCredentialsError before anything else if SPOTIFY_ID or SPOTIFY_SECRET is blank.
    """
    environ = os.environ if environ is None else environ

    missing = check_credentials(environ)
    if missing:
        raise MissingCredentialsError(missing)

    config: Dict[str, Any] = dict(DEFAULT_CONFIG)
    config.update(_settings_from_env(environ))
    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value

    if isinstance(config.get("scopes"), str):
        config["scopes"] = config["scopes"].split()

    is_valid, errors = validate_config(config)
    if not is_valid:
        raise ConfigError(f"Invalid configuration: {', '.join(errors)}")

    return TokenConfig(
        client_id=config["client_id"],
        client_secret=config["client_secret"],
        private=config["private"],
        scope=build_scope(config["scopes"]),
        redirect_uri=config["redirect_uri"],
        callback_host=config["callback_host"],
        callback_port=config["callback_port"],
        callback_timeout=float(config["callback_timeout"]),
        open_browser=bool(config.get("open_browser", True)),
        http_options=_http_options(config),
    )
