"""Spotify Accounts service token retrieval (client credentials + authorization code)."""

from .auth import REDIRECT_URI, HttpOptions, build_authorize_url, build_scope, request_token
from .callback_server import CallbackResult, CallbackServer, wait_for_callback
from .errors import (
    CallbackError,
    CallbackTimeoutError,
    ConfigError,
    MissingCredentialsError,
    SpotifyTokenError,
    TokenResponseError,
)
from .flows import FLOWS, AuthorizationCodeFlow, ClientCredentialsFlow, TokenFlow, select_flow
from .token_response import TokenInfo, parse_token_response

__all__ = [
    "AuthorizationCodeFlow",
    "CallbackError",
    "CallbackResult",
    "CallbackServer",
    "CallbackTimeoutError",
    "ClientCredentialsFlow",
    "ConfigError",
    "FLOWS",
    "HttpOptions",
    "MissingCredentialsError",
    "REDIRECT_URI",
    "SpotifyTokenError",
    "TokenFlow",
    "TokenInfo",
    "TokenResponseError",
    "build_authorize_url",
    "build_scope",
    "parse_token_response",
    "request_token",
    "select_flow",
    "wait_for_callback",
]
