import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import TokenResponseError


@dataclass(frozen=True)
class TokenInfo:
    """Token fields parsed from a Spotify token endpoint response."""

    access_token: str
    token_type: str
    expires_at: float
    refresh_token: Optional[str] = None
    scope: Optional[str] = None

    @staticmethod
    def from_spotify_token_response(payload: Dict[str, Any], *, now: Optional[float] = None) -> "TokenInfo":
        """Convert Spotify token response JSON into TokenInfo.

        Spotify returns:
        - access_token
        - token_type
        - expires_in (seconds)
        - refresh_token (authorization code flow only)
        - scope (space-delimited string, may be empty for client credentials)
        """

        now_ts = float(time.time() if now is None else now)
        expires_in = float(payload.get("expires_in", 0) or 0)

        return TokenInfo(
            access_token=str(payload.get("access_token") or ""),
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_at=now_ts + expires_in,
            refresh_token=payload.get("refresh_token"),
            scope=payload.get("scope"),
        )

    @property
    def expires_in(self) -> int:
        return max(0, int(self.expires_at - time.time()))


def describe_error(error: Any, description: Any = None) -> str:
    """Render either Spotify error shape as a single line.

    Accounts service: {"error": "invalid_client", "error_description": "Invalid client"}
    Web API:          {"error": {"status": 400, "message": "Only valid bearer authentication supported"}}
    """

    if isinstance(error, dict):
        message = error.get("message") or error.get("error_description") or ""
        status = error.get("status")
        if status and message:
            return f"{message} (status {status})"
        return str(message or status or error)

    text = str(error)
    if description:
        return f"{text}: {description}"
    return text


def parse_token_response(payload: Dict[str, Any], *, status_code: Optional[int] = None) -> TokenInfo:
    """Return the TokenInfo in payload or raise TokenResponseError if Spotify reported an error."""

    if payload.get("error"):
        message = describe_error(payload["error"], payload.get("error_description"))
        raise TokenResponseError(f"Spotify API error: {message}", status_code=status_code, payload=payload)

    token = TokenInfo.from_spotify_token_response(payload)
    if not token.access_token:
        raise TokenResponseError(
            f"Spotify token response did not contain an access_token: {payload}",
            status_code=status_code,
            payload=payload,
        )
    return token
