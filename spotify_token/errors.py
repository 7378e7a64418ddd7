from typing import Any, Dict, Iterable, Optional


class SpotifyTokenError(RuntimeError):
    """Base class for every failure that should end the run with a non-zero exit."""


class ConfigError(SpotifyTokenError):
    pass


class MissingCredentialsError(ConfigError):
    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        names = ", ".join(f"${name}" for name in self.missing)
        super().__init__(f"{names} not defined in the environment")


class CallbackError(SpotifyTokenError):
    pass


class CallbackTimeoutError(CallbackError):
    pass


class TokenResponseError(SpotifyTokenError):
    """Spotify answered, but not with a usable token."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
