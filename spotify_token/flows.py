import logging
from typing import TYPE_CHECKING, Callable, Dict, Optional, Type

import httpx

from .auth import REDIRECT_URI, build_authorize_url, request_token
from .callback_server import CallbackServer
from .errors import CallbackError
from .token_response import TokenInfo
from .utils.browser import open_browser
from .utils.logger import log_info

if TYPE_CHECKING:
    from config import TokenConfig

logger = logging.getLogger(__name__)


class TokenFlow:
    """Strategy for obtaining an access token from the Spotify Accounts service."""

    name = ""

    def __init__(self, config: "TokenConfig"):
        self.config = config

    def fetch(self, client: httpx.Client) -> TokenInfo:
        raise NotImplementedError

    def _request_token(self, client: httpx.Client, form: Dict[str, str]) -> TokenInfo:
        return request_token(
            client,
            form,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
        )


class ClientCredentialsFlow(TokenFlow):
    """Non-interactive token for the app itself. Cannot read private user data."""

    name = "client_credentials"

    def fetch(self, client: httpx.Client) -> TokenInfo:
        return self._request_token(
            client,
            {"grant_type": "client_credentials", "scope": self.config.scope},
        )


class AuthorizationCodeFlow(TokenFlow):
    """Interactive flow: user approves in the browser, we catch the redirect and exchange the code."""

    name = "authorization_code"

    def __init__(
        self,
        config: "TokenConfig",
        *,
        server_factory: Optional[Callable[[], CallbackServer]] = None,
        browser: Callable[[str], bool] = open_browser,
    ):
        super().__init__(config)
        self._server_factory = server_factory or self._default_server
        self._browser = browser

    def _default_server(self) -> CallbackServer:
        host, port = self.config.callback_host, self.config.callback_port
        try:
            return CallbackServer(host, port)
        except OSError as e:
            raise CallbackError(f"could not listen for the callback on {host}:{port}: {e}") from e

    @property
    def redirect_uri(self) -> str:
        return self.config.redirect_uri or REDIRECT_URI

    def authorize_url(self) -> str:
        return build_authorize_url(self.config.client_id, scope=self.config.scope, redirect_uri=self.redirect_uri)

    def fetch(self, client: httpx.Client) -> TokenInfo:
        url = self.authorize_url()

        # bind before the browser opens so a fast redirect can't miss us
        with self._server_factory() as server:
            opened = self.config.open_browser and self._browser(url)
            if not opened:
                log_info("Go to the following URL in your browser, authorize and then the token will be output on the command line:")
                log_info("")
                log_info(url)
                log_info("")

            callback = server.wait_for_callback(self.config.callback_timeout)

        code = callback.require_code()
        logger.debug("Parsed code: %s", code)
        logger.debug("Requesting API token using code")

        return self._request_token(
            client,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
        )


FLOWS: Dict[str, Type[TokenFlow]] = {
    ClientCredentialsFlow.name: ClientCredentialsFlow,
    AuthorizationCodeFlow.name: AuthorizationCodeFlow,
}


def select_flow(config: "TokenConfig") -> TokenFlow:
    """Private tokens need user consent, everything else uses client credentials."""

    name = AuthorizationCodeFlow.name if config.private else ClientCredentialsFlow.name
    logger.debug("Using %s flow", name)
    return FLOWS[name](config)
