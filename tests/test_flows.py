import sys
import unittest
import urllib.parse
from unittest import mock
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config import TokenConfig
from spotify_token.auth import REDIRECT_URI
from spotify_token.callback_server import CallbackResult
from spotify_token.errors import CallbackError, CallbackTimeoutError, TokenResponseError
from spotify_token.flows import FLOWS, AuthorizationCodeFlow, ClientCredentialsFlow, select_flow


class FakeServer:
    """Stands in for CallbackServer; hands back a canned callback."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.closed = False
        self.timeout = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    def wait_for_callback(self, timeout):
        self.timeout = timeout
        if self.error:
            raise self.error
        return self.result


class RecordingTransport:
    def __init__(self, payload=None, status=200):
        self.payload = payload or {"access_token": "tok", "token_type": "Bearer", "expires_in": 3600}
        self.status = status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.payload)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def form(self, index=0):
        return urllib.parse.parse_qs(self.requests[index].content.decode("utf-8"))


def _config(**kwargs) -> TokenConfig:
    defaults = {"client_id": "my-id", "client_secret": "my-secret", "scope": "user-read-private+user-read-email"}
    defaults.update(kwargs)
    return TokenConfig(**defaults)


class TestSelectFlow(unittest.TestCase):
    def test_default_is_client_credentials(self):
        self.assertIsInstance(select_flow(_config()), ClientCredentialsFlow)

    def test_private_uses_authorization_code(self):
        self.assertIsInstance(select_flow(_config(private=True)), AuthorizationCodeFlow)

    def test_registry(self):
        self.assertEqual(set(FLOWS), {"client_credentials", "authorization_code"})


class TestClientCredentialsFlow(unittest.TestCase):
    def test_fetch(self):
        transport = RecordingTransport()
        with transport.client() as client:
            token = ClientCredentialsFlow(_config()).fetch(client)

        self.assertEqual(token.access_token, "tok")
        self.assertEqual(len(transport.requests), 1)
        form = transport.form()
        self.assertEqual(form["grant_type"], ["client_credentials"])
        self.assertEqual(form["scope"], ["user-read-private user-read-email"])

    def test_error_field(self):
        transport = RecordingTransport({"error": "invalid_client", "error_description": "Invalid client secret"}, status=400)
        with transport.client() as client:
            with self.assertRaises(TokenResponseError):
                ClientCredentialsFlow(_config()).fetch(client)


class TestAuthorizationCodeFlow(unittest.TestCase):
    def test_exchanges_caught_code(self):
        server = FakeServer(CallbackResult(path="/callback?code=ABC123&state=s", code="ABC123", state="s"))
        opened = []
        flow = AuthorizationCodeFlow(
            _config(private=True, callback_timeout=42),
            server_factory=lambda: server,
            browser=lambda url: opened.append(url) or True,
        )
        transport = RecordingTransport()

        with transport.client() as client:
            token = flow.fetch(client)

        self.assertEqual(token.access_token, "tok")
        self.assertEqual(opened, [flow.authorize_url()])
        self.assertTrue(server.closed)
        self.assertEqual(server.timeout, 42)

        form = transport.form()
        self.assertEqual(form["grant_type"], ["authorization_code"])
        self.assertEqual(form["code"], ["ABC123"])
        self.assertEqual(form["redirect_uri"], [REDIRECT_URI])
        self.assertNotIn("client_secret", form)
        self.assertTrue(transport.requests[0].headers["Authorization"].startswith("Basic "))

    def test_prints_url_when_browser_unavailable(self):
        server = FakeServer(CallbackResult(path="/callback?code=C", code="C"))
        flow = AuthorizationCodeFlow(_config(private=True), server_factory=lambda: server, browser=lambda url: False)
        transport = RecordingTransport()

        with self.assertLogs("spotify_token", level="INFO") as logs:
            with transport.client() as client:
                flow.fetch(client)

        output = "\n".join(logs.output)
        self.assertIn("Go to the following URL in your browser", output)
        self.assertIn(flow.authorize_url(), output)

    def test_no_browser_option_skips_browser(self):
        server = FakeServer(CallbackResult(path="/callback?code=C", code="C"))
        opened = []
        flow = AuthorizationCodeFlow(
            _config(private=True, open_browser=False),
            server_factory=lambda: server,
            browser=lambda url: opened.append(url) or True,
        )
        transport = RecordingTransport()
        with self.assertLogs("spotify_token", level="INFO"):
            with transport.client() as client:
                flow.fetch(client)
        self.assertEqual(opened, [])

    def test_missing_code_fails_without_exchange(self):
        server = FakeServer(CallbackResult(path="/callback?state=s", state="s"))
        flow = AuthorizationCodeFlow(_config(private=True), server_factory=lambda: server, browser=lambda url: True)
        transport = RecordingTransport()

        with transport.client() as client:
            with self.assertRaises(CallbackError) as ctx:
                flow.fetch(client)

        self.assertIn("failed to parse code", str(ctx.exception))
        self.assertEqual(transport.requests, [])

    def test_timeout_propagates(self):
        server = FakeServer(error=CallbackTimeoutError("no callback received within 1 seconds"))
        flow = AuthorizationCodeFlow(_config(private=True), server_factory=lambda: server, browser=lambda url: True)
        transport = RecordingTransport()

        with transport.client() as client:
            with self.assertRaises(CallbackTimeoutError):
                flow.fetch(client)
        self.assertTrue(server.closed)
        self.assertEqual(transport.requests, [])

    def test_port_in_use(self):
        flow = AuthorizationCodeFlow(_config(private=True, callback_host="127.0.0.1", callback_port=1))

        with mock.patch("spotify_token.flows.CallbackServer", side_effect=OSError(98, "Address already in use")):
            with self.assertRaises(CallbackError) as ctx:
                flow._default_server()
        self.assertIn("127.0.0.1:1", str(ctx.exception))


if __name__ == "__main__":
    unittest.main(verbosity=2)
