import argparse
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from dotenv import load_dotenv

from config import is_debug, load_config
from spotify_token.auth import REDIRECT_URI, open_http_client, spotify_app_setup_instructions
from spotify_token.errors import MissingCredentialsError, SpotifyTokenError
from spotify_token.flows import select_flow
from spotify_token.utils.logger import log_debug, log_error, log_warning, setup_logging

DESCRIPTION = """\
Returns a Spotify access token from the Spotify API, needed to access the Spotify API

Requires $SPOTIFY_ID and $SPOTIFY_SECRET to be defined in the environment

Due to quirks of the Spotify API, by default returns a non-interactive access token that cannot access private user data

To get a token to access the private user data API endpoints:

  export SPOTIFY_PRIVATE=1

This will then require an interactive browser pop-up prompt to authorize, at which point this
tool will capture and output the resulting token. Only the token is written to stdout, so you
can preload a private authorized token into your shell for an hour like so:

  export SPOTIFY_ACCESS_TOKEN="$(SPOTIFY_PRIVATE=1 spotify-api-token)"
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spotify-api-token",
        description=DESCRIPTION,
        epilog=spotify_app_setup_instructions(redirect_uri=REDIRECT_URI),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-p", "--private", action="store_const", const=True, default=None,
        help="use the interactive authorization code flow (same as SPOTIFY_PRIVATE=1)",
    )
    parser.add_argument("--scope", help="whitespace separated scopes (default: $SPOTIFY_TOKEN_SCOPE or all scopes)")
    parser.add_argument(
        "--no-browser", dest="open_browser", action="store_const", const=False, default=None,
        help="print the authorization URL instead of opening a browser",
    )
    parser.add_argument(
        "--callback-timeout", type=float, metavar="SECONDS",
        help="how long to wait for the authorization callback (default: $SPOTIFY_CALLBACK_TIMEOUT or 300)",
    )

    http = parser.add_argument_group("HTTP client options")
    http.add_argument("--timeout", dest="http_timeout", type=float, metavar="SECONDS", help="request timeout")
    http.add_argument(
        "-k", "--insecure", dest="http_verify", action="store_const", const=False, default=None,
        help="skip TLS certificate verification",
    )
    http.add_argument("--proxy", dest="http_proxy", metavar="URL", help="proxy URL for requests to Spotify")
    http.add_argument(
        "-H", "--header", dest="http_headers", action="append", metavar="'NAME: VALUE'",
        help="extra request header, may be repeated",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging to stderr")
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "private": args.private,
        "scopes": args.scope,
        "open_browser": args.open_browser,
        "callback_timeout": args.callback_timeout,
        "http_timeout": args.http_timeout,
        "http_verify": args.http_verify,
        "http_proxy": args.http_proxy,
        "http_headers": args.http_headers,
    }


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # a local .env may hold SPOTIFY_ID / SPOTIFY_SECRET; the real environment wins
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file, override=False)
    setup_logging(debug=args.verbose or is_debug())

    try:
        config = load_config(os.environ, _overrides(args))
        if not config.http_options.verify:
            log_warning("TLS certificate verification is disabled")
        flow = select_flow(config)
        with open_http_client(config.http_options) as client:
            token = flow.fetch(client)
    except KeyboardInterrupt:
        log_error("Interrupted")
        return 130
    except SpotifyTokenError as e:
        log_error(str(e))
        if isinstance(e, MissingCredentialsError):
            log_error(spotify_app_setup_instructions())
        return 1
    except httpx.HTTPError as e:
        log_error(f"Spotify token request failed: {e}")
        return 1

    log_debug(f"Got {token.token_type} token from {flow.name} flow, expires in {token.expires_in} seconds")
    print(token.access_token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
