import logging
import sys
import webbrowser

logger = logging.getLogger(__name__)

# platforms where a desktop session with a default browser can be assumed
BROWSER_PLATFORMS = ("darwin", "win32")


def browser_supported(platform: str = sys.platform) -> bool:
    return platform in BROWSER_PLATFORMS


def open_browser(url: str) -> bool:
    """Open url in the default browser. Returns False if the caller should print it instead."""

    if not browser_supported():
        return False

    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.debug("Could not open browser: %s", e)
        return False

    if opened:
        logger.debug("Opened authorization URL in the default browser")
    return bool(opened)
