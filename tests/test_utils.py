import io
import sys
import unittest
from pathlib import Path
from unittest import mock

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from spotify_token.utils import browser
from spotify_token.utils.logger import log_debug, log_error, log_info, log_warning, setup_logging


class TestBrowser(unittest.TestCase):
    def test_supported_platforms(self):
        self.assertTrue(browser.browser_supported("darwin"))
        self.assertTrue(browser.browser_supported("win32"))
        self.assertFalse(browser.browser_supported("linux"))

    def test_unsupported_platform_never_launches(self):
        with mock.patch.object(browser, "browser_supported", return_value=False), \
                mock.patch("webbrowser.open") as opener:
            self.assertFalse(browser.open_browser("https://example.com"))
        opener.assert_not_called()

    def test_supported_platform_opens(self):
        with mock.patch.object(browser, "browser_supported", return_value=True), \
                mock.patch("webbrowser.open", return_value=True) as opener:
            self.assertTrue(browser.open_browser("https://example.com"))
        opener.assert_called_once_with("https://example.com")

    def test_browser_error_falls_back_to_printing(self):
        import webbrowser

        with mock.patch.object(browser, "browser_supported", return_value=True), \
                mock.patch("webbrowser.open", side_effect=webbrowser.Error("no runnable browser")):
            self.assertFalse(browser.open_browser("https://example.com"))


class TestLogger(unittest.TestCase):
    def test_plain_output_hides_debug(self):
        stream = io.StringIO()
        setup_logging(debug=False, stream=stream)
        log_debug("hidden")
        log_info("shown")
        log_warning("careful")
        log_error("broken")

        lines = stream.getvalue().splitlines()
        self.assertEqual(lines, ["shown", "WARNING: careful", "ERROR: broken"])

    def test_debug_output_is_timestamped(self):
        stream = io.StringIO()
        setup_logging(debug=True, stream=stream)
        log_debug("details")
        self.assertRegex(stream.getvalue(), r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \[DEBUG\] details")

    def tearDown(self):
        setup_logging(debug=False)


if __name__ == "__main__":
    unittest.main(verbosity=2)
