from unittest.mock import Mock, patch

import requests
from django.test import SimpleTestCase, override_settings

from core.services.exceptions import MalformedSourceError, TransientSourceError
from core.services.http import call_with_retry, is_valid_handle, request_json

from .helpers import _MockResponse


class HandleValidationTests(SimpleTestCase):
    def test_accepts_conservative_handles(self):
        self.assertTrue(is_valid_handle("tourist"))
        self.assertTrue(is_valid_handle("jiangly_-2"))
        self.assertTrue(is_valid_handle("a" * 50))

    def test_rejects_garbage(self):
        for handle in ["", "   ", None, "a" * 51, "bad handle", "x/../y", "name?x=1", 42]:
            with self.subTest(handle=handle):
                self.assertFalse(is_valid_handle(handle))


class CallWithRetryTests(SimpleTestCase):
    def test_returns_first_success(self):
        fn = Mock(side_effect=[TransientSourceError("boom"), "ok"])
        with patch("core.services.http.time.sleep") as sleep_mock:
            result = call_with_retry(fn, attempts=3, base_delay=1)

        self.assertEqual(result, "ok")
        self.assertEqual(fn.call_count, 2)
        sleep_mock.assert_called_once_with(1)

    def test_backoff_doubles_and_last_error_is_raised(self):
        fn = Mock(side_effect=TransientSourceError("down"))
        with patch("core.services.http.time.sleep") as sleep_mock:
            with self.assertRaises(TransientSourceError):
                call_with_retry(fn, attempts=3, base_delay=0.5)

        self.assertEqual(fn.call_count, 3)
        self.assertEqual([c.args[0] for c in sleep_mock.call_args_list], [0.5, 1.0])

    def test_malformed_errors_are_not_retried(self):
        fn = Mock(side_effect=MalformedSourceError("bad html"))
        with patch("core.services.http.time.sleep") as sleep_mock:
            with self.assertRaises(MalformedSourceError):
                call_with_retry(fn, attempts=3, base_delay=1)

        self.assertEqual(fn.call_count, 1)
        sleep_mock.assert_not_called()

    @override_settings(SOURCE_RETRY_ATTEMPTS=2, SOURCE_RETRY_BASE_DELAY_SECONDS=0)
    def test_defaults_come_from_settings(self):
        fn = Mock(side_effect=TransientSourceError("down"))
        with self.assertRaises(TransientSourceError):
            call_with_retry(fn)
        self.assertEqual(fn.call_count, 2)


class RequestJsonTests(SimpleTestCase):
    def test_server_errors_are_transient(self):
        with patch("core.services.http.requests.get", return_value=_MockResponse(503, {})):
            with self.assertRaises(TransientSourceError) as ctx:
                request_json("GET", "https://example.com", "Example")
        self.assertEqual(ctx.exception.status_code, 503)

    def test_rate_limit_is_transient(self):
        with patch("core.services.http.requests.get", return_value=_MockResponse(429, {})):
            with self.assertRaises(TransientSourceError):
                request_json("GET", "https://example.com", "Example")

    def test_network_errors_are_transient(self):
        with patch("core.services.http.requests.get", side_effect=requests.Timeout("slow")):
            with self.assertRaises(TransientSourceError):
                request_json("GET", "https://example.com", "Example")

    def test_not_found_and_non_json_are_malformed(self):
        with patch("core.services.http.requests.get", return_value=_MockResponse(404, {})):
            with self.assertRaises(MalformedSourceError):
                request_json("GET", "https://example.com", "Example")

        with patch("core.services.http.requests.get", return_value=_MockResponse(200, None, text="<html>")):
            with self.assertRaises(MalformedSourceError):
                request_json("GET", "https://example.com", "Example")

    @override_settings(SOURCE_TIMEOUT_SECONDS=7)
    def test_every_request_has_a_timeout(self):
        with patch("core.services.http.requests.post", return_value=_MockResponse(200, {"ok": 1})) as post_mock:
            payload = request_json("POST", "https://example.com", "Example", json={"q": 1})

        self.assertEqual(payload, {"ok": 1})
        self.assertEqual(post_mock.call_args.kwargs["timeout"], 7)
        self.assertIn("User-Agent", post_mock.call_args.kwargs["headers"])

    def test_network_error_message_omits_the_url(self):
        error = requests.ConnectionError("Max retries exceeded with url: /search?key=hunter2")
        with patch("core.services.http.requests.get", side_effect=error):
            with self.assertRaises(TransientSourceError) as ctx:
                request_json("GET", "https://example.com/search", "Example", params={"key": "hunter2"})

        self.assertNotIn("hunter2", str(ctx.exception))
        self.assertEqual(str(ctx.exception), "Example request failed: ConnectionError")
