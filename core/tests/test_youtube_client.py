from unittest.mock import patch

import requests
from django.test import SimpleTestCase, override_settings

from core.services.youtube_client import YouTubeClient

from .helpers import _MockResponse


def _item(video_id, title):
    return {
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {"title": title, "thumbnails": {"default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"}}},
    }


@override_settings(YOUTUBE_API_KEY="yt-key", YOUTUBE_API_URL="https://yt.example.com/v3/")
class YouTubeClientTests(SimpleTestCase):
    def test_returns_at_most_three_solutions(self):
        payload = {"items": [_item(f"v{i}", f"Video {i}") for i in range(5)]}
        with patch("core.services.http.requests.get", return_value=_MockResponse(200, payload)) as get_mock:
            solutions = YouTubeClient.search_solutions("Codeforces Round 1000", "Codeforces")

        self.assertEqual(len(solutions), 3)
        self.assertEqual(solutions[0], {
            "videoId": "v0",
            "title": "Video 0",
            "url": "https://www.youtube.com/watch?v=v0",
            "thumbnail": "https://i.ytimg.com/vi/v0/default.jpg",
        })
        self.assertEqual(get_mock.call_args.args[0], "https://yt.example.com/v3/search")
        params = get_mock.call_args.kwargs["params"]
        self.assertEqual(params["q"], "Codeforces Round 1000 Codeforces solution")
        self.assertNotIn("key", params)
        self.assertEqual(get_mock.call_args.kwargs["headers"]["X-goog-api-key"], "yt-key")

    def test_quota_error_is_empty_without_retry(self):
        with patch("core.services.http.requests.get", return_value=_MockResponse(403, {})) as get_mock:
            self.assertEqual(YouTubeClient.search_solutions("START189", "CodeChef"), [])
        self.assertEqual(get_mock.call_count, 1)

    @override_settings(YOUTUBE_API_KEY="")
    def test_no_key_skips_lookup(self):
        with patch("core.services.http.requests.get") as get_mock:
            self.assertEqual(YouTubeClient.search_solutions("abc409", "AtCoder"), [])
        get_mock.assert_not_called()

    @override_settings(YOUTUBE_API_KEY="SUPERSECRETKEY123")
    def test_key_never_reaches_the_logs(self):
        error = requests.ConnectionError(
            "Max retries exceeded with url: /youtube/v3/search?q=abc&key=SUPERSECRETKEY123"
        )
        with patch("core.services.http.requests.get", side_effect=error), \
                self.assertLogs("core.services.youtube_client", level="ERROR") as logs:
            self.assertEqual(YouTubeClient.search_solutions("ABC 409", "AtCoder"), [])

        self.assertNotIn("SUPERSECRETKEY123", "\n".join(logs.output))
        self.assertIn("ConnectionError", "\n".join(logs.output))
