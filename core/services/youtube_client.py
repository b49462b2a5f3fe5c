import logging
from typing import Any

from django.conf import settings

from .exceptions import SourceError
from .http import request_json

logger = logging.getLogger(__name__)


class YouTubeClient:
    MAX_RESULTS = 3

    @classmethod
    def _search(cls, query: str) -> dict[str, Any]:
        base_url = getattr(settings, "YOUTUBE_API_URL", "https://www.googleapis.com/youtube/v3").rstrip("/")
        params = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": cls.MAX_RESULTS,
        }
        headers = {"X-goog-api-key": getattr(settings, "YOUTUBE_API_KEY", "")}
        return request_json("GET", f"{base_url}/search", "YouTube", params=params, headers=headers)

    @classmethod
    def _to_solution(cls, item: dict[str, Any]) -> dict[str, str]:
        video_id = (item.get("id") or {}).get("videoId") or ""
        snippet = item.get("snippet") or {}
        thumbnail = ((snippet.get("thumbnails") or {}).get("default") or {}).get("url") or ""
        return {
            "videoId": video_id,
            "title": snippet.get("title") or "Untitled Video",
            "url": f"https://www.youtube.com/watch?v={video_id}" if video_id else "",
            "thumbnail": thumbnail,
        }

    @classmethod
    def search_solutions(cls, contest_name: str, platform: str) -> list[dict[str, str]]:
        # Quota is small, so no retry here; an empty list is retried by a later run.
        if not getattr(settings, "YOUTUBE_API_KEY", ""):
            logger.debug("YOUTUBE_API_KEY not set; skipping solutions for %s", contest_name)
            return []

        try:
            payload = cls._search(f"{contest_name} {platform} solution")
        except SourceError as e:
            logger.error("Error fetching YouTube solutions for %s: %s", contest_name, e)
            return []

        items = payload.get("items") or []
        return [cls._to_solution(item) for item in items[: cls.MAX_RESULTS] if isinstance(item, dict)]
