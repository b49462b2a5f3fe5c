import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytz
from bs4 import BeautifulSoup
from django.conf import settings

from .exceptions import MalformedSourceError, SourceError, TransientSourceError
from .http import call_with_retry, is_valid_handle, request_json, request_text

logger = logging.getLogger(__name__)

PLATFORM_CODEFORCES = "codeforces"
PLATFORM_CODECHEF = "codechef"
PLATFORM_LEETCODE = "leetcode"


@dataclass(frozen=True)
class Submission:
    platform: str
    problem_id: str
    timestamp: int
    title: Optional[str] = None

    @property
    def key(self):
        return (self.platform, self.problem_id)


def _in_window(ts, window_start, window_end) -> bool:
    return int(window_start.timestamp()) <= ts <= int(window_end.timestamp())


def _fetch_or_default(fetch, default, platform, handle, what):
    try:
        return call_with_retry(fetch, label=f"{platform} {what} {handle}")
    except TransientSourceError as e:
        logger.warning("%s %s unavailable for %s after retries: %s", platform, what, handle, e)
    except MalformedSourceError as e:
        logger.warning("%s %s unreadable for %s: %s", platform, what, handle, e)
    except SourceError as e:
        logger.warning("%s %s failed for %s: %s", platform, what, handle, e)
    except Exception:
        logger.exception("Unexpected error parsing %s %s for %s", platform, what, handle)
    return default


class CodeforcesClient:
    BASE_URL = "https://codeforces.com/api"
    PLATFORM = "Codeforces"

    @staticmethod
    def _check_status(payload, handle):
        if payload.get("status") == "OK":
            return True
        comment = payload.get("comment", "") or ""
        if "limit" in comment.lower():
            raise TransientSourceError(f"Codeforces rate limit: {comment}", platform="Codeforces")
        logger.info("Codeforces API error for %s: %s", handle, comment)
        return False

    @staticmethod
    def _fetch_rating(handle):
        # Unknown handles come back as HTTP 400 with status FAILED.
        payload = request_json(
            "GET",
            f"{CodeforcesClient.BASE_URL}/user.info",
            CodeforcesClient.PLATFORM,
            allow_statuses=(200, 400),
            params={"handles": handle},
        )
        if not CodeforcesClient._check_status(payload, handle):
            return 0
        result = payload.get("result") or []
        if not result:
            return 0
        return int(result[0].get("rating") or 0)

    @staticmethod
    def get_rating(handle) -> int:
        if not is_valid_handle(handle):
            logger.debug("Invalid Codeforces handle: %r", handle)
            return 0
        return _fetch_or_default(
            lambda: CodeforcesClient._fetch_rating(handle), 0, "Codeforces", handle, "rating"
        )

    @staticmethod
    def _fetch_status_page(handle, from_index, count):
        payload = request_json(
            "GET",
            f"{CodeforcesClient.BASE_URL}/user.status",
            CodeforcesClient.PLATFORM,
            allow_statuses=(200, 400),
            params={"handle": handle, "from": from_index, "count": count},
        )
        if not CodeforcesClient._check_status(payload, handle):
            return None
        result = payload.get("result")
        if not isinstance(result, list):
            raise MalformedSourceError("Codeforces user.status without result list", platform="Codeforces")
        return result

    @staticmethod
    def _fetch_submissions(handle, window_start, window_end):
        page_size = int(getattr(settings, "CF_SUBMISSIONS_PAGE_SIZE", 500))
        max_pages = int(getattr(settings, "CF_SUBMISSIONS_MAX_PAGES", 10))
        start_ts = int(window_start.timestamp())

        submissions = []
        from_index = 1
        for _ in range(max_pages):
            page = call_with_retry(
                lambda: CodeforcesClient._fetch_status_page(handle, from_index, page_size),
                label=f"Codeforces user.status {handle}",
            )
            if not page:
                break

            reached_older = False
            for sub in page:
                ts = sub.get("creationTimeSeconds")
                if ts is None:
                    continue
                if ts < start_ts:
                    reached_older = True
                    continue
                if sub.get("verdict") != "OK" or not _in_window(ts, window_start, window_end):
                    continue
                problem = sub.get("problem") or {}
                if "contestId" not in problem or "index" not in problem:
                    continue
                submissions.append(Submission(
                    platform=PLATFORM_CODEFORCES,
                    problem_id=f"{problem['contestId']}{problem['index']}",
                    timestamp=int(ts),
                    title=problem.get("name"),
                ))

            # user.status is newest first
            if reached_older or len(page) < page_size:
                break
            from_index += page_size

        logger.info("Codeforces fetched %s OK submissions for %s", len(submissions), handle)
        return submissions

    @staticmethod
    def get_accepted_submissions(handle, window_start, window_end) -> list:
        if not is_valid_handle(handle):
            return []
        try:
            return CodeforcesClient._fetch_submissions(handle, window_start, window_end)
        except TransientSourceError as e:
            logger.warning("Codeforces submissions unavailable for %s after retries: %s", handle, e)
        except SourceError as e:
            logger.warning("Codeforces submissions failed for %s: %s", handle, e)
        except Exception:
            logger.exception("Unexpected error parsing Codeforces submissions for %s", handle)
        return []


class LeetCodeClient:
    GRAPHQL_URL = "https://leetcode.com/graphql"
    PLATFORM = "LeetCode"

    RATING_QUERY = """
        query getUserContestRanking($username: String!) {
            userContestRanking(username: $username) {
                rating
            }
        }
    """

    RECENT_SUBMISSIONS_QUERY = """
        query recentSubmissions($username: String!) {
            recentSubmissionList(username: $username) {
                titleSlug
                timestamp
                title
                statusDisplay
            }
        }
    """

    @staticmethod
    def _graphql(query, variables):
        payload = request_json(
            "POST",
            LeetCodeClient.GRAPHQL_URL,
            LeetCodeClient.PLATFORM,
            json={"query": query, "variables": variables},
            headers={"Content-Type": "application/json", "Referer": "https://leetcode.com"},
        )
        data = payload.get("data")
        if data is None:
            errors = payload.get("errors") or []
            message = errors[0].get("message") if errors and isinstance(errors[0], dict) else "no data"
            raise MalformedSourceError(f"LeetCode GraphQL error: {message}", platform="LeetCode")
        return data

    @staticmethod
    def _fetch_rating(handle):
        data = LeetCodeClient._graphql(LeetCodeClient.RATING_QUERY, {"username": handle})
        ranking = data.get("userContestRanking") or {}
        rating = ranking.get("rating")
        if not rating:
            return 0
        return int(math.floor(float(rating) + 0.5))

    @staticmethod
    def get_rating(handle) -> int:
        if not is_valid_handle(handle):
            logger.debug("Invalid LeetCode handle: %r", handle)
            return 0
        return _fetch_or_default(
            lambda: LeetCodeClient._fetch_rating(handle), 0, "LeetCode", handle, "rating"
        )

    @staticmethod
    def _fetch_submissions(handle, window_start, window_end):
        data = LeetCodeClient._graphql(LeetCodeClient.RECENT_SUBMISSIONS_QUERY, {"username": handle})
        submissions = []
        for sub in data.get("recentSubmissionList") or []:
            if sub.get("statusDisplay") != "Accepted":
                continue
            try:
                ts = int(sub.get("timestamp"))
            except (TypeError, ValueError):
                continue
            if not _in_window(ts, window_start, window_end) or not sub.get("titleSlug"):
                continue
            submissions.append(Submission(
                platform=PLATFORM_LEETCODE,
                problem_id=sub["titleSlug"],
                timestamp=ts,
                title=sub.get("title"),
            ))
        return submissions

    @staticmethod
    def get_accepted_submissions(handle, window_start, window_end) -> list:
        if not is_valid_handle(handle):
            return []
        return _fetch_or_default(
            lambda: LeetCodeClient._fetch_submissions(handle, window_start, window_end),
            [],
            "LeetCode",
            handle,
            "submissions",
        )


class CodeChefClient:
    PROFILE_URL = "https://www.codechef.com/users/{handle}"
    PLATFORM = "CodeChef"
    HEATMAP_REGEX = re.compile(
        r"userDailySubmissionsStats\s*=\s*(\[.*?\]|\{.*?\})\s*;",
        re.DOTALL,
    )

    @staticmethod
    def _fetch_profile(handle):
        return request_text(
            CodeChefClient.PROFILE_URL.format(handle=handle),
            CodeChefClient.PLATFORM,
            headers={"Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"},
        )

    @staticmethod
    def parse_rating(html) -> int:
        soup = BeautifulSoup(html, "html.parser")
        node = soup.select_one(".rating-number")
        if node is None:
            raise MalformedSourceError("CodeChef profile without .rating-number", platform="CodeChef")
        match = re.search(r"\d+", node.get_text())
        if not match:
            raise MalformedSourceError("CodeChef rating is not numeric", platform="CodeChef")
        return int(match.group(0))

    @staticmethod
    def get_rating(handle) -> int:
        if not is_valid_handle(handle):
            logger.debug("Invalid CodeChef handle: %r", handle)
            return 0
        rating = _fetch_or_default(
            lambda: CodeChefClient.parse_rating(CodeChefClient._fetch_profile(handle)),
            0,
            "CodeChef",
            handle,
            "rating",
        )
        if rating:
            logger.info("Fetched CodeChef rating for %s: %s", handle, rating)
        return rating

    @staticmethod
    def parse_daily_counts(html) -> dict:
        """
        Return {date string: count} from the heatmap blob embedded in the profile.
        The blob has been seen both as a mapping and as a list of {date, value}.
        """
        match = CodeChefClient.HEATMAP_REGEX.search(html or "")
        if not match:
            raise MalformedSourceError("CodeChef heatmap data not found", platform="CodeChef")
        try:
            raw = json.loads(match.group(1))
        except ValueError as exc:
            raise MalformedSourceError("CodeChef heatmap data is not JSON", platform="CodeChef") from exc

        if isinstance(raw, dict):
            items = raw.items()
        else:
            items = [(row.get("date"), row.get("value")) for row in raw if isinstance(row, dict)]

        counts = {}
        for date_str, value in items:
            try:
                counts[str(date_str)] = int(value or 0)
            except (TypeError, ValueError):
                continue
        return counts

    @staticmethod
    def _fetch_submissions(handle, window_start, window_end):
        counts = CodeChefClient.parse_daily_counts(CodeChefClient._fetch_profile(handle))
        tz = pytz.timezone(settings.TIME_ZONE)

        submissions = []
        for date_str, count in counts.items():
            if count <= 0:
                continue
            try:
                day = datetime.strptime(date_str, "%Y-%m-%d")
            except ValueError:
                continue
            day_ts = int(tz.localize(day).timestamp())
            if not _in_window(day_ts, window_start, window_end):
                continue
            # Only daily totals are published, so each unit becomes a placeholder.
            for i in range(count):
                submissions.append(Submission(
                    platform=PLATFORM_CODECHEF,
                    problem_id=f"codechef-{date_str}-{i}",
                    timestamp=day_ts,
                    title=f"Problem solved on {date_str}",
                ))
        return submissions

    @staticmethod
    def get_accepted_submissions(handle, window_start, window_end) -> list:
        if not is_valid_handle(handle):
            return []
        return _fetch_or_default(
            lambda: CodeChefClient._fetch_submissions(handle, window_start, window_end),
            [],
            "CodeChef",
            handle,
            "submissions",
        )


RATING_CLIENTS = {
    PLATFORM_CODEFORCES: CodeforcesClient,
    PLATFORM_CODECHEF: CodeChefClient,
    PLATFORM_LEETCODE: LeetCodeClient,
}
