import logging
import random
import string
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone as dt_timezone

import pytz
from django.utils import timezone

from .exceptions import SourceError
from .http import call_with_retry, request_json

logger = logging.getLogger(__name__)

CF_CONTEST_LIST_URL = "https://codeforces.com/api/contest.list"
LEETCODE_GRAPHQL_URL = "https://leetcode.com/graphql"

DEFAULT_DURATION_SECONDS = 2 * 60 * 60

STATUS_UPCOMING = "upcoming"
STATUS_PAST = "past"

LEETCODE_UPCOMING_QUERY = """
    query upcomingContests {
        upcomingContests {
            title
            titleSlug
            startTime
            duration
        }
    }
"""


def _random_suffix(length=8):
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(length))


def _as_datetime(value, fallback):
    if isinstance(value, datetime):
        return value if timezone.is_aware(value) else timezone.make_aware(value, dt_timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=dt_timezone.utc)
    return fallback


def normalize_contest(raw: dict, platform: str, now=None) -> dict:
    """
    Fill the gaps every source leaves differently: id, name, duration, link
    and a status computed from the contest end time.
    """
    now = now or timezone.now()
    start_time = _as_datetime(raw.get("start_time"), now)
    duration = raw.get("duration_seconds")
    try:
        duration = int(duration) if duration else DEFAULT_DURATION_SECONDS
    except (TypeError, ValueError):
        duration = DEFAULT_DURATION_SECONDS

    contest_id = raw.get("contest_id")
    if not contest_id:
        contest_id = f"{platform}-{int(start_time.timestamp() * 1000)}-{_random_suffix()}"

    end_time = start_time + timedelta(seconds=duration)
    return {
        "contest_id": str(contest_id),
        "name": raw.get("name") or f"Unnamed {platform} Contest",
        "platform": platform,
        "start_time": start_time,
        "duration_seconds": duration,
        "link": raw.get("link") or f"https://{platform.lower().replace(' ', '')}.com/contests",
        "status": STATUS_PAST if now > end_time else STATUS_UPCOMING,
    }


def fetch_codeforces_contests(now=None) -> list[dict]:
    now = now or timezone.now()
    try:
        payload = call_with_retry(
            lambda: request_json("GET", CF_CONTEST_LIST_URL, "Codeforces"),
            label="Codeforces contest.list",
        )
    except SourceError as e:
        logger.error("Error fetching Codeforces contests: %s", e)
        return []

    if payload.get("status") != "OK" or not isinstance(payload.get("result"), list):
        logger.error("Invalid response from Codeforces contest.list: %s", payload.get("comment", ""))
        return []

    upcoming = [
        c for c in payload["result"]
        if c.get("phase") == "BEFORE" and c.get("startTimeSeconds") and c.get("id") is not None
    ]
    upcoming.sort(key=lambda c: c["startTimeSeconds"])

    contests = [
        normalize_contest(
            {
                "contest_id": str(c["id"]),
                "name": c.get("name"),
                "start_time": c["startTimeSeconds"],
                "duration_seconds": c.get("durationSeconds"),
                "link": f"https://codeforces.com/contest/{c['id']}",
            },
            "Codeforces",
            now,
        )
        for c in upcoming[:2]
    ]
    logger.info("Fetched %s Codeforces contests", len(contests))
    return contests


def fetch_leetcode_contests(now=None) -> list[dict]:
    now = now or timezone.now()
    try:
        payload = call_with_retry(
            lambda: request_json(
                "POST",
                LEETCODE_GRAPHQL_URL,
                "LeetCode",
                json={"query": LEETCODE_UPCOMING_QUERY},
                headers={"Content-Type": "application/json"},
            ),
            label="LeetCode upcomingContests",
        )
    except SourceError as e:
        logger.error("Error fetching LeetCode contests: %s", e)
        return []

    rows = ((payload or {}).get("data") or {}).get("upcomingContests")
    if not rows:
        logger.warning("No upcoming contests in LeetCode response")
        return []

    contests = []
    for row in rows[:2]:
        slug = row.get("titleSlug")
        if not slug or row.get("startTime") is None:
            continue
        contests.append(normalize_contest(
            {
                "contest_id": slug,
                "name": row.get("title"),
                "start_time": int(row["startTime"]),
                "duration_seconds": row.get("duration"),
                "link": f"https://leetcode.com/contest/{slug}",
            },
            "LeetCode",
            now,
        ))
    logger.info("Fetched %s LeetCode contests", len(contests))
    return contests


@dataclass(frozen=True)
class WeeklySchedule:
    """
    A contest series with no machine-readable calendar: a fixed weekday and
    time of day, numbered by whole weeks elapsed since a known anchor round.
    """
    platform: str
    id_template: str
    name_template: str
    link_template: str
    weekday: int  # Monday == 0
    hour: int
    minute: int
    duration_minutes: int
    anchor_date: date
    anchor_number: int
    tz_name: str = "Asia/Kolkata"

    @property
    def tz(self):
        return pytz.timezone(self.tz_name)

    def next_occurrence(self, now=None) -> datetime:
        now = now or timezone.now()
        local_now = now.astimezone(self.tz)
        days_ahead = (self.weekday - local_now.weekday()) % 7
        day = local_now.date() + timedelta(days=days_ahead)
        occurrence = self.tz.localize(datetime(day.year, day.month, day.day, self.hour, self.minute))
        if occurrence < now:
            day = day + timedelta(days=7)
            occurrence = self.tz.localize(datetime(day.year, day.month, day.day, self.hour, self.minute))
        return occurrence

    def number_for(self, occurrence: datetime) -> int:
        local_day = occurrence.astimezone(self.tz).date()
        return self.anchor_number + (local_day - self.anchor_date).days // 7

    def build(self, now=None) -> dict:
        now = now or timezone.now()
        occurrence = self.next_occurrence(now)
        number = self.number_for(occurrence)
        return normalize_contest(
            {
                "contest_id": self.id_template.format(number=number),
                "name": self.name_template.format(number=number),
                "start_time": occurrence,
                "duration_seconds": self.duration_minutes * 60,
                "link": self.link_template.format(number=number),
            },
            self.platform,
            now,
        )


ATCODER_SCHEDULES = (
    # 21:00 JST
    WeeklySchedule(
        platform="AtCoder",
        id_template="abc{number}",
        name_template="AtCoder Beginner Contest {number}",
        link_template="https://atcoder.jp/contests/abc{number}",
        weekday=5,
        hour=17,
        minute=30,
        duration_minutes=100,
        anchor_date=date(2025, 5, 24),
        anchor_number=407,
    ),
    WeeklySchedule(
        platform="AtCoder",
        id_template="arc{number}",
        name_template="AtCoder Regular Contest {number}",
        link_template="https://atcoder.jp/contests/arc{number}",
        weekday=6,
        hour=17,
        minute=30,
        duration_minutes=120,
        anchor_date=date(2025, 5, 25),
        anchor_number=198,
    ),
)

CODECHEF_SCHEDULES = (
    WeeklySchedule(
        platform="CodeChef",
        id_template="START{number}",
        name_template="CodeChef Starters {number}",
        link_template="https://www.codechef.com/START{number}",
        weekday=5,
        hour=20,
        minute=0,
        duration_minutes=120,
        anchor_date=date(2025, 5, 24),
        anchor_number=187,
    ),
)

GFG_SCHEDULES = (
    WeeklySchedule(
        platform="GeeksforGeeks",
        id_template="gfg-weekly-{number}",
        name_template="GfG Weekly - {number} [Rated Contest]",
        link_template="https://practice.geeksforgeeks.org/contest/gfg-weekly-{number}-rated-contest",
        weekday=6,
        hour=19,
        minute=0,
        duration_minutes=90,
        anchor_date=date(2025, 5, 25),
        anchor_number=208,
    ),
)

SCHEDULES_BY_PLATFORM = {
    "AtCoder": ATCODER_SCHEDULES,
    "CodeChef": CODECHEF_SCHEDULES,
    "GeeksforGeeks": GFG_SCHEDULES,
}

MANUAL_PLATFORMS = frozenset(SCHEDULES_BY_PLATFORM)


def generate_scheduled_contests(platform: str, now=None) -> list[dict]:
    schedules = SCHEDULES_BY_PLATFORM.get(platform, ())
    try:
        contests = [schedule.build(now) for schedule in schedules]
    except Exception:
        logger.exception("Error generating %s contests", platform)
        return []
    logger.info("Generated %s %s contests", len(contests), platform)
    return contests


def fetch_platform_contests(platform: str, now=None) -> list[dict]:
    if platform == "Codeforces":
        return fetch_codeforces_contests(now)
    if platform == "LeetCode":
        return fetch_leetcode_contests(now)
    return generate_scheduled_contests(platform, now)


CONTEST_PLATFORMS = ("Codeforces", "AtCoder", "CodeChef", "GeeksforGeeks", "LeetCode")


def fetch_all_contests(now=None) -> list[dict]:
    now = now or timezone.now()
    contests = []
    for platform in CONTEST_PLATFORMS:
        try:
            contests.extend(fetch_platform_contests(platform, now))
        except Exception:
            logger.exception("Contest source %s failed", platform)
    return contests
