import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timedelta

from django.utils import timezone

from core.models import Profile, UserActivity

from .api_client import (
    PLATFORM_CODECHEF,
    PLATFORM_CODEFORCES,
    PLATFORM_LEETCODE,
    CodeChefClient,
    CodeforcesClient,
    LeetCodeClient,
)
from .sync import SyncJob

logger = logging.getLogger(__name__)

SUBMISSION_CLIENTS = {
    PLATFORM_LEETCODE: LeetCodeClient,
    PLATFORM_CODEFORCES: CodeforcesClient,
    PLATFORM_CODECHEF: CodeChefClient,
}


def day_window(day):
    """[00:00:00, 23:59:59] of ``day`` in the current time zone."""
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    end = timezone.make_aware(datetime.combine(day, time(23, 59, 59)), tz)
    return start, end


def dedupe_submissions(submissions) -> list:
    unique = {}
    for sub in submissions:
        unique.setdefault(sub.key, sub)
    return list(unique.values())


class ActivitySyncJob(SyncJob):
    name = "update_activity"
    label = "Activity update"

    def __init__(self, clients=None):
        super().__init__()
        self.clients = clients or SUBMISSION_CLIENTS

    def _handles(self, profile):
        return {
            PLATFORM_LEETCODE: profile.handle_leetcode,
            PLATFORM_CODEFORCES: profile.handle_codeforces,
            PLATFORM_CODECHEF: profile.handle_codechef,
        }

    def collect_submissions(self, profile, window_start, window_end):
        """
        Fetch every platform at once and wait for all of them; a failing
        platform contributes nothing instead of failing the others.
        """
        breakdown = {platform: 0 for platform in self.clients}
        collected = []
        handles = {p: h for p, h in self._handles(profile).items() if h and p in self.clients}
        if not handles:
            return collected, breakdown

        with ThreadPoolExecutor(max_workers=len(handles)) as executor:
            futures = {
                platform: executor.submit(
                    self.clients[platform].get_accepted_submissions,
                    handle,
                    window_start,
                    window_end,
                )
                for platform, handle in handles.items()
            }
            for platform, future in futures.items():
                try:
                    submissions = future.result()
                except Exception:
                    logger.exception("Error fetching %s data for %s", platform, handles[platform])
                    continue
                breakdown[platform] = len(submissions)
                collected.extend(submissions)

        return dedupe_submissions(collected), breakdown

    def store(self, profile, day, submissions, breakdown) -> UserActivity:
        activity, _ = UserActivity.objects.update_or_create(
            profile=profile,
            date=day,
            defaults={"count": len(submissions), "breakdown": breakdown},
        )
        return activity

    def execute(self, day=None) -> dict:
        if day is None:
            day = timezone.localdate() - timedelta(days=1)
        elif isinstance(day, str):
            day = date.fromisoformat(day)
        window_start, window_end = day_window(day)

        profiles = list(Profile.with_handles())
        logger.info("Found %s profiles with platform handles; processing %s", len(profiles), day.isoformat())

        stored = 0
        errors = 0
        for profile in profiles:
            try:
                submissions, breakdown = self.collect_submissions(profile, window_start, window_end)
                self.store(profile, day, submissions, breakdown)
                stored += 1
                logger.info("Stored %s problems for %s on %s", len(submissions), profile.user.username, day)
            except Exception:
                errors += 1
                logger.exception("Storage for %s failed", profile.user.username)

        return {"date": day.isoformat(), "profiles": len(profiles), "stored": stored, "errors": errors}


activity_sync_job = ActivitySyncJob()
