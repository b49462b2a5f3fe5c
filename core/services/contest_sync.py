import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.models import Contest

from .contest_catalog import MANUAL_PLATFORMS, fetch_all_contests, fetch_platform_contests
from .sync import SyncJob
from .youtube_client import YouTubeClient

logger = logging.getLogger(__name__)

REFRESHABLE_FIELDS = ("name", "start_time", "duration_seconds", "link")


class ContestSyncJob(SyncJob):
    name = "update_contests"
    label = "Contest update"

    def __init__(self, solution_finder=None):
        super().__init__()
        self.solution_finder = solution_finder or YouTubeClient.search_solutions

    def _resolve_solutions(self, name, platform) -> list:
        try:
            return list(self.solution_finder(name, platform) or [])[:3]
        except Exception:
            logger.exception("Solution lookup failed for %s (%s)", name, platform)
            return []

    def _create(self, data: dict):
        solutions = []
        if data["status"] == Contest.STATUS_PAST:
            solutions = self._resolve_solutions(data["name"], data["platform"])
        contest, created = Contest.objects.get_or_create(
            contest_id=data["contest_id"],
            defaults={**data, "solutions": solutions},
        )
        if created:
            logger.info("Created new contest: %s (%s)", contest.name, contest.platform)
        return contest, created

    def _mark_past(self, contest: Contest) -> None:
        contest.status = Contest.STATUS_PAST
        if not contest.solutions:
            contest.solutions = self._resolve_solutions(contest.name, contest.platform)
        contest.save(update_fields=["status", "solutions", "updated_at"])
        logger.info("Updated contest to past: %s (%s)", contest.name, contest.platform)

    def _refresh_upcoming(self, contest: Contest, data: dict) -> bool:
        changed = [f for f in REFRESHABLE_FIELDS if getattr(contest, f) != data[f]]
        if not changed:
            return False
        for field in changed:
            setattr(contest, field, data[field])
        contest.save(update_fields=changed + ["updated_at"])
        return True

    def _schedule_next(self, platform: str, now) -> int:
        created = 0
        for data in fetch_platform_contests(platform, now):
            _, was_created = self._create(data)
            created += int(was_created)
        return created

    def merge_fetched(self, fetched: list[dict], now) -> dict:
        created = transitioned = refreshed = errors = 0
        for data in fetched:
            try:
                existing = Contest.objects.filter(contest_id=data["contest_id"]).first()
                if existing is None:
                    _, was_created = self._create(data)
                    created += int(was_created)
                    continue
                if existing.is_past:
                    continue
                if existing.has_ended(now):
                    self._mark_past(existing)
                    transitioned += 1
                elif self._refresh_upcoming(existing, data):
                    refreshed += 1
            except Exception:
                errors += 1
                logger.exception("Error processing contest %s", data.get("name"))
        return {"created": created, "transitioned": transitioned, "refreshed": refreshed, "errors": errors}

    def transition_stored(self, now) -> dict:
        transitioned = scheduled = errors = 0
        for contest in Contest.objects.filter(status=Contest.STATUS_UPCOMING).order_by("start_time"):
            try:
                if not contest.has_ended(now):
                    continue
                self._mark_past(contest)
                transitioned += 1
                if contest.platform in MANUAL_PLATFORMS:
                    scheduled += self._schedule_next(contest.platform, now)
            except Exception:
                errors += 1
                logger.exception("Error updating contest %s", contest.name)
        return {"transitioned": transitioned, "scheduled": scheduled, "errors": errors}

    def retry_missing_solutions(self, limit: int, skip_ids=()) -> int:
        if limit <= 0:
            return 0
        filled = 0
        candidates = Contest.objects.filter(status=Contest.STATUS_PAST).exclude(id__in=list(skip_ids)).order_by("-start_time")
        for contest in candidates:
            if limit <= 0:
                break
            if contest.solutions:
                continue
            limit -= 1
            solutions = self._resolve_solutions(contest.name, contest.platform)
            if solutions:
                contest.solutions = solutions
                contest.save(update_fields=["solutions", "updated_at"])
                filled += 1
        return filled

    def prune_past(self, keep: int) -> int:
        with transaction.atomic():
            past = Contest.objects.filter(status=Contest.STATUS_PAST)
            keep_ids = list(past.order_by("-start_time", "-id").values_list("id", flat=True)[:keep])
            deleted, _ = past.exclude(id__in=keep_ids).delete()
        if deleted:
            logger.info("Deleted %s old past contests", deleted)
        return deleted

    def execute(self, now=None) -> dict:
        now = now or timezone.now()
        fetched = fetch_all_contests(now)
        if not fetched:
            logger.info("No contests fetched from any platform")
        else:
            logger.info("Fetched %s contests", len(fetched))

        past_before = set(
            Contest.objects.filter(status=Contest.STATUS_PAST).values_list("id", flat=True)
        )
        merged = self.merge_fetched(fetched, now)
        stored = self.transition_stored(now)
        touched = set(
            Contest.objects.filter(status=Contest.STATUS_PAST).exclude(id__in=past_before).values_list("id", flat=True)
        )

        filled = self.retry_missing_solutions(
            int(getattr(settings, "CONTEST_SOLUTIONS_RETRY_PER_RUN", 3)),
            skip_ids=touched,
        )

        deleted = 0
        try:
            deleted = self.prune_past(int(getattr(settings, "CONTEST_PAST_RETENTION", 20)))
        except Exception:
            logger.exception("Error pruning past contests")

        return {
            "fetched": len(fetched),
            "created": merged["created"] + stored["scheduled"],
            "transitioned": merged["transitioned"] + stored["transitioned"],
            "refreshed": merged["refreshed"],
            "solutions_filled": filled,
            "deleted": deleted,
            "errors": merged["errors"] + stored["errors"],
        }


contest_sync_job = ContestSyncJob()
