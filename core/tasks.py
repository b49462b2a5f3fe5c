import logging

from celery import shared_task

from .services.activity_sync import activity_sync_job
from .services.contest_sync import contest_sync_job
from .services.rating_sync import rating_sync_job

logger = logging.getLogger(__name__)

JOBS = {
    "ratings": rating_sync_job,
    "contests": contest_sync_job,
    "activity": activity_sync_job,
}


@shared_task
def update_ratings(source: str = "cron") -> dict:
    return rating_sync_job.run(source)


@shared_task
def update_contests(source: str = "cron") -> dict:
    return contest_sync_job.run(source)


@shared_task
def update_activity(source: str = "cron", day: str | None = None) -> dict:
    return activity_sync_job.run(source, day=day)


TASKS = {
    "ratings": update_ratings,
    "contests": update_contests,
    "activity": update_activity,
}
