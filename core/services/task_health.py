import json
import logging

from django.conf import settings
from django.utils import timezone

from .run_guard import get_redis_client

logger = logging.getLogger(__name__)


def set_task_health(task_name: str, payload: dict, ttl_seconds: int = 2 * 24 * 3600) -> None:
    if not getattr(settings, "SYNC_USE_REDIS", True):
        return
    data = {
        "task": task_name,
        "at": timezone.now().isoformat(),
        **(payload or {}),
    }
    try:
        get_redis_client().set(
            f"task_health:{task_name}",
            json.dumps(data, default=str),
            ex=ttl_seconds,
        )
    except Exception:
        logger.exception("Failed to store task health for %s", task_name)


def get_task_health(task_name: str) -> dict | None:
    if not getattr(settings, "SYNC_USE_REDIS", True):
        return None
    try:
        raw = get_redis_client().get(f"task_health:{task_name}")
    except Exception:
        logger.exception("Failed to read task health for %s", task_name)
        return None
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None
