import hmac
import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .services.task_health import get_task_health
from .tasks import JOBS, TASKS

logger = logging.getLogger(__name__)

JOB_LABELS = {
    "ratings": "Rating update",
    "contests": "Contest update",
    "activity": "Activity update",
}


def require_cron_token(view):
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        token = request.headers.get("X-Cron-Token") or ""
        expected = getattr(settings, "CRON_SECRET_TOKEN", "") or ""
        if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
            return JsonResponse({"message": "Invalid cron token"}, status=401)
        return view(request, *args, **kwargs)

    return _wrapped


@require_GET
def health(request):
    return JsonResponse({"status": "ok", "timestamp": timezone.now().isoformat()})


@require_GET
@require_cron_token
def job_status(request, job):
    if job not in JOBS:
        return JsonResponse({"message": "Unknown job"}, status=404)
    return JsonResponse({
        "job": job,
        "running": JOBS[job].guard.is_running,
        "last_run": get_task_health(JOBS[job].name),
    })


@csrf_exempt
@require_POST
@require_cron_token
def trigger_job(request, job):
    if job not in JOBS:
        return JsonResponse({"message": "Unknown job"}, status=404)
    label = JOB_LABELS[job]

    if not getattr(settings, "SYNC_TRIGGER_INLINE", True):
        TASKS[job].delay("api")
        return JsonResponse({"message": f"{label} queued"})

    try:
        summary = JOBS[job].run("api")
    except Exception:
        logger.exception("Error triggering %s", label.lower())
        return JsonResponse({"message": f"Failed to trigger {label.lower()}"}, status=500)

    if summary.get("status") == "error":
        return JsonResponse({"message": f"Failed to trigger {label.lower()}"}, status=500)
    if summary.get("status") == "skipped":
        return JsonResponse({"message": f"{label} already running, skipped"})
    return JsonResponse({"message": f"{label} triggered successfully"})
