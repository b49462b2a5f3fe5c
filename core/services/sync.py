import logging
import time

from .run_guard import RunGuard
from .task_health import set_task_health

logger = logging.getLogger(__name__)


class SyncJob:
    """
    One background job: guarded against overlapping with itself, never raising
    to its caller, and always reporting a summary dict.
    """

    name = "sync"
    label = "Sync"

    def __init__(self):
        self.guard = RunGuard(self.name)

    def execute(self, **kwargs) -> dict:
        raise NotImplementedError

    def run(self, source: str = "cron", **kwargs) -> dict:
        if not self.guard.try_acquire():
            logger.info("%s (source: %s) already running, skipping...", self.label, source)
            return {"status": "skipped", "job": self.name, "source": source}

        started = time.monotonic()
        summary = {"status": "ok"}
        try:
            logger.info("Starting %s (source: %s)", self.label.lower(), source)
            summary.update(self.execute(**kwargs) or {})
        except Exception:
            summary["status"] = "error"
            logger.exception("%s (source: %s) error", self.label, source)
        finally:
            self.guard.release()

        summary["job"] = self.name
        summary["source"] = source
        summary["duration_ms"] = int((time.monotonic() - started) * 1000)
        logger.info("%s (source: %s) finished: %s", self.label, source, summary)
        set_task_health(self.name, summary)
        return summary
