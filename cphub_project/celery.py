import logging
import os

from celery import Celery
from celery.signals import worker_ready

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'cphub_project.settings')

logger = logging.getLogger(__name__)

app = Celery('cphub_project')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()


@worker_ready.connect
def run_sync_jobs_on_startup(sender=None, **kwargs):
    from django.conf import settings

    if not getattr(settings, 'SYNC_RUN_ON_STARTUP', True):
        return

    from core.tasks import update_activity, update_contests, update_ratings

    for task in (update_ratings, update_contests, update_activity):
        task.delay('initial')
    logger.info("Queued initial sync runs.")
