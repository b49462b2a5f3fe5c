from unittest.mock import Mock, patch

from django.test import TestCase, override_settings
from django.urls import reverse

from core.tasks import JOBS, TASKS

TOKEN = "s3cret-token"


@override_settings(CRON_SECRET_TOKEN=TOKEN, SYNC_USE_REDIS=False, SYNC_TRIGGER_INLINE=True)
class CronEndpointTests(TestCase):
    def _trigger(self, job, token=TOKEN):
        headers = {"HTTP_X_CRON_TOKEN": token} if token is not None else {}
        return self.client.post(reverse("cron_trigger", args=[job]), **headers)

    def test_health_is_public(self):
        response = self.client.get(reverse("cron_health"))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertIn("timestamp", body)

    def test_missing_token_is_rejected(self):
        with patch.object(JOBS["ratings"], "run") as run_mock:
            response = self._trigger("ratings", token=None)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Invalid cron token"})
        run_mock.assert_not_called()

    def test_wrong_token_is_rejected(self):
        with patch.object(JOBS["contests"], "run") as run_mock:
            response = self._trigger("contests", token="nope")
        self.assertEqual(response.status_code, 401)
        run_mock.assert_not_called()

    def test_non_ascii_token_is_rejected(self):
        with patch.object(JOBS["ratings"], "run") as run_mock:
            response = self._trigger("ratings", token="s\u00e9cret")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Invalid cron token"})
        run_mock.assert_not_called()

    def test_authorized_trigger_runs_job(self):
        with patch.object(JOBS["ratings"], "run", return_value={"status": "ok"}) as run_mock:
            response = self._trigger("ratings")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Rating update triggered successfully"})
        run_mock.assert_called_once_with("api")

    def test_running_job_reports_skip(self):
        with patch.object(JOBS["activity"], "run", return_value={"status": "skipped"}):
            response = self._trigger("activity")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Activity update already running, skipped"})

    def test_failed_job_is_500(self):
        with patch.object(JOBS["contests"], "run", return_value={"status": "error"}):
            response = self._trigger("contests")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Failed to trigger contest update"})

    def test_unknown_job_is_404(self):
        response = self._trigger("leaderboard")
        self.assertEqual(response.status_code, 404)

    def test_trigger_requires_post(self):
        response = self.client.get(reverse("cron_trigger", args=["ratings"]), HTTP_X_CRON_TOKEN=TOKEN)
        self.assertEqual(response.status_code, 405)

    @override_settings(SYNC_TRIGGER_INLINE=False)
    def test_trigger_can_enqueue(self):
        task = Mock()
        with patch.dict(TASKS, {"ratings": task}), \
                patch.object(JOBS["ratings"], "run") as run_mock:
            response = self._trigger("ratings")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Rating update queued"})
        task.delay.assert_called_once_with("api")
        run_mock.assert_not_called()

    def test_status_reports_guard(self):
        job = JOBS["ratings"]
        url = reverse("cron_job_status", args=["ratings"])
        with job.guard.hold():
            response = self.client.get(url, HTTP_X_CRON_TOKEN=TOKEN)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"job": "ratings", "running": True, "last_run": None})

        response = self.client.get(url)
        self.assertEqual(response.status_code, 401)
