from unittest.mock import Mock, patch

from django.test import SimpleTestCase, override_settings

from core.services.run_guard import RELEASE_SCRIPT, RunGuard


@override_settings(SYNC_USE_REDIS=False)
class LocalRunGuardTests(SimpleTestCase):
    def test_second_acquire_fails_until_release(self):
        guard = RunGuard("test_job")
        self.assertTrue(guard.try_acquire())
        self.assertTrue(guard.is_running)
        self.assertFalse(guard.try_acquire())

        guard.release()
        self.assertFalse(guard.is_running)
        self.assertTrue(guard.try_acquire())
        guard.release()

    def test_hold_releases_on_exception(self):
        guard = RunGuard("test_job")
        with self.assertRaises(RuntimeError):
            with guard.hold() as acquired:
                self.assertTrue(acquired)
                raise RuntimeError("boom")

        self.assertFalse(guard.is_running)

    def test_release_without_acquire_is_harmless(self):
        guard = RunGuard("test_job")
        guard.release()
        self.assertFalse(guard.is_running)


@override_settings(SYNC_USE_REDIS=True, SYNC_GUARD_TTL_SECONDS=60)
class RedisRunGuardTests(SimpleTestCase):
    def test_key_held_elsewhere_refuses(self):
        client = Mock()
        client.set.return_value = None
        with patch("core.services.run_guard.get_redis_client", return_value=client):
            guard = RunGuard("update_ratings")
            self.assertFalse(guard.try_acquire())

        self.assertFalse(guard.is_running)
        client.set.assert_called_once()
        self.assertEqual(client.set.call_args.args[0], "sync_guard:update_ratings")
        self.assertEqual(client.set.call_args.kwargs, {"nx": True, "ex": 60})

    def test_release_deletes_only_its_own_key(self):
        client = Mock()
        client.set.return_value = True
        client.eval.return_value = 1
        with patch("core.services.run_guard.get_redis_client", return_value=client):
            guard = RunGuard("update_contests")
            self.assertTrue(guard.try_acquire())
            token = client.set.call_args.args[1]
            guard.release()

        client.eval.assert_called_once_with(RELEASE_SCRIPT, 1, "sync_guard:update_contests", token)
        client.delete.assert_not_called()
        self.assertFalse(guard.is_running)

    def test_each_acquire_uses_a_fresh_token(self):
        client = Mock()
        client.set.return_value = True
        client.eval.return_value = 1
        with patch("core.services.run_guard.get_redis_client", return_value=client):
            guard = RunGuard("update_ratings")
            guard.try_acquire()
            guard.release()
            guard.try_acquire()
            guard.release()

        first, second = (c.args[1] for c in client.set.call_args_list)
        self.assertNotEqual(first, second)

    def test_expired_key_taken_by_another_worker_is_left_alone(self):
        client = Mock()
        client.set.return_value = True
        client.eval.return_value = 0
        with patch("core.services.run_guard.get_redis_client", return_value=client), \
                self.assertLogs("core.services.run_guard", level="WARNING"):
            guard = RunGuard("update_activity")
            self.assertTrue(guard.try_acquire())
            guard.release()

        client.delete.assert_not_called()
        self.assertFalse(guard.is_running)

    def test_unreachable_redis_falls_back_to_local_lock(self):
        client = Mock()
        client.set.side_effect = ConnectionError("redis down")
        with patch("core.services.run_guard.get_redis_client", return_value=client):
            guard = RunGuard("update_activity")
            self.assertTrue(guard.try_acquire())
            self.assertFalse(guard.try_acquire())
            guard.release()

        client.delete.assert_not_called()
        self.assertFalse(guard.is_running)
