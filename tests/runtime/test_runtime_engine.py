import json
import logging
import tempfile
import unittest
from pathlib import Path

from app_config_parser import parse_app_config
from audio import AmbientSound
from preferences import UserPreferences
from runtime import LogNotifier, RuntimeEngine, RuntimeHooks, UINotifier, build_runtime_context


class _FakeUIServer:
    def __init__(self, *, fail_stop: bool = False):
        self.events: list[tuple[str, dict]] = []
        self.stop_calls: list[float] = []
        self.fail_stop = fail_stop

    def publish(self, event_type: str, **payload) -> None:
        self.events.append((event_type, payload))

    def stop(self, timeout_seconds: float = 5.0) -> None:
        self.stop_calls.append(timeout_seconds)
        if self.fail_stop:
            raise RuntimeError("server thread stuck")

    def of_type(self, event_type: str) -> list[dict]:
        return [payload for kind, payload in self.events if kind == event_type]


def _app_config(base_dir: Path, **session):
    raw = {
        "session": {"default_duration_seconds": 1800, **session},
        "audio": {"enabled": False},
        "focus_mode": {"backend": "memory", "timeout_seconds": 2.0},
        "history": {"backend": "memory"},
        "preferences": {"backend": "memory"},
    }
    return parse_app_config(raw, base_dir=base_dir, source_file="")


class RuntimeEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.logger = logging.getLogger("test.runtime")
        self.ui_server = _FakeUIServer()
        self.context = build_runtime_context(
            _app_config(Path(self._tmp.name), default_sound="rain"),
            logger=self.logger,
            ui_server=self.ui_server,
        )
        self.addCleanup(self.context.coordinator.shutdown)
        self.engine = RuntimeEngine(self.context)

    def test_run_once_dispatches_command_and_drains_transitions(self) -> None:
        self.context.commands.put({"command": "start"})

        self.engine.run_once(timeout_seconds=0)

        self.assertEqual("running", self.context.timer.state)
        self.assertTrue(self.context.transitions.empty())
        session_states = [e["state"] for e in self.ui_server.of_type("session")]
        self.assertEqual(["running"], session_states)
        self.assertEqual(AmbientSound.RAIN, self.context.coordinator.session_sound)

    def test_run_once_without_commands_is_idle(self) -> None:
        self.engine.run_once(timeout_seconds=0)

        self.assertEqual("idle", self.context.timer.state)
        self.assertEqual([], self.ui_server.events)

    def test_run_publishes_startup_sync_and_stops(self) -> None:
        hooks = RuntimeHooks(setup_signal_handlers=lambda request_stop: request_stop())

        exit_code = RuntimeEngine(self.context, hooks).run()

        self.assertEqual(0, exit_code)
        sync = self.ui_server.of_type("session")[0]
        self.assertEqual("sync", sync["action"])
        self.assertEqual("startup", sync["reason"])
        self.assertEqual("rain", self.ui_server.of_type("audio")[0]["selected_sound"])
        self.assertEqual([5.0], self.ui_server.stop_calls)

    def test_shutdown_cancels_active_session(self) -> None:
        self.context.commands.put({"command": "start"})
        self.engine.run_once(timeout_seconds=0)
        self.engine.request_stop()

        self.engine.run()

        self.assertEqual("idle", self.context.timer.state)
        [record] = self.context.history.sessions()
        self.assertFalse(record.completed_naturally)
        self.assertEqual("rain", record.sound_used)
        self.assertFalse(self.context.focus_tracker.is_currently_enabled())
        self.assertFalse(self.context.coordinator.has_pending_focus_requests)

    def test_unexpected_error_returns_failure_and_still_shuts_down(self) -> None:
        def broken_hooks(request_stop) -> None:
            raise ValueError("signal setup failed")

        with self.assertLogs("test.runtime", level="ERROR"):
            exit_code = RuntimeEngine(self.context, RuntimeHooks(broken_hooks)).run()

        self.assertEqual(1, exit_code)
        self.assertEqual([5.0], self.ui_server.stop_calls)

    def test_ui_server_stop_failure_is_logged(self) -> None:
        self.ui_server.fail_stop = True
        self.engine.request_stop()

        with self.assertLogs("test.runtime", level="ERROR") as logs:
            exit_code = self.engine.run()

        self.assertEqual(0, exit_code)
        self.assertIn("Error stopping UI server", logs.output[-1])


class BuildRuntimeContextTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.base_dir = Path(self._tmp.name)
        self.logger = logging.getLogger("test.runtime.context")

    def test_uses_configured_duration_and_sound(self) -> None:
        context = build_runtime_context(
            _app_config(self.base_dir, default_sound="ocean"),
            logger=self.logger,
        )
        self.addCleanup(context.coordinator.shutdown)

        self.assertEqual(1800, context.timer.snapshot().selected_duration)
        self.assertEqual(AmbientSound.OCEAN, context.coordinator.selected_sound)
        self.assertIsNotNone(context.focus_tracker)
        self.assertIsNone(context.ui_server)

    def test_unknown_default_sound_is_ignored_with_warning(self) -> None:
        with self.assertLogs("test.runtime.context", level="WARNING"):
            context = build_runtime_context(
                _app_config(self.base_dir, default_sound="thunder"),
                logger=self.logger,
            )
        self.addCleanup(context.coordinator.shutdown)

        self.assertIsNone(context.coordinator.selected_sound)

    def test_focus_mode_can_be_disabled(self) -> None:
        raw = {
            "audio": {"enabled": False},
            "focus_mode": {"enabled": False},
            "history": {"backend": "memory"},
            "preferences": {"backend": "memory"},
        }
        app_config = parse_app_config(raw, base_dir=self.base_dir, source_file="")

        context = build_runtime_context(app_config, logger=self.logger)
        self.addCleanup(context.coordinator.shutdown)

        self.assertIsNone(context.focus_tracker)
        self.assertEqual(3600, context.timer.snapshot().selected_duration)

    def test_sqlite_history_path_from_config(self) -> None:
        raw = {
            "audio": {"enabled": False},
            "history": {"backend": "sqlite", "db_path": "data/history.db"},
            "preferences": {"backend": "memory"},
        }
        app_config = parse_app_config(raw, base_dir=self.base_dir, source_file="")

        context = build_runtime_context(app_config, logger=self.logger)
        self.addCleanup(context.coordinator.shutdown)

        self.assertTrue((self.base_dir / "data" / "history.db").exists())

    def test_remembered_preferences_override_configured_defaults(self) -> None:
        prefs_path = self.base_dir / "prefs.json"
        prefs_path.write_text(
            json.dumps({"last_duration": 2700, "last_sound": "ocean", "last_volume": 0.2}),
            encoding="utf-8",
        )
        raw = {
            "session": {"default_duration_seconds": 1800, "default_sound": "rain"},
            "audio": {"enabled": False, "volume": 0.9},
            "history": {"backend": "memory"},
            "preferences": {"backend": "json", "path": "prefs.json"},
        }
        app_config = parse_app_config(raw, base_dir=self.base_dir, source_file="")

        context = build_runtime_context(app_config, logger=self.logger)
        self.addCleanup(context.coordinator.shutdown)

        self.assertEqual(2700, context.timer.snapshot().selected_duration)
        self.assertEqual(AmbientSound.OCEAN, context.coordinator.selected_sound)
        self.assertEqual(0.2, context.audio.volume)

        context.dispatcher.handle_command({"command": "set_volume", "volume": 0.4})
        saved = json.loads(prefs_path.read_text(encoding="utf-8"))
        self.assertEqual(0.4, saved["last_volume"])
        self.assertEqual(UserPreferences(2700.0, "rain", 0.9), context.preferences.defaults)

    def test_notifier_follows_ui_server(self) -> None:
        app_config = _app_config(self.base_dir)

        headless = build_runtime_context(app_config, logger=self.logger)
        with_ui = build_runtime_context(app_config, logger=self.logger, ui_server=_FakeUIServer())
        self.addCleanup(headless.coordinator.shutdown)
        self.addCleanup(with_ui.coordinator.shutdown)

        self.assertIsInstance(headless.coordinator._deps.notifier, LogNotifier)
        self.assertIsInstance(with_ui.coordinator._deps.notifier, UINotifier)


if __name__ == "__main__":
    unittest.main()
