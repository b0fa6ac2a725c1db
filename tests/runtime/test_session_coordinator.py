import concurrent.futures
import logging
import unittest
from datetime import datetime, timezone
from queue import Empty, Queue

from audio import AmbientSound
from focus_mode import FocusModeOutcome, FocusModeSymmetryTracker, InMemoryFocusMode
from history import HistoryRecorder, HistoryStoreError, InMemorySessionStore
from runtime import CoordinatorDependencies, RuntimeUIPublisher, SessionCoordinator
from session import QueueTransitionPublisher, SessionTimer, SessionTransition

START = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


class _Clock:
    def __init__(self):
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


class _RecordingServer:
    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def publish(self, event_type: str, **payload) -> None:
        self.events.append((event_type, payload))

    def of_type(self, event_type: str) -> list[dict]:
        return [payload for kind, payload in self.events if kind == event_type]


class _FakeAudio:
    def __init__(self, calls: list):
        self.calls = calls
        self.current_sound = None
        self.is_playing = False
        self.volume = 0.5
        self.is_muted = False

    def play_ambient(self, sound) -> bool:
        self.calls.append(("audio.play", sound))
        self.current_sound = sound
        self.is_playing = True
        return True

    def stop_ambient(self) -> None:
        self.calls.append(("audio.stop",))
        self.current_sound = None
        self.is_playing = False

    def pause_ambient(self) -> None:
        self.calls.append(("audio.pause",))
        self.is_playing = False

    def resume_ambient(self) -> bool:
        self.calls.append(("audio.resume",))
        self.is_playing = True
        return True

    def play_completion_chime(self) -> bool:
        self.calls.append(("audio.chime",))
        return True

    def cleanup(self) -> None:
        self.calls.append(("audio.cleanup",))


class _RecordingStore(InMemorySessionStore):
    def __init__(self, calls: list, *, fail: bool = False):
        super().__init__()
        self.calls = calls
        self.fail = fail

    def append(self, record) -> None:
        self.calls.append(("history.record",))
        if self.fail:
            raise HistoryStoreError("database is locked")
        super().append(record)


class _Notifier:
    def __init__(self, calls: list, *, fail: bool = False):
        self.calls = calls
        self.fail = fail
        self.messages: list[tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.calls.append(("notify",))
        if self.fail:
            raise RuntimeError("notification center unavailable")
        self.messages.append((title, body))


class _ImmediateExecutor:
    """Runs submitted work inline so outcomes are ready on the next poll."""

    def __init__(self, calls: list):
        self.calls = calls
        self.shutdown_calls: list[dict] = []

    def submit(self, fn):
        self.calls.append(("focus", fn.__name__))
        future: concurrent.futures.Future = concurrent.futures.Future()
        try:
            future.set_result(fn())
        except Exception as error:
            future.set_exception(error)
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        self.shutdown_calls.append({"wait": wait, "cancel_futures": cancel_futures})


class _HeldExecutor:
    """Keeps submitted futures pending until the test resolves them."""

    def __init__(self):
        self.futures: list[concurrent.futures.Future] = []

    def submit(self, fn):
        future: concurrent.futures.Future = concurrent.futures.Future()
        self.futures.append(future)
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        for future in self.futures:
            if cancel_futures:
                future.cancel()


class _ClosedExecutor:
    def submit(self, fn):
        raise RuntimeError("cannot schedule new futures after shutdown")

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        return None


class SessionCoordinatorTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.calls: list = []
        self.clock = _Clock()
        self.queue: Queue = Queue()
        self.timer = SessionTimer(
            duration_seconds=1800,
            publisher=QueueTransitionPublisher(self.queue),
            monotonic_fn=self.clock,
            now_fn=lambda: START,
        )
        self.server = _RecordingServer()
        self.ui = RuntimeUIPublisher(self.server)
        self.audio = _FakeAudio(self.calls)
        self.store = _RecordingStore(self.calls)
        self.history = HistoryRecorder(self.store)
        self.notifier = _Notifier(self.calls)
        self.focus_backend = InMemoryFocusMode()
        self.tracker = FocusModeSymmetryTracker(self.focus_backend)
        self.executor = _ImmediateExecutor(self.calls)
        self.coordinator = self._coordinator(self.executor)

    def _coordinator(self, executor, *, selected_sound=AmbientSound.RAIN) -> SessionCoordinator:
        return SessionCoordinator(
            CoordinatorDependencies(
                timer=self.timer,
                history=self.history,
                audio=self.audio,
                notifier=self.notifier,
                ui=self.ui,
                logger=logging.getLogger("test.coordinator"),
                focus_tracker=self.tracker,
                focus_timeout_seconds=0.5,
                monotonic_fn=self.clock,
            ),
            selected_sound=selected_sound,
            executor=executor,
        )

    def _pump(self) -> list[SessionTransition]:
        handled = []
        while True:
            try:
                transition = self.queue.get_nowait()
            except Empty:
                return handled
            self.coordinator.handle_transition(transition)
            handled.append(transition)

    def _advance(self, seconds: float) -> None:
        self.clock.value += seconds
        tick = self.timer.poll()
        if tick is not None:
            self.coordinator.handle_tick(tick)
        self._pump()


class SessionLifecycleTests(SessionCoordinatorTestCase):
    def test_start_plays_selected_sound_and_enables_focus_mode(self) -> None:
        self.timer.start()
        self._pump()
        self.coordinator.process_focus_requests()

        self.assertEqual(
            [("audio.play", AmbientSound.RAIN), ("focus", "enable_focus_mode")],
            self.calls,
        )
        self.assertTrue(self.focus_backend.is_currently_enabled())
        self.assertEqual(AmbientSound.RAIN, self.coordinator.session_sound)
        focus_events = self.server.of_type("focus_mode")
        self.assertEqual([{"enabled_by_this_session": True, "state_before_session": False}], focus_events)
        self.assertFalse(self.coordinator.has_pending_focus_requests)

    def test_start_without_sound_skips_playback(self) -> None:
        self.coordinator = self._coordinator(self.executor, selected_sound=None)
        self.timer.start()
        self._pump()

        self.assertEqual([("focus", "enable_focus_mode")], self.calls)

    def test_completion_runs_side_effects_in_order(self) -> None:
        self.timer.start()
        self._pump()
        self.calls.clear()

        self._advance(1800.0)

        self.assertEqual(
            [
                ("audio.stop",),
                ("audio.chime",),
                ("focus", "end_session"),
                ("history.record",),
                ("notify",),
            ],
            self.calls,
        )
        [record] = self.history.sessions()
        self.assertTrue(record.completed_naturally)
        self.assertEqual(1800, record.planned_duration)
        self.assertEqual(1800, record.actual_duration)
        self.assertEqual(START, record.start_date)
        self.assertEqual("rain", record.sound_used)
        self.assertFalse(self.focus_backend.is_currently_enabled())
        self.assertEqual(
            [("Flow Session Complete", "Great work! You completed a 30 minute focus session.")],
            self.notifier.messages,
        )

    def test_stop_records_elapsed_time(self) -> None:
        self.timer.start()
        self._pump()
        self._advance(600.0)
        self.calls.clear()

        self.timer.stop()
        self._pump()

        self.assertEqual(
            [("audio.stop",), ("focus", "end_session"), ("history.record",)],
            self.calls,
        )
        [record] = self.history.sessions()
        self.assertFalse(record.completed_naturally)
        self.assertEqual(600, record.actual_duration)
        self.assertEqual(1800, record.planned_duration)
        self.assertEqual([], self.notifier.messages)

    def test_duration_change_mid_session_keeps_planned_duration(self) -> None:
        self.timer.start()
        self._pump()
        self._advance(600.0)
        self.timer.set_duration(7200)

        self.timer.stop()
        self._pump()

        [record] = self.history.sessions()
        self.assertEqual(1800, record.planned_duration)
        self.assertEqual(600, record.actual_duration)

    def test_completion_after_duration_change_reports_start_duration(self) -> None:
        self.timer.start()
        self._pump()
        self._advance(100.0)
        self.timer.set_duration(7200)

        self._advance(1700.0)

        self.assertEqual("completed", self.timer.state)
        [record] = self.history.sessions()
        self.assertEqual(1800, record.planned_duration)
        self.assertEqual(1800, record.actual_duration)
        self.assertEqual(
            [("Flow Session Complete", "Great work! You completed a 30 minute focus session.")],
            self.notifier.messages,
        )

    def test_stop_while_paused_records_running_time_only(self) -> None:
        self.timer.start()
        self._pump()
        self._advance(300.0)
        self.timer.pause()
        self._pump()
        self.clock.value += 1000.0
        self.timer.stop()
        self._pump()

        [record] = self.history.sessions()
        self.assertEqual(300, record.actual_duration)

    def test_each_session_is_recorded_once(self) -> None:
        self.timer.start()
        self._pump()
        self._advance(1800.0)
        self.timer.stop()
        self.timer.reset()
        self._pump()

        self.assertEqual(1, len(self.history.sessions()))
        self.assertEqual(["history.record"], [c[0] for c in self.calls if c[0] == "history.record"])

    def test_pause_and_resume_follow_ambient_sound(self) -> None:
        self.timer.start()
        self._pump()
        self.calls.clear()

        self.timer.pause()
        self._pump()
        self.timer.resume()
        self._pump()

        self.assertEqual([("audio.pause",), ("audio.resume",)], self.calls)

    def test_sound_change_while_paused_applies_on_resume(self) -> None:
        self.timer.start()
        self._pump()
        self.timer.pause()
        self._pump()
        self.calls.clear()

        self.coordinator.select_sound(AmbientSound.OCEAN)
        self.assertEqual([], self.calls)
        self.timer.resume()
        self._pump()

        self.assertEqual([("audio.play", AmbientSound.OCEAN)], self.calls)

    def test_sound_change_while_running_is_live_but_record_keeps_start_sound(self) -> None:
        self.timer.start()
        self._pump()
        self.calls.clear()

        self.coordinator.select_sound(AmbientSound.FOREST)
        self.coordinator.select_sound(None)
        self.timer.stop()
        self._pump()

        self.assertEqual(("audio.play", AmbientSound.FOREST), self.calls[0])
        self.assertEqual(("audio.stop",), self.calls[1])
        self.assertIsNone(self.coordinator.selected_sound)
        [record] = self.history.sessions()
        self.assertEqual("rain", record.sound_used)

    def test_focus_mode_enabled_before_session_is_left_alone(self) -> None:
        self.focus_backend.enable()
        self.timer.start()
        self._pump()
        self.timer.stop()
        self._pump()
        self.coordinator.process_focus_requests()

        self.assertTrue(self.focus_backend.is_currently_enabled())
        self.assertEqual([], self.server.of_type("focus_mode"))

    def test_transitions_are_published_with_previous_state(self) -> None:
        self.timer.start()
        self._pump()

        [session_event] = self.server.of_type("session")
        self.assertEqual("start", session_event["action"])
        self.assertEqual("running", session_event["state"])
        self.assertEqual("idle", session_event["previous_state"])
        self.assertEqual("running", session_event["reason"])
        self.assertEqual("00:30:00", session_event["display"])
        self.assertEqual("2024-03-04T09:00:00+00:00", session_event["started_at"])

    def test_ticks_are_published_until_completion(self) -> None:
        self.timer.start()
        self._pump()
        self.server.events.clear()

        self._advance(1.0)
        tick_events = [e for e in self.server.of_type("session") if e["action"] == "tick"]
        self.assertEqual(1, len(tick_events))
        self.assertEqual(1799, tick_events[0]["remaining_seconds"])
        self.assertEqual([0, 0, 2, 9, 5, 9], tick_events[0]["digits"])

        self.server.events.clear()
        self._advance(1799.0)
        updates = [(e["state"], e.get("previous_state")) for e in self.server.of_type("session")]
        self.assertEqual([("completed", "running")], updates)

    def test_end_without_recorded_start_is_skipped(self) -> None:
        self.timer.start()
        self.queue.get_nowait()
        self.timer.stop()

        with self.assertLogs("test.coordinator", level="WARNING"):
            self._pump()

        self.assertEqual([], self.history.sessions())


class CoordinatorFailureTests(SessionCoordinatorTestCase):
    def test_history_failure_becomes_advisory(self) -> None:
        self.store.fail = True
        self.timer.start()
        self._pump()

        with self.assertLogs("test.coordinator", level="ERROR"):
            self._advance(1800.0)

        [advisory] = self.server.of_type("advisory")
        self.assertEqual("history", advisory["source"])
        self.assertIn("database is locked", advisory["message"])
        self.assertEqual(("notify",), self.calls[-1])
        self.assertEqual("completed", self.timer.state)

    def test_notifier_failure_is_logged(self) -> None:
        self.notifier.fail = True
        self.timer.start()
        self._pump()

        with self.assertLogs("test.coordinator", level="WARNING") as logs:
            self._advance(1800.0)

        self.assertIn("notification center unavailable", logs.output[-1])
        self.assertEqual(1, len(self.history.sessions()))

    def test_failed_focus_outcome_becomes_advisory(self) -> None:
        class _RefusingFocusMode(InMemoryFocusMode):
            def enable(self) -> bool:
                return False

        self.tracker = FocusModeSymmetryTracker(_RefusingFocusMode())
        self.coordinator = self._coordinator(self.executor)
        self.timer.start()
        self._pump()

        with self.assertLogs("test.coordinator", level="WARNING"):
            self.coordinator.process_focus_requests()

        [advisory] = self.server.of_type("advisory")
        self.assertEqual("focus_mode", advisory["source"])
        self.assertEqual("Focus mode enable failed: backend reported failure", advisory["message"])

    def test_worker_exception_becomes_advisory(self) -> None:
        class _ExplodingTracker:
            def enable_focus_mode(self):
                raise ValueError("boom")

            def end_session(self):
                raise ValueError("boom")

        self.tracker = _ExplodingTracker()
        self.coordinator = self._coordinator(self.executor)
        self.timer.start()
        self._pump()

        with self.assertLogs("test.coordinator", level="ERROR"):
            self.coordinator.process_focus_requests()

        self.assertEqual(["Focus mode enable failed"], [a["message"] for a in self.server.of_type("advisory")])

    def test_submit_failure_becomes_advisory(self) -> None:
        self.coordinator = self._coordinator(_ClosedExecutor())
        with self.assertLogs("test.coordinator", level="ERROR"):
            self.timer.start()
            self._pump()

        self.assertEqual(["Focus mode enable unavailable"], [a["message"] for a in self.server.of_type("advisory")])
        self.assertEqual("running", self.timer.state)

    def test_slow_focus_request_reports_timeout_once(self) -> None:
        executor = _HeldExecutor()
        self.coordinator = self._coordinator(executor)
        self.timer.start()
        self._pump()

        self.clock.value += 0.4
        self.coordinator.process_focus_requests()
        self.assertEqual([], self.server.of_type("advisory"))

        self.clock.value += 0.2
        with self.assertLogs("test.coordinator", level="WARNING"):
            self.coordinator.process_focus_requests()
        self.coordinator.process_focus_requests()
        advisories = self.server.of_type("advisory")
        self.assertEqual(1, len(advisories))
        self.assertIn("did not finish within 0.50s", advisories[0]["message"])
        self.assertTrue(self.coordinator.has_pending_focus_requests)

        executor.futures[0].set_result(FocusModeOutcome("enable", True, True))
        self.coordinator.process_focus_requests()
        self.assertFalse(self.coordinator.has_pending_focus_requests)

    def test_timer_keeps_running_while_focus_request_pending(self) -> None:
        self.coordinator = self._coordinator(_HeldExecutor())
        self.timer.start()
        self._pump()

        self._advance(5.0)

        self.assertEqual(1795, self.timer.snapshot().remaining_time)


class _StuckOnceFocusMode(InMemoryFocusMode):
    """Refuses the first disable, then behaves normally."""

    def __init__(self):
        super().__init__()
        self.disable_attempts = 0

    def disable(self) -> bool:
        self.disable_attempts += 1
        if self.disable_attempts == 1:
            return False
        return super().disable()


class CoordinatorFocusRestoreTests(SessionCoordinatorTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.focus_backend = _StuckOnceFocusMode()
        self.tracker = FocusModeSymmetryTracker(self.focus_backend)
        self.coordinator = self._coordinator(self.executor)

    def _run_session(self) -> None:
        self.timer.start()
        self._pump()
        self._advance(60.0)
        self.timer.stop()
        self._pump()
        self.coordinator.process_focus_requests()

    def test_failed_restore_is_retried_by_next_session(self) -> None:
        self.assertFalse(self.focus_backend.is_currently_enabled())

        self._run_session()
        self.assertTrue(self.focus_backend.is_currently_enabled())
        self.assertTrue(self.tracker.owns_focus_mode)
        self.assertEqual(
            ["Focus mode disable failed: backend reported failure"],
            [a["message"] for a in self.server.of_type("advisory")],
        )

        self._run_session()

        self.assertFalse(self.focus_backend.is_currently_enabled())
        self.assertFalse(self.tracker.owns_focus_mode)
        self.assertEqual(2, self.focus_backend.disable_attempts)

    def test_failed_restore_is_retried_at_shutdown(self) -> None:
        self._run_session()
        self.assertTrue(self.focus_backend.is_currently_enabled())

        self.coordinator.shutdown()

        self.assertFalse(self.focus_backend.is_currently_enabled())
        self.assertFalse(self.tracker.owns_focus_mode)
        focus_calls = [call for call in self.calls if call[0] == "focus"]
        self.assertEqual(
            [
                ("focus", "enable_focus_mode"),
                ("focus", "end_session"),
                ("focus", "end_session"),
            ],
            focus_calls,
        )
        self.assertEqual(("audio.cleanup",), self.calls[-1])

    def test_shutdown_skips_restore_when_nothing_is_held(self) -> None:
        self.focus_backend.disable_attempts = 1
        self._run_session()

        self.coordinator.shutdown()

        self.assertEqual(1, len([call for call in self.calls if call == ("focus", "end_session")]))


class CoordinatorShutdownTests(SessionCoordinatorTestCase):
    def test_shutdown_finalizes_requests_and_releases_audio(self) -> None:
        self.timer.start()
        self._pump()
        self.timer.stop()
        self._pump()

        self.coordinator.shutdown()

        self.assertFalse(self.coordinator.has_pending_focus_requests)
        self.assertEqual(("audio.cleanup",), self.calls[-1])
        self.assertEqual([{"wait": False, "cancel_futures": True}], self.executor.shutdown_calls)
        self.assertFalse(self.focus_backend.is_currently_enabled())

    def test_shutdown_does_not_wait_forever(self) -> None:
        self.coordinator = self._coordinator(_HeldExecutor())
        self.timer.start()
        self._pump()

        with self.assertLogs("test.coordinator", level="WARNING") as logs:
            self.coordinator.shutdown()

        self.assertTrue(any("still pending at shutdown" in line for line in logs.output))
        self.assertFalse(self.coordinator.has_pending_focus_requests)


if __name__ == "__main__":
    unittest.main()
