import logging
import subprocess
import unittest
from types import SimpleNamespace

from focus_mode import (
    FocusModeCommandError,
    FocusModeConfig,
    FocusModeConfigurationError,
    FocusModePermissionError,
    InMemoryFocusMode,
    ShortcutsFocusMode,
    build_focus_mode_backend,
)


class _StubRunner:
    def __init__(self, *, returncode: int = 0, stderr: str = "", error=None):
        self.returncode = returncode
        self.stderr = stderr
        self.error = error
        self.calls: list[tuple[list[str], dict]] = []

    def __call__(self, args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(args, self.returncode, "", self.stderr)


def _shortcuts(runner: _StubRunner) -> ShortcutsFocusMode:
    return ShortcutsFocusMode(
        enable_shortcut="EnableFlowFocus",
        disable_shortcut="DisableFlowFocus",
        timeout_seconds=0.5,
        runner=runner,
    )


class ShortcutsFocusModeTests(unittest.TestCase):
    def test_enable_and_disable_run_named_shortcuts(self) -> None:
        runner = _StubRunner()
        backend = _shortcuts(runner)

        self.assertTrue(backend.enable())
        self.assertTrue(backend.is_currently_enabled())
        self.assertTrue(backend.disable())
        self.assertFalse(backend.is_currently_enabled())

        self.assertEqual(
            [
                ["shortcuts", "run", "EnableFlowFocus"],
                ["shortcuts", "run", "DisableFlowFocus"],
            ],
            [args for args, _ in runner.calls],
        )
        self.assertEqual(0.5, runner.calls[0][1]["timeout"])

    def test_permission_failure(self) -> None:
        backend = _shortcuts(_StubRunner(returncode=1, stderr="Not authorized to send Apple events"))
        with self.assertRaises(FocusModePermissionError):
            backend.enable()
        self.assertFalse(backend.is_currently_enabled())

    def test_non_zero_exit(self) -> None:
        backend = _shortcuts(_StubRunner(returncode=2, stderr="no such shortcut"))
        with self.assertRaisesRegex(FocusModeCommandError, "exit=2"):
            backend.enable()

    def test_timeout(self) -> None:
        error = subprocess.TimeoutExpired(cmd="shortcuts", timeout=0.5)
        backend = _shortcuts(_StubRunner(error=error))
        with self.assertRaisesRegex(FocusModeCommandError, "did not finish"):
            backend.disable()

    def test_missing_command(self) -> None:
        backend = _shortcuts(_StubRunner(error=FileNotFoundError("shortcuts")))
        with self.assertRaisesRegex(FocusModeCommandError, "not available"):
            backend.enable()


class FocusModeConfigTests(unittest.TestCase):
    def test_from_settings_normalizes_backend(self) -> None:
        settings = SimpleNamespace(
            enabled=True,
            backend=" Shortcuts ",
            enable_shortcut="On",
            disable_shortcut="Off",
            timeout_seconds=2,
        )
        config = FocusModeConfig.from_settings(settings)
        self.assertEqual("shortcuts", config.backend)
        self.assertEqual(2.0, config.timeout_seconds)

    def test_rejects_unknown_backend(self) -> None:
        with self.assertRaises(FocusModeConfigurationError):
            FocusModeConfig(backend="applescript")

    def test_rejects_non_positive_timeout(self) -> None:
        with self.assertRaises(FocusModeConfigurationError):
            FocusModeConfig(timeout_seconds=0)

    def test_shortcuts_backend_requires_names(self) -> None:
        with self.assertRaises(FocusModeConfigurationError):
            FocusModeConfig(backend="shortcuts", enable_shortcut=" ")


class BuildFocusModeBackendTests(unittest.TestCase):
    def setUp(self) -> None:
        self.logger = logging.getLogger("test.focus_mode")

    def test_disabled_returns_none(self) -> None:
        with self.assertLogs("test.focus_mode", level="INFO"):
            backend = build_focus_mode_backend(FocusModeConfig(enabled=False), logger=self.logger)
        self.assertIsNone(backend)

    def test_memory_backend(self) -> None:
        with self.assertLogs("test.focus_mode", level="INFO"):
            backend = build_focus_mode_backend(FocusModeConfig(), logger=self.logger)
        self.assertIsInstance(backend, InMemoryFocusMode)
        self.assertFalse(backend.is_currently_enabled())

    def test_shortcuts_backend(self) -> None:
        with self.assertLogs("test.focus_mode", level="INFO"):
            backend = build_focus_mode_backend(
                FocusModeConfig(backend="shortcuts"),
                logger=self.logger,
            )
        self.assertIsInstance(backend, ShortcutsFocusMode)


if __name__ == "__main__":
    unittest.main()
