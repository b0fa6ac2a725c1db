"""Runtime engine exports."""

from .commands import CommandOutcome, RuntimeCommandDispatcher
from .context import RuntimeContext, build_runtime_context
from .coordinator import CoordinatorDependencies, SessionCoordinator
from .loop import RuntimeEngine, RuntimeHooks
from .notifications import LogNotifier, NotifierLike, UINotifier, completion_message
from .ui import RuntimeUIPublisher

__all__ = [
    "CommandOutcome",
    "CoordinatorDependencies",
    "LogNotifier",
    "NotifierLike",
    "RuntimeCommandDispatcher",
    "RuntimeContext",
    "RuntimeEngine",
    "RuntimeHooks",
    "RuntimeUIPublisher",
    "SessionCoordinator",
    "UINotifier",
    "build_runtime_context",
    "completion_message",
]
