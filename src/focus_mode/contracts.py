"""Protocol and state containers used by the focus-mode symmetry tracker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class FocusModeLike(Protocol):
    """Do-not-disturb collaborator; failures may be reported as False or raised."""
    def enable(self) -> bool:
        ...

    def disable(self) -> bool:
        ...

    def is_currently_enabled(self) -> bool:
        ...


@dataclass(frozen=True)
class FocusModeSymmetryState:
    """Snapshot of what the current session did to the do-not-disturb mode."""
    enabled_by_this_session: bool = False
    state_before_session: bool = False
