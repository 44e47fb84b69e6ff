"""
History Manager - Undo/redo over the complete design state
"""

from typing import Callable, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from calculations.debug_logger import debug_logger
from models.design_state import DesignState

Updater = Callable[[DesignState], DesignState]


class HistoryManager(QObject):
    """Append-only list of DesignState snapshots with a movable index.

    `commit` records a new step and drops any redo branch; `live_update`
    overwrites the current step (continuous drag feedback). A gesture groups
    live updates so that releasing the drag leaves exactly one new step whose
    predecessor is the state from before the drag started.
    """

    state_changed = Signal(object)  # DesignState
    history_changed = Signal(bool, bool)  # can_undo, can_redo

    def __init__(self, initial_state: Optional[DesignState] = None):
        super().__init__()
        self._history = [initial_state if initial_state is not None else DesignState()]
        self._index = 0
        self._gesture_base = None

    @property
    def current(self) -> DesignState:
        return self._history[self._index]

    @property
    def index(self) -> int:
        return self._index

    @property
    def history(self) -> Tuple[DesignState, ...]:
        return tuple(self._history)

    def __len__(self):
        return len(self._history)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._history) - 1

    @property
    def in_gesture(self) -> bool:
        return self._gesture_base is not None

    def commit(self, updater: Updater, action: str = "edit") -> bool:
        """Apply updater as a new undo step. Returns False for a no-op."""
        current = self.current
        next_state = updater(current)
        if next_state == current:
            return False
        self._append(next_state)
        debug_logger.log_commit("HistoryManager", action, len(self._history), self._index)
        self._notify()
        return True

    def live_update(self, updater: Updater) -> bool:
        """Overwrite the current step without touching redo availability"""
        current = self.current
        next_state = updater(current)
        if next_state == current:
            return False
        self._history[self._index] = next_state
        self.state_changed.emit(next_state)
        return True

    def begin_gesture(self):
        """Remember the state a continuous edit starts from"""
        self._gesture_base = self.current

    def end_gesture(self, action: str = "drag") -> bool:
        """Turn the live updates since begin_gesture into one undo step"""
        base, self._gesture_base = self._gesture_base, None
        if base is None:
            return False
        final = self.current
        if final == base:
            return False
        self._history[self._index] = base
        self._append(final)
        debug_logger.log_commit("HistoryManager", action, len(self._history), self._index)
        self._notify()
        return True

    def undo(self) -> bool:
        cancelled = self._cancel_gesture()
        if not self.can_undo:
            if cancelled:
                self._notify()
            return cancelled
        self._index = max(0, self._index - 1)
        self._notify()
        return True

    def redo(self) -> bool:
        cancelled = self._cancel_gesture()
        if not self.can_redo:
            if cancelled:
                self._notify()
            return cancelled
        self._index = min(len(self._history) - 1, self._index + 1)
        self._notify()
        return True

    def reset_with(self, state: DesignState):
        """Replace the whole history with a single entry (project load)"""
        self._gesture_base = None
        self._history = [state]
        self._index = 0
        debug_logger.info("HistoryManager", "History reset")
        self._notify()

    def _append(self, state: DesignState):
        del self._history[self._index + 1:]
        self._history.append(state)
        self._index = len(self._history) - 1

    def _cancel_gesture(self) -> bool:
        # Undo mid-drag restores the pre-drag state first
        if self._gesture_base is None:
            return False
        changed = self._history[self._index] != self._gesture_base
        self._history[self._index] = self._gesture_base
        self._gesture_base = None
        return changed

    def _notify(self):
        self.state_changed.emit(self.current)
        self.history_changed.emit(self.can_undo, self.can_redo)
