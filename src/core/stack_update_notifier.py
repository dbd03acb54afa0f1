"""
Stack Update Notifier

Qt bridge for stack-updated callbacks. Widgets connect to the stack_updated
signal instead of registering plain callbacks with the stack manager.

Inputs:
    - Stacks passed to stack-updated callbacks

Outputs:
    - stack_updated(object) Qt signal emissions

Requirements:
    - PySide6 for Qt integration
"""

from typing import Tuple
from PySide6.QtCore import QObject, Signal
from core.stack_manager import StackManager


class StackUpdateNotifier(QObject):
    """
    Re-emits stack-updated callbacks as a Qt signal.
    """

    # Emitted with the stack (tuple of image IDs) that was added or updated
    stack_updated = Signal(object)

    def attach(self, stack_manager: StackManager) -> None:
        """
        Register this notifier as a stack-updated callback.

        Args:
            stack_manager: Stack manager whose updates are re-emitted
        """
        stack_manager.add_stack_updated_callback(self.on_stack_updated)

    def on_stack_updated(self, stack: Tuple[str, ...]) -> None:
        """Emit stack_updated for a stack that was added or updated."""
        self.stack_updated.emit(stack)
