"""
Stack Manager Errors

Exception types raised by the stack manager.

Inputs:
    - Human-readable error messages

Outputs:
    - StackManagerError and its subclasses

Requirements:
    - Standard library only
"""


class StackManagerError(Exception):
    """
    Base class for errors raised by the stack manager.
    """

    def __init__(self, message: str):
        """
        Initialize the error.

        Args:
            message: Human-readable description of the problem
        """
        super().__init__(message)
        self.message = message


class InvalidArgumentError(StackManagerError, ValueError):
    """Raised when an argument has the wrong kind (e.g. a non-callable callback)."""
