"""
Cooperative cancellation for long-running analyses.

The algorithms never spawn threads themselves. A caller that runs them in the
background hands in a CancellationToken; the algorithms poll it at natural
loop boundaries (between BFS sources, iterations or passes) and stop with an
OperationCancelledError once it has been tripped.
"""

import threading
from typing import Optional

from .exceptions import OperationCancelledError


class CancellationToken:
    """
    Thread-safe cancellation flag.

    Examples
    --------
    >>> token = CancellationToken()
    >>> token.cancel()
    >>> token.is_cancelled
    True
    >>> token.raise_if_cancelled("betweenness")  # doctest: +SKIP
    Traceback (most recent call last):
    OperationCancelledError: betweenness was cancelled
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str) -> None:
        """
        Raise OperationCancelledError if cancellation was requested.

        Parameters
        ----------
        operation : str
            Name of the running operation, used in the error message
        """
        if self._event.is_set():
            raise OperationCancelledError(f"{operation} was cancelled", operation=operation)


def check_cancelled(token: Optional[CancellationToken], operation: str) -> None:
    """Checkpoint helper accepting an optional token."""
    if token is not None:
        token.raise_if_cancelled(operation)
