"""Cancellable, deadline-bearing execution context.

Every group operation takes a Context. Retry loops call ``check()`` before
each store round trip, so an unbounded retry can always be stopped from the
outside by cancelling the context or giving it a deadline.

Examples:
    >>> ctx = Context.background().with_timeout(30)
    >>> group.operate(ctx, "counter", increment)
"""

import threading
import time

from .errors import ContextCancelledError, DeadlineExceededError


class Context:
    """Cancellation signal plus an optional monotonic deadline.

    Child contexts created with ``with_timeout``/``with_deadline`` observe
    the parent's cancellation and never outlive the parent's deadline.
    Cancelling a child does not cancel the parent.
    """

    def __init__(self, deadline: float | None = None, parent: "Context | None" = None):
        self._cancelled = threading.Event()
        self._parent = parent
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

    @classmethod
    def background(cls) -> "Context":
        """A context that is never cancelled and has no deadline."""
        return cls()

    def with_deadline(self, deadline: float) -> "Context":
        """Derive a child that expires at the given ``time.monotonic()`` value."""
        return Context(deadline=deadline, parent=self)

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a child that expires ``seconds`` from now."""
        return self.with_deadline(time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise if the context is cancelled or past its deadline.

        Raises:
            ContextCancelledError: If cancel() was called here or on a parent
            DeadlineExceededError: If the deadline has passed
        """
        if self.cancelled:
            raise ContextCancelledError("Context cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise DeadlineExceededError("Context deadline exceeded")
