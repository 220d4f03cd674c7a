"""
Cooperative cancellation.

Long searches poll a Status object at fixed points: once per restart try and
at the top of every outer minimizer iteration. ``poll()`` raises
SolverInterrupted once ``cancel()`` has been called, either by another part
of the program or by the ``on_poll`` callback itself.
"""

from __future__ import annotations

from typing import Callable


class SolverInterrupted(Exception):
    """Raised by Status.poll() after a cancellation request."""


class Status:
    """Poll target shared by one search.

    Args:
        on_poll: Optional callback receiving this Status on every poll,
                 e.g. to report progress or to call ``cancel()``.

    Examples:
        >>> s = Status()
        >>> s.poll(); s.n_polls
        1
        >>> s.cancel()
        >>> s.poll()
        Traceback (most recent call last):
        ...
        efgliap.solvers.status.SolverInterrupted: search cancelled after 2 polls
    """

    def __init__(self, on_poll: Callable[[Status], None] | None = None) -> None:
        self._on_poll = on_poll
        self._cancelled = False
        self.n_polls = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def poll(self) -> None:
        self.n_polls += 1
        if self._on_poll is not None:
            self._on_poll(self)
        if self._cancelled:
            raise SolverInterrupted(f"search cancelled after {self.n_polls} polls")
