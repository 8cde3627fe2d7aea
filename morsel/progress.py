"""Progress reporting for long-running algorithms."""

from __future__ import annotations

from typing import Callable, Optional

ProgressCallback = Callable[[int, int, str], None]


class Progress:
    """Forwards progress updates of an operation to a callback.

    The callback receives the current step, the total number of steps and a
    short description of what is being done.  A reporter without a callback
    discards every update.
    """

    __slots__ = ("_callback",)

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self._callback = callback

    def _emit(self, current: int, total: int, message: str) -> None:
        if self._callback is not None:
            self._callback(current, total, message)

    def report(self, current: int, total: int, message: str) -> None:
        """Report that ``current`` of ``total`` steps are done."""
        self._emit(current, total, message)

    def report_sub(
        self,
        sub_current: int,
        sub_total: int,
        range_current: int,
        range_total: int,
        message: str,
    ) -> None:
        """Report progress of a sub-operation inside one top-level step.

        Progress ``sub_current / sub_total`` is mapped into the slice
        ``[range_current, range_current + 1)`` of ``range_total`` steps, using
        fixed-point values scaled by 1000.  Nothing is reported when either
        total is zero.
        """
        if sub_total == 0 or range_total == 0:
            return
        sub_fraction = (sub_current * 1000) // sub_total
        effective = range_current * 1000 + sub_fraction
        self._emit(effective, range_total * 1000, message)

    @classmethod
    def none(cls) -> "Progress":
        """Return a reporter that discards every update."""
        return cls(None)

    def __repr__(self) -> str:
        return "Progress(...)"