"""
==============================================================================
Concurrency Utilities Module
==============================================================================

AtomicFlag: a boolean with compare-and-set semantics.

Used by the barcode decoder to admit one frame at a time. A caller that loses
compare_and_set simply drops its work; nobody ever waits on the flag.

==============================================================================
"""

from __future__ import annotations

import threading


class AtomicFlag:
    """
    Thread-safe boolean with get/set/get_and_set/compare_and_set.

    The internal lock is held only for the duration of a single read or
    write, so callers never block on each other's work.

    Example:
        >>> flag = AtomicFlag()
        >>> flag.compare_and_set(False, True)
        True
        >>> flag.compare_and_set(False, True)
        False
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, initial: bool = False) -> None:
        self._value = bool(initial)
        self._lock = threading.Lock()

    def get(self) -> bool:
        with self._lock:
            return self._value

    def set(self, value: bool) -> None:
        with self._lock:
            self._value = bool(value)

    def get_and_set(self, value: bool) -> bool:
        """Store value and return the previous one."""
        with self._lock:
            previous = self._value
            self._value = bool(value)
            return previous

    def compare_and_set(self, expected: bool, new: bool) -> bool:
        """
        Set to new only if the current value equals expected.

        Returns:
            True if the swap happened
        """
        with self._lock:
            if self._value != expected:
                return False
            self._value = bool(new)
            return True

    def __bool__(self) -> bool:
        return self.get()

    def __repr__(self) -> str:
        return f"AtomicFlag({self.get()})"
