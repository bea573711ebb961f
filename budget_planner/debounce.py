"""Trailing-edge debounce for plan persistence.

Slider drags and rapid edits call ``Debouncer.call`` many times per second;
only the last call within the wait window runs. ``cancel`` drops the
pending call (used when a view is torn down) and ``flush`` runs it now.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[BaseException], None]


class Debouncer:
    """Run ``func`` once ``wait_seconds`` after the most recent ``call``.

    Parameters:
        func: Callable to run with the latest arguments
        wait_seconds: Quiet period before running
        on_error: Receives any exception raised by ``func``; exceptions are
                  logged either way since they happen off the caller's thread
    """

    def __init__(
        self,
        func: Callable[..., Any],
        wait_seconds: float = 1.0,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        self.func = func
        self.wait_seconds = max(0.0, float(wait_seconds))
        self.on_error = on_error
        self._lock = threading.Lock()
        # held while func runs; a later take always runs after an earlier one
        self._run_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Tuple[tuple, dict]] = None
        self._closed = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def call(self, *args: Any, **kwargs: Any) -> None:
        """Schedule ``func(*args, **kwargs)``, replacing any pending call."""
        with self._lock:
            if self._closed:
                logger.debug("Ignoring call on closed debouncer for %r", self.func)
                return
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self.wait_seconds, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """Run the pending call immediately. Returns True if one ran.

        Waits for a call already running on the timer thread first.
        """
        with self._run_lock:
            with self._lock:
                pending = self._take_pending()
            if pending is None:
                return False
            self._run(pending)
            return True

    def cancel(self) -> None:
        """Drop the pending call without running it."""
        with self._lock:
            self._take_pending()

    def close(self) -> None:
        """Cancel the pending call, wait out a running one and ignore any later ``call``."""
        with self._lock:
            self._take_pending()
            self._closed = True
        with self._run_lock:
            pass

    def _take_pending(self) -> Optional[Tuple[tuple, dict]]:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        pending, self._pending = self._pending, None
        return pending

    def _fire(self) -> None:
        with self._run_lock:
            with self._lock:
                if threading.current_thread() is not self._timer:
                    return
                pending = self._take_pending()
            if pending is not None:
                self._run(pending)

    def _run(self, pending: Tuple[tuple, dict]) -> None:
        args, kwargs = pending
        try:
            self.func(*args, **kwargs)
        except Exception as exc:
            logger.error("Debounced call to %r failed: %s", self.func, exc)
            if self.on_error is not None:
                self.on_error(exc)
