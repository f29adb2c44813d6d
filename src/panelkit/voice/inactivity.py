"""User inactivity detection for live sessions."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger("panelkit.voice.inactivity")

IdleCallback = Callable[[], Any]


class InactivityMonitor:
    """Fires one nudge after a window of silence from the user.

    The window is measured from the last qualifying activity, or from the
    end of the persona's playback, whichever is later.  After a nudge has
    fired, further nudges stay suppressed until :meth:`activity` reports
    genuine user activity again.

    Args:
        on_idle: Sync or async callable invoked when the window elapses.
        idle_window: Seconds of silence before nudging.
        throttle: Activity reports closer together than this are coalesced.
        clock: Monotonic clock in seconds (must match the playback clock).
    """

    def __init__(
        self,
        on_idle: IdleCallback,
        *,
        idle_window: float = 6.0,
        throttle: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._on_idle = on_idle
        self._window = idle_window
        self._throttle = throttle
        self._clock = clock

        self._handle: asyncio.TimerHandle | None = None
        self._armed = False
        self._nudge_sent = False
        self._last_activity: float | None = None
        self._speaking_until: float | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def nudge_sent(self) -> bool:
        return self._nudge_sent

    @property
    def pending(self) -> bool:
        """True while a timer is scheduled."""
        return self._handle is not None

    def arm(self) -> None:
        """Start watching. Must be called from the event loop."""
        self._armed = True
        self._last_activity = None
        self._restart()

    def disarm(self) -> None:
        """Stop watching and cancel any pending timer."""
        self._armed = False
        self._speaking_until = None
        self._cancel()

    def activity(self) -> None:
        """Report qualifying user activity."""
        self._nudge_sent = False
        if not self._armed:
            return
        now = self._clock()
        if self._last_activity is not None and now - self._last_activity < self._throttle:
            return
        self._last_activity = now
        self._restart()

    def notify_speaking(self, until: float | None) -> None:
        """Report that playback runs until clock time *until*.

        The silence window restarts when playback ends.
        """
        self._speaking_until = until
        if self._armed:
            self._restart()

    def _restart(self) -> None:
        self._cancel()
        now = self._clock()
        delay = self._window
        if self._speaking_until is not None and self._speaking_until > now:
            delay += self._speaking_until - now
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if not self._armed:
            return
        now = self._clock()
        if self._speaking_until is not None and self._speaking_until > now:
            # Playback was extended after this timer was set.
            self._restart()
            return
        if self._nudge_sent:
            logger.debug("Idle again, nudge already sent")
            return
        self._nudge_sent = True
        logger.info("No user activity for %.1fs, nudging", self._window)
        try:
            result = self._on_idle()
        except Exception:
            logger.exception("Error in idle callback")
            return
        if asyncio.iscoroutine(result):
            task = asyncio.get_running_loop().create_task(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Idle callback failed: %s", task.exception())
