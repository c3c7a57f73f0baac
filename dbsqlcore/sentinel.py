"""Polling an operation's status on an interval, with timeout and cancellation."""

from __future__ import annotations

import enum
import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from dbsqlcore.logger import get_logger

DEFAULT_TIMEOUT = 0.0  # no timeout
DEFAULT_INTERVAL = 0.1

# Upper bound on how long the watch loop sleeps between checks of its inputs.
_POLL_SLICE = 0.005

Done = Callable[[], bool]
StatusFn = Callable[[], Tuple[Done, Any]]


class WatchStatus(enum.IntEnum):
    SUCCESS = 0
    ERROR = 1
    EXECUTING = 2
    TIMEOUT = 3
    CANCELED = 4

    def __str__(self) -> str:
        return self.name


class WatchTimeoutError(TimeoutError):
    """Raised when a watch does not finish within its timeout."""

    status = WatchStatus.TIMEOUT


class WatchCancelledError(Exception):
    """Raised when a watch is cancelled through its cancel event."""

    status = WatchStatus.CANCELED


def _format_duration(seconds: float) -> str:
    if seconds >= 1:
        return f"{seconds:g}s"
    millis = seconds * 1000
    if millis >= 1:
        return f"{millis:g}ms"
    return f"{seconds * 1e6:g}µs"


def _always_done() -> Tuple[Done, Any]:
    return (lambda: True), None


@dataclass
class Sentinel:
    """Checks a status function on an interval until it reports completion.

    ``status_fn`` returns a ``(done, response)`` pair where ``done`` is a callable
    telling whether the work has finished. When it has, ``on_done_fn`` (if any) is
    run in the background on the response and its return value is the result.
    ``on_cancel_fn`` is called once if the watch times out or is cancelled.
    """

    status_fn: Optional[StatusFn] = None
    on_cancel_fn: Optional[Callable[[], Any]] = None
    on_done_fn: Optional[Callable[[Any], Any]] = None

    def watch(
        self,
        interval: float = 0,
        timeout: float = 0,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        """Poll until done and return the result.

        Exceptions from ``status_fn`` and ``on_done_fn`` propagate unchanged.
        Raises WatchTimeoutError on timeout and WatchCancelledError when
        ``cancel_event`` is set.
        """
        status_fn = self.status_fn or _always_done
        interval = interval or DEFAULT_INTERVAL
        timeout = timeout or DEFAULT_TIMEOUT
        log = get_logger()

        started = time.monotonic()
        deadline = started + timeout if timeout else None
        next_check = started + interval
        outcomes: queue.SimpleQueue = queue.SimpleQueue()
        processing = False

        def process(response: Any) -> None:
            try:
                outcomes.put((True, self.on_done_fn(response)))
            except BaseException as exc:  # handed back to the watching thread
                outcomes.put((False, exc))

        def cancel() -> None:
            if self.on_cancel_fn is None:
                return
            try:
                self.on_cancel_fn()
            except Exception as exc:
                log.err(exc, "databricks: cancel failed")
            else:
                log.debug("databricks: cancel success")

        while True:
            if cancel_event is not None and cancel_event.is_set():
                log.debug("sentinel: watch canceled")
                cancel()
                raise WatchCancelledError("watch canceled")

            now = time.monotonic()
            if deadline is not None and now >= deadline:
                message = f"wait timed out after {_format_duration(timeout)}"
                log.info(message)
                cancel()
                raise WatchTimeoutError(message)

            try:
                succeeded, value = outcomes.get_nowait()
            except queue.Empty:
                pass
            else:
                if succeeded:
                    return value
                raise value

            if not processing and now >= next_check:
                done, response = status_fn()
                next_check = time.monotonic() + interval
                if done():
                    if self.on_done_fn is None:
                        return response
                    processing = True
                    threading.Thread(target=process, args=(response,), daemon=True).start()
                continue

            waits = [_POLL_SLICE]
            if not processing:
                waits.append(next_check - now)
            if deadline is not None:
                waits.append(deadline - now)
            pause = max(0.0, min(waits))
            if cancel_event is not None:
                cancel_event.wait(pause)
            else:
                time.sleep(pause)