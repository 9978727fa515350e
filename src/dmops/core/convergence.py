"""Waiting for asynchronous server-side cleanup to finish.

Some statements (disabling flashback archiving on a table, for instance)
return before the engine has finished its background bookkeeping. Dropping
objects while that work is in flight fails, so the clean pass polls a check
query until it stops reporting rows.

The wait sleeps on a threading.Event: setting the event from another thread,
or a KeyboardInterrupt while sleeping, cancels the wait immediately.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from dmops.core.errors import ConvergenceTimeoutError, ConvergenceWaitInterrupted

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


def wait_until_converged(
    check: Callable[[], bool],
    *,
    description: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_attempts: int | None = None,
    cancel: threading.Event | None = None,
) -> int:
    """
    Block until `check()` returns False.

    Args:
        check: Callable returning True while the remote work is still pending.
        description: Human-readable name of what is being waited for.
        interval: Seconds to sleep between checks.
        max_attempts: Maximum number of checks; None waits indefinitely.
        cancel: Event that aborts the wait when set.

    Returns:
        The number of checks performed.

    Raises:
        ConvergenceWaitInterrupted: The wait was cancelled.
        ConvergenceTimeoutError: `max_attempts` checks all reported pending work.
    """
    if max_attempts is not None and max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    cancel = cancel or threading.Event()

    attempts = 0
    while True:
        if cancel.is_set():
            raise ConvergenceWaitInterrupted(f"Waiting for {description} interrupted")

        attempts += 1
        if not check():
            return attempts

        if max_attempts is not None and attempts >= max_attempts:
            raise ConvergenceTimeoutError(
                f"{description} did not complete after {attempts} checks"
            )

        logger.debug("Actively waiting for %s (check %d)", description, attempts)
        try:
            interrupted = cancel.wait(interval)
        except KeyboardInterrupt as exc:
            raise ConvergenceWaitInterrupted(
                f"Waiting for {description} interrupted"
            ) from exc
        if interrupted:
            raise ConvergenceWaitInterrupted(f"Waiting for {description} interrupted")
