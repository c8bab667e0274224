"""Single-slot hand-off between the receive thread and a blocked caller."""

from __future__ import annotations

import logging
import threading
import time


logger = logging.getLogger(__name__)


class MailboxBusyError(RuntimeError):
    """Raised when a second request or waiter is attempted while one is outstanding."""


class ResponseTimeout(TimeoutError):
    pass


class ResponseMailbox:
    """Capacity-1 channel carrying the result of the outstanding request.

    Exactly one request may be outstanding at a time: callers bracket a
    request with :meth:`begin_request` and :meth:`await_result`.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._value: str | None = None
        self._has_value = False
        self._waiting = False
        self._outstanding = False

    @property
    def pending(self) -> bool:
        with self._cond:
            return self._has_value

    def begin_request(self) -> None:
        with self._cond:
            if self._outstanding:
                raise MailboxBusyError("A request is already awaiting its response")
            if self._has_value:
                logger.warning("Discarding unread response: %r", self._value)
                self._value = None
                self._has_value = False
            self._outstanding = True

    def cancel_request(self) -> None:
        with self._cond:
            self._outstanding = False

    def deliver(self, text: str) -> None:
        with self._cond:
            if self._has_value:
                logger.debug("Overwriting unread response %r with %r", self._value, text)
            self._value = text
            self._has_value = True
            self._cond.notify()

    def await_result(self, timeout: float | None = None) -> str:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            if self._waiting:
                raise MailboxBusyError("Another caller is already waiting for a response")
            self._waiting = True
            try:
                # Re-check after every wake-up; notify may be spurious.
                while not self._has_value:
                    if deadline is None:
                        self._cond.wait()
                        continue
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise ResponseTimeout(f"No response within {timeout:.2f} sec")
                    self._cond.wait(remaining)

                value = self._value
                self._value = None
                self._has_value = False
                self._outstanding = False
                return value
            finally:
                self._waiting = False
