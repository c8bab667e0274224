"""TCP connection to the Tartan game server."""

from __future__ import annotations

import enum
import errno
import logging
import socket
import threading
import time
from typing import Callable

from .config import ClientConfig
from .protocol import END_OF_STREAM


logger = logging.getLogger(__name__)

UNREACHABLE_ERRNOS = {errno.EHOSTUNREACH, errno.ENETUNREACH, errno.EHOSTDOWN}


class ConnectionFailure(RuntimeError):
    """Network-level failure; recorded on ``Connection.last_error``."""


class HostUnreachable(ConnectionFailure):
    pass


class IOFailure(ConnectionFailure):
    pass


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"


def classify_error(exc: OSError) -> ConnectionFailure:
    if isinstance(exc, socket.gaierror) or exc.errno in UNREACHABLE_ERRNOS:
        return HostUnreachable(f"Server not found: {exc}")
    return IOFailure(f"I/O failure: {exc}")


class Connection:
    """Owns the socket and the line-oriented receive loop.

    Every line read from the server is handed to ``on_line``. Failures are
    logged and reported as ``False`` returns; nothing here raises to the caller.
    """

    def __init__(self, on_line: Callable[[str], object], config: ClientConfig | None = None, designer: bool = False):
        self.on_line = on_line
        self.config = config or ClientConfig()
        self.designer = designer
        self.last_error: ConnectionFailure | None = None
        self._sock: socket.socket | None = None
        self._state = ConnectionState.DISCONNECTED
        self._state_lock = threading.Lock()
        self._send_lock = threading.Lock()
        self._running = threading.Event()
        self._wait_cancelled = threading.Event()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def connect(self, address: str | None = None, port: int | None = None) -> bool:
        address = address or self.config.server_address
        port = port or self.config.port_for(self.designer)

        with self._state_lock:
            if self._state is not ConnectionState.DISCONNECTED:
                logger.warning("Connect requested while %s", self._state.value)
                return False
            self._state = ConnectionState.CONNECTING

        try:
            sock = socket.create_connection((address, port), timeout=self.config.connect_timeout)
        except OSError as exc:
            failure = classify_error(exc)
            with self._state_lock:
                if self._state is ConnectionState.CONNECTING:
                    self._state = ConnectionState.DISCONNECTED
                self.last_error = failure
            logger.warning("Could not connect to %s:%d: %s", address, port, failure)
            return False

        sock.settimeout(None)
        with self._state_lock:
            if self._state is not ConnectionState.CONNECTING:
                # Closed while the connect was in flight.
                sock.close()
                self._state = ConnectionState.DISCONNECTED
                return False
            self._sock = sock
            self._state = ConnectionState.CONNECTED
            self.last_error = None
            self._running.set()
            self._wait_cancelled.clear()

        logger.info("Connected to server %s:%d", address, port)
        return True

    def wait_until_connected(self, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while not self.connected:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            if self._wait_cancelled.wait(min(self.config.poll_interval, remaining)):
                logger.info("Wait for connection cancelled")
                return False
        return True

    def cancel_wait(self) -> None:
        self._wait_cancelled.set()

    def clear_cancel(self) -> None:
        self._wait_cancelled.clear()

    def run(self) -> bool:
        """Connect if needed, then read until the session ends."""
        if self._state is ConnectionState.DISCONNECTED and not self.connect():
            return False
        with self._state_lock:
            sock = self._sock if self._state is ConnectionState.CONNECTED else None
        if sock is None:
            return False

        reason = "stopped"
        try:
            with sock.makefile("rb") as reader:
                while self._running.is_set():
                    try:
                        raw = reader.readline()
                    except (OSError, ValueError) as exc:
                        if self._running.is_set():
                            reason = f"read error: {exc}"
                            self.last_error = IOFailure(reason)
                            logger.warning("Lost connection to server: %s", exc)
                        break
                    if not raw:
                        reason = "closed by server"
                        break
                    line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                    if line == END_OF_STREAM:
                        reason = "end of session"
                        break
                    if not self._running.is_set():
                        break
                    self.on_line(line)
        finally:
            if self._running.is_set():
                logger.info("Receive loop finished: %s", reason)
            self._release(linger=0.0)
        return True

    def send(self, raw: str) -> bool:
        logger.debug("Send to server: %s", raw)
        if "\n" in raw or "\r" in raw:
            logger.warning("Refusing to send a message containing a line terminator")
            return False

        with self._state_lock:
            sock = self._sock if self._state is ConnectionState.CONNECTED else None
        if sock is None:
            logger.info("Socket is not connected to the server yet")
            return False

        try:
            with self._send_lock:
                sock.sendall((raw + "\n").encode("utf-8"))
        except OSError as exc:
            logger.warning("Send failed: %s", exc)
            self.last_error = IOFailure(str(exc))
            return False
        return True

    def close(self) -> None:
        self._wait_cancelled.set()
        self._release(linger=self.config.close_linger)

    def _release(self, linger: float) -> None:
        with self._state_lock:
            if self._state in (ConnectionState.DISCONNECTED, ConnectionState.CLOSING):
                return
            self._state = ConnectionState.CLOSING
            self._running.clear()
            sock = self._sock

        if sock is not None:
            logger.info("Close a client socket")
            if linger > 0:
                time.sleep(linger)
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError as exc:
                logger.debug("Socket shutdown: %s", exc)
            sock.close()

        with self._state_lock:
            self._sock = None
            self._state = ConnectionState.DISCONNECTED
