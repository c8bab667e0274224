"""Client engine for the Tartan game server."""

from __future__ import annotations

import threading

from .config import ClientConfig
from .connection import Connection, ConnectionState, IOFailure
from .dispatcher import ProtocolDispatcher
from .events import EventProducer, EventQueue, EventSink
from .mailbox import ResponseMailbox
from .protocol import MessageType, encode_request


RECEIVER_THREAD_NAME = "tartan-receiver"


class TartanClient:
    """Request/response calls plus an event stream over one connection.

    Call :meth:`start` to run the receive loop on a background thread, then
    :meth:`wait_until_connected` before issuing requests. Events the server
    pushes on its own are produced into ``sink``.
    """

    def __init__(self, config: ClientConfig | None = None, sink: EventSink | None = None, designer: bool = False):
        self.config = config or ClientConfig()
        self.sink = sink if sink is not None else EventQueue()
        self.mailbox = ResponseMailbox()
        self.dispatcher = ProtocolDispatcher(self.mailbox, EventProducer(self.sink))
        self.connection = Connection(self.dispatcher.handle_line, self.config, designer=designer)
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Receive loop is already running")
        self.connection.clear_cancel()
        self._thread = threading.Thread(target=self.connection.run, name=RECEIVER_THREAD_NAME, daemon=True)
        self._thread.start()
        return self._thread

    def connect(self, address: str | None = None, port: int | None = None) -> bool:
        return self.connection.connect(address, port)

    def wait_until_connected(self, timeout: float) -> bool:
        return self.connection.wait_until_connected(timeout)

    def send(self, raw: str) -> bool:
        return self.connection.send(raw)

    def await_result(self, timeout: float | None = None) -> str:
        return self.mailbox.await_result(timeout)

    def request_quit(self) -> None:
        self.dispatcher.quit_requested.set()

    def close(self) -> None:
        self.dispatcher.quit_requested.clear()
        self.connection.close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.config.close_linger + 1.0)

    def __enter__(self) -> "TartanClient":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def request(self, line: str, timeout: float | None = None) -> str:
        self.mailbox.begin_request()
        if not self.send(line):
            self.mailbox.cancel_request()
            raise IOFailure("Could not send request to server")
        try:
            return self.await_result(timeout)
        except Exception:
            self.mailbox.cancel_request()
            raise

    def login(self, user_id: str, password: str, timeout: float | None = None) -> str:
        line = encode_request(MessageType.REQ_LOGIN, "login_info", {"user_id": user_id, "user_pw": password})
        return self.request(line, timeout)

    def add_user(self, user_id: str, password: str, timeout: float | None = None) -> str:
        line = encode_request(MessageType.ADD_USER, "user_info", {"user_id": user_id, "user_pw": password})
        return self.request(line, timeout)

    def start_game(self, timeout: float | None = None) -> str:
        return self.request(encode_request(MessageType.REQ_GAME_START), timeout)

    def upload_map_design(self, design: str, timeout: float | None = None) -> str:
        line = encode_request(MessageType.UPLOAD_MAP_DESIGN, "map_info", {"design": design})
        return self.request(line, timeout)

    def quit_game(self, timeout: float | None = None) -> str:
        """Ask the server to end the game; returns its game-over text."""
        self.request_quit()
        try:
            return self.request(encode_request(MessageType.GAME_END), timeout)
        except Exception:
            self.dispatcher.quit_requested.clear()
            raise
