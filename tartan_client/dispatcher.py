"""Routes decoded server messages to the response mailbox or the event queue."""

from __future__ import annotations

import logging
import threading

from .events import END_OF_SESSION, EventProducer
from .mailbox import ResponseMailbox
from .protocol import (
    RESPONSE_TYPES,
    DecodeError,
    MessageType,
    ProtocolMessage,
    ResultCode,
    decode_message,
    result_string,
)


logger = logging.getLogger(__name__)


class ProtocolDispatcher:
    """Stateless per-message routing.

    Correlation is implicit: a response goes to whoever is waiting on the
    mailbox. The only local state is ``quit_requested``, which decides whether a
    GAME_END answers an interactive quit or announces a server-side game over.
    """

    def __init__(self, mailbox: ResponseMailbox, events: EventProducer):
        self.mailbox = mailbox
        self.events = events
        self.quit_requested = threading.Event()

    def handle_line(self, line: str) -> bool:
        logger.debug("Received message: %s", line)
        try:
            message = decode_message(line)
        except DecodeError as exc:
            logger.warning("Dropping undecodable message (%s): %s", exc.code, exc.message)
            return False
        return self.dispatch(message)

    def dispatch(self, message: ProtocolMessage) -> bool:
        msg_type = message.message_type

        if msg_type in RESPONSE_TYPES:
            self.mailbox.deliver(result_string(message.result_code))
            return True
        if msg_type is MessageType.GAME_END:
            return self._game_end(message)
        if msg_type is MessageType.EVENT_MESSAGE:
            return self.events.produce(message.payload_text)

        logger.debug("Ignoring message of unknown type")
        return False

    def _game_end(self, message: ProtocolMessage) -> bool:
        if self.quit_requested.is_set():
            self.quit_requested.clear()
            text = message.payload_text
            self.mailbox.deliver(text if text is not None else result_string(ResultCode.OK))
            return True

        delivered = True
        if message.payload_text is not None:
            delivered = self.events.produce(message.payload_text)
        return self.events.produce(END_OF_SESSION) and delivered
