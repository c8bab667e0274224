from .client import TartanClient
from .config import ClientConfig
from .connection import Connection, ConnectionFailure, ConnectionState, HostUnreachable, IOFailure
from .dispatcher import ProtocolDispatcher
from .events import END_OF_SESSION, EventEntry, EventProducer, EventQueue
from .mailbox import MailboxBusyError, ResponseMailbox, ResponseTimeout
from .protocol import (
    DecodeError,
    MessageType,
    NgReason,
    ProtocolError,
    ProtocolMessage,
    ResultCode,
    decode_message,
    encode_message,
    encode_request,
)

__all__ = [
    "END_OF_SESSION",
    "ClientConfig",
    "Connection",
    "ConnectionFailure",
    "ConnectionState",
    "DecodeError",
    "EventEntry",
    "EventProducer",
    "EventQueue",
    "HostUnreachable",
    "IOFailure",
    "MailboxBusyError",
    "MessageType",
    "NgReason",
    "ProtocolDispatcher",
    "ProtocolError",
    "ProtocolMessage",
    "ResponseMailbox",
    "ResponseTimeout",
    "ResultCode",
    "TartanClient",
    "decode_message",
    "encode_message",
    "encode_request",
]
