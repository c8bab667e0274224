"""Wire codec for the Tartan game protocol.

Every message is a single line holding one XML element, e.g.::

    <message type="REQ_LOGIN"><login_info result="OK" ng_reason="-" /></message>

The codec is pure: no sockets, no threads, no state.
"""

from __future__ import annotations

import enum
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import NamedTuple

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeET


ROOT_TAG = "message"
NG_REASON = "ng_reason"
END_OF_STREAM = "null"


class ProtocolError(RuntimeError):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class DecodeError(ProtocolError):
    """Raised when a line cannot be turned into a complete ProtocolMessage."""


class MessageType(enum.Enum):
    REQ_LOGIN = "REQ_LOGIN"
    ADD_USER = "ADD_USER"
    REQ_GAME_START = "REQ_GAME_START"
    GAME_END = "GAME_END"
    UPLOAD_MAP_DESIGN = "UPLOAD_MAP_DESIGN"
    EVENT_MESSAGE = "EVENT_MESSAGE"
    UNKNOWN = "UNKNOWN"


class ResultCode(enum.Enum):
    OK = "OK"
    NG = "NG"


class NgReason(enum.Enum):
    # The reason set is owned by the server.
    NONE = "-"
    OK = "OK"
    INVALID_ID_PASSWORD = "INVALID_ID_PASSWORD"
    ALREADY_LOGGED_IN = "ALREADY_LOGGED_IN"
    DUPLICATED_ID = "DUPLICATED_ID"
    NO_PERMISSION = "NO_PERMISSION"
    INVALID_MAP = "INVALID_MAP"
    GAME_NOT_READY = "GAME_NOT_READY"
    SERVER_ERROR = "SERVER_ERROR"


class _Layout(NamedTuple):
    tag: str
    result_attr: str | None = None
    text_attr: str | None = None
    text_required: bool = False


LAYOUTS: dict[MessageType, _Layout] = {
    MessageType.REQ_LOGIN: _Layout("login_info", result_attr="result"),
    MessageType.ADD_USER: _Layout("user_info", result_attr="add_result"),
    MessageType.REQ_GAME_START: _Layout("game_info", result_attr="result"),
    MessageType.UPLOAD_MAP_DESIGN: _Layout("game_info", result_attr="result"),
    MessageType.GAME_END: _Layout("game_info", text_attr="text"),
    MessageType.EVENT_MESSAGE: _Layout("event_info", text_attr="message", text_required=True),
}

RESPONSE_TYPES = frozenset(
    message_type for message_type, layout in LAYOUTS.items() if layout.result_attr is not None
)


@dataclass(frozen=True)
class ProtocolMessage:
    message_type: MessageType
    result_code: ResultCode | None = None
    ng_reason: NgReason | None = None
    payload_text: str | None = None


def result_string(result_code: ResultCode | None) -> str:
    return "SUCCESS" if result_code is ResultCode.OK else "FAIL"


def _serialize(root: ET.Element) -> str:
    line = ET.tostring(root, encoding="unicode")
    if "\n" in line or "\r" in line:
        raise ProtocolError("multiline_message", "Encoded message spans more than one line")
    return line


def encode_message(message: ProtocolMessage) -> str:
    layout = LAYOUTS.get(message.message_type)
    if layout is None:
        raise ProtocolError("unencodable", f"Cannot encode message of type {message.message_type.value}")

    attributes: dict[str, str] = {}
    if layout.result_attr is not None:
        if message.result_code is None or message.ng_reason is None:
            raise ProtocolError("unencodable", f"{message.message_type.value} requires a result and a reason")
        attributes[layout.result_attr] = message.result_code.value
        attributes[NG_REASON] = message.ng_reason.value
    if layout.text_attr is not None and message.payload_text is not None:
        attributes[layout.text_attr] = message.payload_text

    root = ET.Element(ROOT_TAG, type=message.message_type.value)
    ET.SubElement(root, layout.tag, attributes)
    return _serialize(root)


def encode_request(
    message_type: MessageType,
    element: str | None = None,
    attributes: dict[str, str] | None = None,
) -> str:
    """Build a client-to-server request line.

    ``element`` names the child element carrying ``attributes``; a request
    without an element is sent as a bare ``<message type="..."/>``.
    """
    if message_type is MessageType.UNKNOWN:
        raise ProtocolError("unencodable", "Cannot send a request of unknown type")
    root = ET.Element(ROOT_TAG, type=message_type.value)
    if element is not None:
        ET.SubElement(root, element, dict(attributes or {}))
    return _serialize(root)


def _resolve(enum_type, value: str, attr: str):
    try:
        return enum_type(value)
    except ValueError as exc:
        raise DecodeError("unknown_value", f"Unrecognized {attr} value: {value!r}") from exc


def decode_message(line: str) -> ProtocolMessage:
    text = line.strip()
    if not text:
        raise DecodeError("malformed_payload", "Empty message")
    try:
        root = SafeET.fromstring(text, forbid_dtd=True)
    except (SafeET.ParseError, DefusedXmlException) as exc:
        raise DecodeError("invalid_xml", f"Invalid message XML: {exc}") from exc

    raw_type = root.get("type")
    if root.tag != ROOT_TAG or raw_type is None:
        raise DecodeError("malformed_payload", "Message missing 'type'")

    try:
        message_type = MessageType(raw_type)
    except ValueError:
        return ProtocolMessage(MessageType.UNKNOWN)
    layout = LAYOUTS.get(message_type)
    if layout is None:
        return ProtocolMessage(MessageType.UNKNOWN)

    element = root.find(layout.tag)
    if element is None:
        if layout.result_attr is None and not layout.text_required:
            return ProtocolMessage(message_type)
        raise DecodeError("malformed_payload", f"{raw_type} message missing <{layout.tag}>")

    result_code = ng_reason = None
    if layout.result_attr is not None:
        raw_result = element.get(layout.result_attr)
        raw_reason = element.get(NG_REASON)
        if raw_result is None or raw_reason is None:
            raise DecodeError("malformed_payload", f"{raw_type} message missing result or reason")
        result_code = _resolve(ResultCode, raw_result, layout.result_attr)
        ng_reason = _resolve(NgReason, raw_reason, NG_REASON)

    payload_text = None
    if layout.text_attr is not None:
        payload_text = element.get(layout.text_attr)
        if payload_text is None and layout.text_required:
            raise DecodeError("malformed_payload", f"{raw_type} message missing '{layout.text_attr}'")

    return ProtocolMessage(message_type, result_code, ng_reason, payload_text)
