"""In-memory D-Bus messages and argument values."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .strings import BusName, ErrorName, Interface, Member, Path, Signature

__all__ = ["MessageType", "Variant", "DBusError", "Message", "signature_of"]


class MessageType(Enum):
    """The four kinds of D-Bus message."""

    METHOD_CALL = 1
    METHOD_RETURN = 2
    ERROR = 3
    SIGNAL = 4


@dataclass(frozen=True)
class Variant:
    """A value carried together with its own type signature."""

    value: Any
    signature: Signature = None

    def __post_init__(self):
        sig = self.signature
        if sig is None:
            sig = signature_of(self.value)
        object.__setattr__(self, "signature", Signature(sig))


_BASIC_CODES = frozenset("ybnqiuxtdsogh")


def signature_of(value):
    """Return the D-Bus type signature that describes ``value``."""
    if isinstance(value, Variant):
        return Signature("v")
    if isinstance(value, bool):
        return Signature("b")
    if isinstance(value, Path):
        return Signature("o")
    if isinstance(value, Signature):
        return Signature("g")
    if isinstance(value, str):
        return Signature("s")
    if isinstance(value, int):
        return Signature("i")
    if isinstance(value, float):
        return Signature("d")
    if isinstance(value, (bytes, bytearray)):
        return Signature("ay")
    if isinstance(value, tuple):
        if not value:
            raise ValueError("an empty struct has no signature")
        return Signature("(" + "".join(signature_of(v) for v in value) + ")")
    if isinstance(value, dict):
        if not value:
            raise ValueError("cannot infer the signature of an empty dict")
        key, item = next(iter(value.items()))
        key_sig = signature_of(key)
        if key_sig not in _BASIC_CODES:
            raise ValueError(f"dict key type {key_sig!r} is not a basic type")
        return Signature("a{" + key_sig + signature_of(item) + "}")
    if isinstance(value, list):
        if not value:
            raise ValueError("cannot infer the signature of an empty list")
        return Signature("a" + signature_of(value[0]))
    raise TypeError(f"no D-Bus type for {type(value).__name__}")


class DBusError(Exception):
    """An error reply received over D-Bus."""

    def __init__(self, name, message=None):
        super().__init__(name if message is None else f"{name}: {message}")
        self.name = name
        self.message = message


def _optional(kind, value):
    return None if value is None else kind(value)


@dataclass
class Message:
    """A D-Bus message: header fields plus a list of body items."""

    msg_type: MessageType
    path: Path = None
    interface: Interface = None
    member: Member = None
    destination: BusName = None
    sender: BusName = None
    error_name: ErrorName = None
    serial: int = None
    reply_serial: int = None
    body: list = field(default_factory=list)

    def __post_init__(self):
        self.path = _optional(Path, self.path)
        self.interface = _optional(Interface, self.interface)
        self.member = _optional(Member, self.member)
        self.destination = _optional(BusName, self.destination)
        self.sender = _optional(BusName, self.sender)
        self.error_name = _optional(ErrorName, self.error_name)

    @classmethod
    def method_call(cls, destination, path, interface, member):
        """Create a method call message."""
        return cls(
            MessageType.METHOD_CALL,
            path=path,
            interface=interface,
            member=member,
            destination=destination,
        )

    @classmethod
    def signal(cls, path, interface, member):
        """Create a signal message."""
        return cls(MessageType.SIGNAL, path=path, interface=interface, member=member)

    def method_return(self):
        """Create an empty reply to this message."""
        return Message(
            MessageType.METHOD_RETURN,
            destination=self.sender,
            reply_serial=self.serial,
        )

    def error(self, name, text):
        """Create an error reply to this message."""
        return Message(
            MessageType.ERROR,
            destination=self.sender,
            error_name=name,
            reply_serial=self.serial,
            body=[str(text)],
        )

    def append(self, *args):
        """Append items to the body and return the message."""
        self.body.extend(args)
        return self

    def as_result(self):
        """Return the message, or raise DBusError if it is an error reply."""
        if self.msg_type is MessageType.ERROR:
            text = self.body[0] if self.body and isinstance(self.body[0], str) else None
            raise DBusError(self.error_name, text)
        return self