"""Validated D-Bus name and signature strings."""

import re

__all__ = [
    "InvalidNameError",
    "Signature",
    "Path",
    "Member",
    "Interface",
    "BusName",
    "ErrorName",
    "validate_signature",
    "validate_path",
    "validate_member",
    "validate_interface",
    "validate_bus_name",
    "validate_error_name",
]

_MAX_NAME_LENGTH = 255
_MAX_SIGNATURE_LENGTH = 255
_MAX_DEPTH = 32

_BASIC_TYPES = frozenset("ybnqiuxtdsogh")

_ELEMENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_PATH_ELEMENT = re.compile(r"[A-Za-z0-9_]+")
_BUS_ELEMENT = re.compile(r"[A-Za-z_-][A-Za-z0-9_-]*")
_UNIQUE_ELEMENT = re.compile(r"[A-Za-z0-9_-]+")


class InvalidNameError(ValueError):
    """Raised when a string does not conform to the D-Bus specification."""


def _as_text(value):
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
        if raw.endswith(b"\0"):
            raw = raw[:-1]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidNameError(f"Name is not valid UTF-8: {value!r}") from None
    if isinstance(value, str):
        return str(value)
    raise TypeError(f"expected str or bytes, got {type(value).__name__}")


def _dotted(text, element):
    parts = text.split(".")
    return len(parts) >= 2 and all(element.fullmatch(part) for part in parts)


def validate_path(value):
    """Return ``value`` as text if it is a valid object path, else raise."""
    text = _as_text(value)
    ok = text == "/" or (
        text.startswith("/")
        and all(_PATH_ELEMENT.fullmatch(part) for part in text[1:].split("/"))
    )
    if not ok:
        raise InvalidNameError(f"Object path was not valid: '{text}'")
    return text


def validate_member(value):
    """Return ``value`` as text if it is a valid member name, else raise."""
    text = _as_text(value)
    if not (0 < len(text) <= _MAX_NAME_LENGTH and _ELEMENT.fullmatch(text)):
        raise InvalidNameError(f"Member name was not valid: '{text}'")
    return text


def validate_interface(value):
    """Return ``value`` as text if it is a valid interface name, else raise."""
    text = _as_text(value)
    if not (0 < len(text) <= _MAX_NAME_LENGTH and _dotted(text, _ELEMENT)):
        raise InvalidNameError(f"Interface name was not valid: '{text}'")
    return text


def validate_error_name(value):
    """Return ``value`` as text if it is a valid error name, else raise."""
    text = _as_text(value)
    if not (0 < len(text) <= _MAX_NAME_LENGTH and _dotted(text, _ELEMENT)):
        raise InvalidNameError(f"Error name was not valid: '{text}'")
    return text


def validate_bus_name(value):
    """Return ``value`` as text if it is a valid bus name, else raise."""
    text = _as_text(value)
    if 0 < len(text) <= _MAX_NAME_LENGTH:
        if text.startswith(":"):
            ok = _dotted(text[1:], _UNIQUE_ELEMENT)
        else:
            ok = _dotted(text, _BUS_ELEMENT)
    else:
        ok = False
    if not ok:
        raise InvalidNameError(f"Bus name was not valid: '{text}'")
    return text


def _parse_complete_type(sig, pos, arrays, structs):
    """Parse one complete type starting at ``pos``; return the position after it."""
    if pos >= len(sig):
        raise ValueError("unexpected end of signature")
    code = sig[pos]
    if code in _BASIC_TYPES or code == "v":
        return pos + 1
    if code == "a":
        if arrays + 1 > _MAX_DEPTH:
            raise ValueError("arrays nested too deeply")
        pos += 1
        if pos < len(sig) and sig[pos] == "{":
            if structs + 1 > _MAX_DEPTH:
                raise ValueError("dict entries nested too deeply")
            pos += 1
            if pos >= len(sig) or sig[pos] not in _BASIC_TYPES:
                raise ValueError("dict entry key must be a basic type")
            pos = _parse_complete_type(sig, pos + 1, arrays + 1, structs + 1)
            if pos >= len(sig) or sig[pos] != "}":
                raise ValueError("dict entry must have exactly two types")
            return pos + 1
        return _parse_complete_type(sig, pos, arrays + 1, structs)
    if code == "(":
        if structs + 1 > _MAX_DEPTH:
            raise ValueError("structs nested too deeply")
        pos += 1
        if pos < len(sig) and sig[pos] == ")":
            raise ValueError("empty struct")
        while pos < len(sig) and sig[pos] != ")":
            pos = _parse_complete_type(sig, pos, arrays, structs + 1)
        if pos >= len(sig):
            raise ValueError("unterminated struct")
        return pos + 1
    raise ValueError(f"unexpected type code {code!r}")


def validate_signature(value):
    """Return ``value`` as text if it is a single complete type signature, else raise."""
    text = _as_text(value)
    if not 0 < len(text) <= _MAX_SIGNATURE_LENGTH:
        raise InvalidNameError(f"Signature was not valid: '{text}'")
    try:
        end = _parse_complete_type(text, 0, 0, 0)
    except ValueError:
        raise InvalidNameError(f"Signature was not valid: '{text}'") from None
    if end != len(text):
        raise InvalidNameError(f"Signature is not a single complete type: '{text}'")
    return text


class _ValidatedName(str):
    _validator = staticmethod(_as_text)

    def __new__(cls, value):
        return super().__new__(cls, cls._validator(value))

    def __repr__(self):
        return f"{type(self).__name__}({str.__repr__(self)})"


class Signature(_ValidatedName):
    """A string that is a valid single D-Bus type signature."""

    _validator = staticmethod(validate_signature)


class Path(_ValidatedName):
    """A string that is a valid D-Bus object path; defaults to the root path."""

    _validator = staticmethod(validate_path)

    def __new__(cls, value="/"):
        return super().__new__(cls, value)


class Member(_ValidatedName):
    """A string that is a valid D-Bus member (method or signal) name."""

    _validator = staticmethod(validate_member)


class Interface(_ValidatedName):
    """A string that is a valid D-Bus interface name."""

    _validator = staticmethod(validate_interface)


class BusName(_ValidatedName):
    """A string that is a valid D-Bus bus name."""

    _validator = staticmethod(validate_bus_name)


class ErrorName(_ValidatedName):
    """A string that is a valid D-Bus error name."""

    _validator = staticmethod(validate_error_name)