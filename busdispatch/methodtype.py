"""Method errors, handler kinds, and the context handed to method handlers."""

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .strings import ErrorName

__all__ = ["MethodErr", "MethodType", "MethodInfo", "PropInfo"]

_INVALID_ARGS = "org.freedesktop.DBus.Error.InvalidArgs"
_FAILED = "org.freedesktop.DBus.Error.Failed"
_UNKNOWN_OBJECT = "org.freedesktop.DBus.Error.UnknownObject"
_UNKNOWN_INTERFACE = "org.freedesktop.DBus.Error.UnknownInterface"
_UNKNOWN_METHOD = "org.freedesktop.DBus.Error.UnknownMethod"
_UNKNOWN_PROPERTY = "org.freedesktop.DBus.Error.UnknownProperty"
_PROPERTY_READ_ONLY = "org.freedesktop.DBus.Error.PropertyReadOnly"


class MethodErr(Exception):
    """A D-Bus method error: an error name and a description."""

    def __init__(self, errorname, description):
        self.errorname = ErrorName(errorname)
        self.description = str(description)
        super().__init__(f"{self.errorname}: {self.description}")

    def __eq__(self, other):
        if not isinstance(other, MethodErr):
            return NotImplemented
        return (self.errorname, self.description) == (other.errorname, other.description)

    def __hash__(self):
        return hash((self.errorname, self.description))

    def __repr__(self):
        return f"MethodErr({self.errorname!r}, {self.description!r})"

    @classmethod
    def invalid_arg(cls, value):
        """An InvalidArgs error naming the offending argument."""
        return cls(_INVALID_ARGS, f"Invalid argument {value!r}")

    @classmethod
    def no_arg(cls):
        """An InvalidArgs error for too few arguments."""
        return cls(_INVALID_ARGS, "Not enough arguments")

    @classmethod
    def failed(cls, value):
        """A generic failure with the given description."""
        return cls(_FAILED, str(value))

    @classmethod
    def no_path(cls, value):
        """An error for an unknown object path."""
        return cls(_UNKNOWN_OBJECT, f"Unknown object path {value}")

    @classmethod
    def no_interface(cls, value):
        """An error for an unknown interface."""
        return cls(_UNKNOWN_INTERFACE, f"Unknown interface {value}")

    @classmethod
    def no_method(cls, value):
        """An error for an unknown method."""
        return cls(_UNKNOWN_METHOD, f"Unknown method {value}")

    @classmethod
    def no_property(cls, value):
        """An error for an unknown property."""
        return cls(_UNKNOWN_PROPERTY, f"Unknown property {value}")

    @classmethod
    def ro_property(cls, value):
        """An error for an attempt to write a read-only property."""
        return cls(_PROPERTY_READ_ONLY, f"Property {value} is read only")

    def to_message(self, msg):
        """Return an error reply to ``msg`` carrying this error."""
        return msg.error(self.errorname, self.description)


class MethodType(Enum):
    """How handlers are called: plain, stateful (non-reentrant), or thread-safe."""

    FN = "fn"
    FN_MUT = "fnmut"
    SYNC = "sync"

    def wrap(self, handler):
        """Return ``handler`` prepared for calling under this method type."""
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")
        if self is not MethodType.FN_MUT:
            return handler

        busy = False

        @functools.wraps(handler)
        def guarded(*args, **kwargs):
            nonlocal busy
            if busy:
                raise RuntimeError("mutable handler called recursively")
            busy = True
            try:
                return handler(*args, **kwargs)
            finally:
                busy = False

        return guarded


@dataclass(frozen=True)
class MethodInfo:
    """Information about an incoming method call."""

    msg: Any
    method: Any
    iface: Any
    path: Any
    tree: Any

    def to_prop_info(self, iface, prop):
        """Return the property context for ``prop`` on ``iface``."""
        return PropInfo(
            msg=self.msg,
            method=self.method,
            prop=prop,
            iface=iface,
            path=self.path,
            tree=self.tree,
        )


@dataclass(frozen=True)
class PropInfo:
    """Information about an incoming property get or set request."""

    msg: Any
    method: Any
    prop: Any
    iface: Any
    path: Any
    tree: Any

    def to_method_info(self):
        """Return the method context this request belongs to."""
        return MethodInfo(
            msg=self.msg,
            method=self.method,
            iface=self.iface,
            path=self.path,
            tree=self.tree,
        )