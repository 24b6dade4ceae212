"""Methods and signals of a D-Bus interface, and property enums."""

from enum import Enum

from .message import Message
from .strings import Member
from .utils import Annotations, Argument, introspect_args

__all__ = ["Access", "EmitsChangedSignal", "Method", "Signal"]

_DEPRECATED = "org.freedesktop.DBus.Deprecated"
_INDENT = "      "


class EmitsChangedSignal(Enum):
    """How a property signals that it has changed."""

    TRUE = "true"
    INVALIDATES = "invalidates"
    CONST = "const"
    FALSE = "false"


class Access(Enum):
    """Whether a property can be read, written, or both."""

    READ = "read"
    READ_WRITE = "readwrite"
    WRITE = "write"


class Method:
    """A D-Bus method: a name, a handler, arguments and annotations.

    The declared arguments are kept in ``i_args`` and ``o_args``.
    """

    def __init__(self, name, handler, data=None):
        if not callable(handler):
            raise TypeError("method handler must be callable")
        self.name = Member(name)
        self.data = data
        self.i_args = []
        self.o_args = []
        self.annotations = Annotations()
        self._handler = handler

    def __repr__(self):
        return f"Method({str(self.name)!r})"

    def in_arg(self, arg):
        """Add an "in" argument; returns the method."""
        self.i_args.append(Argument.from_spec(arg))
        return self

    def in_args(self, args):
        """Add several "in" arguments; returns the method."""
        self.i_args.extend(Argument.from_spec(a) for a in args)
        return self

    def out_arg(self, arg):
        """Add an "out" argument; returns the method."""
        self.o_args.append(Argument.from_spec(arg))
        return self

    def out_args(self, args):
        """Add several "out" arguments; returns the method."""
        self.o_args.extend(Argument.from_spec(a) for a in args)
        return self

    def annotate(self, name, value):
        """Add an annotation; returns the method."""
        self.annotations.insert(name, value)
        return self

    def deprecated(self):
        """Mark the method as deprecated; returns the method."""
        return self.annotate(_DEPRECATED, "true")

    def call(self, minfo):
        """Call the handler with ``minfo`` and return the reply messages."""
        return self._handler(minfo)

    def xml_name(self):
        """The introspection element name."""
        return "method"

    def xml_params(self):
        """Extra introspection attributes (none for methods)."""
        return ""

    def xml_contents(self):
        """The introspection child elements."""
        return (
            introspect_args(self.i_args, _INDENT, ' direction="in"')
            + introspect_args(self.o_args, _INDENT, ' direction="out"')
            + self.annotations.introspect(_INDENT)
        )


class Signal:
    """A D-Bus signal: a name, arguments and annotations."""

    def __init__(self, name, data=None):
        self.name = Member(name)
        self.data = data
        self.arguments = []
        self.annotations = Annotations()

    def __repr__(self):
        return f"Signal({str(self.name)!r})"

    def arg(self, arg):
        """Add an argument; returns the signal."""
        self.arguments.append(Argument.from_spec(arg))
        return self

    def args(self, args):
        """Add several arguments; returns the signal."""
        self.arguments.extend(Argument.from_spec(a) for a in args)
        return self

    def annotate(self, name, value):
        """Add an annotation; returns the signal."""
        self.annotations.insert(name, value)
        return self

    def deprecated(self):
        """Mark the signal as deprecated; returns the signal."""
        return self.annotate(_DEPRECATED, "true")

    def emit(self, path, iface, *args):
        """Return a signal message from ``path`` and ``iface`` carrying ``args``."""
        return self.msg(path, iface).append(*args)

    def msg(self, path, iface):
        """Return an empty signal message from ``path`` and ``iface``."""
        return Message.signal(path, iface, self.name)

    def xml_name(self):
        """The introspection element name."""
        return "signal"

    def xml_params(self):
        """Extra introspection attributes (none for signals)."""
        return ""

    def xml_contents(self):
        """The introspection child elements."""
        return introspect_args(self.arguments, _INDENT, "") + self.annotations.introspect(
            _INDENT
        )