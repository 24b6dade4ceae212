"""Client-side access to the properties of a remote object."""

from .message import DBusError, Message, Variant
from .strings import BusName, Interface, Path

__all__ = ["Props", "PropHandler"]

_PROPERTIES = "org.freedesktop.DBus.Properties"
_INVALID_REPLY = "InvalidReply"


class Props:
    """Gets and sets properties of one interface on a remote object.

    ``connection`` must offer ``send_with_reply_and_block(msg, timeout_ms)``
    returning the reply message.
    """

    def __init__(self, connection, name, path, interface, timeout_ms):
        self.connection = connection
        self.name = BusName(name)
        self.path = Path(path)
        self.interface = Interface(interface)
        self.timeout_ms = int(timeout_ms)

    def __repr__(self):
        return f"Props({str(self.name)!r}, {str(self.path)!r}, {str(self.interface)!r})"

    def _call(self, member, *args):
        msg = Message.method_call(self.name, self.path, _PROPERTIES, member).append(*args)
        reply = self.connection.send_with_reply_and_block(msg, self.timeout_ms)
        return reply.as_result().body

    def get(self, propname):
        """Return the value of a single property."""
        reply = self._call("Get", str(self.interface), str(propname))
        if len(reply) == 1 and isinstance(reply[0], Variant):
            return reply[0].value
        raise DBusError(
            _INVALID_REPLY, f"Invalid reply for property get {propname}: '{reply!r}'"
        )

    def set(self, propname, value):
        """Set a single property's value."""
        variant = value if isinstance(value, Variant) else Variant(value)
        self._call("Set", str(self.interface), str(propname), variant)

    def get_all(self):
        """Return a dict of all property names and their values, sorted by name."""
        reply = self._call("GetAll", str(self.interface))
        valid = (
            len(reply) == 1
            and isinstance(reply[0], dict)
            and all(
                isinstance(k, str) and isinstance(v, Variant) for k, v in reply[0].items()
            )
        )
        if not valid:
            raise DBusError(
                _INVALID_REPLY, f"Invalid reply for property GetAll: '{reply!r}'"
            )
        return {str(k): v.value for k, v in sorted(reply[0].items())}


class PropHandler:
    """Wraps Props and keeps the fetched property values in ``map``."""

    def __init__(self, props):
        self.props = props
        self.map = {}

    def get_all(self):
        """Fetch all properties, replacing ``map``."""
        self.map = self.props.get_all()

    def get(self, propname):
        """Fetch one property, store it in ``map`` and return it."""
        value = self.props.get(propname)
        self.map[str(propname)] = value
        return value

    def set(self, propname, value):
        """Set one property remotely and store the new value in ``map``."""
        self.props.set(propname, value)
        self.map[str(propname)] = value.value if isinstance(value, Variant) else value