import pytest

from busdispatch.factory import Factory
from busdispatch.leaves import Access
from busdispatch.message import DBusError, Message, MessageType, Variant
from busdispatch.prop import PropHandler, Props

IFACE = "com.example.props"


class TreeConnection:
    """Answers blocking calls by handing them to a tree."""

    def __init__(self, tree):
        self.tree = tree
        self.sent = []

    def send_with_reply_and_block(self, msg, timeout_ms):
        self.sent.append((msg, timeout_ms))
        return self.tree.handle(msg)[-1]


class FixedConnection:
    def __init__(self, reply):
        self.reply = reply

    def send_with_reply_and_block(self, msg, timeout_ms):
        return self.reply


def _setup():
    f = Factory.new_fn()
    store = {"Name": "initial"}

    def set_name(value, pinfo):
        store["Name"] = value

    tree = f.tree().add(
        f.object_path("/obj").add(
            f.interface(IFACE)
            .add_p(f.property("Version", "s", "1.0").default_get())
            .add_p(
                f.property("Name", "s")
                .access(Access.READ_WRITE)
                .on_get(lambda pinfo: store["Name"])
                .on_set(set_name)
            )
        )
    )
    conn = TreeConnection(tree)
    return Props(conn, "com.example.service", "/obj", IFACE, 5000), conn, store


def test_get_matches_get_all():
    props, _, _ = _setup()
    v = props.get("Version")
    everything = props.get_all()
    assert v == everything["Version"]
    assert list(everything) == sorted(everything)


def test_get_sends_properties_get():
    props, conn, _ = _setup()
    props.get("Version")
    msg, timeout = conn.sent[0]
    assert msg.interface == "org.freedesktop.DBus.Properties"
    assert msg.member == "Get"
    assert msg.body == [IFACE, "Version"]
    assert timeout == 5000


def test_set_roundtrip():
    props, _, store = _setup()
    props.set("Name", "changed")
    assert store["Name"] == "changed"
    assert props.get("Name") == "changed"


def test_set_read_only_raises():
    props, _, _ = _setup()
    with pytest.raises(DBusError) as info:
        props.set("Version", "2.0")
    assert info.value.name == "org.freedesktop.DBus.Error.PropertyReadOnly"


def test_get_unknown_property_raises():
    props, _, _ = _setup()
    with pytest.raises(DBusError) as info:
        props.get("Missing")
    assert info.value.name == "org.freedesktop.DBus.Error.UnknownProperty"


def test_invalid_get_reply():
    reply = Message(MessageType.METHOD_RETURN, body=["a", "b"])
    props = Props(FixedConnection(reply), "com.example.service", "/obj", IFACE, 100)
    with pytest.raises(DBusError) as info:
        props.get("Version")
    assert info.value.name == "InvalidReply"


def test_invalid_get_all_reply():
    reply = Message(MessageType.METHOD_RETURN, body=[{"x": 1}])
    props = Props(FixedConnection(reply), "com.example.service", "/obj", IFACE, 100)
    with pytest.raises(DBusError) as info:
        props.get_all()
    assert info.value.name == "InvalidReply"


def test_get_all_unwraps_variants():
    reply = Message(MethodType := MessageType.METHOD_RETURN, body=[{"b": Variant(2), "a": Variant("x")}])
    props = Props(FixedConnection(reply), "com.example.service", "/obj", IFACE, 100)
    assert props.get_all() == {"a": "x", "b": 2}
    assert MethodType is MessageType.METHOD_RETURN


def test_invalid_names_rejected():
    with pytest.raises(ValueError):
        Props(FixedConnection(None), "com.example.service", "no-slash", IFACE, 100)


def test_prop_handler_caches_values():
    props, _, store = _setup()
    handler = PropHandler(props)
    assert handler.map == {}
    handler.get_all()
    assert handler.map == props.get_all()
    assert handler.get("Name") == store["Name"]
    handler.set("Name", "other")
    assert handler.map["Name"] == "other"
    assert store["Name"] == "other"


def test_prop_handler_set_failure_leaves_map():
    props, _, _ = _setup()
    handler = PropHandler(props)
    with pytest.raises(DBusError):
        handler.set("Version", "2.0")
    assert "Version" not in handler.map