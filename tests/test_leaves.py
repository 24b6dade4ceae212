import pytest

from busdispatch.leaves import Access, EmitsChangedSignal, Method, Signal
from busdispatch.message import Message, MessageType
from busdispatch.methodtype import MethodInfo, MethodType
from busdispatch.strings import InvalidNameError
from busdispatch.utils import Argument


def _echo():
    return Method("Echo", lambda m: []).in_arg(("request", "s")).out_arg(("reply", "s"))


def test_method_name_and_data():
    m = Method("test", lambda m: [], 789)
    assert m.name == "test"
    assert m.data == 789


def test_method_invalid_name():
    with pytest.raises(InvalidNameError):
        Method("not valid!", lambda m: [])


def test_method_requires_callable():
    with pytest.raises(TypeError):
        Method("test", None)


def test_method_introspection():
    m = _echo()
    assert m.xml_name() == "method"
    assert m.xml_params() == ""
    assert m.xml_contents() == (
        '      <arg name="request" type="s" direction="in"/>\n'
        '      <arg name="reply" type="s" direction="out"/>\n'
    )


def test_method_bulk_args():
    m = Method("Get", lambda m: [])
    returned = m.in_args([("interface_name", "s"), ("property_name", "s")]).out_args(["v"])
    assert returned is m
    assert [a.name for a in m.i_args] == ["interface_name", "property_name"]
    assert m.o_args == [Argument(None, "v")]
    assert m.xml_contents() == (
        '      <arg name="interface_name" type="s" direction="in"/>\n'
        '      <arg name="property_name" type="s" direction="in"/>\n'
        '      <arg type="v" direction="out"/>\n'
    )


def test_method_deprecated_annotation():
    m = _echo().deprecated()
    assert m.xml_contents().endswith(
        '      <annotation name="org.freedesktop.DBus.Deprecated" value="true"/>\n'
    )


def test_method_call_returns_reply():
    handler = MethodType.FN_MUT.wrap(
        lambda minfo: [minfo.msg.method_return().append("Thanks!")]
    )
    m = Method("CallMe", handler)
    msg = Message.method_call("com.example.dbus.rs", "/example", "com.example.dbus.rs", "CallMe")
    msg.serial = 4
    minfo = MethodInfo(msg=msg, method=m, iface=None, path=None, tree=None)
    replies = m.call(minfo)
    assert len(replies) == 1
    assert replies[0].msg_type is MessageType.METHOD_RETURN
    assert replies[0].reply_serial == 4
    assert replies[0].body == ["Thanks!"]


def test_signal_introspection():
    s = Signal("Echoed").arg(("data", "s")).deprecated()
    assert s.xml_name() == "signal"
    assert s.xml_params() == ""
    assert s.xml_contents() == (
        '      <arg name="data" type="s"/>\n'
        '      <annotation name="org.freedesktop.DBus.Deprecated" value="true"/>\n'
    )


def test_signal_args_bulk():
    s = Signal("Echoed").args([("data", "s"), "i"])
    assert s.arguments == [Argument("data", "s"), Argument(None, "i")]


def test_signal_msg_and_emit():
    s = Signal("Echoed", data=7)
    empty = s.msg("/echo", "com.example.echo")
    assert empty.msg_type is MessageType.SIGNAL
    assert empty.path == "/echo"
    assert empty.interface == "com.example.echo"
    assert empty.member == "Echoed"
    assert empty.body == []
    full = s.emit("/echo", "com.example.echo", "hello", 5)
    assert full.body == ["hello", 5]
    assert full.member == s.name
    assert s.data == 7


def test_signal_emit_invalid_path():
    with pytest.raises(InvalidNameError):
        Signal("Echoed").msg("##invalid##", "com.example.echo")


@pytest.mark.parametrize(
    "text, member",
    [
        ("read", Access.READ),
        ("readwrite", Access.READ_WRITE),
        ("write", Access.WRITE),
    ],
)
def test_access_from_introspection_value(text, member):
    assert Access(text) is member


@pytest.mark.parametrize(
    "text, member",
    [
        ("true", EmitsChangedSignal.TRUE),
        ("invalidates", EmitsChangedSignal.INVALIDATES),
        ("const", EmitsChangedSignal.CONST),
        ("false", EmitsChangedSignal.FALSE),
    ],
)
def test_emits_from_introspection_value(text, member):
    assert EmitsChangedSignal(text) is member


def test_enum_rejects_unknown_value():
    with pytest.raises(ValueError):
        Access("readonly")