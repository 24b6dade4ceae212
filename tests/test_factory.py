import threading

import pytest

from busdispatch.factory import Factory
from busdispatch.leaves import Access, EmitsChangedSignal
from busdispatch.message import Message, MessageType, Variant
from busdispatch.methodtype import MethodType

PROPS = "org.freedesktop.DBus.Properties"


def _call(path, iface, member, *args, dest="com.example.test"):
    return Message.method_call(dest, path, iface, member).append(*args)


def test_create_fnmut():
    f = Factory.new_fnmut()
    state = {"move_me": 5}

    def handler(m):
        state["move_me"] += 1
        return [m.msg.method_return().append(state["move_me"])]

    m = f.method("test", None, handler)
    assert m.name == "test"

    tree = f.tree().add(f.object_path("/t").add(f.interface("com.example.t").add_m(m)))
    replies = tree.handle(_call("/t", "com.example.t", "test"))
    assert replies[0].body == [6]
    assert state["move_me"] == 6


def test_fn_customdata():
    f = Factory.new_fn()
    m = f.method("test", 789, lambda minfo: [])
    assert m.data == 789
    o = f.object_path("/test/test", 7)
    assert o.data == 7


def test_factory_kinds():
    assert Factory.new_fn().method_type is MethodType.FN
    assert Factory.new_fnmut().method_type is MethodType.FN_MUT
    assert Factory.new_sync().method_type is MethodType.SYNC


def test_fnmut_recursion_raises():
    f = Factory.new_fnmut()

    def handler(minfo):
        return minfo.method.call(minfo)

    tree = f.tree().add(
        f.object_path("/r").add(f.interface("com.example.r").add_m(f.method("Go", None, handler)))
    )
    with pytest.raises(RuntimeError):
        tree.handle(_call("/r", "com.example.r", "Go"))


def test_interface_cache_is_shared():
    f = Factory.new_fn()
    a = f.object_path("/a").introspectable()
    b = f.object_path("/b").introspectable()
    name = "org.freedesktop.DBus.Introspectable"
    assert a.ifaces[name] is b.ifaces[name]


def test_prop_handlers():
    f = Factory.new_fn()
    tree = f.tree().add(
        f.object_path("/test").introspectable().object_manager().add(
            f.interface("com.example.test")
            .add_p(f.property("Value1", "i", 5).default_get())
            .add_p(f.property("Value2", "i", 9).default_get())
        )
    )

    res = tree.handle(_call("/test", PROPS, "Get", "com.example.test", "Value1"))
    assert res[0].body == [Variant(5, "i")]

    res = tree.handle(_call("/test", PROPS, "Set", "com.example.test", "Value1", Variant(3)))
    assert res[0].msg_type is MessageType.ERROR

    res = tree.handle(_call("/test", PROPS, "GetAll", "com.example.test"))
    props = res[0].body[0]
    assert props["Value1"] == Variant(5, "i")
    assert props["Value2"] == Variant(9, "i")
    assert "Mooh" not in props

    res = tree.handle(
        _call("/test", "org.freedesktop.DBus.ObjectManager", "GetManagedObjects")
    )
    managed = res[0].body[0]
    propmap = managed["/test"]["com.example.test"]
    assert propmap["Value1"] == Variant(5, "i")
    assert propmap["Value2"] == Variant(9, "i")
    assert "Mooh" not in propmap


def test_set_prop():
    f = Factory.new_fn()
    state = {"changes": 0, "setme": "I have not been set yet!"}

    def set_setme(value, pinfo):
        state["setme"] = value
        state["changes"] += 1

    tree = f.tree().add(
        f.object_path("/example").introspectable().add(
            f.interface("com.example.dbus.rs")
            .add_p(f.property("changes", "i").on_get(lambda pinfo: state["changes"]))
            .add_p(
                f.property("setme", "s")
                .access(Access.READ_WRITE)
                .on_get(lambda pinfo: state["setme"])
                .on_set(set_setme)
            )
        )
    )

    r = tree.handle(_call("/example", PROPS, "Set", "com.example.dbus.rs", "changes", Variant(5)))
    assert r[0].msg_type is MessageType.ERROR

    r = tree.handle(_call("/example", PROPS, "Set", "com.example.dbus.rs", "setme", Variant(8)))
    assert r[0].msg_type is MessageType.ERROR

    r = tree.handle(
        _call("/example", PROPS, "Set", "com.example.dbus.rs", "setme", Variant("Correct"))
    )
    assert state["changes"] == 1
    assert state["setme"] == "Correct"
    assert len(r) == 2
    assert r[0].member == "PropertiesChanged"
    assert r[0].body[0] == "com.example.dbus.rs"
    assert r[0].body[1]["setme"] == Variant("Correct", "s")


def test_sync_prop():
    f = Factory.new_sync()
    count = {"value": 3}
    lock = threading.Lock()

    def on_set(value, pinfo):
        with lock:
            count["value"] = value

    tree = f.tree().add(
        f.object_path("/syncprop").introspectable().add(
            f.interface("com.example.syncprop").add_p(
                f.property("syncprop", "u")
                .access(Access.READ_WRITE)
                .emits_changed(EmitsChangedSignal.FALSE)
                .on_get(lambda pinfo: count["value"])
                .on_set(on_set)
            )
        )
    )

    results = []

    def worker():
        r = tree.handle(
            _call("/syncprop", PROPS, "Set", "com.example.syncprop", "syncprop", Variant(5, "u"))
        )
        results.append(r[0].msg_type)

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()
    assert results == [MessageType.METHOD_RETURN]

    r = tree.handle(_call("/syncprop", PROPS, "Get", "com.example.syncprop", "syncprop"))
    assert r[0].as_result().body == [Variant(5, "u")]
    assert count["value"] == 5