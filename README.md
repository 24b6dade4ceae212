# busdispatch

Build a tree of D-Bus style object paths, interfaces, methods, properties
and signals, and dispatch incoming method calls against it. The package
produces introspection XML, answers the standard
`org.freedesktop.DBus.Properties`, `org.freedesktop.DBus.Introspectable`
and `org.freedesktop.DBus.ObjectManager` interfaces, and builds
`PropertiesChanged` signals when properties are set.

Everything works on in-memory `busdispatch.message.Message` objects.

## Installing

```
pip install busdispatch
```

## Building a tree

```python
from busdispatch.factory import Factory
from busdispatch.message import Message

f = Factory.new_fn()

def echo(minfo):
    (text,) = minfo.msg.body
    return [minfo.msg.method_return().append(text)]

tree = f.tree(None).add(
    f.object_path("/echo", None).introspectable().add(
        f.interface("com.example.echo", None)
        .add_m(f.method("Echo", None, echo).in_arg(("request", "s")).out_arg(("reply", "s")))
        .add_s(f.signal("Echoed", None).arg(("data", "s")))
    )
)

call = Message.method_call("com.example.echo", "/echo", "com.example.echo", "Echo").append("hi")
replies = tree.handle(call)
```

`Tree.handle` returns `None` when the message is not a method call or its
path is not in the tree. Otherwise it returns the list of messages to send
back: whatever the handler returned, or an error reply built from the
`MethodErr` it raised. A message without an interface is dispatched to the
interface set with `ObjectPath.default_interface`.

`Factory.new_fn`, `Factory.new_fnmut` and `Factory.new_sync` choose how
handlers are treated; with `new_fnmut` a handler that is called again while
it is still running raises `RuntimeError`.

`ObjectPath.introspect(tree)` returns the introspection XML of a path,
including `<node/>` entries for its direct children in the tree.
`ObjectPath.object_manager()` adds `GetManagedObjects`, which returns a
dict of path -> interface -> property name -> `Variant`.

`Tree.get`, `Tree.insert`, `Tree.remove`, `Tree.iter` and `Tree.children`
look up and change the paths of a tree.

## Properties

```python
from busdispatch.leaves import Access, EmitsChangedSignal

counter = {"value": 0}

prop = (
    f.property("Count", "i", None)
    .access(Access.READ_WRITE)
    .on_get(lambda pinfo: counter["value"])
    .on_set(lambda value, pinfo: counter.update(value=value))
)
```

A get handler receives a `PropInfo` and returns the value; a set handler
receives the new value and the `PropInfo`. `Property.default_get()` answers
reads with the data the property was created with.

A remote `Set` is refused for read-only properties and for values whose
`Variant` signature differs from the property's. After a successful set,
`EmitsChangedSignal.TRUE` adds a `PropertiesChanged` signal with the new
value to the replies, `INVALIDATES` one naming the property, and `FALSE`
none; `Property.auto_emit_on_set(False)` turns the signal off.
`Property.add_propertieschanged` collects changes into
`PropertiesChanged` records for signals sent by hand.

## Messages and errors

`Message` holds the header fields and a `body` list. `Variant` pairs a
value with its signature; `signature_of` infers a signature from a Python
value. `Message.as_result()` raises `DBusError` for an error reply.

Handlers raise `MethodErr` to reply with an error. `MethodErr.invalid_arg`,
`no_arg`, `failed`, `no_path`, `no_interface`, `no_method`, `no_property`
and `ro_property` build the standard error names.

## Names

`busdispatch.strings` holds validated name types: `Path`, `Interface`,
`Member`, `BusName`, `ErrorName` and `Signature`, and the matching
`validate_*` functions. An invalid name raises `InvalidNameError`.

## Client-side properties

`busdispatch.prop.Props` reads and writes the properties of a remote
object through any object that offers
`send_with_reply_and_block(msg, timeout_ms)` and returns the reply
`Message`. `PropHandler` keeps the values it has fetched or set in `map`.

## What it does not do

The package has no bus connection and no wire encoding. `Tree.run`,
`Tree.set_registered` and `Props` take a connection object you supply:
`run` calls its `send`, `set_registered` its `register_object_path` and
`unregister_object_path`. There is no command-line program.

## Running the tests

```
pip install -e .[test]
pytest
```