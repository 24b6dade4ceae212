"""Interfaces, object paths and trees that dispatch incoming method calls."""

import threading

from .leaves import Method
from .message import Message, MessageType
from .methodtype import MethodErr, MethodInfo, MethodType
from .properties import prop_dict
from .strings import Interface as IfaceName
from .strings import InvalidNameError, Path
from .utils import Annotations

__all__ = ["Interface", "IfaceCache", "ObjectPath", "Tree"]

_DEPRECATED = "org.freedesktop.DBus.Deprecated"
_INTROSPECTABLE = "org.freedesktop.DBus.Introspectable"
_PROPERTIES = "org.freedesktop.DBus.Properties"
_OBJECT_MANAGER = "org.freedesktop.DBus.ObjectManager"
_DOCTYPE = (
    '<!DOCTYPE node PUBLIC "-//freedesktop//DTD D-BUS Object Introspection 1.0//EN" '
    '"http://www.freedesktop.org/standards/dbus/1.0/introspect.dtd">'
)


def _introspect_map(mapping, indent):
    parts = []
    for key, item in sorted(mapping.items()):
        name = item.xml_name()
        contents = item.xml_contents()
        body = f">\n{contents}{indent}</{name}" if contents else "/"
        parts.append(f'{indent}<{name} name="{key}"{item.xml_params()}{body}>\n')
    return "".join(parts)


def _sorted_values(mapping):
    return [value for _, value in sorted(mapping.items())]


class Interface:
    """A D-Bus interface: methods, signals, properties and annotations."""

    def __init__(self, name, data=None):
        self.name = IfaceName(name)
        self.data = data
        self.methods = {}
        self.signals = {}
        self.properties = {}
        self.annotations = Annotations()

    def __repr__(self):
        return f"Interface({str(self.name)!r})"

    def add_m(self, method):
        """Add a method; returns the interface."""
        self.methods[method.name] = method
        return self

    def add_s(self, signal):
        """Add a signal; returns the interface."""
        self.signals[signal.name] = signal
        return self

    def add_p(self, prop):
        """Add a property; returns the interface."""
        self.properties[prop.name] = prop
        return self

    def annotate(self, name, value):
        """Add an annotation; returns the interface."""
        self.annotations.insert(name, value)
        return self

    def deprecated(self):
        """Mark the interface as deprecated; returns the interface."""
        return self.annotate(_DEPRECATED, "true")

    def iter_m(self):
        """Iterate over the methods in name order."""
        return iter(_sorted_values(self.methods))

    def iter_s(self):
        """Iterate over the signals in name order."""
        return iter(_sorted_values(self.signals))

    def iter_p(self):
        """Iterate over the properties in name order."""
        return iter(_sorted_values(self.properties))

    def xml_name(self):
        """The introspection element name."""
        return "interface"

    def xml_params(self):
        """Extra introspection attributes (none for interfaces)."""
        return ""

    def xml_contents(self):
        """The introspection child elements."""
        indent = "    "
        return (
            _introspect_map(self.methods, indent)
            + _introspect_map(self.properties, indent)
            + _introspect_map(self.signals, indent)
            + self.annotations.introspect(indent)
        )


class IfaceCache:
    """Shares built-in interfaces between the object paths that use them."""

    def __init__(self):
        self._ifaces = {}
        self._lock = threading.Lock()

    def get(self, name, build):
        """Return the cached interface ``name``, building it from a fresh Interface if absent."""
        key = IfaceName(name)
        with self._lock:
            iface = self._ifaces.get(key)
            if iface is None:
                iface = build(Interface(key))
                self._ifaces[key] = iface
            return iface


def _read_strings(msg, count):
    items = msg.body[:count]
    if len(items) < count or not all(isinstance(item, str) for item in items):
        raise MethodErr.failed(f"Expected {count} string arguments, got {msg.body!r}")
    return items


def _introspect_handler(minfo):
    return [minfo.msg.method_return().append(minfo.path.introspect(minfo.tree))]


class ObjectPath:
    """A D-Bus object path holding a set of interfaces."""

    def __init__(self, name, data=None, ifacecache=None, method_type=MethodType.FN):
        self.name = Path(name)
        self.data = data
        self.default_iface = None
        self.ifaces = {}
        self.ifacecache = IfaceCache() if ifacecache is None else ifacecache
        self.method_type = MethodType(method_type)

    def __repr__(self):
        return f"ObjectPath({str(self.name)!r})"

    def iter(self):
        """Iterate over the interfaces in name order."""
        return iter(_sorted_values(self.ifaces))

    def introspect(self, tree):
        """Return the introspection XML for this path within ``tree``."""
        ifacestr = _introspect_map(self.ifaces, "  ")
        olen = 1 if self.name == "/" else len(self.name) + 1
        childstr = "".join(
            f'  <node name="{child.name[olen:]}"/>\n'
            for child in tree.children(self, True)
        )
        return f'{_DOCTYPE}\n<node name="{self.name}">\n{ifacestr}{childstr}</node>'

    def introspectable(self):
        """Add the Introspectable interface; returns the object path."""
        wrap = self.method_type.wrap

        def build(iface):
            return iface.add_m(
                Method("Introspect", wrap(_introspect_handler)).out_arg(("xml_data", "s"))
            )

        return self.add(self.ifacecache.get(_INTROSPECTABLE, build))

    def add(self, iface):
        """Add an interface; returns the object path."""
        if iface.properties:
            self._add_property_handler()
        self.ifaces[iface.name] = iface
        return self

    def default_interface(self, name):
        """Set the interface used for method calls that name none."""
        self.default_iface = IfaceName(name)
        return self

    def object_manager(self):
        """Add the ObjectManager interface; returns the object path."""
        if _OBJECT_MANAGER in self.ifaces:
            return self
        wrap = self.method_type.wrap

        def build(iface):
            return iface.add_m(
                Method(
                    "GetManagedObjects",
                    wrap(lambda minfo: minfo.path._get_managed_objects(minfo)),
                ).out_arg(("objpath_interfaces_and_properties", "a{oa{sa{sv}}}"))
            )

        iface = self.ifacecache.get(_OBJECT_MANAGER, build)
        self.ifaces[iface.name] = iface
        return self

    def _add_property_handler(self):
        if _PROPERTIES in self.ifaces:
            return
        wrap = self.method_type.wrap

        def build(iface):
            return (
                iface.add_m(
                    Method("Get", wrap(lambda minfo: minfo.path._prop_get(minfo)))
                    .in_arg(("interface_name", "s"))
                    .in_arg(("property_name", "s"))
                    .out_arg(("value", "v"))
                )
                .add_m(
                    Method("GetAll", wrap(lambda minfo: minfo.path._prop_get_all(minfo)))
                    .in_arg(("interface_name", "s"))
                    .out_arg(("props", "a{sv}"))
                )
                .add_m(
                    Method("Set", wrap(lambda minfo: minfo.path._prop_set(minfo)))
                    .in_arg(("interface_name", "s"))
                    .in_arg(("property_name", "s"))
                    .in_arg(("value", "v"))
                )
            )

        iface = self.ifacecache.get(_PROPERTIES, build)
        self.ifaces[iface.name] = iface

    def _get_iface(self, name):
        try:
            key = IfaceName(name)
        except InvalidNameError as exc:
            raise MethodErr.invalid_arg(str(exc)) from None
        iface = self.ifaces.get(key)
        if iface is None:
            raise MethodErr.no_interface(key)
        return iface

    def _lookup_prop(self, msg):
        iname, prop_name = _read_strings(msg, 2)
        iface = self._get_iface(iname)
        prop = iface.properties.get(prop_name)
        if prop is None:
            raise MethodErr.no_property(prop_name)
        return iface, prop

    def _prop_get(self, minfo):
        iface, prop = self._lookup_prop(minfo.msg)
        prop.can_get()
        value = prop.get_as_variant(minfo.to_prop_info(iface, prop))
        return [minfo.msg.method_return().append(value)]

    def _prop_get_all(self, minfo):
        (iname,) = _read_strings(minfo.msg, 1)
        iface = self._get_iface(iname)
        props = prop_dict(iface.iter_p(), minfo)
        return [minfo.msg.method_return().append(props)]

    def _prop_set(self, minfo):
        iface, prop = self._lookup_prop(minfo.msg)
        body = minfo.msg.body
        value = body[2] if len(body) > 2 else None
        prop.can_set(value)
        signal = prop.set_as_variant(value, minfo.to_prop_info(iface, prop))
        replies = [] if signal is None else [signal]
        replies.append(minfo.msg.method_return())
        return replies

    def _get_managed_objects(self, minfo):
        paths = minfo.tree.children(self, False)
        paths.append(self)
        result = {}
        for path in paths:
            result[path.name] = {
                iface.name: prop_dict(
                    iface.iter_p(),
                    MethodInfo(
                        msg=minfo.msg,
                        method=minfo.method,
                        iface=iface,
                        path=path,
                        tree=minfo.tree,
                    ),
                )
                for iface in path.iter()
            }
        return [minfo.msg.method_return().append(result)]

    def _handle(self, msg, tree):
        iname = msg.interface if msg.interface is not None else self.default_iface
        iface = None if iname is None else self.ifaces.get(iname)
        if iface is None:
            raise MethodErr.no_interface("")
        method = None if msg.member is None else iface.methods.get(msg.member)
        if method is None:
            raise MethodErr.no_method("")
        minfo = MethodInfo(msg=msg, method=method, iface=iface, path=self, tree=tree)
        return method.call(minfo)


class Tree:
    """A collection of object paths that handles incoming method calls."""

    def __init__(self, data=None):
        self.data = data
        self.paths = {}

    def __repr__(self):
        return f"Tree({sorted(str(p) for p in self.paths)!r})"

    def add(self, path):
        """Add an object path; returns the tree."""
        self.insert(path)
        return self

    def get(self, path):
        """Return the object path named ``path``, or None."""
        return self.paths.get(path)

    def iter(self):
        """Iterate over the object paths in name order."""
        return iter(_sorted_values(self.paths))

    def insert(self, path):
        """Add an object path to the tree."""
        self.paths[path.name] = path

    def remove(self, path):
        """Remove and return the object path named ``path``, or None if absent."""
        return self.paths.pop(path, None)

    def set_registered(self, connection, registered):
        """Register or unregister every path with ``connection``.

        If a registration fails, the paths registered so far are unregistered
        again and the error is raised.
        """
        done = []
        for name in sorted(self.paths):
            if not registered:
                connection.unregister_object_path(name)
                continue
            try:
                connection.register_object_path(name)
            except Exception:
                while done:
                    connection.unregister_object_path(done.pop())
                raise
            done.append(name)

    def run(self, connection, items):
        """Handle matching method calls from ``items``; yield everything else."""
        for item in items:
            if isinstance(item, Message):
                replies = self.handle(item)
                if replies is not None:
                    for reply in replies:
                        try:
                            connection.send(reply)
                        except Exception:
                            # The remote side may have gone away; nothing to do.
                            pass
                    continue
            yield item

    def handle(self, msg):
        """Return the reply messages for ``msg``, or None if no path in the tree matches."""
        if msg.msg_type is not MessageType.METHOD_CALL or msg.path is None:
            return None
        target = self.paths.get(msg.path)
        if target is None:
            return None
        try:
            return target._handle(msg, self)
        except MethodErr as err:
            return [err.to_message(msg)]

    def children(self, path, direct_only):
        """Return the object paths below ``path``, in name order.

        With ``direct_only`` a path is left out when it lies below the path
        listed just before it.
        """
        parent = str(path.name if isinstance(path, ObjectPath) else Path(path))
        plen = 1 if parent == "/" else len(parent) + 1
        found = [
            node
            for node in self.iter()
            if node.name.startswith(parent)
            and len(node.name) > plen
            and node.name[plen - 1] == "/"
        ]
        if not direct_only:
            return found
        kept = []
        prev = None
        for node in found:
            if prev is None or not node.name.startswith(prev.name):
                kept.append(node)
            prev = node
        return kept