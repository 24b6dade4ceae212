"""D-Bus properties: access rules, get/set handlers and change signals."""

from dataclasses import dataclass, field

from .leaves import Access, EmitsChangedSignal
from .message import Message, Variant
from .methodtype import MethodErr, MethodType
from .strings import Signature
from .utils import Annotations

__all__ = ["PropertiesChanged", "Property", "prop_dict"]

_DEPRECATED = "org.freedesktop.DBus.Deprecated"
_EMITS_ANNOTATION = "org.freedesktop.DBus.Property.EmitsChangedSignal"
_PROPERTIES_IFACE = "org.freedesktop.DBus.Properties"
_PROPERTIES_CHANGED = "PropertiesChanged"
_INDENT = "      "


@dataclass
class PropertiesChanged:
    """The arguments of one PropertiesChanged signal."""

    interface_name: str = ""
    changed_properties: dict = field(default_factory=dict)
    invalidated_properties: list = field(default_factory=list)


def prop_dict(props, minfo):
    """Return a name -> Variant dict for every readable property in ``props``.

    Write-only properties are skipped; an error from a getter is raised.
    """
    result = {}
    for prop in props:
        try:
            prop.can_get()
        except MethodErr:
            continue
        pinfo = minfo.to_prop_info(minfo.iface, prop)
        result[prop.name] = prop.get_as_variant(pinfo)
    return result


class Property:
    """A D-Bus property with a fixed type signature.

    A get handler is called as ``handler(pinfo)`` and returns the value.
    A set handler is called as ``handler(value, pinfo)``.
    """

    def __init__(self, name, signature, data=None, method_type=MethodType.FN):
        self.name = str(name)
        self.signature = Signature(signature)
        self.data = data
        self.method_type = MethodType(method_type)
        self.emits = EmitsChangedSignal.TRUE
        self.auto_emit = True
        self.rw = Access.READ
        self.annotations = Annotations()
        self._get_cb = None
        self._set_cb = None

    def __repr__(self):
        return f"Property({self.name!r}, {str(self.signature)!r})"

    def emits_changed(self, emits):
        """Set the change-signal behaviour; CONST makes the property read only."""
        self.emits = EmitsChangedSignal(emits)
        if self.emits is EmitsChangedSignal.CONST:
            self.rw = Access.READ
        return self

    def auto_emit_on_set(self, enabled):
        """Choose whether a remote Set produces a PropertiesChanged signal."""
        self.auto_emit = bool(enabled)
        return self

    def access(self, access):
        """Set the access mode; a writable CONST property becomes FALSE."""
        self.rw = Access(access)
        if self.rw is not Access.READ and self.emits is EmitsChangedSignal.CONST:
            self.emits = EmitsChangedSignal.FALSE
        return self

    def annotate(self, name, value):
        """Add an annotation; returns the property."""
        self.annotations.insert(name, value)
        return self

    def deprecated(self):
        """Mark the property as deprecated; returns the property."""
        return self.annotate(_DEPRECATED, "true")

    def on_get(self, handler):
        """Set the handler that returns the property's value."""
        self._get_cb = self.method_type.wrap(handler)
        return self

    def on_set(self, handler):
        """Set the handler that stores a new value for the property."""
        self._set_cb = self.method_type.wrap(handler)
        return self

    def default_get(self):
        """Use the property's associated data as its value."""
        self._get_cb = self.method_type.wrap(lambda pinfo: pinfo.prop.data)
        return self

    def can_get(self):
        """Raise MethodErr unless the property is readable."""
        if self.rw is Access.WRITE or self._get_cb is None:
            raise MethodErr.failed(f"Property {self.name} is write only")

    def get_as_variant(self, pinfo):
        """Call the get handler and return its value as a Variant."""
        if self._get_cb is None:
            raise RuntimeError(f"Property {self.name} has no get handler")
        return Variant(self._get_cb(pinfo), self.signature)

    def can_set(self, value=None):
        """Raise MethodErr unless the property is writable with ``value``'s type."""
        if (
            self.rw is Access.READ
            or self._set_cb is None
            or self.emits is EmitsChangedSignal.CONST
        ):
            raise MethodErr.ro_property(self.name)
        if value is not None:
            if not isinstance(value, Variant):
                raise MethodErr.invalid_arg(2)
            if value.signature != self.signature:
                raise MethodErr.failed(f"Property {self.name} cannot change type")

    def set_as_variant(self, value, pinfo):
        """Call the set handler; return a PropertiesChanged message or None."""
        if not isinstance(value, Variant):
            raise MethodErr.invalid_arg(2)
        if self._set_cb is None:
            raise RuntimeError(f"Property {self.name} has no set handler")
        self._set_cb(value.value, pinfo)
        return self._emits_changed_signal(pinfo)

    def add_propertieschanged(self, changes, iface, new_value):
        """Record this property's change in ``changes``, a list of PropertiesChanged.

        ``new_value`` is called only when the new value is to be sent.
        """
        if self.emits in (EmitsChangedSignal.CONST, EmitsChangedSignal.FALSE):
            return
        iface_name = str(iface)
        entry = next((c for c in changes if c.interface_name == iface_name), None)
        if entry is None:
            entry = PropertiesChanged(interface_name=iface_name)
            changes.append(entry)
        if self.emits is EmitsChangedSignal.INVALIDATES:
            entry.invalidated_properties.append(self.name)
        else:
            entry.changed_properties[self.name] = Variant(new_value(), self.signature)

    def _signal(self, pinfo):
        return Message.signal(
            pinfo.path.name, _PROPERTIES_IFACE, _PROPERTIES_CHANGED
        ).append(str(pinfo.iface.name))

    def _emits_changed_signal(self, pinfo):
        if not self.auto_emit:
            return None
        if self.emits is EmitsChangedSignal.FALSE:
            return None
        if self.emits is EmitsChangedSignal.CONST:
            raise MethodErr.ro_property(self.name)
        if self.emits is EmitsChangedSignal.TRUE:
            changed = prop_dict([self], pinfo.to_method_info())
            return self._signal(pinfo).append(changed, [])
        return self._signal(pinfo).append({}, [self.name])

    def xml_name(self):
        """The introspection element name."""
        return "property"

    def xml_params(self):
        """The type and access introspection attributes."""
        return f' type="{self.signature}" access="{self.rw.value}"'

    def xml_contents(self):
        """The annotations, including the change-signal behaviour when not the default."""
        if self.emits is EmitsChangedSignal.TRUE:
            return self.annotations.introspect(_INDENT)
        annotations = Annotations(dict(self.annotations.entries))
        annotations.insert(_EMITS_ANNOTATION, self.emits.value)
        return annotations.introspect(_INDENT)