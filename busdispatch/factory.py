"""A factory for building trees, object paths, interfaces, methods and properties."""

from .leaves import Method, Signal
from .methodtype import MethodType
from .objectpath import IfaceCache, Interface, ObjectPath, Tree
from .properties import Property

__all__ = ["Factory"]


class Factory:
    """Creates tree items that share one handler kind and one interface cache.

    There are three kinds of factory:

    * ``new_fn`` - handlers are plain callables.
    * ``new_fnmut`` - handlers may keep state; calling one recursively raises.
    * ``new_sync`` - handlers may be called from several threads in parallel.
    """

    def __init__(self, method_type=MethodType.FN, ifacecache=None):
        self.method_type = MethodType(method_type)
        self.ifacecache = IfaceCache() if ifacecache is None else ifacecache

    def __repr__(self):
        return f"Factory({self.method_type.name})"

    @classmethod
    def new_fn(cls):
        """A factory for single-thread use."""
        return cls(MethodType.FN)

    @classmethod
    def new_fnmut(cls):
        """A factory whose handlers may mutate their own state."""
        return cls(MethodType.FN_MUT)

    @classmethod
    def new_sync(cls):
        """A factory for multi-thread use."""
        return cls(MethodType.SYNC)

    def method(self, name, data, handler):
        """Create a method whose handler is called with a MethodInfo."""
        return Method(name, self.method_type.wrap(handler), data)

    def method_sync(self, name, data, handler):
        """Create a method with a handler that suits every kind of factory."""
        return Method(name, self.method_type.wrap(handler), data)

    def property(self, name, signature, data=None):
        """Create a property with the given type signature."""
        return Property(name, signature, data, self.method_type)

    def signal(self, name, data=None):
        """Create a signal."""
        return Signal(name, data)

    def interface(self, name, data=None):
        """Create an interface."""
        return Interface(name, data)

    def object_path(self, name, data=None):
        """Create an object path sharing this factory's interface cache."""
        return ObjectPath(name, data, self.ifacecache, self.method_type)

    def tree(self, data=None):
        """Create an empty tree."""
        return Tree(data)