"""Method and signal arguments, annotations, and their introspection XML."""

from dataclasses import dataclass, field

from .strings import Signature

__all__ = ["Argument", "Annotations", "introspect_args"]


@dataclass(frozen=True)
class Argument:
    """A D-Bus argument: an optional name and a type signature."""

    name: str = None
    signature: Signature = None

    def __post_init__(self):
        object.__setattr__(self, "signature", Signature(self.signature))

    @classmethod
    def from_spec(cls, spec):
        """Build an Argument from an Argument, a signature, or a (name, signature) pair."""
        if isinstance(spec, Argument):
            return spec
        if isinstance(spec, str):
            return cls(None, spec)
        if isinstance(spec, tuple) and len(spec) == 2:
            name, sig = spec
            return cls(None if name is None else str(name), sig)
        raise TypeError(f"cannot make an argument from {spec!r}")

    def introspect(self, indent, direction):
        """Return the <arg/> element for this argument."""
        name = "" if self.name is None else f'name="{self.name}" '
        return f'{indent}<arg {name}type="{self.signature}"{direction}/>\n'


def introspect_args(args, indent, direction):
    """Return the <arg/> elements for all ``args``."""
    return "".join(arg.introspect(indent, direction) for arg in args)


@dataclass
class Annotations:
    """Name/value annotations, introspected in name order."""

    entries: dict = field(default_factory=dict)

    def insert(self, name, value):
        """Set annotation ``name`` to ``value``."""
        self.entries[str(name)] = str(value)

    def introspect(self, indent):
        """Return the <annotation/> elements, sorted by name."""
        return "".join(
            f'{indent}<annotation name="{name}" value="{value}"/>\n'
            for name, value in sorted(self.entries.items())
        )