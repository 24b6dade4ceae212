"""Method dispatch, introspection and property handling for D-Bus style object trees."""

__version__ = "0.1.0"