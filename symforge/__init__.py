"""symforge - content-addressed synthetic symbol forge."""

__version__ = "0.1.0"
