"""FloresYa flower shop backend."""

__version__ = "1.0.0"
