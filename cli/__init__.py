"""Command line interface for the anomaly correlator."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    # ``cli.app`` stays the module so tests can patch names on it.
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)


__all__ = []
