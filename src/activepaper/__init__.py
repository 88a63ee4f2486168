"""activepaper - persistence and knowledge layer for an AI reading companion."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("activepaper")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]
