"""Handle critic: flags for/foreach loops that slurp file handles."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("handle-critic")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = ["__version__"]
