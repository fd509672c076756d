"""GatePass command line interface."""
from gatepass import __version__

__all__ = ["__version__"]
