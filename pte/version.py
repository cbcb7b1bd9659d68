"""Central version declaration for playlist-transfer-engine.

Update this file when cutting a new release tag. Keep semantic versioning.
CLI --version imports from here.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
