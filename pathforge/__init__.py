"""
PathForge: origin/output path manifests for incremental file-watching builds.

Tracks where every authored source file ends up in the build output and
persists that mapping with debounced snapshot writes.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
