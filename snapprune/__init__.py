"""
snapprune - tiered backup snapshot rotation

Decides which backup snapshots are redundant under a layered retention policy.
"""

try:
    from importlib.metadata import version

    __version__ = version("snapprune")
except Exception:
    __version__ = "0.0.0"  # Fallback for development
