"""class-prune: find the Java types that only the deletion targets use."""

__version__ = "0.1.0"
