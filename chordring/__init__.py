"""Chord ring members over XML-RPC, HTTPS file transfer, and sharding helpers."""

__version__ = "0.1.0"
__all__ = ["__version__"]