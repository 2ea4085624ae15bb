"""
Client facade module.

The Ship class: credentials, configuration, platform limits and every API
operation behind one object.
"""

from .client import Ship

__all__ = ["Ship"]
