"""Reconcile declarative identity platform configuration with a live tenant."""

__version__ = "0.1.0"
