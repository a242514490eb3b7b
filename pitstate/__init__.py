"""Disposable, deterministic backing services for integration tests."""

__version__ = "0.1.0"
