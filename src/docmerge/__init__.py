"""Partial updates of JSON documents in a document store."""

__version__ = "1.0.0"
