"""Embedding similarity search: exact, LSH and proximity-graph indices."""

__version__ = "0.1.0"
