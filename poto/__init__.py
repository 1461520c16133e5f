"""Poto: concurrent media discovery, thumbnailing and in-memory indexing."""

__version__ = "0.1.0"
