"""Chunked parallel video upload client."""

__version__ = "0.1.0"
