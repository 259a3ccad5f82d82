"""Retrieval-augmented question answering over uploaded PDF documents."""

__version__ = "0.1.0"
