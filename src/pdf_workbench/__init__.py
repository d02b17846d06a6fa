"""Merge, split, rotate and annotate PDF documents."""

__version__ = "0.1.0"
