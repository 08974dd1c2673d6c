"""Inkwell - publish content to GitHub repositories through a GitHub App."""

__version__ = "0.1.0"
