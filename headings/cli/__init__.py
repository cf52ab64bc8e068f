"""Command-line interface for the reciprocal headings trainer."""

from .main import app, main

__all__ = ["app", "main"]
