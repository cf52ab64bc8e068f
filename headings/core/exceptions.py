"""
Heading validation errors.

All three are caller bugs (bad input reaching the core), raised at the
point of the offending call and never handled inside the package.
"""

from __future__ import annotations


class HeadingsError(Exception):
    """Base class for input validation failures."""


class InvalidHeading(HeadingsError, ValueError):
    """Raised when a heading is non-numeric or outside 01-36."""

    def __init__(self, heading: object):
        self.heading = heading
        super().__init__(f"Invalid heading: {heading!r}")


class InvalidFormat(HeadingsError, ValueError):
    """Raised when a 3-digit operation receives the wrong number of digits."""

    def __init__(self, heading: object, expected_length: int = 3):
        self.heading = heading
        self.expected_length = expected_length
        super().__init__(f"Expected {expected_length}-digit heading, got: {heading!r}")


class InvalidLevel(HeadingsError, ValueError):
    """Raised when a training level is outside 1-5."""

    def __init__(self, level: object):
        self.level = level
        super().__init__(f"Invalid level: {level!r}")
