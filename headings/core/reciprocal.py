"""
Reciprocal and direction lookups.

Reciprocal rule: n + 18 if n <= 18 else n - 18, zero padded.
Direction and wedge lookups key on the first two characters so that
3-digit precision stimuli resolve to their base heading.
"""

from __future__ import annotations

from headings.core.compass import HEADING_PACKETS, CompassDirection, HeadingPacket
from headings.core.exceptions import InvalidFormat, InvalidHeading


def _parse_heading(heading: str) -> int:
    if not isinstance(heading, str) or len(heading) != 2:
        raise InvalidHeading(heading)
    if not (heading.isascii() and heading.isdigit()):
        raise InvalidHeading(heading)
    value = int(heading)
    if value < 1 or value > 36:
        raise InvalidHeading(heading)
    return value


def reciprocal(heading: str) -> str:
    """
    Calculate the reciprocal of a heading (01-36).

    Args:
        heading: Heading string, e.g. "04"

    Returns:
        Zero-padded reciprocal, e.g. "22"

    Raises:
        InvalidHeading: If heading is not two ASCII digits in 01-36
    """
    n = _parse_heading(heading)
    result = n + 18 if n <= 18 else n - 18
    return f"{result:02d}"


def reciprocal_with_ones(heading: str) -> str:
    """
    Calculate the reciprocal of a 3-digit precision heading.

    The leading two digits are reciprocated; the ones digit passes
    through unchanged ("047" -> "227").

    Raises:
        InvalidFormat: If heading is not exactly 3 characters
        InvalidHeading: If the leading two digits are not a valid heading
    """
    if not isinstance(heading, str) or len(heading) != 3:
        raise InvalidFormat(heading)
    ones = heading[2]
    if not (ones.isascii() and ones.isdigit()):
        raise InvalidHeading(heading)
    return reciprocal(heading[:2]) + ones


def _packet(heading: str) -> HeadingPacket:
    if not isinstance(heading, str):
        raise InvalidHeading(heading)
    packet = HEADING_PACKETS.get(heading[:2])
    if packet is None:
        raise InvalidHeading(heading)
    return packet


def direction(heading: str) -> CompassDirection:
    """Look up the compass direction for a 2- or 3-digit heading."""
    return _packet(heading).direction


def wedge_id(heading: str) -> int:
    """Look up the wedge id (0-7) for a 2- or 3-digit heading."""
    return _packet(heading).wedge_id


def base_heading(heading: str) -> str:
    """Strip a precision ones digit, validating the 2-digit base."""
    return _packet(heading).id
