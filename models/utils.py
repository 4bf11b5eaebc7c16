"""Utility functions for Tradfri Control.

This module contains helper functions used across the application:
- validate_brightness / validate_color / validate_operation: Input checks run before transmission
- format_light_line: One-line description of a light
- parse_selection: Parse "1,3-4" style menu selections
- similarity_score: Canonical fuzzy string matching algorithm
- find_similar_strings: Find similar strings using fuzzy matching
"""

import re

from core.exceptions import InvalidArgument
from models.accessory import WHITE_SPECTRUM_PALETTE, LightOperation, Spectrum
from models.types import DeviceData

HEX_COLOR_PATTERN = re.compile(r'[0-9A-Fa-f]{6}')


def validate_brightness(value: int) -> None:
    """Raise InvalidArgument unless value is an integer between 0 and 100."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"Brightness must be an integer, got {value!r}")
    if not 0 <= value <= 100:
        raise InvalidArgument(f"Brightness must be between 0 and 100, got {value}")


def validate_hex_color(value: str) -> None:
    if not isinstance(value, str) or not HEX_COLOR_PATTERN.fullmatch(value):
        raise InvalidArgument(f"Colour must be a 6-digit hex value, got {value!r}")


def validate_color(value: str, spectrum: Spectrum) -> None:
    """Check a colour value against what a light of the given spectrum accepts.

    Args:
        value: Colour value requested by the caller
        spectrum: Colour capability of the target light

    Raises:
        InvalidArgument: If the light cannot display the colour
    """
    if spectrum == Spectrum.RGB:
        validate_hex_color(value)
    elif spectrum == Spectrum.WHITE:
        if not isinstance(value, str) or value.lower() not in WHITE_SPECTRUM_PALETTE:
            allowed = ', '.join(WHITE_SPECTRUM_PALETTE)
            raise InvalidArgument(f"White spectrum lights accept one of {allowed}, got {value!r}")
    else:
        raise InvalidArgument("This light does not support colours")


def validate_operation(operation: LightOperation) -> None:
    """Validate a single sequence step before anything is sent."""
    if not isinstance(operation, LightOperation):
        raise InvalidArgument(f"Expected a LightOperation, got {type(operation).__name__}")
    if operation.brightness is not None:
        validate_brightness(operation.brightness)
    if operation.color is not None:
        validate_hex_color(operation.color)


def format_light_line(data: DeviceData) -> str:
    """Format light data as 'Name (#id) - spectrum'."""
    return f"{data['name']} (#{data['deviceId']}) - {data['spectrum']}"


def parse_selection(text: str, count: int) -> list[int]:
    """Parse a 1-based menu selection such as "1,3-4" into 0-based indexes.

    Args:
        text: Comma separated numbers and ranges
        count: Number of items in the menu

    Returns:
        Sorted list of unique 0-based indexes

    Raises:
        InvalidArgument: If the text is malformed or out of range
    """
    indexes = set()
    for part in text.split(','):
        part = part.strip()
        if not part:
            continue
        try:
            if '-' in part:
                start_text, end_text = part.split('-', 1)
                start, end = int(start_text), int(end_text)
            else:
                start = end = int(part)
        except ValueError:
            raise InvalidArgument(f"Invalid selection: {part}") from None
        if start > end or start < 1 or end > count:
            raise InvalidArgument(f"Selection out of range: {part}")
        indexes.update(range(start - 1, end))

    if not indexes:
        raise InvalidArgument("Nothing selected")
    return sorted(indexes)


def similarity_score(s1: str, s2: str) -> int:
    """Calculate similarity score between two strings.

    This is the canonical implementation used throughout the application
    for fuzzy matching (command typo suggestions, light name matching).

    Args:
        s1: First string to compare
        s2: Second string to compare

    Returns:
        Similarity score:
        - 100: Exact match (case-insensitive)
        - 80: Prefix match
        - 60: Substring match
        - 0-50: Character sequence match (proportional to matching characters)
        - 0: No match
    """
    s1_lower = s1.lower()
    s2_lower = s2.lower()

    if s1_lower == s2_lower:
        return 100

    if s2_lower.startswith(s1_lower) or s1_lower.startswith(s2_lower):
        return 80

    if s1_lower in s2_lower or s2_lower in s1_lower:
        return 60

    # Character sequence matching
    matches = 0
    j = 0
    for char in s1_lower:
        while j < len(s2_lower):
            if s2_lower[j] == char:
                matches += 1
                j += 1
                break
            j += 1

    if matches > 0:
        score = int((matches / max(len(s1_lower), len(s2_lower))) * 50)
        return score if score > 20 else 0

    return 0


def find_similar_strings(target: str, candidates: list[str], limit: int = 5) -> list[str]:
    """Find similar strings, most similar first.

    Args:
        target: The string to match against
        candidates: List of candidate strings to search
        limit: Maximum number of results to return
    """
    scored = [(candidate, similarity_score(target, candidate)) for candidate in candidates]
    filtered = [(c, s) for c, s in scored if s > 0]
    sorted_matches = sorted(filtered, key=lambda x: x[1], reverse=True)

    return [c for c, s in sorted_matches[:limit]]
