"""Insertion-order (IO) number extraction.

Order names start with a 7-digit IO number, sometimes two slash-separated
IOs covering the same campaign: ``"2001567/2001103: MJ: Mankind-..."``.
"""

import re

_IO_PATTERN = re.compile(r"^(\d{7})(?:/(\d{7}))?")
_IO_NUMBER = re.compile(r"^\d{7}$")


def extract_io_numbers(campaign_name: str | None) -> list[str]:
    """IO numbers in the order they appear (one or two)."""
    if not campaign_name:
        return []
    match = _IO_PATTERN.match(campaign_name)
    if match is None:
        return []
    return [number for number in match.groups() if number]


def extract_io_number(campaign_name: str | None) -> str | None:
    """Single IO number; the larger one when two are present."""
    numbers = extract_io_numbers(campaign_name)
    if not numbers:
        return None
    return max(numbers, key=int)


def io_display_format(campaign_name: str | None) -> str | None:
    """IO numbers as written: ``"2001567"`` or ``"2001567/2001568"``."""
    numbers = extract_io_numbers(campaign_name)
    return "/".join(numbers) if numbers else None


def is_valid_io_number(value: str) -> bool:
    return bool(_IO_NUMBER.match(value))
