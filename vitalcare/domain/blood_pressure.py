"""
Blood pressure is persisted as a single "systolic/diastolic" string for
compatibility with the surrounding system. These helpers are the only place
that string is built or taken apart.
"""

import re

# Each half is at most three digits in the persisted form
MAX_PRESSURE = 999

_PATTERN = re.compile(r"^\s*(\d{1,3})\s*/\s*(\d{1,3})\s*$")


def parse_blood_pressure(value: str | None) -> tuple[int, int] | None:
    """Split "120/80" into (120, 80).

    Returns None for a missing or malformed value so readers treat it as
    absent; a malformed reading is never turned into zeros.
    """
    if not value or not isinstance(value, str):
        return None
    match = _PATTERN.match(value)
    if match is None:
        return None
    systolic, diastolic = int(match.group(1)), int(match.group(2))
    if systolic == 0 or diastolic == 0:
        return None
    return systolic, diastolic


def format_blood_pressure(systolic: int, diastolic: int) -> str:
    """Build the persisted form.

    Raises:
        ValueError: a half that `parse_blood_pressure` could not read back.
    """
    for half in (systolic, diastolic):
        if not 1 <= half <= MAX_PRESSURE:
            raise ValueError(
                f"blood pressure values must be between 1 and {MAX_PRESSURE}, got {half}"
            )
    return f"{systolic}/{diastolic}"
