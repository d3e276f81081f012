"""Text helpers for the report and status output."""

import math


def strip_newlines_and_tabs(s: str) -> str:
    return s.replace("\t", "").replace("\n", "")


def truncate_with_ellipsis(s: str, length: int) -> str:
    """Truncate on word boundaries, appending an ellipsis when cut."""
    words = s.split()
    kept: list[str] = []
    used = 0
    for word in words:
        if used + len(word) > length:
            return " ".join(kept) + " …" if kept else "…"
        kept.append(word)
        used += len(word) + 1
    return " ".join(kept)


def decimal_hours_to_string(decimal_hours: float) -> str:
    """1.5 -> '01h 30m', 0.25 -> '    15m'."""
    hours = math.floor(decimal_hours)
    minutes = round((decimal_hours - hours) * 60)
    if minutes == 60:
        hours, minutes = hours + 1, 0
    if hours == 0:
        return f"    {minutes:02d}m"
    return f"{hours:02d}h {minutes:02d}m"
