# utilities/display.py
"""Common display formatting utilities for search reports."""

from datetime import timedelta
from typing import Any, Dict, Iterable

__all__ = ["format_banner", "format_config_items", "format_rate", "format_duration", "format_solutions"]


def format_banner(title: str, width: int = 100, style: str = "═") -> str:
    """Create a formatted banner with title and separator line.

    Args:
        title: Banner title text
        width: Total width of the banner
        style: Character to use for separator line (═, ━, —, -, etc.)

    Returns:
        Formatted banner string with title and separator

    Examples:
        >>> print(format_banner("Phase 1", width=10, style="─"))
        Phase 1
        ──────────
    """
    return f"{title}\n{style * width}"


def format_config_items(items: Dict[str, Any], indent: str = "") -> str:
    """Align "key: value" lines on the longest key.

    Examples:
        >>> print(format_config_items({"N": 10, "Workers": 4}))
        N:       10
        Workers: 4
    """
    if not items:
        return ""
    max_key_len = max(len(str(k)) for k in items)
    lines = []
    for key, value in items.items():
        padding = " " * (max_key_len - len(str(key)))
        lines.append(f"{indent}{key}:{padding} {value}")
    return "\n".join(lines)


def format_rate(count: int, elapsed_seconds: float, unit: str = "items") -> str:
    """Format a processing rate.

    Examples:
        >>> format_rate(10000, 2.5, "candidates")
        '4,000 candidates/sec'
    """
    if elapsed_seconds <= 0:
        return f"0 {unit}/sec"

    rate = count / elapsed_seconds

    if rate >= 1000:
        return f"{rate:,.0f} {unit}/sec"
    elif rate >= 10:
        return f"{rate:.1f} {unit}/sec"
    else:
        return f"{rate:.2f} {unit}/sec"


def format_duration(seconds: float) -> str:
    """Render seconds as H:MM:SS.mmm.

    Examples:
        >>> format_duration(3723.5)
        '1:02:03.500'
    """
    td = timedelta(seconds=max(0.0, seconds))
    whole = timedelta(seconds=int(td.total_seconds()))
    millis = int(round((td.total_seconds() - int(td.total_seconds())) * 1000))
    if millis == 1000:
        whole += timedelta(seconds=1)
        millis = 0
    return f"{whole}.{millis:03d}"


def format_solutions(solutions: Iterable[int]) -> str:
    """Comma-separated solution list, or "none"."""
    text = ", ".join(str(s) for s in solutions)
    return text or "none"
