"""Display helpers shared by reports."""

from .display import format_banner, format_config_items, format_rate, format_duration, format_solutions

__all__ = ["format_banner", "format_config_items", "format_rate", "format_duration", "format_solutions"]
