"""Utility functions package."""

from lifequest.utils.formatting import (
    format_amount,
    format_coins,
    format_number,
    format_progress,
    period_label,
    progress_bar,
)

__all__ = [
    "format_number",
    "format_amount",
    "format_progress",
    "progress_bar",
    "format_coins",
    "period_label",
]
