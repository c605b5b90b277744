"""Utility modules."""

from agent_calendar.utils.presentation import format_for_voice, number_to_words

__all__ = [
    "format_for_voice",
    "number_to_words",
]
