"""Presentation helpers for turning datetimes into speakable phrases.

Text-to-speech engines read digits inconsistently ("3:05" can come out as
"three oh five" or "three hundred five"), so times handed to the voice agent
are spelled out in words.
"""

from __future__ import annotations

from datetime import datetime


_WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_ONES = (
    "zero",
    "one",
    "two",
    "three",
    "four",
    "five",
    "six",
    "seven",
    "eight",
    "nine",
    "ten",
    "eleven",
    "twelve",
    "thirteen",
    "fourteen",
    "fifteen",
    "sixteen",
    "seventeen",
    "eighteen",
    "nineteen",
)
_TENS = ("", "", "twenty", "thirty", "forty", "fifty")


def number_to_words(n: int) -> str:
    """Spell 0-59 in English words; anything else falls back to digits.

    Examples:
        7 -> "seven"
        30 -> "thirty"
        45 -> "forty five"
        75 -> "75"
    """
    if 0 <= n < 20:
        return _ONES[n]
    if 20 <= n < 60:
        tens, ones = divmod(n, 10)
        if ones:
            return f"{_TENS[tens]} {_ONES[ones]}"
        return _TENS[tens]
    # Not reachable for valid minutes or days of month
    return str(n)


def format_for_voice(value: datetime) -> str:
    """Render a datetime as "<Weekday> <Month> <day> at <hour>[ <minute>] <AM|PM>".

    Uses the datetime's own wall clock; convert to the business timezone first.

    Examples:
        2026-10-19 15:00 -> "Monday October nineteen at three PM"
        2026-10-21 09:30 -> "Wednesday October twenty one at nine thirty AM"
    """
    hour = value.hour
    period = "AM" if hour < 12 else "PM"
    hour12 = 12 if hour == 0 else hour - 12 if hour > 12 else hour

    if value.minute == 0:
        time_str = f"{number_to_words(hour12)} {period}"
    else:
        time_str = f"{number_to_words(hour12)} {number_to_words(value.minute)} {period}"

    weekday = _WEEKDAYS[value.weekday()]
    month = _MONTHS[value.month - 1]
    return f"{weekday} {month} {number_to_words(value.day)} at {time_str}"
