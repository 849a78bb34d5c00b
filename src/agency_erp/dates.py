"""Date helpers using Indonesian month names."""

from __future__ import annotations

from datetime import date

MONTHS_ID = (
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
)


def month_label(day: date) -> str:
    """``Januari 2025`` style label."""
    return f"{MONTHS_ID[day.month - 1]} {day.year}"


def format_long_date(day: date) -> str:
    """``05 Januari 2025`` style date."""
    return f"{day.day:02d} {month_label(day)}"


def iso_week(day: date) -> int:
    return day.isocalendar()[1]
