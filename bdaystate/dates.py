"""
Date arithmetic for birthdays: next occurrence, age and next milestone
"""

import calendar
import math
from datetime import date

from .errors import MalformedRecord

LEAP_DAY_RULES = ("feb28", "mar1")
DEFAULT_LEAP_DAY_RULE = "feb28"


def shift_years(birth_date: date, years: int, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> date:
    """Same month/day as ``birth_date``, ``years`` later.

    Feb 29 in a non-leap target year becomes Feb 28 or Mar 1 depending on
    ``leap_day_rule``.
    """
    year = birth_date.year + years
    if birth_date.month == 2 and birth_date.day == 29 and not calendar.isleap(year):
        if leap_day_rule == "feb28":
            return date(year, 2, 28)
        if leap_day_rule == "mar1":
            return date(year, 3, 1)
        raise ValueError(f"Unsupported leap day rule: {leap_day_rule}")
    return birth_date.replace(year=year)


def next_occurrence(birth_date: date, today: date, leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> date:
    """First occurrence of the birthday on or after ``today``"""
    occurrence = shift_years(birth_date, today.year - birth_date.year, leap_day_rule)
    if occurrence < today:
        occurrence = shift_years(birth_date, today.year + 1 - birth_date.year, leap_day_rule)
    return occurrence


def compute_age(birth_date: date, occurrence: date) -> int:
    return occurrence.year - birth_date.year


def days_left(today: date, occurrence: date) -> int:
    return (occurrence - today).days


def milestone_age(age: int) -> int:
    return math.ceil(age / 10) * 10


def milestone_occurrence(birth_date: date, occurrence: date, age: int,
                         leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> date:
    """Occurrence of the next birthday whose age is a multiple of ten"""
    target = milestone_age(age)
    if target > age:
        return shift_years(birth_date, target, leap_day_rule)
    return occurrence


def build_birth_date(year, month, day, today: date) -> date:
    """Validate raw year/month/day values coming from a source.

    Raises MalformedRecord for non-numeric parts, impossible dates and
    birth years after the current year.
    """
    try:
        birth_date = date(int(year), int(month), int(day))
    except (TypeError, ValueError) as e:
        raise MalformedRecord(f"invalid date {year}-{month}-{day}: {e}") from e

    if birth_date.year > today.year:
        raise MalformedRecord(f"birth year {birth_date.year} is in the future")
    return birth_date
