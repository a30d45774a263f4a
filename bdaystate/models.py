from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Tuple

from .dates import (
    DEFAULT_LEAP_DAY_RULE,
    compute_age,
    days_left,
    milestone_occurrence,
    next_occurrence,
)

DEFAULT_DATE_FORMAT = '%d.%m.%Y'

# (name, birth date) as returned by every source
BirthdayPair = Tuple[str, date]


@dataclass(frozen=True)
class BirthdayRecord:
    name: str
    birth_date: date
    next_occurrence: date
    age: int
    days_left: int
    date_format: str

    @property
    def birth_year(self) -> int:
        return self.birth_date.year

    def to_published(self) -> Dict:
        """Public shape written to the store; the internal dates stay private"""
        return {
            'name': self.name,
            'birthYear': self.birth_year,
            'dateFormat': self.date_format,
            'age': self.age,
            'daysLeft': self.days_left,
        }


def build_records(name: str, birth_date: date, today: date,
                  date_format: str = DEFAULT_DATE_FORMAT,
                  leap_day_rule: str = DEFAULT_LEAP_DAY_RULE) -> Tuple[BirthdayRecord, BirthdayRecord]:
    """Regular and milestone record for one person"""
    occurrence = next_occurrence(birth_date, today, leap_day_rule)
    age = compute_age(birth_date, occurrence)
    regular = BirthdayRecord(
        name=name,
        birth_date=birth_date,
        next_occurrence=occurrence,
        age=age,
        days_left=days_left(today, occurrence),
        date_format=occurrence.strftime(date_format),
    )

    significant_occurrence = milestone_occurrence(birth_date, occurrence, age, leap_day_rule)
    significant = BirthdayRecord(
        name=name,
        birth_date=birth_date,
        next_occurrence=significant_occurrence,
        age=compute_age(birth_date, significant_occurrence),
        days_left=days_left(today, significant_occurrence),
        date_format=significant_occurrence.strftime(date_format),
    )
    return regular, significant


def sort_by_days_left(records: List[BirthdayRecord]) -> List[BirthdayRecord]:
    # sorted() is stable, equal days keep source order
    return sorted(records, key=lambda record: record.days_left)
