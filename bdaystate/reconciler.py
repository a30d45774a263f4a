"""
Publishes computed birthdays to the state store and removes stale entries
"""

import calendar
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from .identity import MONTH_ROOT, is_person_path, month_path, person_path
from .models import DEFAULT_DATE_FORMAT, BirthdayRecord, sort_by_days_left
from .store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_TEXT_TEMPLATE = '%n (%a)'
DEFAULT_SEPARATOR = ', '

# field -> (display name, value type, role)
PERSON_FIELDS = {
    'name': ('Name', 'string', 'text'),
    'age': ('Age', 'number', 'value'),
    'day': ('Day of month', 'number', 'value'),
    'year': ('Birth year', 'number', 'value'),
    'daysLeft': ('Days left', 'number', 'value'),
}

ROLLUP_FIELDS = {
    'json': ('Birthdays as JSON', 'string', 'json'),
    'daysLeft': ('Days left', 'number', 'value'),
    'text': ('Birthdays as text', 'string', 'text'),
    'date': ('Date', 'number', 'date'),
    'dateFormat': ('Formatted date', 'string', 'text'),
}

ROLLUP_GROUPS = {
    'next': 'Next birthday',
    'nextAfter': 'Birthday after next',
    'nextSignificant': 'Next significant birthday',
}


def _state_object(name: str, value_type: str, role: str) -> Dict:
    return {
        'type': 'state',
        'common': {
            'name': name,
            'type': value_type,
            'role': role,
            'read': True,
            'write': False,
        },
        'native': {},
    }


def _channel_object(name: str) -> Dict:
    return {'type': 'channel', 'common': {'name': name}, 'native': {}}


@dataclass
class ReconcileReport:
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)


class BirthdayReconciler:
    """Diffs the computed birthdays against the store and publishes rollups"""

    def __init__(self, store: StateStore, text_template: str = DEFAULT_TEXT_TEMPLATE,
                 separator: str = DEFAULT_SEPARATOR, today: Optional[date] = None,
                 date_format: str = DEFAULT_DATE_FORMAT):
        self.store = store
        self.text_template = text_template
        self.separator = separator
        self.today = today or date.today()
        self.date_format = date_format

    def reconcile(self, birthdays: List[BirthdayRecord],
                  significant: List[BirthdayRecord]) -> ReconcileReport:
        report = ReconcileReport()
        self._ensure_static_objects()

        birthdays = sort_by_days_left(birthdays)
        significant = sort_by_days_left(significant)

        self.store.set_state_changed('summary.json', self._to_json(birthdays))
        self.store.set_state_changed('summary.jsonSignificant', self._to_json(significant))

        existing = [path for path in self.store.list_channels(MONTH_ROOT) if is_person_path(path)]
        keep = set()

        for record in birthdays:
            path = person_path(record.birth_date.month, record.name)
            if not path:
                logger.warning(f"[reconcile] no usable characters in name \"{record.name}\", not stored per person")
                continue
            if path in keep:
                logger.warning(f"[reconcile] {path} is used by more than one birthday, last one wins")
            keep.add(path)

            is_new = path not in existing
            changed = self._fill_person(path, record)
            if is_new:
                if path not in report.added:
                    logger.debug(f"[reconcile] birthday added: {path}")
                    report.added.append(path)
            elif changed and path not in report.updated:
                report.updated.append(path)

        for path in existing:
            if path not in keep:
                self.store.delete_object(path, recursive=True)
                logger.debug(f"[reconcile] birthday deleted: {path}")
                report.deleted.append(path)

        if birthdays:
            next_days_left = birthdays[0].days_left
            self._fill_rollup('next', birthdays, next_days_left)

            later = [record for record in birthdays if record.days_left > next_days_left]
            if later:
                self._fill_rollup('nextAfter', birthdays, later[0].days_left)

        if significant:
            self._fill_rollup('nextSignificant', significant, significant[0].days_left)

        logger.info(
            f"Reconciled {len(birthdays)} birthdays: {len(report.added)} added, "
            f"{len(report.updated)} updated, {len(report.deleted)} deleted"
        )
        return report

    def format_text(self, records: List[BirthdayRecord]) -> str:
        texts = [
            self.text_template.replace('%n', record.name, 1).replace('%a', str(record.age), 1)
            for record in records
        ]
        return self.separator.join(texts)

    def _ensure_static_objects(self):
        for month in range(1, 13):
            self.store.set_object_not_exists(month_path(month), _channel_object(calendar.month_name[month]))

        self.store.set_object_not_exists('summary', _channel_object('Summary'))
        self.store.set_object_not_exists('summary.json', _state_object('Birthdays as JSON', 'string', 'json'))
        self.store.set_object_not_exists(
            'summary.jsonSignificant', _state_object('Significant birthdays as JSON', 'string', 'json')
        )

        for group, group_name in ROLLUP_GROUPS.items():
            self.store.set_object_not_exists(group, _channel_object(group_name))
            for key, (name, value_type, role) in ROLLUP_FIELDS.items():
                self.store.set_object_not_exists(f"{group}.{key}", _state_object(name, value_type, role))

    def _fill_person(self, path: str, record: BirthdayRecord) -> bool:
        logger.debug(f"[reconcile] path: \"{path}\", birthday: {record.to_published()}")

        self.store.set_object_not_exists(path, _channel_object(record.name))

        values = {
            'name': record.name,
            'age': record.age,
            'day': record.birth_date.day,
            'year': record.birth_year,
            'daysLeft': record.days_left,
        }

        changed = False
        for key, value in values.items():
            name, value_type, role = PERSON_FIELDS[key]
            self.store.set_object_not_exists(f"{path}.{key}", _state_object(name, value_type, role))
            if self.store.set_state_changed(f"{path}.{key}", value):
                changed = True
        return changed

    def _fill_rollup(self, group: str, records: List[BirthdayRecord], days_left: int):
        logger.debug(f"[reconcile] filling {group} with {days_left} days left")

        matching = [record for record in records if record.days_left == days_left]
        occurrence = self.today + timedelta(days=days_left)
        timestamp = int(datetime.combine(occurrence, time.min).timestamp() * 1000)

        self.store.set_state_changed(f"{group}.json", self._to_json(matching))
        self.store.set_state_changed(f"{group}.daysLeft", days_left)
        self.store.set_state_changed(f"{group}.text", self.format_text(matching))
        self.store.set_state_changed(f"{group}.date", timestamp)
        self.store.set_state_changed(f"{group}.dateFormat", occurrence.strftime(self.date_format))

    @staticmethod
    def _to_json(records: List[BirthdayRecord]) -> str:
        return json.dumps([record.to_published() for record in records], ensure_ascii=False)
