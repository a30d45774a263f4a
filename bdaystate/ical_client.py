"""
iCalendar source: birthday events from a URL or a local .ics file
"""

import logging
import os
from datetime import date, datetime
from typing import List, Optional

import vobject

from .dates import build_birth_date
from .errors import MalformedDocument, MalformedRecord, SourceUnavailable
from .fetch import DEFAULT_TIMEOUT, fetch_text, is_http_url
from .models import BirthdayPair

logger = logging.getLogger(__name__)


class ICalSource:
    """Reads birthdays from VEVENTs whose description holds the birth year"""

    def __init__(self, locator: Optional[str], username: Optional[str] = None,
                 password: Optional[str] = None, ignore_cert_errors: bool = False,
                 timeout: float = DEFAULT_TIMEOUT):
        self.locator = (locator or '').strip()
        self.username = username
        self.password = password
        self.ignore_cert_errors = ignore_cert_errors
        self.timeout = timeout

    def fetch_birthdays(self, today: date) -> List[BirthdayPair]:
        """Never raises - an unusable source yields an empty list"""
        if not self.locator:
            logger.debug("[ical] url not configured - skipped")
            return []

        logger.debug(f"[ical] url/path: {self.locator}")
        text = self._load()
        if not text:
            return []

        try:
            return parse_ical_birthdays(text, today)
        except MalformedDocument as e:
            logger.error(f"[ical] unable to parse ical data (invalid file format?): {e}")
            return []

    def _load(self) -> Optional[str]:
        if is_http_url(self.locator):
            logger.debug("[ical] looks like an http url, performing get request")
            try:
                return fetch_text(self.locator, self.username, self.password,
                                  self.ignore_cert_errors, self.timeout)
            except SourceUnavailable as e:
                logger.warning(f"[ical] {e}")
                return None

        if not os.path.exists(self.locator):
            logger.error(f"[ical] local file \"{self.locator}\" doesn't exist")
            return None

        try:
            with open(self.locator, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"[ical] error when loading local file \"{self.locator}\": {e}")
            return None


def parse_ical_birthdays(text: str, today: date) -> List[BirthdayPair]:
    """Extract (summary, birth date) pairs from an iCalendar document.

    Raises MalformedDocument if the document itself cannot be parsed; single
    unusable events are logged and skipped.
    """
    try:
        calendar = vobject.readOne(text)
    except Exception as e:
        raise MalformedDocument(str(e)) from e

    if calendar.name != 'VCALENDAR':
        raise MalformedDocument(f"expected VCALENDAR, got {calendar.name}")

    events = calendar.contents.get('vevent', [])
    logger.debug(f"[ical] found {len(events)} events")

    birthdays = []
    for event in events:
        try:
            name, birth_date = _event_birthday(event, today)
        except MalformedRecord as e:
            logger.warning(f"[ical] skipping event: {e}")
            continue

        logger.debug(f"[ical] found birthday: {name} ({birth_date.year})")
        birthdays.append((name, birth_date))

    logger.debug("[ical] processed all events")
    return birthdays


def _event_birthday(event, today: date) -> BirthdayPair:
    name = event.summary.value.strip() if hasattr(event, 'summary') else ''
    if not name:
        raise MalformedRecord("event without summary")

    if not hasattr(event, 'description'):
        raise MalformedRecord(f"missing birth year in event: {name}")
    try:
        birth_year = int(str(event.description.value).strip())
    except ValueError as e:
        raise MalformedRecord(f"description of {name} is not a birth year") from e

    if not hasattr(event, 'dtstart'):
        raise MalformedRecord(f"event without start date: {name}")
    start = event.dtstart.value
    if isinstance(start, datetime):
        start = start.astimezone().date() if start.tzinfo else start.date()
    if not isinstance(start, date):
        raise MalformedRecord(f"unreadable start date in event: {name}")

    try:
        return name, build_birth_date(birth_year, start.month, start.day, today)
    except MalformedRecord as e:
        raise MalformedRecord(f"invalid birthday date: {name} ({e})") from e
