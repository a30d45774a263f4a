"""
CardDAV source: birthdays from the BDAY property of contacts
"""

import logging
from datetime import date, datetime
from typing import List, Optional

import vobject

from .dates import build_birth_date
from .errors import MalformedDocument, MalformedRecord, SourceUnavailable
from .fetch import DEFAULT_TIMEOUT, fetch_text
from .models import BirthdayPair

logger = logging.getLogger(__name__)


class CardDAVSource:
    """Client for reading contacts with birthdays from a CardDAV export URL"""

    def __init__(self, server_url: Optional[str], username: Optional[str] = None,
                 password: Optional[str] = None, ignore_cert_errors: bool = False,
                 timeout: float = DEFAULT_TIMEOUT):
        self.server_url = (server_url or '').strip()
        self.username = username
        self.password = password
        self.ignore_cert_errors = ignore_cert_errors
        self.timeout = timeout

    def fetch_birthdays(self, today: date) -> List[BirthdayPair]:
        """Never raises - an unusable source yields an empty list"""
        if not self.server_url:
            logger.debug("[carddav] url not configured - skipped")
            return []

        logger.debug(f"[carddav] url: {self.server_url}")
        try:
            text = fetch_text(self.server_url, self.username, self.password,
                              self.ignore_cert_errors, self.timeout)
        except SourceUnavailable as e:
            logger.warning(f"[carddav] {e}")
            return []

        try:
            birthdays = parse_vcard_birthdays(text, today)
        except MalformedDocument as e:
            logger.error(f"[carddav] unable to parse vcard data: {e}")
            return []

        logger.debug("[carddav] done")
        return birthdays


def parse_vcard_birthdays(text: str, today: date) -> List[BirthdayPair]:
    """Extract (formatted name, birth date) pairs from a stream of vCards.

    The whole document is parsed before any contact is processed, so a
    broken payload yields nothing instead of a partial list.
    """
    if not text.strip():
        return []

    try:
        vcards = list(vobject.readComponents(text))
    except Exception as e:
        raise MalformedDocument(str(e)) from e

    logger.debug(f"[carddav] found {len(vcards)} contacts")

    birthdays = []
    for vcard in vcards:
        if vcard.name != 'VCARD':
            continue

        name = vcard.fn.value.strip() if hasattr(vcard, 'fn') else ''
        if not name:
            continue
        if not hasattr(vcard, 'bday'):
            logger.debug(f"[carddav] missing birthdate in contact: {name}")
            continue

        try:
            birth_date = parse_bday(vcard.bday.value, today)
        except MalformedRecord as e:
            logger.warning(f"[carddav] invalid birthdate: {name} ({e})")
            continue

        logger.debug(f"[carddav] found birthday: {name} ({birth_date.year})")
        birthdays.append((name, birth_date))

    return birthdays


def parse_bday(value, today: date) -> date:
    """Parse a BDAY value in YYYY-MM-DD or YYYYMMDD form, with or without a time part"""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return build_birth_date(value.year, value.month, value.day, today)

    bday_clean = str(value).strip().split('T')[0]

    if len(bday_clean) == 10 and bday_clean.count('-') == 2:
        year, month, day = bday_clean.split('-')
    elif len(bday_clean) == 8 and bday_clean.isdigit():
        year, month, day = bday_clean[:4], bday_clean[4:6], bday_clean[6:]
    else:
        raise MalformedRecord(f"unknown birthday format: {value}")

    return build_birth_date(year, month, day, today)
