"""
Birthdays maintained by hand in the configuration
"""

import logging
from datetime import date
from typing import Dict, List

from .dates import build_birth_date
from .errors import MalformedRecord
from .models import BirthdayPair

logger = logging.getLogger(__name__)


def collect_settings_birthdays(entries: List[Dict], today: date) -> List[BirthdayPair]:
    """Accept every entry with a name and a valid, non-future date"""
    birthdays = []

    for entry in entries or []:
        name = entry.get('name')
        if not name:
            continue

        try:
            birth_date = build_birth_date(entry.get('year'), entry.get('month'), entry.get('day'), today)
        except MalformedRecord as e:
            logger.warning(f"[settings] invalid birthday date: {name} ({e})")
            continue

        logger.debug(f"[settings] found birthday: {name} ({birth_date.year})")
        birthdays.append((name, birth_date))

    logger.debug(f"[settings] done, {len(birthdays)} birthdays")
    return birthdays
