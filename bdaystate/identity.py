"""
Identity keys and storage paths for birthday entries
"""

import re

MONTH_ROOT = 'month'

# month.MM.<key> - only person channels, not the month channels themselves
PERSON_PATH_PATTERN = re.compile(r'^month\.[0-9]{2}\..+$')


def identity_key(name: str) -> str:
    """Turn a display name into a storage-safe camelCase key.

    ``"Jean-Luc  Picard"`` becomes ``"jeanLucPicard"``. Letters and digits
    of any script are kept, everything else (including ``²`` or ``½``)
    separates words.
    """
    key = name.strip()
    # letters and decimal digits only, not every numeric character
    key = ''.join(ch if ch.isalpha() or ch.isdecimal() else '_' for ch in key)
    key = key.strip('_')
    key = re.sub(r'_+', '_', key)
    key = key.lower()
    return re.sub(r'_([a-z])', lambda m: m.group(1).upper(), key)


def month_path(month: int) -> str:
    return f"{MONTH_ROOT}.{month:02d}"


def person_path(month: int, name: str) -> str:
    """Storage path of a person, empty string when the name has no usable characters"""
    key = identity_key(name)
    if not key:
        return ''
    return f"{month_path(month)}.{key}"


def is_person_path(path: str) -> bool:
    return bool(PERSON_PATH_PATTERN.match(path))
