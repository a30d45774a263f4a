"""
Configuration management and environment validation
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, List

from .dates import LEAP_DAY_RULES

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes')


def setup_logging():
    """Setup logging configuration from environment variables"""
    log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_to_file = _env_flag('LOG_TO_FILE')
    debug_mode = _env_flag('DEBUG')

    if debug_mode:
        log_level = 'DEBUG'

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(simple_formatter)
    handlers.append(console_handler)

    if log_to_file:
        log_file = Path(os.getenv('LOG_FILE', '/var/log/bdaystate/bdaystate.log'))
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(detailed_formatter)
            handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not create log file: {e}")

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=handlers,
        force=True,
    )

    # Suppress noisy third-party loggers unless in debug mode
    if not debug_mode:
        logging.getLogger('requests').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)


def get_source_config() -> Dict:
    """Get birthday source configuration from environment"""
    return {
        'birthdays_file': os.getenv('BIRTHDAYS_FILE', ''),
        'ical_url': os.getenv('ICAL_URL', ''),
        'ical_username': os.getenv('ICAL_USERNAME') or None,
        'ical_password': os.getenv('ICAL_PASSWORD') or None,
        'ical_ignore_cert_errors': _env_flag('ICAL_IGNORE_CERT_ERRORS'),
        'carddav_url': os.getenv('CARDDAV_URL', ''),
        'carddav_username': os.getenv('CARDDAV_USERNAME') or None,
        'carddav_password': os.getenv('CARDDAV_PASSWORD') or None,
        'carddav_ignore_cert_errors': _env_flag('CARDDAV_IGNORE_CERT_ERRORS'),
        'fetch_timeout': float(os.getenv('FETCH_TIMEOUT', '4.5')),
    }


def get_output_config() -> Dict:
    """Get state file and text formatting configuration from environment"""
    return {
        'state_file': Path(os.getenv('STATE_FILE', 'data/birthdays_state.json')),
        'text_template': os.getenv('NEXT_TEXT_TEMPLATE', '%n (%a)'),
        'separator': os.getenv('NEXT_SEPARATOR', ', '),
        'date_format': os.getenv('DATE_FORMAT', '%d.%m.%Y'),
        'leap_day_rule': os.getenv('LEAP_DAY_RULE', 'feb28').strip().lower(),
    }


def load_manual_birthdays(path) -> List[Dict]:
    """Load the hand-maintained birthday list (JSON array of name/year/month/day objects)"""
    if not path:
        return []

    path = Path(path)
    if not path.exists():
        logger.warning(f"Birthdays file {path} not found")
        return []

    try:
        with path.open('r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read birthdays file {path}: {e}")
        return []

    if not isinstance(data, list):
        logger.error(f"Birthdays file {path} must contain a list of entries")
        return []

    return [entry for entry in data if isinstance(entry, dict)]


def validate_environment() -> bool:
    """Validate that at least one source is configured and the options make sense"""
    sources = get_source_config()

    if not any([sources['birthdays_file'], sources['ical_url'], sources['carddav_url']]):
        logger.error("No birthday source configured - set BIRTHDAYS_FILE, ICAL_URL or CARDDAV_URL")
        return False

    leap_day_rule = get_output_config()['leap_day_rule']
    if leap_day_rule not in LEAP_DAY_RULES:
        logger.error(f"LEAP_DAY_RULE must be one of {', '.join(LEAP_DAY_RULES)}, got '{leap_day_rule}'")
        return False

    logger.info("Environment validation passed")
    return True
