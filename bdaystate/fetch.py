"""
HTTP(S) download of calendar and address book data
"""

import logging
from typing import Optional

import requests
from requests.auth import HTTPBasicAuth

from .errors import SourceUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 4.5


def is_http_url(locator: str) -> bool:
    return locator.lower().startswith(('http://', 'https://'))


def fetch_text(url: str, username: Optional[str] = None, password: Optional[str] = None,
               ignore_cert_errors: bool = False, timeout: float = DEFAULT_TIMEOUT) -> str:
    """GET ``url`` and return the body as text.

    Basic auth is only sent when a username is configured. Any transport
    error or non-2xx status is raised as SourceUnavailable.
    """
    auth = HTTPBasicAuth(username, password or '') if username else None

    if ignore_cert_errors:
        logger.debug(f"Requesting {url} without certificate verification")

    try:
        response = requests.get(url, auth=auth, timeout=timeout, verify=not ignore_cert_errors)
        logger.debug(f"Request to {url} finished with status: {response.status_code}")
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise SourceUnavailable(f"{url}: {e}") from e

    # requests falls back to ISO-8859-1 for text/* without a charset; calendars and vCards are UTF-8
    if 'charset' not in response.headers.get('Content-Type', '').lower():
        response.encoding = 'utf-8'

    return response.text
