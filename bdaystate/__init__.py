"""
Birthday State Package
Collects birthdays from settings, iCalendar and CardDAV and publishes them to a state store
"""

__version__ = "1.0.0"
__description__ = "Birthday aggregation and state publishing job"

from .aggregator import AggregationResult, BirthdayAggregator
from .carddav_client import CardDAVSource
from .ical_client import ICalSource
from .identity import identity_key
from .models import BirthdayRecord, build_records
from .reconciler import BirthdayReconciler
from .store import JsonFileStore, MemoryStore, StateStore

__all__ = [
    'AggregationResult',
    'BirthdayAggregator',
    'BirthdayReconciler',
    'BirthdayRecord',
    'CardDAVSource',
    'ICalSource',
    'JsonFileStore',
    'MemoryStore',
    'StateStore',
    'build_records',
    'identity_key',
]
