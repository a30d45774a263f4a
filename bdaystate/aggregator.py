"""
Collects birthdays from all sources concurrently and builds the records
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional

from .dates import DEFAULT_LEAP_DAY_RULE
from .fetch import DEFAULT_TIMEOUT
from .models import DEFAULT_DATE_FORMAT, BirthdayPair, BirthdayRecord, build_records
from .settings_source import collect_settings_birthdays

logger = logging.getLogger(__name__)


def source_deadline(fetch_timeout: float) -> float:
    """Hard per-source limit; requests applies its timeout to connect and read separately"""
    return fetch_timeout * 2 + 1


# Also covers hung DNS lookups, which the HTTP timeout does not
SOURCE_DEADLINE = source_deadline(DEFAULT_TIMEOUT)


@dataclass
class AggregationResult:
    birthdays: List[BirthdayRecord] = field(default_factory=list)
    significant: List[BirthdayRecord] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


class BirthdayAggregator:
    """Fan-out over the settings, calendar and CardDAV sources, fan-in into records"""

    def __init__(self, manual_entries: Optional[List[Dict]], ical_source, carddav_source,
                 today: Optional[date] = None, date_format: str = DEFAULT_DATE_FORMAT,
                 leap_day_rule: str = DEFAULT_LEAP_DAY_RULE, deadline: float = SOURCE_DEADLINE):
        self.manual_entries = manual_entries or []
        self.ical_source = ical_source
        self.carddav_source = carddav_source
        self.today = today or date.today()
        self.date_format = date_format
        self.leap_day_rule = leap_day_rule
        self.deadline = deadline

    async def collect(self) -> AggregationResult:
        """Run all sources, wait for every one of them and merge the results"""
        sources = {
            'settings': lambda: collect_settings_birthdays(self.manual_entries, self.today),
            'ical': lambda: self.ical_source.fetch_birthdays(self.today),
            'carddav': lambda: self.carddav_source.fetch_birthdays(self.today),
        }

        # Own pool instead of the loop default one, so asyncio.run does not join hung workers
        executor = ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix='bdaystate-source')
        try:
            results = await asyncio.gather(
                *(self._run_source(executor, label, func) for label, func in sources.items())
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        aggregation = AggregationResult()
        for label, pairs in zip(sources, results):
            aggregation.counts[label] = len(pairs)
            for name, birth_date in pairs:
                regular, significant = build_records(
                    name, birth_date, self.today, self.date_format, self.leap_day_rule
                )
                aggregation.birthdays.append(regular)
                aggregation.significant.append(significant)

        logger.debug(f"Everything collected: {aggregation.counts}")

        if aggregation.total == 0:
            logger.error("No birthdays found in any configured source - please check configuration and retry")

        return aggregation

    def collect_sync(self) -> AggregationResult:
        return asyncio.run(self.collect())

    async def _run_source(self, executor: ThreadPoolExecutor, label: str,
                          func: Callable[[], List[BirthdayPair]]) -> List[BirthdayPair]:
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(loop.run_in_executor(executor, func), timeout=self.deadline)
        except asyncio.TimeoutError:
            logger.warning(f"[{label}] source did not finish within {self.deadline} seconds")
        except Exception as e:
            logger.error(f"[{label}] unexpected error while collecting birthdays: {e}")
        return []
