"""Analytics aggregation - buckets visits by period and summarizes RVU output.

Visit dates are literal YYYY-MM-DD strings and are handled as naive
datetime.date values. Bucketing never goes through a timezone, so a visit
always lands in the same bucket regardless of where the device is. The
first day of a week is a fixed setting (Sunday by default).
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from ..core.config import DEFAULT_RANGE_DAYS, WEEK_START_SUNDAY
from ..data.models import Visit

logger = logging.getLogger(__name__)


class Period(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class PeriodSummary:
    period_start: date
    period_label: str
    total_rvu: float
    encounter_count: int
    no_show_count: int


@dataclass(frozen=True)
class HCPCSBreakdownRow:
    code: str
    description: str
    total_quantity: int
    total_work_rvu: float


@dataclass(frozen=True)
class PeriodBreakdown:
    period_start: date
    period_label: str
    rows: List[HCPCSBreakdownRow] = field(default_factory=list)


# =============================================================================
# Date helpers
# =============================================================================

def parse_visit_date(value: str) -> Optional[date]:
    """Parse the date portion of a visit date string.

    The backend may send "2026-02-12" or a full ISO datetime such as
    "2026-02-12T00:00:00.000Z"; only the first 10 characters are used.
    """
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def period_start_date(day: date, period: Period, week_start: int = WEEK_START_SUNDAY) -> date:
    """Bucket key for a date under the given period."""
    if period is Period.DAILY:
        return day
    if period is Period.WEEKLY:
        offset = (day.weekday() - week_start) % 7
        return day - timedelta(days=offset)
    if period is Period.MONTHLY:
        return day.replace(day=1)
    return date(day.year, 1, 1)


MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _month(day: date) -> str:
    # Fixed English names; strftime %b follows the process locale
    return MONTH_ABBREVIATIONS[day.month - 1]


def _short_day(day: date) -> str:
    return f"{_month(day)} {day.day}"


def period_label(period_start: date, period: Period) -> str:
    """Display label for a bucket, e.g. "Jan 5", "Jan 4-Jan 10", "Jan 2026", "2026"."""
    if period is Period.DAILY:
        return _short_day(period_start)
    if period is Period.WEEKLY:
        return f"{_short_day(period_start)}-{_short_day(period_start + timedelta(days=6))}"
    if period is Period.MONTHLY:
        return f"{_month(period_start)} {period_start.year}"
    return str(period_start.year)


def year_range(year: int) -> DateRange:
    return DateRange(date(year, 1, 1), date(year, 12, 31))


# =============================================================================
# Aggregator
# =============================================================================

class AnalyticsAggregator:
    """Holds the analytics view state and computes derived statistics on demand.

    State is plain data (period, date range, selected bucket, source visits).
    Every query recomputes from the current state; only set_period,
    set_date_range, select_bucket, clear_selection and set_visits mutate it.
    """

    def __init__(self, visits: Iterable[Visit] = (), period: Period = Period.DAILY,
                 date_range: Optional[DateRange] = None, week_start: int = WEEK_START_SUNDAY,
                 today: Optional[Callable[[], date]] = None,
                 default_range_days: int = DEFAULT_RANGE_DAYS):
        """
        Args:
            visits: Source visits, already enriched
            period: Initial bucket granularity
            date_range: Initial range; defaults to the last default_range_days days
            week_start: Weekday number (Monday=0) that starts a weekly bucket
            today: Returns the current date; injectable for tests
            default_range_days: Size of the default range
        """
        self.today = today or date.today
        self.week_start = week_start
        self.period = period
        self.visits: List[Visit] = list(visits)
        self.selected_bucket_index: Optional[int] = None
        if date_range is None:
            end = self.today()
            date_range = DateRange(end - timedelta(days=default_range_days), end)
        self.date_range = date_range

    # =========================================================================
    # Mutators
    # =========================================================================

    def set_period(self, period: Period):
        """Change granularity. Clears the selection; yearly also resets the range to this year."""
        self.period = period
        self.selected_bucket_index = None
        if period is Period.YEARLY:
            self.date_range = year_range(self.today().year)
        logger.debug(f"Analytics period set to {period.value}")

    def set_date_range(self, start: date, end: date):
        if start > end:
            start, end = end, start
        self.date_range = DateRange(start, end)
        self.selected_bucket_index = None

    def select_bucket(self, index: int):
        """Toggle drill-down on a bucket from period_summaries."""
        if self.selected_bucket_index == index:
            self.selected_bucket_index = None
        else:
            self.selected_bucket_index = index

    def clear_selection(self):
        self.selected_bucket_index = None

    def set_visits(self, visits: Iterable[Visit]):
        self.visits = list(visits)
        self.selected_bucket_index = None

    # =========================================================================
    # Filtering and totals
    # =========================================================================

    def _bucket_key(self, day: date) -> date:
        return period_start_date(day, self.period, self.week_start)

    def _dated_visits(self) -> List[tuple]:
        """(date, visit) pairs for visits inside the date range."""
        dated = []
        for visit in self.visits:
            day = parse_visit_date(visit.date)
            if day is None:
                logger.debug(f"Excluding visit {visit.id} with unparseable date '{visit.date}'")
                continue
            if self.date_range.contains(day):
                dated.append((day, visit))
        return dated

    @property
    def filtered_visits(self) -> List[Visit]:
        return [visit for _, visit in self._dated_visits()]

    @property
    def total_rvu(self) -> float:
        return sum(visit.total_work_rvu for visit in self.filtered_visits)

    @property
    def total_encounters(self) -> int:
        return sum(1 for visit in self.filtered_visits if not visit.is_no_show)

    @property
    def total_no_shows(self) -> int:
        return sum(1 for visit in self.filtered_visits if visit.is_no_show)

    @property
    def avg_rvu_per_encounter(self) -> float:
        encounters = self.total_encounters
        if encounters == 0:
            return 0.0
        return self.total_rvu / encounters

    # =========================================================================
    # Period summaries
    # =========================================================================

    @property
    def period_summaries(self) -> List[PeriodSummary]:
        """One summary per non-empty bucket, oldest first."""
        buckets: Dict[date, Dict[str, float]] = {}

        for day, visit in self._dated_visits():
            key = self._bucket_key(day)
            bucket = buckets.setdefault(key, {"rvu": 0.0, "encounters": 0, "no_shows": 0})
            bucket["rvu"] += visit.total_work_rvu
            if visit.is_no_show:
                bucket["no_shows"] += 1
            else:
                bucket["encounters"] += 1

        return [
            PeriodSummary(
                period_start=key,
                period_label=period_label(key, self.period),
                total_rvu=value["rvu"],
                encounter_count=int(value["encounters"]),
                no_show_count=int(value["no_shows"]),
            )
            for key, value in sorted(buckets.items())
        ]

    @property
    def selected_period_start(self) -> Optional[date]:
        """Bucket key of the current selection, or None when nothing valid is selected."""
        index = self.selected_bucket_index
        if index is None:
            return None
        summaries = self.period_summaries
        if 0 <= index < len(summaries):
            return summaries[index].period_start
        return None

    # =========================================================================
    # HCPCS breakdowns
    # =========================================================================

    @property
    def period_breakdowns(self) -> List[PeriodBreakdown]:
        """Per-bucket procedure totals by code, newest bucket first.

        When a bucket is selected only that bucket is returned.
        """
        selected_start = self.selected_period_start

        groups: Dict[date, List[Visit]] = defaultdict(list)
        for day, visit in self._dated_visits():
            key = self._bucket_key(day)
            if selected_start is not None and key != selected_start:
                continue
            groups[key].append(visit)

        breakdowns = []
        for key in sorted(groups, reverse=True):
            breakdowns.append(PeriodBreakdown(
                period_start=key,
                period_label=period_label(key, self.period),
                rows=self._breakdown_rows(groups[key]),
            ))
        return breakdowns

    @staticmethod
    def _breakdown_rows(visits: List[Visit]) -> List[HCPCSBreakdownRow]:
        by_code: Dict[str, dict] = {}
        for visit in visits:
            for proc in visit.procedures:
                entry = by_code.setdefault(proc.code, {
                    "description": proc.description,
                    "quantity": 0,
                    "rvu": 0.0,
                })
                entry["quantity"] += proc.quantity
                entry["rvu"] += proc.work_rvu * proc.quantity

        rows = [
            HCPCSBreakdownRow(
                code=code,
                description=data["description"],
                total_quantity=data["quantity"],
                total_work_rvu=data["rvu"],
            )
            for code, data in by_code.items()
        ]
        rows.sort(key=lambda row: (-row.total_work_rvu, row.code))
        return rows


__all__ = [
    'Period',
    'DateRange',
    'PeriodSummary',
    'HCPCSBreakdownRow',
    'PeriodBreakdown',
    'AnalyticsAggregator',
    'parse_visit_date',
    'period_start_date',
    'period_label',
    'year_range',
]
