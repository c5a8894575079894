"""
Tests for analytics bucketing, summaries, breakdowns and drill-down selection.
"""

from datetime import date

import pytest

from conftest import make_visit
from rvu_tracker.core.config import WEEK_START_MONDAY, WEEK_START_SUNDAY
from rvu_tracker.logic.analytics import (
    AnalyticsAggregator,
    DateRange,
    Period,
    parse_visit_date,
    period_label,
    period_start_date,
)


TODAY = date(2026, 1, 20)


def build(visits, period=Period.DAILY, start=date(2026, 1, 1), end=date(2026, 1, 31),
          week_start=WEEK_START_SUNDAY):
    return AnalyticsAggregator(visits, period=period, date_range=DateRange(start, end),
                               week_start=week_start, today=lambda: TODAY)


@pytest.fixture
def visits():
    return [
        make_visit("1", "2026-01-05", [("99213", 1.3, 1), ("G2211", 0.33, 1)]),
        make_visit("2", "2026-01-05", [("99214", 1.92, 1)]),
        make_visit("3", "2026-01-12", [("99213", 1.3, 2)]),
        make_visit("4", "2026-01-12", [], is_no_show=True),
        make_visit("5", "2026-02-02", [("99215", 2.8, 1)]),
    ]


# =============================================================================
# Date helpers
# =============================================================================

def test_parse_visit_date_accepts_full_timestamp():
    assert parse_visit_date("2026-02-12T00:00:00.000Z") == date(2026, 2, 12)
    assert parse_visit_date("2026-02-12") == date(2026, 2, 12)
    assert parse_visit_date("02/12/2026") is None
    assert parse_visit_date("") is None


def test_weekly_bucket_with_sunday_start():
    # Jan 5 and Jan 12 2026 are Mondays
    assert period_start_date(date(2026, 1, 5), Period.WEEKLY, WEEK_START_SUNDAY) == date(2026, 1, 4)
    assert period_start_date(date(2026, 1, 12), Period.WEEKLY, WEEK_START_SUNDAY) == date(2026, 1, 11)
    assert period_start_date(date(2026, 1, 4), Period.WEEKLY, WEEK_START_SUNDAY) == date(2026, 1, 4)


def test_weekly_bucket_with_monday_start():
    assert period_start_date(date(2026, 1, 5), Period.WEEKLY, WEEK_START_MONDAY) == date(2026, 1, 5)
    assert period_start_date(date(2026, 1, 11), Period.WEEKLY, WEEK_START_MONDAY) == date(2026, 1, 5)


def test_monthly_and_yearly_buckets():
    assert period_start_date(date(2026, 3, 17), Period.MONTHLY) == date(2026, 3, 1)
    assert period_start_date(date(2026, 3, 17), Period.YEARLY) == date(2026, 1, 1)
    assert period_start_date(date(2026, 3, 17), Period.DAILY) == date(2026, 3, 17)


def test_period_labels():
    assert period_label(date(2026, 1, 5), Period.DAILY) == "Jan 5"
    assert period_label(date(2026, 1, 4), Period.WEEKLY) == "Jan 4-Jan 10"
    assert period_label(date(2026, 1, 1), Period.MONTHLY) == "Jan 2026"
    assert period_label(date(2026, 1, 1), Period.YEARLY) == "2026"


# =============================================================================
# Filtering and totals
# =============================================================================

def test_filtered_visits_respects_inclusive_range(visits):
    aggregator = build(visits, start=date(2026, 1, 5), end=date(2026, 1, 12))
    assert [v.id for v in aggregator.filtered_visits] == ["1", "2", "3", "4"]

    aggregator.set_date_range(date(2026, 1, 6), date(2026, 1, 12))
    assert [v.id for v in aggregator.filtered_visits] == ["3", "4"]


def test_totals(visits):
    aggregator = build(visits)

    assert aggregator.total_rvu == pytest.approx(1.3 + 0.33 + 1.92 + 2.6)
    assert aggregator.total_encounters == 3
    assert aggregator.total_no_shows == 1
    assert aggregator.avg_rvu_per_encounter == pytest.approx((1.3 + 0.33 + 1.92 + 2.6) / 3)


def test_average_is_zero_without_encounters():
    aggregator = build([make_visit("1", "2026-01-05", [], is_no_show=True)])
    assert aggregator.total_encounters == 0
    assert aggregator.avg_rvu_per_encounter == 0.0


def test_unparseable_dates_are_excluded(visits):
    visits.append(make_visit("bad", "not-a-date", [("99213", 1.3, 1)]))
    aggregator = build(visits)

    assert "bad" not in [v.id for v in aggregator.filtered_visits]
    assert aggregator.total_encounters == 3


def test_default_range_ends_today():
    aggregator = AnalyticsAggregator([], today=lambda: TODAY, default_range_days=30)
    assert aggregator.date_range == DateRange(date(2025, 12, 21), TODAY)


def test_reversed_range_is_swapped(visits):
    aggregator = build(visits)
    aggregator.set_date_range(date(2026, 1, 31), date(2026, 1, 1))
    assert aggregator.date_range == DateRange(date(2026, 1, 1), date(2026, 1, 31))


# =============================================================================
# Summaries
# =============================================================================

def test_daily_summaries_are_ascending(visits):
    summaries = build(visits).period_summaries

    assert [s.period_start for s in summaries] == [date(2026, 1, 5), date(2026, 1, 12)]
    assert summaries[0].total_rvu == pytest.approx(1.3 + 0.33 + 1.92)
    assert summaries[0].encounter_count == 2
    assert summaries[1].encounter_count == 1
    assert summaries[1].no_show_count == 1


def test_weekly_summaries_sunday_start(visits):
    summaries = build(visits, period=Period.WEEKLY).period_summaries

    assert [s.period_start for s in summaries] == [date(2026, 1, 4), date(2026, 1, 11)]
    assert [s.period_label for s in summaries] == ["Jan 4-Jan 10", "Jan 11-Jan 17"]


def test_weekly_summaries_monday_start(visits):
    summaries = build(visits, period=Period.WEEKLY, week_start=WEEK_START_MONDAY).period_summaries
    assert [s.period_start for s in summaries] == [date(2026, 1, 5), date(2026, 1, 12)]


def test_summary_totals_match_overall_totals(visits):
    aggregator = build(visits, period=Period.MONTHLY, end=date(2026, 2, 28))

    summaries = aggregator.period_summaries

    assert sum(s.total_rvu for s in summaries) == pytest.approx(aggregator.total_rvu)
    assert sum(s.encounter_count for s in summaries) == aggregator.total_encounters
    assert [s.period_label for s in summaries] == ["Jan 2026", "Feb 2026"]


def test_empty_buckets_are_omitted():
    aggregator = build([make_visit("1", "2026-01-02", [("99213", 1.3, 1)]),
                        make_visit("2", "2026-01-30", [("99213", 1.3, 1)])])
    assert len(aggregator.period_summaries) == 2


# =============================================================================
# Breakdowns and selection
# =============================================================================

def test_breakdowns_newest_first(visits):
    breakdowns = build(visits).period_breakdowns

    assert [b.period_start for b in breakdowns] == [date(2026, 1, 12), date(2026, 1, 5)]
    # No-show visit has no procedures
    assert [(r.code, r.total_quantity) for r in breakdowns[0].rows] == [("99213", 2)]


def test_breakdown_rows_sorted_by_rvu_descending(visits):
    rows = build(visits).period_breakdowns[1].rows

    assert [r.code for r in rows] == ["99214", "99213", "G2211"]
    assert rows[0].total_work_rvu == pytest.approx(1.92)


def test_breakdown_rows_ties_ordered_by_code():
    visit = make_visit("1", "2026-01-05", [("99213", 1.0, 1), ("99212", 1.0, 1)])
    rows = build([visit]).period_breakdowns[0].rows
    assert [r.code for r in rows] == ["99212", "99213"]


def test_select_bucket_limits_breakdowns(visits):
    aggregator = build(visits)

    aggregator.select_bucket(0)

    assert aggregator.selected_period_start == date(2026, 1, 5)
    assert [b.period_start for b in aggregator.period_breakdowns] == [date(2026, 1, 5)]


def test_select_same_bucket_toggles_off(visits):
    aggregator = build(visits)
    aggregator.select_bucket(1)
    aggregator.select_bucket(1)

    assert aggregator.selected_bucket_index is None
    assert len(aggregator.period_breakdowns) == 2


def test_out_of_range_selection_is_ignored(visits):
    aggregator = build(visits)
    aggregator.select_bucket(10)

    assert aggregator.selected_period_start is None
    assert len(aggregator.period_breakdowns) == 2


def test_changing_period_clears_selection(visits):
    aggregator = build(visits)
    aggregator.select_bucket(0)

    aggregator.set_period(Period.WEEKLY)

    assert aggregator.selected_bucket_index is None


def test_changing_range_clears_selection(visits):
    aggregator = build(visits)
    aggregator.select_bucket(0)

    aggregator.set_date_range(date(2026, 1, 1), date(2026, 2, 28))

    assert aggregator.selected_bucket_index is None


def test_yearly_period_resets_range_to_current_year(visits):
    aggregator = build(visits)

    aggregator.set_period(Period.YEARLY)

    assert aggregator.date_range == DateRange(date(2026, 1, 1), date(2026, 12, 31))
    summaries = aggregator.period_summaries
    assert len(summaries) == 1
    assert summaries[0].period_label == "2026"
    assert summaries[0].encounter_count == 4


def test_month_labels_use_english_abbreviations():
    labels = [period_label(date(2026, month, 1), Period.MONTHLY) for month in range(1, 13)]
    assert labels == [f"{name} 2026" for name in (
        "Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
    )]
    assert period_label(date(2026, 9, 27), Period.WEEKLY) == "Sep 27-Oct 3"
