"""Business logic - catalog lookup and search, enrichment, analytics and visit entry."""

from .catalog import ReferenceCatalog
from .catalog_search import search
from .enrichment import enrich_visits
from .analytics import AnalyticsAggregator, DateRange, Period
from .visit_entry import VisitEntryForm

__all__ = [
    'ReferenceCatalog',
    'search',
    'enrich_visits',
    'AnalyticsAggregator',
    'DateRange',
    'Period',
    'VisitEntryForm',
]
