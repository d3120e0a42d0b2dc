"""Read-side queries: analytics, search and record ordering."""

from finance_tracker.queries.analytics import AnalyticsEngine
from finance_tracker.queries.records import SortDirection, SortField, sort_transactions
from finance_tracker.queries.search import (
    CompiledPattern,
    SearchEngine,
    compile_pattern,
    filter_transactions,
    highlight_matches,
    search_with_pattern,
    searchable_text,
)

__all__ = [
    "AnalyticsEngine",
    "CompiledPattern",
    "SearchEngine",
    "SortDirection",
    "SortField",
    "compile_pattern",
    "filter_transactions",
    "highlight_matches",
    "search_with_pattern",
    "searchable_text",
    "sort_transactions",
]
