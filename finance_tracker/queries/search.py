"""
Pattern Search Engine

DESIGN DECISION: User-typed patterns are regular expressions and are
compiled defensively. A malformed pattern is never raised to the caller:
compilation returns a CompiledPattern carrying an error message, and
filtering/highlighting FAIL OPEN (no filter, no highlight).

Each transaction is searched as one line of text:
    "<description> <category> <amount>"

KNOWN RISK: patterns are not guarded against catastrophic backtracking.
"""

import re
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel, PrivateAttr

from finance_tracker.models.results import SearchMatch
from finance_tracker.models.transaction import Transaction


INVALID_PATTERN_MESSAGE = "Invalid regex pattern"


class CompiledPattern(BaseModel):
    """
    A user pattern after compilation.

    Check `error` (or `is_valid`) before trusting match results.
    """

    pattern: str
    case_sensitive: bool = False
    error: Optional[str] = None

    _regex: Optional[re.Pattern] = PrivateAttr(default=None)

    @property
    def is_valid(self) -> bool:
        return self.error is None and self._regex is not None

    def matches(self, text: str) -> bool:
        """True if the pattern occurs anywhere in text."""
        if not self.is_valid:
            return False
        return self._regex.search(text) is not None

    def highlight(self, text: str, open_tag: str, close_tag: str) -> str:
        """Wrap every non-empty, non-overlapping match in the tags."""
        if not self.is_valid:
            return text

        def wrap(match: re.Match) -> str:
            found = match.group(0)
            return f"{open_tag}{found}{close_tag}" if found else found

        return self._regex.sub(wrap, text)


def compile_pattern(pattern: str, case_sensitive: bool = False) -> CompiledPattern:
    """
    Compile a user pattern without raising.

    Case-insensitive unless case_sensitive is set; the flag is never
    inferred from the pattern text.
    """
    pattern = "" if pattern is None else str(pattern)
    flags = 0 if case_sensitive else re.IGNORECASE

    try:
        regex = re.compile(pattern, flags)
    except (re.error, OverflowError, RecursionError) as e:
        return CompiledPattern(
            pattern=pattern,
            case_sensitive=case_sensitive,
            error=f"{INVALID_PATTERN_MESSAGE}: {e}",
        )

    compiled = CompiledPattern(pattern=pattern, case_sensitive=case_sensitive)
    compiled._regex = regex
    return compiled


def _amount_text(amount: Decimal) -> str:
    """Plain number text: 12.50 -> "12.5", 40.00 -> "40"."""
    if amount == 0:
        return "0"
    return format(amount.normalize(), "f")


def searchable_text(transaction: Transaction) -> str:
    """The text a transaction is matched against."""
    return " ".join([
        transaction.description,
        transaction.category,
        _amount_text(transaction.amount),
    ])


class SearchEngine:
    """
    Stateless search over transactions.

    Only the highlight markers are configurable.
    """

    def __init__(self, open_tag: str = "<mark>", close_tag: str = "</mark>"):
        self._open_tag = open_tag
        self._close_tag = close_tag

    def search(self, text: str, pattern: str, case_sensitive: bool = False) -> SearchMatch:
        """Test one text against a pattern."""
        compiled = compile_pattern(pattern, case_sensitive)
        if compiled.error:
            return SearchMatch(matches=False, error=compiled.error)
        return SearchMatch(matches=compiled.matches(text))

    def filter_transactions(
        self,
        transactions: Sequence[Transaction],
        pattern: str,
        case_sensitive: bool = False,
    ) -> Sequence[Transaction]:
        """
        Keep transactions whose searchable text matches the pattern.

        An empty or malformed pattern returns the input unchanged.
        """
        if not pattern:
            return transactions

        compiled = compile_pattern(pattern, case_sensitive)
        if compiled.error:
            return transactions

        return [t for t in transactions if compiled.matches(searchable_text(t))]

    def highlight_matches(
        self,
        text: str,
        pattern: str,
        case_sensitive: bool = False,
    ) -> str:
        """
        Wrap every match in the highlight markers.

        An empty or malformed pattern returns the text unchanged.
        """
        if not pattern:
            return text

        compiled = compile_pattern(pattern, case_sensitive)
        return compiled.highlight(text, self._open_tag, self._close_tag)


_default_engine = SearchEngine()


def search_with_pattern(text: str, pattern: str, case_sensitive: bool = False) -> SearchMatch:
    return _default_engine.search(text, pattern, case_sensitive)


def filter_transactions(
    transactions: Sequence[Transaction],
    pattern: str,
    case_sensitive: bool = False,
) -> Sequence[Transaction]:
    return _default_engine.filter_transactions(transactions, pattern, case_sensitive)


def highlight_matches(text: str, pattern: str, case_sensitive: bool = False) -> str:
    return _default_engine.highlight_matches(text, pattern, case_sensitive)
