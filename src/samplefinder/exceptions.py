"""Custom exception hierarchy for SampleFinder.

These exceptions allow callers to discriminate error categories
and handle them appropriately while preserving the original context.
"""

from __future__ import annotations


class SampleFinderError(Exception):
    """Base class for all SampleFinder exceptions."""


class ConfigError(SampleFinderError):
    """Raised when configuration loading or validation fails."""


class CorpusLoadError(SampleFinderError):
    """Raised when a samples bundle cannot be read, fetched or decoded."""


class StorageError(SampleFinderError):
    """Raised when the storage layer encounters an error (DB, filesystem, etc.)."""


class StoreUnavailable(StorageError):
    """Raised when the corpus store cannot be reached or queried."""


class SearchError(SampleFinderError):
    """Raised for search indexing/query issues."""


class MalformedStatistics(SearchError, ValueError):
    """Raised when a match statistics blob does not fit its declared shape.

    This is a contract violation between the indexed store and the scorer,
    not a recoverable runtime condition.
    """
