"""Abstract corpus store interface for substring and full-text queries.

Defines the minimal surface the query coordinator depends on, so any
backing full-text implementation can be substituted without touching the
scorer or the coordinator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from samplefinder.search.statistics import MatchStatistics


@dataclass(frozen=True, slots=True)
class Item:
    """A searchable corpus record.

    Attributes
    ----------
    name: str
        Unique display identifier.
    bodies: tuple[str, ...]
        Free-text fields, e.g. concatenated source excerpts and a readme.
    keywords: tuple[str, ...]
        Related API names, in their original order.
    relevance_score: float
        Only meaningful on ranked results; not part of the item's identity.
    """

    name: str
    bodies: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    relevance_score: float = field(default=0.0, compare=False)


@dataclass(frozen=True, slots=True)
class RankedRow:
    """One full-text hit paired with its statistics for the issuing query."""

    item: Item
    statistics: MatchStatistics


class CorpusStore(ABC):
    """Abstract interface for corpus store implementations.

    Read operations must not mutate corpus state. Backend failures are
    raised as `samplefinder.exceptions.StoreUnavailable`.
    """

    @abstractmethod
    def filter_by_substring(self, query: str) -> List[Item]:
        """Items whose name, any body, or keyword list contains ``query`` (case-insensitive)."""

    @abstractmethod
    def filter_keywords_by_substring(self, query: str) -> List[Item]:
        """Items whose keyword list contains ``query`` (case-insensitive)."""

    @abstractmethod
    def ranked_match(self, query: str) -> List[RankedRow]:
        """Full-text match returning every hit with its match statistics."""
        raise NotImplementedError

    @abstractmethod
    def get(self, name: str) -> Optional[Item]:
        """Look up a single item by its unique name."""

    @abstractmethod
    def insert_all(self, items: Iterable[Item]) -> int:
        """Insert items, replacing any existing item with the same name."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every item."""
