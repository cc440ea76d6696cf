"""Query coordinator for suggestion and ranked search.

Each mode owns a single task slot: starting a query cancels the query of the
same mode that is still running, so a superseded result is never published.
Results are handed out through `StateChannel`s and failures through an
`EventChannel`; nothing is raised into the caller's control flow.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Coroutine, Dict, List, NamedTuple, Optional, Sequence

from samplefinder.exceptions import MalformedStatistics
from samplefinder.search.base_search import CorpusStore, Item, RankedRow
from samplefinder.search.channels import EventChannel, StateChannel
from samplefinder.search.scorer import DEFAULT_B, DEFAULT_K1, combined_score

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Optional[Any]]


class SearchMode(str, Enum):
    SUGGESTION = "suggestion"
    RANKED = "ranked"


class Suggestion(NamedTuple):
    """A suggestion label and whether it names a sample (True) or an API (False)."""

    label: str
    is_sample_name: bool


@dataclass(frozen=True, slots=True)
class SearchFailure:
    """A query that failed before it could publish."""

    mode: SearchMode
    query: str
    error: BaseException


def build_suggestions(
    query: str, samples: Sequence[Item], keyword_items: Sequence[Item]
) -> List[Suggestion]:
    """Combine matching sample names and matching API names, sorted by label."""
    needle = (query or "").lower()
    keywords: Dict[str, None] = {}
    for item in keyword_items:
        for keyword in item.keywords:
            if needle in keyword.lower():
                keywords.setdefault(keyword, None)

    combined = [Suggestion(item.name, True) for item in samples]
    combined += [Suggestion(keyword, False) for keyword in keywords]
    return sorted(combined, key=lambda s: s.label)


def _ranking_key(results: Sequence[Any]) -> List[tuple]:
    return [(getattr(r, "name", None), getattr(r, "relevance_score", None)) for r in results]


class _TaskSlot:
    """Holds the one current task of a mode."""

    def __init__(self, mode: SearchMode) -> None:
        self.mode = mode
        self._lock = threading.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def replace(self, factory: Callable[[], Coroutine[Any, Any, None]]) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        with self._lock:
            previous = self._task
            if previous is not None and not previous.done():
                previous.cancel()
            task = loop.create_task(factory(), name=f"samplefinder-{self.mode.value}")
            self._task = task
        task.add_done_callback(self._release)
        return task

    def cancel(self) -> Optional[asyncio.Task]:
        with self._lock:
            task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            return task
        return None

    def _release(self, task: asyncio.Task) -> None:
        with self._lock:
            if self._task is task:
                self._task = None


class SearchCoordinator:
    """Runs suggestion and ranked queries against a corpus store.

    Parameters
    ----------
    store: CorpusStore
        The store to query. It is only read.
    resolve: Callable[[str], object | None] | None
        Maps a matched name to the object published in ranked results. The
        object must be a dataclass with a ``relevance_score`` field. Defaults
        to ``store.get``.
    b, k1: float
        BM25 parameters.
    """

    def __init__(
        self,
        store: CorpusStore,
        resolve: Optional[Resolver] = None,
        *,
        b: float = DEFAULT_B,
        k1: float = DEFAULT_K1,
    ) -> None:
        self._store = store
        self._resolve: Resolver = resolve or store.get
        self._b = b
        self._k1 = k1
        self._slots = {mode: _TaskSlot(mode) for mode in SearchMode}

        self.suggestions: StateChannel[List[Suggestion]] = StateChannel([])
        self.ranked_results: StateChannel[List[Any]] = StateChannel([], key=_ranking_key)
        self.errors: EventChannel[SearchFailure] = EventChannel()

    # ----- Public API -----

    def suggest(self, text: str) -> asyncio.Task:
        """Start a suggestion query, cancelling the previous one."""
        return self._slots[SearchMode.SUGGESTION].replace(lambda: self._run_suggestion(text))

    def rank(self, text: str) -> asyncio.Task:
        """Start a ranked query, cancelling the previous one."""
        return self._slots[SearchMode.RANKED].replace(lambda: self._run_ranked(text))

    def running(self, mode: SearchMode) -> bool:
        task = self._slots[mode].task
        return task is not None and not task.done()

    def cancel(self, mode: SearchMode) -> Optional[asyncio.Task]:
        """Cancel the running query of ``mode``, if any, and return its task."""
        return self._slots[mode].cancel()

    def cancel_all(self) -> None:
        for mode in SearchMode:
            self.cancel(mode)

    async def aclose(self) -> None:
        """Cancel both modes and wait for their tasks to settle."""
        pending = [t for t in (self.cancel(mode) for mode in SearchMode) if t is not None]
        if pending:
            await asyncio.wait(pending)

    # ----- Workers -----

    async def _run_suggestion(self, text: str) -> None:
        logger.debug("Suggestion query started: %r", text)
        try:
            samples = await asyncio.to_thread(self._store.filter_by_substring, text)
            keyword_items = await asyncio.to_thread(self._store.filter_keywords_by_substring, text)
        except asyncio.CancelledError:
            logger.debug("Suggestion query superseded: %r", text)
            raise
        except Exception as exc:
            self._report(SearchMode.SUGGESTION, text, exc)
            return

        suggestions = build_suggestions(text, samples, keyword_items)
        self.suggestions.publish(suggestions)
        logger.debug("Suggestion query %r produced %d suggestion(s)", text, len(suggestions))

    async def _run_ranked(self, text: str) -> None:
        logger.debug("Ranked query started: %r", text)
        try:
            rows = await asyncio.to_thread(self._store.ranked_match, text)
            results = await asyncio.to_thread(self._score, rows)
        except asyncio.CancelledError:
            logger.debug("Ranked query superseded: %r", text)
            raise
        except Exception as exc:
            self._report(SearchMode.RANKED, text, exc)
            return

        if self.ranked_results.publish(results):
            logger.debug("Ranked query %r published %d result(s)", text, len(results))

    def _score(self, rows: Sequence[RankedRow]) -> List[Any]:
        results: List[Any] = []
        for row in rows:
            score = combined_score(row.statistics, self._b, self._k1)
            resolved = self._resolve(row.item.name)
            if resolved is None:
                logger.warning("Matched %r is not in the corpus; skipping", row.item.name)
                continue
            results.append(dataclasses.replace(resolved, relevance_score=score))
        # sorted() is stable, equal scores keep the store's match order
        return sorted(results, key=lambda r: r.relevance_score, reverse=True)

    def _report(self, mode: SearchMode, text: str, exc: BaseException) -> None:
        if isinstance(exc, MalformedStatistics):
            logger.error("%s query %r hit malformed match statistics", mode.value, text, exc_info=exc)
        else:
            logger.warning("%s query %r failed: %s", mode.value, text, exc)
        self.errors.emit(SearchFailure(mode=mode, query=text, error=exc))
