"""Sample search tools for FastMCP.

Suggestion and ranked search go through the shared `SearchCoordinator`, so a
newer call of the same kind supersedes one that is still running.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from fastmcp import FastMCP

from samplefinder.corpus.models import Sample, SampleCategory
from samplefinder.search.coordinator import SearchCoordinator, SearchFailure, SearchMode


def _serialize_sample(sample: Sample, *, include_body: bool = False) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "name": sample.name,
        "category": sample.category.value,
        "description": sample.metadata.description,
        "relevant_apis": sample.keywords,
        "url": sample.url,
        "screenshot_url": sample.screenshot_url,
        "score": sample.relevance_score,
    }
    if include_body:
        out["readme"] = sample.readme
        out["code_files"] = [{"name": f.name, "code": f.code} for f in sample.code_files]
    return out


async def _run(coordinator: SearchCoordinator, mode: SearchMode, query: str) -> bool:
    """Run one query to completion. Returns False if a newer query superseded it."""
    failures: List[SearchFailure] = []
    unsubscribe = coordinator.errors.subscribe(failures.append)
    try:
        if mode is SearchMode.SUGGESTION:
            task = coordinator.suggest(query)
        else:
            task = coordinator.rank(query)
        # wait() instead of await: a superseded task must not cancel this tool call
        await asyncio.wait({task})
    finally:
        unsubscribe()
    mine = [f for f in failures if f.mode is mode and f.query == query]
    if mine:
        raise RuntimeError(f"Search failed: {mine[-1].error}")
    return not task.cancelled()


def register_search_tools(mcp: FastMCP, get_state: Callable[[], Any]) -> None:
    """Register sample search tools on the given FastMCP instance.

    Reads the repository and coordinator from state (``state.repository``,
    ``state.coordinator``) and the default limit from ``state.settings.search``.
    """

    def _coordinator(state_obj: Any) -> SearchCoordinator:
        coordinator = getattr(state_obj, "coordinator", None)
        if coordinator is None:
            raise RuntimeError(
                "Sample corpus is not loaded. Set SAMPLEFINDER_CORPUS__PATH or SAMPLEFINDER_CORPUS__URL."
            )
        return coordinator

    @mcp.tool
    async def suggest_samples(query: str) -> List[Dict[str, Any]]:
        """Suggest sample names and API names containing the query text.

        Parameters
        ----------
        query: str
            Partial text as typed by the user.
        """
        coordinator = _coordinator(get_state())
        completed = await _run(coordinator, SearchMode.SUGGESTION, query)
        if not completed:
            return []
        return [
            {"label": s.label, "is_sample_name": s.is_sample_name}
            for s in coordinator.suggestions.value
        ]

    @mcp.tool
    async def search_samples(query: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Full-text search over samples, ranked by BM25 relevance.

        Parameters
        ----------
        query: str
            Words and "quoted phrases"; all of them must match.
        limit: int | None
            Maximum number of results (default from settings).
        """
        state = get_state()
        coordinator = _coordinator(state)
        completed = await _run(coordinator, SearchMode.RANKED, query)
        if not completed:
            return []
        settings = getattr(state, "settings", None)
        default_limit = getattr(getattr(settings, "search", None), "default_limit", 20)
        cap = max(1, int(limit or default_limit))
        return [_serialize_sample(s) for s in coordinator.ranked_results.value[:cap]]

    @mcp.tool
    def get_sample(name: str) -> Dict[str, Any]:
        """Return one sample, including its readme and code, by title or formal name."""
        state = get_state()
        repository = getattr(state, "repository", None)
        sample = repository.get_by_name(name) if repository is not None else None
        if sample is None:
            raise ValueError(f"No sample named {name!r}")
        return _serialize_sample(sample, include_body=True)

    @mcp.tool
    def list_samples(category: Optional[str] = None) -> List[Dict[str, Any]]:
        """List samples, optionally only those in a category (e.g. "Maps")."""
        state = get_state()
        repository = getattr(state, "repository", None)
        if repository is None:
            return []
        if category:
            samples = repository.in_category(SampleCategory.from_text(category))
        else:
            samples = repository.all()
        return [_serialize_sample(s) for s in samples]
