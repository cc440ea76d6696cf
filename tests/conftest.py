import copy
import json
from typing import Any, Dict, Iterator, List, Sequence, Tuple

import pytest

from samplefinder.corpus.loader import parse_bundle
from samplefinder.corpus.models import Sample
from samplefinder.corpus.repository import SampleRepository
from samplefinder.search.fts_store import SqliteCorpusStore
from samplefinder.search.statistics import MatchStatistics
from samplefinder.storage.database import get_engine


def _metadata(title: str, category: str, apis: List[str], **extra: Any) -> str:
    data = {
        "title": title,
        "category": category,
        "description": f"{title} sample",
        "formal_name": title.replace(" ", ""),
        "ignore": False,
        "images": [f"{title.replace(' ', '-').lower()}.png"],
        "keywords": [],
        "relevant_apis": apis,
        "snippets": ["src/main/java/MainActivity.kt"],
        "language": "kotlin",
    }
    data.update(extra)
    return json.dumps(data)


SAMPLE_BUNDLE: Dict[str, Dict[str, str]] = {
    "find-route": {
        "README.metadata.json": _metadata(
            "Find route", "Routing and Logistics", ["RouteTask", "RouteParameters", "Stop"]
        ),
        "README.md": (
            "# Find route\n\nFind a route between stops using a route task.\n\n"
            "![screenshot](find-route.png)"
        ),
        "MainActivity.kt": "val routeTask = RouteTask(url)\nrouteTask.solveRoute(params)",
    },
    "display-map": {
        "README.metadata.json": _metadata(
            "Display map", "Maps", ["ArcGISMap", "MapView", "BasemapStyle"]
        ),
        "README.md": "# Display map\n\nDisplay a map with a basemap.",
        "MainActivity.kt": "val map = ArcGISMap(BasemapStyle.ArcGISTopographic)",
    },
    "navigate-route": {
        "README.metadata.json": _metadata(
            "Navigate route", "Routing and Logistics", ["RouteTracker", "RouteResult"]
        ),
        "README.md": "# Navigate route\n\nNavigate along a route with turn-by-turn directions.",
        "MainActivity.kt": "routeTracker.trackLocation(location)",
    },
}


def make_stats(
    *,
    total_docs: int,
    avg: Sequence[int],
    lengths: Sequence[int],
    phrases: Sequence[Sequence[Tuple[int, int]]],
) -> MatchStatistics:
    """Build statistics from per-phrase lists of (hits, docs_with_term), one pair per column."""
    values: List[int] = [len(phrases), len(avg), total_docs, *avg, *lengths]
    for per_column in phrases:
        for hits, docs in per_column:
            values += [hits, hits, docs]
    return MatchStatistics.from_ints(values)


@pytest.fixture
def stats_builder():
    return make_stats


@pytest.fixture
def bundle() -> Dict[str, Dict[str, str]]:
    return copy.deepcopy(SAMPLE_BUNDLE)


@pytest.fixture
def samples(bundle: Dict[str, Dict[str, str]]) -> List[Sample]:
    return parse_bundle(bundle)


@pytest.fixture
def repository(samples: List[Sample]) -> SampleRepository:
    return SampleRepository(samples)


@pytest.fixture
def engine(tmp_path):
    eng = get_engine(f"sqlite+pysqlite:///{tmp_path / 'samples.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine, repository: SampleRepository) -> Iterator[SqliteCorpusStore]:
    s = SqliteCorpusStore(engine)
    repository.populate(s)
    yield s
