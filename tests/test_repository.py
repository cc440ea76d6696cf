import dataclasses

from samplefinder.corpus.models import SampleCategory
from samplefinder.corpus.repository import SampleRepository
from samplefinder.search.fts_store import SqliteCorpusStore


def test_get_by_title_or_formal_name(repository: SampleRepository) -> None:
    assert repository.get_by_name("Display map").name == "Display map"
    assert repository.get_by_name("Displaymap").name == "Display map"
    assert repository.get_by_name("display map") is None


def test_in_category(repository: SampleRepository) -> None:
    routing = repository.in_category(SampleCategory.ROUTING_AND_LOGISTICS)
    assert [s.name for s in routing] == ["Find route", "Navigate route"]
    assert repository.in_category(SampleCategory.SCENES) == []


def test_duplicate_names_keep_last(samples) -> None:
    replacement = dataclasses.replace(samples[0], readme="second")
    repository = SampleRepository([*samples, replacement])
    assert len(repository) == 3
    assert repository.get_by_name("Find route").readme == "second"


def test_populate_replaces_store_contents(engine, repository: SampleRepository) -> None:
    store = SqliteCorpusStore(engine)
    assert repository.populate(store) == 3
    assert repository.populate(store) == 3
    assert store.count() == 3

    repository.replace(repository.all()[:1])
    repository.populate(store)
    assert store.count() == 1
    assert store.get("Find route") is not None
