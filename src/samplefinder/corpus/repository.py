"""In-memory sample repository.

The single source of truth for loaded samples. It resolves ranked matches
back to full `Sample` objects and fills the corpus store used for search.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from samplefinder.corpus.models import Sample, SampleCategory
from samplefinder.search.base_search import CorpusStore

logger = logging.getLogger(__name__)


class SampleRepository:
    def __init__(self, samples: Iterable[Sample] = ()) -> None:
        self._samples: List[Sample] = []
        self._by_name: Dict[str, Sample] = {}
        self.replace(samples)

    def replace(self, samples: Iterable[Sample]) -> None:
        """Swap in a new sample list. A later sample wins over an earlier one with the same name."""
        by_name: Dict[str, Sample] = {}
        for sample in samples:
            if sample.name in by_name:
                logger.warning("Duplicate sample name %r; keeping the last one", sample.name)
            by_name[sample.name] = sample
        self._by_name = by_name
        self._samples = list(by_name.values())

    def __len__(self) -> int:
        return len(self._samples)

    def all(self) -> List[Sample]:
        return list(self._samples)

    def get_by_name(self, name: str) -> Optional[Sample]:
        """Get a sample by its title or formal name."""
        sample = self._by_name.get(name)
        if sample is not None:
            return sample
        for candidate in self._samples:
            if candidate.metadata.formal_name == name:
                return candidate
        return None

    def in_category(self, category: SampleCategory) -> List[Sample]:
        return [s for s in self._samples if s.category == category]

    def populate(self, store: CorpusStore) -> int:
        """Replace the store's contents with this repository's samples."""
        store.clear()
        count = store.insert_all(s.to_item() for s in self._samples)
        logger.info("Indexed %d sample(s)", count)
        return count
