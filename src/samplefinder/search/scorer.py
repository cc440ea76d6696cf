"""Okapi BM25 over FTS4 match statistics."""

from __future__ import annotations

import math

from samplefinder.search.statistics import MatchStatistics

DEFAULT_B = 0.75
DEFAULT_K1 = 1.2


def _length_ratio(doc_length: float, avg_length: float) -> float:
    # A column that is empty across the corpus reports an average of zero
    if avg_length == 0:
        return 0.0 if doc_length == 0 else math.inf
    return doc_length / avg_length


def okapi_bm25(
    stats: MatchStatistics, column: int, b: float = DEFAULT_B, k1: float = DEFAULT_K1
) -> float:
    """Calculate the Okapi BM25 score of one column of a matched row.

    The inverse document frequency is ``log(n - df + 0.5, df + 0.5)``, i.e. the
    logarithm of ``n - df + 0.5`` in base ``df + 0.5``. The result is not
    clamped and can be negative for very common phrases.
    """
    total_docs = float(stats.total_docs)
    avg_length = float(stats.avg_length(column))
    doc_length = float(stats.row_length(column))
    normalized_length = b * _length_ratio(doc_length, avg_length) if b else 0.0

    score = 0.0
    for phrase in range(stats.term_count):
        term_frequency = float(stats.hits(column, phrase))
        docs_with_term = float(stats.docs_with_term(column, phrase))

        idf = math.log(total_docs - docs_with_term + 0.5, docs_with_term + 0.5)
        numerator = term_frequency * (k1 + 1)
        denominator = term_frequency + k1 * (1 - b + normalized_length)
        # degenerate lengths: the term contributes nothing
        if denominator == 0 or math.isinf(denominator) or math.isnan(denominator):
            continue
        score += idf * (numerator / denominator)
    return score


def combined_score(stats: MatchStatistics, b: float = DEFAULT_B, k1: float = DEFAULT_K1) -> float:
    """Arithmetic mean of the per-column scores."""
    columns = stats.column_count
    if columns == 0:
        return 0.0
    return sum(okapi_bm25(stats, column, b, k1) for column in range(columns)) / columns
