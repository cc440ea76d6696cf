"""SQLite FTS4 corpus store.

Substring filters run as case-insensitive LIKE scans over the FTS table;
ranked matches use FTS4 ``MATCH`` and return ``matchinfo(..., 'pcnalx')``
for every hit.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from sqlalchemy import String, delete, func, insert, or_, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from samplefinder.exceptions import StoreUnavailable
from samplefinder.search.base_search import CorpusStore, Item, RankedRow
from samplefinder.search.statistics import MatchStatistics
from samplefinder.storage.database import (
    FOLD_FUNCTION,
    fold_case,
    init_db,
    make_session_factory,
    session_scope,
)
from samplefinder.storage.models import SAMPLES_TABLE, SampleRecord, decode_keywords, item_to_row

logger = logging.getLogger(__name__)

_SEGMENT = re.compile(r'"([^"]*)"|([^\s"]+)')
_WORD = re.compile(r"\w+")

_RANKED_SQL = text(
    f"SELECT name, code, readme, relevant_apis, "
    f"matchinfo({SAMPLES_TABLE}, 'pcnalx') AS stats "
    f"FROM {SAMPLES_TABLE} WHERE {SAMPLES_TABLE} MATCH :query ORDER BY rowid"
)


def build_match_expression(query: str) -> Optional[str]:
    """Turn user text into an FTS4 expression of quoted phrases.

    Bare words and ``"quoted phrases"`` each become one phrase; phrases are
    space-joined, which FTS4 treats as AND. Punctuation and FTS operators are
    reduced to plain words. Returns None when nothing searchable remains.
    """
    phrases: List[str] = []
    for quoted, bare in _SEGMENT.findall(query or ""):
        words = _WORD.findall(quoted or bare)
        if words:
            phrases.append('"' + " ".join(words) + '"')
    if not phrases:
        return None
    return " ".join(phrases)


class SqliteCorpusStore(CorpusStore):
    """Corpus store backed by an FTS4 table in SQLite."""

    def __init__(self, engine: Engine, *, create: bool = True) -> None:
        self._engine = engine
        self._sessions: sessionmaker[Session] = make_session_factory(engine)
        if create:
            init_db(engine)

    def _select_items(self, *conditions) -> List[Item]:
        stmt = select(SampleRecord).where(or_(*conditions)).order_by(SampleRecord.rowid)
        try:
            with session_scope(self._sessions) as session:
                return [record.to_item() for record in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Corpus query failed: {exc}") from exc

    @staticmethod
    def _contains(column, query: str):
        # both sides folded by the same Python callable
        folded = getattr(func, FOLD_FUNCTION)(column, type_=String)
        return folded.contains(fold_case(query or ""), autoescape=True)

    def filter_by_substring(self, query: str) -> List[Item]:
        return self._select_items(
            self._contains(SampleRecord.name, query),
            self._contains(SampleRecord.readme, query),
            self._contains(SampleRecord.code, query),
            self._contains(SampleRecord.relevant_apis, query),
        )

    def filter_keywords_by_substring(self, query: str) -> List[Item]:
        return self._select_items(self._contains(SampleRecord.relevant_apis, query))

    def ranked_match(self, query: str) -> List[RankedRow]:
        expression = build_match_expression(query)
        if expression is None:
            return []
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(_RANKED_SQL, {"query": expression}).all()
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Full-text query failed: {exc}") from exc

        out: List[RankedRow] = []
        for name, code, readme, relevant_apis, stats in rows:
            item = Item(
                name=name, bodies=(code or "", readme or ""), keywords=decode_keywords(relevant_apis)
            )
            out.append(RankedRow(item=item, statistics=MatchStatistics.from_bytes(stats)))
        logger.debug("MATCH %s returned %d row(s)", expression, len(out))
        return out

    def get(self, name: str) -> Optional[Item]:
        stmt = select(SampleRecord).where(SampleRecord.name == name).limit(1)
        try:
            with session_scope(self._sessions) as session:
                record = session.scalars(stmt).first()
                return record.to_item() if record is not None else None
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Corpus lookup failed: {exc}") from exc

    def insert_all(self, items: Iterable[Item]) -> int:
        rows = [item_to_row(item) for item in items]
        if not rows:
            return 0
        # FTS tables have no unique constraint; replace by delete + insert
        latest = {row["name"]: row for row in rows}
        names = list(latest)
        try:
            with session_scope(self._sessions) as session:
                session.execute(
                    delete(SampleRecord)
                    .where(SampleRecord.name.in_(names))
                    .execution_options(synchronize_session=False)
                )
                session.execute(insert(SampleRecord.__table__), list(latest.values()))
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Corpus insert failed: {exc}") from exc
        return len(latest)

    def clear(self) -> None:
        try:
            with session_scope(self._sessions) as session:
                session.execute(delete(SampleRecord).execution_options(synchronize_session=False))
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Corpus clear failed: {exc}") from exc

    def count(self) -> int:
        try:
            with session_scope(self._sessions) as session:
                return int(session.scalar(select(func.count()).select_from(SampleRecord)) or 0)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"Corpus count failed: {exc}") from exc
