"""SQLAlchemy models for SampleFinder storage.

The corpus is a single FTS4 virtual table. It is mapped here so queries can
be written with the ORM, but it is created by `SAMPLES_FTS_DDL` rather than
``metadata.create_all`` since SQLAlchemy cannot emit ``CREATE VIRTUAL TABLE``.
"""

from __future__ import annotations

import json
from typing import Optional

from sqlalchemy import Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from samplefinder.search.base_search import Item

SAMPLES_TABLE = "samples"

# Column order is load-bearing: match statistics are reported per column
# in this order (name, code, readme, relevant_apis).
SAMPLES_FTS_DDL = (
    f"CREATE VIRTUAL TABLE IF NOT EXISTS {SAMPLES_TABLE} "
    "USING fts4(name, code, readme, relevant_apis)"
)

CODE_SEPARATOR = "\n\n"


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""


class SampleRecord(Base):
    """One searchable sample row."""

    __tablename__ = SAMPLES_TABLE
    # Virtual tables reject RETURNING
    __table_args__ = {"implicit_returning": False}

    rowid: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text)
    code: Mapped[Optional[str]] = mapped_column(Text, default="")
    readme: Mapped[Optional[str]] = mapped_column(Text, default="")
    # JSON array of API names
    relevant_apis: Mapped[Optional[str]] = mapped_column(Text, default="[]")

    def to_item(self) -> Item:
        return Item(
            name=self.name,
            bodies=(self.code or "", self.readme or ""),
            keywords=decode_keywords(self.relevant_apis),
        )


def decode_keywords(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(str(v) for v in json.loads(raw))


def item_to_row(item: Item) -> dict[str, str]:
    """Column values for inserting ``item``.

    The first body is stored as code, the rest are joined into the readme column.
    """
    bodies = list(item.bodies)
    code = bodies[0] if bodies else ""
    readme = CODE_SEPARATOR.join(bodies[1:])
    return {
        "name": item.name,
        "code": code,
        "readme": readme,
        "relevant_apis": json.dumps(list(item.keywords), ensure_ascii=False),
    }
