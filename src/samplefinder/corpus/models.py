"""Sample data structures.

`SampleMetadata` mirrors a sample's ``README.metadata.json``; `Sample` is
the resolved object handed to callers, carrying its readme, code files and
links alongside the metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from samplefinder.search.base_search import Item
from samplefinder.storage.models import CODE_SEPARATOR


class SampleCategory(str, Enum):
    ANALYSIS = "Analysis"
    AUGMENTED_REALITY = "Augmented Reality"
    CLOUD_AND_PORTAL = "Cloud and Portal"
    LAYERS = "Layers"
    EDIT_AND_MANAGE_DATA = "Edit and Manage Data"
    MAPS = "Maps"
    SCENES = "Scenes"
    ROUTING_AND_LOGISTICS = "Routing and Logistics"
    UTILITY_NETWORKS = "Utility Networks"
    SEARCH_AND_QUERY = "Search and Query"
    VISUALIZATION = "Visualization"
    FAVORITES = "Favorites"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_text(cls, text: str) -> "SampleCategory":
        """Return the category whose display text is ``text``."""
        for category in cls:
            if category.value == text:
                return category
        raise ValueError(f"Unknown sample category: {text!r}")


class SampleMetadata(BaseModel):
    """Contents of ``README.metadata.json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    category: SampleCategory
    description: str = ""
    formal_name: str = ""
    ignore: bool = False
    image_paths: List[str] = Field(default_factory=list, alias="images")
    keywords: List[str] = Field(default_factory=list)
    relevant_apis: List[str] = Field(default_factory=list)
    code_paths: List[str] = Field(default_factory=list, alias="snippets")

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: object) -> object:
        if isinstance(value, str):
            return SampleCategory.from_text(value)
        return value


@dataclass(slots=True)
class CodeFile:
    name: str
    code: str


@dataclass(slots=True)
class Sample:
    """A loaded sample. ``relevance_score`` is only set on ranked results."""

    name: str
    metadata: SampleMetadata
    readme: str = ""
    code_files: List[CodeFile] = field(default_factory=list)
    url: str = ""
    screenshot_url: str = ""
    relevance_score: float = field(default=0.0, compare=False)

    @property
    def category(self) -> SampleCategory:
        return self.metadata.category

    @property
    def keywords(self) -> List[str]:
        return list(self.metadata.relevant_apis)

    def to_item(self) -> Item:
        """The searchable record for this sample."""
        code = CODE_SEPARATOR.join(f.code for f in self.code_files)
        return Item(name=self.name, bodies=(code, self.readme), keywords=tuple(self.keywords))
