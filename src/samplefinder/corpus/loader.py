"""Build `Sample` objects from a ``samples.json`` bundle.

The bundle maps each sample folder to its files::

    {"display-map": {"README.metadata.json": "...", "README.md": "...",
                     "MainActivity.kt": "..."}}

A sample without ``README.metadata.json`` is skipped; a sample whose
metadata does not validate is logged and skipped. The bundle can be read
from disk or fetched over HTTP.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx
from pydantic import ValidationError

from samplefinder.corpus.models import CodeFile, Sample, SampleMetadata
from samplefinder.exceptions import CorpusLoadError

logger = logging.getLogger(__name__)

METADATA_FILE = "README.metadata.json"
README_FILE = "README.md"
CODE_SUFFIXES = (".kt",)

DEFAULT_SAMPLE_BASE_URL = "https://developers.arcgis.com/kotlin/sample-code"
DEFAULT_SCREENSHOT_BASE_URL = (
    "https://raw.githubusercontent.com/Esri/arcgis-maps-sdk-kotlin-samples/v.next"
)


def kebab_case(name: str) -> str:
    return name.replace(" ", "-").lower()


def load_code_files(file_map: Mapping[str, str]) -> List[CodeFile]:
    """Code files of a sample, in bundle order."""
    return [
        CodeFile(name=path.rsplit("/", 1)[-1], code=content)
        for path, content in file_map.items()
        if path.endswith(CODE_SUFFIXES)
    ]


def load_readme(file_map: Mapping[str, str]) -> str:
    """The readme with screenshot image lines removed."""
    readme = file_map.get(README_FILE) or ""
    return "\n".join(line for line in readme.splitlines() if "![" not in line)


def screenshot_url(title: str, image_paths: List[str], base_url: str) -> str:
    # Only the first image is used
    if not image_paths:
        return ""
    image = image_paths[0].replace('"', "")
    return f"{base_url.rstrip('/')}/{kebab_case(title)}/{image}"


def build_sample(
    file_map: Mapping[str, str],
    *,
    sample_base_url: str = DEFAULT_SAMPLE_BASE_URL,
    screenshot_base_url: str = DEFAULT_SCREENSHOT_BASE_URL,
) -> Optional[Sample]:
    """Build one sample from its files, or None when it has no metadata.

    Raises pydantic ``ValidationError`` / ``ValueError`` for bad metadata.
    """
    raw = file_map.get(METADATA_FILE)
    if raw is None:
        return None
    metadata = SampleMetadata.model_validate_json(raw)
    return Sample(
        name=metadata.title,
        metadata=metadata,
        readme=load_readme(file_map),
        code_files=load_code_files(file_map),
        url=f"{sample_base_url.rstrip('/')}/{kebab_case(metadata.title)}",
        screenshot_url=screenshot_url(metadata.title, metadata.image_paths, screenshot_base_url),
    )


def parse_bundle(
    bundle: Mapping[str, Any],
    *,
    sample_base_url: str = DEFAULT_SAMPLE_BASE_URL,
    screenshot_base_url: str = DEFAULT_SCREENSHOT_BASE_URL,
) -> List[Sample]:
    """Build every sample in a decoded bundle, skipping the broken ones."""
    if not isinstance(bundle, Mapping):
        raise CorpusLoadError("samples bundle must be a JSON object")

    samples: List[Sample] = []
    for folder, file_map in bundle.items():
        if not isinstance(file_map, Mapping):
            logger.warning("Skipping %s: expected a map of files", folder)
            continue
        try:
            sample = build_sample(
                file_map,
                sample_base_url=sample_base_url,
                screenshot_base_url=screenshot_base_url,
            )
        except (ValidationError, ValueError) as exc:
            logger.error("Invalid metadata in %s: %s", folder, exc)
            continue
        if sample is None:
            logger.debug("Skipping %s: no %s", folder, METADATA_FILE)
            continue
        samples.append(sample)
    logger.info("Loaded %d sample(s) from %d folder(s)", len(samples), len(bundle))
    return samples


def decode_bundle(raw: Union[str, bytes]) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorpusLoadError(f"samples bundle is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CorpusLoadError("samples bundle must be a JSON object")
    return data


def load_samples_file(path: Union[str, Path], **kwargs: str) -> List[Sample]:
    """Read and parse a ``samples.json`` file."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise CorpusLoadError(f"Cannot read samples bundle {path}: {exc}") from exc
    return parse_bundle(decode_bundle(raw), **kwargs)


class RemoteSamplesSource:
    """Fetches a ``samples.json`` bundle over HTTP."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        sample_base_url: str = DEFAULT_SAMPLE_BASE_URL,
        screenshot_base_url: str = DEFAULT_SCREENSHOT_BASE_URL,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.sample_base_url = sample_base_url
        self.screenshot_base_url = screenshot_base_url

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)

    async def fetch_bundle(self) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                resp = await client.get(self.url, headers={"Accept": "application/json"})
                resp.raise_for_status()
                return decode_bundle(resp.content)
        except httpx.HTTPError as exc:
            raise CorpusLoadError(f"Cannot fetch samples bundle {self.url}: {exc}") from exc

    async def fetch(self) -> List[Sample]:
        bundle = await self.fetch_bundle()
        return parse_bundle(
            bundle,
            sample_base_url=self.sample_base_url,
            screenshot_base_url=self.screenshot_base_url,
        )
