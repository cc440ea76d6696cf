"""SampleFinder MCP server entrypoint using FastMCP.

Exposes suggestion and ranked search over the samples corpus.
Run with:
  - poetry run samplefinder-mcp
  - or: python -m samplefinder.mcp.server (ensure PYTHONPATH includes ./src)
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from fastmcp import FastMCP

from samplefinder.config import Settings, load_settings
from samplefinder.corpus.loader import RemoteSamplesSource, load_samples_file
from samplefinder.corpus.models import Sample
from samplefinder.corpus.repository import SampleRepository
from samplefinder.logging_config import setup_logging
from samplefinder.mcp.tools import register_search_tools
from samplefinder.search.coordinator import SearchCoordinator
from samplefinder.search.fts_store import SqliteCorpusStore
from samplefinder.storage.database import get_engine

logger = logging.getLogger(__name__)


class AppState:
    """Application state shared by MCP tools."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.repository: Optional[SampleRepository] = None
        self.store: Optional[SqliteCorpusStore] = None
        self.coordinator: Optional[SearchCoordinator] = None

    async def _load_samples(self) -> Optional[List[Sample]]:
        cfg = self.settings.corpus
        urls = {
            "sample_base_url": cfg.sample_base_url,
            "screenshot_base_url": cfg.screenshot_base_url,
        }
        if cfg.path:
            return await asyncio.to_thread(load_samples_file, cfg.path, **urls)
        if cfg.url:
            return await RemoteSamplesSource(cfg.url, timeout=cfg.timeout, **urls).fetch()
        return None

    async def init_corpus(self) -> None:
        """Load samples from configuration, index them and start the coordinator."""
        samples = await self._load_samples()
        if samples is None:
            logger.warning("No samples bundle configured; search tools are disabled")
            self.repository = None
            self.store = None
            self.coordinator = None
            return

        db = self.settings.database
        self.repository = SampleRepository(samples)
        self.store = SqliteCorpusStore(get_engine(db.url, echo=db.echo))
        await asyncio.to_thread(self.repository.populate, self.store)
        self.coordinator = SearchCoordinator(
            self.store,
            resolve=self.repository.get_by_name,
            b=self.settings.search.bm25_b,
            k1=self.settings.search.bm25_k1,
        )


# Global state and server instance
_state: Optional[AppState] = None
mcp = FastMCP("SampleFinder MCP Server")


# ----- Tools -----

@mcp.tool
def health() -> str:
    """Simple health check tool."""
    return "ok"


# ----- Entrypoint -----

def main() -> None:
    """Initialize state and run the MCP server."""
    global _state
    settings = load_settings()
    setup_logging(settings.app.log_level, settings.app.log_file)
    _state = AppState(settings)
    asyncio.run(_state.init_corpus())
    register_search_tools(mcp, get_state=lambda: _state)
    # Choose transport based on configuration: stdio (default), http, or sse
    transport = settings.app.transport
    if transport in ("http", "sse"):
        mcp.run(transport=transport, host=settings.app.host, port=settings.app.port)
    else:
        mcp.run()


if __name__ == "__main__":  # pragma: no cover
    main()
