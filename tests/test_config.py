import logging

import pytest
from pydantic import ValidationError

from samplefinder.config import Settings, load_settings
from samplefinder.exceptions import ConfigError, SampleFinderError
from samplefinder.logging_config import setup_logging


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    settings = load_settings()
    assert settings.database.url == "sqlite+pysqlite:///:memory:"
    assert settings.search.bm25_b == 0.75
    assert settings.search.bm25_k1 == 1.2
    assert settings.corpus.path is None and settings.corpus.url is None
    assert settings.app.transport == "stdio"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SAMPLEFINDER_SEARCH__BM25_K1", "2.0")
    monkeypatch.setenv("SAMPLEFINDER_CORPUS__PATH", "/data/samples.json")
    monkeypatch.setenv("SAMPLEFINDER_APP__TRANSPORT", "http")
    settings = load_settings()
    assert settings.search.bm25_k1 == 2.0
    assert settings.corpus.path == "/data/samples.json"
    assert settings.app.transport == "http"


def test_invalid_values_rejected(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SAMPLEFINDER_SEARCH__BM25_B", "1.5")
    with pytest.raises(ValidationError):
        Settings()
    with pytest.raises(ConfigError) as excinfo:
        load_settings()
    assert isinstance(excinfo.value, SampleFinderError)
    assert isinstance(excinfo.value.__cause__, ValidationError)


def test_setup_logging_file_handler(tmp_path) -> None:
    log_file = tmp_path / "logs" / "samplefinder.log"
    root = logging.getLogger()
    saved = list(root.handlers)
    try:
        setup_logging("debug", str(log_file))
        logging.getLogger("samplefinder.test").info("hello")
        for handler in root.handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")
        assert len(root.handlers) == 2
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved
