"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from articlestash.errors import AutoExtractionError
from articlestash.items import AutoExtraction

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


class StubAutoExtractor:
    """Deterministic automatic extractor that counts its invocations."""

    name = "stub"

    def __init__(self, fail: bool = False, **values: str | None) -> None:
        self.fail = fail
        self.values = values
        self.calls = 0

    def extract(self, html: str, url: str = "") -> AutoExtraction:
        self.calls += 1
        if self.fail:
            raise AutoExtractionError("stub failure")
        return AutoExtraction(method="stub", **self.values)


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def example_com_html() -> str:
    return _read_fixture("example_com.html")


@pytest.fixture
def stub_extractor():
    """Factory: ``stub_extractor(title="T", body="<p>B</p>", fail=False)``."""
    return StubAutoExtractor


@pytest.fixture(autouse=True)
def _isolated_config_dir(tmp_path, monkeypatch):
    """Keep tests away from the real user configuration."""
    monkeypatch.setenv("ARTICLESTASH_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
