"""Shared fixtures for git-dogfood tests."""

import json
from pathlib import Path

import pytest
from git_dogfood import FetchError


class FakeFetcher:
    """In-memory fetcher: serves ``<path>@<ref>`` as content and records every call."""

    def __init__(self, failing: set[str] | None = None, files: dict[str, bytes] | None = None):
        self.failing = failing or set()
        self.files = files or {}
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, path: str, ref: str) -> bytes:
        self.calls.append((path, ref))
        if path in self.failing:
            raise FetchError(f"mock failure for {path}", path=path, ref=ref)
        if path in self.files:
            return self.files[path]
        return f"{path}@{ref}\n".encode()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def consumer_repo(tmp_path):
    """A clean directory simulating a consumer repository."""
    repo = tmp_path / "consumer"
    repo.mkdir()
    return repo


@pytest.fixture
def make_registry(consumer_repo):
    """Write a .vendored/config.json into the consumer repo."""

    def _make(data) -> Path:
        path = consumer_repo / ".vendored" / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data if isinstance(data, str) else json.dumps(data, indent=2) + "\n")
        return path

    return _make
