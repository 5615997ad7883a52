"""Shared pytest fixtures for codescope tests.

This module provides common fixtures used across unit and integration
tests. Fixtures are organized by category:
- Path fixtures: On-disk sample repositories
- Client fixtures: RepositoryClient implementations backed by local files
- Source fixtures: Small code samples per language
- Record fixtures: Parsed FileRecords for graph and metrics tests
"""

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from codescope.analyzers.source_parser import SourceParser, is_code
from codescope.github.client import RateLimit
from codescope.models import FileRecord
from codescope.pipeline import apply_parsed

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_repos_dir(fixtures_dir: Path) -> Path:
    """Return the path to sample repository fixtures."""
    return fixtures_dir / "sample_repos"


@pytest.fixture
def web_app_dir(sample_repos_dir: Path) -> Path:
    """Return the mixed JS/TS/Python sample repository."""
    return sample_repos_dir / "web_app"


# =============================================================================
# Client Fixtures
# =============================================================================


class LocalRepositoryClient:
    """RepositoryClient that serves a directory on disk.

    Attributes:
        missing: Paths whose content fetch returns None
        broken: Paths whose content fetch raises
        listing_error: Raised by list_files when set
        fetched: Paths requested, in request order
        max_in_flight: Highest number of concurrent content fetches seen
    """

    def __init__(
        self,
        root: Path,
        missing: set[str] | None = None,
        broken: set[str] | None = None,
        listing_error: Exception | None = None,
    ) -> None:
        self.root = root
        self.missing = missing or set()
        self.broken = broken or set()
        self.listing_error = listing_error
        self.fetched: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_files(self, owner: str, repo: str) -> list[FileRecord]:
        if self.listing_error is not None:
            raise self.listing_error
        records = []
        for path in sorted(self.root.rglob("*")):
            if path.is_file():
                relative = path.relative_to(self.root).as_posix()
                records.append(
                    FileRecord.from_path(relative, size=path.stat().st_size, is_code=is_code(path.name))
                )
        return records

    async def get_file_content(self, owner: str, repo: str, path: str) -> str | None:
        self.fetched.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if path in self.broken:
                raise RuntimeError("connection reset")
            if path in self.missing:
                return None
            return (self.root / path).read_text(encoding="utf-8")
        finally:
            self.in_flight -= 1

    def get_rate_limit_status(self) -> RateLimit:
        return RateLimit()


@pytest.fixture
def local_client(web_app_dir: Path) -> LocalRepositoryClient:
    """Return a client serving the web_app sample repository."""
    return LocalRepositoryClient(web_app_dir)


@pytest.fixture
def local_client_factory(web_app_dir: Path) -> Callable[..., LocalRepositoryClient]:
    """Return a factory for web_app clients with injected failures."""

    def factory(**kwargs: Any) -> LocalRepositoryClient:
        return LocalRepositoryClient(web_app_dir, **kwargs)

    return factory


# =============================================================================
# Source Fixtures
# =============================================================================


@pytest.fixture
def javascript_source() -> str:
    """Return sample JavaScript source code."""
    return """import { helper } from "./helper";

class UserService {
  constructor(db) {
    this.db = db;
  }

  createUser(name, email = "none") {
    return { name, email };
  }
}

function main(...args) {
  const service = new UserService(null);
  const nested = () => {
    helper();
  };
  nested();
  return;
}

const double = (x) => x * 2;
"""


@pytest.fixture
def typescript_source() -> str:
    """Return sample TypeScript source code."""
    return """import type { Config } from "./types";

export interface User {
  name: string;
  email?: string;
}

type UserId = string | number;

export class UserService {
  private readonly users: User[] = [];

  add(user: User): number {
    return this.users.push(user);
  }
}

export function findUser(id: UserId, users: User[]): User | undefined {
  return users.find((u) => u.name === String(id));
}
"""


@pytest.fixture
def python_source() -> str:
    """Return sample Python source code."""
    return '''"""Sample module."""

import os
from .models import User

MAX_USERS = 100
NAME = "service"


class UserService:
    def create_user(self, name):
        return User(name)


def main():
    service = UserService()
    service.create_user("a")


async def fetch_all():
    return []
'''


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def make_record() -> Callable[[str, str], FileRecord]:
    """Return a factory building a parsed FileRecord from path and content."""
    parser = SourceParser()

    def factory(path: str, content: str) -> FileRecord:
        record = FileRecord.from_path(path, size=len(content), is_code=is_code(path))
        apply_parsed(record, content, parser.parse(content, path))
        return record

    return factory
