"""
Shared pytest fixtures for archivum tests.
"""

import pytest

from archivum.api import Archive
from archivum.config import StoreConfig
from archivum.repository import Repository
from archivum.types import BookmarkData, FileData


@pytest.fixture
def repo() -> Repository:
    """A fresh, empty core repository."""
    return Repository()


@pytest.fixture
def seeded(repo: Repository) -> Repository:
    """
    Repository with a small taxonomy and two tagged nodes.

    Tags:   1 work, 2 work/projects, 3 work/projects/archivum, 4 home
    Nodes:  10 File a.txt  -> [work, work/projects]
            11 Bookmark    -> [work/projects]
    """
    repo.upsert_tag(1, ["work"])
    repo.upsert_tag(2, ["work", "projects"])
    repo.upsert_tag(3, ["work", "projects", "archivum"])
    repo.upsert_tag(4, ["home"])
    repo.upsert_node(10, FileData("a.txt", 5), "2026-01-01", "2026-01-02")
    repo.upsert_node(11, BookmarkData("https://x", "X"), "2026-01-03", "2026-01-03T10:00:00")
    repo.tag_node(10, 1)
    repo.tag_node(10, 2)
    repo.tag_node(11, 2)
    return repo


@pytest.fixture
def store_config(tmp_path) -> StoreConfig:
    """Store configuration rooted in a temporary directory."""
    return StoreConfig(path=tmp_path / "store")


@pytest.fixture
def archive(store_config):
    """An Archive backed by a temporary store directory."""
    ar = Archive.open(config=store_config)
    yield ar
    ar.close()
