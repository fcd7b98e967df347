from collections.abc import Generator
from pathlib import Path

import pytest

from afilia.core.config import AfiliaSettings
from afilia.core.database import CatalogStore


@pytest.fixture
def settings() -> AfiliaSettings:
    """Settings independent of the caller's environment."""
    return AfiliaSettings(lock_timeout=5.0, echo_sql=False)


@pytest.fixture
def repo_path(tmp_path: Path) -> Path:
    """A repository location that does not exist yet."""
    return tmp_path / "repoX"


@pytest.fixture
def catalog(tmp_path: Path) -> Generator[CatalogStore, None, None]:
    """An opened, unprovisioned catalog store in a temporary directory."""
    store = CatalogStore.open(tmp_path, name="test")
    yield store
    store.close()


@pytest.fixture
def provisioned_catalog(catalog: CatalogStore) -> CatalogStore:
    """A catalog store with the full schema applied."""
    catalog.provision()
    return catalog
