from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from lak.storage import Storage
from lak.templates import TemplateCatalog


@pytest.fixture()
def storage(tmp_path: Path) -> Storage:
    store = Storage(str(tmp_path / "data"))
    store.initialize()
    return store


@pytest.fixture()
def catalog(storage: Storage) -> TemplateCatalog:
    return TemplateCatalog(storage)


@pytest.fixture()
def monday() -> date:
    return date(2025, 6, 2)
