import os

os.environ.setdefault("CATALOG_DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import repo  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture
def catalog_db():
    repo.init_db()
    yield repo.CatalogRepo()
    repo.Base.metadata.drop_all(repo.engine)


@pytest.fixture
def api(catalog_db):
    with TestClient(app) as c:
        yield c
