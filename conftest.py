import pytest
from fastapi.testclient import TestClient

from library import Library


@pytest.fixture
def lib(tmp_path):
    # Her test için benzersiz bir veritabanı dosyası oluştur
    db_file = str(tmp_path / "library_test.db")
    lib = Library(db_file=db_file)
    yield lib
    lib.close()


@pytest.fixture
def client(lib):
    """TestClient whose store is the per-test ``lib``."""
    import api

    api.app.dependency_overrides[api.get_library] = lambda: lib
    try:
        with TestClient(api.app) as test_client:
            yield test_client
    finally:
        api.app.dependency_overrides.clear()
