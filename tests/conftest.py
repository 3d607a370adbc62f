import pytest
from fastapi.testclient import TestClient

from admin.records import RecordService
from admin.tables import TableAdmin
from api.app import create_app
from config.settings import Settings
from domain.models import ColumnSpec
from infra.database import Database
from infra.metadata_store import SearchMetadataStore
from retrieval.search_service import SearchService


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'test.sqlite'}")
    yield database
    database.engine.dispose()


@pytest.fixture
def metadata(db):
    return SearchMetadataStore(db)


@pytest.fixture
def tables(db, metadata):
    return TableAdmin(db, metadata)


@pytest.fixture
def records(db, metadata):
    return RecordService(db, reserved=(metadata.table,))


@pytest.fixture
def app_settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'test.sqlite'}")


@pytest.fixture
def search(db, metadata, app_settings):
    return SearchService(db, metadata, app_settings)


@pytest.fixture
def client(db, app_settings):
    app = create_app(settings=app_settings, database=db)
    with TestClient(app) as c:
        yield c


def cols(*specs):
    """cols(("id", "INTEGER PRIMARY KEY"), ("name", "TEXT", False)) -> ColumnSpec list"""
    out = []
    for spec in specs:
        name, col_type = spec[0], spec[1]
        searchable = spec[2] if len(spec) > 2 else None
        out.append(ColumnSpec(name=name, type=col_type, isSearchable=searchable))
    return out
