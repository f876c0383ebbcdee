import json
import pytest
from typing import Generator
from sqlalchemy import create_engine, insert
from sqlalchemy.engine import Connection, Engine

from media_migrator.config import Settings
from media_migrator.db import Base
from media_migrator.models import FileRecord
from media_migrator.repository import FileRepository

ENDPOINT = "minio.example.com:9000"
BUCKET = "media"


@pytest.fixture
def media_root(tmp_path):
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def settings(media_root) -> Settings:
    return Settings(
        _env_file=None,
        MINIO_ENDPOINT=ENDPOINT,
        MINIO_ACCESS_KEY="access",
        MINIO_SECRET_KEY="secret",
        MINIO_BUCKET=BUCKET,
        FOLDER_PATH=str(media_root),
    )


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    """
    File-backed SQLite standing in for Postgres.
    The "public" schema is mapped away so public.files becomes plain files.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'files.db'}",
        execution_options={"schema_translate_map": {"public": None}},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def connection(engine) -> Generator[Connection, None, None]:
    connection = engine.connect()
    yield connection
    connection.close()


@pytest.fixture
def repository(connection) -> FileRepository:
    return FileRepository(connection)


@pytest.fixture
def add_record(engine):
    def _add(name, url="/uploads/file", formats=None):
        if isinstance(formats, dict):
            formats = json.dumps(formats)
        with engine.begin() as conn:
            conn.execute(insert(FileRecord).values(name=name, url=url, formats=formats))
    return _add


@pytest.fixture
def fetch_record(engine):
    def _fetch(name):
        with engine.connect() as conn:
            row = conn.execute(
                FileRecord.__table__.select().where(FileRecord.name == name)
            ).first()
        return row
    return _fetch


@pytest.fixture
def make_file():
    def _make(path, content=b"data"):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
    return _make
