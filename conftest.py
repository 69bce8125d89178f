# conftest.py
import os
from pathlib import Path

# ต้องตั้งก่อน import database/config: engine ระดับ module อ่านค่านี้
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_default.db")

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from database import get_db, make_engine

BASE_DIR = Path(__file__).resolve().parent


def make_alembic_config(url: str, **attributes) -> Config:
    cfg = Config(str(BASE_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BASE_DIR / "alembic"))
    cfg.set_main_option("sqlalchemy.url", url)
    # ไม่ให้ fileConfig ทับ handler ของ pytest (caplog)
    cfg.attributes["configure_logger"] = False
    cfg.attributes.update(attributes)
    return cfg


def migrate(url: str, revision: str = "head", **attributes):
    command.upgrade(make_alembic_config(url, **attributes), revision)


def execute_sql(url: str, *statements, params=None):
    """เขียนข้อมูล legacy ตรง ๆ ระหว่าง revision (ไม่ผ่าน ORM)"""
    eng = sa.create_engine(url)
    try:
        with eng.begin() as conn:
            for stmt in statements:
                conn.execute(sa.text(stmt), params or {})
    finally:
        eng.dispose()


def fetch_all(url: str, sql: str, params=None):
    eng = sa.create_engine(url)
    try:
        with eng.connect() as conn:
            return conn.execute(sa.text(sql), params or {}).all()
    finally:
        eng.dispose()


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'crusher.db'}"


@pytest.fixture
def migrated_url(db_url):
    migrate(db_url, "head")
    return db_url


@pytest.fixture
def engine(migrated_url):
    eng = make_engine(migrated_url)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = Session(bind=engine, autoflush=False)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    from main import app

    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
