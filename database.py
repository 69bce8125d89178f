# database.py
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from config import settings

# constraint names must be stable so migrations can find and drop them
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_N_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

Base = declarative_base(metadata=MetaData(naming_convention=NAMING_CONVENTION))


def _enable_sqlite_fks(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


def make_engine(url: str, echo: bool = False) -> Engine:
    """
    สร้าง engine ให้เหมือนกันทุกที่ (app, seed, tests)
    - SQLite: เปิด foreign_keys ทุก connection ไม่งั้น RESTRICT/CASCADE/SET NULL ไม่ทำงาน
    """
    eng = create_engine(
        url,
        pool_pre_ping=True,   # ช่วยตัด connection ที่ตายแล้ว
        future=True,
        echo=echo,
    )
    if eng.dialect.name == "sqlite":
        event.listen(eng, "connect", _enable_sqlite_fks)
    return eng


engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    """Dependency สำหรับ FastAPI: เปิด session ต่อคำขอ แล้วปิดให้เสมอ"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(bind: Engine = None) -> Iterator[Session]:
    """Unit of work for scripts: commit on success, rollback on error."""
    db = Session(bind=bind or engine, autoflush=False)
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
