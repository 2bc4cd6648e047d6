from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base

from paydesk.core.config import settings

Base = declarative_base()

def make_engine(db_url: str = None, **kwargs):
    url = db_url or settings.DB_URL
    # Use connect_args for SQLite so worker threads can share a connection
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, future=True, connect_args=connect_args, **kwargs)

def make_session_factory(bind):
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)

# Default to sqlite file in data/, override via env DB_URL
engine = make_engine()
SessionLocal = scoped_session(make_session_factory(engine))

def init_db(bind=None):
    # Import models here so they are registered on Base
    import paydesk.db.models as _models  # noqa: F401
    bind = bind or engine
    database = bind.url.database
    if bind.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=bind)
