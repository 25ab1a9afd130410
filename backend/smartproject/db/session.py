from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from smartproject.core.config import settings


def make_engine(url: str, **kwargs) -> Engine:
    eng = create_engine(url, pool_pre_ping=True, **kwargs)
    if eng.dialect.name == "sqlite":
        # sqlite ignores ON DELETE CASCADE unless asked
        @event.listens_for(eng, "connect")
        def _fk_on(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()
    return eng


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
