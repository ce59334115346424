from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from portfolio_ledger.core.config import settings


def make_engine(url: str = settings.DATABASE_URL, **kwargs):
    engine = create_engine(url, echo=settings.SQL_ECHO, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    # models must be imported so their tables are registered on Base.metadata
    import portfolio_ledger.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
