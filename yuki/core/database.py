from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from yuki.core.config import settings


def configure_sqlite(engine):
    """Apply per-connection PRAGMAs. Foreign keys must be on for ledger cascades."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        # Better concurrency and read performance
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.execute("PRAGMA temp_store=MEMORY;")
        cursor.close()

    return engine


# SQLite-specific configuration
if settings.DATABASE_URL.startswith("sqlite"):
    engine = configure_sqlite(create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False}  # Allow SQLite to work with FastAPI
    ))
else:
    # Postgres or others
    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
