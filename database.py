import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

engine = None
# committed rows keep their loaded state, so returning them to the caller
# does not open another transaction
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def _serialize_sqlite_writers(engine):
    """Take SQLite's write lock when a transaction starts.

    SQLite ignores SELECT ... FOR UPDATE, so the per-doctor lock row does not
    serialize check-then-write there. Starting every transaction with
    BEGIN IMMEDIATE makes concurrent writers queue on the database lock
    instead, and the second writer's check sees the first one's commit.
    """

    @event.listens_for(engine, "connect")
    def disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def init_engine(url, pool_size=10, max_overflow=20, pool_recycle=300):
    """Create the process-wide engine and bind the session factory to it."""
    global engine
    if url.startswith("sqlite"):
        # requests and background tasks share connections across threads
        engine = create_engine(url, connect_args={"check_same_thread": False})
        _serialize_sqlite_writers(engine)
    else:
        engine = create_engine(url, pool_pre_ping=True, pool_size=pool_size, max_overflow=max_overflow, pool_recycle=pool_recycle)
    SessionLocal.configure(bind=engine)
    logger.info(f"Database engine created for {engine.url.get_backend_name()}")
    return engine


def dispose_engine():
    global engine
    if engine is not None:
        engine.dispose()
        logger.info("Database engine disposed")
    engine = None


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
