from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

from app.core.config import settings

SQLALCHEMY_DATABASE_URL = settings.database_url


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Local runs only; SQLite connections are shared across FastAPI's threadpool
        return {"connect_args": {"check_same_thread": False}}
    # Configure connection pooling to prevent connection exhaustion
    return {
        "poolclass": QueuePool,
        "pool_size": 10,  # Number of connections to maintain persistently
        "max_overflow": 20,  # Maximum number of connections to create beyond pool_size
        "pool_timeout": 30,  # Seconds to wait before giving up on getting a connection
        "pool_pre_ping": True,  # Verify connections before using them (handles stale connections)
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }


engine = create_engine(SQLALCHEMY_DATABASE_URL, echo=False, **_engine_options(SQLALCHEMY_DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
