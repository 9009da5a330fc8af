"""
Database connection and session management.
Uses SQLAlchemy; Postgres in production, SQLite for local runs and tests.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.config import get_config

logger = logging.getLogger(__name__)

DATABASE_URL = get_config().database_url

# Base class for all our database models (must be defined before engine)
Base = declarative_base()

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# pool_pre_ping ensures connections are alive before using them
engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

logger.info("Database engine configured for %s", engine.url.get_backend_name())


def get_db():
    """
    Dependency function that provides a database session.
    Automatically closes the session after the request is done.

    Usage in FastAPI:
        @app.post("/endpoint")
        def my_endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
