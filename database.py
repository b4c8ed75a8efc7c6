import logging
import time

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(url, **kwargs):
    return create_engine(url, pool_pre_ping=True, **kwargs)


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine, attempts=10, delay=2.0):
    """Create the tasks table if it does not exist, retrying while the database comes up."""
    # Register the mapped tables on Base.metadata.
    import models  # noqa: F401

    for i in range(attempts):
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables created or already exist.")
            return
        except OperationalError:
            if i + 1 == attempts:
                raise
            logger.warning(
                "Database connection failed. Retrying... (%d/%d)", i + 1, attempts, exc_info=True
            )
            time.sleep(delay)
