"""Engine and session handling for the plan store.

The store holds the athlete's weekly availability and date overrides,
training preferences, planned workouts, completed activities and the
adaptation records written by reconciliation passes.
"""

from typing import Generator, List, Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import config
from .models import Base


class Database:
    """Plan store connection.

    In-memory and file SQLite URLs share one connection through StaticPool,
    so ``sqlite://`` keeps its tables for the life of the instance.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or config.DATABASE_URL

        if self.database_url.startswith("sqlite"):
            self.engine = create_engine(
                self.database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        else:
            self.engine = create_engine(self.database_url, echo=False)

        # Records handed back to callers stay readable after commit
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine)

    def create_tables(self):
        """Create the availability, plan, activity and adaptation tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        Base.metadata.drop_all(bind=self.engine)

    def table_names(self) -> List[str]:
        """Plan store tables present in the database."""
        existing = set(inspect(self.engine).get_table_names())
        return [name for name in Base.metadata.tables if name in existing]

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """One unit of work: commits on success, rolls back and re-raises on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        self.engine.dispose()


_db: Optional[Database] = None


def get_db(database_url: Optional[str] = None) -> Database:
    """Shared plan store, rebuilt when a different URL is requested."""
    global _db
    if _db is None or (database_url and _db.database_url != database_url):
        if _db is not None:
            _db.close()
        _db = Database(database_url)
        _db.create_tables()
    return _db


def close_db():
    """Dispose of the shared plan store."""
    global _db
    if _db is not None:
        _db.close()
        _db = None
