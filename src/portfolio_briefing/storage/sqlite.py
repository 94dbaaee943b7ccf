"""SQLAlchemy-backed preference store."""

import logging
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from portfolio_briefing.exceptions import StorageError

logger = logging.getLogger(__name__)

Base = declarative_base()


class PreferenceModel(Base):
    """One persisted preference slot."""

    __tablename__ = "preferences"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<PreferenceModel(key={self.key}, updated_at={self.updated_at})>"


class SqliteStore:
    """Key/value store persisted to a SQLite database.

    Each ``set`` overwrites the whole value of its key and commits immediately.
    """

    def __init__(self, db_url: str):
        """Initialize store.

        Args:
            db_url: SQLAlchemy database URL, e.g. ``sqlite:////path/preferences.db``.
        """
        self._engine = create_engine(db_url)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(bind=self._engine)
        logger.debug(f"Preference store opened: {db_url}")

    def get(self, key: str) -> str | None:
        try:
            with self._session_factory() as session:
                item = session.get(PreferenceModel, key)
                return None if item is None else str(item.value)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read preference '{key}': {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as session:
                item = session.get(PreferenceModel, key)
                if item:
                    item.value = value
                    item.updated_at = datetime.now()
                else:
                    session.add(PreferenceModel(key=key, value=value, updated_at=datetime.now()))
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write preference '{key}': {e}") from e

    def close(self) -> None:
        """Release database resources."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
