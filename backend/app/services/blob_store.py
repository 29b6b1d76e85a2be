"""SQLAlchemy-backed blob store.

Same ``load``/``save`` interface as the file and memory stores of the engine,
so repositories run unchanged on top of the service database.
"""

import copy
import logging
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.blob import Blob

logger = logging.getLogger(__name__)


class SqlBlobStore:
    """Stores each logical blob as one ``blobs`` row."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def load(self, name: str, default: Any = None) -> Any:
        db = self._session_factory()
        try:
            row = db.execute(select(Blob).where(Blob.name == name)).scalar_one_or_none()
            if row is None or row.data is None:
                return copy.deepcopy(default)
            return copy.deepcopy(row.data)
        finally:
            db.close()

    def save(self, name: str, value: Any) -> None:
        db = self._session_factory()
        try:
            row = db.execute(select(Blob).where(Blob.name == name)).scalar_one_or_none()
            if row is None:
                db.add(Blob(name=name, data=copy.deepcopy(value)))
            else:
                # Assign a fresh object so the JSON column is flagged dirty
                row.data = copy.deepcopy(value)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to save blob", extra={"blob": name})
            raise
        finally:
            db.close()
        logger.debug("Saved blob %s", name, extra={"blob": name})
