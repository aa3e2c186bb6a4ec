"""
Document Store Tool
Collection-of-JSON-documents persistence used to hydrate and sync tracker state
"""

import copy
import logging
from typing import Any, Dict, List, Optional
from collections import defaultdict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from database import SessionLocal, get_db_context
from exceptions import PersistenceError
from models import Document


logger = logging.getLogger(__name__)


class DocumentStore:
    """
    Interface of the persistence collaborator.

    Records are plain JSON-compatible dicts. Writes are last-write-wins.
    """

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def put(self, collection: str, document_id: str, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, document_id: str) -> None:
        raise NotImplementedError


class SQLAlchemyDocumentStore(DocumentStore):
    """Document store backed by the `documents` table, listed in first-insert order"""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory or SessionLocal

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        try:
            with get_db_context(self._session_factory) as db:
                rows = db.query(Document).filter(
                    Document.collection == collection
                ).order_by(Document.created_at, Document.document_id).all()
                return [dict(row.data or {}, id=row.document_id) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list collection '{collection}': {e}")
            raise PersistenceError(f"Could not read '{collection}' from the store") from e

    def put(self, collection: str, document_id: str, record: Dict[str, Any]) -> None:
        try:
            with get_db_context(self._session_factory) as db:
                # created_at is only set on first insert
                db.merge(Document(
                    collection=collection,
                    document_id=document_id,
                    data=record
                ))
        except SQLAlchemyError as e:
            logger.error(f"Failed to write {collection}/{document_id}: {e}")
            raise PersistenceError(f"Could not write {collection}/{document_id}") from e

    def delete(self, collection: str, document_id: str) -> None:
        try:
            with get_db_context(self._session_factory) as db:
                db.query(Document).filter(
                    Document.collection == collection,
                    Document.document_id == document_id
                ).delete()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete {collection}/{document_id}: {e}")
            raise PersistenceError(f"Could not delete {collection}/{document_id}") from e


class InMemoryDocumentStore(DocumentStore):
    """Process-local document store, used for tests and ephemeral runs"""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        return [
            dict(copy.deepcopy(record), id=document_id)
            for document_id, record in self._collections[collection].items()
        ]

    def put(self, collection: str, document_id: str, record: Dict[str, Any]) -> None:
        self._collections[collection][document_id] = copy.deepcopy(record)

    def delete(self, collection: str, document_id: str) -> None:
        self._collections[collection].pop(document_id, None)

    def count(self, collection: str) -> int:
        return len(self._collections[collection])
