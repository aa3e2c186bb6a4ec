"""
Tests for Document Store Tool
SQLAlchemy-backed and in-memory collection stores
"""

import pytest
from unittest.mock import MagicMock

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, engine
from exceptions import PersistenceError
from models import Document
from services.tracker_service import TrackerService
from tools.document_store import InMemoryDocumentStore, SQLAlchemyDocumentStore


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def test_engine():
    """In-memory SQLite engine with the documents table"""
    import models  # noqa: F401

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sql_store(test_engine):
    return SQLAlchemyDocumentStore(sessionmaker(autocommit=False, autoflush=False, bind=test_engine))


# =============================================================================
# SQLAlchemy store
# =============================================================================

class TestSQLAlchemyDocumentStore:
    """Tests for the database-backed store"""

    @pytest.mark.database
    def test_put_and_list(self, sql_store):
        sql_store.put("medicines", "m1", {"name": "Metformin", "times": ["08:00"]})
        sql_store.put("medicines", "m2", {"name": "Aspirin", "times": ["09:00"]})
        sql_store.put("intakes", "i1", {"medicine_id": "m1"})

        records = sql_store.list_all("medicines")

        assert {r["id"] for r in records} == {"m1", "m2"}
        assert next(r for r in records if r["id"] == "m1")["times"] == ["08:00"]
        assert len(sql_store.list_all("intakes")) == 1

    @pytest.mark.database
    def test_put_is_last_write_wins(self, sql_store):
        sql_store.put("profiles", "main", {"name": "Jane"})
        sql_store.put("profiles", "main", {"name": "Janet"})

        assert sql_store.list_all("profiles") == [{"name": "Janet", "id": "main"}]

    @pytest.mark.database
    def test_update_keeps_insert_order(self, sql_store):
        """Rewriting a record does not move it behind records inserted later"""
        sql_store.put("medicines", "m2", {"name": "Metformin"})
        sql_store.put("medicines", "m1", {"name": "Aspirin"})
        sql_store.put("medicines", "m2", {"name": "Metformin XR"})

        records = sql_store.list_all("medicines")

        assert [r["id"] for r in records] == ["m2", "m1"]
        assert records[0]["name"] == "Metformin XR"

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_hydrated_tracker_keeps_order_after_update(self, sql_store, clock):
        tracker = TrackerService(store=sql_store, clock=clock)
        first = await tracker.add_medicine({"name": "Metformin", "dosage": "500mg", "times": ["08:00"]})
        second = await tracker.add_medicine({"name": "Aspirin", "dosage": "75mg", "times": ["08:00"]})
        await tracker.update_medicine(first.id, {"dosage": "1000mg"})

        restarted = TrackerService(store=sql_store, clock=clock)
        await restarted.hydrate()

        assert [m.id for m in restarted.list_medicines()] == [first.id, second.id]
        assert restarted.get_medicine(first.id).dosage == "1000mg"

    @pytest.mark.database
    def test_delete(self, sql_store):
        sql_store.put("medicines", "m1", {"name": "Metformin"})
        sql_store.delete("medicines", "m1")
        sql_store.delete("medicines", "never-existed")

        assert sql_store.list_all("medicines") == []

    @pytest.mark.database
    def test_empty_collection(self, sql_store):
        assert sql_store.list_all("medicines") == []

    @pytest.mark.database
    def test_database_errors_become_persistence_errors(self):
        session = MagicMock()
        session.merge.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))
        session.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        store = SQLAlchemyDocumentStore(lambda: session)

        with pytest.raises(PersistenceError):
            store.put("medicines", "m1", {"name": "x"})
        with pytest.raises(PersistenceError):
            store.list_all("medicines")
        assert session.rollback.called


# =============================================================================
# In-memory store
# =============================================================================

class TestInMemoryDocumentStore:
    """Tests for the process-local store"""

    @pytest.mark.unit
    def test_records_are_copied(self):
        store = InMemoryDocumentStore()
        record = {"times": ["08:00"]}
        store.put("medicines", "m1", record)
        record["times"].append("20:00")

        listed = store.list_all("medicines")
        listed[0]["times"].append("22:00")

        assert store.list_all("medicines") == [{"times": ["08:00"], "id": "m1"}]

    @pytest.mark.unit
    def test_count_and_delete(self):
        store = InMemoryDocumentStore()
        store.put("intakes", "a", {})
        store.put("intakes", "b", {})
        store.delete("intakes", "a")
        store.delete("intakes", "missing")

        assert store.count("intakes") == 1
        assert store.count("medicines") == 0


# =============================================================================
# Database module
# =============================================================================

class TestDatabaseEngine:

    @pytest.mark.database
    @pytest.mark.skipif(not engine.url.get_backend_name() == "sqlite", reason="SQLite only")
    def test_connections_use_sqlite_defaults(self):
        """No connect-time pragmas; the documents table has no foreign keys to enforce"""
        assert not Document.__table__.foreign_keys

        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 0
