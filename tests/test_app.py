import logging

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

import main
from services import billing_service

API = "/api/v1"


class TestLifespan:

    def test_startup_creates_tables(self, monkeypatch):
        eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        monkeypatch.setattr(main, "engine", eng)
        assert not inspect(eng).has_table("bills")

        with TestClient(main.app) as c:
            assert c.get("/ping").json() == {"status": "ok"}

        tables = set(inspect(eng).get_table_names())
        assert {"products", "conrods", "production", "customers", "bills", "doc_counters"} <= tables
        eng.dispose()


class TestStorageErrors:

    def test_sql_is_not_returned_to_client(self, client, monkeypatch, caplog):
        def boom(db):
            raise SQLAlchemyError("SELECT secret FROM bills WHERE token = 'abc'")

        monkeypatch.setattr(billing_service, "list_bills", boom)
        with caplog.at_level(logging.ERROR, logger="conrod"):
            r = client.get(f"{API}/bills")

        assert r.status_code == 500
        assert r.json() == {"detail": "Storage error", "code": "storage_error"}
        assert "secret" not in r.text
        assert any(rec.name == "conrod" and rec.exc_info for rec in caplog.records)
