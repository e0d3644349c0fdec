import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
import models  # noqa: F401


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def fail_commit(monkeypatch):
    """
    fail_commit(session, on_call=n): the n-th commit from now raises SQLAlchemyError
    (nothing is written for it); other commits go through.
    """
    def _install(session, on_call: int):
        real_commit = session.commit
        calls = {"n": 0}

        def _commit():
            calls["n"] += 1
            if calls["n"] == on_call:
                raise SQLAlchemyError("simulated storage failure")
            return real_commit()

        monkeypatch.setattr(session, "commit", _commit)
        return calls

    return _install


@pytest.fixture
def scenario(db):
    """CR-A needs pin P1 + ball bearing BB1, 10 of each in stock."""
    from services import conrod_service, inventory_service

    pin, _ = inventory_service.create_product(db, product_name="P1", product_type="Pin", quantity=10)
    bb, _ = inventory_service.create_product(db, product_name="BB1", product_type="Ball Bearing", quantity=10)
    conrod = conrod_service.create_conrod(
        db,
        name="CR-A",
        dimensions={"smallEndDiameter": 12, "bigEndDiameter": 35, "centerDistance": 100},
        pin="P1",
        ball_bearing="BB1",
    )
    return {"pin_id": pin.id, "bb_id": bb.id, "conrod_id": conrod.id}
