"""Shared test fixtures: in-memory database and seeded branches."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401 - register models
from app.db.base import Base
from app.models import Medicine
from app.schemas.ingestion import MedicineRecord
from app.services.settings_service import update_setting


@pytest.fixture
def engine():
    """One shared in-memory SQLite connection per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def branches(db):
    """Branch 1 fully configured, branch 2 named only, branch 3 empty."""
    update_setting(db, "name", "Markaziy dorixona", 1)
    update_setting(db, "phone", "+998901234567", 1)
    update_setting(db, "address", "Toshkent, Amir Temur 1", 1)
    update_setting(db, "name", "Chilonzor filiali", 2)
    return db


@pytest.fixture
def make_record():
    def _make(name="Парацетамол 500мг", price=12500, count=50, pharmacy_id=1, **extra):
        return MedicineRecord(name=name, price=price, count=count, pharmacy_id=pharmacy_id, **extra)
    return _make


@pytest.fixture
def add_medicine(db):
    def _add(name, pharmacy_id=1, price=1000, count=1, **extra):
        med = Medicine(name=name, pharmacy_id=pharmacy_id, price=price, count=count,
                       manufacturer=extra.pop("manufacturer", "Unknown"),
                       phone=extra.pop("phone", ""), address=extra.pop("address", ""), **extra)
        db.add(med)
        db.commit()
        return med
    return _add
