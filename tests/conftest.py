import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

from datetime import date, time  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from guardshift.db import build_engine  # noqa: E402
from guardshift.models import Base, Customer, Shift, Site, Worker  # noqa: E402

# 2025-03-02 is a Sunday.
SHIFT_DAY = date(2025, 3, 2)


class RecordingSink:
    def __init__(self):
        self.events = []

    def emit(self, event_name, payload):
        self.events.append((event_name, payload))

    def names(self):
        return [name for name, _ in self.events]


class ExplodingSink:
    def emit(self, event_name, payload):
        raise RuntimeError("notification channel down")


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'guardshift.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def customer(db):
    record = Customer(company_name="Harbor Logistics")
    db.add(record)
    db.commit()
    return record


@pytest.fixture
def site(db, customer):
    record = Site(customer_id=customer.id, name="Main Gate", address="1 Harbor Rd", latitude=32.0853, longitude=34.7818)
    db.add(record)
    db.commit()
    return record


@pytest.fixture
def make_worker(db):
    def _make(first_name="Dana", last_name="Levi", **kwargs):
        worker = Worker(first_name=first_name, last_name=last_name, phone="050-1234567", **kwargs)
        db.add(worker)
        db.commit()
        return worker

    return _make


@pytest.fixture
def make_shift(db, customer, site):
    def _make(start=time(8, 0), end=time(16, 0), on=SHIFT_DAY, **kwargs):
        kwargs.setdefault("site_id", site.id)
        kwargs.setdefault("status", "scheduled")
        shift = Shift(customer_id=customer.id, date=on, start_time=start, end_time=end, **kwargs)
        db.add(shift)
        db.commit()
        return shift

    return _make
