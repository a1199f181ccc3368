"""Shared fixtures.

Every test gets its own in-memory SQLite database, so nothing leaks between
tests and no file is written.
"""

import pytest
from fastapi.testclient import TestClient

from tailorshop.config import Settings
from tailorshop.db.engine import create_db_engine
from tailorshop.db.schema import customers, employees, metadata
from tailorshop.main import create_app
from tailorshop.services.images import customer_image_service, order_image_service
from tailorshop.services.orders import OrderService


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        order_image_limit=3,
        customer_image_limit=6,
        log_level="WARNING",
    )


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings.database_url)
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def client(settings, engine):
    app = create_app(settings=settings, engine=engine)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def order_images(engine, settings):
    return order_image_service(engine, settings.order_image_limit)


@pytest.fixture
def customer_images(engine, settings):
    return customer_image_service(engine, settings.customer_image_limit)


@pytest.fixture
def order_service(engine, order_images):
    return OrderService(engine, order_images)


@pytest.fixture
def make_customer(engine):
    """Insert a customer row directly and return its id."""
    counter = {"n": 0}

    def _make(name: str = "Meera Iyer", **overrides) -> int:
        counter["n"] += 1
        values = {
            "name": name,
            "phone": "9876543210",
            "email": f"customer{counter['n']}@gmail.com",
            "paper_cutting": False,
        }
        values.update(overrides)
        with engine.begin() as conn:
            return conn.execute(customers.insert().values(**values)).inserted_primary_key[0]

    return _make


@pytest.fixture
def make_employee(engine):
    """Insert an employee row directly and return its id."""
    counter = {"n": 0}

    def _make(name: str = "Ravi Kumar", **overrides) -> int:
        counter["n"] += 1
        values = {
            "name": name,
            "phone": "9123456780",
            "email": f"staff{counter['n']}@gmail.com",
            "role": "EMPLOYEE",
        }
        values.update(overrides)
        with engine.begin() as conn:
            return conn.execute(employees.insert().values(**values)).inserted_primary_key[0]

    return _make
