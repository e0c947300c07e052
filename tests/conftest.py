"""
Pytest fixtures for the supply kernel test suite.

Provides:
- Structured JSON logging for the whole run, with LogContext cleanup
- An in-memory SQLite database per test (tables + immutability listeners)
- A deterministic clock and a test actor
- Captured log records as parsed JSON dicts
- Reference data (suppliers, products) and order line fixtures
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID

import pytest
from sqlalchemy.orm import Session

from supply_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from supply_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from supply_kernel.domain.clock import DeterministicClock
from supply_kernel.domain.line_items import OrderLineItem
from supply_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from supply_modules.purchasing.models import Product, Supplier

# Test actor ID for all test operations
TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-000000000001")

# "Today" for every deterministic clock in the suite
TODAY = date(2024, 3, 15)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture supply_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, purchasing_service):
            purchasing_service.create_order(...)
            logs = captured_logs()
            assert any(r["message"] == "purchase_order_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("supply_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Provide a session on a fresh in-memory SQLite database.

    Every test gets its own database: the engine uses a StaticPool, so the
    single in-memory connection lives exactly as long as the engine.
    """
    init_engine_from_url("sqlite://")
    create_tables()
    register_immutability_listeners()
    db = get_session()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        unregister_immutability_listeners()
        drop_tables()
        reset_engine()


# =============================================================================
# Time and actor fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Provide a deterministic clock fixed at noon UTC on TODAY."""
    return DeterministicClock.on(TODAY)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture
def tshirt() -> Product:
    return Product(
        id="TSHIRT",
        name="Basic T-Shirt",
        unit_price=Decimal("25.00"),
        color_ids=("RED", "BLUE"),
        size_ids=("S", "M", "L"),
    )


@pytest.fixture
def hoodie() -> Product:
    return Product(
        id="HOODIE",
        name="Zip Hoodie",
        unit_price=Decimal("60.00"),
        color_ids=("BLACK",),
        size_ids=("M", "L"),
    )


@pytest.fixture
def acme() -> Supplier:
    return Supplier(
        id="ACME",
        name="Acme Textiles",
        contact_person="Dana Lee",
        phone="+1 555 0100",
        email="orders@acme.example",
        address="1 Mill Road",
        product_ids=("TSHIRT", "HOODIE"),
    )


@pytest.fixture
def bolt() -> Supplier:
    return Supplier(
        id="BOLT",
        name="Bolt Garments",
        product_ids=("TSHIRT",),
    )


@pytest.fixture
def red_m() -> OrderLineItem:
    return OrderLineItem.of("TSHIRT", "RED", "M", 10, Decimal("25.00"))


@pytest.fixture
def blue_l() -> OrderLineItem:
    return OrderLineItem.of("TSHIRT", "BLUE", "L", 4, Decimal("27.50"))
