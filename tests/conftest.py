"""
Pytest fixtures for the movement ledger test suite.

Provides:
- A fresh file-backed SQLite database per test (threads need a real file;
  an in-memory database is private to one connection)
- Sessions, a deterministic clock and a sequence generator
- Helpers that record movements through the recorder
- Captured structured log records
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.models.movement import MovementType
from ledger_kernel.services.sequence_service import InMemorySequenceNumberGenerator
from ledger_modules.inventory.service import InventoryTransactionRecorder

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()


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
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, record_movement):
            record_movement(MovementType.PURCHASE, 10, "5.00")
            logs = captured_logs()
            assert any(r["message"] == "movement_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'ledger_test.db'}"


@pytest.fixture
def engine(database_url):
    """Fresh schema with immutability listeners registered."""
    engine = init_engine_from_url(database_url, pool_timeout=30)
    create_tables(engine)
    register_immutability_listeners()
    yield engine
    drop_tables(engine)
    reset_engine()


@pytest.fixture
def session(engine):
    session = get_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def session_factory(engine):
    """Open extra sessions (one per thread); all are closed at teardown."""
    opened = []

    def _open():
        s = get_session()
        opened.append(s)
        return s

    yield _open

    for s in opened:
        s.close()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def sequence(deterministic_clock):
    return InMemorySequenceNumberGenerator(deterministic_clock)


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


@pytest.fixture
def recorder(session, sequence, deterministic_clock):
    return InventoryTransactionRecorder(session, sequence, deterministic_clock)


@pytest.fixture
def product_id():
    return uuid4()


_DEFAULT_LOCATIONS = {
    MovementType.PURCHASE: (None, "WH-1"),
    MovementType.SALE: ("WH-1", None),
    MovementType.FULFILLMENT: ("WH-1", None),
    MovementType.SALE_RETURN: (None, "WH-1"),
    MovementType.PURCHASE_RETURN: ("WH-1", None),
    MovementType.ADJUSTMENT: (None, "WH-1"),
    MovementType.LOSS: ("WH-1", None),
    MovementType.TRANSFER: ("WH-1", "WH-2"),
    MovementType.RESERVATION: ("WH-1", None),
    MovementType.RESERVATION_RELEASE: ("WH-1", None),
}


@pytest.fixture
def record_movement(recorder, product_id, test_actor_id):
    """
    Record a movement with sensible defaults.

    Usage::

        result = record_movement(MovementType.PURCHASE, 10, "5.00",
                                 document_number="PO-1")
    """

    def _record(movement_type, quantity, unit_cost, **overrides):
        from_location, to_location = _DEFAULT_LOCATIONS[MovementType(movement_type)]
        request = dict(
            movement_type=movement_type,
            product_id=product_id,
            product_sku="SKU-001",
            product_name="Widget",
            quantity=quantity,
            unit_cost=Decimal(unit_cost),
            from_location=from_location,
            to_location=to_location,
            actor_id=test_actor_id,
        )
        request.update(overrides)
        return recorder.record_with_outcome(**request)

    return _record
