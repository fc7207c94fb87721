"""
Concurrency tests.

Each worker thread gets its own session; the sequence generator is shared.
SQLite serializes writers through BEGIN IMMEDIATE, so these tests check
that numbering stays unique and balances stay consistent when many callers
record at once.

Skip with: pytest -m "not slow"
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from ledger_kernel.db.engine import unit_of_work
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.movement import MovementType
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.selectors.movement_selector import MovementSelector
from ledger_kernel.services.account_directory import LedgerAccountDirectory
from ledger_modules.facade import LedgerFacade

pytestmark = pytest.mark.slow

THREADS = 10


class TestSequenceUnderThreads:

    def test_in_memory_numbers_unique(self, sequence):
        barrier = Barrier(THREADS)

        def worker(_):
            barrier.wait()
            return [sequence.next("TX") for _ in range(1000)]

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            results = [n for batch in pool.map(worker, range(THREADS)) for n in batch]

        assert len(results) == THREADS * 1000
        assert len(set(results)) == len(results)
        assert sequence.current_value == THREADS * 1000


class TestAccountCreationRace:

    def test_single_account_created(self, session_factory, session):
        barrier = Barrier(THREADS)
        sessions = [session_factory() for _ in range(THREADS)]

        def worker(worker_session):
            directory = LedgerAccountDirectory(worker_session)
            barrier.wait()
            with unit_of_work(worker_session):
                return directory.get_or_create("1.1.03.001", "Inventory", AccountType.ASSET).id

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            ids = list(pool.map(worker, sessions))

        assert len(set(ids)) == 1
        with unit_of_work(session):
            count = session.execute(select(func.count()).select_from(Account)).scalar_one()
        assert count == 1


class TestConcurrentRecording:

    def test_balances_consistent(
        self, session_factory, session, sequence, deterministic_clock, test_actor_id
    ):
        workers = 4
        per_worker = 5
        barrier = Barrier(workers)
        product_id = uuid4()

        def worker(index):
            ledger = LedgerFacade(session_factory(), sequence=sequence, clock=deterministic_clock)
            barrier.wait()
            numbers = []
            for n in range(per_worker):
                movement = ledger.record_transaction(
                    movement_type=MovementType.PURCHASE,
                    product_id=product_id,
                    product_sku="SKU-001",
                    product_name="Widget",
                    quantity=1 + n,
                    unit_cost=Decimal("2.50"),
                    to_location="WH-1",
                    actor_id=test_actor_id,
                    document_number=f"PO-{index}-{n}",
                )
                numbers.append(movement.movement_number)
            return numbers

        with ThreadPoolExecutor(max_workers=workers) as pool:
            numbers = [n for batch in pool.map(worker, range(workers)) for n in batch]

        assert len(set(numbers)) == workers * per_worker

        # 4 workers x (1+2+3+4+5) units x 2.50
        expected = Decimal("150.00")
        with unit_of_work(session):
            movements = MovementSelector(session).get_by_product(product_id)
            rows = {r.account_code: r for r in LedgerSelector(session).trial_balance()}
            balances = LedgerSelector(session).verify_all_balances()

        assert len(movements) == workers * per_worker
        assert all(m.is_posted for m in movements)
        assert rows["1.1.03.001"].balance == expected
        assert rows["2.1.01.001"].credit_total == expected
        assert all(b.is_consistent for b in balances)
