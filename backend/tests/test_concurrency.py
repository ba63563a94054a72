import concurrent.futures
import threading
from datetime import datetime, timezone

import pytest

from stockroom.db import Store
from stockroom.models.movement import Movement
from stockroom.models.product import Product
from stockroom.repositories.product_repo import ProductRepository
from stockroom.services.errors import StorageError
from stockroom.services.movement_service import MovementService
from stockroom.utils.transactions import smart_transaction


def _worker(store, product_id, kind, qty, barrier=None):
    if barrier is not None:
        barrier.wait(timeout=10)
    with store.session() as s:
        return MovementService(s).apply_movement(product_id, kind, qty, "concurrent")


def test_two_concurrent_movements_both_apply(store, make_product):
    pid = make_product(quantity=10)
    barrier = threading.Barrier(2)

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as ex:
        futures = [
            ex.submit(_worker, store, pid, "in", 5, barrier),
            ex.submit(_worker, store, pid, "out", 3, barrier),
        ]
        results = [f.result() for f in futures]

    assert len(results) == 2
    with store.session() as s:
        assert s.get(Product, pid).quantity == 12
        assert s.query(Movement).filter(Movement.product_id == pid).count() == 2


def test_many_writers_lose_no_update(store, make_product):
    pid = make_product(quantity=0)
    workers, per_worker = 8, 5

    def run():
        for _ in range(per_worker):
            _worker(store, pid, "in", 1)

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        for f in [ex.submit(run) for _ in range(workers)]:
            f.result()

    with store.session() as s:
        assert s.get(Product, pid).quantity == workers * per_worker
        assert s.query(Movement).count() == workers * per_worker


def test_different_products_do_not_interfere(store, make_product):
    ids = [make_product(quantity=1, name=f"P{i}") for i in range(4)]

    with concurrent.futures.ThreadPoolExecutor(max_workers=4) as ex:
        for f in [ex.submit(_worker, store, pid, "adjust", 20 + n) for n, pid in enumerate(ids)]:
            f.result()

    with store.session() as s:
        assert [s.get(Product, pid).quantity for pid in ids] == [20, 21, 22, 23]


def test_reads_do_not_wait_for_a_writer(store, make_product):
    pid = make_product(quantity=4)
    # same database, short lock wait so a blocked call fails fast
    other = Store(store.url, busy_timeout=0.5).open()
    try:
        with store.session() as s:
            with smart_transaction(s, write=True):
                repo = ProductRepository(s)
                repo.set_quantity(repo.get(pid, for_update=True), 9, datetime.now(timezone.utc))

                assert other.ping()
                with other.session() as reader:
                    assert reader.get(Product, pid).quantity == 4

                # a second writer still has to wait, and gives up as a storage error
                with other.session() as writer:
                    with pytest.raises(StorageError):
                        MovementService(writer).apply_movement(pid, "in", 1)

        with other.session() as reader:
            assert reader.get(Product, pid).quantity == 9
            assert reader.query(Movement).count() == 0
    finally:
        other.close()
