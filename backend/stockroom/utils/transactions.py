from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from stockroom.db import WRITE_TRANSACTION


@contextmanager
def smart_transaction(session: Session, write: bool = False) -> Iterator:
    """
    Context manager that begins a transaction on the given Session.
    If a transaction is already active, start a nested SAVEPOINT (begin_nested).
    Otherwise start a normal transaction (begin), committed on exit.
    With write=True a new transaction takes the store's write lock up front,
    before its first read; a SAVEPOINT runs under whatever lock the caller's
    transaction holds.
    Any exception inside the block rolls the transaction (or savepoint) back
    and propagates.
    Usage:
        with smart_transaction(db, write=True):
            ... DB work ...
    """
    nested = session.in_transaction()
    cm = session.begin_nested() if nested else session.begin()
    with cm:
        if write and not nested:
            # options only apply to the connection the transaction procures
            session.connection(execution_options={WRITE_TRANSACTION: True})
        yield
