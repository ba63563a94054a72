from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from stockroom.config import settings
from stockroom.utils.logging import get_logger

Base = declarative_base()

# execution option marking a connection whose transaction will write
WRITE_TRANSACTION = "stockroom_write"

log = get_logger("store")


class Store:
    """
    Handle on the relational store: owns the engine and the session factory.

    Lifecycle is explicit. `open()` at process start, `close()` on shutdown;
    the handle is passed to whoever needs sessions instead of being imported
    as module state.

    On SQLite a transaction opened for writing (see WRITE_TRANSACTION) starts
    with BEGIN IMMEDIATE, so two writers never both read a product's quantity
    before one of them commits; the second one waits (up to the busy timeout)
    for the first to finish. Everything else starts with a plain BEGIN and, in
    WAL mode, never waits on a writer.
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        busy_timeout: float = 30.0,
        wal: bool = True,
    ):
        self.url = url
        self.echo = echo
        self.busy_timeout = busy_timeout
        self.wal = wal
        self.engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @classmethod
    def from_settings(cls) -> "Store":
        return cls(
            settings.DATABASE_URL,
            echo=settings.SQL_ECHO,
            busy_timeout=settings.DB_BUSY_TIMEOUT_SECONDS,
            wal=settings.SQLITE_WAL,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> "Store":
        if self.engine is not None:
            return self
        connect_args = {}
        if self.is_sqlite:
            connect_args = {"check_same_thread": False, "timeout": self.busy_timeout}
        self.engine = create_engine(
            self.url, future=True, echo=self.echo, connect_args=connect_args
        )
        if self.is_sqlite:
            self._install_sqlite_hooks(self.engine)
        # objects stay readable after commit; read-back is an explicit refresh
        self._sessionmaker = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )
        log.info(f"opened store url={self.engine.url!r}")
        return self

    def _install_sqlite_hooks(self, engine: Engine):
        wal = self.wal

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_conn, connection_record):
            # take transaction control away from pysqlite so BEGIN is ours
            dbapi_conn.isolation_level = None
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            if wal:
                cur.execute("PRAGMA journal_mode=WAL")
            cur.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            if conn.get_execution_options().get(WRITE_TRANSACTION):
                conn.exec_driver_sql("BEGIN IMMEDIATE")
            else:
                conn.exec_driver_sql("BEGIN")

    def close(self):
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._sessionmaker = None
        log.info("closed store")

    def init_schema(self, reset: bool = False):
        """
        Create tables if absent. With reset=True drop everything first.
        Model modules are imported here so the metadata is populated.
        """
        from stockroom.models import movement, product  # noqa: F401

        if self.engine is None:
            raise RuntimeError("store is not open")
        if reset:
            log.info("resetting database (RESET_DB set)")
            Base.metadata.drop_all(bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        log.info("database tables verified")

    def new_session(self) -> Session:
        if self._sessionmaker is None:
            raise RuntimeError("store is not open")
        return self._sessionmaker()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.new_session()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> bool:
        # read-only BEGIN: a held write lock doesn't stall the health check
        if self.engine is None:
            return False
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            log.warning("store ping failed", exc_info=True)
            return False


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_db(request: Request):
    with get_store(request).session() as db:
        yield db
