"""
Live queries over SQLAlchemy tables.

A LiveQuery holds a SELECT statement and re-runs it whenever a committed
transaction touched one of the tables it reads from. Change detection is
done with SQLAlchemy session events:

    after_flush   -> remember which tables the session wrote to
    after_commit  -> publish those tables on the process-wide change feed
    after_rollback-> forget them

Every subscriber therefore observes every committed state written through
an ORM session in this process. Each refresh runs in its own short-lived
session, so nothing is held open between deliveries apart from the feed
registration itself.
"""

import logging
import threading
from itertools import chain
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from sqlalchemy import event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import Select

from app.core.exceptions import ErrorCategory, map_backend_error

logger = logging.getLogger(__name__)

_CHANGED_TABLES_KEY = "changed_tables"


class ChangeFeed:
    """
    Fan-out of "table X changed" notifications to open live queries.

    Registration is thread-safe; delivery happens synchronously on the
    thread that committed.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._listeners: Dict[str, List["LiveQuery"]] = {}

    def register(self, tables: Iterable[str], listener: "LiveQuery") -> None:
        with self._lock:
            for table in tables:
                self._listeners.setdefault(table, []).append(listener)

    def unregister(self, listener: "LiveQuery") -> None:
        with self._lock:
            for table in list(self._listeners):
                remaining = [l for l in self._listeners[table] if l is not listener]
                if remaining:
                    self._listeners[table] = remaining
                else:
                    del self._listeners[table]

    def listener_count(self, table: Optional[str] = None) -> int:
        with self._lock:
            if table is not None:
                return len(self._listeners.get(table, []))
            return len({id(l) for l in chain.from_iterable(self._listeners.values())})

    def publish(self, tables: Iterable[str]) -> None:
        with self._lock:
            targets: List[LiveQuery] = []
            for table in tables:
                for listener in self._listeners.get(table, []):
                    if listener not in targets:
                        targets.append(listener)

        for listener in targets:
            listener.refresh()


change_feed = ChangeFeed()


@event.listens_for(Session, "after_flush")
def _collect_changed_tables(session: Session, flush_context) -> None:
    tables: Set[str] = session.info.setdefault(_CHANGED_TABLES_KEY, set())
    for obj in chain(session.new, session.dirty, session.deleted):
        table = getattr(obj, "__tablename__", None)
        if table:
            tables.add(table)


@event.listens_for(Session, "after_commit")
def _publish_changed_tables(session: Session) -> None:
    tables = session.info.pop(_CHANGED_TABLES_KEY, None)
    if tables:
        change_feed.publish(tables)


@event.listens_for(Session, "after_rollback")
def _discard_changed_tables(session: Session) -> None:
    session.info.pop(_CHANGED_TABLES_KEY, None)


class LiveQuery:
    """
    A subscription to the result set of one SELECT.

    State mirrors what a UI binding needs: ``data``, ``loading`` and
    ``error`` (a user-facing message from the closed error category set).
    A failed refresh records the error and keeps the subscription open so
    the next committed change is still delivered.

    Usage:
        with collection.subscribe(Job.status == "active") as live:
            render(live.data)
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        statement: Optional[Select],
        tables: Iterable[str],
        on_change: Optional[Callable[["LiveQuery"], Any]] = None,
        feed: ChangeFeed = change_feed,
    ):
        self._session_factory = session_factory
        self._statement = statement
        self._tables = tuple(tables)
        self._on_change = on_change
        self._feed = feed
        self._lock = threading.RLock()
        self._closed = False

        self.data: List[Any] = []
        self.loading = True
        self.error: Optional[str] = None
        self.error_category: Optional[ErrorCategory] = None

    @classmethod
    def failed(cls, category: ErrorCategory, message: str) -> "LiveQuery":
        """An inert subscription that only reports an error and an empty result set."""
        live = cls(session_factory=None, statement=None, tables=())
        live.loading = False
        live.error = message
        live.error_category = category
        live._closed = True
        return live

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def tables(self):
        return self._tables

    def start(self) -> "LiveQuery":
        """Register on the change feed and deliver the first snapshot."""
        if self._closed:
            return self
        self._feed.register(self._tables, self)
        self.refresh()
        return self

    def refresh(self) -> None:
        """Re-run the query and deliver the full result set."""
        with self._lock:
            if self._closed:
                return
            try:
                with self._session_factory() as session:
                    rows = list(session.scalars(self._statement).all())
            except Exception as e:
                mapped = map_backend_error(e)
                logger.error(f"Live query on {', '.join(self._tables)} failed: {e}")
                self.data = []
                self.error = mapped.message
                self.error_category = mapped.category
            else:
                self.data = rows
                self.error = None
                self.error_category = None
            self.loading = False

        self._notify()

    def _notify(self) -> None:
        if self._on_change is None or self._closed:
            return
        try:
            self._on_change(self)
        except Exception:
            logger.exception(f"Live query subscriber on {', '.join(self._tables)} raised")

    def close(self) -> None:
        """Stop receiving updates. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._feed.unregister(self)

    def __enter__(self) -> "LiveQuery":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return f"<LiveQuery(tables={self._tables}, rows={len(self.data)}, {state})>"
