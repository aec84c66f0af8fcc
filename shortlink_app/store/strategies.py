"""
URL store strategies using Strategy Pattern.

Two interchangeable backends behind one contract:
- InMemoryURLStore: dicts guarded by one coarse lock (development, tests,
  fallback when the database is unreachable)
- SQLURLStore: SQLAlchemy-backed relational table (production)

Both return entries of the same shape and order listings by creation
time, newest first.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shortlink_app.database.connection import Base, create_db_engine, create_session_factory
from shortlink_app.exceptions import (
    AliasInUse,
    BackendUnavailable,
    InvalidInput,
    NotFound,
    StoreError,
)
from shortlink_app.logging_config import get_logger
from shortlink_app.models.url import URL
from shortlink_app.schemas.url import URLEntry
from shortlink_app.services.short_code_strategies import (
    SecureRandomShortCodeStrategy,
    ShortCodeStrategy,
    validate_alias,
)

logger = get_logger(__name__)

ANONYMOUS_OWNER = "anonymous"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class URLStoreStrategy(ABC):
    """
    Abstract base class for URL stores.

    Contract shared by every backend:
    - put() validates, guarantees code/alias uniqueness and persists
    - get() resolves a code
    - list_by_owner() returns an owner's entries, newest first
    - count() reports the number of entries (diagnostics only)

    Pattern: Strategy Pattern
    Similar to: Django's cache backends
    """

    def __init__(
        self,
        code_strategy: Optional[ShortCodeStrategy] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.code_strategy = code_strategy or SecureRandomShortCodeStrategy()
        self.clock = clock or utc_now

    @abstractmethod
    def put(self, url: str, alias: Optional[str] = None, owner: Optional[str] = None) -> str:
        """
        Store a URL and return its code.

        Args:
            url: Target URL (opaque, must be non-empty)
            alias: Optional caller-chosen code
            owner: Identity of the caller (defaults to anonymous)

        Returns:
            The alias, or a freshly generated unique code

        Raises:
            InvalidInput: url is empty
            InvalidAlias: alias is malformed
            AliasInUse: alias already exists
        """
        pass

    @abstractmethod
    def get(self, code: str) -> str:
        """Return the URL for a code; raises NotFound if absent"""
        pass

    @abstractmethod
    def list_by_owner(self, owner: str) -> List[URLEntry]:
        """Return the owner's entries ordered by created_at descending"""
        pass

    @abstractmethod
    def count(self) -> int:
        """Total number of stored entries"""
        pass

    def close(self) -> None:
        """Release backend resources"""
        pass

    @staticmethod
    def _prepare(url: str, alias: Optional[str], owner: Optional[str]):
        """Shared argument validation; returns (alias or None, owner)"""
        if not url:
            raise InvalidInput()
        if alias:
            validate_alias(alias)
        return alias or None, owner or ANONYMOUS_OWNER


class InMemoryURLStore(URLStoreStrategy):
    """
    In-memory store using Python dicts.

    Pros:
    - No external dependencies
    - Fast (no network overhead)

    Cons:
    - Not persistent (lost on restart)
    - Not shared between processes

    One lock guards both the code map and the owner index, so the
    existence check and the insert are a single atomic unit.
    """

    def __init__(
        self,
        code_strategy: Optional[ShortCodeStrategy] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        super().__init__(code_strategy, clock)
        self._urls: Dict[str, URLEntry] = {}
        self._owner_codes: Dict[str, List[str]] = {}
        self._lock = Lock()

    def put(self, url: str, alias: Optional[str] = None, owner: Optional[str] = None) -> str:
        alias, owner = self._prepare(url, alias, owner)

        with self._lock:
            if alias is not None:
                if alias in self._urls:
                    raise AliasInUse()
                code = alias
            else:
                # No retry limit: a collision only costs another draw
                code = self.code_strategy.generate()
                while code in self._urls:
                    code = self.code_strategy.generate()

            self._urls[code] = URLEntry(
                code=code,
                url=url,
                owner=owner,
                created_at=self.clock()
            )
            self._owner_codes.setdefault(owner, []).append(code)

        return code

    def get(self, code: str) -> str:
        # No lock: entries are immutable and published by a single dict
        # assignment, so a lookup sees either nothing or the whole entry
        entry = self._urls.get(code)
        if entry is None:
            raise NotFound()
        return entry.url

    def list_by_owner(self, owner: str) -> List[URLEntry]:
        with self._lock:
            codes = self._owner_codes.get(owner, [])
            entries = [self._urls[code] for code in codes if code in self._urls]

        # Reverse first so that equal timestamps keep the later insert on top
        # (sorted() is stable)
        return sorted(reversed(entries), key=lambda e: e.created_at, reverse=True)

    def count(self) -> int:
        with self._lock:
            return len(self._urls)


class SQLURLStore(URLStoreStrategy):
    """
    Relational store backed by SQLAlchemy (PostgreSQL in production,
    SQLite for development and tests).

    Concurrency is left to the database:
    - alias check is a point query followed by an insert
    - the primary key turns a lost race into IntegrityError, which
      is reported as AliasInUse (never a silent overwrite)
    - no application-level locks
    """

    def __init__(
        self,
        database_url: str,
        code_strategy: Optional[ShortCodeStrategy] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Connect and create the schema.

        Raises:
            BackendUnavailable: connection or schema creation failed
        """
        super().__init__(code_strategy, clock)
        self.database_url = database_url

        try:
            self.engine = create_db_engine(database_url)
            Base.metadata.create_all(bind=self.engine, tables=[URL.__table__])
        except (SQLAlchemyError, ImportError) as e:
            raise BackendUnavailable(f"Failed to initialize database: {e}") from e

        self.session_factory = create_session_factory(self.engine)
        logger.info("Database schema initialized (%s)", self.engine.dialect.name)

    def put(self, url: str, alias: Optional[str] = None, owner: Optional[str] = None) -> str:
        alias, owner = self._prepare(url, alias, owner)

        if alias is not None:
            with self.session_factory() as db:
                if self._code_exists(db, alias):
                    raise AliasInUse()
                if not self._insert(db, alias, url, owner):
                    # Someone inserted the same alias between our check and insert
                    raise AliasInUse()
            return alias

        while True:
            code = self.code_strategy.generate()
            with self.session_factory() as db:
                if self._code_exists(db, code):
                    continue
                if self._insert(db, code, url, owner):
                    return code

    def get(self, code: str) -> str:
        try:
            with self.session_factory() as db:
                row = db.get(URL, code)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up code: {e}") from e

        if row is None:
            raise NotFound()
        return row.url

    def list_by_owner(self, owner: str) -> List[URLEntry]:
        stmt = (
            select(URL)
            .where(URL.owner == owner)
            .order_by(URL.created_at.desc())
        )
        try:
            with self.session_factory() as db:
                rows = db.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list URLs: {e}") from e

        return [URLEntry.model_validate(row) for row in rows]

    def count(self) -> int:
        try:
            with self.session_factory() as db:
                return db.scalar(select(func.count()).select_from(URL)) or 0
        except SQLAlchemyError as e:
            logger.error("Error getting stats: %s", e)
            return 0

    def close(self) -> None:
        self.engine.dispose()

    def _code_exists(self, db, code: str) -> bool:
        try:
            return db.get(URL, code) is not None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to check code: {e}") from e

    def _insert(self, db, code: str, url: str, owner: str) -> bool:
        """Insert a row; False if the code was taken concurrently"""
        db.add(URL(code=code, url=url, owner=owner, created_at=self.clock()))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return False
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Failed to store URL: {e}") from e
        return True
