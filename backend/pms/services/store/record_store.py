"""Record store: filtered reads and all-or-nothing batch inserts.

The reservation numbering code talks to persistence only through the
``RecordStore`` protocol. ``SqlRecordStore`` implements it on top of an
async SQLAlchemy session and translates driver errors into
``RecordStoreError`` / ``UniqueViolationError`` so callers can branch on the
failure kind without knowing which database is behind the session.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from pms.services.store.exceptions import RecordStoreError, UniqueViolationError

logger = structlog.get_logger(__name__)

TModel = TypeVar("TModel", bound=SQLModel)

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION_SQLSTATE = "23505"


@runtime_checkable
class RecordStore(Protocol):
    """Persistence operations the booking flow depends on."""

    async def get(self, model: type[TModel], record_id: Any) -> TModel | None: ...

    async def find_one(
        self,
        model: type[TModel],
        *,
        filters: Mapping[str, Any],
        prefix: tuple[str, str] | None = None,
        order_by: Sequence[str] = (),
        descending: bool = True,
    ) -> TModel | None: ...

    async def insert_batch(self, rows: Sequence[TModel]) -> list[TModel]: ...


def is_unique_violation(error: IntegrityError) -> bool:
    """Check whether an IntegrityError was caused by a unique constraint."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == UNIQUE_VIOLATION_SQLSTATE:
        return True
    # SQLite: "UNIQUE constraint failed: ...", PostgreSQL: "duplicate key value violates unique constraint ..."
    message = str(orig if orig is not None else error).lower()
    return "unique constraint" in message or "duplicate key" in message


def _collection(model: type[SQLModel]) -> str:
    return str(getattr(model, "__tablename__", model.__name__))


def _column(model: type[SQLModel], name: str) -> Any:
    try:
        return getattr(model, name)
    except AttributeError:
        raise ValueError(f"{model.__name__} has no column {name!r}") from None


class SqlRecordStore:
    """RecordStore backed by an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, model: type[TModel], record_id: Any) -> TModel | None:
        """Fetch a row by primary key, or None when it does not exist."""
        try:
            return await self.session.get(model, record_id)
        except SQLAlchemyError as e:
            raise RecordStoreError(str(e), collection=_collection(model)) from e

    async def find_one(
        self,
        model: type[TModel],
        *,
        filters: Mapping[str, Any],
        prefix: tuple[str, str] | None = None,
        order_by: Sequence[str] = (),
        descending: bool = True,
    ) -> TModel | None:
        """Return the first row matching equality filters and an optional prefix filter.

        Args:
            model: Table model to query
            filters: Column name -> value equality filters
            prefix: (column name, prefix) pair; LIKE wildcards in the prefix are escaped
            order_by: Column names to order by, most significant first
            descending: Order direction applied to every order_by column
        """
        statement = select(model).where(*(_column(model, name) == value for name, value in filters.items()))
        if prefix is not None:
            column_name, value = prefix
            statement = statement.where(_column(model, column_name).startswith(value, autoescape=True))
        for name in order_by:
            column = _column(model, name)
            statement = statement.order_by(column.desc() if descending else column.asc())
        statement = statement.limit(1)

        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise RecordStoreError(str(e), collection=_collection(model)) from e
        return result.scalars().first()

    async def insert_batch(self, rows: Sequence[TModel]) -> list[TModel]:
        """Insert all rows in one transaction.

        Either every row is committed or none is. On failure the session is
        rolled back and the rows are detached again, so the same objects can
        be modified and passed to a later call.

        Raises:
            UniqueViolationError: A unique constraint rejected one of the rows
            RecordStoreError: Any other database failure
        """
        if not rows:
            return []

        collection = _collection(type(rows[0]))
        self.session.add_all(rows)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if is_unique_violation(e):
                raise UniqueViolationError(str(e.orig), collection=collection) from e
            raise RecordStoreError(str(e.orig), collection=collection) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise RecordStoreError(str(e), collection=collection) from e

        logger.debug("Inserted batch", collection=collection, count=len(rows))
        return list(rows)
