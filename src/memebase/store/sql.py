"""Relational store built on SQLAlchemy's async engine."""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import DateTime, Integer, String, Text, delete, event, func, select, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..exceptions.database import StoreConnectionError, StoreError
from ..models.filters import FilterCriteria, SortDirection
from ..models.meme import new_id
from ..query.pipeline import QueryPipeline
from ..utils.logging import get_logger
from .base import Document, MemeStore

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class MemeRow(Base):
    """Row in the ``memes`` table."""

    __tablename__ = "memes"

    id: Mapped[str] = mapped_column(String(24), primary_key=True)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    artist: Mapped[str] = mapped_column(String(64), index=True)
    title: Mapped[str] = mapped_column(String(64), index=True)
    b64: Mapped[str] = mapped_column(Text)
    version: Mapped[int] = mapped_column(Integer, default=1)

    def to_document(self) -> Document:
        created = self.created
        # SQLite drops tzinfo; stored values are always UTC.
        if created is not None and created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return {
            "_id": self.id,
            "created": created,
            "artist": self.artist,
            "title": self.title,
            "b64": self.b64,
            "version": self.version,
        }


COLUMNS = {
    "_id": MemeRow.id,
    "created": MemeRow.created,
    "artist": MemeRow.artist,
    "title": MemeRow.title,
}


def casefold(value: Optional[str]) -> Optional[str]:
    """Unicode case folding, registered as a SQL function on SQLite."""
    return value.casefold() if value is not None else None


def sql_clauses(criteria: FilterCriteria, sqlite_casefold: bool = False) -> List[Any]:
    """Render filter criteria as WHERE clauses.

    SQLite's ``lower()`` only folds ASCII letters, so on SQLite the title is
    matched through the registered ``casefold`` function instead.
    """
    clauses = []
    if criteria.artist is not None:
        clauses.append(MemeRow.artist == criteria.artist)
    if criteria.title is not None:
        if sqlite_casefold:
            folded = func.casefold(MemeRow.title, type_=String())
            clauses.append(folded.contains(casefold(criteria.title), autoescape=True))
        else:
            clauses.append(MemeRow.title.icontains(criteria.title, autoescape=True))
    return clauses


def _register_casefold(dbapi_connection: Any, connection_record: Any) -> None:
    dbapi_connection.create_function("casefold", 1, casefold)


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Wrap SQLAlchemy failures in the store error hierarchy."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.warning("store_operation_failed", backend="sql", operation=operation, error=str(e))
        if isinstance(e, OperationalError):
            raise StoreConnectionError(f"cannot reach store during {operation!r}", original_error=e) from e
        raise StoreError(f"store operation {operation!r} failed", original_error=e) from e


class SqlMemeStore(MemeStore):
    """Store for the ``memes`` table."""

    name = "sql"

    def __init__(self, engine: AsyncEngine) -> None:
        """
        Initialize the store.

        Args:
            engine: SQLAlchemy async engine
        """
        self.engine = engine
        self.session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self.sqlite_casefold = engine.dialect.name == "sqlite"
        if self.sqlite_casefold:
            event.listen(engine.sync_engine, "connect", _register_casefold)

    @classmethod
    async def connect(cls, database_url: str, echo: bool = False) -> "SqlMemeStore":
        """Create the engine and the ``memes`` table if missing."""
        engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
        store = cls(engine)
        with translate_errors("create_schema"):
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        return store

    async def ping(self) -> None:
        with translate_errors("ping"):
            async with self.engine.connect() as conn:
                await conn.execute(select(1))

    async def close(self) -> None:
        await self.engine.dispose()

    async def insert_one(self, document: Document) -> str:
        id = new_id()
        with translate_errors("insert_one"):
            async with self.session_factory() as session:
                session.add(MemeRow(id=id, **document))
                await session.commit()
        return id

    async def find_one(self, id: str) -> Optional[Document]:
        with translate_errors("find_one"):
            async with self.session_factory() as session:
                row = await session.get(MemeRow, id)
        return row.to_document() if row is not None else None

    async def count(self, criteria: FilterCriteria) -> int:
        stmt = (
            select(func.count())
            .select_from(MemeRow)
            .where(*sql_clauses(criteria, self.sqlite_casefold))
        )
        with translate_errors("count"):
            async with self.session_factory() as session:
                return (await session.execute(stmt)).scalar_one()

    async def aggregate(self, pipeline: QueryPipeline) -> List[Document]:
        order_by = [
            COLUMNS[field].desc() if direction == SortDirection.DESCENDING else COLUMNS[field].asc()
            for field, direction in pipeline.sort.keys
        ]
        stmt = (
            select(MemeRow)
            .where(*sql_clauses(pipeline.match.criteria, self.sqlite_casefold))
            .order_by(*order_by)
            .offset(pipeline.skip.count)
            .limit(pipeline.limit.count)
        )
        with translate_errors("aggregate"):
            async with self.session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        return [row.to_document() for row in rows]

    async def update_one(self, id: str, version: int, fields: Dict[str, Any]) -> int:
        stmt = (
            update(MemeRow)
            .where(MemeRow.id == id, MemeRow.version == version)
            .values(**fields, version=version + 1)
        )
        with translate_errors("update_one"):
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        return result.rowcount

    async def delete_one(self, id: str) -> int:
        with translate_errors("delete_one"):
            async with self.session_factory() as session:
                result = await session.execute(delete(MemeRow).where(MemeRow.id == id))
                await session.commit()
        return result.rowcount

    async def sample_one(self) -> List[Document]:
        stmt = select(MemeRow).order_by(func.random()).limit(1)
        with translate_errors("sample_one"):
            async with self.session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        return [row.to_document() for row in rows]
