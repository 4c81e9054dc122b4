from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Index, Integer, LargeBinary, SmallInteger, String, Text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.taskqueue.domain.models.task_status import DeliveryStatus
from src.taskqueue.domain.models.task_visibility import TaskVisibility

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class MessageTaskRow(Base):
    __tablename__ = "message_tasks"
    __table_args__ = (
        Index("ix_message_tasks_sending", "state", "status", "is_priority", "id"),
    )

    id: Mapped[int] = mapped_column(_ID_TYPE, primary_key=True, autoincrement=True)
    recipient_id: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    instance_id: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    user: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    subject: Mapped[str] = mapped_column(Text, nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_priority: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    state: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=int(TaskVisibility.ENABLED)
    )
    status: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=int(DeliveryStatus.PENDING)
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    sent_at: Mapped[int | None] = mapped_column(BigInteger)
    result: Mapped[bytes | None] = mapped_column(LargeBinary)


class PostgresOrm:
    """
    SQLAlchemy async ORM holder. Create once and inject where needed.
    """

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self._engine: AsyncEngine = create_async_engine(database_url, echo=echo)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def create_schema(self) -> None:
        """Create missing tables. Production schemas are managed by alembic."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()
