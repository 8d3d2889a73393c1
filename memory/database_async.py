"""
Async database operations for the AI Companion server.
Production-grade implementation with async SQLAlchemy, proper error handling, and type safety.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional, AsyncIterator, Dict, Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)
from sqlalchemy import select, desc, asc
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from config.settings import settings
from core import (
    get_logger,
    CompanionNotFoundError,
    DatabaseConnectionError,
    DatabaseException,
)
from memory.models import Base, User, Companion, Memory, Message, Recap, utcnow
from schemas import (
    UserSchema,
    CompanionSchema,
    MemoryFactSchema,
    MessageSchema,
    RecapSchema,
)

logger = get_logger(__name__)

DEFAULT_IMPORTANCE = 50

# Reads are retried when the connection drops; any other failure surfaces at once
read_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(DatabaseConnectionError),
    reraise=True,
)


def _wrap_error(action: str, error: SQLAlchemyError) -> DatabaseException:
    if isinstance(error, (OperationalError, InterfaceError)):
        return DatabaseConnectionError(details=f"{action}: {error}")
    return DatabaseException(f"Failed to {action}: {error}")


class AsyncDatabase:
    """
    Async database interface with production-grade features:
    - Connection pooling and retry logic
    - Type-safe operations with Pydantic
    - Proper error handling and logging
    - One session (and transaction) per operation
    """

    def __init__(self, database_url: Optional[str] = None):
        """Initialize async database engine and session factory."""
        # Convert postgresql:// to postgresql+asyncpg://
        db_url = database_url or settings.DATABASE_URL
        if db_url.startswith("postgresql://"):
            db_url = db_url.replace("postgresql://", "postgresql+asyncpg://")

        self.engine: AsyncEngine = create_async_engine(
            db_url,
            echo=settings.LOG_LEVEL == "DEBUG",
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Verify connections before use
            pool_recycle=3600,  # Recycle connections after 1 hour
        )

        self.async_session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        logger.info("Async database engine initialized", db_url=db_url.split("@")[-1])

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for database sessions with automatic cleanup.

        Yields:
            AsyncSession instance
        """
        async with self.async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error("Session rolled back", error=str(e))
                raise
            finally:
                await session.close()

    async def create_tables(self) -> None:
        """Create all database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def dispose(self) -> None:
        """Close pooled connections."""
        await self.engine.dispose()

    # ==================== User Operations ====================

    async def get_or_create_user(self, email: str) -> UserSchema:
        """
        Get existing user by email or create a new one.

        Args:
            email: User email

        Returns:
            UserSchema with user data

        Raises:
            DatabaseException: If database operation fails
        """
        try:
            async with self.get_session() as session:
                stmt = (
                    pg_insert(User)
                    .values(email=email, created_at=utcnow())
                    .on_conflict_do_nothing(index_elements=[User.email])
                )
                await session.execute(stmt)
                result = await session.execute(select(User).where(User.email == email))
                user = result.scalar_one()
                logger.debug("Retrieved user", user_id=user.id)
                return UserSchema.model_validate(user)

        except SQLAlchemyError as e:
            logger.error("Failed to get/create user", error=str(e))
            raise _wrap_error("get/create user", e)

    # ==================== Companions ====================

    async def create_companion(
        self,
        user_id: int,
        name: str,
        tone_level: int,
        persona: Dict[str, Any],
    ) -> CompanionSchema:
        """Create a companion for a user."""
        try:
            async with self.get_session() as session:
                companion = Companion(
                    user_id=user_id,
                    name=name,
                    tone_level=tone_level,
                    persona=persona,
                    created_at=utcnow(),
                )
                session.add(companion)
                await session.flush()
                logger.info("Created companion", companion_id=companion.id, user_id=user_id)
                return CompanionSchema.model_validate(companion)

        except SQLAlchemyError as e:
            logger.error("Failed to create companion", user_id=user_id, error=str(e))
            raise _wrap_error("create companion", e)

    @read_retry
    async def get_companion(self, companion_id: int) -> Optional[CompanionSchema]:
        """Get companion by ID, or None."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Companion).where(Companion.id == companion_id)
                )
                companion = result.scalar_one_or_none()
                return CompanionSchema.model_validate(companion) if companion else None

        except SQLAlchemyError as e:
            logger.error("Failed to get companion", companion_id=companion_id, error=str(e))
            raise _wrap_error("get companion", e)

    @read_retry
    async def list_companions(self) -> List[CompanionSchema]:
        """Get every companion, oldest first."""
        try:
            async with self.get_session() as session:
                result = await session.execute(select(Companion).order_by(asc(Companion.id)))
                return [CompanionSchema.model_validate(c) for c in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error("Failed to list companions", error=str(e))
            raise _wrap_error("list companions", e)

    async def update_tone_level(self, companion_id: int, tone_level: int) -> CompanionSchema:
        """
        Set a companion's tone level.

        Raises:
            CompanionNotFoundError: If the companion does not exist
        """
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Companion).where(Companion.id == companion_id)
                )
                companion = result.scalar_one_or_none()
                if not companion:
                    raise CompanionNotFoundError(companion_id)

                companion.tone_level = tone_level
                await session.flush()
                logger.info("Updated tone level", companion_id=companion_id, tone_level=tone_level)
                return CompanionSchema.model_validate(companion)

        except SQLAlchemyError as e:
            logger.error("Failed to update tone level", companion_id=companion_id, error=str(e))
            raise _wrap_error("update tone level", e)

    # ==================== Memories ====================

    async def upsert_memory(
        self,
        companion_id: int,
        key: str,
        value: str,
        importance: Optional[int] = None,
    ) -> MemoryFactSchema:
        """
        Insert or overwrite a fact keyed by (companion_id, key).

        Uses INSERT ... ON CONFLICT against the unique constraint, so concurrent
        writers never create duplicates. Importance is only overwritten when given.

        Returns:
            MemoryFactSchema with the stored fact
        """
        try:
            async with self.get_session() as session:
                now = utcnow()
                stmt = pg_insert(Memory).values(
                    companion_id=companion_id,
                    key=key,
                    value=value,
                    importance=importance if importance is not None else DEFAULT_IMPORTANCE,
                    created_at=now,
                    updated_at=now,
                )
                changes = {"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at}
                if importance is not None:
                    changes["importance"] = stmt.excluded.importance

                stmt = stmt.on_conflict_do_update(
                    constraint="uq_memories_companion_key",
                    set_=changes,
                ).returning(Memory)

                result = await session.execute(
                    stmt, execution_options={"populate_existing": True}
                )
                memory = result.scalar_one()
                logger.debug("Upserted memory", companion_id=companion_id, key=key)
                return MemoryFactSchema.model_validate(memory)

        except SQLAlchemyError as e:
            logger.error("Failed to upsert memory", companion_id=companion_id, error=str(e))
            raise _wrap_error("upsert memory", e)

    @read_retry
    async def query_ranked_memories(
        self, companion_id: int, limit: int = 20
    ) -> List[MemoryFactSchema]:
        """Get memories by importance descending, newest first among equals."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Memory)
                    .where(Memory.companion_id == companion_id)
                    .order_by(desc(Memory.importance), desc(Memory.id))
                    .limit(limit)
                )
                return [MemoryFactSchema.model_validate(m) for m in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error("Failed to get memories", companion_id=companion_id, error=str(e))
            raise _wrap_error("get memories", e)

    # ==================== Messages ====================

    async def append_message(
        self, user_id: int, companion_id: int, role: str, content: str
    ) -> MessageSchema:
        """Append a message to a conversation."""
        try:
            async with self.get_session() as session:
                message = Message(
                    user_id=user_id,
                    companion_id=companion_id,
                    role=role,
                    content=content,
                    created_at=utcnow(),
                )
                session.add(message)
                await session.flush()
                return MessageSchema.model_validate(message)

        except SQLAlchemyError as e:
            logger.error("Failed to add message", companion_id=companion_id, error=str(e))
            raise _wrap_error("add message", e)

    @read_retry
    async def query_recent_messages(
        self, user_id: int, companion_id: int, limit: int = 30
    ) -> List[MessageSchema]:
        """Get the newest messages for a user/companion pair, newest first."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Message)
                    .where(Message.user_id == user_id, Message.companion_id == companion_id)
                    .order_by(desc(Message.created_at), desc(Message.id))
                    .limit(limit)
                )
                return [MessageSchema.model_validate(m) for m in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error("Failed to get messages", companion_id=companion_id, error=str(e))
            raise _wrap_error("get messages", e)

    @read_retry
    async def query_chronological_messages(
        self, companion_id: int, limit: int = 500
    ) -> List[MessageSchema]:
        """Get the oldest messages for a companion (any user), oldest first."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Message)
                    .where(Message.companion_id == companion_id)
                    .order_by(asc(Message.created_at), asc(Message.id))
                    .limit(limit)
                )
                return [MessageSchema.model_validate(m) for m in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error("Failed to get messages", companion_id=companion_id, error=str(e))
            raise _wrap_error("get messages", e)

    # ==================== Recaps ====================

    async def append_recap(
        self,
        companion_id: int,
        summary: str,
        range_start: datetime,
        range_end: datetime,
    ) -> RecapSchema:
        """Store a recap."""
        try:
            async with self.get_session() as session:
                recap = Recap(
                    companion_id=companion_id,
                    summary=summary,
                    range_start=range_start,
                    range_end=range_end,
                    created_at=utcnow(),
                )
                session.add(recap)
                await session.flush()
                return RecapSchema.model_validate(recap)

        except SQLAlchemyError as e:
            logger.error("Failed to add recap", companion_id=companion_id, error=str(e))
            raise _wrap_error("add recap", e)

    @read_retry
    async def find_recap_by_range(
        self, companion_id: int, range_start: datetime, range_end: datetime
    ) -> Optional[RecapSchema]:
        """Find a recap covering exactly this window."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Recap)
                    .where(
                        Recap.companion_id == companion_id,
                        Recap.range_start == range_start,
                        Recap.range_end == range_end,
                    )
                    .limit(1)
                )
                recap = result.scalar_one_or_none()
                return RecapSchema.model_validate(recap) if recap else None

        except SQLAlchemyError as e:
            logger.error("Failed to find recap", companion_id=companion_id, error=str(e))
            raise _wrap_error("find recap", e)

    @read_retry
    async def list_recaps(
        self,
        companion_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[RecapSchema]:
        """Get recaps whose window lies within [since, until], oldest first."""
        try:
            async with self.get_session() as session:
                stmt = select(Recap).where(Recap.companion_id == companion_id)
                if since is not None:
                    stmt = stmt.where(Recap.range_start >= since)
                if until is not None:
                    stmt = stmt.where(Recap.range_end <= until)
                result = await session.execute(
                    stmt.order_by(asc(Recap.range_start), asc(Recap.id))
                )
                return [RecapSchema.model_validate(r) for r in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error("Failed to list recaps", companion_id=companion_id, error=str(e))
            raise _wrap_error("list recaps", e)
