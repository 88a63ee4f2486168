"""Shared plumbing for the entity repositories."""

from typing import Any, Awaitable, Callable, Concatenate, ParamSpec, TypeVar
from uuid import uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import SQLModel

from activepaper.models.base import RecordModel
from activepaper.services.database import Clock, current_time_ms
from activepaper.services.schema import SchemaManager

P = ParamSpec("P")
T = TypeVar("T")
M = TypeVar("M", bound=RecordModel)


def new_id() -> str:
    return str(uuid4())


class Repository:
    """Base for repositories that persist through one async engine.

    Each public operation runs as a single transaction, wrapped by the schema
    manager's repair-and-retry policy.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        schema: SchemaManager,
        clock: Clock | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._engine = engine
        self._schema = schema
        self._clock = clock or current_time_ms
        self._logger = logger or structlog.get_logger(__name__)

    async def _run(
        self,
        operation: Callable[Concatenate[AsyncSession, P], Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Run ``operation(session, ...)`` inside one transaction, committing on success."""

        async def attempt() -> T:
            async with AsyncSession(self._engine, expire_on_commit=False) as session:
                async with session.begin():
                    return await operation(session, *args, **kwargs)

        return await self._schema.run(attempt)


def to_model(model_cls: type[M], record: SQLModel, **extra: Any) -> M:
    """Convert a SQLModel record (plus any joined columns) to a domain model.

    Storage-only columns the domain model does not declare are left behind.
    """
    data = record.model_dump(include=set(model_cls.model_fields))
    return model_cls.from_record({**data, **extra})
