"""Review-card repository driven by the SM-2 scheduler."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from activepaper.models.review import ReviewCard, ReviewCardCreate, ReviewCardWithContext
from activepaper.models.tables import DocumentRecord, InteractionRecord, ReviewCardRecord
from activepaper.services.base import Repository, new_id, to_model
from activepaper.services.scheduler import (
    INITIAL_EASE_FACTOR,
    INITIAL_INTERVAL_DAYS,
    calculate_next_review,
    next_review_at,
)


class ReviewCardRepository(Repository):
    """Persists recall cards; scheduling fields change only through ``update_review_card``."""

    async def create_review_card(self, data: ReviewCardCreate) -> ReviewCard:
        """Create the card for an interaction, due one day from now.

        An interaction holds at most one card; if it already has one, that
        card is returned unchanged.
        """
        return await self._run(self._create, data)

    async def update_review_card(self, card_id: str, quality: float) -> ReviewCard | None:
        """Apply one review with the given quality rating.

        Returns:
            The rescheduled card, or None if no card has that id.
        """
        return await self._run(self._review, card_id, quality)

    async def get_review_card(self, card_id: str) -> ReviewCard | None:
        return await self._run(self._get_by_id, card_id)

    async def get_review_card_for_interaction(self, interaction_id: str) -> ReviewCard | None:
        return await self._run(self._get_for_interaction, interaction_id)

    async def get_next_review_card(self) -> ReviewCardWithContext | None:
        """The earliest card that is due now, or None when nothing is due."""
        return await self._run(self._next_due)

    async def get_due_review_count(self) -> int:
        return await self._run(self._due_count)

    async def get_all_review_cards(self, limit: int | None = None) -> list[ReviewCardWithContext]:
        """All cards, soonest due first."""
        return await self._run(self._all_with_context, limit)

    async def delete_review_card(self, card_id: str) -> bool:
        return await self._run(self._delete, card_id)

    async def _create(self, session: AsyncSession, data: ReviewCardCreate) -> ReviewCard:
        existing = await self._find_for_interaction(session, data.interaction_id)
        if existing is not None:
            self._logger.debug("review_card_exists", card_id=existing.id, interaction_id=data.interaction_id)
            return to_model(ReviewCard, existing)

        now = self._clock()
        record = ReviewCardRecord(
            id=new_id(),
            interaction_id=data.interaction_id,
            question=data.question,
            answer=data.answer,
            next_review_at=next_review_at(now, INITIAL_INTERVAL_DAYS),
            interval_days=INITIAL_INTERVAL_DAYS,
            ease_factor=INITIAL_EASE_FACTOR,
            review_count=0,
            created_at=now,
        )
        session.add(record)
        await session.flush()
        self._logger.info("review_card_created", card_id=record.id, interaction_id=record.interaction_id)
        return to_model(ReviewCard, record)

    async def _review(self, session: AsyncSession, card_id: str, quality: float) -> ReviewCard | None:
        record = await session.get(ReviewCardRecord, card_id)
        if record is None:
            return None

        schedule = calculate_next_review(quality, record.interval_days, record.ease_factor, record.review_count)
        now = self._clock()
        record.interval_days = schedule.interval_days
        record.ease_factor = schedule.ease_factor
        record.review_count = schedule.review_count
        record.next_review_at = next_review_at(now, schedule.interval_days)
        await session.flush()
        self._logger.debug(
            "review_card_updated",
            card_id=card_id,
            quality=quality,
            interval_days=schedule.interval_days,
            ease_factor=schedule.ease_factor,
        )
        return to_model(ReviewCard, record)

    async def _get_by_id(self, session: AsyncSession, card_id: str) -> ReviewCard | None:
        record = await session.get(ReviewCardRecord, card_id)
        if record is None:
            return None
        return to_model(ReviewCard, record)

    async def _get_for_interaction(self, session: AsyncSession, interaction_id: str) -> ReviewCard | None:
        record = await self._find_for_interaction(session, interaction_id)
        if record is None:
            return None
        return to_model(ReviewCard, record)

    async def _find_for_interaction(self, session: AsyncSession, interaction_id: str) -> ReviewCardRecord | None:
        statement = select(ReviewCardRecord).where(ReviewCardRecord.interaction_id == interaction_id)
        result = await session.execute(statement)
        return result.scalar_one_or_none()

    def _with_context(self):
        return (
            select(
                ReviewCardRecord,
                InteractionRecord.selected_text,
                InteractionRecord.action_type,
                DocumentRecord.filename,
            )
            .join(InteractionRecord, ReviewCardRecord.interaction_id == InteractionRecord.id)
            .join(DocumentRecord, InteractionRecord.document_id == DocumentRecord.id)
            .order_by(ReviewCardRecord.next_review_at)
        )

    def _context_model(self, row) -> ReviewCardWithContext:
        record, selected_text, action_type, filename = row
        return to_model(
            ReviewCardWithContext,
            record,
            selected_text=selected_text,
            action_type=action_type,
            document_filename=filename,
        )

    async def _next_due(self, session: AsyncSession) -> ReviewCardWithContext | None:
        statement = self._with_context().where(ReviewCardRecord.next_review_at <= self._clock()).limit(1)
        result = await session.execute(statement)
        row = result.first()
        if row is None:
            return None
        return self._context_model(row)

    async def _due_count(self, session: AsyncSession) -> int:
        statement = (
            select(func.count())
            .select_from(ReviewCardRecord)
            .where(ReviewCardRecord.next_review_at <= self._clock())
        )
        result = await session.execute(statement)
        return result.scalar_one()

    async def _all_with_context(self, session: AsyncSession, limit: int | None) -> list[ReviewCardWithContext]:
        statement = self._with_context()
        if limit is not None:
            statement = statement.limit(limit)
        result = await session.execute(statement)
        return [self._context_model(row) for row in result.all()]

    async def _delete(self, session: AsyncSession, card_id: str) -> bool:
        result = await session.execute(delete(ReviewCardRecord).where(ReviewCardRecord.id == card_id))
        return result.rowcount > 0
