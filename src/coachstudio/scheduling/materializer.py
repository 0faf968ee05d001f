"""SessionMaterializer: expand recurring bookings into concrete sessions.

Runs on a rolling horizon and is safe to invoke repeatedly; the unique key on
(recurring_booking_id, start_time) makes a second run a no-op.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.errors import ConflictError, NotFoundError, ValidationError
from coachstudio.models.enums import SessionKind, SessionStatus
from coachstudio.models.recurring import RecurringBooking
from coachstudio.models.room import Room
from coachstudio.models.session import TrainingSession
from coachstudio.scheduling.dates import anchor, day_bounds, next_weekday_on_or_after
from coachstudio.scheduling.guard import reserve
from coachstudio.scheduling.resolver import resolve_day
from coachstudio.scheduling.snapshot import load_snapshot
from coachstudio.scheduling.transitions import booking_status_for, cancel_bookings

logger = logging.getLogger(__name__)

GAP_UNAVAILABLE = "unavailable"
GAP_CONFLICT = "conflict"


@dataclass
class GenerationGap:
    """An occurrence that was skipped; not an error."""

    recurring_booking_id: int
    start: datetime
    end: datetime
    reason: str


@dataclass
class MaterializationReport:
    """Result of a materialization run."""

    weeks_generated: int = 0
    sessions_created: int = 0
    gaps: list[GenerationGap] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class SessionMaterializer:
    """Generates and cancels the sessions of recurring bookings.

    `generate` and `generate_for` commit (or roll back) each recurring booking
    on its own. `cancel` leaves the commit to the caller.
    """

    def __init__(self, session: AsyncSession, tz: tzinfo = timezone.utc) -> None:
        self.session = session
        self.tz = tz

    async def generate(self, horizon_weeks: int, now: datetime) -> MaterializationReport:
        """Materialize every active recurring booking `horizon_weeks` ahead."""
        _check_horizon(horizon_weeks, now)
        report = MaterializationReport(weeks_generated=horizon_weeks)

        result = await self.session.execute(
            select(RecurringBooking.id)
            .where(RecurringBooking.active.is_(True))
            .order_by(RecurringBooking.id)
        )
        booking_ids = list(result.scalars().all())

        for booking_id in booking_ids:
            await self._generate_isolated(booking_id, horizon_weeks, now, report)

        logger.info(
            "Materialized %d session(s) from %d recurring booking(s) over %d week(s): "
            "%d gap(s), %d error(s)",
            report.sessions_created,
            len(booking_ids),
            horizon_weeks,
            len(report.gaps),
            len(report.errors),
        )
        return report

    async def generate_for(
        self, recurring_booking_id: int, horizon_weeks: int, now: datetime
    ) -> MaterializationReport:
        """Materialize a single recurring booking.

        Raises:
            NotFoundError: If the recurring booking does not exist.
        """
        _check_horizon(horizon_weeks, now)
        if await self.session.get(RecurringBooking, recurring_booking_id) is None:
            raise NotFoundError(
                f"Recurring booking {recurring_booking_id} not found",
                {"recurring_booking_id": recurring_booking_id},
            )
        report = MaterializationReport(weeks_generated=horizon_weeks)
        await self._generate_isolated(recurring_booking_id, horizon_weeks, now, report)
        return report

    async def cancel(
        self, recurring_booking_id: int, now: datetime, cancelled_by: str = "member"
    ) -> int:
        """Deactivate a recurring booking and cancel its sessions after `now`.

        Sessions starting at or before `now` keep their status. Returns the
        number of sessions cancelled.

        Raises:
            NotFoundError: If the recurring booking does not exist.
        """
        booking_status = booking_status_for(cancelled_by)
        booking = await self.session.get(RecurringBooking, recurring_booking_id)
        if booking is None:
            raise NotFoundError(
                f"Recurring booking {recurring_booking_id} not found",
                {"recurring_booking_id": recurring_booking_id},
            )

        booking.active = False
        if booking.cancelled_at is None:
            booking.cancelled_at = now

        result = await self.session.execute(
            select(TrainingSession).where(
                TrainingSession.recurring_booking_id == recurring_booking_id,
                TrainingSession.status == SessionStatus.SCHEDULED,
                TrainingSession.start_time > now,
            )
        )
        future = list(result.scalars().all())
        for training in future:
            training.status = SessionStatus.CANCELLED
        await cancel_bookings(self.session, [t.id for t in future], booking_status, now)
        await self.session.flush()

        logger.info(
            "Cancelled recurring booking %s and %d future session(s)",
            recurring_booking_id,
            len(future),
        )
        return len(future)

    async def _generate_isolated(
        self,
        booking_id: int,
        horizon_weeks: int,
        now: datetime,
        report: MaterializationReport,
    ) -> None:
        gaps: list[GenerationGap] = []
        try:
            created = await self._materialize(booking_id, horizon_weeks, now, gaps)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.exception("Failed to materialize recurring booking %s", booking_id)
            report.errors.append(f"Recurring booking {booking_id}: {exc}")
            return
        report.sessions_created += created
        report.gaps.extend(gaps)

    async def _materialize(
        self,
        booking_id: int,
        horizon_weeks: int,
        now: datetime,
        gaps: list[GenerationGap],
    ) -> int:
        booking = await self.session.get(RecurringBooking, booking_id)
        if booking is None:
            raise NotFoundError(f"Recurring booking {booking_id} not found")
        if not booking.active:
            return 0
        if booking.end_time <= booking.start_time:
            raise ValidationError(
                f"Recurring booking {booking_id} ends before it starts"
            )
        room = await self.session.get(Room, booking.room_id)
        if room is None or not room.is_active:
            raise NotFoundError(
                f"Room {booking.room_id} not found", {"room_id": booking.room_id}
            )

        days = self._candidate_days(booking, horizon_weeks, now)
        if not days:
            return 0

        range_start, _ = day_bounds(days[0], self.tz)
        _, range_end = day_bounds(days[-1], self.tz)
        snapshot = await load_snapshot(self.session, booking.coach_id, range_start, range_end)
        existing = await self._existing_starts(booking_id, range_start, range_end)

        created = 0
        for day in days:
            start = anchor(day, booking.start_time, self.tz)
            end = anchor(day, booking.end_time, self.tz)
            if start <= now or start in existing:
                continue

            windows = resolve_day(snapshot, day, self.tz)
            if not any(
                w.kind == SessionKind.INDIVIDUAL and w.contains(start, end) for w in windows
            ):
                gaps.append(GenerationGap(booking_id, start, end, GAP_UNAVAILABLE))
                logger.debug(
                    "Skipping %s for recurring booking %s: coach unavailable",
                    start.isoformat(),
                    booking_id,
                )
                continue

            try:
                training = await reserve(
                    self.session,
                    coach_id=booking.coach_id,
                    room_id=booking.room_id,
                    start=start,
                    end=end,
                    member_id=booking.member_id,
                    recurring_booking_id=booking_id,
                )
            except ConflictError:
                gaps.append(GenerationGap(booking_id, start, end, GAP_CONFLICT))
                logger.debug(
                    "Skipping %s for recurring booking %s: overlaps another session",
                    start.isoformat(),
                    booking_id,
                )
                continue
            if training is not None:
                created += 1
        return created

    def _candidate_days(
        self, booking: RecurringBooking, horizon_weeks: int, now: datetime
    ) -> list[date]:
        today = now.astimezone(self.tz).date()
        first = next_weekday_on_or_after(today, booking.day_of_week)
        days = [first + timedelta(weeks=i) for i in range(horizon_weeks)]
        return [
            d
            for d in days
            if d >= booking.start_date and (booking.end_date is None or d <= booking.end_date)
        ]

    async def _existing_starts(
        self, booking_id: int, start: datetime, end: datetime
    ) -> set[datetime]:
        result = await self.session.execute(
            select(TrainingSession.start_time).where(
                TrainingSession.recurring_booking_id == booking_id,
                TrainingSession.start_time >= start,
                TrainingSession.start_time < end,
            )
        )
        return set(result.scalars().all())


def _check_horizon(horizon_weeks: int, now: datetime) -> None:
    if horizon_weeks < 1:
        raise ValidationError("horizon_weeks must be at least 1", {"horizon_weeks": horizon_weeks})
    if now.tzinfo is None:
        raise ValidationError("`now` must carry an explicit UTC offset")
