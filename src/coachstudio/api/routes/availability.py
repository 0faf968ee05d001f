"""Availability API routes: weekly templates, blocked slots and additions."""

from fastapi import APIRouter, Depends, Path
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.database import get_db
from coachstudio.errors import NotFoundError
from coachstudio.models.availability import (
    AvailabilityAddition,
    BlockedSlot,
    WeeklyAvailabilityRule,
)
from coachstudio.models.enums import UserRole
from coachstudio.models.room import Room
from coachstudio.models.user import User
from coachstudio.schemas.availability import (
    AvailabilityAdditionCreate,
    AvailabilityAdditionRead,
    BlockedSlotCreate,
    BlockedSlotRead,
    WeeklyRuleCreate,
    WeeklyRuleRead,
)
from coachstudio.schemas.user import UserRead

router = APIRouter(prefix="/api/coaches", tags=["availability"])


async def _get_coach(session: AsyncSession, coach_id: int) -> User:
    coach = await session.get(User, coach_id)
    if coach is None or not coach.can_coach:
        raise NotFoundError(f"Coach {coach_id} not found", {"coach_id": coach_id})
    return coach


async def _check_room(session: AsyncSession, room_id: int | None) -> None:
    if room_id is not None and await session.get(Room, room_id) is None:
        raise NotFoundError(f"Room {room_id} not found", {"room_id": room_id})


@router.get("", response_model=list[UserRead])
async def list_coaches(session: AsyncSession = Depends(get_db)) -> list[User]:
    """List every user who can hold availability."""
    stmt = (
        select(User)
        .where(User.role.in_([UserRole.COACH, UserRole.OWNER]))
        .order_by(User.name, User.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


@router.get("/{coach_id}/availability", response_model=list[WeeklyRuleRead])
async def get_weekly_template(
    coach_id: int,
    session: AsyncSession = Depends(get_db),
) -> list[WeeklyAvailabilityRule]:
    """Get a coach's whole weekly template, ordered by weekday then start."""
    await _get_coach(session, coach_id)
    stmt = (
        select(WeeklyAvailabilityRule)
        .where(WeeklyAvailabilityRule.coach_id == coach_id)
        .order_by(WeeklyAvailabilityRule.day_of_week, WeeklyAvailabilityRule.start_time)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


@router.get("/{coach_id}/availability/{day_of_week}", response_model=list[WeeklyRuleRead])
async def get_day_template(
    coach_id: int,
    day_of_week: int = Path(ge=0, le=6),
    session: AsyncSession = Depends(get_db),
) -> list[WeeklyAvailabilityRule]:
    await _get_coach(session, coach_id)
    stmt = (
        select(WeeklyAvailabilityRule)
        .where(
            WeeklyAvailabilityRule.coach_id == coach_id,
            WeeklyAvailabilityRule.day_of_week == day_of_week,
        )
        .order_by(WeeklyAvailabilityRule.start_time)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


@router.put("/{coach_id}/availability/{day_of_week}", response_model=list[WeeklyRuleRead])
async def replace_day_template(
    body: list[WeeklyRuleCreate],
    coach_id: int,
    day_of_week: int = Path(ge=0, le=6),
    session: AsyncSession = Depends(get_db),
) -> list[WeeklyAvailabilityRule]:
    """Replace a weekday's rules. An empty list clears the day."""
    await _get_coach(session, coach_id)
    for rule in body:
        await _check_room(session, rule.room_id)

    await session.execute(
        delete(WeeklyAvailabilityRule).where(
            WeeklyAvailabilityRule.coach_id == coach_id,
            WeeklyAvailabilityRule.day_of_week == day_of_week,
        )
    )

    rows = []
    for rule in sorted(body, key=lambda r: r.start_time):
        row = WeeklyAvailabilityRule(
            coach_id=coach_id,
            day_of_week=day_of_week,
            start_time=rule.start_time,
            end_time=rule.end_time,
            session_kind=rule.session_kind,
            capacity=rule.capacity,
            room_id=rule.room_id,
            slot_duration_minutes=rule.slot_duration_minutes,
        )
        session.add(row)
        rows.append(row)

    await session.commit()
    for row in rows:
        await session.refresh(row)
    return rows


@router.post("/{coach_id}/blocked-slots", response_model=BlockedSlotRead, status_code=201)
async def create_blocked_slot(
    coach_id: int,
    body: BlockedSlotCreate,
    session: AsyncSession = Depends(get_db),
) -> BlockedSlot:
    """Block out a one-off window, overriding the weekly template."""
    await _get_coach(session, coach_id)
    block = BlockedSlot(
        coach_id=coach_id,
        start_time=body.start_time,
        end_time=body.end_time,
        reason=body.reason,
    )
    session.add(block)
    await session.commit()
    await session.refresh(block)
    return block


@router.delete("/{coach_id}/blocked-slots/{block_id}", status_code=204)
async def delete_blocked_slot(
    coach_id: int,
    block_id: int,
    session: AsyncSession = Depends(get_db),
) -> None:
    stmt = select(BlockedSlot).where(
        BlockedSlot.id == block_id,
        BlockedSlot.coach_id == coach_id,
    )
    result = await session.execute(stmt)
    block = result.scalar_one_or_none()
    if block is None:
        raise NotFoundError(f"Blocked slot {block_id} not found")

    await session.delete(block)
    await session.commit()


@router.post(
    "/{coach_id}/additions", response_model=AvailabilityAdditionRead, status_code=201
)
async def create_addition(
    coach_id: int,
    body: AvailabilityAdditionCreate,
    session: AsyncSession = Depends(get_db),
) -> AvailabilityAddition:
    """Open a one-off window outside the weekly template."""
    await _get_coach(session, coach_id)
    await _check_room(session, body.room_id)
    addition = AvailabilityAddition(
        coach_id=coach_id,
        start_time=body.start_time,
        end_time=body.end_time,
        session_kind=body.session_kind,
        capacity=body.capacity,
        room_id=body.room_id,
        slot_duration_minutes=body.slot_duration_minutes,
        reason=body.reason,
    )
    session.add(addition)
    await session.commit()
    await session.refresh(addition)
    return addition


@router.delete("/{coach_id}/additions/{addition_id}", status_code=204)
async def delete_addition(
    coach_id: int,
    addition_id: int,
    session: AsyncSession = Depends(get_db),
) -> None:
    stmt = select(AvailabilityAddition).where(
        AvailabilityAddition.id == addition_id,
        AvailabilityAddition.coach_id == coach_id,
    )
    result = await session.execute(stmt)
    addition = result.scalar_one_or_none()
    if addition is None:
        raise NotFoundError(f"Availability addition {addition_id} not found")

    await session.delete(addition)
    await session.commit()
