"""Slot API routes: the read-only booking page query."""

from datetime import date, datetime, tzinfo

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.api.deps import get_now, get_studio_tz
from coachstudio.database import get_db
from coachstudio.models.enums import SessionKind, UserRole
from coachstudio.models.user import User
from coachstudio.scheduling.slicer import resolve_slots
from coachstudio.schemas.slot import SlotRead

router = APIRouter(prefix="/api/slots", tags=["slots"])


@router.get("", response_model=list[SlotRead])
async def list_open_slots(
    start: date,
    end: date,
    coach_id: list[int] | None = Query(default=None),
    kind: SessionKind | None = None,
    include_full: bool = False,
    session: AsyncSession = Depends(get_db),
    tz: tzinfo = Depends(get_studio_tz),
    now: datetime = Depends(get_now),
) -> list[SlotRead]:
    """Open slots between `start` and `end` (inclusive dates, studio timezone).

    Without `coach_id`, every coach is included.
    """
    if not coach_id:
        result = await session.execute(
            select(User.id)
            .where(User.role.in_([UserRole.COACH, UserRole.OWNER]))
            .order_by(User.id)
        )
        coach_id = list(result.scalars().all())

    slots = await resolve_slots(
        session,
        coach_id,
        start,
        end,
        tz=tz,
        kind=kind,
        now=now,
        include_full=include_full,
    )
    return [SlotRead.from_slot(slot) for slot in slots]
