"""Job trigger routes for the periodic scheduler and manual admin runs."""

import logging
from datetime import datetime, tzinfo

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coachstudio.api.deps import get_now, get_studio_tz, require_job_token
from coachstudio.config import Settings, get_settings
from coachstudio.database import get_db
from coachstudio.errors import ValidationError
from coachstudio.scheduling.materializer import SessionMaterializer
from coachstudio.scheduling.transitions import advance
from coachstudio.schemas.jobs import AdvanceResult, MaterializationReportRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.post("/materialize", response_model=MaterializationReportRead)
async def run_materialize(
    weeks: int | None = Query(default=None, ge=1),
    caller: str = Depends(require_job_token),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tz: tzinfo = Depends(get_studio_tz),
    now: datetime = Depends(get_now),
) -> MaterializationReportRead:
    """Generate sessions for every active recurring booking."""
    horizon = weeks or settings.default_horizon_weeks
    if horizon > settings.max_horizon_weeks:
        raise ValidationError(
            f"weeks must be at most {settings.max_horizon_weeks}", {"weeks": horizon}
        )
    logger.info("Materialization triggered by %s for %d week(s)", caller, horizon)
    report = await SessionMaterializer(session, tz=tz).generate(horizon, now)
    return MaterializationReportRead.from_report(report)


@router.post("/advance-statuses", response_model=AdvanceResult)
async def run_advance_statuses(
    caller: str = Depends(require_job_token),
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> AdvanceResult:
    """Mark sessions that have ended as completed."""
    completed = await advance(session, now)
    await session.commit()
    logger.info("Status advance triggered by %s: %d session(s) completed", caller, completed)
    return AdvanceResult(sessions_completed=completed)
