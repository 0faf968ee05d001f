"""Shared FastAPI dependencies."""

import logging
import secrets
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from fastapi import Depends, Request

from coachstudio.config import Settings, get_settings
from coachstudio.errors import UnauthorizedError

logger = logging.getLogger(__name__)


def get_now() -> datetime:
    """Current instant in UTC. Overridden in tests to pin the clock."""
    return datetime.now(timezone.utc)


def get_studio_tz(settings: Settings = Depends(get_settings)) -> tzinfo:
    return ZoneInfo(settings.studio_timezone)


def require_job_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> str:
    """Authorize a job trigger by bearer token.

    Accepts the cron secret (periodic trigger) or the admin token (manual run)
    and returns which one matched. Unset credentials never match.
    """
    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        logger.warning("Job trigger without bearer token on %s", request.url.path)
        raise UnauthorizedError("Missing or invalid authorization header")

    token = auth_header[7:]
    if settings.cron_secret and secrets.compare_digest(token, settings.cron_secret):
        return "cron"
    if settings.admin_token and secrets.compare_digest(token, settings.admin_token):
        return "admin"

    logger.warning("Job trigger with invalid token on %s", request.url.path)
    raise UnauthorizedError("Invalid job token")
