"""
Check-in window calculation
"""

from datetime import datetime, timedelta
from typing import Optional, Tuple

from flashmob.config import settings
from flashmob.core.clock import to_utc, utcnow
from flashmob.models.study_session import StudySession, SessionStatus


def checkin_window(session: StudySession) -> Tuple[datetime, datetime]:
    """
    Closed interval [start - 15 minutes, start + duration] in UTC
    """
    start = to_utc(session.start_time)
    opens_at = start - timedelta(minutes=settings.CHECKIN_OPENS_MINUTES_BEFORE)
    closes_at = start + timedelta(minutes=session.duration)
    return opens_at, closes_at


def is_checkin_open(session: StudySession, now: Optional[datetime] = None) -> bool:
    if session.status != SessionStatus.ACTIVE:
        return False
    opens_at, closes_at = checkin_window(session)
    now = to_utc(now or utcnow())
    return opens_at <= now <= closes_at
