"""
Admin dashboard schemas
"""

from pydantic import BaseModel


class StatsResponse(BaseModel):
    total_users: int
    total_sessions: int
    active_sessions: int
    pending_sessions: int
    total_venues: int
    pending_join_requests: int
