"""
Identity & access gate: privilege checks applied before mutating operations
"""

from flashmob.core.exceptions import AuthorizationError
from flashmob.models.study_session import StudySession
from flashmob.models.user import User


def require_admin(user: User) -> User:
    """Fail with AuthorizationError unless the user is a platform admin"""
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user


def require_host(session: StudySession, user: User) -> User:
    """Fail with AuthorizationError unless the user created the session"""
    if session.creator_id != user.id:
        raise AuthorizationError("Only the session host can perform this action")
    return user


def is_member(session: StudySession, user: User) -> bool:
    return user.id in session.participant_ids
