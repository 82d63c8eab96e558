"""
Study session endpoints: lifecycle, join requests, check-in and chat
"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.core.database import get_session
from flashmob.core.security import get_current_user, get_current_admin
from flashmob.models.user import User
from flashmob.schemas.join_request import JoinRequestResponse, PendingJoinRequestResponse
from flashmob.schemas.message import MessageCreate, MessageResponse as ChatMessageResponse
from flashmob.schemas.response import MessageResponse
from flashmob.schemas.session import (
    SessionCreate,
    SessionResponse,
    SessionDetail,
    NearbySessionResponse,
    PendingSessionResponse,
    CheckinResponse,
)
from flashmob.services.join_request_service import join_request_service
from flashmob.services.messaging_service import messaging_service
from flashmob.services.session_service import session_service

router = APIRouter()


def _user_summary(user: User) -> dict:
    return {"user_id": user.id, "name": user.name, "email": user.email}


def _chat_message(item: dict) -> dict:
    message = item["message"]
    return {
        "id": message.id,
        "session_id": message.session_id,
        "author_id": message.author_id,
        "author_name": item["author_name"],
        "body": message.body,
        "created_at": message.created_at
    }


@router.post("/", response_model=SessionDetail, status_code=status.HTTP_201_CREATED)
async def create_session(
    session_data: SessionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Create a session; it stays pending until a platform admin approves it
    """
    return await session_service.create(db, current_user, session_data)


@router.get("/", response_model=List[SessionResponse])
async def list_sessions(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    All visible sessions ordered by start time
    """
    return await session_service.list_all(db, current_user)


@router.get("/nearby", response_model=List[NearbySessionResponse])
async def nearby_sessions(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, ge=0),
    subject: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Upcoming active sessions near a point (default: the caller's location)
    """
    matches = await session_service.list_nearby(
        db, current_user, lat=lat, lng=lng, radius_miles=radius, subject=subject
    )
    return [
        {**SessionResponse.model_validate(item["session"]).model_dump(), "distance": round(item["distance"], 2)}
        for item in matches
    ]


@router.get("/mine", response_model=List[SessionResponse])
async def my_sessions(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await session_service.list_mine(db, current_user)


@router.get("/pending", response_model=List[PendingSessionResponse])
async def pending_sessions(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Sessions awaiting admin review, newest first
    """
    items = await session_service.list_pending_for_admin(db, admin)
    return [
        {**SessionResponse.model_validate(item["session"]).model_dump(), "creator": _user_summary(item["creator"])}
        for item in items
    ]


@router.get("/{session_id}", response_model=SessionDetail)
async def get_session_detail(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await session_service.get_by_id(db, current_user, session_id)


@router.post("/{session_id}/approve", response_model=SessionDetail)
async def approve_session(
    session_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await session_service.approve(db, admin, session_id)


@router.post("/{session_id}/reject", response_model=SessionDetail)
async def reject_session(
    session_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await session_service.reject(db, admin, session_id)


@router.post("/{session_id}/cancel", response_model=SessionDetail)
async def cancel_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Host-only cancellation
    """
    return await session_service.cancel(db, current_user, session_id)


@router.delete("/{session_id}", response_model=MessageResponse)
async def delete_session(
    session_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    await session_service.delete_by_admin(db, admin, session_id)
    return {"message": f"Session {session_id} deleted"}


@router.delete("/{session_id}/participants/{user_id}", response_model=SessionDetail)
async def remove_participant(
    session_id: str,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await session_service.remove_participant(db, current_user, session_id, user_id)


@router.post("/{session_id}/checkin", response_model=CheckinResponse)
async def checkin(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Check in from 15 minutes before the start until the session ends
    """
    return await session_service.checkin(db, current_user, session_id)


# Join requests

@router.post(
    "/{session_id}/join-requests",
    response_model=JoinRequestResponse,
    status_code=status.HTTP_201_CREATED
)
async def request_to_join(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await join_request_service.request(db, current_user, session_id)


@router.get("/{session_id}/join-requests", response_model=List[PendingJoinRequestResponse])
async def pending_join_requests(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Host-only list of pending requests with requester info
    """
    items = await join_request_service.list_pending(db, current_user, session_id)
    return [
        {**JoinRequestResponse.model_validate(item["request"]).model_dump(), "user": _user_summary(item["user"])}
        for item in items
    ]


@router.post("/{session_id}/join-requests/{request_id}/approve", response_model=JoinRequestResponse)
async def approve_join_request(
    session_id: str,
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await join_request_service.approve(db, current_user, session_id, request_id)


@router.post("/{session_id}/join-requests/{request_id}/reject", response_model=JoinRequestResponse)
async def reject_join_request(
    session_id: str,
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return await join_request_service.reject(db, current_user, session_id, request_id)


# Chat

@router.get("/{session_id}/messages", response_model=List[ChatMessageResponse])
async def list_messages(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    items = await messaging_service.list(db, current_user, session_id)
    return [_chat_message(item) for item in items]


@router.post(
    "/{session_id}/messages",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED
)
async def post_message(
    session_id: str,
    message: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    item = await messaging_service.post(db, current_user, session_id, message.body)
    return _chat_message(item)
