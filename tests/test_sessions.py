"""
Tests for the study session lifecycle
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func

from flashmob.core.clock import utcnow
from flashmob.core.exceptions import (
    AuthorizationError,
    CheckinWindowClosedError,
    InvalidStateError,
    NotFoundError,
    NotParticipantError,
    ValidationError,
)
from flashmob.models.join_request import JoinRequest
from flashmob.models.message import SessionMessage
from flashmob.models.study_session import StudySession, SessionParticipant, SessionStatus, ParticipantRole
from flashmob.schemas.session import SessionCreate, LocationInput
from flashmob.services.join_request_service import join_request_service
from flashmob.services.messaging_service import messaging_service
from flashmob.services.session_service import session_service
from flashmob.services.user_service import active_session_ids


def session_data(**overrides) -> SessionCreate:
    data = {
        "subject": "Calculus",
        "topic": "Integration by parts",
        "location": LocationInput(venue_id="V001"),
        "start_time": utcnow() + timedelta(days=1),
        "duration": 60,
        "max_participants": 4,
    }
    data.update(overrides)
    return SessionCreate(**data)


async def add_member(db_session, session, host, user):
    join_request = await join_request_service.request(db_session, user, session.id)
    await join_request_service.approve(db_session, host, session.id, join_request.id)


@pytest.mark.asyncio
class TestCreateSession:
    """Session creation and validation"""

    async def test_create_starts_pending_with_host(self, db_session, venues, host):
        session = await session_service.create(db_session, host, session_data())

        assert session.id.startswith(f"S{utcnow().year}")
        assert session.status == SessionStatus.PENDING_ADMIN_APPROVAL
        assert session.admin_approved is False
        assert session.participant_ids == [host.id]
        assert session.participants[0].role == ParticipantRole.HOST
        assert await active_session_ids(db_session, host.id) == [session.id]

    async def test_location_filled_from_venue(self, db_session, venues, host):
        session = await session_service.create(db_session, host, session_data())

        assert session.venue_name == "UCM James C. Kirkpatrick Library"
        assert (session.lat, session.lng) == (38.7625, -93.7344)

    async def test_explicit_coordinates_without_venue(self, db_session, venues, host):
        location = LocationInput(lat=39.1, lng=-94.58, meeting_spot="Fountain")
        session = await session_service.create(db_session, host, session_data(location=location))

        assert session.venue_id is None
        assert (session.lat, session.lng) == (39.1, -94.58)

    async def test_location_requires_venue_or_coordinates(self, db_session, venues, host):
        with pytest.raises(ValidationError):
            await session_service.create(db_session, host, session_data(location=LocationInput()))

    async def test_unknown_venue(self, db_session, venues, host):
        with pytest.raises(NotFoundError):
            await session_service.create(
                db_session, host, session_data(location=LocationInput(venue_id="V999"))
            )

    @pytest.mark.parametrize("duration", [29, 181, 0])
    async def test_duration_bounds(self, db_session, venues, host, duration):
        with pytest.raises(ValidationError) as exc_info:
            await session_service.create(db_session, host, session_data(duration=duration))
        assert exc_info.value.details["field"] == "duration"

    @pytest.mark.parametrize("max_participants", [2, 9])
    async def test_capacity_bounds(self, db_session, venues, host, max_participants):
        with pytest.raises(ValidationError) as exc_info:
            await session_service.create(db_session, host, session_data(max_participants=max_participants))
        assert exc_info.value.details["field"] == "max_participants"

    @pytest.mark.parametrize("duration,max_participants", [(30, 3), (180, 8)])
    async def test_bounds_are_inclusive(self, db_session, venues, host, duration, max_participants):
        session = await session_service.create(
            db_session, host, session_data(duration=duration, max_participants=max_participants)
        )
        assert session.duration == duration

    async def test_start_time_must_be_in_future(self, db_session, venues, host):
        with pytest.raises(ValidationError):
            await session_service.create(
                db_session, host, session_data(start_time=utcnow() - timedelta(minutes=1))
            )

    async def test_ids_are_sequential(self, db_session, venues, host):
        first = await session_service.create(db_session, host, session_data())
        second = await session_service.create(db_session, host, session_data())
        assert int(second.id[-4:]) == int(first.id[-4:]) + 1


@pytest.mark.asyncio
class TestAdminReview:
    """pending_admin_approval -> active | rejected"""

    async def test_approve(self, db_session, make_session, host, admin):
        session = await make_session(host)
        approved = await session_service.approve(db_session, admin, session.id)

        assert approved.status == SessionStatus.ACTIVE
        assert approved.admin_approved is True
        assert approved.admin_reviewed_by == admin.id
        assert approved.admin_reviewed_at is not None
        assert await active_session_ids(db_session, host.id) == [session.id]

    async def test_approve_requires_admin(self, db_session, make_session, host, user_factory):
        session = await make_session(host)
        with pytest.raises(AuthorizationError):
            await session_service.approve(db_session, await user_factory(), session.id)

    async def test_reject_drops_from_active_sessions(self, db_session, make_session, host, admin):
        session = await make_session(host)
        rejected = await session_service.reject(db_session, admin, session.id)

        assert rejected.status == SessionStatus.REJECTED
        assert rejected.admin_approved is False
        assert await active_session_ids(db_session, host.id) == []

    async def test_approve_after_reject_fails(self, db_session, make_session, host, admin):
        session = await make_session(host)
        await session_service.reject(db_session, admin, session.id)

        with pytest.raises(InvalidStateError):
            await session_service.approve(db_session, admin, session.id)

    async def test_approve_twice_fails(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin)
        with pytest.raises(InvalidStateError):
            await session_service.approve(db_session, admin, session.id)

    async def test_reject_active_session_fails(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin)
        with pytest.raises(InvalidStateError):
            await session_service.reject(db_session, admin, session.id)

    async def test_unknown_session(self, db_session, admin):
        with pytest.raises(NotFoundError):
            await session_service.approve(db_session, admin, "S20990001")

    async def test_pending_list_newest_first_with_creator(self, db_session, make_session, host, admin):
        first = await make_session(host)
        second = await make_session(host)
        await make_session(host, approve_with=admin)

        items = await session_service.list_pending_for_admin(db_session, admin)

        assert [item["session"].id for item in items] == [second.id, first.id]
        assert items[0]["creator"].id == host.id

    async def test_pending_list_requires_admin(self, db_session, host):
        with pytest.raises(AuthorizationError):
            await session_service.list_pending_for_admin(db_session, host)


@pytest.mark.asyncio
class TestCancelAndDelete:

    async def test_host_cancels_active_session(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin)
        member = await user_factory()
        await add_member(db_session, session, host, member)

        cancelled = await session_service.cancel(db_session, host, session.id)

        assert cancelled.status == SessionStatus.CANCELLED
        assert await active_session_ids(db_session, host.id) == []
        assert await active_session_ids(db_session, member.id) == []

    async def test_host_cancels_pending_session(self, db_session, make_session, host):
        session = await make_session(host)
        cancelled = await session_service.cancel(db_session, host, session.id)
        assert cancelled.status == SessionStatus.CANCELLED

    async def test_only_host_cancels(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin)
        with pytest.raises(AuthorizationError):
            await session_service.cancel(db_session, admin, session.id)

    async def test_cancel_twice_fails(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin)
        await session_service.cancel(db_session, host, session.id)
        with pytest.raises(InvalidStateError):
            await session_service.cancel(db_session, host, session.id)

    async def test_cancel_rejected_session_fails(self, db_session, make_session, host, admin):
        session = await make_session(host)
        await session_service.reject(db_session, admin, session.id)
        with pytest.raises(InvalidStateError):
            await session_service.cancel(db_session, host, session.id)

    async def test_admin_delete_removes_everything(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin)
        member = await user_factory()
        await add_member(db_session, session, host, member)
        await join_request_service.request(db_session, await user_factory(), session.id)
        await messaging_service.post(db_session, member, session.id, "hello")

        await session_service.delete_by_admin(db_session, admin, session.id)

        for model in (SessionParticipant, JoinRequest, SessionMessage):
            count = await db_session.execute(
                select(func.count()).select_from(model).where(model.session_id == session.id)
            )
            assert count.scalar() == 0
        with pytest.raises(NotFoundError):
            await session_service.get_by_id(db_session, admin, session.id)
        assert await active_session_ids(db_session, member.id) == []

    async def test_delete_requires_admin(self, db_session, make_session, host):
        session = await make_session(host)
        with pytest.raises(AuthorizationError):
            await session_service.delete_by_admin(db_session, host, session.id)


@pytest.mark.asyncio
class TestRemoveParticipant:

    async def test_host_removes_member(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin)
        member = await user_factory()
        await add_member(db_session, session, host, member)

        updated = await session_service.remove_participant(db_session, host, session.id, member.id)

        assert updated.participant_ids == [host.id]
        assert await active_session_ids(db_session, member.id) == []

    async def test_removing_absent_user_is_noop(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin)
        stranger = await user_factory()

        updated = await session_service.remove_participant(db_session, host, session.id, stranger.id)

        assert updated.participant_ids == [host.id]

    async def test_removing_twice_is_noop(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin)
        member = await user_factory()
        await add_member(db_session, session, host, member)

        await session_service.remove_participant(db_session, host, session.id, member.id)
        updated = await session_service.remove_participant(db_session, host, session.id, member.id)

        assert updated.participant_ids == [host.id]

    async def test_host_cannot_be_removed(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin)
        with pytest.raises(ValidationError):
            await session_service.remove_participant(db_session, host, session.id, host.id)

    async def test_only_host_removes(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin)
        member = await user_factory()
        await add_member(db_session, session, host, member)

        with pytest.raises(AuthorizationError):
            await session_service.remove_participant(db_session, member, session.id, host.id)


@pytest.mark.asyncio
class TestCheckin:

    async def test_checkin_inside_window(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin, start_in=timedelta(hours=2))
        start = session.start_time

        record = await session_service.checkin(db_session, host, session.id, now=start - timedelta(minutes=15))

        assert record.checked_in is True
        assert record.checked_in_at is not None

    async def test_checkin_at_end_of_session(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin, duration=45)
        end = session.start_time + timedelta(minutes=45)

        record = await session_service.checkin(db_session, host, session.id, now=end)

        assert record.checked_in is True

    async def test_checkin_too_early(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin)
        with pytest.raises(CheckinWindowClosedError):
            await session_service.checkin(
                db_session, host, session.id, now=session.start_time - timedelta(minutes=16)
            )

    async def test_checkin_too_late(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin, duration=60)
        with pytest.raises(CheckinWindowClosedError):
            await session_service.checkin(
                db_session, host, session.id, now=session.start_time + timedelta(minutes=61)
            )

    async def test_non_participant_rejected_even_inside_window(
        self, db_session, make_session, host, admin, user_factory
    ):
        session = await make_session(host, approve_with=admin)
        outsider = await user_factory()

        with pytest.raises(NotParticipantError):
            await session_service.checkin(db_session, outsider, session.id, now=session.start_time)

    async def test_pending_session_window_closed(self, db_session, make_session, host):
        session = await make_session(host)
        with pytest.raises(CheckinWindowClosedError):
            await session_service.checkin(db_session, host, session.id, now=session.start_time)

    async def test_second_checkin_keeps_first_time(self, db_session, make_session, host, admin):
        session = await make_session(host, approve_with=admin)
        first = session.start_time - timedelta(minutes=5)

        await session_service.checkin(db_session, host, session.id, now=first)
        record = await session_service.checkin(db_session, host, session.id, now=session.start_time)

        assert record.checked_in_at.replace(tzinfo=None) == first.replace(tzinfo=None)


@pytest.mark.asyncio
class TestSessionQueries:

    async def test_list_all_hides_pending_from_users(self, db_session, make_session, host, admin, user_factory):
        pending = await make_session(host)
        active = await make_session(host, approve_with=admin)
        viewer = await user_factory()

        visible = [s.id for s in await session_service.list_all(db_session, viewer)]
        everything = [s.id for s in await session_service.list_all(db_session, admin)]

        assert visible == [active.id]
        assert set(everything) == {pending.id, active.id}

    async def test_list_all_user_statuses(self, db_session, session_maker, make_session, host, admin, user_factory):
        active = await make_session(host, approve_with=admin)
        completed = await make_session(host, approve_with=admin)
        cancelled = await make_session(host, approve_with=admin)
        await session_service.cancel(db_session, host, cancelled.id)
        async with session_maker() as db:
            stored = await db.get(StudySession, completed.id)
            stored.status = SessionStatus.COMPLETED
            await db.commit()

        visible = {s.id for s in await session_service.list_all(db_session, await user_factory())}

        assert visible == {active.id, completed.id}

    async def test_list_all_sorted_by_start(self, db_session, make_session, host, admin, user_factory):
        later = await make_session(host, approve_with=admin, start_in=timedelta(days=3))
        sooner = await make_session(host, approve_with=admin, start_in=timedelta(days=1))

        ids = [s.id for s in await session_service.list_all(db_session, await user_factory())]

        assert ids == [sooner.id, later.id]

    async def test_get_pending_by_id_visibility(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host)

        assert (await session_service.get_by_id(db_session, host, session.id)).id == session.id
        assert (await session_service.get_by_id(db_session, admin, session.id)).id == session.id
        with pytest.raises(NotFoundError):
            await session_service.get_by_id(db_session, await user_factory(), session.id)

    async def test_get_active_by_id_is_public(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin)
        found = await session_service.get_by_id(db_session, await user_factory(), session.id)
        assert found.status == SessionStatus.ACTIVE

    async def test_list_nearby_filters(self, db_session, make_session, host, admin, user_factory):
        near = await make_session(host, approve_with=admin, venue_id="V003")
        await make_session(host, approve_with=admin, venue_id="V006")  # Kansas City, ~50 miles
        await make_session(host, venue_id="V002")  # still pending
        await make_session(host, approve_with=admin, venue_id="V004", subject="Physics")
        viewer = await user_factory()

        items = await session_service.list_nearby(
            db_session, viewer, lat=38.7625, lng=-93.7344, radius_miles=10, subject="calculus"
        )

        assert [item["session"].id for item in items] == [near.id]
        assert items[0]["distance"] < 1

    async def test_list_nearby_defaults_to_user_preferences(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin, venue_id="V003")
        in_kc = await user_factory(address="14 W 10th St, Kansas City, MO")
        wide = await user_factory(
            address="14 W 10th St, Kansas City, MO",
            preferences={"subjects": [], "max_distance": 100.0, "favorite_venues": []}
        )

        assert await session_service.list_nearby(db_session, in_kc) == []
        assert [item["session"].id for item in await session_service.list_nearby(db_session, wide)] == [session.id]

    async def test_list_nearby_excludes_started_sessions(self, db_session, make_session, host, admin, user_factory):
        session = await make_session(host, approve_with=admin, start_in=timedelta(hours=1))
        viewer = await user_factory()

        later = utcnow() + timedelta(hours=2)
        assert await session_service.list_nearby(db_session, viewer, now=later) == []
        assert len(await session_service.list_nearby(db_session, viewer)) == 1
        assert session.status == SessionStatus.ACTIVE

    async def test_list_nearby_is_capped(self, db_session, make_session, host, admin, user_factory, monkeypatch):
        from flashmob.config import settings
        monkeypatch.setattr(settings, "NEARBY_SESSIONS_LIMIT", 2)
        for _ in range(3):
            await make_session(host, approve_with=admin)

        assert len(await session_service.list_nearby(db_session, await user_factory())) == 2

    async def test_list_mine(self, db_session, make_session, host, admin, user_factory):
        mine = await make_session(host, approve_with=admin)
        other_host = await user_factory()
        await make_session(other_host, approve_with=admin)

        assert [s.id for s in await session_service.list_mine(db_session, host)] == [mine.id]


@pytest.mark.asyncio
class TestSessionEndpoints:
    """HTTP mapping for session operations"""

    async def test_create_and_fetch(self, client: AsyncClient, venues, host, auth_headers):
        start = (utcnow() + timedelta(days=2)).isoformat()
        response = await client.post(
            "/api/v1/sessions/",
            json={
                "subject": "Chemistry",
                "topic": "Stoichiometry",
                "location": {"venue_id": "V002", "meeting_spot": "Room B"},
                "start_time": start,
                "duration": 90,
                "max_participants": 6
            },
            headers=auth_headers(host)
        )
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending_admin_approval"
        assert data["location"]["venue_name"] == "Trails Regional Library"
        assert data["location"]["coordinates"] == {"lat": 38.7644, "lng": -93.7397}
        assert data["participants"][0]["role"] == "host"

        response = await client.get(f"/api/v1/sessions/{data['id']}", headers=auth_headers(host))
        assert response.status_code == 200
        assert response.json()["participant_ids"] == [host.id]

    async def test_bounds_violation_is_validation_error(self, client: AsyncClient, venues, host, auth_headers):
        response = await client.post(
            "/api/v1/sessions/",
            json={
                "subject": "Chemistry",
                "topic": "Stoichiometry",
                "location": {"venue_id": "V002"},
                "start_time": (utcnow() + timedelta(days=2)).isoformat(),
                "duration": 200,
                "max_participants": 6
            },
            headers=auth_headers(host)
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.get("/api/v1/sessions/")
        assert response.status_code == 401

    async def test_admin_flow(self, client: AsyncClient, make_session, host, admin, auth_headers):
        session = await make_session(host)

        response = await client.get("/api/v1/sessions/pending", headers=auth_headers(admin))
        assert response.status_code == 200
        pending = response.json()
        assert pending[0]["id"] == session.id
        assert pending[0]["creator"]["email"] == host.email

        response = await client.post(f"/api/v1/sessions/{session.id}/approve", headers=auth_headers(host))
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

        response = await client.post(f"/api/v1/sessions/{session.id}/reject", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

        response = await client.post(f"/api/v1/sessions/{session.id}/approve", headers=auth_headers(admin))
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_STATE"

    async def test_pending_session_hidden_from_strangers(
        self, client: AsyncClient, make_session, host, user_factory, auth_headers
    ):
        session = await make_session(host)
        stranger = await user_factory()

        response = await client.get(f"/api/v1/sessions/{session.id}", headers=auth_headers(stranger))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_checkin_endpoint(self, client: AsyncClient, make_session, host, admin, user_factory, auth_headers):
        session = await make_session(host, approve_with=admin, start_in=timedelta(minutes=10))

        response = await client.post(f"/api/v1/sessions/{session.id}/checkin", headers=auth_headers(host))
        assert response.status_code == 200
        assert response.json()["checked_in"] is True

        outsider = await user_factory()
        response = await client.post(f"/api/v1/sessions/{session.id}/checkin", headers=auth_headers(outsider))
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "NOT_PARTICIPANT"

    async def test_checkin_window_closed_endpoint(self, client: AsyncClient, make_session, host, admin, auth_headers):
        session = await make_session(host, approve_with=admin, start_in=timedelta(hours=3))

        response = await client.post(f"/api/v1/sessions/{session.id}/checkin", headers=auth_headers(host))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CHECKIN_WINDOW_CLOSED"

    async def test_nearby_endpoint(self, client: AsyncClient, make_session, host, admin, auth_headers):
        session = await make_session(host, approve_with=admin, venue_id="V005")

        response = await client.get(
            "/api/v1/sessions/nearby",
            params={"lat": 38.7625, "lng": -93.7344, "radius": 5},
            headers=auth_headers(host)
        )
        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data] == [session.id]
        assert data[0]["distance"] >= 0

    async def test_delete_endpoint(self, client: AsyncClient, make_session, host, admin, auth_headers):
        session = await make_session(host, approve_with=admin)

        response = await client.delete(f"/api/v1/sessions/{session.id}", headers=auth_headers(admin))
        assert response.status_code == 200

        response = await client.get(f"/api/v1/sessions/{session.id}", headers=auth_headers(admin))
        assert response.status_code == 404
