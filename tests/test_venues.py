"""
Tests for the venue directory
"""

import pytest
from httpx import AsyncClient

from flashmob.core.exceptions import NotFoundError, ValidationError
from flashmob.core.seeding import VENUE_CATALOGUE, seed_venues
from flashmob.services.venue_service import venue_service

WARRENSBURG_VENUES = {"V001", "V002", "V003", "V004", "V005"}


@pytest.mark.asyncio
class TestVenueDirectory:

    async def test_catalogue_seeded(self, db_session, venues):
        all_venues = await venue_service.list_all(db_session)
        assert len(all_venues) == len(VENUE_CATALOGUE) == 34
        assert all_venues[0].id == "V001"

    async def test_seeding_is_idempotent(self, db_session, venues):
        assert await seed_venues(db_session) == 0
        assert len(await venue_service.list_all(db_session)) == 34

    async def test_get_by_id(self, db_session, venues):
        venue = await venue_service.get_by_id(db_session, "V027")
        assert venue.name == "Seattle Central Library"
        assert venue.category == "library"

    async def test_unknown_venue(self, db_session, venues):
        with pytest.raises(NotFoundError):
            await venue_service.get_by_id(db_session, "V999")

    async def test_nearby_within_ten_miles_sorted(self, db_session, venues):
        items = await venue_service.list_nearby(db_session, 38.7625, -93.7344, 10)

        assert {item["venue"].id for item in items} == WARRENSBURG_VENUES
        distances = [item["distance"] for item in items]
        assert distances == sorted(distances)
        assert all(d <= 10 for d in distances)
        assert items[0]["venue"].id == "V001"
        assert items[0]["distance"] == 0

    async def test_nearby_radius_is_inclusive(self, db_session, venues):
        from flashmob.core.geo import distance
        exact = distance(38.7625, -93.7344, 38.7644, -93.7397)

        items = await venue_service.list_nearby(db_session, 38.7625, -93.7344, exact)

        assert "V002" in {item["venue"].id for item in items}

    async def test_nearby_zero_radius(self, db_session, venues):
        items = await venue_service.list_nearby(db_session, 38.7625, -93.7344, 0)
        assert [item["venue"].id for item in items] == ["V001"]

    async def test_negative_radius_rejected(self, db_session, venues):
        with pytest.raises(ValidationError):
            await venue_service.list_nearby(db_session, 38.7625, -93.7344, -1)

    async def test_recommend_puts_favourites_first(self, db_session, venues, user_factory):
        user = await user_factory(
            preferences={"subjects": [], "max_distance": 10.0, "favorite_venues": ["V004"]}
        )

        items = await venue_service.recommend(db_session, user)

        assert items[0]["venue"].id == "V004"
        assert items[0]["is_favorite"] is True
        assert {item["venue"].id for item in items} == WARRENSBURG_VENUES
        rest = [item["distance"] for item in items[1:]]
        assert rest == sorted(rest)

    async def test_recommend_ignores_distant_favourites(self, db_session, venues, user_factory):
        user = await user_factory(
            preferences={"subjects": [], "max_distance": 5.0, "favorite_venues": ["V014"]}
        )

        items = await venue_service.recommend(db_session, user)

        assert "V014" not in {item["venue"].id for item in items}
        assert not any(item["is_favorite"] for item in items)


@pytest.mark.asyncio
class TestVenueEndpoints:

    async def test_nearby_defaults_to_user_location(self, client: AsyncClient, venues, user_factory, auth_headers):
        user = await user_factory(address="476 5th Ave, New York, NY")

        response = await client.get("/api/v1/venues/nearby", headers=auth_headers(user))

        assert response.status_code == 200
        assert [v["id"] for v in response.json()] == ["V016", "V014"]

    async def test_nearby_with_explicit_point(self, client: AsyncClient, venues, user_factory, auth_headers):
        user = await user_factory()

        response = await client.get(
            "/api/v1/venues/nearby",
            params={"lat": 41.8761, "lng": -87.6286, "radius": 2},
            headers=auth_headers(user)
        )

        data = response.json()
        assert [v["id"] for v in data] == ["V020", "V022"]
        assert data[0]["distance"] == 0

    async def test_get_unknown_venue(self, client: AsyncClient, venues, user_factory, auth_headers):
        response = await client.get("/api/v1/venues/V999", headers=auth_headers(await user_factory()))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_recommended(self, client: AsyncClient, venues, user_factory, auth_headers):
        user = await user_factory(
            preferences={"subjects": [], "max_distance": 5.0, "favorite_venues": ["V005"]}
        )

        response = await client.get("/api/v1/venues/recommended", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()[0]["id"] == "V005"
        assert response.json()[0]["is_favorite"] is True
