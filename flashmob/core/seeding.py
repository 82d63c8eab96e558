"""
Startup seeding of reference data
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flashmob.config import settings
from flashmob.core.database import async_session, db_manager
from flashmob.models.venue import Venue

logger = logging.getLogger(__name__)

VENUE_CATALOGUE = [
    {"id": "V001", "name": "UCM James C. Kirkpatrick Library", "address": "100 E South St, Warrensburg, MO",
     "lat": 38.7625, "lng": -93.7344, "category": "library", "wifi_quality": 5, "noise_level": 1, "study_rating": 4.9},
    {"id": "V002", "name": "Trails Regional Library", "address": "432 N Holden St, Warrensburg, MO",
     "lat": 38.7644, "lng": -93.7397, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.7},
    {"id": "V003", "name": "Main Street Coffee House", "address": "117 N Holden St, Warrensburg, MO",
     "lat": 38.7623, "lng": -93.7390, "category": "cafe", "wifi_quality": 4, "noise_level": 3, "study_rating": 4.3},
    {"id": "V004", "name": "UCM Student Union Study Lounge", "address": "300 S Holden St, Warrensburg, MO",
     "lat": 38.7595, "lng": -93.7380, "category": "study_lounge", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.5},
    {"id": "V005", "name": "Ground Zero Coffee", "address": "105 E Pine St, Warrensburg, MO",
     "lat": 38.7618, "lng": -93.7365, "category": "cafe", "wifi_quality": 4, "noise_level": 3, "study_rating": 4.2},
    {"id": "V006", "name": "Kansas City Public Library - Central", "address": "14 W 10th St, Kansas City, MO",
     "lat": 39.1006, "lng": -94.5827, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.8},
    {"id": "V007", "name": "UMKC Miller Nichols Library", "address": "800 E 51st St, Kansas City, MO",
     "lat": 39.0352, "lng": -94.5767, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.7},
    {"id": "V008", "name": "Broadway Cafe & Roastery", "address": "4012 Broadway, Kansas City, MO",
     "lat": 39.0587, "lng": -94.5897, "category": "cafe", "wifi_quality": 4, "noise_level": 3, "study_rating": 4.2},
    {"id": "V009", "name": "Johnson County Library - Central", "address": "9875 W 87th St, Overland Park, KS",
     "lat": 38.9622, "lng": -94.6708, "category": "library", "wifi_quality": 5, "noise_level": 1, "study_rating": 4.9},
    {"id": "V010", "name": "The Roasterie Cafe", "address": "1204 W 27th St, Kansas City, MO",
     "lat": 39.0778, "lng": -94.5952, "category": "cafe", "wifi_quality": 4, "noise_level": 3, "study_rating": 4.1},
    {"id": "V011", "name": "Kansas City Public Library - Plaza", "address": "4801 Main St, Kansas City, MO",
     "lat": 39.0416, "lng": -94.5886, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.6},
    {"id": "V012", "name": "Quay Coffee", "address": "413 Delaware St, Kansas City, MO",
     "lat": 39.1063, "lng": -94.5844, "category": "cafe", "wifi_quality": 4, "noise_level": 3, "study_rating": 4.3},
    {"id": "V013", "name": "Johnson County Library - Olathe", "address": "201 N Chestnut St, Olathe, KS",
     "lat": 38.8831, "lng": -94.8191, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.7},
    {"id": "V014", "name": "New York Public Library - Main", "address": "476 5th Ave, New York, NY",
     "lat": 40.7532, "lng": -73.9822, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.9},
    {"id": "V015", "name": "Columbia University Butler Library", "address": "535 W 114th St, New York, NY",
     "lat": 40.8066, "lng": -73.9635, "category": "library", "wifi_quality": 5, "noise_level": 1, "study_rating": 4.8},
    {"id": "V016", "name": "Think Coffee Union Square", "address": "123 4th Ave, New York, NY",
     "lat": 40.7338, "lng": -73.9898, "category": "cafe", "wifi_quality": 4, "noise_level": 4, "study_rating": 4.0},
    {"id": "V017", "name": "Los Angeles Central Library", "address": "630 W 5th St, Los Angeles, CA",
     "lat": 34.0522, "lng": -118.2571, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.7},
    {"id": "V018", "name": "UCLA Powell Library", "address": "100 Powell Library, Los Angeles, CA",
     "lat": 34.0722, "lng": -118.4422, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.8},
    {"id": "V019", "name": "Blue Bottle Coffee - Arts District", "address": "582 Mateo St, Los Angeles, CA",
     "lat": 34.0392, "lng": -118.2314, "category": "cafe", "wifi_quality": 4, "noise_level": 3, "study_rating": 4.2},
    {"id": "V020", "name": "Harold Washington Library Center", "address": "400 S State St, Chicago, IL",
     "lat": 41.8761, "lng": -87.6286, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.8},
    {"id": "V021", "name": "University of Chicago Regenstein Library", "address": "1100 E 57th St, Chicago, IL",
     "lat": 41.7906, "lng": -87.5987, "category": "library", "wifi_quality": 5, "noise_level": 1, "study_rating": 4.9},
    {"id": "V022", "name": "Intelligentsia Coffee - Millennium Park", "address": "53 E Randolph St, Chicago, IL",
     "lat": 41.8844, "lng": -87.6244, "category": "cafe", "wifi_quality": 4, "noise_level": 3, "study_rating": 4.1},
    {"id": "V023", "name": "Houston Public Library - Central", "address": "500 McKinney St, Houston, TX",
     "lat": 29.7620, "lng": -95.3698, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.7},
    {"id": "V024", "name": "Rice University Fondren Library", "address": "6100 Main St, Houston, TX",
     "lat": 29.7174, "lng": -95.3988, "category": "library", "wifi_quality": 5, "noise_level": 1, "study_rating": 4.8},
    {"id": "V025", "name": "Burton Barr Central Library", "address": "1221 N Central Ave, Phoenix, AZ",
     "lat": 33.4635, "lng": -112.0731, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.6},
    {"id": "V026", "name": "ASU Hayden Library", "address": "1000 S Cady Mall, Tempe, AZ",
     "lat": 33.4175, "lng": -111.9344, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.7},
    {"id": "V027", "name": "Seattle Central Library", "address": "1000 4th Ave, Seattle, WA",
     "lat": 47.6062, "lng": -122.3328, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.9},
    {"id": "V028", "name": "UW Suzzallo Library", "address": "4000 15th Ave NE, Seattle, WA",
     "lat": 47.6566, "lng": -122.3089, "category": "library", "wifi_quality": 5, "noise_level": 1, "study_rating": 4.8},
    {"id": "V029", "name": "Boston Public Library - Copley", "address": "700 Boylston St, Boston, MA",
     "lat": 42.3493, "lng": -71.0778, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.8},
    {"id": "V030", "name": "MIT Libraries - Hayden", "address": "160 Memorial Dr, Cambridge, MA",
     "lat": 42.3601, "lng": -71.0942, "category": "library", "wifi_quality": 5, "noise_level": 1, "study_rating": 4.9},
    {"id": "V031", "name": "San Francisco Main Library", "address": "100 Larkin St, San Francisco, CA",
     "lat": 37.7794, "lng": -122.4156, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.7},
    {"id": "V032", "name": "Blue Bottle Coffee - Ferry Building", "address": "1 Ferry Building, San Francisco, CA",
     "lat": 37.7956, "lng": -122.3934, "category": "cafe", "wifi_quality": 4, "noise_level": 4, "study_rating": 4.0},
    {"id": "V033", "name": "Denver Public Library - Central", "address": "10 W 14th Ave Pkwy, Denver, CO",
     "lat": 39.7373, "lng": -104.9885, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.7},
    {"id": "V034", "name": "CU Denver Auraria Library", "address": "1100 Lawrence St, Denver, CO",
     "lat": 39.7447, "lng": -105.0013, "category": "library", "wifi_quality": 5, "noise_level": 2, "study_rating": 4.6},
]


async def seed_venues(db: AsyncSession) -> int:
    """
    Insert catalogue venues that are missing; existing rows are left untouched.
    Returns the number of venues added.
    """
    result = await db.execute(select(Venue.id))
    existing = set(result.scalars().all())

    added = 0
    async with db_manager.transaction(db):
        for entry in VENUE_CATALOGUE:
            if entry["id"] in existing:
                continue
            db.add(Venue(**entry))
            added += 1

    if added:
        logger.info(f"Seeded {added} venues")
    return added


async def seed_on_startup():
    """Seed venues and the bootstrap admin account"""
    from flashmob.services.admin_service import admin_service

    async with async_session() as db:
        await seed_venues(db)
        if settings.ADMIN_PASSWORD:
            await admin_service.ensure_admin_user(db)
        else:
            logger.info("ADMIN_PASSWORD not set, skipping bootstrap admin")
