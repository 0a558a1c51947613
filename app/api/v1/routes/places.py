from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from app.core.errors import server_error
from app.core.middleware import get_current_user
from app.schemas.common import envelope
from app.services.places_service import PlacesService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_places_service() -> PlacesService:
    """Dependency to get places service instance"""
    return PlacesService()


@router.get("/search")
async def search_places(
    query: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
    places: PlacesService = Depends(get_places_service),
):
    logger.info(f"search_places: Entry - user: {current_user['uid']}")

    if not query:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query is required"
        )

    try:
        results = await places.search_places(query)
        return envelope(results, count=len(results))
    except Exception as e:
        logger.error(f"search_places: Failure - {e}")
        raise server_error(e, "Error searching places")


@router.get("/photo-url")
async def get_photo_url(
    reference: Optional[str] = Query(None),
    max_width: int = Query(400, alias="maxWidth", ge=1, le=1600),
    current_user: dict = Depends(get_current_user),
    places: PlacesService = Depends(get_places_service),
):
    if not reference:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Photo reference is required"
        )
    return envelope({"url": places.get_photo_url(reference, max_width)})


@router.get("/{place_id}")
async def get_place_details(
    place_id: str,
    current_user: dict = Depends(get_current_user),
    places: PlacesService = Depends(get_places_service),
):
    logger.info(f"get_place_details: Entry - user: {current_user['uid']}, place: {place_id}")

    try:
        return envelope(await places.get_place_details(place_id))
    except Exception as e:
        logger.error(f"get_place_details: Failure - {e}")
        raise server_error(e, "Error fetching place details")


@router.get("/{place_id}/reviews")
async def get_place_reviews(
    place_id: str,
    current_user: dict = Depends(get_current_user),
    places: PlacesService = Depends(get_places_service),
):
    logger.info(f"get_place_reviews: Entry - user: {current_user['uid']}, place: {place_id}")

    try:
        reviews = await places.get_place_reviews(place_id)
        return envelope(reviews, count=len(reviews))
    except Exception as e:
        logger.error(f"get_place_reviews: Failure - {e}")
        raise server_error(e, "Error fetching place reviews")
