import httpx
import logging
from typing import Optional
from urllib.parse import urlencode

from app.core.config import settings

logger = logging.getLogger(__name__)

PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"
DETAIL_FIELDS = "name,formatted_address,geometry,url,website,formatted_phone_number,rating,reviews,photos,types"


class PlacesError(Exception):
    """Google Places answered with a non-OK status"""

    def __init__(self, places_status: str):
        super().__init__(f"Google Places API error: {places_status}")
        self.places_status = places_status


class PlacesService:
    """Google Places web service lookups for linking a business to its listing"""

    def __init__(self, api_key: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key if api_key is not None else settings.google_api_key
        self._http_client = http_client
        self.logger = logging.getLogger(__name__)

    async def _get(self, path: str, params: dict) -> dict:
        url = f"{PLACES_BASE_URL}/{path}"
        params = {**params, "key": self.api_key}
        if self._http_client is not None:
            response = await self._http_client.get(url, params=params, timeout=30.0)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, params=params, timeout=30.0)
        response.raise_for_status()
        return response.json()

    async def search_places(self, query: str) -> list:
        self.logger.info(f"search_places: Entry - query: {query}")
        try:
            data = await self._get("textsearch/json", {"query": query})
            if data.get("status") not in ("OK", "ZERO_RESULTS"):
                raise PlacesError(data.get("status"))
            results = data.get("results", [])
            self.logger.info(f"search_places: Success - {len(results)} results")
            return results
        except Exception as e:
            self.logger.error(f"search_places: Failure - {e}")
            raise

    async def get_place_details(self, place_id: str) -> dict:
        self.logger.info(f"get_place_details: Entry - place: {place_id}")
        try:
            data = await self._get("details/json", {"place_id": place_id, "fields": DETAIL_FIELDS})
            if data.get("status") != "OK":
                raise PlacesError(data.get("status"))
            self.logger.info(f"get_place_details: Success - place: {place_id}")
            return data.get("result", {})
        except Exception as e:
            self.logger.error(f"get_place_details: Failure - {e}")
            raise

    async def get_place_reviews(self, place_id: str) -> list:
        details = await self.get_place_details(place_id)
        return details.get("reviews") or []

    def get_photo_url(self, photo_reference: str, max_width: int = 400) -> str:
        query = urlencode({"maxwidth": max_width, "photoreference": photo_reference, "key": self.api_key})
        return f"{PLACES_BASE_URL}/photo?{query}"
