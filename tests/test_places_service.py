"""
Tests for PlacesService
"""

import httpx
import pytest

from app.services.places_service import PlacesError, PlacesService


def _places(handler):
    return PlacesService(api_key="gkey", http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestPlacesService:
    @pytest.mark.asyncio
    async def test_search_passes_query_and_key(self):
        def handler(request):
            assert request.url.path.endswith("/textsearch/json")
            assert request.url.params["query"] == "corner cafe"
            assert request.url.params["key"] == "gkey"
            return httpx.Response(200, json={"status": "OK", "results": [{"place_id": "p1"}]})

        assert await _places(handler).search_places("corner cafe") == [{"place_id": "p1"}]

    @pytest.mark.asyncio
    async def test_zero_results_is_empty(self):
        def handler(request):
            return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

        assert await _places(handler).search_places("nowhere") == []

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(200, json={"status": "REQUEST_DENIED"})

        with pytest.raises(PlacesError) as exc_info:
            await _places(handler).search_places("cafe")

        assert exc_info.value.places_status == "REQUEST_DENIED"

    @pytest.mark.asyncio
    async def test_reviews_come_from_details(self):
        def handler(request):
            assert request.url.params["place_id"] == "p1"
            return httpx.Response(200, json={"status": "OK", "result": {"name": "Cafe", "reviews": [{"rating": 5}]}})

        assert await _places(handler).get_place_reviews("p1") == [{"rating": 5}]

    @pytest.mark.asyncio
    async def test_details_without_reviews(self):
        def handler(request):
            return httpx.Response(200, json={"status": "OK", "result": {"name": "Cafe"}})

        assert await _places(handler).get_place_reviews("p1") == []

    def test_photo_url(self):
        url = PlacesService(api_key="gkey").get_photo_url("ref 1", max_width=200)

        assert url == "https://maps.googleapis.com/maps/api/place/photo?maxwidth=200&photoreference=ref+1&key=gkey"
