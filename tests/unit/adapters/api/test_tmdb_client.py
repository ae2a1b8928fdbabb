"""
Tests for TMDBClient - TMDB API client implementation.

Uses respx to mock httpx calls and verifies:
- Search hits /search/movie or /search/tv with the expected parameters
- Responses are normalized (title, year, media type, absent fields -> None)
- Details merge external_ids.tvdb_id
- Failures map to MetadataError / TransportError
"""

import httpx
import pytest
import respx

from src.adapters.api.tmdb_client import TMDBClient
from src.core.errors import MetadataError, TransportError
from src.core.ports.api_clients import IMetadataProvider
from src.core.value_objects import MediaIds, MediaType, MetadataResult, ServiceType
from tests.fixtures.tmdb_responses import (
    TMDB_MOVIE_DETAILS_RESPONSE,
    TMDB_MOVIE_SEARCH_RESPONSE,
    TMDB_MOVIE_SEARCH_WITH_YEAR_RESPONSE,
    TMDB_SEARCH_EMPTY_RESPONSE,
    TMDB_SEARCH_MISSING_FIELDS_RESPONSE,
    TMDB_TV_DETAILS_RESPONSE,
    TMDB_TV_SEARCH_RESPONSE,
)

BASE = "https://api.themoviedb.org/3"


@pytest.fixture
def tmdb_client() -> TMDBClient:
    """TMDBClient instance without rate limiter."""
    return TMDBClient(api_key="test_api_key")


class TestTMDBClientInterface:
    """Test TMDBClient implements IMetadataProvider correctly."""

    def test_implements_interface(self, tmdb_client: TMDBClient):
        assert isinstance(tmdb_client, IMetadataProvider)

    def test_service_property_returns_tmdb(self, tmdb_client: TMDBClient):
        assert tmdb_client.service == ServiceType.TMDB


class TestTMDBSearch:
    """Tests for TMDBClient.search() method."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_movie_returns_results(self, tmdb_client: TMDBClient):
        route = respx.get(f"{BASE}/search/movie").mock(
            return_value=httpx.Response(200, json=TMDB_MOVIE_SEARCH_RESPONSE)
        )

        results = await tmdb_client.search("Inception", MediaType.MOVIE)

        assert len(results) == 2
        assert results[0] == MetadataResult(
            ids=MediaIds(tmdb="27205"),
            title="Inception",
            year="2010",
            media_type=MediaType.MOVIE,
            source=ServiceType.TMDB,
        )
        params = route.calls[0].request.url.params
        assert params["query"] == "Inception"
        assert params["include_adult"] == "false"
        assert "year" not in params

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_sends_bearer_token(self, tmdb_client: TMDBClient):
        route = respx.get(f"{BASE}/search/movie").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_EMPTY_RESPONSE)
        )

        await tmdb_client.search("Inception", MediaType.MOVIE)

        assert route.calls[0].request.headers["Authorization"] == "Bearer test_api_key"

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_with_year(self, tmdb_client: TMDBClient):
        """search("Inception", MOVIE, 1999) yields tmdb=603, year 1999."""
        route = respx.get(f"{BASE}/search/movie").mock(
            return_value=httpx.Response(200, json=TMDB_MOVIE_SEARCH_WITH_YEAR_RESPONSE)
        )

        results = await tmdb_client.search("Inception", MediaType.MOVIE, 1999)

        assert route.calls[0].request.url.params["year"] == "1999"
        assert results[0].ids.tmdb == "603"
        assert results[0].title == "Inception"
        assert results[0].year == "1999"
        assert results[0].media_type == MediaType.MOVIE

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_series_uses_tv_endpoint(self, tmdb_client: TMDBClient):
        respx.get(f"{BASE}/search/tv").mock(
            return_value=httpx.Response(200, json=TMDB_TV_SEARCH_RESPONSE)
        )

        results = await tmdb_client.search("Breaking Bad", MediaType.SERIES)

        assert len(results) == 1
        assert results[0].title == "Breaking Bad"
        assert results[0].year == "2008"
        assert results[0].media_type == MediaType.SERIES
        assert results[0].ids.tmdb == "1396"

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_missing_fields_are_absent(self, tmdb_client: TMDBClient):
        """No date -> year None; no title -> empty title; never an error."""
        respx.get(f"{BASE}/search/movie").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_MISSING_FIELDS_RESPONSE)
        )

        results = await tmdb_client.search("Untitled", MediaType.MOVIE)

        assert results[0].year is None
        assert results[0].media_type == MediaType.MOVIE
        assert results[1].title == ""
        assert results[1].year is None
        assert results[1].ids == MediaIds(tmdb="88888")

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_empty(self, tmdb_client: TMDBClient):
        respx.get(f"{BASE}/search/movie").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_EMPTY_RESPONSE)
        )

        assert await tmdb_client.search("zzzz", MediaType.MOVIE) == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_error_status_raises_metadata_error(self, tmdb_client: TMDBClient):
        respx.get(f"{BASE}/search/movie").mock(return_value=httpx.Response(401))

        with pytest.raises(MetadataError) as exc_info:
            await tmdb_client.search("Inception", MediaType.MOVIE)

        assert exc_info.value.status == 401
        assert exc_info.value.provider == "tmdb"

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_malformed_json_raises_transport_error(self, tmdb_client: TMDBClient):
        respx.get(f"{BASE}/search/movie").mock(
            return_value=httpx.Response(200, text="not json")
        )

        with pytest.raises(TransportError):
            await tmdb_client.search("Inception", MediaType.MOVIE)


class TestTMDBDetails:
    """Tests for TMDBClient.get_details() method."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_details_merge_tvdb_external_id(self, tmdb_client: TMDBClient):
        route = respx.get(f"{BASE}/tv/1396").mock(
            return_value=httpx.Response(200, json=TMDB_TV_DETAILS_RESPONSE)
        )

        result = await tmdb_client.get_details("1396", MediaType.SERIES)

        assert route.calls[0].request.url.params["append_to_response"] == "external_ids"
        assert result.ids == MediaIds(tmdb="1396", tvdb="81189")
        assert result.title == "Breaking Bad"
        assert result.media_type == MediaType.SERIES

    @pytest.mark.asyncio
    @respx.mock
    async def test_movie_details_without_tvdb(self, tmdb_client: TMDBClient):
        respx.get(f"{BASE}/movie/27205").mock(
            return_value=httpx.Response(200, json=TMDB_MOVIE_DETAILS_RESPONSE)
        )

        result = await tmdb_client.get_details("27205", MediaType.MOVIE)

        assert result.ids == MediaIds(tmdb="27205")
        assert result.year == "2010"

    @pytest.mark.asyncio
    @respx.mock
    async def test_details_not_found(self, tmdb_client: TMDBClient):
        respx.get(f"{BASE}/movie/0").mock(return_value=httpx.Response(404))

        with pytest.raises(MetadataError) as exc_info:
            await tmdb_client.get_details("0", MediaType.MOVIE)

        assert exc_info.value.status == 404


class TestTMDBClose:
    @pytest.mark.asyncio
    @respx.mock
    async def test_close_releases_client(self, tmdb_client: TMDBClient):
        respx.get(f"{BASE}/search/movie").mock(
            return_value=httpx.Response(200, json=TMDB_SEARCH_EMPTY_RESPONSE)
        )
        await tmdb_client.search("x", MediaType.MOVIE)

        await tmdb_client.close()
        await tmdb_client.close()

        assert tmdb_client._client is None
