import httpx
import pytest
from unittest.mock import patch, Mock, AsyncMock

from integrations.arr_client import LidarrClient, ProwlarrClient, RadarrClient, ReadarrClient, SonarrClient
from integrations.errors import ErrorKind, ServiceError, ServiceTimeout, ServiceUnauthorized, ServiceUnreachable, UnexpectedResponse


def make_response(data):
    resp = Mock()
    resp.json.return_value = data
    resp.raise_for_status = Mock()
    return resp


def make_error_response(status, text=""):
    resp = Mock()
    resp.status_code = status
    resp.text = text
    resp.raise_for_status = Mock(
        side_effect=httpx.HTTPStatusError(f"HTTP {status}", request=Mock(), response=resp)
    )
    return resp


def setup_async_client(mock_async_client, response_by_method):
    client = AsyncMock()
    mock_async_client.return_value = client
    client.__aenter__.return_value = client
    client.__aexit__.return_value = False
    for method_name, resp in response_by_method.items():
        getattr(client, method_name).return_value = resp
    return client


def test_constructor_validation():
    with pytest.raises(ValueError):
        RadarrClient("", "x")
    with pytest.raises(ValueError):
        RadarrClient("http://localhost:7878", "")
    with pytest.raises(ValueError):
        SonarrClient("localhost:8989", "x")
    rc = RadarrClient("http://localhost:7878/", "secret")
    assert rc.base_url == "http://localhost:7878"


def test_new_client_sends_api_key_header():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        RadarrClient("http://localhost:7878", "secret", timeout=5.0)._new_client()
        MockAsyncClient.assert_called_once_with(
            base_url="http://localhost:7878", headers={"X-Api-Key": "secret"}, timeout=5.0
        )


@pytest.mark.asyncio
async def test_probe_reads_system_status():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        client = setup_async_client(MockAsyncClient, {"get": make_response({"version": "5.2.6", "appName": "Radarr", "branch": "master"})})

        out = await RadarrClient("http://localhost:7878", "secret").probe()

        assert out == {"service": "radarr", "reachable": True, "version": "5.2.6", "app_name": "Radarr", "branch": "master"}
        client.get.assert_called_once_with("/api/v3/system/status")


@pytest.mark.asyncio
async def test_v1_services_use_v1_prefix():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        client = setup_async_client(MockAsyncClient, {"get": make_response({"version": "2.0"})})

        await LidarrClient("http://localhost:8686", "k").probe()
        client.get.assert_called_with("/api/v1/system/status")

        await ReadarrClient("http://localhost:8787", "k").probe()
        client.get.assert_called_with("/api/v1/system/status")


@pytest.mark.asyncio
async def test_probe_without_version_is_unexpected():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        setup_async_client(MockAsyncClient, {"get": make_response({"appName": "Sonarr"})})
        with pytest.raises(UnexpectedResponse):
            await SonarrClient("http://localhost:8989", "k").probe()


@pytest.mark.asyncio
async def test_radarr_search_compacts_and_limits():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        movies = [
            {"title": "The Matrix", "year": 1999, "tmdbId": 603, "imdbId": "tt0133093", "id": 12, "overview": "..."},
            {"title": "The Matrix Reloaded", "year": 2003, "tmdbId": 604, "imdbId": "tt0234215"},
            {"title": "The Matrix Revolutions", "year": 2003, "tmdbId": 605},
        ]
        client = setup_async_client(MockAsyncClient, {"get": make_response(movies)})

        out = await RadarrClient("http://localhost:7878", "k").search("Matrix", limit=2)

        client.get.assert_called_once_with("/api/v3/movie/lookup", params={"term": "Matrix"})
        assert len(out) == 2
        assert out[0] == {"title": "The Matrix", "year": 1999, "tmdb_id": 603, "imdb_id": "tt0133093", "id": 12, "in_library": True}
        assert out[1]["in_library"] is False


@pytest.mark.asyncio
async def test_sonarr_lidarr_readarr_lookup_endpoints():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        client = setup_async_client(MockAsyncClient, {"get": make_response([{"title": "Dark", "tvdbId": 1}])})
        out = await SonarrClient("http://localhost:8989", "k").search("Dark")
        client.get.assert_called_with("/api/v3/series/lookup", params={"term": "Dark"})
        assert out[0]["tvdb_id"] == 1

        client.get.return_value = make_response([{"artistName": "Daft Punk", "foreignArtistId": "abc"}])
        out = await LidarrClient("http://localhost:8686", "k").search("Daft")
        client.get.assert_called_with("/api/v1/artist/lookup", params={"term": "Daft"})
        assert out[0]["title"] == "Daft Punk"

        client.get.return_value = make_response([{"authorName": "Ursula K. Le Guin", "foreignAuthorId": "x"}])
        out = await ReadarrClient("http://localhost:8787", "k").search("Le Guin")
        client.get.assert_called_with("/api/v1/author/lookup", params={"term": "Le Guin"})
        assert out[0]["title"] == "Ursula K. Le Guin"


@pytest.mark.asyncio
async def test_prowlarr_search_uses_query_param():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        releases = [{"title": "Dune.2021.1080p", "indexer": "X", "size": 10, "seeders": 4, "protocol": "torrent"}]
        client = setup_async_client(MockAsyncClient, {"get": make_response(releases)})

        out = await ProwlarrClient("http://localhost:9696", "k").search("Dune")

        client.get.assert_called_once_with("/api/v1/search", params={"query": "Dune", "type": "search"})
        assert out == [{"title": "Dune.2021.1080p", "indexer": "X", "size": 10, "seeders": 4, "protocol": "torrent"}]


@pytest.mark.asyncio
async def test_lookup_returning_object_is_unexpected():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        setup_async_client(MockAsyncClient, {"get": make_response({"message": "nope"})})
        with pytest.raises(UnexpectedResponse):
            await RadarrClient("http://localhost:7878", "k").search("x")


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_auth_failures_are_unauthorized(status):
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        setup_async_client(MockAsyncClient, {"get": make_error_response(status, "Unauthorized")})
        with pytest.raises(ServiceUnauthorized) as exc:
            await RadarrClient("http://localhost:7878", "bad").probe()
        assert exc.value.kind is ErrorKind.UNAUTHORIZED
        assert exc.value.service == "radarr"


@pytest.mark.asyncio
async def test_server_error_is_unexpected_response():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        setup_async_client(MockAsyncClient, {"get": make_error_response(500, "boom")})
        with pytest.raises(UnexpectedResponse) as exc:
            await SonarrClient("http://localhost:8989", "k").probe()
        assert "500" in exc.value.message


@pytest.mark.asyncio
async def test_transport_failures_are_classified():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        client = setup_async_client(MockAsyncClient, {})
        client.get.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(ServiceUnreachable):
            await RadarrClient("http://localhost:7878", "k").probe()

        client.get.side_effect = httpx.ReadTimeout("timed out")
        with pytest.raises(ServiceTimeout):
            await RadarrClient("http://localhost:7878", "k").probe()


@pytest.mark.asyncio
async def test_invalid_json_is_unexpected_response():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        resp = make_response(None)
        resp.json.side_effect = ValueError("Expecting value")
        setup_async_client(MockAsyncClient, {"get": resp})
        with pytest.raises(ServiceError) as exc:
            await RadarrClient("http://localhost:7878", "k").system_status()
        assert exc.value.kind is ErrorKind.UNEXPECTED_RESPONSE


@pytest.mark.asyncio
async def test_config_endpoints_for_comparison():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        client = setup_async_client(MockAsyncClient, {"get": make_response([{"id": 1, "name": "HD-1080p"}])})
        rc = RadarrClient("http://localhost:7878", "k")

        assert await rc.quality_profiles() == [{"id": 1, "name": "HD-1080p"}]
        client.get.assert_called_with("/api/v3/qualityprofile")

        client.get.return_value = make_response({"standardMovieFormat": "{Movie Title}"})
        assert (await rc.naming_config())["standardMovieFormat"] == "{Movie Title}"
        client.get.assert_called_with("/api/v3/config/naming")


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"message": "oops"}, ["HD-1080p"], None])
async def test_malformed_quality_profiles_are_unexpected(payload):
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        setup_async_client(MockAsyncClient, {"get": make_response(payload)})
        with pytest.raises(UnexpectedResponse) as exc:
            await SonarrClient("http://localhost:8989", "k").quality_profiles()
        assert exc.value.service == "sonarr"


@pytest.mark.asyncio
async def test_malformed_naming_config_is_unexpected():
    with patch('integrations.arr_client.httpx.AsyncClient') as MockAsyncClient:
        setup_async_client(MockAsyncClient, {"get": make_response([1, 2])})
        with pytest.raises(UnexpectedResponse):
            await RadarrClient("http://localhost:7878", "k").naming_config()
