"""Unit tests for HTTP client wrapper."""

import httpx
import pytest

from src.fetcher.http_client import USER_AGENT, AsyncHTTPClient


class TestAsyncHTTPClient:

    @pytest.mark.asyncio
    async def test_initialization_with_defaults(self):
        async with AsyncHTTPClient() as client:
            assert client.connect_timeout == 3.0
            assert client.read_timeout == 8.0

    @pytest.mark.asyncio
    async def test_context_manager_lifecycle(self):
        client = AsyncHTTPClient()

        async with client:
            assert client._client is not None

        assert client._client is None

    @pytest.mark.asyncio
    async def test_get_before_enter_raises(self):
        with pytest.raises(RuntimeError):
            await AsyncHTTPClient().get("http://store.test/api")

    @pytest.mark.asyncio
    async def test_get_with_params_and_headers(self):
        def handler(request):
            assert request.url.params["page"] == "1"
            assert request.headers["X-User-ID"] == "u1"
            return httpx.Response(200, json={"page": 1})

        async with AsyncHTTPClient(transport=httpx.MockTransport(handler)) as client:
            response = await client.get("http://store.test/api", params={"page": 1}, headers={"X-User-ID": "u1"})

        assert response.status_code == 200
        assert response.json() == {"page": 1}

    @pytest.mark.asyncio
    async def test_timeout_configuration_applied(self):
        async with AsyncHTTPClient(connect_timeout=5.0, read_timeout=10.0) as client:
            timeout = client._client.timeout
            assert timeout.connect == 5.0
            assert timeout.read == 10.0

    @pytest.mark.asyncio
    async def test_sends_json_accept_and_user_agent(self):
        def handler(request):
            assert request.headers["Accept"] == "application/json"
            assert request.headers["User-Agent"] == USER_AGENT
            return httpx.Response(204)

        async with AsyncHTTPClient(transport=httpx.MockTransport(handler)) as client:
            response = await client.get("http://store.test/api")

        assert response.status_code == 204

    def test_from_config_uses_store_timeouts(self, sample_config):
        client = AsyncHTTPClient.from_config(sample_config)

        assert client.timeout.connect == sample_config.connect_timeout
        assert client.timeout.read == sample_config.read_timeout
