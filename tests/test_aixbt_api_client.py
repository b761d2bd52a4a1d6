import httpx
import pytest

from aixbt_mcp.aixbt_api import (
    API_KEY_HEADER,
    AixbtApiClient,
    AixbtApiError,
    UpstreamUnreachableError,
)


class MockResponse:
    def __init__(self, status_code: int, json_body=None, *, invalid_json: bool = False):
        self.status_code = status_code
        self._json = json_body
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("not json")
        return self._json


class MockAsyncClient:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    async def get(self, url, params=None, headers=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        if not self.responses:
            raise RuntimeError("No mock responses")
        return self.responses.pop(0)

    async def aclose(self):
        return None


class FailingAsyncClient:
    def __init__(self, exc: Exception):
        self.exc = exc

    async def get(self, *_args, **_kwargs):
        raise self.exc

    async def aclose(self):
        return None


@pytest.mark.asyncio
async def test_fetch_projects_sends_key_and_limit(production_config):
    mock = MockAsyncClient([MockResponse(200, {"status": 200, "data": []})])
    client = AixbtApiClient(production_config, async_client=mock)

    envelope = await client.fetch_projects(limit=5)

    assert envelope == {"status": 200, "data": []}
    call = mock.calls[0]
    assert call["url"] == "https://api.aixbt.tech/v1/projects"
    assert call["params"] == {"limit": 5}
    assert call["headers"] == {API_KEY_HEADER: "test-key"}


@pytest.mark.asyncio
async def test_fetch_projects_with_ticker_uses_staging_host(staging_config):
    mock = MockAsyncClient([MockResponse(200, {"status": 200, "data": []})])
    client = AixbtApiClient(staging_config, async_client=mock)

    await client.fetch_projects(limit=1, ticker="eth")

    assert mock.calls[0]["url"] == "https://core-api.aixbt.tech/v1/projects"
    assert mock.calls[0]["params"] == {"limit": 1, "ticker": "eth"}


@pytest.mark.asyncio
async def test_key_header_sent_on_every_request(production_config):
    mock = MockAsyncClient([MockResponse(200, {}), MockResponse(200, {})])
    client = AixbtApiClient(production_config, async_client=mock)

    await client.fetch_projects(limit=1)
    await client.fetch_projects(limit=2)

    assert all(call["headers"][API_KEY_HEADER] == "test-key" for call in mock.calls)


@pytest.mark.asyncio
async def test_http_error_status_raises(production_config):
    mock = MockAsyncClient([MockResponse(500, {"message": "boom"})])
    client = AixbtApiClient(production_config, async_client=mock)

    with pytest.raises(AixbtApiError) as exc_info:
        await client.fetch_projects(limit=1)

    assert exc_info.value.status_code == 500
    assert str(exc_info.value) == "Request failed with status code 500"


@pytest.mark.asyncio
async def test_non_json_body_returns_none(production_config):
    mock = MockAsyncClient([MockResponse(200, invalid_json=True)])
    client = AixbtApiClient(production_config, async_client=mock)

    assert await client.fetch_projects(limit=1) is None


@pytest.mark.asyncio
async def test_transport_error_keeps_message(production_config):
    client = AixbtApiClient(
        production_config,
        async_client=FailingAsyncClient(httpx.ConnectError("connection refused")),
    )

    with pytest.raises(UpstreamUnreachableError, match="connection refused"):
        await client.fetch_projects(limit=1)


@pytest.mark.asyncio
async def test_response_trace_is_truncated(production_config, caplog):
    body = {"status": 200, "data": [{"name": "x" * 400}]}
    mock = MockAsyncClient([MockResponse(200, body)])
    client = AixbtApiClient(production_config, async_client=mock)

    with caplog.at_level("INFO", logger="aixbt_mcp.aixbt_api.client"):
        await client.fetch_projects(limit=1)

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("[REQUEST] GET https://api.aixbt.tech/v1/projects") for message in messages)
    response_line = next(message for message in messages if message.startswith("[RESPONSE]"))
    prefix = "[RESPONSE] 200 https://api.aixbt.tech/v1/projects data: "
    assert len(response_line) == len(prefix) + 200 + len("...")
    assert "test-key" not in " ".join(messages)


@pytest.mark.asyncio
async def test_aclose_closes_owned_client(production_config):
    client = AixbtApiClient(production_config)
    await client._get_client()
    await client.aclose()
    assert client._client is None


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client(production_config):
    mock = MockAsyncClient([])
    client = AixbtApiClient(production_config, async_client=mock)
    await client.aclose()
    assert client._client is mock
