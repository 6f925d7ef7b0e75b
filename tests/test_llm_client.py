import asyncio
import json

import httpx
import pytest

from mdassist.config import Config
from mdassist.errors import (
    ConfigurationMissing,
    ConnectionFailed,
    HttpError,
    MalformedResponse,
)
from mdassist.llm_client import LLMClient
from mdassist.schemas import Message

ENDPOINT = "https://llm.test/v1/chat/completions"
HELLO = [Message(role="user", content="Hello")]


class RecordingTransport:
    """Answers every request with a fixed response and keeps the requests"""

    def __init__(self, response: httpx.Response | Exception):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def make_client(response: httpx.Response | Exception):
    transport = RecordingTransport(response)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    return LLMClient(http_client=http_client), transport


def completion_body(content: str | None) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}}
        ],
    }


@pytest.fixture
def config():
    return Config(endpoint=ENDPOINT, api_key="secret")


class TestPreconditions:
    """Incomplete configuration fails before any network I/O"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "endpoint, api_key", [("", "secret"), (ENDPOINT, ""), ("", "")]
    )
    async def test_missing_configuration(self, endpoint, api_key):
        client, transport = make_client(httpx.Response(200, json=completion_body("x")))

        with pytest.raises(ConfigurationMissing):
            await client.completion(Config(endpoint=endpoint, api_key=api_key), HELLO)

        assert transport.requests == []


class TestRequest:
    """Shape of the outgoing chat completion request"""

    @pytest.mark.asyncio
    async def test_posts_to_configured_endpoint(self, config):
        client, transport = make_client(httpx.Response(200, json=completion_body("Hi")))

        result = await client.completion(config, HELLO)

        assert result == "Hi"
        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == ENDPOINT
        assert request.headers["authorization"] == "Bearer secret"
        assert json.loads(request.content) == {
            "model": "gpt-3.5-turbo",
            "messages": [{"role": "user", "content": "Hello"}],
        }

    @pytest.mark.asyncio
    async def test_new_key_used_after_settings_change(self, config):
        client, transport = make_client(httpx.Response(200, json=completion_body("Hi")))

        await client.completion(config, HELLO)
        await client.completion(config.model_copy(update={"api_key": "other"}), HELLO)

        assert transport.requests[0].headers["authorization"] == "Bearer secret"
        assert transport.requests[1].headers["authorization"] == "Bearer other"

    @pytest.mark.asyncio
    async def test_null_content_is_empty_string(self, config):
        client, _ = make_client(httpx.Response(200, json=completion_body(None)))

        assert await client.completion(config, HELLO) == ""


class TestFailures:
    """HTTP, payload and transport failures map to assistant errors"""

    @pytest.mark.asyncio
    async def test_unauthorized(self, config):
        client, _ = make_client(
            httpx.Response(401, json={"error": {"message": "bad key"}})
        )

        with pytest.raises(HttpError) as exc_info:
            await client.completion(config, HELLO)

        assert exc_info.value.status == 401
        assert "401" in str(exc_info.value)
        assert "bad key" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self, config):
        client, transport = make_client(httpx.Response(500, text="upstream down"))

        with pytest.raises(HttpError) as exc_info:
            await client.completion(config, HELLO)

        assert exc_info.value.status == 500
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_empty_choices(self, config):
        client, _ = make_client(httpx.Response(200, json={"choices": []}))

        with pytest.raises(MalformedResponse):
            await client.completion(config, HELLO)

    @pytest.mark.asyncio
    async def test_missing_choices(self, config):
        client, _ = make_client(httpx.Response(200, json={"object": "error"}))

        with pytest.raises(MalformedResponse):
            await client.completion(config, HELLO)

    @pytest.mark.asyncio
    async def test_choice_without_message(self, config):
        client, _ = make_client(httpx.Response(200, json={"choices": [{"index": 0}]}))

        with pytest.raises(MalformedResponse):
            await client.completion(config, HELLO)

    @pytest.mark.asyncio
    async def test_body_not_json(self, config):
        client, _ = make_client(httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(MalformedResponse):
            await client.completion(config, HELLO)

    @pytest.mark.asyncio
    async def test_unreachable_endpoint(self, config):
        client, transport = make_client(httpx.ConnectError("connection refused"))

        with pytest.raises(ConnectionFailed) as exc_info:
            await client.completion(config, HELLO)

        assert ENDPOINT in str(exc_info.value)
        assert len(transport.requests) == 1


class TestTransportLifetime:
    """Settings changes reuse the transport; only aclose() shuts it"""

    @pytest.mark.asyncio
    async def test_new_credentials_leave_pending_request_running(self, config):
        started = asyncio.Event()
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.headers["authorization"] == "Bearer secret":
                started.set()
                await release.wait()
                return httpx.Response(200, json=completion_body("slow answer"))
            return httpx.Response(200, json=completion_body("fast answer"))

        client = LLMClient()
        client._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        pending = asyncio.create_task(client.completion(config, HELLO))
        await started.wait()
        fast = await client.completion(
            config.model_copy(update={"api_key": "other"}), HELLO
        )
        release.set()

        assert fast == "fast answer"
        assert await pending == "slow answer"

        await client.aclose()
        assert client._http_client.is_closed

    @pytest.mark.asyncio
    async def test_injected_transport_left_open(self, config):
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(
                RecordingTransport(httpx.Response(200, json=completion_body("Hi")))
            )
        )
        client = LLMClient(http_client=http_client)

        await client.completion(config, HELLO)
        await client.aclose()

        assert not http_client.is_closed
