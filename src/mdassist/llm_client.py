import httpx
from loguru import logger
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from mdassist.config import Config
from mdassist.errors import (
    ConfigurationMissing,
    ConnectionFailed,
    HttpError,
    MalformedResponse,
)
from mdassist.schemas import Message


class LLMClient:
    def __init__(self, http_client: httpx.AsyncClient | None = None):
        # Shared by every AsyncOpenAI built in _client_for, closed only by aclose().
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient()
        self._openai: AsyncOpenAI | None = None
        self._credentials: tuple[str, str, float | None] | None = None

    async def completion(self, config: Config, messages: list[Message]) -> str:
        if not config.is_complete:
            raise ConfigurationMissing()

        client = self._client_for(config)
        body = {
            "model": config.model,
            "messages": [m.model_dump() for m in messages],
        }
        logger.debug(
            "POST {} ({} message(s), model {})",
            config.endpoint,
            len(messages),
            config.model,
        )
        try:
            response = await client.post(
                config.endpoint, cast_to=httpx.Response, body=body
            )
        except APIStatusError as e:
            logger.error("API error response ({}): {}", e.status_code, e.response.text)
            raise HttpError(e.status_code, e.response.text) from e
        except APIConnectionError as e:
            raise ConnectionFailed(f"Could not reach {config.endpoint}: {e}") from e
        return self._extract_content(response)

    async def aclose(self):
        if self._owns_http_client:
            await self._http_client.aclose()
        self._openai = None
        self._credentials = None

    def _client_for(self, config: Config) -> AsyncOpenAI:
        credentials = (config.endpoint, config.api_key, config.timeout)
        if self._openai is None or credentials != self._credentials:
            kwargs = {}
            if config.timeout is not None:
                kwargs["timeout"] = config.timeout
            self._openai = AsyncOpenAI(
                base_url=config.endpoint,
                api_key=config.api_key,
                max_retries=0,
                http_client=self._http_client,
                **kwargs,
            )
            self._credentials = credentials
        return self._openai

    @staticmethod
    def _extract_content(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse("API returned a response that is not JSON.") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise MalformedResponse()
        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError) as e:
            raise MalformedResponse("API response has no message content.") from e
        return content or ""
