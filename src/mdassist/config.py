from pydantic import BaseModel

from mdassist.prompts import DEFAULT_MODEL


class Config(BaseModel):
    endpoint: str = ""
    api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout: float | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.endpoint and self.api_key)


class ConfigStore:
    """In-memory endpoint/key store, reset whenever the process restarts."""

    def __init__(self, config: Config | None = None):
        self._config = config or Config()

    def get(self) -> Config:
        return self._config.model_copy()

    def set(self, endpoint: str, api_key: str) -> Config:
        self._config = self._config.model_copy(
            update={"endpoint": endpoint.strip(), "api_key": api_key.strip()}
        )
        return self.get()
