import httpx


class AssistantError(Exception):
    pass


class ConfigurationMissing(AssistantError):
    def __init__(self):
        super().__init__(
            "API endpoint or API key is not set. "
            "Configure them first via AI Assistant > API settings."
        )


class HttpError(AssistantError):
    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        reason = httpx.codes.get_reason_phrase(status)
        super().__init__(f"API request failed: {status} {reason}".rstrip())


class MalformedResponse(AssistantError):
    def __init__(self, detail: str = "API returned an invalid response structure."):
        super().__init__(detail)


class ConnectionFailed(AssistantError):
    pass


class UserInputEmpty(AssistantError):
    pass


class OperationInProgress(AssistantError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"`{operation}` is still running. Wait for it to finish and try again."
        )
