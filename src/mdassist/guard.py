from contextlib import contextmanager
from typing import Iterator

from loguru import logger

from mdassist.errors import OperationInProgress


class OperationGuard:
    """Tracks the one document-mutating operation allowed at a time."""

    def __init__(self):
        self._active: str | None = None

    @property
    def active(self) -> str | None:
        return self._active

    @property
    def busy(self) -> bool:
        return self._active is not None

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        if self._active is not None:
            logger.warning(
                "Rejected `{}` while `{}` is in progress", operation, self._active
            )
            raise OperationInProgress(self._active)
        self._active = operation
        try:
            yield
        finally:
            self._active = None
