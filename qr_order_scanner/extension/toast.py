import logging
from typing import List, Protocol

logger = logging.getLogger(__name__)


class Toast(Protocol):
    def show(self, message: str) -> None:
        ...


class RecordingToast:
    """keeps every message; used headless and in tests."""

    def __init__(self):
        self.messages: List[str] = []

    def show(self, message: str) -> None:
        logger.info(f"toast: {message}")
        self.messages.append(message)

    @property
    def last(self) -> str:
        return self.messages[-1] if self.messages else ""
