"""Conversion log shared by the resolver and the batch converter."""

import logging
from collections import deque
from typing import Deque, List, Optional

from .models import DEFAULT_MAX_LOG_CHARS, ResolutionEvent


_LOGGER = logging.getLogger(__name__)


class ConversionLog:
    """Append-only text log bounded to a character budget.

    Every line is also forwarded to the logging module, so a headless run sees
    the same output on its configured handlers.

    Attributes:
        max_chars: Size ceiling; the oldest text is trimmed past it.
        events: The most recent events written through emit, oldest first.
            At most max_chars events are kept.
    """

    def __init__(
        self,
        max_chars: int = DEFAULT_MAX_LOG_CHARS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.max_chars = max_chars
        self.events: Deque[ResolutionEvent] = deque(maxlen=max_chars)
        self._logger = logger or _LOGGER
        self._text = ""

    @property
    def text(self) -> str:
        return self._text

    @property
    def lines(self) -> List[str]:
        return self._text.splitlines()

    def write(self, message: str, level: int = logging.INFO) -> None:
        self._logger.log(level, message.lstrip("\n -").rstrip())
        self._text += f"{_with_level_label(message, level)}\n"
        if len(self._text) > self.max_chars:
            self._text = self._text[-self.max_chars :]

    def emit(self, event: ResolutionEvent) -> ResolutionEvent:
        self.events.append(event)
        self.write(event.message, event.level)
        return event

    def clear(self) -> None:
        self._text = ""
        self.events.clear()


def _with_level_label(message: str, level: int) -> str:
    # "  - WARNING: ..." with the label after any leading indentation.
    if level < logging.WARNING:
        return message
    label = "ERROR" if level >= logging.ERROR else "WARNING"
    body = message.lstrip("\n -")
    indent = message[: len(message) - len(body)]
    return f"{indent}{label}: {body}"
