"""
Progress events and their server-sent-event wire format
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

PROGRESS = "progress"
ASYNC_PROMPT = "asyncPrompt"
RESULT = "result"
CANCELLED = "cancelled"
ERROR = "error"

TERMINAL_EVENTS = {RESULT, CANCELLED, ERROR}

Writer = Callable[[bytes], Awaitable[Any]]


def format_event(name: str, data: Dict[str, Any]) -> str:
    """`event: <name>\\ndata: <json>\\n\\n`"""
    return f"event: {name}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


class ProgressEmitter:
    """
    Ordered event stream for one request.

    Writes are serialized, percent never goes backwards, asyncPrompt is
    sent at most once, and nothing is written after a terminal event.
    """

    def __init__(self, writer: Writer, on_disconnect: Optional[Callable[[], None]] = None):
        self._writer = writer
        self._on_disconnect = on_disconnect
        self._lock = asyncio.Lock()
        self.closed = False
        self.disconnected = False
        self.terminal_event: Optional[str] = None
        self.last_percent = 0
        self.async_prompt_sent = False

    async def emit(self, name: str, data: Dict[str, Any]) -> bool:
        """Write one event. False if the stream is already closed."""
        async with self._lock:
            if self.closed:
                logger.debug(f"Dropping '{name}' event, stream closed")
                return False
            if name in TERMINAL_EVENTS:
                self.closed = True
                self.terminal_event = name

            try:
                await self._writer(format_event(name, data).encode('utf-8'))
            except ConnectionError as e:
                logger.info(f"Client disconnected while sending '{name}': {e}")
                self.closed = True
                self.disconnected = True
                if self._on_disconnect is not None:
                    self._on_disconnect()
                return False
            return True

    async def progress(self, percent: int, message: str) -> bool:
        percent = max(int(percent), self.last_percent)
        self.last_percent = percent
        return await self.emit(PROGRESS, {'percent': percent, 'message': message})

    async def async_prompt(self, message: str) -> bool:
        if self.async_prompt_sent:
            return False
        self.async_prompt_sent = True
        return await self.emit(ASYNC_PROMPT, {'message': message})

    async def result(self, payload: Dict[str, Any]) -> bool:
        return await self.emit(RESULT, payload)

    async def cancelled(self, message: str = "Analysis cancelled by user") -> bool:
        return await self.emit(CANCELLED, {'message': message})

    async def error(self, message: str, details: Optional[Any] = None) -> bool:
        data: Dict[str, Any] = {'message': message}
        if details is not None:
            data['details'] = details
        return await self.emit(ERROR, data)
