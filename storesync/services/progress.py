"""Progress reporting for the sync pipeline."""

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from storesync.constants.sync import ProgressEventType, SyncStage
from storesync.schemas.sync import ProgressEvent

__logger__ = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], Awaitable[None]]


class ProgressEmitter:
    """
    Publishes ordered progress events to a sink.

    Progress values never decrease (lower values are raised to the last one
    sent) and nothing is published after the terminal success/error event.
    """

    def __init__(self, sink: ProgressSink):
        self._sink = sink
        self.last_progress = 0
        self.terminal_event: Optional[ProgressEvent] = None

    @property
    def finished(self) -> bool:
        return self.terminal_event is not None

    async def emit(self, event: ProgressEvent) -> bool:
        if self.finished:
            __logger__.warning(f"Dropping {event.type} event after terminal event: {event.message}")
            return False
        if event.progress < self.last_progress:
            event.progress = self.last_progress
        self.last_progress = event.progress
        if event.is_terminal:
            self.terminal_event = event
        await self._sink(event)
        return True

    async def progress(self, stage: str, message: str, progress: int, **data) -> bool:
        return await self.emit(ProgressEvent(
            type=ProgressEventType.PROGRESS, stage=stage, message=message, progress=progress, **data
        ))

    async def succeed(self, message: str, **data) -> bool:
        return await self.emit(ProgressEvent(
            type=ProgressEventType.SUCCESS, stage=SyncStage.DONE, message=message, progress=100, **data
        ))

    async def fail(self, message: str, stage: Optional[str] = None, **data) -> bool:
        return await self.emit(ProgressEvent(
            type=ProgressEventType.ERROR,
            stage=stage or SyncStage.ERROR,
            message=message,
            progress=self.last_progress,
            **data
        ))


class SyncEventChannel:
    """
    Bounded queue between the pipeline (producer) and the stream (consumer).

    With the default size of 1 the producer waits until the previous event
    was taken before moving on.
    """

    _CLOSED = object()

    def __init__(self, maxsize: int = 1):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, event: ProgressEvent) -> None:
        if self._closed:
            raise RuntimeError("Cannot publish to a closed sync channel")
        await self._queue.put(event)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(self._CLOSED)

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is self._CLOSED:
                return
            yield item


class ProgressRecorder:
    """Sink that keeps every event, used by the non-streamed endpoints."""

    def __init__(self):
        self.events: List[ProgressEvent] = []

    async def __call__(self, event: ProgressEvent) -> None:
        __logger__.info(f"[{event.stage}] {event.progress}% {event.message}")
        self.events.append(event)


def encode_sse(event: ProgressEvent) -> str:
    """Server-sent events frame for one progress event."""
    return f"data: {json.dumps(event.to_wire(), ensure_ascii=False)}\n\n"
