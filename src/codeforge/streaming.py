"""Cancellable single-consumer streaming on top of adapter streams."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

from rich.console import Console

from .errors import RequestFailedError, StreamCancelledError, StreamConsumedError
from .llm.provider import GenerationOptions, ProviderAdapter, StreamChunk

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[StreamChunk], Union[None, Awaitable[None]]]


class CancellableStream:
    """Wraps an adapter stream so it can be drained once and cancelled.

    Cancellation, whether through ``cancel()``, a shared ``cancel_event``, task
    cancellation or leaving an ``async with`` block early, closes the source
    iterator so the underlying call is released. Chunks already delivered
    stay with the consumer.
    """

    def __init__(
        self,
        source: AsyncIterator[StreamChunk],
        *,
        provider_id: Optional[str] = None,
        chunk_timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self._source = source
        self.provider_id = provider_id
        self.chunk_timeout = chunk_timeout
        self._cancel_event = cancel_event
        self._cancelled = False
        self._consumed = False
        self._closed = False
        self.delivered: list[str] = []
        self.chunks_delivered = 0
        self.emulated = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancelled or (self._cancel_event is not None and self._cancel_event.is_set())

    @property
    def text(self) -> str:
        return "".join(self.delivered)

    def cancel(self) -> None:
        """Request cancellation; takes effect before the next chunk is pulled."""
        self._cancelled = True

    def __aiter__(self) -> AsyncIterator[StreamChunk]:
        if self._consumed:
            raise StreamConsumedError("Stream already consumed; streams are single-use")
        self._consumed = True
        return self._iterate()

    async def _next_chunk(self) -> StreamChunk:
        if self.chunk_timeout is None:
            return await anext(self._source)
        try:
            return await asyncio.wait_for(anext(self._source), timeout=self.chunk_timeout)
        except asyncio.TimeoutError as e:
            raise RequestFailedError(
                f"No stream data from {self.provider_id} within {self.chunk_timeout}s",
                provider_id=self.provider_id,
            ) from e

    async def _iterate(self) -> AsyncIterator[StreamChunk]:
        try:
            while True:
                if self.cancelled:
                    raise StreamCancelledError(self.text)
                try:
                    chunk = await self._next_chunk()
                except StopAsyncIteration:
                    break
                self.emulated = self.emulated or chunk.emulated
                if chunk.content:
                    self.delivered.append(chunk.content)
                self.chunks_delivered += 1
                yield chunk
                if chunk.done:
                    break
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Close the source iterator once."""
        if self._closed:
            return
        self._closed = True
        close = getattr(self._source, "aclose", None)
        if close is not None:
            await close()
        logger.debug("Closed stream for %s after %d chunk(s)", self.provider_id, self.chunks_delivered)

    async def __aenter__(self) -> "CancellableStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class StreamCoordinator:
    """Opens adapter streams and drains them into chunk callbacks."""

    def __init__(self, chunk_timeout: Optional[float] = None):
        self.chunk_timeout = chunk_timeout

    def open(
        self,
        adapter: ProviderAdapter,
        prompt: str,
        options: Optional[GenerationOptions] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CancellableStream:
        return CancellableStream(
            adapter.stream(prompt, options),
            provider_id=adapter.provider_id,
            chunk_timeout=self.chunk_timeout,
            cancel_event=cancel_event,
        )

    async def deliver(self, stream: CancellableStream, on_chunk: ChunkCallback) -> str:
        """Pass every chunk to ``on_chunk``; the last call always has ``done=True``.

        Returns:
            The concatenated text of the stream.

        Raises:
            StreamCancelledError: If the stream was cancelled mid-way
        """
        saw_done = False
        async with stream:
            async for chunk in stream:
                saw_done = chunk.done
                await _call(on_chunk, chunk)
        if not saw_done:
            await _call(on_chunk, StreamChunk(done=True, emulated=stream.emulated))
        return stream.text


async def _call(callback: ChunkCallback, chunk: StreamChunk) -> None:
    result = callback(chunk)
    if inspect.isawaitable(result):
        await result


class ConsolePrinter:
    """Chunk callback that echoes fragments to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def __call__(self, chunk: StreamChunk) -> None:
        if chunk.content:
            self.console.print(chunk.content, end="", markup=False, highlight=False)
        if chunk.done:
            suffix = " [dim](emulated stream)[/dim]" if chunk.emulated else ""
            self.console.print(f"\n[bold green]✓ Stream complete[/bold green]{suffix}")
