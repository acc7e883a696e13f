"""Async client that submits a scenario and follows its event stream."""

import asyncio
from typing import Optional

import httpx

from cryonexus.client.state import AnalysisState, AnalysisStateMachine, Listener, RunStatus
from cryonexus.logger import get_logger
from cryonexus.services.sse_codec import SSEDecoder

logger = get_logger(__name__)

ANALYZE_PATH = "/api/analyze"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Server responded with HTTP {response.status_code}"


class AnalysisClient:
    """Owns one AnalysisStateMachine and at most one in-flight analysis.

    Starting a new analysis, or calling `reset()`, aborts the previous one:
    its stream read is cancelled and nothing it receives afterwards reaches
    the state.
    """

    def __init__(
        self,
        base_url: str,
        flush_interval: float = 0.08,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.flush_interval = flush_interval
        self.machine = AnalysisStateMachine(coalesce=flush_interval > 0)
        self._owns_http = http_client is None
        self.http = http_client or httpx.AsyncClient(
            base_url=self.base_url, timeout=httpx.Timeout(10.0, read=None)
        )
        self._stream_task: Optional[asyncio.Task] = None
        self._flush_task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def state(self) -> AnalysisState:
        return self.machine.state

    @property
    def in_flight(self) -> bool:
        return self._stream_task is not None and not self._stream_task.done()

    def subscribe(self, listener: Listener):
        return self.machine.subscribe(listener)

    def _cancel_tasks(self) -> None:
        for task in (self._stream_task, self._flush_task):
            if task is not None and not task.done():
                task.cancel()
        self._stream_task = None
        self._flush_task = None

    def reset(self) -> None:
        """Abort any in-flight analysis and restore the initial state."""
        self._generation += 1
        self._cancel_tasks()
        self.machine.reset()

    async def analyze(self, scenario: str) -> AnalysisState:
        """Run one analysis to completion and return the final state.

        Raises:
            asyncio.CancelledError: If `reset()` or a newer `analyze()` call
                aborts this run before it finishes.
        """
        self.reset()
        generation = self._generation
        logger.info(f"Submitting scenario: '{scenario[:50]}...'")

        self.machine.begin(scenario)
        stream_task = asyncio.create_task(self._consume(scenario, generation))
        self._stream_task = stream_task
        if self.flush_interval > 0:
            self._flush_task = asyncio.create_task(self._flush_loop())

        try:
            await asyncio.wait({stream_task})
        except asyncio.CancelledError:
            if generation == self._generation:
                self.reset()
            raise

        if generation != self._generation:
            # The state now belongs to whichever run replaced this one
            raise asyncio.CancelledError(f"Analysis of '{scenario[:50]}' was superseded")

        self._cancel_tasks()
        self.machine.flush()
        if not stream_task.cancelled() and stream_task.exception() is not None:
            raise stream_task.exception()
        return self.state

    async def _flush_loop(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            self.machine.flush()

    async def _consume(self, scenario: str, generation: int) -> None:
        decoder = SSEDecoder()

        def apply_all(events) -> None:
            for event in events:
                if generation != self._generation:
                    return
                self.machine.apply(event)

        try:
            async with self.http.stream(
                "POST",
                ANALYZE_PATH,
                json={"scenario": scenario},
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    message = _error_message(response)
                    logger.warning(f"Analysis rejected ({response.status_code}): {message}")
                    self.machine.fail(message)
                    return

                async for text in response.aiter_text():
                    apply_all(decoder.feed(text))
                apply_all(decoder.close())

        except httpx.HTTPError as e:
            logger.error(f"Analysis stream failed: {e}")
            self.machine.fail(f"Connection failed: {e}")
            return

        if generation == self._generation and self.state.status == RunStatus.ANALYZING:
            logger.warning("Stream closed without a terminal event")
            self.machine.fail("Stream ended before the analysis finished")

    async def aclose(self) -> None:
        self.reset()
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "AnalysisClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
