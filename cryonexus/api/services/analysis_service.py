"""Orchestrate the multi-agent analysis pipeline for the API."""

import asyncio
import time
from typing import AsyncGenerator, Optional, Sequence

from cryonexus.config import Settings
from cryonexus.logger import get_logger
from cryonexus.models.domain import SYNTHESIS_AGENT, DomainResults
from cryonexus.models.events import PipelineEvent, PipelineStage, PipelineStatus
from cryonexus.models.routing import RoutingDecision, validate_scenario
from cryonexus.services.agents import (
    AgentResult,
    RouterAgent,
    SpecialistAgent,
    SynthesisAgent,
    build_specialists,
)
from cryonexus.services.llm import LLMClient
from cryonexus.services.news_context import NewsContextGateway

logger = get_logger(__name__)

_DONE = object()


class PipelineError(Exception):
    """A pipeline-fatal failure (router or synthesis)."""


class AnalysisService:
    """Route a scenario, run the specialists in parallel, then synthesize."""

    def __init__(
        self,
        settings: Settings,
        llm: Optional[LLMClient] = None,
        news: Optional[NewsContextGateway] = None,
        router: Optional[RouterAgent] = None,
        specialists: Optional[Sequence[SpecialistAgent]] = None,
        synthesis: Optional[SynthesisAgent] = None,
    ):
        self.settings = settings
        if llm is None and (router is None or specialists is None or synthesis is None):
            llm = LLMClient(settings)
        self.llm = llm
        self.news = news or NewsContextGateway(settings)
        self.router = router or RouterAgent(llm, settings)
        self.specialists = (
            tuple(specialists) if specialists is not None else build_specialists(llm, settings)
        )
        self.synthesis = synthesis or SynthesisAgent(llm, settings)
        logger.info(
            f"AnalysisService initialized with {len(self.specialists)} specialists, "
            f"agent timeout {settings.agent_timeout_seconds}s"
        )

    async def _drain(
        self, future: asyncio.Future, queue: asyncio.Queue
    ) -> AsyncGenerator[PipelineEvent, None]:
        """Yield queued events until `future` settles and the queue is empty."""
        future.add_done_callback(lambda _: queue.put_nowait(_DONE))
        while True:
            item = await queue.get()
            if item is _DONE:
                break
            yield item

    async def _route(self, scenario: str) -> RoutingDecision:
        timeout = self.settings.router_timeout_seconds
        try:
            return await asyncio.wait_for(self.router.run(scenario), timeout=timeout)
        except asyncio.TimeoutError:
            raise PipelineError(f"Router timed out after {timeout:g}s") from None

    async def _run_specialist(
        self,
        agent: SpecialistAgent,
        routing: RoutingDecision,
        news_context: str,
        queue: asyncio.Queue,
    ) -> Optional[AgentResult]:
        """Run one specialist, reporting its outcome on the queue. Never raises."""
        name = agent.domain.value
        timeout = self.settings.agent_timeout_seconds

        def on_chunk(chunk: str) -> None:
            queue.put_nowait(PipelineEvent.agent_chunk(name, chunk))

        start_time = time.time()
        try:
            result = await asyncio.wait_for(
                agent.run(routing, news_context, on_chunk), timeout=timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"[{name}] timed out after {timeout:g}s")
            queue.put_nowait(PipelineEvent.error(f"Agent timed out after {timeout:g}s", agent=name))
            return None
        except Exception as e:
            logger.error(f"[{name}] failed: {e}", exc_info=True)
            queue.put_nowait(PipelineEvent.error(str(e) or "Agent failed", agent=name))
            return None

        logger.info(f"[{name}] finished in {time.time() - start_time:.2f}s")
        queue.put_nowait(PipelineEvent.agent_complete(name, result.structured, result.narrative))
        return result

    async def _synthesize(
        self, results: DomainResults, routing: RoutingDecision, queue: asyncio.Queue
    ) -> AgentResult:
        timeout = self.settings.synthesis_timeout_seconds

        def on_chunk(chunk: str) -> None:
            queue.put_nowait(PipelineEvent.synthesis_chunk(chunk))

        try:
            return await asyncio.wait_for(
                self.synthesis.run(results, routing, on_chunk), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise PipelineError(f"Synthesis timed out after {timeout:g}s") from None

    async def generate_analysis_stream(
        self, scenario: str
    ) -> AsyncGenerator[PipelineEvent, None]:
        """Run the whole pipeline, yielding events in stream order.

        The stream always ends with exactly one terminal event: `complete`,
        or an `error` without an `agent` field.

        Raises:
            ValueError: If the scenario is empty or longer than 500 characters.
                Raised before any event is produced.
        """
        validate_scenario(scenario)

        start_time = time.time()
        stage = PipelineStage.ROUTING
        running: list[asyncio.Future] = []
        logger.info(f"Starting analysis for scenario: '{scenario[:50]}...'")

        try:
            # Step 1: Route
            yield PipelineEvent.status(PipelineStatus.ORCHESTRATING, "Analyzing scenario...")
            routing = await self._route(scenario)
            yield PipelineEvent.orchestrator(routing)

            # Step 2: News context
            stage = PipelineStage.SPECIALISTS_RUNNING
            yield PipelineEvent.status(PipelineStatus.ANALYZING, "Running specialist agents...")
            queries = {
                agent.domain: routing.context_queries.for_domain(agent.domain)
                for agent in self.specialists
            }
            contexts = await self.news.fetch_all(queries)

            # Step 3: Specialists in parallel
            queue: asyncio.Queue = asyncio.Queue()
            tasks = [
                asyncio.ensure_future(
                    self._run_specialist(agent, routing, contexts[agent.domain], queue)
                )
                for agent in self.specialists
            ]
            specialists_done = asyncio.gather(*tasks)
            running.extend(tasks)
            async for event in self._drain(specialists_done, queue):
                yield event

            results = DomainResults()
            for agent, outcome in zip(self.specialists, specialists_done.result()):
                if outcome is not None:
                    results = results.with_result(agent.domain, outcome.structured)
            logger.info(
                f"Specialists settled: {len(results.completed())}/{len(self.specialists)} succeeded"
            )

            # Step 4: Synthesis
            stage = PipelineStage.SYNTHESIZING
            yield PipelineEvent.status(PipelineStatus.SYNTHESIZING, "Generating synthesis...")
            queue = asyncio.Queue()
            synthesis_task = asyncio.ensure_future(self._synthesize(results, routing, queue))
            running.append(synthesis_task)
            async for event in self._drain(synthesis_task, queue):
                yield event
            synthesis = synthesis_task.result()

            yield PipelineEvent.agent_complete(
                SYNTHESIS_AGENT, synthesis.structured, synthesis.narrative
            )

            # Step 5: Complete
            stage = PipelineStage.COMPLETE
            score = synthesis.structured.compound_risk_score
            logger.info(
                f"Analysis complete in {time.time() - start_time:.2f}s, compound score {score}"
            )
            yield PipelineEvent.complete(score)

        except Exception as e:
            logger.error(f"Pipeline failed during {stage.value}: {e}", exc_info=True)
            yield PipelineEvent.error(str(e) or type(e).__name__)

        finally:
            for future in running:
                if not future.done():
                    future.cancel()

    async def close(self):
        """Clean up resources."""
        try:
            await self.news.aclose()
            if self.llm is not None:
                await self.llm.aclose()
            logger.info("AnalysisService resources closed")
        except Exception as e:
            logger.warning(f"Error closing AnalysisService resources: {e}")
