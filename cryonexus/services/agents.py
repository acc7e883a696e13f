"""Router, specialist and synthesis agents."""

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

from cryonexus.config import Settings
from cryonexus.logger import get_logger
from cryonexus.models.domain import (
    CivilianImpactAnalysis,
    Domain,
    DomainResults,
    EconomyAnalysis,
    FoodSupplyAnalysis,
    GeopoliticsAnalysis,
    InfrastructureAnalysis,
)
from cryonexus.models.routing import RoutingDecision
from cryonexus.models.synthesis import SynthesisOutput
from cryonexus.services.llm import LLMClient
from cryonexus.services.prompts import (
    ROUTER_SYSTEM_PROMPT,
    STRUCTURED_OUTPUT_INSTRUCTION,
    SYNTHESIS_SYSTEM_PROMPT,
    build_router_prompt,
    build_specialist_prompt,
    build_synthesis_prompt,
    specialist_system_prompt,
)
from cryonexus.services.scoring import compute_compound_risk_score

logger = get_logger(__name__)

ChunkCallback = Callable[[str], None]
OutputT = TypeVar("OutputT", bound=BaseModel)


@dataclass(frozen=True)
class AgentResult(Generic[OutputT]):
    """Structured output of an agent plus the narrative it streamed."""

    structured: OutputT
    narrative: str


def _structured_prompt(prompt: str, narrative: str) -> str:
    return f"{prompt}\n\nYOUR WRITTEN ASSESSMENT:\n{narrative}\n\n{STRUCTURED_OUTPUT_INSTRUCTION}"


def _with_narrative(structured: OutputT, narrative: str) -> OutputT:
    if getattr(structured, "narrative", "") or not narrative:
        return structured
    return structured.model_copy(update={"narrative": narrative})


class RouterAgent:
    """Turns a free-text scenario into a RoutingDecision."""

    def __init__(self, llm: LLMClient, settings: Settings):
        self.llm = llm
        self.model = settings.router_model
        logger.info(f"RouterAgent initialized with model: {self.model}")

    async def run(self, scenario: str) -> RoutingDecision:
        logger.info(f"Routing scenario: {scenario[:100]}")
        routing = await self.llm.generate_object(
            model=self.model,
            system=ROUTER_SYSTEM_PROMPT,
            prompt=build_router_prompt(scenario),
            schema=RoutingDecision,
            tool_name="route_scenario",
            tool_description="Describe the scenario as a structured event for the specialists",
            temperature=0.2,
            max_tokens=1500,
        )
        logger.info(
            f"Routing complete: severity={routing.severity}, "
            f"categories={[c.value for c in routing.event_categories]}, "
            f"primary={routing.primary_regions}"
        )
        return routing


class SpecialistAgent(Generic[OutputT]):
    """Base class for the five domain specialists.

    A specialist first streams its narrative briefing token by token, then
    produces the structured analysis for its domain.
    """

    domain: Domain
    output_model: type[OutputT]

    def __init__(self, llm: LLMClient, settings: Settings):
        self.llm = llm
        self.model = settings.specialist_model
        self.system_prompt = specialist_system_prompt(self.domain)
        logger.info(f"{type(self).__name__} initialized with model: {self.model}")

    @property
    def tool_name(self) -> str:
        return f"report_{self.domain.value}_analysis"

    async def run(
        self,
        routing: RoutingDecision,
        news_context: str,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> AgentResult[OutputT]:
        prompt = build_specialist_prompt(routing, news_context)
        logger.info(f"[{self.domain.value}] streaming narrative")

        parts: list[str] = []
        async for text in self.llm.stream_text(
            model=self.model,
            system=self.system_prompt,
            prompt=prompt,
            temperature=0.4,
        ):
            parts.append(text)
            if on_chunk is not None:
                on_chunk(text)
        narrative = "".join(parts)
        logger.debug(f"[{self.domain.value}] narrative: {len(narrative)} chars")

        structured = await self.llm.generate_object(
            model=self.model,
            system=self.system_prompt,
            prompt=_structured_prompt(prompt, narrative),
            schema=self.output_model,
            tool_name=self.tool_name,
            tool_description=f"Report the structured {self.domain.value} analysis",
            temperature=0.3,
        )
        logger.info(
            f"[{self.domain.value}] complete: "
            f"{len(structured.affected_countries)} countries, severity={structured.severity()}"
        )
        return AgentResult(structured=_with_narrative(structured, narrative), narrative=narrative)


class GeopoliticsAgent(SpecialistAgent[GeopoliticsAnalysis]):
    domain = Domain.GEOPOLITICS
    output_model = GeopoliticsAnalysis


class EconomyAgent(SpecialistAgent[EconomyAnalysis]):
    domain = Domain.ECONOMY
    output_model = EconomyAnalysis


class FoodSupplyAgent(SpecialistAgent[FoodSupplyAnalysis]):
    domain = Domain.FOOD_SUPPLY
    output_model = FoodSupplyAnalysis


class InfrastructureAgent(SpecialistAgent[InfrastructureAnalysis]):
    domain = Domain.INFRASTRUCTURE
    output_model = InfrastructureAnalysis


class CivilianImpactAgent(SpecialistAgent[CivilianImpactAnalysis]):
    domain = Domain.CIVILIAN_IMPACT
    output_model = CivilianImpactAnalysis


def build_specialists(llm: LLMClient, settings: Settings) -> tuple[SpecialistAgent, ...]:
    """One specialist per domain, in Domain order."""
    return (
        GeopoliticsAgent(llm, settings),
        EconomyAgent(llm, settings),
        FoodSupplyAgent(llm, settings),
        InfrastructureAgent(llm, settings),
        CivilianImpactAgent(llm, settings),
    )


class SynthesisAgent:
    """Combines the specialist analyses into one cross-domain assessment."""

    def __init__(self, llm: LLMClient, settings: Settings):
        self.llm = llm
        self.model = settings.synthesis_model
        logger.info(f"SynthesisAgent initialized with model: {self.model}")

    async def run(
        self,
        results: DomainResults,
        routing: RoutingDecision,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> AgentResult[SynthesisOutput]:
        completed = [d.value for d in results.completed()]
        logger.info(f"Synthesizing {len(completed)} domain analyses: {completed}")
        prompt = build_synthesis_prompt(results, routing)

        parts: list[str] = []
        async for text in self.llm.stream_text(
            model=self.model,
            system=SYNTHESIS_SYSTEM_PROMPT,
            prompt=prompt,
            temperature=0.3,
        ):
            parts.append(text)
            if on_chunk is not None:
                on_chunk(text)
        narrative = "".join(parts)

        structured = await self.llm.generate_object(
            model=self.model,
            system=SYNTHESIS_SYSTEM_PROMPT,
            prompt=_structured_prompt(prompt, narrative),
            schema=SynthesisOutput,
            tool_name="report_synthesis",
            tool_description="Report the unified cross-domain assessment",
            temperature=0.3,
        )

        # The model's own score estimate is never surfaced
        score = compute_compound_risk_score(results.severities(), routing.event_categories)
        logger.info(
            f"Synthesis complete: model estimate={structured.compound_risk_score}, "
            f"computed score={score}"
        )
        structured = _with_narrative(structured, narrative).model_copy(
            update={"compound_risk_score": score}
        )
        return AgentResult(structured=structured, narrative=narrative)
