"""Client-side analysis state and the event fold that maintains it."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from cryonexus.client.coalescer import SYNTHESIS_KEY, ChunkCoalescer
from cryonexus.logger import get_logger
from cryonexus.models.domain import SYNTHESIS_AGENT, Domain, DomainAnalysis
from cryonexus.models.events import EventName, PipelineEvent
from cryonexus.models.routing import RoutingDecision
from cryonexus.models.synthesis import SynthesisOutput

logger = get_logger(__name__)


class RunStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


class AgentStatus(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETE = "complete"
    ERROR = "error"


class PipelinePhase(str, Enum):
    IDLE = "idle"
    ORCHESTRATING = "orchestrating"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class AnalysisError:
    message: str
    agent: Optional[str] = None


def _empty_texts() -> dict[Domain, str]:
    return {domain: "" for domain in Domain}


def _idle_statuses() -> dict[Domain, AgentStatus]:
    return {domain: AgentStatus.IDLE for domain in Domain}


@dataclass
class AnalysisState:
    """Everything a presentation layer needs to render one analysis run."""

    status: RunStatus = RunStatus.IDLE
    scenario: str = ""
    routing: Optional[RoutingDecision] = None
    agent_texts: dict[Domain, str] = field(default_factory=_empty_texts)
    agent_statuses: dict[Domain, AgentStatus] = field(default_factory=_idle_statuses)
    agent_results: dict[Domain, DomainAnalysis] = field(default_factory=dict)
    synthesis_text: str = ""
    synthesis_output: Optional[SynthesisOutput] = None
    synthesis_status: AgentStatus = AgentStatus.IDLE
    compound_risk_score: Optional[int] = None
    errors: list[AnalysisError] = field(default_factory=list)
    pipeline_status: PipelinePhase = PipelinePhase.IDLE
    pipeline_message: str = ""
    failure_reason: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status in (RunStatus.COMPLETE, RunStatus.ERROR)


Listener = Callable[[AnalysisState], None]


def _parse_domain(agent: object) -> Optional[Domain]:
    try:
        return Domain(agent)
    except ValueError:
        return None


class AnalysisStateMachine:
    """Folds decoded pipeline events into an AnalysisState.

    With `coalesce` enabled, chunk text is buffered in a ChunkCoalescer and
    only lands in the state when `flush()` runs; any non-chunk event flushes
    first so ordering between text and completion is preserved.
    """

    def __init__(self, coalesce: bool = True):
        self.coalesce = coalesce
        self.state = AnalysisState()
        self._coalescer = ChunkCoalescer()
        self._listeners: list[Listener] = []
        self._dirty = False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        self._dirty = False
        for listener in list(self._listeners):
            listener(self.state)

    def reset(self) -> None:
        """Drop buffered text and restore the initial state."""
        self._coalescer.clear()
        self._dirty = False
        self.state = AnalysisState()
        self._notify()

    def begin(self, scenario: str) -> None:
        self._coalescer.clear()
        self.state = AnalysisState(
            status=RunStatus.ANALYZING,
            scenario=scenario,
            pipeline_status=PipelinePhase.ORCHESTRATING,
            pipeline_message="Analyzing scenario...",
        )
        self._notify()

    def fail(self, message: str) -> None:
        """Record a pipeline-level failure raised on the client side."""
        self.apply(PipelineEvent.error(message))

    def flush(self) -> bool:
        """Move buffered chunk text into the state. Returns True if anything changed."""
        drained = self._coalescer.drain()
        for target, text in drained.items():
            if target == SYNTHESIS_KEY:
                self.state.synthesis_text += text
            else:
                domain = Domain(target)
                self.state.agent_texts[domain] += text

        changed = bool(drained) or self._dirty
        if changed:
            self._notify()
        return changed

    def apply(self, event: PipelineEvent) -> None:
        name = event.event
        data = event.data

        if name == EventName.AGENT_CHUNK:
            self._on_agent_chunk(data)
            return
        if name == EventName.SYNTHESIS_CHUNK:
            self._on_synthesis_chunk(data)
            return

        self.flush()

        if name == EventName.STATUS:
            self._on_status(data)
        elif name == EventName.ORCHESTRATOR:
            self._on_orchestrator(data)
        elif name == EventName.AGENT_COMPLETE:
            self._on_agent_complete(data)
        elif name == EventName.COMPLETE:
            self._on_complete(data)
        elif name == EventName.ERROR:
            self._on_error(data)

        self._notify()

    def _add_text(self, target: str, chunk: str) -> None:
        if self.coalesce:
            self._coalescer.append(target, chunk)
            self._dirty = True
            return
        if target == SYNTHESIS_KEY:
            self.state.synthesis_text += chunk
        else:
            self.state.agent_texts[Domain(target)] += chunk
        self._notify()

    def _on_agent_chunk(self, data: dict) -> None:
        domain = _parse_domain(data.get("agent"))
        if domain is None:
            logger.warning(f"Ignoring chunk for unknown agent: {data.get('agent')!r}")
            return
        if self.state.agent_statuses[domain] == AgentStatus.IDLE:
            self.state.agent_statuses[domain] = AgentStatus.STREAMING
        self._add_text(domain.value, str(data.get("chunk", "")))

    def _on_synthesis_chunk(self, data: dict) -> None:
        if self.state.synthesis_status != AgentStatus.STREAMING:
            self.state.synthesis_status = AgentStatus.STREAMING
        self._add_text(SYNTHESIS_KEY, str(data.get("chunk", "")))

    def _on_status(self, data: dict) -> None:
        try:
            self.state.pipeline_status = PipelinePhase(data.get("status"))
        except ValueError:
            logger.warning(f"Ignoring unknown pipeline status: {data.get('status')!r}")
            return
        self.state.pipeline_message = str(data.get("message", ""))

    def _on_orchestrator(self, data: dict) -> None:
        try:
            self.state.routing = RoutingDecision.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Dropping invalid routing decision: {e}")
            return
        self.state.pipeline_status = PipelinePhase.ANALYZING

    def _on_agent_complete(self, data: dict) -> None:
        agent = data.get("agent")
        structured = data.get("structured")

        if agent == SYNTHESIS_AGENT:
            try:
                self.state.synthesis_output = SynthesisOutput.model_validate(structured)
            except ValidationError as e:
                logger.warning(f"Dropping invalid synthesis output: {e}")
                return
            self.state.synthesis_status = AgentStatus.COMPLETE
            return

        domain = _parse_domain(agent)
        if domain is None:
            logger.warning(f"Ignoring completion for unknown agent: {agent!r}")
            return
        try:
            analysis = domain.analysis_model.model_validate(structured)
        except ValidationError as e:
            logger.warning(f"Dropping invalid {domain.value} analysis: {e}")
            return
        self.state.agent_results[domain] = analysis
        self.state.agent_statuses[domain] = AgentStatus.COMPLETE

    def _on_complete(self, data: dict) -> None:
        self.state.compound_risk_score = data.get("compound_risk_score")
        self.state.status = RunStatus.COMPLETE
        self.state.pipeline_status = PipelinePhase.COMPLETE
        self.state.synthesis_status = AgentStatus.COMPLETE

    def _on_error(self, data: dict) -> None:
        message = str(data.get("message", "Unknown error"))
        agent = data.get("agent")

        if agent:
            self.state.errors.append(AnalysisError(message=message, agent=str(agent)))
            domain = _parse_domain(agent)
            if domain is not None:
                self.state.agent_statuses[domain] = AgentStatus.ERROR
            elif agent == SYNTHESIS_AGENT:
                self.state.synthesis_status = AgentStatus.ERROR
            return

        self.state.errors.append(AnalysisError(message=message))
        self.state.status = RunStatus.ERROR
        self.state.pipeline_status = PipelinePhase.ERROR
        self.state.failure_reason = message
