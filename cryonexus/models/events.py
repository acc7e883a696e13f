"""Pipeline event data models."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from cryonexus.models.routing import RoutingDecision


class EventName(str, Enum):
    """Names of the events carried by the analysis stream."""

    STATUS = "status"
    ORCHESTRATOR = "orchestrator"
    AGENT_CHUNK = "agent_chunk"
    AGENT_COMPLETE = "agent_complete"
    SYNTHESIS_CHUNK = "synthesis_chunk"
    COMPLETE = "complete"
    ERROR = "error"


class PipelineStatus(str, Enum):
    """Phase labels carried by status events."""

    ORCHESTRATING = "orchestrating"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"


class PipelineStage(str, Enum):
    """Server-side lifecycle of one pipeline run."""

    IDLE = "idle"
    ROUTING = "routing"
    SPECIALISTS_RUNNING = "specialists_running"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERROR = "error"


class PipelineEvent(BaseModel):
    """A single event of the analysis stream."""

    model_config = ConfigDict(frozen=True)

    event: EventName
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        """True for `complete` and for pipeline-fatal `error` events."""
        if self.event == EventName.COMPLETE:
            return True
        return self.event == EventName.ERROR and not self.data.get("agent")

    @classmethod
    def status(cls, status: PipelineStatus, message: str) -> "PipelineEvent":
        return cls(event=EventName.STATUS, data={"status": status.value, "message": message})

    @classmethod
    def orchestrator(cls, routing: RoutingDecision) -> "PipelineEvent":
        return cls(event=EventName.ORCHESTRATOR, data=routing.model_dump(mode="json"))

    @classmethod
    def agent_chunk(cls, agent: str, chunk: str) -> "PipelineEvent":
        return cls(event=EventName.AGENT_CHUNK, data={"agent": agent, "chunk": chunk})

    @classmethod
    def agent_complete(
        cls, agent: str, structured: BaseModel, narrative: Optional[str] = None
    ) -> "PipelineEvent":
        data: dict[str, Any] = {
            "agent": agent,
            "structured": structured.model_dump(mode="json", by_alias=True),
        }
        if narrative is not None:
            data["narrative"] = narrative
        return cls(event=EventName.AGENT_COMPLETE, data=data)

    @classmethod
    def synthesis_chunk(cls, chunk: str) -> "PipelineEvent":
        return cls(event=EventName.SYNTHESIS_CHUNK, data={"chunk": chunk})

    @classmethod
    def complete(cls, compound_risk_score: int) -> "PipelineEvent":
        return cls(event=EventName.COMPLETE, data={"compound_risk_score": compound_risk_score})

    @classmethod
    def error(cls, message: str, agent: Optional[str] = None) -> "PipelineEvent":
        data: dict[str, Any] = {"message": message}
        if agent is not None:
            data["agent"] = agent
        return cls(event=EventName.ERROR, data=data)
