"""Data models for CryoNexus."""

from cryonexus.models.routing import RoutingDecision, EventCategory, ContextQueries
from cryonexus.models.domain import Domain, DomainResults
from cryonexus.models.synthesis import SynthesisOutput
from cryonexus.models.events import PipelineEvent, EventName

__all__ = [
    "RoutingDecision",
    "EventCategory",
    "ContextQueries",
    "Domain",
    "DomainResults",
    "SynthesisOutput",
    "PipelineEvent",
    "EventName",
]
