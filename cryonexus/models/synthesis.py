"""Synthesis data models."""

from pydantic import BaseModel, ConfigDict, Field


class SynthesisOutput(BaseModel):
    """Cross-domain assessment produced by the synthesis agent."""

    model_config = ConfigDict(frozen=True)

    cascading_risk_chain: str = Field(
        description="Most critical failure chain across domains, joined with → separators"
    )
    most_affected_population: str = Field(description="One sentence naming the population")
    second_order_effect: str = Field(description="One non-obvious cross-domain effect")
    compound_risk_score: int = Field(
        ge=0, le=100, description="Compound risk score, recomputed deterministically"
    )
    narrative: str = ""
