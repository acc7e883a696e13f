"""API request models."""

from pydantic import BaseModel, Field, field_validator

from cryonexus.models.routing import MAX_SCENARIO_LENGTH, validate_scenario


class AnalyzeRequest(BaseModel):
    """Request model for scenario analysis."""

    scenario: str = Field(
        default=None,
        validate_default=True,
        description=f"Catastrophic scenario to analyze (1-{MAX_SCENARIO_LENGTH} characters)",
        examples=["Suez Canal blocked + South Asian heat wave"],
    )

    @field_validator("scenario", mode="before")
    @classmethod
    def check_scenario(cls, value: object) -> str:
        return validate_scenario(value)
