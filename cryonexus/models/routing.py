"""Routing decision data models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cryonexus.models.domain import Domain

MAX_SCENARIO_LENGTH = 500


def validate_scenario(scenario: object) -> str:
    """Check a submitted scenario and return it unchanged."""
    if not isinstance(scenario, str) or len(scenario) < 1:
        raise ValueError("Scenario is required and must be a non-empty string")
    if len(scenario) > MAX_SCENARIO_LENGTH:
        raise ValueError(f"Scenario must be {MAX_SCENARIO_LENGTH} characters or less")
    return scenario


class TimeHorizon(str, Enum):
    """How quickly the scenario plays out."""

    IMMEDIATE = "immediate"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


class EventCategory(str, Enum):
    """Event category tags used to weight the compound risk score."""

    GEOPOLITICAL = "geopolitical"
    CLIMATE = "climate"
    INFRASTRUCTURE = "infrastructure"
    ECONOMIC = "economic"
    HEALTH = "health"


class Coordinates(BaseModel):
    """Geographic center of the scenario."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class ContextQueries(BaseModel):
    """One news search query per specialist domain."""

    model_config = ConfigDict(frozen=True)

    geopolitics: str = Field(description="News query for the geopolitics specialist")
    economy: str = Field(description="News query for the economy specialist")
    food: str = Field(description="News query for the food supply specialist")
    infrastructure: str = Field(description="News query for the infrastructure specialist")
    civilian: str = Field(description="News query for the civilian impact specialist")

    def for_domain(self, domain: Domain) -> str:
        """Return the query for one specialist domain."""
        return getattr(self, domain.query_key)


class RoutingDecision(BaseModel):
    """Structured description of a scenario produced by the router agent."""

    model_config = ConfigDict(frozen=True)

    scenario_summary: str = Field(description="1-2 sentence clean description")
    primary_regions: list[str] = Field(
        min_length=2, description="Directly affected ISO 3166-1 alpha-3 codes"
    )
    secondary_regions: list[str] = Field(
        min_length=2, description="Indirectly affected ISO 3166-1 alpha-3 codes"
    )
    coordinates: Coordinates
    zoom_level: int = Field(ge=1, le=18, description="1 = world, 5 = continent, 8 = country")
    time_horizon: TimeHorizon
    severity: int = Field(ge=1, le=10, description="Overall severity on a 1-10 scale")
    event_categories: list[EventCategory] = Field(
        min_length=1, description="Event category tags"
    )
    context_queries: ContextQueries

    @field_validator("primary_regions", "secondary_regions")
    @classmethod
    def normalize_region_codes(cls, codes: list[str]) -> list[str]:
        normalized = [code.strip().upper() for code in codes]
        for code in normalized:
            if len(code) != 3:
                raise ValueError(f"Region code must be 3 letters, got '{code}'")
        return normalized

    @field_validator("event_categories")
    @classmethod
    def dedupe_categories(cls, categories: list[EventCategory]) -> list[EventCategory]:
        return list(dict.fromkeys(categories))
