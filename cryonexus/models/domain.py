"""Specialist domain analysis data models."""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# [lon, lat]
LonLat = tuple[float, float]


class Domain(str, Enum):
    """The five specialist analysis domains."""

    GEOPOLITICS = "geopolitics"
    ECONOMY = "economy"
    FOOD_SUPPLY = "food_supply"
    INFRASTRUCTURE = "infrastructure"
    CIVILIAN_IMPACT = "civilian_impact"

    @property
    def query_key(self) -> str:
        """Name of this domain's entry in the router's context queries."""
        if self is Domain.GEOPOLITICS:
            return "geopolitics"
        if self is Domain.ECONOMY:
            return "economy"
        if self is Domain.FOOD_SUPPLY:
            return "food"
        if self is Domain.INFRASTRUCTURE:
            return "infrastructure"
        if self is Domain.CIVILIAN_IMPACT:
            return "civilian"
        raise ValueError(f"Unhandled domain: {self}")

    @property
    def analysis_model(self) -> type["DomainAnalysis"]:
        """Structured output model produced by this domain's specialist."""
        if self is Domain.GEOPOLITICS:
            return GeopoliticsAnalysis
        if self is Domain.ECONOMY:
            return EconomyAnalysis
        if self is Domain.FOOD_SUPPLY:
            return FoodSupplyAnalysis
        if self is Domain.INFRASTRUCTURE:
            return InfrastructureAnalysis
        if self is Domain.CIVILIAN_IMPACT:
            return CivilianImpactAnalysis
        raise ValueError(f"Unhandled domain: {self}")


SYNTHESIS_AGENT = "synthesis"


# Geopolitics

class GeopoliticsCountry(BaseModel):
    model_config = ConfigDict(frozen=True)

    iso3: str
    impact_score: int = Field(ge=1, le=10, description="Geopolitical impact (1-10)")
    stance: Literal["allied", "opposed", "neutral", "destabilized"]
    key_concerns: list[str] = Field(default_factory=list)
    alliance_impacts: list[str] = Field(default_factory=list)


class ConflictZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinates: LonLat
    radius_km: float = Field(ge=0)
    intensity: int = Field(ge=1, le=10)
    type: Literal["active_conflict", "tension", "diplomatic_crisis"]


class GeopoliticsAnalysis(BaseModel):
    """Geopolitics specialist output."""

    model_config = ConfigDict(frozen=True)

    affected_countries: list[GeopoliticsCountry]
    conflict_zones: list[ConflictZone] = Field(default_factory=list)
    narrative: str = ""

    def severity(self) -> int:
        return max((c.impact_score for c in self.affected_countries), default=0)


# Economy

class EconomyCountry(BaseModel):
    model_config = ConfigDict(frozen=True)

    iso3: str
    gdp_impact_pct: float = Field(description="Negative = contraction")
    trade_disruption: int = Field(ge=1, le=10)
    key_sectors: list[str] = Field(default_factory=list)
    unemployment_risk: Literal["low", "medium", "high", "severe"]


class TradeRoute(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: LonLat = Field(alias="from")
    to: LonLat
    commodity: str
    severity: int = Field(ge=1, le=10)


class EconomyAnalysis(BaseModel):
    """Economy specialist output."""

    model_config = ConfigDict(frozen=True)

    affected_countries: list[EconomyCountry]
    trade_routes_disrupted: list[TradeRoute] = Field(default_factory=list)
    narrative: str = ""

    def severity(self) -> int:
        return max((c.trade_disruption for c in self.affected_countries), default=0)


# Food supply

class FoodSupplyCountry(BaseModel):
    model_config = ConfigDict(frozen=True)

    iso3: str
    food_security_impact: int = Field(ge=1, le=10)
    population_at_risk: float = Field(ge=0)
    primary_threats: list[str] = Field(default_factory=list)
    is_food_desert: bool = False


class SupplyChainDisruption(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: LonLat = Field(alias="from")
    to: LonLat
    product: str
    severity: int = Field(ge=1, le=10)


class FoodSupplyAnalysis(BaseModel):
    """Food supply specialist output."""

    model_config = ConfigDict(frozen=True)

    affected_countries: list[FoodSupplyCountry]
    supply_chain_disruptions: list[SupplyChainDisruption] = Field(default_factory=list)
    narrative: str = ""

    def severity(self) -> int:
        return max((c.food_security_impact for c in self.affected_countries), default=0)


# Infrastructure

InfrastructureSystem = Literal["power", "water", "telecom", "transport", "digital"]


class InfrastructureCountry(BaseModel):
    model_config = ConfigDict(frozen=True)

    iso3: str
    infrastructure_risk: int = Field(ge=1, le=10)
    systems_at_risk: list[InfrastructureSystem] = Field(default_factory=list)
    cascade_risk: int = Field(ge=1, le=10)


class OutageZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinates: LonLat
    radius_km: float = Field(ge=0)
    type: Literal["power", "water", "telecom", "transport"]
    severity: int = Field(ge=1, le=10)
    population_affected: float = Field(ge=0)


class InfrastructureAnalysis(BaseModel):
    """Infrastructure specialist output."""

    model_config = ConfigDict(frozen=True)

    affected_countries: list[InfrastructureCountry]
    outage_zones: list[OutageZone] = Field(default_factory=list)
    narrative: str = ""

    def severity(self) -> int:
        return max((c.infrastructure_risk for c in self.affected_countries), default=0)


# Civilian impact

class CivilianImpactCountry(BaseModel):
    model_config = ConfigDict(frozen=True)

    iso3: str
    humanitarian_score: int = Field(ge=1, le=10)
    displaced_estimate: float = Field(ge=0)
    health_risk: int = Field(ge=1, le=10)
    vulnerable_groups: list[str] = Field(default_factory=list)


class DisplacementFlow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: LonLat = Field(alias="from")
    to: LonLat
    estimated_people: float = Field(ge=0)
    urgency: Literal["low", "medium", "high", "critical"]


class CivilianImpactAnalysis(BaseModel):
    """Civilian impact specialist output."""

    model_config = ConfigDict(frozen=True)

    affected_countries: list[CivilianImpactCountry]
    displacement_flows: list[DisplacementFlow] = Field(default_factory=list)
    narrative: str = ""

    def severity(self) -> int:
        return max((c.humanitarian_score for c in self.affected_countries), default=0)


DomainAnalysis = Union[
    GeopoliticsAnalysis,
    EconomyAnalysis,
    FoodSupplyAnalysis,
    InfrastructureAnalysis,
    CivilianImpactAnalysis,
]


class DomainResults(BaseModel):
    """One optional slot per domain, filled by each specialist that succeeded."""

    model_config = ConfigDict(frozen=True)

    geopolitics: Optional[GeopoliticsAnalysis] = None
    economy: Optional[EconomyAnalysis] = None
    food_supply: Optional[FoodSupplyAnalysis] = None
    infrastructure: Optional[InfrastructureAnalysis] = None
    civilian_impact: Optional[CivilianImpactAnalysis] = None

    def get(self, domain: Domain) -> Optional[DomainAnalysis]:
        if domain is Domain.GEOPOLITICS:
            return self.geopolitics
        if domain is Domain.ECONOMY:
            return self.economy
        if domain is Domain.FOOD_SUPPLY:
            return self.food_supply
        if domain is Domain.INFRASTRUCTURE:
            return self.infrastructure
        if domain is Domain.CIVILIAN_IMPACT:
            return self.civilian_impact
        raise ValueError(f"Unhandled domain: {domain}")

    def with_result(self, domain: Domain, analysis: DomainAnalysis) -> "DomainResults":
        """Return a copy with the given domain's slot filled."""
        if not isinstance(analysis, domain.analysis_model):
            raise TypeError(
                f"{domain.value} expects {domain.analysis_model.__name__}, "
                f"got {type(analysis).__name__}"
            )
        return self.model_copy(update={domain.value: analysis})

    def completed(self) -> list[Domain]:
        return [domain for domain in Domain if self.get(domain) is not None]

    def severities(self) -> "DomainSeverities":
        """Per-domain severity, 0 for domains without a result."""
        from cryonexus.services.scoring import DomainSeverities

        def severity_of(domain: Domain) -> int:
            analysis = self.get(domain)
            return analysis.severity() if analysis is not None else 0

        return DomainSeverities(
            geopolitics=severity_of(Domain.GEOPOLITICS),
            economy=severity_of(Domain.ECONOMY),
            food=severity_of(Domain.FOOD_SUPPLY),
            infrastructure=severity_of(Domain.INFRASTRUCTURE),
            civilian=severity_of(Domain.CIVILIAN_IMPACT),
        )
