"""Builders for routing decisions and domain analyses used across tests."""

from cryonexus.models.domain import (
    CivilianImpactAnalysis,
    CivilianImpactCountry,
    Domain,
    EconomyAnalysis,
    EconomyCountry,
    FoodSupplyAnalysis,
    FoodSupplyCountry,
    GeopoliticsAnalysis,
    GeopoliticsCountry,
    InfrastructureAnalysis,
    InfrastructureCountry,
)
from cryonexus.models.routing import RoutingDecision
from cryonexus.models.synthesis import SynthesisOutput

SUEZ_SCENARIO = "Suez Canal blocked + South Asian heat wave"


def make_routing(categories=("geopolitical", "economic"), severity=8) -> RoutingDecision:
    return RoutingDecision(
        scenario_summary="The Suez Canal is blocked while a heat wave hits South Asia.",
        primary_regions=["egy", "IND"],
        secondary_regions=["SAU", "PAK"],
        coordinates={"lat": 25.0, "lon": 55.0},
        zoom_level=3,
        time_horizon="weeks",
        severity=severity,
        event_categories=list(categories),
        context_queries={
            "geopolitics": "Suez Canal diplomacy",
            "economy": "Suez shipping rates",
            "food": "South Asia wheat harvest heat",
            "infrastructure": "India grid heat wave",
            "civilian": "heat wave hospital admissions",
        },
    )


def geopolitics_analysis(severity: int, narrative: str = "") -> GeopoliticsAnalysis:
    return GeopoliticsAnalysis(
        affected_countries=[
            GeopoliticsCountry(iso3="EGY", impact_score=severity, stance="destabilized"),
            GeopoliticsCountry(iso3="SAU", impact_score=1, stance="neutral"),
        ],
        narrative=narrative,
    )


def economy_analysis(severity: int, narrative: str = "") -> EconomyAnalysis:
    return EconomyAnalysis(
        affected_countries=[
            EconomyCountry(
                iso3="EGY", gdp_impact_pct=-2.0, trade_disruption=severity, unemployment_risk="high"
            )
        ],
        trade_routes_disrupted=[
            {"from": [121.47, 31.23], "to": [4.48, 51.92], "commodity": "containers", "severity": 9}
        ],
        narrative=narrative,
    )


def food_supply_analysis(severity: int, narrative: str = "") -> FoodSupplyAnalysis:
    return FoodSupplyAnalysis(
        affected_countries=[
            FoodSupplyCountry(iso3="PAK", food_security_impact=severity, population_at_risk=1e6)
        ],
        narrative=narrative,
    )


def infrastructure_analysis(severity: int, narrative: str = "") -> InfrastructureAnalysis:
    return InfrastructureAnalysis(
        affected_countries=[
            InfrastructureCountry(iso3="IND", infrastructure_risk=severity, cascade_risk=5)
        ],
        narrative=narrative,
    )


def civilian_impact_analysis(severity: int, narrative: str = "") -> CivilianImpactAnalysis:
    return CivilianImpactAnalysis(
        affected_countries=[
            CivilianImpactCountry(
                iso3="PAK", humanitarian_score=severity, displaced_estimate=5e5, health_risk=8
            )
        ],
        narrative=narrative,
    )


def analyses_for(geopolitics=7, economy=9, food=8, infrastructure=6, civilian=8) -> dict:
    """One analysis per domain with the given headline severities."""
    return {
        Domain.GEOPOLITICS: geopolitics_analysis(geopolitics),
        Domain.ECONOMY: economy_analysis(economy),
        Domain.FOOD_SUPPLY: food_supply_analysis(food),
        Domain.INFRASTRUCTURE: infrastructure_analysis(infrastructure),
        Domain.CIVILIAN_IMPACT: civilian_impact_analysis(civilian),
    }


def make_synthesis(score: int = 42, narrative: str = "") -> SynthesisOutput:
    return SynthesisOutput(
        cascading_risk_chain="Canal blockage → fuel shortage → grid failure → heat deaths",
        most_affected_population="18 million people in Sindh, Pakistan",
        second_order_effect="Fertilizer delays hit the next planting season",
        compound_risk_score=score,
        narrative=narrative,
    )
