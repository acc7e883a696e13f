"""Deterministic compound risk scoring.

The compound risk score (0-100) combines the five domain severities with
weights chosen by the scenario's event categories:

1. Look up the weight vector of every event category and average them
   component-wise.
2. weighted_avg = sum(weight_i * severity_i) over the five domains.
3. Count the domains with severity >= 7 as high-severity domains.
4. cascade_multiplier = 1.0 + (high_severity_domains - 1) * 0.1, never below 1.0.
5. score = min(round_half_up(weighted_avg * cascade_multiplier * 10), 100)
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, NamedTuple

from cryonexus.logger import get_logger

logger = get_logger(__name__)

MAX_SCORE = 100
HIGH_SEVERITY_THRESHOLD = 7
CASCADE_STEP = 0.1


class DomainSeverities(NamedTuple):
    """Severity per domain on a 0-10 scale, 0 meaning no result."""

    geopolitics: float = 0
    economy: float = 0
    food: float = 0
    infrastructure: float = 0
    civilian: float = 0


# Weights per event category, in DomainSeverities field order
CATEGORY_WEIGHTS: dict[str, DomainSeverities] = {
    "geopolitical": DomainSeverities(0.30, 0.20, 0.15, 0.15, 0.20),
    "climate": DomainSeverities(0.10, 0.20, 0.25, 0.20, 0.25),
    "infrastructure": DomainSeverities(0.10, 0.25, 0.15, 0.30, 0.20),
    "economic": DomainSeverities(0.15, 0.35, 0.15, 0.15, 0.20),
    "health": DomainSeverities(0.15, 0.25, 0.10, 0.10, 0.40),
}


@dataclass(frozen=True)
class ScoreBreakdown:
    """Intermediate values of one compound score computation."""

    weights: DomainSeverities
    weighted_avg: float
    high_severity_count: int
    cascade_multiplier: float
    raw_score: float
    score: int


def _category_name(category) -> str:
    # Accepts EventCategory members as well as plain strings
    return getattr(category, "value", category)


def average_weights(categories: Iterable) -> DomainSeverities:
    """Component-wise mean of the weight vectors of the given categories.

    Raises:
        ValueError: If no category is given or a category name is unknown.
    """
    names = [_category_name(c) for c in categories]
    if not names:
        raise ValueError("At least one event category is required to weight the score")

    vectors = []
    for name in names:
        if name not in CATEGORY_WEIGHTS:
            raise ValueError(
                f"Unknown event category '{name}'. "
                f"Expected one of: {', '.join(CATEGORY_WEIGHTS)}"
            )
        vectors.append(CATEGORY_WEIGHTS[name])

    if len(vectors) == 1:
        return vectors[0]
    return DomainSeverities(*(sum(column) / len(vectors) for column in zip(*vectors)))


def cascade_multiplier(high_severity_count: int) -> float:
    if high_severity_count <= 1:
        return 1.0
    return 1.0 + (high_severity_count - 1) * CASCADE_STEP


def _round_half_away_from_zero(value: float) -> int:
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def score_breakdown(severities: DomainSeverities, categories: Iterable) -> ScoreBreakdown:
    """Compute the compound risk score and every intermediate value."""
    for name, value in zip(DomainSeverities._fields, severities):
        if not 0 <= value <= 10:
            raise ValueError(f"Severity for {name} must be between 0 and 10, got {value}")

    weights = average_weights(categories)
    weighted_avg = sum(w * s for w, s in zip(weights, severities))
    high_severity_count = sum(1 for s in severities if s >= HIGH_SEVERITY_THRESHOLD)
    multiplier = cascade_multiplier(high_severity_count)
    raw_score = weighted_avg * multiplier * 10
    score = min(_round_half_away_from_zero(raw_score), MAX_SCORE)

    logger.debug(
        f"Compound score: weighted_avg={weighted_avg:.4f}, high={high_severity_count}, "
        f"multiplier={multiplier:.2f}, raw={raw_score:.4f}, score={score}"
    )
    return ScoreBreakdown(
        weights=weights,
        weighted_avg=weighted_avg,
        high_severity_count=high_severity_count,
        cascade_multiplier=multiplier,
        raw_score=raw_score,
        score=score,
    )


def compute_compound_risk_score(severities: DomainSeverities, categories: Iterable) -> int:
    """Compound risk score for the given domain severities and event categories."""
    return score_breakdown(severities, categories).score
