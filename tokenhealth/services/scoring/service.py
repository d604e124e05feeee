"""
Scoring service.

Turns ScoringInputs into a ScoreCard: five category scores, the weighted
composite and the data-quality flag. Deterministic and free of I/O.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from tokenhealth.core.models import Category, CategoryScore, DataQuality
from tokenhealth.services.scoring.inputs import ScoringInputs, build_scoring_inputs
from tokenhealth.services.scoring.rules import (
    CATEGORY_WEIGHTS,
    community_score,
    composite_score,
    development_score,
    liquidity_score,
    security_score,
    tokenomics_score,
)

logger = logging.getLogger(__name__)

CATEGORY_RULES = {
    Category.SECURITY: security_score,
    Category.LIQUIDITY: liquidity_score,
    Category.TOKENOMICS: tokenomics_score,
    Category.COMMUNITY: community_score,
    Category.DEVELOPMENT: development_score,
}


@dataclass(frozen=True)
class ScoreCard:
    """Scores of one scan."""

    categories: dict[Category, CategoryScore]
    health_score: int
    data_quality: DataQuality

    def value(self, category: Category) -> int:
        return self.categories[category].value


class ScoringService:
    """
    Computes category and composite scores.

    Usage:
        service = ScoringService()
        card = service.score(build_scoring_inputs(bundle))
    """

    def __init__(self, weights: dict[Category, int] | None = None):
        """
        Args:
            weights: Integer-percent category weights (default 25/25/20/15/15)
        """
        self._weights = weights or CATEGORY_WEIGHTS
        if sum(self._weights.values()) != 100:
            raise ValueError(f"Category weights must sum to 100, got {sum(self._weights.values())}")

    def score(self, inputs: ScoringInputs) -> ScoreCard:
        """
        Score one set of inputs.

        Args:
            inputs: Signals extracted from provider results

        Returns:
            ScoreCard with all five categories present
        """
        values = {category: rule(inputs) for category, rule in CATEGORY_RULES.items()}
        health = composite_score(values, self._weights)

        # Pool or TVL data marks the result complete. Informational only.
        quality = DataQuality.COMPLETE if inputs.has_pool_data or inputs.has_tvl_data else DataQuality.PARTIAL

        logger.debug(
            "Scores: "
            + ", ".join(f"{c.value}={v}" for c, v in values.items())
            + f", health={health}, quality={quality.value}"
        )

        return ScoreCard(
            categories={c: CategoryScore(category=c, value=v) for c, v in values.items()},
            health_score=health,
            data_quality=quality,
        )

    def score_bundle(self, bundle, now: datetime | None = None) -> ScoreCard:
        """Extract inputs from a ProviderBundle and score them."""
        return self.score(build_scoring_inputs(bundle, now))
