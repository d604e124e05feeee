"""Scoring engine: input extraction, category rules and the composite."""

from tokenhealth.services.scoring.inputs import ScoringInputs, build_scoring_inputs
from tokenhealth.services.scoring.rules import (
    CATEGORY_WEIGHTS,
    community_score,
    composite_score,
    development_score,
    liquidity_score,
    security_points,
    security_score,
    tokenomics_score,
)
from tokenhealth.services.scoring.service import ScoreCard, ScoringService

__all__ = [
    "ScoringInputs",
    "build_scoring_inputs",
    "CATEGORY_WEIGHTS",
    "security_points",
    "security_score",
    "liquidity_score",
    "tokenomics_score",
    "community_score",
    "development_score",
    "composite_score",
    "ScoreCard",
    "ScoringService",
]
