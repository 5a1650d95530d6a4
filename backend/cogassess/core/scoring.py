"""
IQ Estimation Module.

Combines five domain scores (memory, attention, processing, problem solving,
reasoning) and the user's age into a heuristic IQ estimate.

Method
======
**Age normalization:** each raw domain score (0-100) is z-scored against the
nearest entry of an age-norm table (ages 6-18, step 2). Ages outside the
table resolve to the closest end; equidistant ages resolve to the younger
entry.

**Sub-score:** ``100 + z * 15 * weight * adjustment_factor``.

**Overall IQ:** the arithmetic mean of the five sub-scores. The domain weight
is applied inside each sub-score and the sub-scores are then averaged
equally, so the weighting acts twice. This is intentional and preserved.

**Percentile:** ``round(norm.cdf((IQ - 100) / 15) * 100)`` clamped to [1, 99].

**Confidence:** ``max(0, 1 - population_variance(sub_scores) / 10000)``.

The pattern-building task computes its own developmental IQ analysis with a
different confidence formula (see cogassess.core.tasks.pattern_building).
The two are deliberately kept apart.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import numpy as np
from scipy.stats import norm

from cogassess.core.config import IQ_DOMAINS, settings
from cogassess.schemas.assessment import IQMetrics, IQSubScores

logger = logging.getLogger(__name__)

# IQ scale parameters
IQ_POPULATION_MEAN = 100.0
IQ_POPULATION_SD = 15.0

# Percentile bounds reported to users
PERCENTILE_MIN = 1
PERCENTILE_MAX = 99

# Variance scale for the confidence formula
CONFIDENCE_VARIANCE_SCALE = 10000.0


@dataclass(frozen=True)
class AgeNorm:
    """Reference distribution of raw domain scores at one age."""

    age: int
    mean_score: float
    standard_deviation: float
    adjustment_factor: float


AGE_NORMS = (
    AgeNorm(age=6, mean_score=50, standard_deviation=15, adjustment_factor=1.2),
    AgeNorm(age=8, mean_score=55, standard_deviation=15, adjustment_factor=1.15),
    AgeNorm(age=10, mean_score=60, standard_deviation=15, adjustment_factor=1.1),
    AgeNorm(age=12, mean_score=65, standard_deviation=15, adjustment_factor=1.05),
    AgeNorm(age=14, mean_score=70, standard_deviation=15, adjustment_factor=1.0),
    AgeNorm(age=16, mean_score=75, standard_deviation=15, adjustment_factor=0.95),
    AgeNorm(age=18, mean_score=80, standard_deviation=15, adjustment_factor=0.9),
)

# (minimum IQ, label), checked in order
IQ_CLASSIFICATION_BANDS = (
    (130, "Very Superior"),
    (120, "Superior"),
    (110, "High Average"),
    (90, "Average"),
    (80, "Low Average"),
    (70, "Borderline"),
)

# (minimum IQ, interpretation), checked in order
_OVERALL_INTERPRETATIONS = (
    (130, "Very Superior: Exceptional cognitive abilities across multiple domains"),
    (120, "Superior: Strong cognitive abilities with particular strengths in some areas"),
    (110, "High Average: Above-average performance in several cognitive domains"),
    (90, "Average: Typical cognitive development for age group"),
)
_BELOW_AVERAGE_INTERPRETATION = (
    "Below Average: May benefit from additional cognitive training and support"
)

# Sub-score bounds for domain-specific interpretations
DOMAIN_STRENGTH_THRESHOLD = 120.0
DOMAIN_WEAKNESS_THRESHOLD = 80.0


def get_age_norm(age: int) -> AgeNorm:
    """
    Nearest age norm. On a tie the younger entry wins.

    Example:
        >>> get_age_norm(9).age
        8
        >>> get_age_norm(40).age
        18
    """
    best = AGE_NORMS[0]
    for candidate in AGE_NORMS[1:]:
        if abs(candidate.age - age) < abs(best.age - age):
            best = candidate
    return best


def clamp_percentile(percentile: float) -> int:
    """Round and clamp a percentile to the reported [1, 99] range."""
    return int(max(PERCENTILE_MIN, min(PERCENTILE_MAX, round(percentile))))


def iq_to_percentile(
    iq_score: float, mean: float = IQ_POPULATION_MEAN, sd: float = IQ_POPULATION_SD
) -> int:
    """
    Convert an IQ score to a percentile rank using the normal distribution.

    Args:
        iq_score: The IQ score to convert (unrounded scores are accepted)
        mean: Mean of IQ distribution (default: 100)
        sd: Standard deviation of IQ distribution (default: 15)

    Returns:
        Percentile rank rounded to an integer and clamped to [1, 99]

    Example:
        >>> iq_to_percentile(100)
        50
        >>> iq_to_percentile(115)
        84
        >>> iq_to_percentile(200)
        99
    """
    z_score = (iq_score - mean) / sd
    return clamp_percentile(norm.cdf(z_score) * 100)


def score_to_age_percentile(score: float, age: int) -> int:
    """Percentile of a raw 0-100 domain score against the nearest age norm."""
    age_norm = get_age_norm(age)
    return iq_to_percentile(
        score, mean=age_norm.mean_score, sd=age_norm.standard_deviation
    )


def iq_classification(iq_score: float) -> str:
    """
    Descriptive classification of an IQ score.

    Example:
        >>> iq_classification(125)
        'Superior'
        >>> iq_classification(65)
        'Extremely Low'
    """
    for threshold, label in IQ_CLASSIFICATION_BANDS:
        if iq_score >= threshold:
            return label
    return "Extremely Low"


def calculate_confidence(sub_scores: Mapping[str, float]) -> float:
    """``max(0, 1 - variance / 10000)`` over the sub-scores (population variance)."""
    if not sub_scores:
        return 0.0
    variance = float(np.var(list(sub_scores.values())))
    return max(0.0, 1.0 - variance / CONFIDENCE_VARIANCE_SCALE)


class IQEstimator:
    """
    Heuristic IQ estimate from domain scores and age.

    Args:
        age: User age in years
        weights: Per-domain weights. Defaults to settings.IQ_SUBSCORE_WEIGHTS.
    """

    def __init__(self, age: int, weights: Optional[Mapping[str, float]] = None):
        self.age = age
        self.weights = dict(weights if weights is not None else settings.IQ_SUBSCORE_WEIGHTS)
        missing = set(IQ_DOMAINS) - set(self.weights)
        if missing:
            raise ValueError(f"Missing IQ weights for domains: {sorted(missing)}")
        self.norm = get_age_norm(age)

    def calculate_sub_score(self, raw_score: float, weight: float) -> float:
        z_score = (raw_score - self.norm.mean_score) / self.norm.standard_deviation
        return IQ_POPULATION_MEAN + (
            z_score * IQ_POPULATION_SD * weight * self.norm.adjustment_factor
        )

    def calculate(self, domain_scores: Mapping[str, float]) -> IQMetrics:
        """
        Estimate IQ from raw domain scores.

        Args:
            domain_scores: Raw 0-100 score per IQ domain. Missing domains
                count as 0.

        Returns:
            IQMetrics with rounded overall IQ, unrounded sub-scores,
            confidence and clamped percentile
        """
        sub_scores: Dict[str, float] = {
            domain: self.calculate_sub_score(
                float(domain_scores.get(domain, 0.0)), self.weights[domain]
            )
            for domain in IQ_DOMAINS
        }

        overall = float(np.mean(list(sub_scores.values())))

        logger.debug(
            f"IQ estimate for age {self.age} (norm age {self.norm.age}): {overall:.2f}"
        )

        return IQMetrics(
            overall_iq=int(round(overall)),
            sub_scores=IQSubScores(**sub_scores),
            confidence=calculate_confidence(sub_scores),
            percentile=iq_to_percentile(overall),
        )


def generate_interpretations(iq_metrics: IQMetrics) -> list[str]:
    """Overall band interpretation followed by notable domain strengths/weaknesses."""
    interpretations = []

    for threshold, text in _OVERALL_INTERPRETATIONS:
        if iq_metrics.overall_iq >= threshold:
            interpretations.append(text)
            break
    else:
        interpretations.append(_BELOW_AVERAGE_INTERPRETATION)

    for domain, score in iq_metrics.sub_scores.model_dump().items():
        label = domain.replace("_", " ")
        if score >= DOMAIN_STRENGTH_THRESHOLD:
            interpretations.append(
                f"Exceptional {label} abilities: Consider advanced enrichment activities"
            )
        elif score <= DOMAIN_WEAKNESS_THRESHOLD:
            interpretations.append(
                f"{label} development opportunity: Focused exercises recommended"
            )

    return interpretations
