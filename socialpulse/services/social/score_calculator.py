# socialpulse/services/social/score_calculator.py

import math
from typing import Iterable, Optional

from ...constants.service_code import SCORE_BANDS
from ...models.social.account_metrics import AccountMetrics


CONNECTION_WEIGHT = 0.3
POST_WEIGHT = 0.5
RESPONSE_WEIGHT = 0.2


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; 72.5 must become 73, not 72
    return int(math.floor(value + 0.5))


def _clamp(score: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, score))


def calculate_engagement_score(metrics: Optional[AccountMetrics]) -> int:
    """
    Bounded 0-100 engagement score from raw counters.

        connections  min(connections / 100, 100) * 0.3
        posts        min(posts * 2, 100)         * 0.5
        responses    max(0, 100 - pending * 2)   * 0.2

    Pure and deterministic; missing metrics score 0.
    """
    if metrics is None:
        return 0

    connections = max(0, metrics.connections or 0)
    posts = max(0, metrics.posts or 0)
    pending = max(0, metrics.pending_responses or 0)

    connection_score = min(connections / 100.0, 100.0) * CONNECTION_WEIGHT
    post_score = min(posts * 2.0, 100.0) * POST_WEIGHT
    response_score = max(0.0, 100.0 - pending * 2.0) * RESPONSE_WEIGHT

    return _clamp(_round_half_up(connection_score + post_score + response_score))


def calculate_overall_score(scores: Iterable[int]) -> int:
    """Rounded mean of per-account scores; 0 for a user with no accounts."""
    values = [int(s) for s in scores if s is not None]
    if not values:
        return 0
    return _clamp(_round_half_up(sum(values) / len(values)))


def _band(score):
    score = score or 0
    for minimum, label, colour in SCORE_BANDS:
        if score >= minimum:
            return label, colour
    return SCORE_BANDS[-1][1], SCORE_BANDS[-1][2]


def score_label(score) -> str:
    return _band(score)[0]


def score_color(score) -> str:
    return _band(score)[1]
