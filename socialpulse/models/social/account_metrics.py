# socialpulse/models/social/account_metrics.py

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional


METRIC_SOURCES = ("live", "manual", "demo", "default")


def _count(value) -> int:
    """Coerce a provider counter to a non-negative int; junk becomes 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _optional_count(value) -> Optional[int]:
    if value is None:
        return None
    return _count(value)


@dataclass(frozen=True)
class AccountMetrics:
    """
    Engagement counters for one linked account.

    `connections` is followers / friends / subscribers depending on the
    provider. `source` records where the numbers came from so a dashboard
    can tell live data from demo or fallback values.
    """

    engagement_score: int = 0
    connections: int = 0
    posts: int = 0
    pending_responses: int = 0
    new_messages: int = 0

    likes: Optional[int] = None
    comments: Optional[int] = None
    shares: Optional[int] = None
    views: Optional[int] = None
    engagement_rate: Optional[float] = None

    source: str = "live"

    def __post_init__(self):
        for name in ("engagement_score", "connections", "posts", "pending_responses", "new_messages"):
            object.__setattr__(self, name, _count(getattr(self, name)))
        for name in ("likes", "comments", "shares", "views"):
            object.__setattr__(self, name, _optional_count(getattr(self, name)))
        if self.engagement_rate is not None:
            object.__setattr__(self, "engagement_rate", max(0.0, float(self.engagement_rate)))
        object.__setattr__(self, "engagement_score", min(100, self.engagement_score))
        if self.source not in METRIC_SOURCES:
            object.__setattr__(self, "source", "live")

    @classmethod
    def zero(cls, source: str = "default") -> "AccountMetrics":
        return cls(source=source)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AccountMetrics":
        if not data:
            return cls.zero()
        return cls(
            engagement_score=data.get("engagement_score"),
            connections=data.get("connections"),
            posts=data.get("posts"),
            pending_responses=data.get("pending_responses"),
            new_messages=data.get("new_messages"),
            likes=data.get("likes"),
            comments=data.get("comments"),
            shares=data.get("shares"),
            views=data.get("views"),
            engagement_rate=data.get("engagement_rate"),
            source=data.get("source") or "live",
        )

    def with_score(self, score: int) -> "AccountMetrics":
        return replace(self, engagement_score=score)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def is_zero(self) -> bool:
        return not any((self.connections, self.posts, self.pending_responses, self.new_messages))
