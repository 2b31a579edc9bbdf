# socialpulse/models/social/linked_account.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Optional

from .account_metrics import AccountMetrics
from ...utils.token_utils import is_token_expired


@dataclass(frozen=True)
class LinkedAccount:
    """
    One third-party account linked to a user, at most one per (user_id, platform).

    Instances are immutable; every update goes through `evolve` and the new
    object replaces the stored one wholesale. Tokens are plaintext here and
    encrypted only by the persistence layer.
    """

    user_id: str
    platform: str
    id: Optional[str] = None

    platform_user_id: Optional[str] = None
    username: Optional[str] = None
    account_name: Optional[str] = None

    access_token: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)
    token_expires_at: Optional[datetime] = None

    account_type: Optional[str] = None
    manual_metrics: Dict[str, int] = field(default_factory=dict)

    metrics: AccountMetrics = field(default_factory=AccountMetrics.zero)
    last_synced: Optional[datetime] = None
    connected_at: Optional[datetime] = None

    def evolve(self, **changes) -> "LinkedAccount":
        if "manual_metrics" in changes:
            changes["manual_metrics"] = dict(changes["manual_metrics"] or {})
        return replace(self, **changes)

    def owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    @property
    def needs_reconnection(self) -> bool:
        return is_token_expired(self.token_expires_at)

    @property
    def is_company_page(self) -> bool:
        return (self.account_type or "").lower() == "company"
