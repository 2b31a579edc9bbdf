from typing import Dict, Iterable, List, Mapping

from bson import ObjectId
from bson.errors import InvalidId

from ...constants.service_code import AVAILABLE_GOALS, DEFAULT_GOALS
from ...extensions.db import db as db_ext
from ...utils.logger import Log


def normalize_goals(goals: Iterable) -> List[str]:
    """Lowercase, drop unknown goals and duplicates, keep the given order."""
    seen = []
    for goal in goals or []:
        goal = str(goal).strip().lower()
        if goal in AVAILABLE_GOALS and goal not in seen:
            seen.append(goal)
    return seen


class UserPreferences:
    """Per-platform goals stored on `users.platform_goals` ({platform: [goal, ...]})."""

    collection_name = "users"

    def __init__(self, collection=None):
        self._collection = collection

    @property
    def collection(self):
        if self._collection is None:
            self._collection = db_ext.get_collection(self.collection_name)
        return self._collection

    @staticmethod
    def _user_query(user_id):
        try:
            return {"_id": ObjectId(str(user_id))}
        except (InvalidId, TypeError):
            return {"user_id": str(user_id)}

    def _stored_goals(self, user_id) -> Dict[str, list]:
        user = self.collection.find_one(self._user_query(user_id), {"platform_goals": 1})
        return (user or {}).get("platform_goals") or {}

    def get_platform_goals(self, user_id, platform) -> List[str]:
        goals = normalize_goals(self._stored_goals(user_id).get(str(platform).lower()))
        return goals or list(DEFAULT_GOALS)

    def get_all_platform_goals(self, user_id) -> Dict[str, List[str]]:
        """Only platforms the user has set; no defaults filled in."""
        stored = self._stored_goals(user_id)
        return {str(platform).lower(): normalize_goals(goals) for platform, goals in stored.items()}

    def set_platform_goals(self, user_id, platform, goals: Iterable) -> List[str]:
        platform = str(platform).lower()
        goals = normalize_goals(goals)
        if not goals:
            raise ValueError("Goals list cannot be empty")

        self.collection.update_one(
            self._user_query(user_id),
            {"$set": {f"platform_goals.{platform}": goals}},
            upsert=True,
        )
        Log.info(f"[user_preferences.py][UserPreferences][set_platform_goals] user={user_id} {platform}={goals}")
        return goals

    def set_all_platform_goals(self, user_id, platform_goals: Mapping[str, Iterable]) -> Dict[str, List[str]]:
        """Replace every platform's goals at once."""
        normalized = {str(platform).lower(): normalize_goals(goals) for platform, goals in platform_goals.items()}

        self.collection.update_one(
            self._user_query(user_id),
            {"$set": {"platform_goals": normalized}},
            upsert=True,
        )
        Log.info(f"[user_preferences.py][UserPreferences][set_all_platform_goals] user={user_id} {normalized}")
        return normalized
