from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId

from .account_metrics import AccountMetrics
from .linked_account import LinkedAccount
from ...extensions.db import db as db_ext
from ...utils.crypt import encrypt_data, decrypt_data
from ...utils.logger import Log


def _aware(dt):
    # pymongo hands back naive UTC datetimes unless the client is tz_aware
    if isinstance(dt, datetime) and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _object_id(value) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


class SocialAccount:
    """
    Mongo persistence for linked accounts, one document per (user_id, platform).

    Tokens are stored AES-GCM encrypted and decrypted on read for internal use.
    Uniqueness of (user_id, platform) is left to the account registry's
    lookup-before-insert; the index below is for lookups only.
    """

    collection_name = "social_accounts"

    def __init__(self, collection=None):
        self._collection = collection

    @property
    def collection(self):
        if self._collection is None:
            self._collection = db_ext.get_collection(self.collection_name)
        return self._collection

    # -------------------- Mapping --------------------

    @staticmethod
    def to_document(account: LinkedAccount) -> dict:
        return {
            "user_id": str(account.user_id),
            "platform": account.platform,
            "platform_user_id": account.platform_user_id,
            "username": account.username,
            "account_name": account.account_name,

            "access_token": encrypt_data(account.access_token) if account.access_token else None,
            "refresh_token": encrypt_data(account.refresh_token) if account.refresh_token else None,
            "token_expires_at": account.token_expires_at,

            "account_type": account.account_type,
            "manual_metrics": dict(account.manual_metrics or {}),

            "metrics": account.metrics.to_dict() if account.metrics else None,
            "last_synced": account.last_synced,
            "connected_at": account.connected_at,
            "updated_at": datetime.now(timezone.utc),
        }

    @staticmethod
    def from_document(doc: dict) -> LinkedAccount:
        log_tag = "[social_account.py][SocialAccount][from_document]"

        def _plain(field):
            value = doc.get(field)
            if not value:
                return None
            try:
                return decrypt_data(value)
            except Exception as e:
                # A token written under another key is unusable; the account
                # then syncs as "missing token" and asks for reconnection.
                Log.error(f"{log_tag} could not decrypt {field} for account {doc.get('_id')}: {e}")
                return None

        return LinkedAccount(
            id=str(doc["_id"]),
            user_id=str(doc.get("user_id")),
            platform=doc.get("platform"),
            platform_user_id=doc.get("platform_user_id"),
            username=doc.get("username"),
            account_name=doc.get("account_name"),
            access_token=_plain("access_token"),
            refresh_token=_plain("refresh_token"),
            token_expires_at=_aware(doc.get("token_expires_at")),
            account_type=doc.get("account_type"),
            manual_metrics=dict(doc.get("manual_metrics") or {}),
            metrics=AccountMetrics.from_dict(doc.get("metrics")),
            last_synced=_aware(doc.get("last_synced")),
            connected_at=_aware(doc.get("connected_at")),
        )

    # -------------------- Queries --------------------

    def find_by_id(self, account_id) -> Optional[LinkedAccount]:
        oid = _object_id(account_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        return self.from_document(doc) if doc else None

    def find_by_user_and_platform(self, user_id, platform) -> Optional[LinkedAccount]:
        doc = self.collection.find_one({"user_id": str(user_id), "platform": str(platform)})
        return self.from_document(doc) if doc else None

    def list_by_user(self, user_id) -> List[LinkedAccount]:
        cursor = self.collection.find({"user_id": str(user_id)}).sort("connected_at", 1)
        return [self.from_document(doc) for doc in cursor]

    def list_all_ids(self) -> List[str]:
        return [str(doc["_id"]) for doc in self.collection.find({}, {"_id": 1})]

    # -------------------- Write helpers --------------------

    def save(self, account: LinkedAccount) -> LinkedAccount:
        """Insert when the account has no id yet, otherwise replace the stored document."""
        doc = self.to_document(account)

        if account.id is None:
            result = self.collection.insert_one(doc)
            return account.evolve(id=str(result.inserted_id))

        self.collection.replace_one({"_id": _object_id(account.id)}, doc, upsert=True)
        return account

    def delete(self, account_id) -> bool:
        oid = _object_id(account_id)
        if oid is None:
            return False
        result = self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    def ensure_indexes(self):
        self.collection.create_index([("user_id", 1), ("platform", 1)])
        self.collection.create_index([("user_id", 1), ("connected_at", 1)])
        return True
