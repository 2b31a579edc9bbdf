import os
from dotenv import load_dotenv
from pymongo import MongoClient
from redis import Redis

from ..utils.logger import Log

load_dotenv()

class MongoDB:
    def __init__(self):
        self.client = None
        self.db = None

    def init_app(self, app):
        uri = app.config.get("MONGO_URI") or os.getenv("MONGO_URI", "mongodb://localhost:27017")
        db_name = app.config.get("DB_NAME") or os.getenv("DB_NAME", "socialpulse")

        # pymongo connects lazily, so this does not block startup
        self.client = MongoClient(uri, tz_aware=True)
        self.db = self.client[db_name]
        app.mongo = self.db

        if app.config.get("TESTING"):
            return

        # -------------------------------------------------
        # CREATE INDEXES (runs once on startup)
        # -------------------------------------------------
        from ..models.social.social_account import SocialAccount

        try:
            SocialAccount(self.db[SocialAccount.collection_name]).ensure_indexes()
        except Exception as e:
            Log.error(f"[db.py][MongoDB][init_app] index creation failed: {e}")

    def get_collection(self, name):
        if self.db is None:
            raise RuntimeError("MongoDB not initialized")
        return self.db[name]

class RedisConnection:
    def __init__(self):
        self.connection = None

    def init_app(self, app):
        host = app.config.get("REDIS_HOST") or os.getenv("REDIS_HOST", "localhost")
        port = int(app.config.get("REDIS_PORT") or os.getenv("REDIS_PORT", 6379))
        self.connection = Redis(host=host, port=port)
        app.redis = self.connection

    def get_connection(self):
        if self.connection is None:
            raise RuntimeError("Redis not initialized")
        return self.connection

# Export the instances
db = MongoDB()
redis_connection = RedisConnection()
