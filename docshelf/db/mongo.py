# docshelf/db/mongo.py
import os
from pymongo import MongoClient, ASCENDING, DESCENDING

from docshelf.config import settings


# Lazy initialization - don't connect at import time
_client = None
_db = None
_indexes_created = False

def get_client():
    """Get or create the MongoDB client."""
    global _client
    if _client is None:
        # Check if we're in testing mode
        if os.getenv("TESTING") == "1":
            import mongomock
            _client = mongomock.MongoClient()
        else:
            _client = MongoClient(settings.mongo_uri)
    return _client

def get_db():
    """Get or create the MongoDB database."""
    global _db
    if _db is None:
        _db = get_client()[settings.mongo_db]
    return _db

# Make db available as module attribute
class _LazyDB:
    def __getattr__(self, name):
        return getattr(get_db(), name)

db = _LazyDB()

def ensure_indexes():
    """Create all necessary indexes. Safe to call multiple times."""
    global _indexes_created
    if _indexes_created:
        return

    _db = get_db()

    # documents: (bucket_name, path) is the join key against storage listings
    _db.documents.create_index(
        [("bucket_name", ASCENDING), ("path", ASCENDING)],
        unique=True,
        name="documents_by_bucket_path",
    )
    _db.documents.create_index([("path", ASCENDING)], name="documents_by_path")
    _db.documents.create_index([("user_id", ASCENDING), ("is_deleted", ASCENDING)])
    _db.documents.create_index([("created_at", DESCENDING)], name="documents_created_desc")

    # users: login by email, uniqueness on email + username
    _db.users.create_index([("email", ASCENDING)], unique=True, name="users_by_email")
    _db.users.create_index([("username", ASCENDING)], unique=True, name="users_by_username")

    # logs: per-user activity, newest first
    _db.logs.create_index([("user_id", ASCENDING), ("ts", DESCENDING)])
    _db.logs.create_index([("action_type", ASCENDING), ("ts", DESCENDING)])

    _indexes_created = True
