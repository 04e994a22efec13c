import os
import pytest
import mongomock
from datetime import datetime, timezone
from fastapi.testclient import TestClient
import jwt as pyjwt

# === Configure env BEFORE any imports ===
os.environ["TESTING"] = "1"
os.environ.setdefault("MONGO_DB", "docshelf_test")
os.environ.setdefault("JWT_SECRET", "dev-secret")
# No hosted providers and no real object storage in tests
for _key in ("ANTHROPIC_API_KEY", "DEEPSEEK_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY", "MINIO_ENDPOINT"):
    os.environ[_key] = ""


class FakeObjectStore:
    """In-memory stand-in for ObjectStore."""

    def __init__(self):
        self.buckets = {}
        self.public_buckets = set()
        self.failing_buckets = set()
        self.unsignable = set()

    def add(self, bucket, name, data=b"x", created_at=None):
        self.buckets.setdefault(bucket, {})[name] = {
            "data": data,
            "created_at": created_at,
            "content_type": "application/octet-stream",
        }

    def list_objects(self, bucket):
        from docshelf.models.schemas import StorageObject
        if bucket in self.failing_buckets:
            raise RuntimeError(f"bucket {bucket} unavailable")
        return [
            StorageObject(name=name, created_at=o["created_at"], size=len(o["data"]))
            for name, o in self.buckets.get(bucket, {}).items()
        ]

    def get_public_url(self, bucket, name):
        return f"http://storage.test/{bucket}/{name}"

    def create_signed_url(self, bucket, name, ttl_seconds):
        if name in self.unsignable:
            raise RuntimeError("signing failed")
        return f"http://storage.test/{bucket}/{name}?expires={ttl_seconds}"

    def list_buckets(self):
        return [{"name": b, "created_at": None} for b in self.buckets]

    def ensure_bucket(self, bucket, public=False):
        if bucket in self.buckets:
            return False
        self.buckets[bucket] = {}
        if public:
            self.public_buckets.add(bucket)
        return True

    def upload(self, bucket, name, data, content_type=None):
        self.buckets.setdefault(bucket, {})[name] = {
            "data": data,
            "created_at": datetime.now(timezone.utc),
            "content_type": content_type,
        }
        return name

    def remove(self, bucket, names):
        for name in names:
            self.buckets.get(bucket, {}).pop(name, None)


@pytest.fixture(scope="session")
def app_instance():
    """Import app after environment is configured."""
    from docshelf.main import app
    return app


@pytest.fixture(autouse=True)
def patch_db(monkeypatch):
    """Fresh mongomock database for every test."""
    import docshelf.db.mongo as mongo_mod

    mongo_mod._client = None
    mongo_mod._db = None
    mongo_mod._indexes_created = False

    mock_client = mongomock.MongoClient()
    mock_db = mock_client[os.getenv("MONGO_DB", "docshelf_test")]

    monkeypatch.setattr(mongo_mod, "get_client", lambda: mock_client)
    monkeypatch.setattr(mongo_mod, "get_db", lambda: mock_db)

    mongo_mod.ensure_indexes()
    yield mock_db


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def summarizer():
    """Summarizer with no hosted providers: always the local fallback."""
    from docshelf.summarizer.summarizer import DocumentSummarizer
    return DocumentSummarizer(providers=[])


@pytest.fixture
def client(app_instance, store, summarizer):
    """Test client with storage and summarizer swapped for test doubles."""
    from docshelf.deps import get_object_store, get_optional_object_store
    from docshelf.summarizer.summarizer import get_summarizer

    app_instance.dependency_overrides[get_object_store] = lambda: store
    app_instance.dependency_overrides[get_optional_object_store] = lambda: store
    app_instance.dependency_overrides[get_summarizer] = lambda: summarizer
    yield TestClient(app_instance)
    app_instance.dependency_overrides.clear()


# === Auth helpers ===
def _token_for(sub, role):
    """Generate a JWT token for testing."""
    return pyjwt.encode(
        {"sub": sub, "role": role},
        os.getenv("JWT_SECRET", "dev-secret"),
        algorithm="HS256"
    )


@pytest.fixture
def user_header():
    return {"Authorization": f"Bearer {_token_for('u1', 'user')}"}


@pytest.fixture
def other_user_header():
    return {"Authorization": f"Bearer {_token_for('u2', 'user')}"}


@pytest.fixture
def admin_header():
    return {"Authorization": f"Bearer {_token_for('admin1', 'admin')}"}


# === Seed documents ===
@pytest.fixture
def seeded_files(patch_db, store):
    """
    Three stored files: one shared, one in u1's bucket, one in u2's bucket,
    each with a document row.
    """
    rows = [
        ("a", "default", None, "2024-01-01T00:00:00+00:00"),
        ("b", "user-u1", "u1", "2024-02-01T00:00:00+00:00"),
        ("c", "user-u2", "u2", "2024-03-01T00:00:00+00:00"),
    ]
    for path, bucket, owner, created in rows:
        store.add(bucket, path)
        patch_db.documents.insert_one({
            "_id": f"d_{path}",
            "file_name": f"{path}.txt",
            "path": path,
            "bucket_name": bucket,
            "user_id": owner,
            "file_type": "text/plain",
            "size": 10,
            "created_at": created,
            "is_deleted": False,
            "deleted_at": None,
        })
    return rows
