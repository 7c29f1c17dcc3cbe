import pytest
from fastapi.testclient import TestClient

from weeclass.core.config import Settings
from weeclass.core.errors import StoreError
from weeclass.db.base import Base, make_engine, make_session_factory
from weeclass.db.store import MemoryRecordStore, SqlRecordStore
from weeclass.main import create_app
from weeclass import models  # noqa: F401

ADMIN_EMAIL = "counselor@school.kr"
ADMIN_PASSWORD = "wee-class-1234"
SESSION_SECRET = "weeclass-test-session-secret-0123456789"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'weeclass.db'}",
        SESSION_JWT_SECRET=SESSION_SECRET,
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
    )


@pytest.fixture
def demo_settings():
    return Settings(_env_file=None, DATABASE_URL=None, SESSION_JWT_SECRET=SESSION_SECRET)


@pytest.fixture
def engine(settings):
    engine = make_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlRecordStore(make_session_factory(engine))


@pytest.fixture
def memory_store():
    return MemoryRecordStore()


class FlakyStore:
    """Wraps a store and fails chosen operations."""

    def __init__(self, inner, error=None):
        self.inner = inner
        self.read_only = inner.read_only
        self.error = error or StoreError("backend unavailable")
        self.fail_delete_ids = set()
        self.fail_update = False
        self.fail_list = None
        self.fail_create = None

    def create(self, collection, data):
        if self.fail_create is not None:
            raise self.fail_create
        return self.inner.create(collection, data)

    def list(self, collection, order_by="created_at", descending=True, limit=50):
        if self.fail_list is not None:
            raise self.fail_list
        return self.inner.list(collection, order_by=order_by, descending=descending, limit=limit)

    def get(self, collection, record_id):
        return self.inner.get(collection, record_id)

    def update(self, collection, record_id, fields):
        if self.fail_update:
            raise self.error
        return self.inner.update(collection, record_id, fields)

    def delete(self, collection, record_id):
        if record_id in self.fail_delete_ids:
            raise self.error
        return self.inner.delete(collection, record_id)

    def get_config(self, key):
        return self.inner.get_config(key)

    def set_config(self, key, data):
        return self.inner.set_config(key, data)


@pytest.fixture
def flaky_store(memory_store):
    return FlakyStore(memory_store)


@pytest.fixture
def client(settings):
    app = create_app(settings, create_tables=True)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


def student_form(**overrides):
    data = {
        "name": "김철수",
        "grade_class": "3학년 2반",
        "reason": "친구 문제",
    }
    data.update(overrides)
    return data


def parent_form(**overrides):
    data = {
        "child_name": "박민수",
        "grade_class": "1학년 3반",
        "worries": "집중을 못해요",
        "desired_change": "차분해지면 좋겠어요",
        "contact": "010-1234-5678",
    }
    data.update(overrides)
    return data


def teacher_form(**overrides):
    data = {
        "student_name": "최동욱",
        "grade_class": "4학년 5반",
        "referral_reason": "수업 중 돌아다님",
        "desired_change": "규칙을 지키기",
    }
    data.update(overrides)
    return data
