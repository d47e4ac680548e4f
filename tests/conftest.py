import pytest

from fitting.config import settings
from fitting.main import _buckets
from fitting.security import create_jwt
from fitting.services.profile_store import store


@pytest.fixture(autouse=True)
def _reset_state(monkeypatch):
    # Keep notes deterministic and start every test with empty state
    monkeypatch.setattr(settings, "openai_api_key", None)
    store.clear()
    _buckets.clear()
    yield
    store.clear()
    _buckets.clear()


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {create_jwt('user-1')}"}


@pytest.fixture
def other_user_headers():
    return {"Authorization": f"Bearer {create_jwt('user-2')}"}


@pytest.fixture
def api_headers():
    return {"x-api-key": settings.api_key}
