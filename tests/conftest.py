import sys
import os

import pytest

# Ensure repo root on sys.path for imports like `app...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
HERE = os.path.dirname(os.path.abspath(__file__))
for path in (ROOT, HERE):
    if path not in sys.path:
        sys.path.insert(0, path)

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "dummy-key")

from fakesupabase import FakeSupabase, sample_tables  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_db(monkeypatch):
    """Point every repository (and the auth dependency) at an in-memory store."""
    from app.common import deps
    from app.features.modules import repository as modules_repo
    from app.features.profiles import repository as profiles_repo
    from app.features.quiz import repository as quiz_repo
    from app.features.quiz.sessions import quiz_sessions

    db = FakeSupabase(sample_tables())

    async def fake_get_supabase():
        return db

    for module in (deps, modules_repo, profiles_repo, quiz_repo):
        monkeypatch.setattr(module, "get_supabase", fake_get_supabase)
    quiz_sessions.clear()
    yield db
    quiz_sessions.clear()
