import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
TESTS = Path(__file__).resolve().parent
for path in (ROOT, TESTS):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

os.environ.setdefault('SUPABASE_URL', 'https://example.supabase.co')
os.environ.setdefault('SUPABASE_ANON_KEY', 'anon-key')
os.environ.setdefault('APP_ENV', 'test')

from fakes import FakeBackend  # noqa: E402


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def settings():
    from leadboard.config import Settings

    return Settings(SUPABASE_URL='https://example.supabase.co', SUPABASE_ANON_KEY='anon-key', APP_ENV='test')
