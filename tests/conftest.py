import os
import tempfile

# Must be set before config.config is imported anywhere
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ.setdefault('LOG_FILE', os.path.join(tempfile.gettempdir(), 'educhain-tests.log'))
os.environ.pop('STORAGE_URL', None)

import pytest
from datetime import datetime, timedelta
from educhain.database import drop_db, init_db
from educhain.services.profile_service import ProfileService


def wallet(n):
    return '0x' + format(n, '040x')


def future_deadline(days=7):
    return (datetime.utcnow() + timedelta(days=days)).isoformat()


@pytest.fixture
def db():
    """Fresh schema for every test"""
    init_db()
    yield
    drop_db()


@pytest.fixture
def make_profile(db):
    """Onboard profiles with distinct wallets"""
    profiles = ProfileService()
    counter = {'n': 0}

    def _make(role='student', username=None):
        counter['n'] += 1
        n = counter['n']
        return profiles.create_profile(wallet(n), username or f'{role}_{n}', role)

    return _make
