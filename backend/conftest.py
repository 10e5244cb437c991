from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
# Keep password hashing cheap in tests.
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "8192")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

from lendingdb.database import Base  # noqa: E402
from lendingdb.apps.accounts import models as account_models  # noqa: E402
from lendingdb.apps.inventory import models as inventory_models  # noqa: E402
from lendingdb.apps.lending import models as lending_models  # noqa: E402

LENDING_TABLES = [
    account_models.User.__table__,
    inventory_models.Item.__table__,
    lending_models.LoanRecord.__table__,
]


def _session_factory(engine):
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine, tables=LENDING_TABLES)
    TestingSession = _session_factory(engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def file_session_factory(tmp_path):
    """
    Session factory over a temp-file SQLite database.

    Unlike the in-memory fixture, sessions from this factory use separate
    connections, so threads can run competing transactions against it.
    """
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'lending.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine, tables=LENDING_TABLES)
    try:
        yield _session_factory(engine)
    finally:
        engine.dispose()


@pytest.fixture()
def admin_user(db_session):
    user = account_models.User(
        email="admin@example.com",
        name="Admin",
        role=account_models.AccountRole.ADMIN,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def staff_user(db_session):
    user = account_models.User(
        email="staff@example.com",
        name="Staff",
        role=account_models.AccountRole.STAFF,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user
