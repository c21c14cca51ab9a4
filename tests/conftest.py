import os
from datetime import UTC, datetime
from pathlib import Path

import pytest

from trellis.adapters.dev_email import DevEmailAdapter
from trellis.adapters.sqlite.migrator import SQLiteMigrator
from trellis.context import ServiceContext
from trellis.domain.entities import User
from trellis.rules.loader import load_rules
from trellis.rules.models import Rules


@pytest.fixture
def rules() -> Rules:
    # Load REAL rules from project root; tests run from there
    rules_path = Path("rules.yaml").resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def db_path(tmp_path) -> str:
    """A migrated, empty SQLite database."""
    path = os.path.join(str(tmp_path), "trellis.db")
    SQLiteMigrator(path, "migrations").run_migrations()
    return path


@pytest.fixture
def email() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def test_ctx(db_path: str, rules: Rules, email: DevEmailAdapter) -> ServiceContext:
    """Full ServiceContext backed by a temporary SQLite DB."""
    return ServiceContext.create(db_path, rules, email=email)


@pytest.fixture
def make_user(test_ctx: ServiceContext):
    def _make(email: str, display_name: str = "User") -> User:
        now = datetime.now(UTC)
        user = User(
            email=email,
            display_name=display_name,
            password_hash="hash",
            created_at=now,
            updated_at=now,
        )
        test_ctx.user_repo.save(user)
        return user

    return _make
