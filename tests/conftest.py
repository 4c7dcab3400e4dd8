"""Pytest shared fixtures for the Tenable VM client tests."""
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from tenablevm.config.settings import TenableConfig
from tenablevm.core.tenable import TenableClient
from tests.fakes import FakeSession


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _no_tenable_env(monkeypatch):
    """Keep a developer's real credentials out of unit tests."""
    for var in ("TENABLE_ACCESS_KEY", "TENABLE_SECRET_KEY", "TENABLE_BASE_URL", "TENABLE_TIMEOUT",
                "TENABLE_USER_PASSWORD", "AUDIT_LOG_DIR", "AUDIT_LOG_SIGNING_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config():
    return TenableConfig(access_key="access123", secret_key="secret456")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(config, session):
    return TenableClient(config, session=session)
