import pytest

from kisansetu.core.config import settings


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET_KEY", "test-secret-key-for-kisansetu-tests-0123456789")
