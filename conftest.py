"""
Root-level shared test fixtures.

Inherited by the passcli suite and the top-level tests/ directory.
"""

from __future__ import annotations

import pytest

from passdeck.config import reset_config


@pytest.fixture
def clean_env(monkeypatch):
    """Remove passdeck env vars that leak between tests."""
    for key in [
        "PASSDECK_CLI_PATH",
        "PASSDECK_CLI_TIMEOUT",
        "PASSDECK_PASSWORD_LENGTH",
        "PASSDECK_PASSWORD_TYPE",
        "PASSDECK_CACHE_DIR",
        "PASSDECK_MOCK_DATA",
    ]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def cache_dir(tmp_path):
    """Throwaway directory for LocalStorage files."""
    path = tmp_path / "cache"
    path.mkdir()
    return path
