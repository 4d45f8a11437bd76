"""Shared fixtures for the VideoAI test suite"""

import os
import tempfile

# Keep module-level app construction out of the working directory
_SCRATCH = tempfile.mkdtemp(prefix="videoai-tests-")
os.environ.setdefault("DATA_DIR", os.path.join(_SCRATCH, "data"))
os.environ.setdefault("OUTPUT_DIR", os.path.join(_SCRATCH, "output"))

import pytest
from fastapi.testclient import TestClient

from videoai.config import get_settings
from videoai.main import create_app

_ISOLATED_ENV = (
    "GEMINI_API_KEY",
    "API_KEY",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "S3_BUCKET_NAME",
    "GENERATION_TIMEOUT_SECONDS",
    "MAX_CONCURRENT_JOBS",
    "DEBUG",
)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings pointing at a throwaway data/output directory, no external services."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "output"))
    for key in _ISOLATED_ENV:
        monkeypatch.delenv(key, raising=False)

    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def client(settings):
    with TestClient(create_app()) as test_client:
        yield test_client
