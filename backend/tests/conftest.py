from __future__ import annotations
import os
import tempfile

import pytest

# Settings are read once at import time, so the environment is pinned before
# any deepcheck module loads.
_TMP = tempfile.mkdtemp(prefix="deepcheck_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP}/audit.db"
os.environ["OPENAI_API_KEY"] = ""
os.environ["REPORT_ENDPOINT_URL"] = ""
os.environ["ANALYSIS_URL"] = "https://detector.test/analyze"

from fakes import WEBM_BYTES  # noqa: E402


@pytest.fixture
def webm_bytes() -> bytes:
    return WEBM_BYTES


@pytest.fixture
def app_client():
    from fastapi.testclient import TestClient
    from deepcheck.main import app

    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
