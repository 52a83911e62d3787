"""Web test fixtures."""

import pytest
from fastapi.testclient import TestClient

from examportal.core import lifecycle
from examportal.web.api import create_app


@pytest.fixture
def client(manager, monkeypatch):
    """Test client whose routes use the fixture manager (temp DB, fake clock)."""
    monkeypatch.setattr(lifecycle, "_lifecycle_manager", manager)
    app = create_app()
    return TestClient(app)
