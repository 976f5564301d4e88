"""Pytest configuration and shared fixtures for the docpager tests."""

import logging
import socket
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docpager.config import Settings
from docpager.main import create_app


# Disable logging for cleaner test output
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("pymongo").setLevel(logging.WARNING)

MONGODB_HOST = "localhost"
MONGODB_PORT = 27017


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Override settings for testing."""
    return Settings(
        mongodb_url=f"mongodb://{MONGODB_HOST}:{MONGODB_PORT}",
        mongodb_database="docpager_test",
        mongodb_server_selection_timeout_ms=1000,
        host="127.0.0.1",
        port=8001,
        debug=True,
        log_level="ERROR",
        default_page_size=10
    )


@pytest.fixture
def mock_settings(test_settings: Settings):
    """Mock settings for unit tests."""
    with patch("docpager.routes.documents.get_settings", return_value=test_settings):
        yield test_settings


@pytest.fixture
def app(mock_settings: Settings) -> FastAPI:
    """Create FastAPI application instance for testing."""
    return create_app()


@pytest.fixture
def test_client(app: FastAPI) -> TestClient:
    """Create test client for API testing (lifespan is not run)."""
    return TestClient(app)


@pytest.fixture
def facet_result():
    """Build the single document a $facet/$unwind pipeline returns."""
    def _build(total: int, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if total == 0:
            return [{"data": records}]
        return [{"metadata": {"total": total}, "data": records}]
    return _build


@pytest.fixture
def mock_executor():
    """Executor whose aggregate() returns an empty facet result."""
    executor = AsyncMock()
    executor.aggregate.return_value = [{"data": []}]
    return executor


@pytest.fixture
def sample_tasks() -> List[Dict[str, Any]]:
    """Task documents used by the integration tests.
    
    ``createdAt`` runs one day apart from 2024-01-10 so date ranges and
    recency sorting can be asserted exactly.
    """
    base = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
    tasks = [
        {
            "title": "Complete report",
            "description": "Finish the monthly report",
            "completed": False,
            "priority": "high",
            "estimate": 3,
            "tags": ["work"],
        },
        {
            "title": "Meeting",
            "description": "Attend the weekly meeting",
            "completed": True,
            "priority": "medium",
            "estimate": 1,
            "tags": ["work"],
        },
        {
            "title": "Shopping",
            "description": "Go to the supermarket",
            "completed": False,
            "priority": "low",
            "estimate": 2,
            "tags": ["personal"],
        },
    ]
    for i in range(10):
        tasks.append({
            "title": f"Task {i + 4}",
            "description": f"Task description {i + 4}",
            "completed": i % 2 == 0,
            "priority": ["low", "medium", "high"][i % 3],
            "estimate": i + 4,
            "tags": [f"tag{i}"],
        })
    
    for i, task in enumerate(tasks):
        task["createdAt"] = base + timedelta(days=i)
    return tasks


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


def pytest_runtest_setup(item):
    """Skip tests that require MongoDB if it's not available."""
    if item.get_closest_marker("integration"):
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.settimeout(1)
            result = sock.connect_ex((MONGODB_HOST, MONGODB_PORT))
            sock.close()
            if result != 0:
                pytest.skip("MongoDB not available for integration tests")
        except OSError:
            pytest.skip("Cannot verify MongoDB availability for integration tests")
