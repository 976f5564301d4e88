"""Tests for the FastAPI application and document routes."""

import pytest
from unittest.mock import AsyncMock, patch

from fastapi import FastAPI
from pymongo.errors import ServerSelectionTimeoutError

from docpager.main import create_app
from docpager.pagination import PaginationRequest, PageResult
from docpager.routes.documents import parse_extract


DOCUMENTS_URL = "/v1/collections/tasks/documents"


@pytest.fixture
def empty_page() -> PageResult:
    return PageResult(
        total=0, page=1, max=10, total_pages=0,
        has_next=False, has_previous=False, records=[]
    )


class TestCreateApp:
    """Test application factory."""
    
    def test_create_app(self, app):
        """Test the app is created with the document route registered."""
        assert isinstance(app, FastAPI)
        paths = {route.path for route in app.routes}
        assert "/v1/collections/{collection_name}/documents" in paths
        assert {"/health", "/ready", "/live", "/"} <= paths


class TestHealthEndpoints:
    """Test health endpoints."""
    
    def test_root(self, test_client):
        """Test root endpoint."""
        response = test_client.get("/")
        assert response.status_code == 200
        assert response.json()["health"] == "/health"
    
    def test_live(self, test_client):
        """Test liveness endpoint."""
        assert test_client.get("/live").json()["status"] == "alive"
    
    def test_health_ok(self, test_client):
        """Test health endpoint when MongoDB answers."""
        with patch("docpager.main.mongo_manager.ping", AsyncMock()):
            response = test_client.get("/health")
        
        assert response.status_code == 200
        assert response.json()["database"] == "connected"
    
    def test_health_unavailable(self, test_client):
        """Test health endpoint when MongoDB is down."""
        with patch("docpager.main.mongo_manager.ping", AsyncMock(side_effect=ServerSelectionTimeoutError("down"))):
            response = test_client.get("/health")
        
        assert response.status_code == 503
        assert response.headers["Content-Type"] == "application/problem+json"
        assert response.json()["detail"] == "Database connection failed"
    
    def test_ready_unavailable(self, test_client):
        """Test readiness endpoint when MongoDB is down."""
        with patch("docpager.main.mongo_manager.ping", AsyncMock(side_effect=ServerSelectionTimeoutError("down"))):
            response = test_client.get("/ready")
        
        assert response.status_code == 503


class TestListDocumentsRoute:
    """Test GET /v1/collections/{collection_name}/documents."""
    
    def test_defaults(self, test_client, empty_page, mock_settings):
        """Test defaults come from settings and the page is returned as JSON."""
        with patch("docpager.routes.documents.list_documents", AsyncMock(return_value=empty_page)) as mock_list:
            response = test_client.get(DOCUMENTS_URL)
        
        assert response.status_code == 200
        assert response.json() == empty_page.model_dump()
        
        collection_name, request = mock_list.await_args.args
        assert collection_name == "tasks"
        assert isinstance(request, PaginationRequest)
        assert request.page == 1
        assert request.max == mock_settings.default_page_size
        assert request.sort is True
        assert request.filters == {}
        assert request.timestamp_field == mock_settings.timestamp_field
    
    def test_query_parameters(self, test_client, empty_page):
        """Test every query parameter reaches the pagination request."""
        params = {
            "page": "2",
            "max": "5",
            "sort": "false",
            "global_search": "true",
            "start_date": "2024-01-15",
            "end_date": "2024-01-20",
            "search_between_dates": "true",
            "extract": "title, completed,,",
            "filters[title]": "meeting",
            "filters[completed]": "false",
        }
        with patch("docpager.routes.documents.list_documents", AsyncMock(return_value=empty_page)) as mock_list:
            response = test_client.get(DOCUMENTS_URL, params=params)
        
        assert response.status_code == 200
        request = mock_list.await_args.args[1]
        assert request.page == 2
        assert request.max == 5
        assert request.sort is False
        assert request.global_search is True
        assert request.start_date == "2024-01-15"
        assert request.end_date == "2024-01-20"
        assert request.search_between_dates is True
        assert request.extract == ["title", "completed"]
        assert request.filters == {"title": "meeting", "completed": "false"}
    
    @pytest.mark.parametrize("params,parameter,reason", [
        ({"page": "0"}, "page", "not_positive"),
        ({"page": "-1"}, "page", "not_positive"),
        ({"page": "NaN"}, "page", "not_a_number"),
        ({"page": "abc"}, "page", "not_a_number"),
        ({"max": "0"}, "max", "not_positive"),
        ({"max": "2.5"}, "max", "not_integer"),
    ])
    def test_invalid_pagination(self, test_client, params, parameter, reason):
        """Test invalid page/max give 400 problems and never reach storage."""
        with patch("docpager.routes.documents.list_documents", AsyncMock()) as mock_list:
            response = test_client.get(DOCUMENTS_URL, params=params)
        
        assert response.status_code == 400
        body = response.json()
        assert body["parameter"] == parameter
        assert body["reason"] == reason
        mock_list.assert_not_called()
    
    def test_storage_failure(self, test_client):
        """Test driver errors become 503 problems."""
        failing = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
        with patch("docpager.routes.documents.list_documents", failing):
            response = test_client.get(DOCUMENTS_URL)
        
        assert response.status_code == 503
        assert response.json()["detail"] == "Storage query failed"
    
    def test_invalid_collection_name(self, test_client):
        """Test reserved collection names are rejected before any query."""
        with patch("docpager.db.documents.get_collection", AsyncMock()) as mock_get:
            response = test_client.get("/v1/collections/system.users/documents")
        
        assert response.status_code == 400
        mock_get.assert_not_called()


class TestParseExtract:
    """Test extract parsing."""
    
    def test_parse_extract(self):
        assert parse_extract(None) == []
        assert parse_extract("") == []
        assert parse_extract("title,completed") == ["title", "completed"]
        assert parse_extract(" title , ,completed ") == ["title", "completed"]
