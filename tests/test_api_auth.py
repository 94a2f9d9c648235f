"""Tests for API authentication."""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from jose import JWTError, jwt

from scheduled_research.api.auth import create_access_token, verify_token
from scheduled_research.core.config import settings


class TestHealthEndpoint:
    """Tests for health check endpoint - should not require auth."""

    def test_health_check_no_auth(self, test_client: TestClient):
        """Health endpoint should work without authentication."""
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAuthenticatedEndpoints:
    """Every other endpoint answers 401 without a bearer token."""

    @pytest.mark.parametrize("method,path", [
        ("get", "/tasks"),
        ("post", "/tasks"),
        ("get", "/tasks/some-id"),
        ("delete", "/tasks/some-id"),
        ("post", "/tasks/some-id/run"),
        ("get", "/tasks/some-id/runs"),
        ("post", "/execute-scheduled-task"),
        ("post", "/export-report"),
    ])
    def test_requires_auth(self, test_client: TestClient, method: str, path: str):
        response = test_client.request(method.upper(), path, json={})
        assert response.status_code == 401
        assert response.json()["detail"] == "Could not validate credentials"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_trigger_does_not_run_without_auth(self, test_client: TestClient, store, sample_job, mock_search):
        store.save_job(sample_job)
        store.create_run(sample_job.id)

        response = test_client.post("/execute-scheduled-task", json={})

        assert response.status_code == 401
        mock_search.search.assert_not_awaited()

    def test_list_tasks_with_valid_token(self, test_client: TestClient, auth_headers: dict):
        """GET /tasks should work with valid token."""
        response = test_client.get("/tasks", headers=auth_headers)
        assert response.status_code == 200
        assert isinstance(response.json(), list)

    def test_expired_token_rejected(self, test_client: TestClient, expired_token: str):
        response = test_client.get("/tasks", headers={"Authorization": f"Bearer {expired_token}"})
        assert response.status_code == 401

    def test_invalid_token_rejected(self, test_client: TestClient, jwt_secret: str):
        response = test_client.get("/tasks", headers={"Authorization": "Bearer invalid-token"})
        assert response.status_code == 401

    def test_wrong_secret_rejected(self, test_client: TestClient, jwt_secret: str):
        forged = jwt.encode({"sub": "intruder"}, "another-secret", algorithm="HS256")
        response = test_client.get("/tasks", headers={"Authorization": f"Bearer {forged}"})
        assert response.status_code == 401


class TestJWTUtilities:
    """Tests for token creation and verification."""

    def test_create_and_verify_token(self, jwt_secret: str):
        token = create_access_token(subject="scheduler", scopes=["trigger"])
        data = verify_token(token)

        assert data.sub == "scheduler"
        assert data.scopes == ["trigger"]
        assert data.exp is not None

    def test_verify_expired_token(self, jwt_secret: str):
        token = create_access_token(subject="scheduler", expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            verify_token(token)

    def test_token_without_subject(self, jwt_secret: str):
        token = jwt.encode({"scopes": []}, jwt_secret, algorithm="HS256")
        with pytest.raises(JWTError):
            verify_token(token)

    def test_no_secret_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "jwt_secret_key", None)
        monkeypatch.delenv("JWT_SECRET_KEY", raising=False)

        with pytest.raises(ValueError):
            create_access_token(subject="scheduler")
        with pytest.raises(JWTError):
            verify_token("anything")

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setattr(settings, "jwt_secret_key", None)
        monkeypatch.setenv("JWT_SECRET_KEY", "env-secret")

        token = create_access_token(subject="cron")
        assert verify_token(token).sub == "cron"
