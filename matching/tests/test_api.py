"""
Tests for the matching REST API.
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from django.core.cache import cache

from matching.models import MatchJob, MatchRow, MatchRowStatus
from matching.services.resolver import ManufacturerUrlResolver
from matching.services.stores import DjangoRowStore
from matching.tests.fakes import FakeFetcher, FakeSearchProvider, InMemoryIndexStore

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def client(api_client, staff_user):
    api_client.force_authenticate(user=staff_user)
    return api_client


class TestAuthentication:
    def test_trace_requires_auth(self, api_client, match_row):
        response = api_client.post(f"/api/v1/match/rows/{match_row.id}/trace/")
        assert response.status_code in (401, 403)

    def test_approve_requires_auth(self, api_client, match_row):
        response = api_client.post(
            f"/api/v1/match/rows/{match_row.id}/approve/", {"url": "https://acme.com/x"}, format="json"
        )
        assert response.status_code in (401, 403)


class TestTraceEndpoint:
    def test_returns_trace_without_writing(self, client, match_row):
        resolver = ManufacturerUrlResolver(
            search_provider=FakeSearchProvider(configured=False),
            fetcher=FakeFetcher(),
            index_store=InMemoryIndexStore(),
            row_store=DjangoRowStore(),
        )

        with patch("matching.api.views.build_resolver", return_value=resolver):
            response = client.post(f"/api/v1/match/rows/{match_row.id}/trace/")

        assert response.status_code == 200
        trace = response.json()["trace"]
        assert trace["decision"]["reason"] == "no_manufacturer_domain"
        assert trace["queries"][0] == "ABC123 Acme"

        match_row.refresh_from_db()
        assert match_row.status == MatchRowStatus.QUEUED

    def test_unknown_row(self, client):
        response = client.post(f"/api/v1/match/rows/{uuid.uuid4()}/trace/")
        assert response.status_code == 404


class TestApproveEndpoint:
    @patch("matching.services.review.DjangoIndexStore")
    def test_approve(self, mock_store, client, match_row):
        response = client.post(
            f"/api/v1/match/rows/{match_row.id}/approve/",
            {"url": "https://acme.com/widget-pro"},
            format="json",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "resolved_confident"
        assert data["resolved_domain"] == "acme.com"
        assert data["confidence"] == 0.95
        mock_store.return_value.upsert.assert_called_once()

    def test_missing_url(self, client, match_row):
        response = client.post(f"/api/v1/match/rows/{match_row.id}/approve/", {}, format="json")
        assert response.status_code == 400

    def test_unsafe_url(self, client, match_row):
        response = client.post(
            f"/api/v1/match/rows/{match_row.id}/approve/",
            {"url": "http://169.254.169.254/latest"},
            format="json",
        )

        assert response.status_code == 400
        match_row.refresh_from_db()
        assert match_row.status == MatchRowStatus.QUEUED

    def test_unknown_row(self, client):
        response = client.post(
            f"/api/v1/match/rows/{uuid.uuid4()}/approve/", {"url": "https://acme.com/x"}, format="json"
        )
        assert response.status_code == 404


class TestJobEndpoints:
    @pytest.fixture
    def job(self, tenant_id):
        return MatchJob.objects.create(tenant_id=tenant_id)

    @patch("matching.api.views.process_match_job")
    def test_start_job_queues_task(self, mock_task, client, job):
        mock_task.delay.return_value = MagicMock(id="task-123")

        response = client.post(f"/api/v1/match/jobs/{job.id}/start/", {"limit": 10}, format="json")

        assert response.status_code == 202
        assert response.json()["task_id"] == "task-123"
        mock_task.delay.assert_called_once_with(str(job.id), 10)

    @pytest.mark.parametrize("limit", [0, 101, "ten"])
    def test_start_job_rejects_bad_limit(self, client, job, limit):
        response = client.post(f"/api/v1/match/jobs/{job.id}/start/", {"limit": limit}, format="json")
        assert response.status_code == 400

    def test_start_unknown_job(self, client):
        response = client.post(f"/api/v1/match/jobs/{uuid.uuid4()}/start/", {}, format="json")
        assert response.status_code == 404

    def test_requeue(self, client, job):
        MatchRow.objects.create(
            tenant_id=job.tenant_id, job=job, sku="A1", status=MatchRowStatus.UNRESOLVED
        )

        response = client.post(f"/api/v1/match/jobs/{job.id}/requeue/")

        assert response.status_code == 200
        assert response.json()["requeued"] == 1

    def test_requeue_unknown_job(self, client):
        response = client.post(f"/api/v1/match/jobs/{uuid.uuid4()}/requeue/")
        assert response.status_code == 404
