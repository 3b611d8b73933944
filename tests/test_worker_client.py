"""
Tests for keyfleet/worker/client.py - worker control channel.

Tests cover:
- POST /job success and failure propagation
- GET /jobs parsing
- GET /jobs degrading to an empty snapshot on network/protocol failure
- Certificate name pinning on the HTTPS adapter
"""

from unittest.mock import MagicMock, Mock, patch

import pytest
import requests as real_requests

from keyfleet.schemas import JobStatus
from keyfleet.worker.client import PinnedNameAdapter, WorkerClient
from keyfleet.worker.errors import WorkerError, WorkerProtocolError, WorkerTimeout, WorkerUnavailable


def _response(status_code=200, body=None, json_error=False):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = "OK" if response.ok else "Unauthorized"
    if json_error:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    with patch("keyfleet.worker.client.requests.Session") as session_class:
        mock_session = MagicMock()
        session_class.return_value = mock_session
        yield mock_session


@pytest.fixture
def client(session):
    return WorkerClient(ca_cert="ca.pem", port=1443, username="huffin", passphrase="secret",
                        servername="huffin.generator", timeout=5)


class TestCreateJob:
    def test_posts_prefix_and_email(self, client, session):
        session.request.return_value = _response(body={
            "id": 7, "config": {"prefix": "abc", "email": "ops@example.com"}, "status": "queued",
        })

        job = client.create_job("203.0.113.5", "abc", "ops@example.com")

        assert job.id == 7
        assert job.status == JobStatus.QUEUED
        method, url = session.request.call_args.args
        assert method == "POST"
        assert url == "https://203.0.113.5:1443/job"
        assert session.request.call_args.kwargs["json"] == {"prefix": "abc", "email": "ops@example.com"}

    def test_omitted_email_is_left_out_of_body(self, client, session):
        session.request.return_value = _response(body={"id": 8, "config": {"prefix": "abc"}})

        client.create_job("203.0.113.5", "abc")

        assert session.request.call_args.kwargs["json"] == {"prefix": "abc"}

    def test_session_is_authenticated_and_pinned(self, client, session):
        assert session.auth == ("huffin", "secret")
        assert session.verify == "ca.pem"
        scheme, adapter = session.mount.call_args.args
        assert scheme == "https://"
        assert isinstance(adapter, PinnedNameAdapter)
        assert adapter.servername == "huffin.generator"

    def test_every_request_verifies_against_worker_ca(self, client, session):
        session.request.return_value = _response(body={"jobs": []})
        client.get_jobs("203.0.113.5")
        assert session.request.call_args.kwargs["verify"] == "ca.pem"
        assert session.trust_env is False

    def test_connection_error_propagates(self, client, session):
        session.request.side_effect = real_requests.ConnectionError("Connection refused")
        with pytest.raises(WorkerUnavailable):
            client.create_job("203.0.113.5", "abc")

    def test_timeout_propagates(self, client, session):
        session.request.side_effect = real_requests.Timeout("timed out")
        with pytest.raises(WorkerTimeout):
            client.create_job("203.0.113.5", "abc")

    def test_http_error_propagates(self, client, session):
        session.request.return_value = _response(status_code=401)
        with pytest.raises(WorkerError, match="401"):
            client.create_job("203.0.113.5", "abc")

    def test_unexpected_descriptor(self, client, session):
        session.request.return_value = _response(body={"nope": True})
        with pytest.raises(WorkerProtocolError):
            client.create_job("203.0.113.5", "abc")


class TestGetJobs:
    def test_parses_snapshot(self, client, session):
        session.request.return_value = _response(body={
            "jobs": [{"id": 1, "config": {"prefix": "abc"}, "status": "running",
                      "stats": {"ticks": 120}, "elapsed": 2000, "result": None}],
            "history": [{"id": 0, "config": {"prefix": "abc"}, "status": "completed",
                         "stats": {"ticks": 50}, "elapsed": 900, "result": "abcdef"}],
            "queue": [],
        })

        snapshot = client.get_jobs("203.0.113.5")

        assert snapshot.reachable
        assert [job.stats.ticks for job in snapshot.all_jobs()] == [120, 50]
        assert snapshot.history[0].result == "abcdef"
        assert session.request.call_args.args == ("GET", "https://203.0.113.5:1443/jobs")

    def test_unreachable_node_gives_empty_snapshot(self, client, session):
        session.request.side_effect = real_requests.ConnectionError("No route to host")
        snapshot = client.get_jobs("203.0.113.5")
        assert snapshot.all_jobs() == []
        assert not snapshot.reachable

    def test_malformed_body_gives_empty_snapshot(self, client, session):
        session.request.return_value = _response(json_error=True)
        snapshot = client.get_jobs("203.0.113.5")
        assert snapshot.all_jobs() == []
        assert not snapshot.reachable

    def test_negative_ticks_rejected(self, client, session):
        session.request.return_value = _response(body={
            "jobs": [{"config": {"prefix": "abc"}, "status": "running", "stats": {"ticks": -1}}],
        })
        assert not client.get_jobs("203.0.113.5").reachable


def test_adapter_validates_against_fixed_name():
    adapter = PinnedNameAdapter("huffin.generator")
    assert adapter.poolmanager.connection_pool_kw["server_hostname"] == "huffin.generator"
    assert adapter.poolmanager.connection_pool_kw["assert_hostname"] == "huffin.generator"


def test_environment_bundle_and_proxy_do_not_override_worker_ca(monkeypatch):
    monkeypatch.setenv("REQUESTS_CA_BUNDLE", "/etc/ssl/certs/ca-certificates.crt")
    monkeypatch.setenv("CURL_CA_BUNDLE", "/etc/ssl/certs/ca-certificates.crt")
    monkeypatch.setenv("HTTPS_PROXY", "http://proxy.internal:3128")
    client = WorkerClient(ca_cert="ca.pem", servername="huffin.generator")

    settings = client.session.merge_environment_settings(
        client._url("203.0.113.5", "/jobs"), {}, None, "ca.pem", None,
    )

    assert settings["verify"] == "ca.pem"
    assert not settings["proxies"]
