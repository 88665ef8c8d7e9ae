"""Integration tests for the push dispatch API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from barkpush.exceptions import ProtocolError, TransportError
from barkpush.models.push import EncryptionConfig, PingResult, PushResponse
from barkpush.services.push_dispatcher import PushDispatcher

API_URL = "https://x.test/KEY123/"
KEY = "0123456789abcdef0123456789abcdef"


@pytest.fixture
def mock_bark_client():
    """BarkClient stand-in; every transport succeeds."""
    client = MagicMock()
    ok = PushResponse(code=200, message="success", timestamp=1700000000)
    client.send_plain_push = AsyncMock(return_value=ok)
    client.send_encrypted_push = AsyncMock(return_value=ok)
    client.send_api_v2_push = AsyncMock(return_value=ok)
    client.ping = AsyncMock(return_value=PingResult(code=200, message="pong", latency_ms=12))
    return client


@pytest.fixture
def dispatcher(mock_bark_client):
    return PushDispatcher(mock_bark_client)


@pytest.fixture
def push_app(mock_bark_client, dispatcher):
    """Test app with the push router and overridden services."""
    from barkpush.api import health, push
    from barkpush.dependencies import get_bark_client, get_push_dispatcher

    app = FastAPI(title="barkpush test")
    app.include_router(health.router)
    app.include_router(push.router)

    app.dependency_overrides[get_push_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_bark_client] = lambda: mock_bark_client
    return app


@pytest.fixture
def push_client(push_app):
    with TestClient(push_app) as client:
        yield client


def test_health_needs_no_auth(push_client):
    response = push_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "version" in response.json()


class TestAuth:
    def test_missing_token(self, push_client):
        response = push_client.post("/push", json={"message": "hi", "apiURL": API_URL})
        assert response.status_code in (401, 403)

    def test_wrong_token(self, push_client):
        response = push_client.post(
            "/push",
            json={"message": "hi", "apiURL": API_URL},
            headers={"Authorization": "Bearer wrong"},
        )
        assert response.status_code == 401


class TestSendPush:
    def test_plain_push(self, push_client, auth_headers, mock_bark_client):
        response = push_client.post(
            "/push",
            json={"message": "hello", "title": "Hi", "apiURL": API_URL},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["encrypted"] is False
        assert data["id"]
        assert data["response"]["code"] == 200
        keys = [p["key"] for p in data["parameters"]]
        assert keys[:5] == ["message", "autoCopy", "copy", "id", "sound"]
        assert "title" in keys

        sent = mock_bark_client.send_plain_push.call_args[0][0]
        assert sent.message == "hello"
        assert sent.id == data["id"]

    def test_caller_id_is_kept(self, push_client, auth_headers):
        response = push_client.post(
            "/push",
            json={"message": "hello", "apiURL": API_URL, "uuid": "my-id"},
            headers=auth_headers,
        )

        assert response.json()["id"] == "my-id"

    def test_gateway_rejection_is_not_success(self, push_client, auth_headers, mock_bark_client):
        mock_bark_client.send_plain_push.return_value = PushResponse(code=400, message="bad key")

        response = push_client.post(
            "/push", json={"message": "hello", "apiURL": API_URL}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["response"]["message"] == "bad key"

    def test_v2_override(self, push_client, auth_headers, mock_bark_client):
        response = push_client.post(
            "/push",
            json={
                "message": "hello",
                "apiURL": API_URL,
                "api_version": "v2",
                "devices": [
                    {"apiURL": "https://a.test/K1/", "server": "https://a.test", "deviceKey": "K1"},
                    {"apiURL": "https://b.test/K2/", "server": "https://b.test", "deviceKey": "K2"},
                ],
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        mock_bark_client.send_api_v2_push.assert_awaited_once()
        sent = mock_bark_client.send_api_v2_push.call_args[0][0]
        assert [d.device_key for d in sent.devices] == ["K1", "K2"]
        assert response.json()["parameters"][-1] == {"key": "device_keys", "value": "K1,K2"}

    def test_empty_message_rejected(self, push_client, auth_headers):
        response = push_client.post(
            "/push", json={"message": "", "apiURL": API_URL}, headers=auth_headers
        )
        assert response.status_code == 422

    def test_missing_api_url_rejected(self, push_client, auth_headers):
        response = push_client.post("/push", json={"message": "hi"}, headers=auth_headers)
        assert response.status_code == 422

    def test_api_url_without_scheme_rejected(self, push_client, auth_headers, mock_bark_client):
        response = push_client.post(
            "/push", json={"message": "hi", "apiURL": "x.test/KEY/"}, headers=auth_headers
        )

        assert response.status_code == 422
        mock_bark_client.send_plain_push.assert_not_called()

    def test_device_server_without_scheme_rejected(self, push_client, auth_headers):
        response = push_client.post(
            "/push",
            json={
                "message": "hi",
                "apiURL": API_URL,
                "api_version": "v2",
                "devices": [
                    {"apiURL": "https://b.test/K2/", "server": "b.test", "deviceKey": "K2"},
                ],
            },
            headers=auth_headers,
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("volume", [99, "loud"])
    def test_invalid_volume_rejected(self, push_client, auth_headers, volume):
        response = push_client.post(
            "/push",
            json={"message": "hi", "apiURL": API_URL, "volume": volume},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_encrypt_without_key(self, push_client, auth_headers):
        response = push_client.post(
            "/push",
            json={"message": "hello", "apiURL": API_URL, "encrypt": True},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "ConfigurationError"

    def test_protocol_error_maps_to_502(self, push_client, auth_headers, mock_bark_client):
        mock_bark_client.send_plain_push.side_effect = ProtocolError(
            "HTTP error! status: 500", status_code=500
        )

        response = push_client.post(
            "/push", json={"message": "hello", "apiURL": API_URL}, headers=auth_headers
        )

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["error"] == "ProtocolError"
        assert detail["status_code"] == 500

    def test_transport_error_maps_to_502(self, push_client, auth_headers, mock_bark_client):
        mock_bark_client.send_plain_push.side_effect = TransportError("Network request failed")

        response = push_client.post(
            "/push", json={"message": "hello", "apiURL": API_URL}, headers=auth_headers
        )

        assert response.status_code == 502


class TestEncryptedPush:
    @pytest.fixture
    def dispatcher(self, mock_bark_client):
        return PushDispatcher(mock_bark_client, encryption_config=EncryptionConfig(key=KEY))

    def test_configured_encryption(self, push_client, auth_headers, mock_bark_client):
        response = push_client.post(
            "/push", json={"message": "hello", "apiURL": API_URL}, headers=auth_headers
        )

        data = response.json()
        assert data["encrypted"] is True
        assert data["parameters"][0] == {"key": "iv", "value": "***"}
        assert data["parameters"][1] == {"key": "ciphertext", "value": "***"}
        mock_bark_client.send_encrypted_push.assert_awaited_once()

    def test_encrypt_false_sends_plain(self, push_client, auth_headers, mock_bark_client):
        response = push_client.post(
            "/push",
            json={"message": "hello", "apiURL": API_URL, "encrypt": False},
            headers=auth_headers,
        )

        assert response.json()["encrypted"] is False
        mock_bark_client.send_plain_push.assert_awaited_once()
        mock_bark_client.send_encrypted_push.assert_not_called()


def test_preview_parameters(push_client, auth_headers, mock_bark_client):
    response = push_client.post(
        "/push/parameters",
        json={"message": "hello", "apiURL": API_URL, "copy": "123456"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["encrypted"] is False
    assert data["id"]
    assert {"key": "copy", "value": "123456"} in data["parameters"]
    mock_bark_client.send_plain_push.assert_not_called()


class TestPing:
    def test_ping(self, push_client, auth_headers, mock_bark_client):
        response = push_client.get("/ping", params={"api_url": API_URL}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"code": 200, "message": "pong", "latency_ms": 12}
        mock_bark_client.ping.assert_awaited_once_with(API_URL)

    def test_invalid_url(self, push_client, auth_headers):
        response = push_client.get(
            "/ping", params={"api_url": "https://x.test"}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_unreachable_gateway(self, push_client, auth_headers, mock_bark_client):
        mock_bark_client.ping.side_effect = TransportError("Network request failed")

        response = push_client.get("/ping", params={"api_url": API_URL}, headers=auth_headers)

        assert response.status_code == 502


@pytest.mark.parametrize(("algorithm", "length"), [("AES128", 16), ("AES192", 24), ("AES256", 32)])
def test_encryption_key(push_client, auth_headers, algorithm, length):
    response = push_client.get(
        "/encryption/key", params={"algorithm": algorithm}, headers=auth_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["algorithm"] == algorithm
    assert len(data["key"]) == length
    assert len(data["iv"]) == 16


def test_unknown_algorithm_rejected(push_client, auth_headers):
    response = push_client.get(
        "/encryption/key", params={"algorithm": "DES"}, headers=auth_headers
    )
    assert response.status_code == 422
