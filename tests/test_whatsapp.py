"""
Tests for the WhatsApp messaging service.
"""

import pytest

from kisan_bot import whatsapp as whatsapp_module
from kisan_bot.whatsapp import MAX_BODY_CHARS, WhatsAppService, delivered, strip_channel_prefix


class _FakeMessages:

    def __init__(self, fail=False):
        self.fail = fail
        self.created = []

    def create(self, **params):
        if self.fail:
            raise RuntimeError("21211 invalid 'To' number")
        self.created.append(params)

        class _Msg:
            sid = "SM123"
        return _Msg()


class _FakeClient:

    def __init__(self, fail=False):
        self.messages = _FakeMessages(fail)


@pytest.fixture
def no_twilio_env(monkeypatch):
    monkeypatch.delenv("TWILIO_ACCOUNT_SID", raising=False)
    monkeypatch.delenv("TWILIO_AUTH_TOKEN", raising=False)


def test_strip_channel_prefix():
    assert strip_channel_prefix("whatsapp:+919800000001") == "+919800000001"
    assert strip_channel_prefix(" +919800000001 ") == "+919800000001"
    assert strip_channel_prefix("") == ""


def test_mock_mode_without_credentials(no_twilio_env):
    service = WhatsAppService()
    assert service.mode == "mock"
    assert service.available is False

    result = service.send_message("whatsapp:+911", "hello")
    assert result["status"] == "mock"
    assert delivered(result)


def test_empty_number_fails(no_twilio_env):
    result = WhatsAppService().send_message("", "hello")
    assert result["status"] == "failed"
    assert not delivered(result)


def test_twilio_send_truncates_and_prefixes():
    service = WhatsAppService(account_sid="AC123", auth_token="secret",
                              from_number="whatsapp:+14155238886")
    assert service.mode == "twilio"
    service._client = _FakeClient()

    result = service.send_message("+911", "x" * 2000)

    assert result == {"status": "sent", "message_sid": "SM123"}
    params = service._client.messages.created[0]
    assert params["to"] == "whatsapp:+911"
    assert params["from_"] == "whatsapp:+14155238886"
    assert len(params["body"]) == MAX_BODY_CHARS


def test_twilio_media_message():
    service = WhatsAppService(account_sid="AC123", auth_token="secret")
    service._client = _FakeClient()

    service.send_media("whatsapp:+911", "https://bot.example.com/responses/a.mp3")

    params = service._client.messages.created[0]
    assert params["media_url"] == ["https://bot.example.com/responses/a.mp3"]
    assert "body" not in params


def test_twilio_error_is_reported_not_raised():
    service = WhatsAppService(account_sid="AC123", auth_token="secret")
    service._client = _FakeClient(fail=True)

    result = service.send_message("+911", "hello")

    assert result["status"] == "failed"
    assert "invalid" in result["error"]


def test_download_media_uses_account_auth(monkeypatch):
    captured = {}

    class _Response:
        content = b"OggS"

        def raise_for_status(self):
            pass

    def fake_get(url, auth=None, timeout=None):
        captured.update(url=url, auth=auth, timeout=timeout)
        return _Response()

    monkeypatch.setattr(whatsapp_module.requests, "get", fake_get)
    service = WhatsAppService(account_sid="AC123", auth_token="secret", timeout=5)

    assert service.download_media("https://api.twilio.com/media/ME1") == b"OggS"
    assert captured["auth"] == ("AC123", "secret")
    assert captured["timeout"] == 5
