import httpx
import pytest

from chat_core.domain.exceptions import ApiError, NetworkError, ProviderError, RateLimitError, UnknownProviderError
from chat_core.domain.models import Message
from chat_core.providers import create_provider
from chat_core.providers.gemini_client import GeminiChatProvider
from chat_core.providers.openai_client import OpenAIChatProvider
from chat_core.providers.registry import GLM_CONFIG, get_provider_config


class SettingsStub:
    provider = "openai"
    key = "sk-test"
    model = ""
    system_prompt = []
    base_url = None
    http_timeout = 1.0


def _read_all(stream):
    out = b""
    while True:
        data = stream.read(1024)
        if not data:
            return out.decode("utf-8")
        out += data


def _fake_client(monkeypatch, lines, status_code=200, captured=None, body=""):
    captured = captured if captured is not None else {}

    class FakeResponse:
        def __init__(self):
            self.status_code = status_code
            self.text = body

        def read(self):
            return body.encode()

        def iter_lines(self):
            for line in lines:
                yield line

    class StreamContext:
        def __enter__(self):
            return FakeResponse()

        def __exit__(self, *args):
            captured["stream_closed"] = True
            return False

    class Client:
        def __init__(self, *a, **kw):
            captured["timeout"] = kw.get("timeout")

        def __enter__(self):
            return self

        def __exit__(self, *a):
            captured["client_closed"] = True
            return False

        def stream(self, method, url, json=None, headers=None):
            captured["method"] = method
            captured["url"] = url
            captured["payload"] = json
            captured["headers"] = headers
            return StreamContext()

    monkeypatch.setattr("httpx.Client", Client)
    return captured


def test_create_provider_by_name():
    class S(SettingsStub):
        provider = "google"

    assert isinstance(create_provider(SettingsStub()), OpenAIChatProvider)
    assert isinstance(create_provider(S()), GeminiChatProvider)


def test_create_provider_openai_compatible_names():
    class S(SettingsStub):
        provider = "GLM"

    provider = create_provider(S())
    assert isinstance(provider, OpenAIChatProvider)
    assert provider.name == "glm"
    assert provider.model == GLM_CONFIG.default_model
    assert provider.base_url == GLM_CONFIG.base_url


def test_create_provider_unknown():
    class S(SettingsStub):
        provider = "acme"

    with pytest.raises(UnknownProviderError) as exc:
        create_provider(S())
    assert exc.value.code == "UNKNOWN_PROVIDER"
    with pytest.raises(UnknownProviderError):
        get_provider_config("")


def test_openai_stream_chat(monkeypatch):
    lines = [
        'data: {"choices": [{"index": 0, "delta": {"role": "assistant"}}]}',
        'data: {"choices": [{"index": 0, "delta": {"content": "hel"}}]}',
        "",
        "data: not json",
        'data: {"choices": [{"index": 0, "delta": {"content": "lo"}, "finish_reason": "stop"}]}',
        "data: [DONE]",
    ]
    captured = _fake_client(monkeypatch, lines)

    class S(SettingsStub):
        model = "gpt-test"
        system_prompt = ["be brief", "be kind"]

    provider = OpenAIChatProvider(S())
    stream = provider.stream_chat(
        [Message(role="user", content="hi"), Message(role="assistant", content="yo"), Message(role="user", content="?")]
    )
    assert _read_all(stream) == "hello"
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer sk-test"
    payload = captured["payload"]
    assert payload["model"] == "gpt-test"
    assert payload["stream"] is True
    assert payload["messages"] == [
        {"role": "system", "content": "be brief\nbe kind"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "yo"},
        {"role": "user", "content": "?"},
    ]
    stream.close()


def test_openai_rate_limit_fails_at_setup(monkeypatch):
    captured = _fake_client(monkeypatch, [], status_code=429)
    with pytest.raises(RateLimitError):
        OpenAIChatProvider(SettingsStub()).stream_chat([Message(role="user", content="hi")])
    assert captured["client_closed"] is True


def test_openai_api_error_fails_at_setup(monkeypatch):
    _fake_client(monkeypatch, [], status_code=401, body='{"error": "bad key"}')
    with pytest.raises(ApiError) as exc:
        OpenAIChatProvider(SettingsStub()).stream_chat([Message(role="user", content="hi")])
    assert exc.value.extra["http_status"] == 401
    assert "bad key" in exc.value.message


def test_openai_network_error(monkeypatch):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def stream(self, *a, **kw):
            raise httpx.ConnectError("dns failure")

    monkeypatch.setattr("httpx.Client", Client)
    with pytest.raises(NetworkError):
        OpenAIChatProvider(SettingsStub()).stream_chat([Message(role="user", content="hi")])


def test_missing_key_and_empty_conversation():
    class NoKey(SettingsStub):
        key = None

    with pytest.raises(ProviderError) as exc:
        OpenAIChatProvider(NoKey()).stream_chat([Message(role="user", content="hi")])
    assert exc.value.code == "MISSING_API_KEY"
    with pytest.raises(ProviderError) as exc:
        GeminiChatProvider(SettingsStub()).stream_chat([])
    assert exc.value.code == "EMPTY_CONVERSATION"


def test_closed_provider_rejects_calls():
    provider = OpenAIChatProvider(SettingsStub())
    provider.close()
    provider.close()
    with pytest.raises(ProviderError):
        provider.stream_chat([Message(role="user", content="hi")])


def test_gemini_sends_history_and_newest_message(monkeypatch):
    lines = [
        'data: {"candidates": [{"content": {"role": "model", "parts": [{"text": "Hel"}]}}]}',
        'data: {"candidates": [{"content": {"role": "model", "parts": [{"text": "lo"}]}}]}',
    ]
    captured = _fake_client(monkeypatch, lines)

    class S(SettingsStub):
        provider = "google"
        key = "g-key"
        model = "gemini-test"
        system_prompt = ["answer in English"]

    provider = GeminiChatProvider(S())
    stream = provider.stream_chat(
        [
            Message(role="user", content="first"),
            Message(role="assistant", content="reply"),
            Message(role="user", content="second"),
        ]
    )
    assert _read_all(stream) == "Hello"
    assert captured["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-test:streamGenerateContent?alt=sse"
    )
    assert captured["headers"]["x-goog-api-key"] == "g-key"
    payload = captured["payload"]
    assert payload["contents"] == [
        {"role": "user", "parts": [{"text": "first"}]},
        {"role": "model", "parts": [{"text": "reply"}]},
        {"role": "user", "parts": [{"text": "second"}]},
    ]
    assert payload["systemInstruction"] == {"parts": [{"text": "answer in English"}]}
    assert len(provider.chat.history) == 2


def test_stream_cleanup_closes_http_resources(monkeypatch):
    captured = _fake_client(monkeypatch, ['data: {"choices": [{"delta": {"content": "x"}}]}'])
    stream = OpenAIChatProvider(SettingsStub()).stream_chat([Message(role="user", content="hi")])
    assert _read_all(stream) == "x"
    assert captured["stream_closed"] is True
    assert captured["client_closed"] is True
