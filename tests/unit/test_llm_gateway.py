import httpx
import pytest

from config import LlmRoute
from llm_gateway import LlmGatewayError, complete, completion_fn

MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "Hello there"}]


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


class FakeClient:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _route(**overrides):
    data = {
        "name": "stub",
        "base_url": "http://llm.local",
        "endpoint": "/v1/chat/completions",
        "model": "stub-model",
        "timeout_s": 5,
        "max_retries": 1,
        "api_key_env": "STUB_API_KEY",
        "temperature": 0.2,
        "max_tokens": 64,
    }
    data.update(overrides)
    return LlmRoute(**data)


def _ok(content=" hi "):
    return FakeResponse(payload={"choices": [{"message": {"content": content}}]})


def test_complete_posts_payload_and_returns_content(monkeypatch):
    monkeypatch.setenv("STUB_API_KEY", "secret")
    client = FakeClient(_ok())
    assert complete(MESSAGES, cfg=_route(), client=client) == "hi"
    request = client.requests[0]
    assert request["url"] == "http://llm.local/v1/chat/completions"
    assert request["json"]["model"] == "stub-model"
    assert request["json"]["temperature"] == 0.2
    assert request["json"]["max_tokens"] == 64
    assert request["headers"]["Authorization"] == "Bearer secret"
    assert request["timeout"] == 5


def test_retries_server_errors():
    client = FakeClient(FakeResponse(status_code=503), _ok("second"))
    assert complete(MESSAGES, cfg=_route(), client=client) == "second"
    assert len(client.requests) == 2


def test_client_errors_are_not_retried():
    client = FakeClient(FakeResponse(status_code=401), _ok())
    with pytest.raises(LlmGatewayError):
        complete(MESSAGES, cfg=_route(), client=client)
    assert len(client.requests) == 1


def test_transport_failures_exhaust_retries():
    client = FakeClient(httpx.ConnectError("down"), httpx.ReadTimeout("slow"))
    with pytest.raises(LlmGatewayError):
        complete(MESSAGES, cfg=_route(), client=client)
    assert len(client.requests) == 2


@pytest.mark.parametrize(
    "response",
    [FakeResponse(payload=None), FakeResponse(payload={"choices": []})],
)
def test_bad_payloads_raise(response):
    with pytest.raises(LlmGatewayError):
        complete(MESSAGES, cfg=_route(max_retries=0), client=FakeClient(response))


def test_text_choice_and_bare_content():
    text_choice = FakeResponse(payload={"choices": [{"text": "legacy"}]})
    bare = FakeResponse(payload={"content": "bare"})
    assert complete(MESSAGES, cfg=_route(), client=FakeClient(text_choice)) == "legacy"
    assert complete(MESSAGES, cfg=_route(), client=FakeClient(bare)) == "bare"


def test_completion_fn_binds_route():
    client = FakeClient(_ok("bound"))
    fn = completion_fn(_route(sequential=True), client=client)
    assert fn(MESSAGES) == "bound"


def test_malformed_messages_rejected():
    with pytest.raises(ValueError):
        complete([{"content": "no role"}], cfg=_route(), client=FakeClient(_ok()))
