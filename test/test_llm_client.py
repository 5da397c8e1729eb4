import json

import httpx
import pytest

from llm import llm_client
from llm.llm_client import LLMClient, build_provider, parse_json_object
from llm.prompts import build_system_prompt
from llm.providers.openai_provider import OpenAIProvider
from remember_me.errors import AssistantError, ErrorKind


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://llm.test/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


def test_json_with_extra_text_around_it(fake_provider_factory):
    provider = fake_provider_factory(
        'Sure! Here is the result: {"title": "Call mom", "intent": "reminder"} Thanks.'
    )
    out = LLMClient(provider=provider).complete_json(system="s", user="Call mom")
    assert out == {"title": "Call mom", "intent": "reminder"}
    assert provider.calls == [("s", "Call mom")]


def test_invalid_json_is_malformed(fake_provider_factory):
    client = LLMClient(provider=fake_provider_factory("INVALID OUTPUT"))
    with pytest.raises(AssistantError) as exc:
        client.complete_json(system="s", user="anything")
    assert exc.value.kind == ErrorKind.MALFORMED_RESPONSE


def test_json_array_is_malformed():
    with pytest.raises(AssistantError) as exc:
        parse_json_object('[{"title": "x"}]')
    assert exc.value.kind == ErrorKind.MALFORMED_RESPONSE


def test_empty_answer_is_malformed(fake_provider_factory):
    with pytest.raises(AssistantError) as exc:
        LLMClient(provider=fake_provider_factory("")).complete(system="s", user="u")
    assert exc.value.kind == ErrorKind.MALFORMED_RESPONSE


@pytest.mark.parametrize(
    "status, kind",
    [
        (401, ErrorKind.AUTH_FAILURE),
        (403, ErrorKind.AUTH_FAILURE),
        (429, ErrorKind.RATE_LIMITED),
        (500, ErrorKind.UPSTREAM_ERROR),
        (404, ErrorKind.UPSTREAM_ERROR),
    ],
)
def test_http_failures_are_distinguished(failing_provider_factory, status, kind):
    client = LLMClient(provider=failing_provider_factory(_status_error(status)))
    with pytest.raises(AssistantError) as exc:
        client.complete(system="s", user="u")
    assert exc.value.kind == kind


def test_transport_failure_is_network_error(failing_provider_factory):
    client = LLMClient(provider=failing_provider_factory(httpx.ConnectError("refused")))
    with pytest.raises(AssistantError) as exc:
        client.complete(system="s", user="u")
    assert exc.value.kind == ErrorKind.NETWORK_ERROR
    assert exc.value.retryable


def test_unexpected_answer_shape_is_malformed(failing_provider_factory):
    client = LLMClient(provider=failing_provider_factory(KeyError("choices")))
    with pytest.raises(AssistantError) as exc:
        client.complete(system="s", user="u")
    assert exc.value.kind == ErrorKind.MALFORMED_RESPONSE


def test_missing_api_key_is_service_unavailable(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(llm_client, "LLM_PROVIDER", "openai")
    with pytest.raises(AssistantError) as exc:
        LLMClient().complete(system="s", user="u")
    assert exc.value.kind == ErrorKind.SERVICE_UNAVAILABLE


def test_unknown_provider_is_rejected():
    with pytest.raises(RuntimeError):
        build_provider("carrier-pigeon")


def test_mock_provider_uses_reference_time_from_prompt(now):
    provider = build_provider("mock")
    answer = json.loads(provider.generate(system=build_system_prompt(now), user="Dentist tomorrow at 2pm"))
    assert answer["title"] == "Dentist"
    assert answer["date"].startswith("2024-01-02T14:00:00")
    assert answer["intent"] == "create_event"
    assert "dentist" in answer["keywords"]


def test_system_prompt_carries_reference_time(now):
    prompt = build_system_prompt(now)
    assert "Current reference time: 2024-01-01T10:00:00+00:00" in prompt
    assert '"title"' in prompt


def test_openai_provider_request_and_answer():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": '{"title": "Gym"}'}}]})

    provider = OpenAIProvider(api_key="sk-test", model="gpt-test", base_url="https://llm.test/v1/",
                              transport=httpx.MockTransport(handler))
    out = LLMClient(provider=provider).complete_json(system="sys", user="gym tomorrow")

    assert out == {"title": "Gym"}
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "gpt-test"
    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]


def test_openai_provider_status_errors_are_translated():
    transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"error": "slow down"}))
    provider = OpenAIProvider(api_key="sk-test", transport=transport)
    with pytest.raises(AssistantError) as exc:
        LLMClient(provider=provider).complete(system="s", user="u")
    assert exc.value.kind == ErrorKind.RATE_LIMITED


def test_openai_provider_without_choices_is_malformed():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
    provider = OpenAIProvider(api_key="sk-test", transport=transport)
    with pytest.raises(AssistantError) as exc:
        LLMClient(provider=provider).complete(system="s", user="u")
    assert exc.value.kind == ErrorKind.MALFORMED_RESPONSE


@pytest.mark.parametrize(
    "exc, kind",
    [
        (httpx.DecodingError("bad gzip"), ErrorKind.UPSTREAM_ERROR),
        (httpx.TooManyRedirects("redirect loop"), ErrorKind.UPSTREAM_ERROR),
        (httpx.InvalidURL("no scheme"), ErrorKind.SERVICE_UNAVAILABLE),
        (httpx.UnsupportedProtocol("ftp"), ErrorKind.NETWORK_ERROR),
    ],
)
def test_other_httpx_failures_are_translated(failing_provider_factory, exc, kind):
    client = LLMClient(provider=failing_provider_factory(exc))
    with pytest.raises(AssistantError) as caught:
        client.complete(system="s", user="u")
    assert caught.value.kind == kind

