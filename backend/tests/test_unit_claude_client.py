from __future__ import annotations

import asyncio
from types import SimpleNamespace

import anthropic
import httpx
import pytest

from jobmatch.components.integrations.claude.service import ClaudeMessagesClient, to_transport_error
from jobmatch.components.matching.errors import ParseError, Retryability, TransportError, TransportErrorKind, classify_error

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _status_error(cls, status_code):
    response = httpx.Response(status_code, request=_REQUEST)
    return cls(f"status {status_code}", response=response, body=None)


def _fake_sdk(response=None, error=None):
    calls = []

    async def create(**kwargs):
        calls.append(kwargs)
        if error is not None:
            raise error
        return response

    return SimpleNamespace(messages=SimpleNamespace(create=create)), calls


def _send(client, prompt="Analyze this"):
    return asyncio.run(
        client.send(prompt, model="claude-sonnet-4-20250514", max_tokens=2000, timeout_seconds=30.0, system="JSON only")
    )


def test_send_returns_text_and_usage():
    response = SimpleNamespace(
        content=[SimpleNamespace(type="text", text='{"overall_score": 50}')],
        usage=SimpleNamespace(input_tokens=321, output_tokens=123),
        model="claude-sonnet-4-20250514",
    )
    sdk, calls = _fake_sdk(response)

    reply = _send(ClaudeMessagesClient(client=sdk))

    assert reply.text == '{"overall_score": 50}'
    assert (reply.input_tokens, reply.output_tokens) == (321, 123)
    assert calls == [
        {
            "model": "claude-sonnet-4-20250514",
            "max_tokens": 2000,
            "messages": [{"role": "user", "content": "Analyze this"}],
            "timeout": 30.0,
            "system": "JSON only",
        }
    ]


def test_send_skips_non_text_blocks():
    response = SimpleNamespace(
        content=[SimpleNamespace(type="tool_use", text=None), SimpleNamespace(type="text", text="{}")],
        usage=SimpleNamespace(input_tokens=1, output_tokens=1),
    )
    sdk, _ = _fake_sdk(response)

    assert _send(ClaudeMessagesClient(client=sdk)).text == "{}"


def test_reply_without_text_is_a_parse_error():
    response = SimpleNamespace(content=[SimpleNamespace(type="tool_use")], usage=None)
    sdk, _ = _fake_sdk(response)

    with pytest.raises(ParseError, match="Unexpected response type"):
        _send(ClaudeMessagesClient(client=sdk))


def test_missing_usage_records_zero_tokens():
    response = SimpleNamespace(content=[SimpleNamespace(type="text", text="{}")], usage=None)
    sdk, _ = _fake_sdk(response)

    reply = _send(ClaudeMessagesClient(client=sdk))

    assert (reply.input_tokens, reply.output_tokens) == (0, 0)


@pytest.mark.parametrize(
    "error,kind,status_code",
    [
        (anthropic.APITimeoutError(request=_REQUEST), TransportErrorKind.TIMEOUT, None),
        (anthropic.APIConnectionError(request=_REQUEST), TransportErrorKind.CONNECTION, None),
        (_status_error(anthropic.AuthenticationError, 401), TransportErrorKind.AUTHENTICATION, 401),
        (_status_error(anthropic.PermissionDeniedError, 403), TransportErrorKind.AUTHENTICATION, 403),
        (_status_error(anthropic.RateLimitError, 429), TransportErrorKind.RATE_LIMIT, 429),
        (_status_error(anthropic.InternalServerError, 500), TransportErrorKind.API_STATUS, 500),
    ],
)
def test_sdk_errors_become_retryable_transport_errors(error, kind, status_code):
    sdk, _ = _fake_sdk(error=error)

    with pytest.raises(TransportError) as exc_info:
        _send(ClaudeMessagesClient(client=sdk))

    err = exc_info.value
    assert err.kind is kind
    assert err.status_code == status_code
    assert err.__cause__ is error
    assert classify_error(err) is Retryability.RETRYABLE


def test_to_transport_error_checks_timeout_before_connection():
    assert to_transport_error(anthropic.APITimeoutError(request=_REQUEST)).kind is TransportErrorKind.TIMEOUT


def test_client_requires_api_key():
    with pytest.raises(ValueError, match="API key is required"):
        ClaudeMessagesClient(api_key="   ")


def test_client_builds_sdk_without_sdk_retries():
    client = ClaudeMessagesClient(api_key="sk-test")

    assert isinstance(client.client, anthropic.AsyncAnthropic)
    assert client.client.max_retries == 0
