import asyncio
import json
import time

import httpx
import pytest

from app.features.judge0.errors import DecodeError, PollTimeoutError, TransportError
from app.features.judge0.schemas import Judge0SubmissionRequest
from app.features.judge0.service import Judge0Service, normalise_base_url


def _result_payload(status_id, description="", **extra):
    payload = {
        "status": {"id": status_id, "description": description},
        "stdout": None,
        "stderr": None,
        "compile_output": None,
        "time": "0.01",
        "memory": 128,
        "exit_code": 0,
        "exit_signal": None,
    }
    payload.update(extra)
    return payload


def _spec(**overrides):
    data = {
        "source_code": "print('hi')",
        "language_id": 71,
        "stdin": "1 2",
        "cpu_time_limit": 5,
        "memory_limit": 131072,
    }
    data.update(overrides)
    return Judge0SubmissionRequest(**data)


def _service(settings, handler):
    return Judge0Service(settings, transport=httpx.MockTransport(handler))


def test_submit_code_posts_submission_body(settings):
    captured = {}

    def handler(request: httpx.Request):
        captured["method"] = request.method
        captured["path"] = request.url.path
        captured["params"] = dict(request.url.params)
        captured["json"] = json.loads(request.content)
        return httpx.Response(201, json={"token": "tok"})

    service = _service(settings, handler)
    response = asyncio.run(service.submit_code(_spec()))

    assert response.token == "tok"
    assert captured["method"] == "POST"
    assert captured["path"] == "/submissions"
    assert captured["params"] == {"base64_encoded": "false", "wait": "false"}
    assert captured["json"] == {
        "source_code": "print('hi')",
        "language_id": 71,
        "stdin": "1 2",
        "cpu_time_limit": 5,
        "memory_limit": 131072,
    }


def test_submit_code_omits_missing_stdin(settings):
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"token": "tok"})

    asyncio.run(_service(settings, handler).submit_code(_spec(stdin=None)))

    assert "stdin" not in bodies[0]


def test_submit_code_non_2xx_raises_transport_error(settings):
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(_service(settings, handler).submit_code(_spec()))
    assert excinfo.value.status_code == 500


def test_submit_code_connect_error_raises_transport_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        asyncio.run(_service(settings, handler).submit_code(_spec()))


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(201, content=b"<html>not json</html>"),
        httpx.Response(201, json={"id": 1}),
        httpx.Response(201, json={"token": ""}),
    ],
)
def test_submit_code_bad_body_raises_decode_error(settings, response):
    with pytest.raises(DecodeError):
        asyncio.run(_service(settings, lambda request: response).submit_code(_spec()))


def test_get_submission_result_decodes_fields(settings):
    def handler(request):
        assert request.method == "GET"
        assert request.url.path == "/submissions/tok"
        return httpx.Response(200, json=_result_payload(
            11, "Runtime Error (NZEC)", stdout="partial", stderr="Traceback", exit_code=1, exit_signal=None,
        ))

    result = asyncio.run(_service(settings, handler).get_submission_result("tok"))

    assert result.token == "tok"
    assert result.status.id == 11
    assert result.status.description == "Runtime Error (NZEC)"
    assert result.stdout == "partial"
    assert result.stderr == "Traceback"
    assert result.exit_code == 1
    assert result.is_terminal


def test_get_submission_result_without_status_raises_decode_error(settings):
    def handler(request):
        return httpx.Response(200, json={"stdout": "hi"})

    with pytest.raises(DecodeError):
        asyncio.run(_service(settings, handler).get_submission_result("tok"))


def test_submit_and_wait_polls_until_terminal(settings):
    statuses = [1, 2, 2, 3]
    polls = {"count": 0}

    def handler(request):
        if request.method == "POST":
            return httpx.Response(201, json={"token": "tok"})
        idx = polls["count"]
        polls["count"] += 1
        return httpx.Response(200, json=_result_payload(statuses[idx], "x", stdout="hi\n"))

    result = asyncio.run(_service(settings, handler).submit_and_wait(_spec(), timeout_s=2))

    assert polls["count"] == 4
    assert result.status.id == 3
    assert result.stdout == "hi\n"


def test_submit_and_wait_returns_error_statuses_as_is(settings):
    def handler(request):
        if request.method == "POST":
            return httpx.Response(201, json={"token": "tok"})
        return httpx.Response(200, json=_result_payload(
            6, "Compilation Error", compile_output="main.cpp:1: error", exit_code=None,
        ))

    result = asyncio.run(_service(settings, handler).submit_and_wait(_spec(), timeout_s=2))

    assert result.status.id == 6
    assert result.compile_output == "main.cpp:1: error"


def test_submit_and_wait_times_out_not_before_deadline(settings):
    def handler(request):
        if request.method == "POST":
            return httpx.Response(201, json={"token": "tok"})
        return httpx.Response(200, json=_result_payload(2, "Processing"))

    service = _service(settings, handler)
    deadline = 0.2
    start = time.monotonic()
    with pytest.raises(PollTimeoutError) as excinfo:
        asyncio.run(service.submit_and_wait(_spec(), timeout_s=deadline))
    elapsed = time.monotonic() - start

    assert elapsed >= deadline * 0.95
    assert isinstance(excinfo.value, TimeoutError)
    assert excinfo.value.token == "tok"
    assert "timeout waiting for result" in str(excinfo.value)


def test_submit_and_wait_poll_failure_is_not_retried(settings):
    polls = {"count": 0}

    def handler(request):
        if request.method == "POST":
            return httpx.Response(201, json={"token": "tok"})
        polls["count"] += 1
        return httpx.Response(503, text="overloaded")

    with pytest.raises(TransportError):
        asyncio.run(_service(settings, handler).submit_and_wait(_spec(), timeout_s=2))
    assert polls["count"] == 1


def test_submit_and_wait_propagates_cancellation(settings):
    def handler(request):
        if request.method == "POST":
            return httpx.Response(201, json={"token": "tok"})
        return httpx.Response(200, json=_result_payload(1, "In Queue"))

    service = _service(settings, handler)

    async def _run():
        task = asyncio.create_task(service.submit_and_wait(_spec(), timeout_s=30))
        await asyncio.sleep(0.05)
        task.cancel()
        started = time.monotonic()
        with pytest.raises(asyncio.CancelledError):
            await task
        return time.monotonic() - started

    assert asyncio.run(_run()) < 1.0


def test_is_available_is_config_only(settings):
    def handler(request):
        raise AssertionError("is_available must not touch the network")

    settings.judge0_api_url = ""
    assert _service(settings, handler).is_available() is False

    settings.judge0_api_url = "http://judge.test"
    assert _service(settings, handler).is_available() is True


def test_unconfigured_service_raises_transport_error(settings):
    settings.judge0_api_url = ""
    with pytest.raises(TransportError):
        asyncio.run(_service(settings, lambda request: httpx.Response(201)).submit_code(_spec()))


def test_rapidapi_headers_sent_when_key_configured(settings):
    seen = {}

    def handler(request):
        seen.update(request.headers)
        return httpx.Response(201, json={"token": "tok"})

    settings.judge0_api_key = "secret"
    settings.judge0_host = "judge0-ce.p.rapidapi.com"
    asyncio.run(_service(settings, handler).submit_code(_spec()))

    assert seen["x-rapidapi-key"] == "secret"
    assert seen["x-rapidapi-host"] == "judge0-ce.p.rapidapi.com"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ""),
        (None, ""),
        ("judge0.internal", "http://judge0.internal:2358"),
        ("10.0.0.5:8080", "http://10.0.0.5:8080"),
        ("https://judge0-ce.p.rapidapi.com/", "https://judge0-ce.p.rapidapi.com"),
        ("http://localhost:2358", "http://localhost:2358"),
    ],
)
def test_normalise_base_url(raw, expected):
    assert normalise_base_url(raw) == expected
