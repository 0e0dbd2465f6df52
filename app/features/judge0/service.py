import asyncio
import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import urlparse, urlunparse

import httpx
from pydantic import ValidationError

from app.Core.config import Settings, get_settings
from .errors import DecodeError, PollTimeoutError, TransportError
from .schemas import (
    Judge0ExecutionResult,
    Judge0SubmissionRequest,
    Judge0SubmissionResponse,
)

DEFAULT_JUDGE0_PORT = 2358


def normalise_base_url(raw: Optional[str]) -> str:
    base = (raw or "").strip()
    if not base:
        return ""
    # Bare hosts are assumed to be a self-hosted Judge0 CE on its default port
    if not base.startswith("http://") and not base.startswith("https://"):
        parsed = urlparse("http://" + base)
        if ":" not in parsed.netloc:
            parsed = parsed._replace(netloc=f"{parsed.netloc}:{DEFAULT_JUDGE0_PORT}")
        base = urlunparse(parsed)
    return base.rstrip("/")


def _mask_headers(h: Dict[str, str]) -> Dict[str, str]:
    return {k: ("[REDACTED]" if k.lower() == "x-rapidapi-key" else v) for k, v in (h or {}).items()}


class Judge0Service:
    """Transport-level adapter for the Judge0 submit/poll protocol.

    Holds only immutable configuration, so one instance is safe to share
    between concurrent requests. It reports terminality, never pass/fail.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.base_url = normalise_base_url(self.settings.judge0_api_url)
        self.headers = {"Content-Type": "application/json"}
        if self.settings.judge0_api_key:
            self.headers.update({
                "X-RapidAPI-Key": self.settings.judge0_api_key,
                "X-RapidAPI-Host": self.settings.judge0_host,
            })
        self.poll_interval_s = self.settings.judge0_poll_interval_s
        self._transport = transport
        self._logger = logging.getLogger(__name__)

    def is_available(self) -> bool:
        """Config-only check; no network call is made."""
        return bool(self.base_url)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if not self.base_url:
            raise TransportError("Judge0 base URL is not configured (JUDGE0_BASE_URL).")
        if not path.startswith("/"):
            path = "/" + path
        url = self.base_url + path
        self._logger.debug("Judge0 request: %s %s headers=%s", method, url, _mask_headers(self.headers))
        timeout = httpx.Timeout(self.settings.judge0_timeout_s, connect=3.0)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                return await client.request(method, url, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"Judge0 {method} {path} failed: {e!r}") from e

    @staticmethod
    def _ensure_success(resp: httpx.Response, action: str) -> None:
        if not 200 <= resp.status_code < 300:
            raise TransportError(
                f"Failed to {action}: {resp.status_code} body={resp.text[:200]}",
                status_code=resp.status_code,
            )

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"Judge0 returned invalid JSON: {e} body={resp.text[:200]}") from e

    async def submit_code(self, spec: Judge0SubmissionRequest) -> Judge0SubmissionResponse:
        """Enqueue a submission (wait=false) and return its job token."""
        response = await self._request(
            "POST",
            "/submissions",
            params={"base64_encoded": "false", "wait": "false"},
            json=spec.model_dump(exclude_none=True),
        )
        self._ensure_success(response, "submit code")
        data = self._decode(response)
        try:
            submitted = Judge0SubmissionResponse.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"Submit response missing token: {data!r}") from e
        if not submitted.token:
            raise DecodeError("Judge0 returned an empty token")
        return submitted

    async def get_submission_result(self, token: str) -> Judge0ExecutionResult:
        """Single status fetch for ``token``; does not loop."""
        resp = await self._request("GET", f"/submissions/{token}", params={"base64_encoded": "false"})
        self._ensure_success(resp, "get result")
        data = self._decode(resp)
        try:
            result = Judge0ExecutionResult.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"Unexpected submission payload for {token}: {e}") from e
        if not result.token:
            result = result.model_copy(update={"token": token})
        return result

    async def _poll_until_terminal(self, token: str) -> Judge0ExecutionResult:
        attempt = 0
        while True:
            await asyncio.sleep(self.poll_interval_s)
            attempt += 1
            result = await self.get_submission_result(token)
            if result.is_terminal:
                self._logger.info(
                    "Judge0 token=%s finished status=%s (%s) after %d polls",
                    token, result.status.id, result.status.description, attempt,
                )
                return result

    async def submit_and_wait(self, spec: Judge0SubmissionRequest, timeout_s: float) -> Judge0ExecutionResult:
        """Submit, then poll every ``poll_interval_s`` until a terminal status or the deadline.

        On deadline the token is abandoned (Judge0 cleans up on its own) and
        ``PollTimeoutError`` is raised. Caller cancellation propagates immediately
        and abandons any in-flight poll.
        """
        token = (await self.submit_code(spec)).token
        start = time.monotonic()
        try:
            return await asyncio.wait_for(self._poll_until_terminal(token), timeout=timeout_s)
        except asyncio.TimeoutError:
            self._logger.warning(
                "Judge0 token=%s not terminal after %.2fs, abandoning", token, time.monotonic() - start,
            )
            raise PollTimeoutError(token, timeout_s) from None


judge0_service = Judge0Service()
