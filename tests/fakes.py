"""Stand-ins for the judge client and the local runner used across tests."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Tuple

from app.features.judge0.schemas import Judge0ExecutionResult, Judge0Status, Judge0SubmissionRequest


def make_raw(
    status_id: int = 3,
    description: str = "Accepted",
    *,
    stdout: Optional[str] = "",
    stderr: Optional[str] = None,
    compile_output: Optional[str] = None,
    exit_code: Optional[int] = 0,
) -> Judge0ExecutionResult:
    return Judge0ExecutionResult(
        token="tok",
        status=Judge0Status(id=status_id, description=description),
        stdout=stdout,
        stderr=stderr,
        compile_output=compile_output,
        time="0.01",
        memory=1024,
        exit_code=exit_code,
    )


class FakeJudge:
    """Records every call; answers via ``respond(spec)`` or raises ``error``."""

    def __init__(
        self,
        respond: Optional[Callable[[Judge0SubmissionRequest], Judge0ExecutionResult]] = None,
        *,
        available: bool = True,
        error: Optional[BaseException] = None,
        delay_s: float = 0.0,
    ) -> None:
        self.respond = respond or (lambda spec: make_raw())
        self.available = available
        self.error = error
        self.delay_s = delay_s
        self.calls: List[Tuple[Judge0SubmissionRequest, float]] = []
        self.availability_checks = 0

    def is_available(self) -> bool:
        self.availability_checks += 1
        return self.available

    async def submit_and_wait(self, spec: Judge0SubmissionRequest, timeout_s: float) -> Judge0ExecutionResult:
        self.calls.append((spec, timeout_s))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return self.respond(spec)


class FakeLocalRunner:
    language = "go"

    def __init__(self, result: Optional[Judge0ExecutionResult] = None) -> None:
        self.result = result or make_raw(stdout="local\n")
        self.calls: List[Tuple[str, Optional[str]]] = []

    def supports(self, language: str) -> bool:
        return language == self.language

    async def run(self, source: str, stdin: Optional[str] = None) -> Judge0ExecutionResult:
        self.calls.append((source, stdin))
        return self.result
