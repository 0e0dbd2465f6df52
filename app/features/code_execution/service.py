import logging
import time
from typing import Optional, Union

from app.Core.config import Settings, get_settings
from app.features.judge0.errors import Judge0Error, PollTimeoutError
from app.features.judge0.schemas import (
    STATUS_ACCEPTED,
    Judge0ExecutionResult,
    Judge0SubmissionRequest,
)
from app.features.judge0.service import Judge0Service, judge0_service
from .errors import ExecutionTimeoutError, JudgeExecutionError, JudgeUnavailableError
from .grading import grade_test_cases
from .languages import resolve_language_id
from .local_runner import LocalGoRunner, local_runner
from .schemas import AggregateResult, ExecuteRequest, ExecutionResult


def normalise_result(raw: Judge0ExecutionResult) -> ExecutionResult:
    """Collapse a judge (or local) result into pass/fail plus a single error text.

    Error text priority is stderr, then compile output, then the status
    description when the status is not Accepted.
    """
    accepted = raw.status.id == STATUS_ACCEPTED
    exit_code = raw.exit_code or 0
    if raw.stderr:
        error = raw.stderr
    elif raw.compile_output:
        error = raw.compile_output
    elif not accepted:
        error = raw.status.description
    else:
        error = ""
    return ExecutionResult(
        output=raw.stdout or "",
        error=error,
        passed=accepted and exit_code == 0,
        exit_code=exit_code,
    )


class CodeExecutionService:
    def __init__(
        self,
        judge: Optional[Judge0Service] = None,
        local: Optional[LocalGoRunner] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.judge = judge if judge is not None else judge0_service
        self.local = local if local is not None else local_runner
        self.timeout_s = self.settings.execution_timeout_s
        self._logger = logging.getLogger(__name__)

    async def execute(self, request: ExecuteRequest) -> Union[ExecutionResult, AggregateResult]:
        """Single run, or one run per test case when the request carries any."""
        started = time.perf_counter()
        if request.test_cases:
            # Caller error: reject once up front instead of once per case
            resolve_language_id(request.language)
            return await grade_test_cases(self.execute_simple, request, started_at=started)
        return await self.execute_simple(request, started_at=started)

    async def execute_simple(
        self,
        request: ExecuteRequest,
        *,
        started_at: Optional[float] = None,
        timeout_s: Optional[float] = None,
    ) -> ExecutionResult:
        started = started_at if started_at is not None else time.perf_counter()
        language_id = resolve_language_id(request.language)

        spec = Judge0SubmissionRequest(
            source_code=request.code,
            language_id=language_id,
            stdin=request.stdin or None,
            cpu_time_limit=self.settings.cpu_time_limit_s,
            memory_limit=self.settings.memory_limit_kb,
        )
        raw = await self._run(request, spec, timeout_s if timeout_s is not None else self.timeout_s)

        result = normalise_result(raw)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        self._logger.info(
            "code.execute",
            extra={
                "language": request.language,
                "status_id": raw.status.id,
                "passed": result.passed,
                "elapsed_ms": elapsed_ms,
            },
        )
        return result.model_copy(update={"execution_time_ms": elapsed_ms})

    def _fallback_allowed(self, language: str) -> bool:
        return (
            self.settings.allow_local_fallback
            and language == self.settings.fallback_language
            and self.local.supports(language)
        )

    async def _run(
        self,
        request: ExecuteRequest,
        spec: Judge0SubmissionRequest,
        timeout_s: float,
    ) -> Judge0ExecutionResult:
        if self.judge.is_available():
            try:
                return await self.judge.submit_and_wait(spec, timeout_s)
            except PollTimeoutError as e:
                raise ExecutionTimeoutError(f"judge0 execution: {e}") from e
            except Judge0Error as e:
                raise JudgeExecutionError(f"judge0 execution: {e}") from e

        if self._fallback_allowed(request.language):
            self._logger.warning("Judge0 not configured; running %s locally (dev only)", request.language)
            return await self.local.run(request.code, request.stdin)

        raise JudgeUnavailableError(request.language)


code_execution_service = CodeExecutionService()


def get_code_execution_service() -> CodeExecutionService:
    return code_execution_service
