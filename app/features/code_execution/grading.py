"""Per-test-case fan-out and pass/fail aggregation."""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, List, Optional

from .errors import CodeExecutionError
from .schemas import AggregateResult, ExecuteRequest, ExecutionResult, TestResult

logger = logging.getLogger(__name__)

RunOne = Callable[..., Awaitable[ExecutionResult]]


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def normalise_output(text: Optional[str]) -> str:
    return (text or "").strip()


def outputs_match(actual: Optional[str], expected: Optional[str]) -> bool:
    """Exact equality after trimming leading/trailing whitespace; nothing else is forgiven."""
    return normalise_output(actual) == normalise_output(expected)


async def grade_test_cases(
    run_one: RunOne,
    request: ExecuteRequest,
    *,
    started_at: Optional[float] = None,
) -> AggregateResult:
    """Run ``request`` once per test case, sequentially and in input order.

    Each case gets the full execution timeout. An error on one case is
    recorded on its result and never stops the remaining cases.
    """
    started = started_at if started_at is not None else time.perf_counter()
    results: List[TestResult] = []

    for idx, case in enumerate(request.test_cases):
        case_started = time.perf_counter()
        case_request = request.model_copy(update={"stdin": case.input, "test_cases": []})
        try:
            result = await run_one(case_request, started_at=case_started)
        except CodeExecutionError as exc:
            logger.info("test case %d errored: %s", idx, exc)
            results.append(TestResult(
                test_case=case,
                actual_output="",
                passed=False,
                error_message=str(exc),
                execution_time_ms=_elapsed_ms(case_started),
            ))
            continue

        results.append(TestResult(
            test_case=case,
            actual_output=result.output,
            passed=outputs_match(result.output, case.expected_output),
            error_message=result.error,
            execution_time_ms=result.execution_time_ms,
        ))

    all_passed = all(r.passed for r in results)
    logger.info(
        "graded %d test cases: %d passed",
        len(results), sum(1 for r in results if r.passed),
    )
    return AggregateResult(
        test_results=results,
        all_passed=all_passed,
        execution_time_ms=_elapsed_ms(started),
    )


__all__ = ["normalise_output", "outputs_match", "grade_test_cases"]
