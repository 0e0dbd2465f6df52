from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TestCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: str = ""
    expected_output: str = ""
    description: Optional[str] = None


class ExecuteRequest(BaseModel):
    code: str
    language: str
    stdin: Optional[str] = None
    test_cases: List[TestCase] = Field(default_factory=list)

    @model_validator(mode="after")
    def _require_code(self):
        if not self.code or not self.code.strip():
            raise ValueError("code must not be blank")
        return self


class ExecutionResult(BaseModel):
    """Normalised outcome of a single run (judge or local fallback)."""

    output: str = ""
    error: str = ""
    passed: bool = False
    execution_time_ms: int = 0
    exit_code: int = 0


class TestResult(BaseModel):
    test_case: TestCase
    actual_output: str = ""
    passed: bool = False
    error_message: str = ""
    execution_time_ms: int = 0


class AggregateResult(BaseModel):
    test_results: List[TestResult] = Field(default_factory=list)
    all_passed: bool = False
    execution_time_ms: int = 0


class ExecuteResponse(BaseModel):
    output: str = ""
    error: str = ""
    passed: bool
    test_results: Optional[List[TestResult]] = None
    execution_time_ms: int
    exit_code: int = 0

    @classmethod
    def from_result(cls, result: ExecutionResult | AggregateResult) -> "ExecuteResponse":
        if isinstance(result, AggregateResult):
            return cls(
                passed=result.all_passed,
                test_results=result.test_results,
                execution_time_ms=result.execution_time_ms,
            )
        return cls(
            output=result.output,
            error=result.error,
            passed=result.passed,
            execution_time_ms=result.execution_time_ms,
            exit_code=result.exit_code,
        )


class LanguagesResponse(BaseModel):
    languages: dict[str, int]
    fallback_language: Optional[str] = None
    judge_configured: bool
