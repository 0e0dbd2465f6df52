from __future__ import annotations

from typing import List, Optional


class CodeExecutionError(Exception):
    """Base for every error surfaced by the execution orchestrator."""


class UnsupportedLanguageError(CodeExecutionError, ValueError):
    def __init__(self, language: object, supported: Optional[List[str]] = None) -> None:
        super().__init__(f"unsupported language: {language}")
        self.language = language
        self.supported = list(supported or [])


class JudgeUnavailableError(CodeExecutionError):
    """No judge configured and the language cannot run on the local fallback."""

    def __init__(self, language: str) -> None:
        super().__init__(
            f"judge0 not available and language {language} not supported locally. Please configure Judge0"
        )
        self.language = language


class JudgeExecutionError(CodeExecutionError):
    """Judge communication failed; the client error is kept as ``__cause__``."""


class ExecutionTimeoutError(JudgeExecutionError, TimeoutError):
    """The judge did not reach a terminal status before the execution deadline."""


class LocalExecutionError(CodeExecutionError):
    """The dev-only local runner could not execute the program."""


__all__ = [
    "CodeExecutionError",
    "UnsupportedLanguageError",
    "JudgeUnavailableError",
    "JudgeExecutionError",
    "ExecutionTimeoutError",
    "LocalExecutionError",
]
