from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.Core.config import get_settings
from app.common.quota import QuotaError, enforce_source_stdin
from app.common.ratelimit import InMemoryRateLimitStore, RateLimiter, client_key_func
from app.common.schemas import error_detail
from .errors import (
    ExecutionTimeoutError,
    JudgeExecutionError,
    JudgeUnavailableError,
    LocalExecutionError,
    UnsupportedLanguageError,
)
from .languages import LANGUAGE_IDS
from .schemas import ExecuteRequest, ExecuteResponse, LanguagesResponse
from .service import CodeExecutionService, get_code_execution_service

logger = logging.getLogger("code_execution")

router = APIRouter(prefix="/api/code", tags=["code-execution"])

_settings = get_settings()
execute_rate_limiter = RateLimiter(
    InMemoryRateLimitStore(limit=_settings.rate_limit_execute, window_s=3600),
    key_func=client_key_func(_settings.trust_forwarded_for),
)


def _fail(request: Request, status_code: int, error_code: str, message: str,
          details: Optional[Dict[str, Any]] = None) -> HTTPException:
    request_id = getattr(request.state, "request_id", None)
    return HTTPException(status_code=status_code, detail=error_detail(error_code, message, details, request_id))


@router.post(
    "/execute",
    response_model=ExecuteResponse,
    response_model_exclude_none=True,
    summary="Run code once, or once per test case",
)
async def execute_code(
    payload: ExecuteRequest,
    request: Request,
    _: None = Depends(execute_rate_limiter),
    service: CodeExecutionService = Depends(get_code_execution_service),
):
    try:
        enforce_source_stdin(payload.code, payload.stdin, (tc.input for tc in payload.test_cases))
    except QuotaError as exc:
        raise _fail(request, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "PAYLOAD_TOO_LARGE", str(exc)) from exc

    try:
        result = await service.execute(payload)
    except UnsupportedLanguageError as exc:
        raise _fail(
            request,
            status.HTTP_400_BAD_REQUEST,
            "VALIDATION_ERROR",
            "Invalid language",
            {"language": exc.language, "supported_languages": exc.supported},
        ) from exc
    except JudgeUnavailableError as exc:
        raise _fail(request, status.HTTP_503_SERVICE_UNAVAILABLE, "SERVICE_UNAVAILABLE", str(exc)) from exc
    except ExecutionTimeoutError as exc:
        raise _fail(request, status.HTTP_504_GATEWAY_TIMEOUT, "EXECUTION_TIMEOUT", "Execution timeout") from exc
    except JudgeExecutionError as exc:
        logger.warning("judge execution failed: %s", exc)
        raise _fail(request, status.HTTP_502_BAD_GATEWAY, "JUDGE_ERROR", "Failed to execute code",
                    {"error": str(exc)}) from exc
    except LocalExecutionError as exc:
        logger.exception("local execution failed")
        raise _fail(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Failed to execute code",
                    {"error": str(exc)}) from exc

    return ExecuteResponse.from_result(result)


@router.get("/languages", response_model=LanguagesResponse)
async def get_supported_languages(service: CodeExecutionService = Depends(get_code_execution_service)):
    fallback = service.settings.fallback_language if service.settings.allow_local_fallback else None
    return LanguagesResponse(
        languages=dict(LANGUAGE_IDS),
        fallback_language=fallback,
        judge_configured=service.judge.is_available(),
    )
