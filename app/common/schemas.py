from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime, timezone

# ERROR AND STATUS SCHEMAS

class ErrorResponse(BaseModel):
    """Standard error response"""
    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str
    time_utc: datetime
    uptime_seconds: float
    version: str
    environment: str
    components: Dict[str, str]  # component_name -> status


def error_detail(
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """JSON-ready ``HTTPException.detail`` payload in the standard error shape."""
    return ErrorResponse(
        error_code=error_code, message=message, details=details, request_id=request_id,
    ).model_dump(mode="json")
