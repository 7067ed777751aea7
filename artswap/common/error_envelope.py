"""Canonical error envelope for ArtSwap HTTP responses.

Standardized structure:
{
  "error": {
    "code": "string",
    "message": "string",
    "http_status": 400,
    "resource_kind": "session | artifact_store | gallery | null",
    "details": {}
  }
}
"""
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

from artswap.common.errors import InvalidTransition, StoreError

ResourceKind = Literal["session", "artifact_store", "gallery", None]


class ErrorDetail(BaseModel):
    """Canonical error detail structure."""
    code: str
    message: str
    http_status: int
    resource_kind: Optional[ResourceKind] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    """Top-level error envelope returned by all routes."""
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[ResourceKind] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    """Construct an ErrorEnvelope (without raising)."""
    error_detail = ErrorDetail(
        code=code,
        message=message,
        http_status=status_code,
        resource_kind=resource_kind,
        details=details or {},
    )
    return ErrorEnvelope(error=error_detail)


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[ResourceKind] = None,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """Construct and raise a standardized error response.

    Args:
        code: Machine-readable error code (e.g., "session.not_found")
        message: Human-readable error message
        status_code: HTTP status code (default 400)
        resource_kind: The resource type (session, artifact_store, gallery)
        details: Additional context dict

    Returns:
        HTTPException with canonical error envelope body
    """
    envelope = build_error_envelope(
        code=code,
        message=message,
        status_code=status_code,
        resource_kind=resource_kind,
        details=details,
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())


def session_not_found_error(session_id: str) -> HTTPException:
    return error_response(
        code="session.not_found",
        message=f"Session {session_id} not found",
        status_code=404,
        resource_kind="session",
        details={"session_id": session_id},
    )


def invalid_transition_error(exc: InvalidTransition) -> HTTPException:
    return error_response(
        code="session.invalid_transition",
        message=str(exc),
        status_code=409,
        resource_kind="session",
        details={"action": exc.action, "phase": exc.phase},
    )


def store_unavailable_error(exc: StoreError, resource_kind: ResourceKind = "artifact_store") -> HTTPException:
    """Remote store failure surfaced as a 502."""
    details: Dict[str, Any] = {}
    if exc.key:
        details["key"] = exc.key
    url = getattr(exc, "url", None)
    if url:
        details["url"] = url
    return error_response(
        code="artifact_store.unavailable",
        message=str(exc),
        status_code=502,
        resource_kind=resource_kind,
        details=details,
    )
