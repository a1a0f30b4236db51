"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Any, Dict
from fastapi import Request
from energy_gateway.utils.date_utils import utc_now


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_now() -> datetime:
    """Provide the current UTC time; overridden in tests to pin the clock"""
    return utc_now()


def get_query_params(request: Request) -> Dict[str, Any]:
    """Raw query parameters as a plain mapping, last value wins"""
    return dict(request.query_params)
