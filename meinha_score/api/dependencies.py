"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from fastapi import Request
from meinha_score.domain.scoring import Clock


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Clock:
    """Wall clock for overdue penalties; tests override this with a fixed instant"""
    return datetime.now
