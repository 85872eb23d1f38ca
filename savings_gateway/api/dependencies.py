"""Dependency injection for FastAPI endpoints"""

from datetime import date
from fastapi import Request
from savings_gateway.infrastructure.clients.ledger import LedgerClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ledger_client() -> LedgerClient:
    """Provide linked-ledger webhook client instance"""
    return LedgerClient()


def get_today() -> date:
    """Calendar date used for deposits and progress when the caller gives none"""
    return date.today()
