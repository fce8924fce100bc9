"""FastAPI dependencies for Plano routes."""

from __future__ import annotations

from fastapi import Request

from plano.lifecycle import LifecycleManager
from plano.repository import BlueprintRepository
from plano.reveal import RevealSessions


def get_repository(request: Request) -> BlueprintRepository:
    """Get the blueprint repository from app state."""
    return request.app.state.repository


def get_lifecycle(request: Request) -> LifecycleManager:
    return request.app.state.lifecycle


def get_reveal_sessions(request: Request) -> RevealSessions:
    """Get the per-wallet reveal sessions from app state."""
    return request.app.state.reveal_sessions
