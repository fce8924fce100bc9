"""Lifecycle endpoints — publish a draft, mark a published blueprint sold."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from plano.auth import require_wallet
from plano.deps import get_lifecycle
from plano.lifecycle import LifecycleManager

router = APIRouter(prefix="/api/v1", tags=["lifecycle"])


@router.post("/blueprints/{blueprint_id}/publish")
def publish_blueprint(
    blueprint_id: str,
    caller: str = Depends(require_wallet),
    manager: LifecycleManager = Depends(get_lifecycle),
):
    return manager.publish(blueprint_id, caller).view()


@router.post("/blueprints/{blueprint_id}/sell")
def sell_blueprint(
    blueprint_id: str,
    caller: str = Depends(require_wallet),
    manager: LifecycleManager = Depends(get_lifecycle),
):
    return manager.sell(blueprint_id, caller).view()
