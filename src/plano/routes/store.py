"""Store endpoint — register a new blueprint.

New blueprints start as drafts owned by the calling wallet.
There is no delete.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from plano.auth import require_wallet
from plano.deps import get_repository
from plano.models import BlueprintDraft
from plano.repository import BlueprintRepository

router = APIRouter(prefix="/api/v1", tags=["store"])


@router.post("/blueprints", status_code=201)
def create_blueprint(
    draft: BlueprintDraft,
    owner: str = Depends(require_wallet),
    repository: BlueprintRepository = Depends(get_repository),
):
    blueprint_id = repository.create(draft, owner)
    return {"id": blueprint_id}
