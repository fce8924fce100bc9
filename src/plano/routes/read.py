"""Read endpoints — list and retrieve blueprints.

Listings carry each record's decoded price. A record whose token does
not decode shows a null price; a record that cannot be read is left out.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query

from plano.catalog import filter_blueprints
from plano.deps import get_repository
from plano.models import BlueprintStatus
from plano.repository import BlueprintRepository

router = APIRouter(prefix="/api/v1", tags=["read"])


@router.get("/blueprints")
def list_blueprints(
    search: str = Query(""),
    status: Literal["all", "draft", "published", "sold"] = Query("all"),
    repository: BlueprintRepository = Depends(get_repository),
):
    wanted = None if status == "all" else BlueprintStatus(status)
    blueprints = filter_blueprints(repository.list(), search=search, status=wanted)
    return [bp.view() for bp in blueprints]


@router.get("/blueprints/{blueprint_id}")
def get_blueprint(
    blueprint_id: str,
    repository: BlueprintRepository = Depends(get_repository),
):
    return repository.get(blueprint_id).view()
