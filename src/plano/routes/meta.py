"""Meta endpoints — health, version, market statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from plano.catalog import summarize
from plano.deps import get_repository
from plano.repository import BlueprintRepository

router = APIRouter(prefix="/api/v1", tags=["meta"])

PROTOCOL_VERSION = "v1"


@router.get("/health")
def health():
    return {"status": "ok", "service": "plano"}


@router.get("/version")
def version():
    return {
        "gateway": "0.1.0",
        "protocol": PROTOCOL_VERSION,
    }


@router.get("/stats")
def stats(repository: BlueprintRepository = Depends(get_repository)):
    return summarize(repository.list()).model_dump()
