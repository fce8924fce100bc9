"""Reveal endpoints — challenge, reveal, hide.

The client fetches the challenge, has the wallet sign it, and posts the
signature. A blank signature counts as a declined request.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from plano.auth import require_wallet
from plano.deps import get_reveal_sessions
from plano.errors import AuthDeclinedError
from plano.reveal import RevealSessions

router = APIRouter(prefix="/api/v1", tags=["reveal"])


class SignedChallenge(BaseModel):
    signature: str = ""


@router.get("/reveal/challenge")
def challenge(sessions: RevealSessions = Depends(get_reveal_sessions)):
    params = sessions.authenticator.params
    return {
        "message": params.message(),
        "public_key": params.public_key,
        "contract_address": params.contract_address,
        "chain_id": params.chain_id,
        "start_timestamp": params.start_timestamp,
        "duration_days": params.duration_days,
    }


@router.post("/blueprints/{blueprint_id}/reveal")
def reveal_price(
    blueprint_id: str,
    body: SignedChallenge,
    viewer: str = Depends(require_wallet),
    sessions: RevealSessions = Depends(get_reveal_sessions),
):
    def sign(message: str) -> str:
        if not body.signature.strip():
            raise AuthDeclinedError("Signature request was declined")
        return body.signature

    price = sessions.for_viewer(viewer).reveal(blueprint_id, sign)
    return {"id": blueprint_id, "price": price}


@router.delete("/blueprints/{blueprint_id}/reveal", status_code=204)
def hide_price(
    blueprint_id: str,
    viewer: str = Depends(require_wallet),
    sessions: RevealSessions = Depends(get_reveal_sessions),
):
    session = sessions.existing(viewer)
    if session is not None:
        session.hide(blueprint_id)
    return Response(status_code=204)


@router.delete("/reveal/session", status_code=204)
def end_session(
    viewer: str = Depends(require_wallet),
    sessions: RevealSessions = Depends(get_reveal_sessions),
):
    sessions.end(viewer)
    return Response(status_code=204)
