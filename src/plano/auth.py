"""Request authentication for the Plano gateway.

API key: empty key = development mode (no auth required), non-empty key
must match the X-API-Key header.

Wallet identity: the connected wallet's address arrives in the
X-Wallet-Address header. Routes that act for a wallet require it.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Security
from fastapi.security import APIKeyHeader

from plano.errors import NotConnectedError

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
_wallet_header = APIKeyHeader(name="X-Wallet-Address", auto_error=False)


def make_api_key_checker(expected_key: str):
    """Return a FastAPI dependency that checks the API key.

    If expected_key is empty, all requests are allowed (development mode).
    """

    async def check_api_key(
        api_key: str | None = Security(_api_key_header),
    ) -> str | None:
        if not expected_key:
            return None
        if api_key != expected_key:
            raise HTTPException(
                status_code=401,
                detail="Invalid or missing API key",
            )
        return api_key

    return check_api_key


async def optional_wallet(
    address: str | None = Security(_wallet_header),
) -> str | None:
    """The caller's wallet address, if one was sent."""
    if address is None or not address.strip():
        return None
    return address.strip()


async def require_wallet(
    address: str | None = Depends(optional_wallet),
) -> str:
    """The caller's wallet address. NotConnectedError (401) when missing."""
    if address is None:
        raise NotConnectedError("Please connect wallet first")
    return address
