"""Signature-gated price reveal.

The viewer signs a challenge bound to this session's parameters. The
signature is not verified here: a wallet returning one is taken as proof
of control. After that the record's token is decoded with the codec.

This gates disclosure, not the data. Tokens are readable by anyone with
store access, and listings already carry decoded prices.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field

from plano.codec import PriceCodec, is_valid_price
from plano.errors import AuthDeclinedError, NotConnectedError
from plano.repository import BlueprintRepository

logger = logging.getLogger(__name__)

DEFAULT_DURATION_DAYS = 30
PUBLIC_KEY_HEX_LENGTH = 2000
DEFAULT_MAX_SESSIONS = 1024

# Returns a signature over the message, or raises if the wallet refuses.
Signer = Callable[[str], str]


def generate_public_key() -> str:
    """Per-session public key material: 0x plus 2000 random hex digits."""
    return "0x" + secrets.token_hex(PUBLIC_KEY_HEX_LENGTH // 2)


@dataclass(frozen=True)
class ChallengeParameters:
    """Everything the challenge message binds a signature to."""

    public_key: str
    contract_address: str
    chain_id: int
    start_timestamp: int
    duration_days: int = DEFAULT_DURATION_DAYS

    @classmethod
    def new_session(
        cls,
        contract_address: str,
        chain_id: int,
        duration_days: int = DEFAULT_DURATION_DAYS,
        clock: Callable[[], float] = time.time,
    ) -> ChallengeParameters:
        return cls(
            public_key=generate_public_key(),
            contract_address=contract_address,
            chain_id=chain_id,
            start_timestamp=int(clock()),
            duration_days=duration_days,
        )

    def message(self) -> str:
        return "\n".join(
            [
                f"publickey:{self.public_key}",
                f"contractAddresses:{self.contract_address}",
                f"contractsChainId:{self.chain_id}",
                f"startTimestamp:{self.start_timestamp}",
                f"durationDays:{self.duration_days}",
            ]
        )


class RevealAuthenticator:
    """Turns a wallet signature over the session challenge into a decode."""

    def __init__(self, params: ChallengeParameters, codec: PriceCodec | None = None) -> None:
        self.params = params
        self.codec = codec or PriceCodec()

    def challenge(self) -> str:
        return self.params.message()

    def request_signature(self, caller: str | None, sign: Signer) -> str:
        if not caller:
            raise NotConnectedError()
        message = self.challenge()
        try:
            signature = sign(message)
        except AuthDeclinedError:
            raise
        except Exception as exc:
            raise AuthDeclinedError(f"Signature request failed: {exc}") from exc
        if not signature:
            raise AuthDeclinedError("Wallet returned no signature")
        return signature

    def decrypt_with_signature(
        self, encoded_price: str, caller: str | None, sign: Signer
    ) -> float:
        """Obtain a signature from ``caller``, then decode the token.

        The result may be NaN for a malformed token; check is_valid_price.
        """
        self.request_signature(caller, sign)
        return self.codec.decode(encoded_price)


@dataclass
class RevealSession:
    """One viewer's revealed prices.

    Values live only here. Hiding a price removes it from the session.
    """

    authenticator: RevealAuthenticator
    repository: BlueprintRepository
    viewer: str | None
    _revealed: dict[str, float] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def revealed_price(self, blueprint_id: str) -> float | None:
        with self._lock:
            return self._revealed.get(blueprint_id)

    def reveal(self, blueprint_id: str, sign: Signer) -> float | None:
        """Reveal a blueprint's price. None if the stored token is malformed.

        AuthDeclinedError propagates and leaves held values as they were.
        """
        blueprint = self.repository.get(blueprint_id)
        try:
            value = self.authenticator.decrypt_with_signature(
                blueprint.encoded_price, self.viewer, sign
            )
        except AuthDeclinedError as exc:
            logger.info("Reveal of %s declined for %s: %s", blueprint_id, self.viewer, exc)
            raise
        if not is_valid_price(value):
            logger.warning("Blueprint %s has an invalid price token", blueprint_id)
            return None
        with self._lock:
            self._revealed[blueprint_id] = value
        return value

    def hide(self, blueprint_id: str) -> None:
        with self._lock:
            self._revealed.pop(blueprint_id, None)

    def toggle(self, blueprint_id: str, sign: Signer) -> float | None:
        """Hide if revealed, otherwise reveal."""
        if self.revealed_price(blueprint_id) is not None:
            self.hide(blueprint_id)
            return None
        return self.reveal(blueprint_id, sign)

    def clear(self) -> None:
        with self._lock:
            self._revealed.clear()


class RevealSessions:
    """Reveal sessions keyed by lower-cased wallet address.

    At most ``max_sessions`` are held; the least recently used is
    dropped, and its values cleared, when a new viewer arrives.
    """

    def __init__(
        self,
        authenticator: RevealAuthenticator,
        repository: BlueprintRepository,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ) -> None:
        self.authenticator = authenticator
        self.repository = repository
        self.max_sessions = max(1, max_sessions)
        self._sessions: OrderedDict[str, RevealSession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def existing(self, viewer: str | None) -> RevealSession | None:
        """The viewer's session if one is held. Never creates one."""
        if not viewer:
            raise NotConnectedError()
        key = viewer.strip().lower()
        with self._lock:
            session = self._sessions.get(key)
            if session is not None:
                self._sessions.move_to_end(key)
            return session

    def for_viewer(self, viewer: str | None) -> RevealSession:
        if not viewer:
            raise NotConnectedError()
        key = viewer.strip().lower()
        evicted: list[RevealSession] = []
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = RevealSession(self.authenticator, self.repository, viewer)
                self._sessions[key] = session
                while len(self._sessions) > self.max_sessions:
                    evicted.append(self._sessions.popitem(last=False)[1])
            else:
                self._sessions.move_to_end(key)
        for old in evicted:
            old.clear()
        return session

    def end(self, viewer: str) -> None:
        with self._lock:
            session = self._sessions.pop(viewer.strip().lower(), None)
        if session is not None:
            session.clear()
