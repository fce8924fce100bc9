"""Tests for the challenge message and the signature-gated reveal."""

from __future__ import annotations

import json

import pytest

from plano.codec import decode_price
from plano.errors import AuthDeclinedError, NotConnectedError, NotFoundError
from plano.models import BlueprintDraft, record_key
from plano.repository import BlueprintRepository
from plano.reveal import (
    ChallengeParameters,
    RevealAuthenticator,
    RevealSession,
    RevealSessions,
    generate_public_key,
)
from plano.store.memory import InMemoryStore

VIEWER = "0xAbC0000000000000000000000000000000000001"
CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


class RecordingSigner:
    """Wallet stand-in that remembers what it was asked to sign."""

    def __init__(self, signature: str = "0xsigned") -> None:
        self.signature = signature
        self.messages: list[str] = []

    def __call__(self, message: str) -> str:
        self.messages.append(message)
        return self.signature


def declining_signer(message: str) -> str:
    raise AuthDeclinedError("User rejected the request")


def broken_signer(message: str) -> str:
    raise RuntimeError("wallet transport closed")


@pytest.fixture
def params():
    return ChallengeParameters(
        public_key="0xabc123",
        contract_address=CONTRACT,
        chain_id=11155111,
        start_timestamp=1_700_000_000,
        duration_days=30,
    )


@pytest.fixture
def repo():
    return BlueprintRepository(InMemoryStore())


@pytest.fixture
def authenticator(params):
    return RevealAuthenticator(params)


@pytest.fixture
def session(authenticator, repo):
    return RevealSession(authenticator, repo, VIEWER)


@pytest.fixture
def blueprint_id(repo):
    return repo.create(BlueprintDraft(title="Glass House", architect="P. Johnson", price=2.5), VIEWER)


class TestChallenge:
    def test_message_format(self, params):
        assert params.message() == (
            "publickey:0xabc123\n"
            f"contractAddresses:{CONTRACT}\n"
            "contractsChainId:11155111\n"
            "startTimestamp:1700000000\n"
            "durationDays:30"
        )

    def test_message_is_deterministic(self, params):
        assert params.message() == params.message()

    def test_new_session_uses_clock_and_defaults(self):
        p = ChallengeParameters.new_session(CONTRACT, 1, clock=lambda: 1234.9)
        assert p.start_timestamp == 1234
        assert p.duration_days == 30
        assert p.public_key.startswith("0x")

    def test_public_key_material(self):
        key = generate_public_key()
        assert len(key) == 2002
        int(key[2:], 16)
        assert generate_public_key() != key


class TestDecryptWithSignature:
    def test_returns_direct_decode(self, authenticator, repo, blueprint_id):
        token = repo.get(blueprint_id).encoded_price
        signer = RecordingSigner()
        assert authenticator.decrypt_with_signature(token, VIEWER, signer) == decode_price(token)
        assert signer.messages == [authenticator.challenge()]

    def test_not_connected_refused_before_signing(self, authenticator):
        signer = RecordingSigner()
        with pytest.raises(NotConnectedError):
            authenticator.decrypt_with_signature("FHE-Mi41", None, signer)
        assert signer.messages == []

    def test_declined(self, authenticator):
        with pytest.raises(AuthDeclinedError):
            authenticator.decrypt_with_signature("FHE-Mi41", VIEWER, declining_signer)

    def test_signer_failure_is_declined(self, authenticator):
        with pytest.raises(AuthDeclinedError):
            authenticator.decrypt_with_signature("FHE-Mi41", VIEWER, broken_signer)

    def test_empty_signature_is_declined(self, authenticator):
        with pytest.raises(AuthDeclinedError):
            authenticator.decrypt_with_signature("FHE-Mi41", VIEWER, RecordingSigner(""))


class TestRevealSession:
    def test_reveal_holds_value(self, session, blueprint_id):
        assert session.reveal(blueprint_id, RecordingSigner()) == 2.5
        assert session.revealed_price(blueprint_id) == 2.5

    def test_hide_clears_value(self, session, blueprint_id):
        session.reveal(blueprint_id, RecordingSigner())
        session.hide(blueprint_id)
        assert session.revealed_price(blueprint_id) is None

    def test_toggle(self, session, blueprint_id):
        signer = RecordingSigner()
        assert session.toggle(blueprint_id, signer) == 2.5
        assert session.toggle(blueprint_id, signer) is None
        assert session.revealed_price(blueprint_id) is None
        assert len(signer.messages) == 1

    def test_declined_leaves_prior_state(self, session, repo, blueprint_id):
        other = repo.create(BlueprintDraft(title="Other", architect="X", price=9), VIEWER)
        session.reveal(blueprint_id, RecordingSigner())
        with pytest.raises(AuthDeclinedError):
            session.reveal(other, declining_signer)
        assert session.revealed_price(blueprint_id) == 2.5
        assert session.revealed_price(other) is None

    def test_malformed_token_reveals_nothing(self, session, repo, blueprint_id):
        store = repo.store
        doc = json.loads(store.get_data(record_key(blueprint_id)))
        doc["data"] = "FHE-@@@"
        store.set_data(record_key(blueprint_id), json.dumps(doc).encode())
        assert session.reveal(blueprint_id, RecordingSigner()) is None
        assert session.revealed_price(blueprint_id) is None

    def test_missing_blueprint(self, session):
        with pytest.raises(NotFoundError):
            session.reveal("bp-0-none", RecordingSigner())

    def test_clear(self, session, blueprint_id):
        session.reveal(blueprint_id, RecordingSigner())
        session.clear()
        assert session.revealed_price(blueprint_id) is None


class TestRevealSessions:
    def test_sessions_keyed_case_insensitively(self, authenticator, repo):
        sessions = RevealSessions(authenticator, repo)
        assert sessions.for_viewer(VIEWER) is sessions.for_viewer(VIEWER.lower())

    def test_viewers_do_not_share_values(self, authenticator, repo, blueprint_id):
        sessions = RevealSessions(authenticator, repo)
        sessions.for_viewer(VIEWER).reveal(blueprint_id, RecordingSigner())
        assert sessions.for_viewer("0xother").revealed_price(blueprint_id) is None

    def test_end_discards_values(self, authenticator, repo, blueprint_id):
        sessions = RevealSessions(authenticator, repo)
        first = sessions.for_viewer(VIEWER)
        first.reveal(blueprint_id, RecordingSigner())
        sessions.end(VIEWER)
        assert first.revealed_price(blueprint_id) is None
        assert sessions.for_viewer(VIEWER) is not first

    def test_no_viewer(self, authenticator, repo):
        with pytest.raises(NotConnectedError):
            RevealSessions(authenticator, repo).for_viewer(None)

    def test_existing_never_creates(self, authenticator, repo):
        sessions = RevealSessions(authenticator, repo)
        assert sessions.existing(VIEWER) is None
        assert len(sessions) == 0
        created = sessions.for_viewer(VIEWER)
        assert sessions.existing(VIEWER.lower()) is created

    def test_least_recently_used_is_evicted(self, authenticator, repo, blueprint_id):
        sessions = RevealSessions(authenticator, repo, max_sessions=2)
        oldest = sessions.for_viewer("0xaaa")
        oldest.reveal(blueprint_id, RecordingSigner())
        sessions.for_viewer("0xbbb")
        sessions.for_viewer("0xccc")
        assert len(sessions) == 2
        assert sessions.existing("0xaaa") is None
        assert oldest.revealed_price(blueprint_id) is None

    def test_use_refreshes_recency(self, authenticator, repo):
        sessions = RevealSessions(authenticator, repo, max_sessions=2)
        first = sessions.for_viewer("0xaaa")
        sessions.for_viewer("0xbbb")
        sessions.for_viewer("0xaaa")
        sessions.for_viewer("0xccc")
        assert sessions.existing("0xaaa") is first
        assert sessions.existing("0xbbb") is None
