"""Blueprint repository — records and the index on top of a key/value store.

Layout in the store:
    blueprint_keys   -> JSON array of ids, in creation order
    blueprint_<id>   -> JSON object {data, timestamp, owner, title,
                        architect, status, previewImage}

A record is always written before the index references it. A crash in
between leaves an orphan record, never a dangling index entry.

All writes go through compare_and_set. Index appends re-read and merge
when another writer got there first; record updates that lose a race
fail with StaleWriteError and are left to the caller.
"""

from __future__ import annotations

import json
import logging
import secrets
import string
import time
from collections.abc import Callable

from plano.codec import PriceCodec
from plano.errors import (
    ImmutableFieldError,
    NotFoundError,
    ParseFailure,
    PlanoError,
    StaleWriteError,
    StoreUnavailableError,
)
from plano.models import (
    INDEX_KEY,
    Blueprint,
    BlueprintDraft,
    BlueprintStatus,
    ListingResult,
    record_key,
)
from plano.store.interface import KeyValueStore

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase
_IMMUTABLE_FIELDS = ("id", "owner", "created_at", "encoded_price")

Mutator = Callable[[Blueprint], Blueprint]


def new_blueprint_id(now: float) -> str:
    """``bp-<unix millis>-<4 base36 chars>``: unique without coordination."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(4))
    return f"bp-{int(now * 1000)}-{suffix}"


def parse_index(raw: bytes) -> list[str]:
    """Decode the index document. Empty bytes or blank text is an empty index."""
    if not raw:
        return []
    try:
        text = raw.decode("utf-8")
        if not text.strip():
            return []
        keys = json.loads(text)
    except ValueError as exc:
        raise ParseFailure(f"Index {INDEX_KEY!r} is not valid JSON: {exc}") from exc
    if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
        raise ParseFailure(f"Index {INDEX_KEY!r} is not a JSON array of ids")
    return keys


def dump_index(keys: list[str]) -> bytes:
    return json.dumps(keys, separators=(",", ":")).encode("utf-8")


class BlueprintRepository:
    """Owns the translation between Blueprint and its stored bytes."""

    def __init__(
        self,
        store: KeyValueStore,
        codec: PriceCodec | None = None,
        *,
        index_append_attempts: int = 5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.codec = codec or PriceCodec()
        self.index_append_attempts = max(1, index_append_attempts)
        self._clock = clock

    # ── Reads ─────────────────────────────────────────────────

    def index(self) -> list[str]:
        """Ids known to the registry, in creation order, duplicates removed."""
        self.store.ensure_available()
        keys = parse_index(self.store.get_data(INDEX_KEY))
        return list(dict.fromkeys(keys))

    def get(self, blueprint_id: str) -> Blueprint:
        self.store.ensure_available()
        return self._read(blueprint_id)[0]

    def scan(self) -> list[ListingResult]:
        """Read every indexed id, one result per id.

        A failure for one id is captured in its result and does not stop
        the scan. An unreadable index yields an empty scan; an unavailable
        store aborts it, even partway through.
        """
        try:
            ids = self.index()
        except ParseFailure as exc:
            logger.error("Error parsing blueprint index: %s", exc)
            return []

        results: list[ListingResult] = []
        for blueprint_id in ids:
            try:
                blueprint, _ = self._read(blueprint_id)
            except StoreUnavailableError:
                raise
            except PlanoError as exc:
                results.append(ListingResult(blueprint_id, error=exc))
            else:
                results.append(ListingResult(blueprint_id, blueprint=blueprint))
        return results

    def list(self) -> list[Blueprint]:
        """All readable blueprints, newest first."""
        blueprints = []
        for result in self.scan():
            if result.ok:
                blueprints.append(result.blueprint)
            else:
                logger.warning(
                    "Skipping blueprint %s: %s", result.blueprint_id, result.error
                )
        blueprints.sort(key=lambda b: b.created_at, reverse=True)
        return blueprints

    # ── Writes ────────────────────────────────────────────────

    def create(self, draft: BlueprintDraft, owner: str) -> str:
        """Register a new draft blueprint owned by ``owner``. Returns its id."""
        self.store.ensure_available()
        now = self._clock()
        blueprint = Blueprint(
            id=new_blueprint_id(now),
            encoded_price=self.codec.encode(draft.price),
            created_at=int(now),
            owner=owner,
            title=draft.title,
            architect=draft.architect,
            status=BlueprintStatus.DRAFT,
            preview_image=draft.preview_image,
        )
        # Absent-only write: an id collision fails instead of clobbering.
        self.store.compare_and_set(record_key(blueprint.id), b"", blueprint.to_stored())
        self._append_to_index(blueprint.id)
        logger.info("Created blueprint %s for %s", blueprint.id, owner)
        return blueprint.id

    def update(self, blueprint_id: str, mutator: Mutator) -> Blueprint:
        """Read-modify-write a record. Immutable fields must survive the mutator."""
        self.store.ensure_available()
        current, raw = self._read(blueprint_id)
        updated = mutator(current)
        for name in _IMMUTABLE_FIELDS:
            if getattr(updated, name) != getattr(current, name):
                raise ImmutableFieldError(
                    f"Field {name!r} of blueprint {blueprint_id} cannot change"
                )
        self.store.compare_and_set(record_key(blueprint_id), raw, updated.to_stored())
        return updated

    # ── Internals ─────────────────────────────────────────────

    def _read(self, blueprint_id: str) -> tuple[Blueprint, bytes]:
        raw = self.store.get_data(record_key(blueprint_id))
        if not raw:
            raise NotFoundError(blueprint_id)
        try:
            return Blueprint.from_stored(blueprint_id, raw), raw
        except ValueError as exc:
            raise ParseFailure(
                f"Stored data for blueprint {blueprint_id} is malformed: {exc}"
            ) from exc

    def _append_to_index(self, blueprint_id: str) -> None:
        for attempt in range(1, self.index_append_attempts + 1):
            raw = self.store.get_data(INDEX_KEY)
            keys = parse_index(raw)
            if blueprint_id in keys:
                return
            try:
                self.store.compare_and_set(INDEX_KEY, raw, dump_index([*keys, blueprint_id]))
                return
            except StaleWriteError:
                logger.debug(
                    "Index changed under append of %s (attempt %d/%d)",
                    blueprint_id,
                    attempt,
                    self.index_append_attempts,
                )
        raise StaleWriteError(INDEX_KEY)
