"""Blueprint records and their stored JSON form."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from plano.codec import decode_price, is_valid_price
from plano.errors import PlanoError

INDEX_KEY = "blueprint_keys"
RECORD_KEY_PREFIX = "blueprint_"


def record_key(blueprint_id: str) -> str:
    return f"{RECORD_KEY_PREFIX}{blueprint_id}"


class BlueprintStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    SOLD = "sold"


class Blueprint(BaseModel):
    """One registry entry. Frozen: changes go through model_copy."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    encoded_price: str = Field(alias="data")
    created_at: int = Field(alias="timestamp")
    owner: str
    title: str = ""
    architect: str = ""
    status: BlueprintStatus = BlueprintStatus.DRAFT
    preview_image: str = Field(default="", alias="previewImage")

    @field_validator("status", mode="before")
    @classmethod
    def _missing_status_is_draft(cls, value):
        return value or BlueprintStatus.DRAFT

    @field_validator("title", "architect", "preview_image", mode="before")
    @classmethod
    def _null_text_is_empty(cls, value):
        return "" if value is None else value

    @property
    def price(self) -> float | None:
        """Decoded price, or None when the token does not decode."""
        value = decode_price(self.encoded_price)
        return value if is_valid_price(value) else None

    def is_owned_by(self, address: str | None) -> bool:
        return bool(address) and address.strip().lower() == self.owner.strip().lower()

    def to_stored(self) -> bytes:
        """Serialize to the JSON document kept under ``blueprint_<id>``."""
        doc = self.model_dump_json(by_alias=True, exclude={"id"})
        return doc.encode("utf-8")

    @classmethod
    def from_stored(cls, blueprint_id: str, raw: bytes) -> Blueprint:
        """Parse a stored record. Raises pydantic.ValidationError or ValueError."""
        doc = json.loads(raw.decode("utf-8"))
        if not isinstance(doc, dict):
            raise ValueError("record document is not a JSON object")
        # The id lives in the key, not the document.
        return cls.model_validate({**doc, "id": blueprint_id})

    def view(self) -> dict:
        """Listing representation: stored fields plus the decoded price."""
        data = self.model_dump(mode="json")
        data["price"] = self.price
        return data


class BlueprintDraft(BaseModel):
    """Fields a caller supplies when registering a blueprint."""

    title: str = Field(min_length=1)
    architect: str = Field(min_length=1)
    price: float = Field(gt=0)
    preview_image: str = ""

    @field_validator("title", "architect")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("price")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("price must be finite")
        return value


@dataclass(frozen=True)
class ListingResult:
    """Outcome of reading one indexed id: a blueprint or the failure."""

    blueprint_id: str
    blueprint: Blueprint | None = None
    error: PlanoError | None = None

    @property
    def ok(self) -> bool:
        return self.blueprint is not None


class MarketStats(BaseModel):
    total: int = 0
    draft: int = 0
    published: int = 0
    sold: int = 0
    total_value: float = 0.0
