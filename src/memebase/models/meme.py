"""Meme record, partial-update patch and record validation."""

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, ConfigDict, Field

MAX_FIELD_BYTES = 64

# Fields a caller may change after creation.
MUTABLE_FIELDS = ("artist", "title", "b64")


class MemeRecord(BaseModel):
    """
    A catalog record in caller-facing shape.

    Attributes:
        id: Store-assigned identifier (24 hex characters), empty until created
        created: Creation timestamp, set once by the repository
        artist: Artist name, 1-64 bytes
        title: Title, 1-64 bytes
        b64: Base64 payload, opaque to this layer
        version: Optimistic concurrency token, 1 on creation
    """

    id: str = ""
    created: Optional[datetime] = None
    artist: str = ""
    title: str = ""
    b64: str = ""
    version: int = 0

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "MemeRecord":
        """Build a record from the store-facing shape (``_id`` -> ``id``)."""
        return cls(
            id=str(document["_id"]),
            created=document.get("created"),
            artist=document.get("artist", ""),
            title=document.get("title", ""),
            b64=document.get("b64", ""),
            version=document.get("version", 0),
        )

    def to_document(self) -> Dict[str, Any]:
        """Store-facing shape without ``_id``; the store assigns it."""
        return {
            "created": self.created,
            "artist": self.artist,
            "title": self.title,
            "b64": self.b64,
            "version": self.version,
        }

    def mutable_fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in MUTABLE_FIELDS}


class MemePatch(BaseModel):
    """
    Field-level partial update.

    A field counts as supplied only if it was explicitly set to a non-null
    value. Setting a field to ``""`` is a real change and will then fail
    validation, unlike leaving it out.
    """

    model_config = ConfigDict(extra="ignore")

    artist: Optional[str] = Field(default=None, description="New artist")
    title: Optional[str] = Field(default=None, description="New title")
    b64: Optional[str] = Field(default=None, description="New base64 payload")

    def supplied(self) -> Dict[str, str]:
        """Return only the fields the caller actually supplied."""
        return {
            name: getattr(self, name)
            for name in MUTABLE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is not None
        }

    def apply(self, meme: MemeRecord) -> MemeRecord:
        """Merge supplied fields over ``meme``; omitted fields keep their value."""
        return meme.model_copy(update=self.supplied())


def _check_text(errors: Dict[str, str], name: str, value: str) -> None:
    if value == "":
        errors[name] = "must be provided"
    elif len(value.encode("utf-8")) > MAX_FIELD_BYTES:
        errors[name] = f"must not be more than {MAX_FIELD_BYTES} bytes long"


def validate_meme(meme: MemeRecord) -> Dict[str, str]:
    """
    Check the record's presence and length constraints.

    Args:
        meme: Record to validate

    Returns:
        Mapping of field name to violated constraint, empty when valid
    """
    errors: Dict[str, str] = {}
    _check_text(errors, "artist", meme.artist)
    _check_text(errors, "title", meme.title)
    if meme.b64 == "":
        errors["b64"] = "must be provided"
    return errors


def normalize_id(value: Any) -> Optional[str]:
    """Return the canonical hex form of an identifier, or None if malformed."""
    if not isinstance(value, str):
        return None
    try:
        return str(ObjectId(value))
    except (InvalidId, TypeError):
        return None


def new_id() -> str:
    """Generate a fresh identifier in the store's native form."""
    return str(ObjectId())
