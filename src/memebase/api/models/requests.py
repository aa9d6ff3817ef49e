"""Request models for the API."""

from pydantic import BaseModel, ConfigDict, Field

from ...models.meme import MemePatch


class CreateMemeRequest(BaseModel):
    """Request model for creating a new meme.

    Presence and length are checked by the repository so that every
    violated field is reported together.
    """

    artist: str = Field("", description="Artist name, at most 64 bytes")
    title: str = Field("", description="Title, at most 64 bytes")
    b64: str = Field("", description="Base64 encoded payload")

    model_config = ConfigDict(
        json_schema_extra={"example": {"artist": "Rick", "title": "Never", "b64": "aGVsbG8="}}
    )


class UpdateMemeRequest(MemePatch):
    """Request model for a partial update; omitted fields are left unchanged."""
