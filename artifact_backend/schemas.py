"""
Pydantic schemas for the artifacts API.

Request bodies use the camelCase keys the browser client sends; parsed
models expose snake_case attributes. Field values are free-form JSON; the
only required input (the creator email) is checked by the store.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ArtifactFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel)

    name: Any = None
    image: Any = None
    type: Any = None
    description: Any = None
    created_at: Any = None
    discovered_at: Any = None
    discovered_by: Any = None
    location: Any = None


class CreateArtifactRequest(ArtifactFields):
    # Unknown keys are stored as-is, like the schemaless collection this mirrors.
    model_config = ConfigDict(alias_generator=to_camel, extra="allow")

    added_by: Any = None


class UpdateArtifactRequest(ArtifactFields):
    pass


class CreateArtifactResponse(BaseModel):
    message: str
    insertedId: str


class ToggleLikeRequest(BaseModel):
    email: Any = None


class ToggleLikeResponse(BaseModel):
    message: str
    liked: bool


class SessionRequest(BaseModel):
    """Claims to sign into the session token. ``email`` is the identity."""

    model_config = ConfigDict(extra="allow")

    email: Any = None


class SuccessResponse(BaseModel):
    success: bool


class MessageResponse(BaseModel):
    message: str
