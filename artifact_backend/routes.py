"""
HTTP routes for the artifacts API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Response

from artifact_backend import likes
from artifact_backend.config import Settings, get_settings
from artifact_backend.db import DESCRIPTIVE_FIELDS, RESERVED_KEYS, DbClient
from artifact_backend.dependencies import get_db_client
from artifact_backend.errors import Forbidden, NotFound, ValidationError
from artifact_backend.schemas import (
    CreateArtifactRequest,
    CreateArtifactResponse,
    MessageResponse,
    SessionRequest,
    SuccessResponse,
    ToggleLikeRequest,
    ToggleLikeResponse,
    UpdateArtifactRequest,
)
from artifact_backend.security import (
    clear_session_cookie,
    create_access_token,
    get_current_user,
    set_session_cookie,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/jwt", response_model=SuccessResponse)
def issue_session(
    payload: SessionRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
):
    """
    Sign the posted claims into the session cookie.

    The claims are not checked against any identity provider; whoever calls
    this gets a token for the email they send.
    """
    if not payload.email:
        raise ValidationError("Email is required")
    token = create_access_token(payload.model_dump(exclude_none=True), settings)
    set_session_cookie(response, token, settings)
    return SuccessResponse(success=True)


@router.post("/logout", response_model=SuccessResponse)
def logout(response: Response, settings: Settings = Depends(get_settings)):
    clear_session_cookie(response, settings)
    return SuccessResponse(success=True)


@router.post("/history", response_model=CreateArtifactResponse, status_code=201)
def create_artifact(
    payload: CreateArtifactRequest, db: DbClient = Depends(get_db_client)
):
    extra = {
        key: value
        for key, value in (payload.model_extra or {}).items()
        if key not in RESERVED_KEYS
    }
    fields = {name: getattr(payload, name) for name in DESCRIPTIVE_FIELDS}
    record = db.create_artifact(payload.added_by, fields, extra)
    return CreateArtifactResponse(
        message="Artifact added successfully", insertedId=record.artifact_id
    )


@router.get("/history")
def list_artifacts(
    search: str | None = Query(None), db: DbClient = Depends(get_db_client)
):
    return [record.as_dict() for record in db.list_artifacts(search)]


@router.get("/my-artifacts")
def list_my_artifacts(
    email: str | None = Query(None),
    user: Dict[str, Any] = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    if not email:
        raise ValidationError("Email is required")
    if user.get("email") != email:
        raise Forbidden()
    return [record.as_dict() for record in db.list_artifacts_by_creator(email)]


@router.patch("/artifact/{artifact_id}/like", response_model=ToggleLikeResponse)
def toggle_like(
    artifact_id: str,
    payload: ToggleLikeRequest,
    db: DbClient = Depends(get_db_client),
):
    liked = likes.toggle_like(db, artifact_id, payload.email)
    return ToggleLikeResponse(message="Toggle like status successful", liked=liked)


@router.patch("/artifact/{artifact_id}", response_model=MessageResponse)
def update_artifact(
    artifact_id: str,
    payload: UpdateArtifactRequest,
    db: DbClient = Depends(get_db_client),
):
    if not db.update_artifact(artifact_id, payload.model_dump()):
        raise NotFound("Artifact not found or no changes made")
    return MessageResponse(message="Artifact updated successfully")


@router.delete("/artifact/{artifact_id}", response_model=MessageResponse)
def delete_artifact(artifact_id: str, db: DbClient = Depends(get_db_client)):
    if not db.delete_artifact(artifact_id):
        raise NotFound()
    return MessageResponse(message="Artifact deleted successfully")


@router.get("/artifact/{artifact_id}")
def get_artifact(artifact_id: str, db: DbClient = Depends(get_db_client)):
    record = db.get_artifact(artifact_id)
    if not record:
        raise NotFound()
    return record.as_dict()


@router.get("/liked-artifacts")
def list_liked_artifacts(
    user: Dict[str, Any] = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return [record.as_dict() for record in likes.liked_artifacts(db, user.get("email"))]
